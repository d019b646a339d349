"""
Flask JSON API for device resolution, CLI command execution and
credential profile management.
"""
import logging
import os

from flask import Flask, jsonify, request
from pydantic import ValidationError

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

from devman.cli.errors import CliError, CliParamsError
from devman.cli.params import CliCmdOpts
from devman.core.device import Device, DeviceConfigError
from devman.core.ip_utils import is_valid_ip
from devman.credentials import get_credential_provider
from devman.credentials.models import CredentialProfile, profile_from_dict
from devman.snmp.client import SNMPError
from devman.vendors.base import UnsupportedError
from devman.vendors.registry import VendorRegistry
from devman.web.client import WebError

logger = logging.getLogger(__name__)

app = Flask(__name__)

AUTO_PROFILE = "__auto__"


def _error(message: str, status: int, **extra):
    return jsonify({"error": message, **extra}), status


def _profile_summary(profile: CredentialProfile) -> dict:
    return {
        "name": profile.name,
        "version": profile.version,
        "description": profile.description,
        "priority": profile.priority,
        "cli": bool(profile.cli_username),
    }


def _build_device(data: dict, profile: CredentialProfile | None) -> Device:
    """Create a Device from request data and an optional credential profile."""
    ip = (data.get("ip") or "").strip()
    cli_params = None
    snmp_credential = None
    if profile is not None:
        snmp_credential = profile.to_snmp_credential()
        cli_params = profile.to_cli_params(telnet=bool(data.get("telnet", False)))

    return Device(
        ip,
        sys_object_id=data.get("sys_object_id") or "",
        snmp_credential=snmp_credential,
        cli_params=cli_params,
        timezone=data.get("timezone") or "",
    )


def _resolve(device: Device) -> dict:
    variant = device.resolve()
    return {"ip": device.ip, "name": device.name, **variant.to_dict()}


@app.errorhandler(DeviceConfigError)
@app.errorhandler(CliParamsError)
@app.errorhandler(UnsupportedError)
def handle_bad_request(e):
    return _error(str(e), 400)


@app.errorhandler(CliError)
def handle_cli_error(e: CliError):
    return _error(str(e), 502, transcript=e.transcript)


@app.errorhandler(SNMPError)
@app.errorhandler(WebError)
def handle_device_error(e):
    return _error(str(e), 502)


# ============== Devices ==============

@app.route("/api/resolve", methods=["POST"])
def api_resolve():
    """
    Resolve device identity.

    Body: {"ip": "...", "profile": "<name>|__auto__", "sys_object_id": "...", "timezone": "..."}
    With "__auto__" profiles are tried in priority order until one answers.
    """
    data = request.get_json(silent=True) or {}
    ip = (data.get("ip") or "").strip()
    if not ip:
        return _error("IP address is required", 400)
    if not is_valid_ip(ip):
        return _error("Invalid IP address format", 400)

    cred_provider = get_credential_provider()
    profile_name = data.get("profile")

    if profile_name == AUTO_PROFILE:
        profiles = cred_provider.get_all_profiles_ordered()
        if not profiles:
            return _error("No credential profiles configured", 400)

        errors = []
        for profile in profiles:
            device = _build_device(data, profile)
            try:
                result = _resolve(device)
            except SNMPError as e:
                logger.info(f"{ip}: profile '{profile.name}' failed: {e}")
                errors.append(f"{profile.name}: {e}")
                continue
            finally:
                device.close()
            return jsonify({**result, "profile": profile.name})
        return _error("No credential profile succeeded", 502, attempts=errors)

    profile = None
    if profile_name:
        profile = cred_provider.get_profile(profile_name)
        if not profile:
            return _error(f"Profile '{profile_name}' not found", 404)

    device = _build_device(data, profile)
    try:
        return jsonify(_resolve(device))
    finally:
        device.close()


@app.route("/api/run", methods=["POST"])
def api_run():
    """
    Run CLI commands on a device.

    Body: {"ip": "...", "profile": "<name>", "commands": [...],
           "check_errors": false, "privileged": false, "telnet": false}

    The batch ends as soon as the last command is written, so its output is
    not captured and comes back as "". End the list with a command that
    leaves the session, such as "exit".
    """
    data = request.get_json(silent=True) or {}
    commands = data.get("commands")
    if not isinstance(commands, list) or not commands or not all(isinstance(c, str) for c in commands):
        return _error("commands must be a non-empty list of strings", 400)

    profile_name = data.get("profile")
    if not profile_name:
        return _error("Please select a credential profile", 400)
    profile = get_credential_provider().get_profile(profile_name)
    if not profile:
        return _error(f"Profile '{profile_name}' not found", 404)
    if not profile.cli_username:
        return _error(f"Profile '{profile_name}' has no CLI credentials", 400)

    device = _build_device(data, profile)
    try:
        handle = device.morph()
        opts = CliCmdOpts(
            check_errors=bool(data.get("check_errors", False)),
            privileged=bool(data.get("privileged", False)),
        )
        transcript = handle.run_cmds(commands, opts)
    finally:
        device.close()

    return jsonify({"ip": device.ip, "vendor": handle.vendor, "transcript": transcript})


@app.route("/api/vendors")
def api_vendors():
    """List vendors the dispatcher knows."""
    return jsonify({"vendors": VendorRegistry.get_all_vendors()})


# ============== Credential profiles ==============

@app.route("/api/profiles", methods=["GET"])
def api_profiles():
    """List credential profiles ordered by priority."""
    profiles = get_credential_provider().get_all_profiles_ordered()
    return jsonify({"profiles": [_profile_summary(p) for p in profiles]})


@app.route("/api/profiles", methods=["POST"])
def api_add_profile():
    """Create or replace a credential profile."""
    data = request.get_json(silent=True) or {}
    if not data.get("name"):
        return _error("Profile name is required", 400)
    try:
        profile = profile_from_dict(data)
    except (ValidationError, ValueError) as e:
        return _error(f"Invalid profile: {e}", 400)

    get_credential_provider().save_profile(profile)
    logger.info(f"Credential profile '{profile.name}' saved")
    return jsonify(_profile_summary(profile)), 201


@app.route("/api/profiles/<name>", methods=["DELETE"])
def api_delete_profile(name):
    """Delete a credential profile."""
    if not get_credential_provider().delete_profile(name):
        return _error(f"Profile '{name}' not found", 404)
    return jsonify({"deleted": name})


if __name__ == "__main__":
    app.run(debug=True, host="127.0.0.1", port=5000)
