"""
Device: identity and shared connection state of one managed endpoint.
"""
import logging
import os
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from devman.cli.params import CliParams
from devman.cli.session import CliSession
from devman.config.settings import Settings, get_settings
from devman.core.cache import ResponseCache
from devman.core.ip_utils import is_valid_ip
from devman.core.resolver import DeviceResolver, ResolvedVariant
from devman.snmp.batch import SnmpBatchClient
from devman.snmp.client import SNMPClient, SNMPCredential, SNMPError, build_auth_data
from devman.snmp.oids import normalize_oid
from devman.vendors.base import DeviceHandle
from devman.web.client import WebClient

logger = logging.getLogger(__name__)

DEBUG_ENV = "DEVMAN_DEBUG"
IDENTITY_RE = re.compile(r"^(no-snmp[-\w]*|\.?\d+(\.\d+)*)$")


class DeviceConfigError(ValueError):
    """Device parameters rejected before any network activity."""
    pass


def read_debug_level() -> int:
    """Debug verbosity from the environment (0 if unset)."""
    value = os.environ.get(DEBUG_ENV)
    if value is None:
        return 0
    try:
        return int(value)
    except ValueError:
        raise DeviceConfigError(f"value of {DEBUG_ENV} must be integer, got {value!r}") from None


class Device:
    """
    One managed endpoint.

    Not thread safe: a Device and its sessions belong to one caller.
    Different Device instances are independent.

    Usage:
        device = Device("192.0.2.1", snmp_credential=SNMPv2cCredential("public"))
        handle = device.morph()
        print(handle.sw_version())
    """

    def __init__(
        self,
        ip: str,
        sys_object_id: str = "",
        snmp_credential: SNMPCredential | None = None,
        cli_params: CliParams | None = None,
        web_credentials: tuple[str, str] | None = None,
        timezone: str = "",
        snmp_port: int | None = None,
        settings: Settings | None = None,
    ):
        if not ip or not is_valid_ip(ip):
            raise DeviceConfigError(f"valid ip is required for device, got {ip!r}")
        self.ip = ip.strip()
        self.settings = settings or get_settings()
        self.debug = read_debug_level()

        self.timezone = self.settings.default_timezone
        if timezone:
            try:
                ZoneInfo(timezone)
                self.timezone = timezone
            except (ZoneInfoNotFoundError, ValueError):
                logger.warning(f"{self.ip}: unknown timezone {timezone!r}, using {self.timezone}")

        if sys_object_id:
            if not IDENTITY_RE.match(sys_object_id):
                raise DeviceConfigError(f"not valid sysobjectid - {sys_object_id}")
            if not sys_object_id.startswith("no-snmp"):
                sys_object_id = normalize_oid(sys_object_id)
        self.sys_object_id = sys_object_id
        self.name = ""

        self.snmp_credential = None
        if snmp_credential is not None and not sys_object_id.startswith("no-snmp"):
            try:
                build_auth_data(snmp_credential)
            except SNMPError as e:
                raise DeviceConfigError(f"create new snmp session failed - {e}") from e
            self.snmp_credential = snmp_credential
        self.snmp_port = snmp_port or self.settings.snmp_port
        self._snmp: SnmpBatchClient | None = None

        self.web_credentials = web_credentials
        self._web: WebClient | None = None

        self.cli = CliSession(
            self.ip,
            cli_params,
            teardown_pause=self.settings.cli_teardown_pause,
            debug=self.debug,
        )
        self.cache = ResponseCache(ttl=self.settings.cache_ttl)

        self._variant: ResolvedVariant | None = None
        self._handle: DeviceHandle | None = None

        if self.debug > 0:
            logger.debug(f"New device object: {self!r}")

    def __repr__(self) -> str:
        return (
            f"Device(ip={self.ip!r}, sys_object_id={self.sys_object_id!r}, "
            f"name={self.name!r}, timezone={self.timezone!r}, debug={self.debug})"
        )

    @property
    def snmp(self) -> SnmpBatchClient | None:
        """SNMP session, created on first use. None without credentials."""
        if self._snmp is None and self.snmp_credential is not None:
            client = SNMPClient(
                self.ip,
                port=self.snmp_port,
                timeout=self.settings.snmp_timeout,
                retries=self.settings.snmp_retries,
                max_repetitions=self.settings.snmp_max_repetitions,
            )
            self._snmp = SnmpBatchClient(
                client,
                self.snmp_credential,
                walk_max_rows=self.settings.snmp_walk_max_rows,
            )
        return self._snmp

    @property
    def web(self) -> WebClient:
        """HTTP session holder, created on first use."""
        if self._web is None:
            self._web = WebClient(
                self.ip,
                timeout=self.settings.http_timeout,
                credentials=self.web_credentials,
            )
        return self._web

    def resolve(self) -> ResolvedVariant:
        """Identify the device. Runs once; later calls return the same variant."""
        if self._variant is None:
            self._variant = DeviceResolver(self).resolve()
        return self._variant

    def morph(self) -> DeviceHandle:
        """Return the vendor-specific handle for this device."""
        if self._handle is None:
            self._handle = self.resolve().handle_class(self)
        return self._handle

    def close(self) -> None:
        """Close every open session."""
        try:
            self.cli.close()
        finally:
            if self._snmp is not None:
                self._snmp.close()
                self._snmp = None
            if self._web is not None:
                self._web.close()
                self._web = None
