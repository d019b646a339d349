"""
Cisco IOS / IOS-XE / IOS-XR device handle.
"""
import re

from devman.cli.params import CliDefaults
from devman.vendors.base import SnmpDevice, UnsupportedError

VERSION_RE = re.compile(r"Version (.*?)[,|\s]")


class CiscoDevice(SnmpDevice):
    """Cisco routers and switches."""

    vendor = "cisco"
    cli_defaults = CliDefaults(
        pre_cmds=("terminal length 0", "terminal width 132"),
        disconnect_cmds=("end", "exit"),
        elevate_cmd="enable",
    )

    SYS_OBJECT_ID_PREFIXES = ("1.3.6.1.4.1.9.1.", "1.3.6.1.4.1.9.6.")

    def sw_version(self) -> str:
        """Version parsed from sysDescr ("... Version 15.2(7)E3, ...")."""
        descr = self.system(["Descr"]).descr
        if descr is None:
            return ""
        m = VERSION_RE.search(descr)
        if not m:
            raise UnsupportedError(f"failed to parse sysDescr for version - {descr}")
        return m.group(1)
