"""
net-snmp based Linux devices.

Many embedded products run a stock net-snmp agent and report the generic
Linux sysObjectID. LinuxDevice carries the probes that tell those products
apart; a device no probe claims stays a plain LinuxDevice.
"""
import logging

from devman.core.probes import (
    Probe,
    build_opts_match,
    descr_matches,
    oid_answers,
    web_root_matches,
)
from devman.snmp.oids import NetSnmpOIDs, strip_index
from devman.vendors.base import SnmpDevice

logger = logging.getLogger(__name__)

VIOLA_TYPE_OID = "1.3.6.1.4.1.12578.3.2.1.1.1.0"
VIOLA_WEB_BODY_RE = r'(?ims)<body alink="#3a568d" link="#3a568d" vlink="#3a568d">'


class MartemDevice(SnmpDevice):
    """Martem TELEM RTUs."""

    vendor = "martem"
    SW_VERSION_OID = "1.3.6.1.4.1.43098.2.1.4.0"


class ViolaDevice(SnmpDevice):
    """Viola Systems (Arctic) gateways."""

    vendor = "viola"


class LinuxDevice(SnmpDevice):
    """Generic net-snmp Linux host."""

    vendor = "linux"
    SYS_OBJECT_IDS = (NetSnmpOIDs.LINUX,)

    PROBES = (
        Probe("sysDescr mentions Martem", descr_matches(r"(?i)martem"), MartemDevice),
        Probe("Viola MIB present", oid_answers(VIOLA_TYPE_OID), ViolaDevice),
        Probe("sysDescr mentions Viola", descr_matches(r"(?i)viola"), ViolaDevice),
        Probe("net-snmp build options mention Viola", build_opts_match(r"(?i)viola"), ViolaDevice),
        Probe(
            "Viola web root",
            web_root_matches(r"(?i)Revision: 1.10 | ppc", VIOLA_WEB_BODY_RE),
            ViolaDevice,
        ),
    )

    def build_opts(self) -> str:
        """net-snmp configure options the agent was built with."""
        return str(self.snmp.get_one(NetSnmpOIDs.BUILD_OPTS))

    def sw_version(self) -> str:
        """
        Kernel version published through an nsExtend "uname" entry.

        The entry must be configured in snmpd.conf; "Na" if it is not.
        """
        version = "Na"
        commands = self.snmp.walk(NetSnmpOIDs.EXTEND_COMMAND)
        token = next(
            (
                strip_index(oid, NetSnmpOIDs.EXTEND_COMMAND)
                for oid, value in commands.items()
                if str(value).endswith("/uname")
            ),
            None,
        )
        if not token:
            return version

        result = self.snmp.get_one(f"{NetSnmpOIDs.EXTEND_RESULT}.{token}")
        if result.as_int == 0:
            version = str(self.snmp.get_one(f"{NetSnmpOIDs.EXTEND_OUTPUT_LINE}.{token}"))
        else:
            logger.debug(f"{self.ip}: uname extend exited with {result}")
        return version
