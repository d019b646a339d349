"""
Power plant, UPS and climate control device handles.
"""
from devman.snmp.oids import SystemOIDs
from devman.vendors.base import SnmpDevice, SystemInfo


class EltekDP7Device(SnmpDevice):
    """Eltek Distributed Plant v7 PSU."""

    vendor = "eltek"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.12148.9",)

    def sw_version(self) -> str:
        return self.descr_version()


class EltekEnexusDevice(SnmpDevice):
    """
    Eltek eNexus (Smartpack2/S) controller.

    The agent does not answer sysObjectID; system info lives in the
    vendor powerSystem tree.
    """

    vendor = "eltek"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.12148.10",)
    SW_VERSION_OID = "1.3.6.1.4.1.12148.10.13.8.2.1.8.1"

    POWER_SYSTEM = "1.3.6.1.4.1.12148.10.2"
    TARGETS = {"Contact": "4.0", "Location": "5.0", "Descr": "6.0"}

    def system(self, targets: list[str] | None = None) -> SystemInfo:
        targets = targets or ["All"]
        if "All" in targets:
            idx = list(self.TARGETS.values())
        else:
            idx = [self.TARGETS[t] for t in targets if t in self.TARGETS]

        out = SystemInfo(object_id="1.3.6.1.4.1.12148.10")
        if not idx:
            return out
        for oid, value in self.snmp.batched_get(self.POWER_SYSTEM, idx).items():
            suffix = oid[len(self.POWER_SYSTEM) + 1:]
            if suffix == "4.0":
                out.contact = str(value)
            elif suffix == "5.0":
                out.location = str(value)
            elif suffix == "6.0":
                out.descr = str(value).strip()
        return out

    def sw_version(self) -> str:
        return super().sw_version().strip()


class UpsDevice(SnmpDevice):
    """UPS-MIB (RFC 1628) compliant UPS: MGE/Eaton, Socomec and others."""

    vendor = "ups"
    SYS_OBJECT_IDS = (
        "1.3.6.1.4.1.705.1",
        "1.3.6.1.4.1.534.1",
        "1.3.6.1.4.1.2254.2.4",
        "1.3.6.1.4.1.818.1.100.1.1",
    )
    # UPS-MIB::upsIdentUPSSoftwareVersion
    SW_VERSION_OID = "1.3.6.1.2.1.33.1.1.4.0"


class ValereDevice(SnmpDevice):
    vendor = "valere"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.13858",)
    SW_VERSION_OID = "1.3.6.1.4.1.13858.2.1.3.0"


class StulzDevice(SnmpDevice):
    """Stulz air conditioning controllers (WIB8000 and WIB1000)."""

    vendor = "stulz"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.39983.1.1", "1.3.6.1.4.1.29462.10")

    WIB8000_VERSION_OID = "1.3.6.1.4.1.29462.10.1.1.1.65540.0"

    def sw_version(self) -> str:
        if self.sys_object_id.endswith(".29462.10"):
            return str(self.snmp.get_one(self.WIB8000_VERSION_OID))
        return str(self.snmp.get_one(SystemOIDs.SYS_DESCR))
