"""
Industrial switch and enclosure monitoring device handles.
"""
from devman.vendors.base import SnmpDevice


class MoxaDevice(SnmpDevice):
    """Moxa EDS switches. Each model has its own enterprise subtree."""

    vendor = "moxa"
    SYS_OBJECT_ID_PREFIXES = ("1.3.6.1.4.1.8691.7.",)

    def sw_version(self) -> str:
        return str(self.snmp.get_one(f"{self.sys_object_id}.1.4.0"))


class RittalDevice(SnmpDevice):
    """Rittal CMC III processing unit."""

    vendor = "rittal"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.2606.7",)
    SW_VERSION_OID = "1.3.6.1.4.1.2606.7.2.4.0"


class RuggedcomDevice(SnmpDevice):
    vendor = "ruggedcom"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.15004.2.1",)
    SW_VERSION_OID = "1.3.6.1.4.1.15004.4.2.3.3.0"
