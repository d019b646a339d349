"""
Microwave radio and wireless device handles.
"""
from devman.snmp.oids import strip_index
from devman.vendors.base import SnmpDevice


class CeragonDevice(SnmpDevice):
    """Ceragon FibeAir IP-10/IP-20 radios."""

    vendor = "ceragon"
    SYS_OBJECT_IDS = (
        "1.3.6.1.4.1.2281.1.20.2.2.10",
        "1.3.6.1.4.1.2281.1.20.2.2.12",
        "1.3.6.1.4.1.2281.1.20.2.2.14",
    )
    SW_VERSION_OID = "1.3.6.1.4.1.2281.10.4.1.13.1.1.4.1"


class EricssonMlPtDevice(SnmpDevice):
    """Ericsson MINI-LINK PT."""

    vendor = "ericsson"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.193.223.2.1",)


class EricssonMlTnDevice(SnmpDevice):
    """Ericsson MINI-LINK TN (Compact Node and AMM)."""

    vendor = "ericsson"
    COMPACT_NODE = "1.3.6.1.4.1.193.81.1.1.1"
    SYS_OBJECT_IDS = (COMPACT_NODE, "1.3.6.1.4.1.193.81.1.1.3")

    COMPACT_NODE_VERSION_OID = "1.3.6.1.4.1.193.81.2.7.1.1.1.4.1.1"
    SW_STATE_TABLE = "1.3.6.1.4.1.193.81.2.7.1.2.1.5"
    SW_NAME_TABLE = "1.3.6.1.4.1.193.81.2.7.1.2.1.3"
    # xfSwInstalledState: active
    SW_STATE_ACTIVE = 7

    def sw_version(self) -> str:
        if self.sys_object_id == self.COMPACT_NODE:
            return str(self.snmp.get_one(self.COMPACT_NODE_VERSION_OID)).strip()

        for oid, value in self.snmp.walk(self.SW_STATE_TABLE).items():
            if value.as_int == self.SW_STATE_ACTIVE:
                idx = strip_index(oid, self.SW_STATE_TABLE)
                return str(self.snmp.get_one(f"{self.SW_NAME_TABLE}.{idx}")).strip()
        return ""


class UbiquitiDevice(SnmpDevice):
    vendor = "ubiquiti"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.41112.1.5",)
    SW_VERSION_OID = "1.3.6.1.4.1.41112.1.5.1.3.0"
