"""
MikroTik RouterOS device handle.
"""
from devman.vendors.base import SnmpDevice


class MikrotikDevice(SnmpDevice):
    vendor = "mikrotik"
    SYS_OBJECT_IDS = ("1.3.6.1.4.1.14988.1",)
    SW_VERSION_OID = "1.3.6.1.4.1.14988.1.1.4.4.0"
