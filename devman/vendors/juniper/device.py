"""
Juniper Junos device handle.
"""
from devman.vendors.base import SnmpDevice


class JuniperDevice(SnmpDevice):
    """Juniper routers and switches."""

    vendor = "juniper"
    SYS_OBJECT_ID_PREFIXES = ("1.3.6.1.4.1.2636.1.1.1.2.",)
    # HOST-RESOURCES-MIB::hrSWInstalledName.2
    SW_VERSION_OID = "1.3.6.1.2.1.25.6.3.1.2.2"
