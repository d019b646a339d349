"""
Standard and vendor-specific OID constants.
"""


class SystemOIDs:
    """Standard MIB-II System Group OIDs."""
    SYSTEM = "1.3.6.1.2.1.1"
    SYS_DESCR = "1.3.6.1.2.1.1.1.0"
    SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"
    SYS_UPTIME = "1.3.6.1.2.1.1.3.0"
    SYS_CONTACT = "1.3.6.1.2.1.1.4.0"
    SYS_NAME = "1.3.6.1.2.1.1.5.0"
    SYS_LOCATION = "1.3.6.1.2.1.1.6.0"


class InterfaceOIDs:
    """MIB-II interfaces group OIDs."""
    IF_NUMBER = "1.3.6.1.2.1.2.1.0"


class NetSnmpOIDs:
    """NET-SNMP / UCD-SNMP agent OIDs used for platform fingerprinting."""
    # Generic Linux agent sysObjectID
    LINUX = "1.3.6.1.4.1.8072.3.2.10"
    # UCD-SNMP-MIB::versionConfigureOptions
    BUILD_OPTS = "1.3.6.1.4.1.2021.100.6.0"
    # NET-SNMP-EXTEND-MIB::nsExtendCommand
    EXTEND_COMMAND = "1.3.6.1.4.1.8072.1.3.2.2.1.2"
    # NET-SNMP-EXTEND-MIB::nsExtendOutput1Line
    EXTEND_OUTPUT_LINE = "1.3.6.1.4.1.8072.1.3.2.3.1.1"
    # NET-SNMP-EXTEND-MIB::nsExtendResult
    EXTEND_RESULT = "1.3.6.1.4.1.8072.1.3.2.3.1.4"


class EnterpriseNumbers:
    """IANA Private Enterprise Numbers for vendor identification."""
    CISCO = 9
    JUNIPER = 2636
    ERICSSON = 193
    CERAGON = 2281
    RITTAL = 2606
    APC = 318
    EATON = 534
    MGE = 705
    MOXA = 8691
    NET_SNMP = 8072
    ELTEK = 12148
    VIOLA = 12578
    VALERE = 13858
    MIKROTIK = 14988
    RUGGEDCOM = 15004
    STULZ = 29462
    STULZ_WIB = 39983
    UBIQUITI = 41112
    MARTEM = 43098

    @classmethod
    def get_prefix(cls, vendor_id: int) -> str:
        """Get the OID prefix for a vendor enterprise number."""
        return f"1.3.6.1.4.1.{vendor_id}"


def normalize_oid(oid: str) -> str:
    """Return OID in canonical form: dotted decimal without a leading dot."""
    return oid.strip().lstrip(".")


def strip_index(oid: str, base_oid: str) -> str:
    """Return the instance part of ``oid`` below ``base_oid`` ("" if unrelated)."""
    oid = normalize_oid(oid)
    base_oid = normalize_oid(base_oid)
    if oid.startswith(base_oid + "."):
        return oid[len(base_oid) + 1:]
    return ""
