"""
Vendor handle registration and lookup.
"""
from typing import Type

from devman.snmp.oids import normalize_oid
from devman.vendors.base import DeviceHandle


class VendorRegistry:
    """
    Central registry for device handle classes.

    Dispatch is data driven: each handle class declares the identities it
    claims (exact sysObjectIDs, sysObjectID prefixes or a no-SNMP
    sentinel). Exact matches win over prefixes; among prefixes the first
    registered handle wins.
    """

    _handles: list[Type[DeviceHandle]] = []
    _exact: dict[str, Type[DeviceHandle]] = {}
    _no_snmp: dict[str, Type[DeviceHandle]] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, handle_class: Type[DeviceHandle]) -> None:
        """
        Register a handle class.

        Raises:
            ValueError: if an identity is already claimed by another handle
        """
        for oid in handle_class.SYS_OBJECT_IDS:
            oid = normalize_oid(oid)
            if oid in cls._exact and cls._exact[oid] is not handle_class:
                raise ValueError(f"{oid} already registered to {cls._exact[oid].__name__}")
            cls._exact[oid] = handle_class
        if handle_class.NO_SNMP_IDENTITY:
            cls._no_snmp[handle_class.NO_SNMP_IDENTITY] = handle_class
        if handle_class not in cls._handles:
            cls._handles.append(handle_class)

    @classmethod
    def match(cls, identity: str) -> Type[DeviceHandle] | None:
        """Return the handle class claiming ``identity``, or None."""
        cls._ensure_initialized()
        if identity.startswith("no-snmp"):
            return cls._no_snmp.get(identity)

        oid = normalize_oid(identity)
        if oid in cls._exact:
            return cls._exact[oid]
        for handle_class in cls._handles:
            if any(oid.startswith(prefix) for prefix in handle_class.SYS_OBJECT_ID_PREFIXES):
                return handle_class
        return None

    @classmethod
    def get_all_vendors(cls) -> list[str]:
        """Return sorted list of registered vendor names."""
        cls._ensure_initialized()
        return sorted({h.vendor for h in cls._handles})

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Ensure handles are registered."""
        if not cls._initialized:
            cls._register_all_handles()
            cls._initialized = True

    @classmethod
    def _register_all_handles(cls) -> None:
        """Register all available handle classes."""
        from devman.vendors.cisco.device import CiscoDevice
        from devman.vendors.industrial.device import MoxaDevice, RittalDevice, RuggedcomDevice
        from devman.vendors.juniper.device import JuniperDevice
        from devman.vendors.linux.device import LinuxDevice
        from devman.vendors.mikrotik.device import MikrotikDevice
        from devman.vendors.nosnmp.device import EcsDevice, ViolaNoSnmpDevice
        from devman.vendors.power.device import (
            EltekDP7Device,
            EltekEnexusDevice,
            StulzDevice,
            UpsDevice,
            ValereDevice,
        )
        from devman.vendors.radio.device import (
            CeragonDevice,
            EricssonMlPtDevice,
            EricssonMlTnDevice,
            UbiquitiDevice,
        )

        for handle_class in (
            CeragonDevice,
            CiscoDevice,
            EltekDP7Device,
            EltekEnexusDevice,
            EricssonMlPtDevice,
            EricssonMlTnDevice,
            JuniperDevice,
            LinuxDevice,
            MikrotikDevice,
            MoxaDevice,
            RittalDevice,
            RuggedcomDevice,
            StulzDevice,
            UbiquitiDevice,
            UpsDevice,
            ValereDevice,
            EcsDevice,
            ViolaNoSnmpDevice,
        ):
            cls.register(handle_class)
