"""
Device identity resolution and vendor dispatch.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from devman.core.probes import ProbeContext
from devman.snmp.client import SNMPError, SNMPNoSuchError
from devman.snmp.oids import SystemOIDs, normalize_oid
from devman.vendors.base import DeviceHandle, SnmpDevice
from devman.vendors.registry import VendorRegistry
from devman.web.client import WebError

if TYPE_CHECKING:
    from devman.core.device import Device

logger = logging.getLogger(__name__)


class VariantKind(str, Enum):
    """How the device was identified."""
    SNMP = "snmp"
    NO_SNMP = "no_snmp"
    GENERIC = "generic"


@dataclass(frozen=True)
class ResolvedVariant:
    """Outcome of identity resolution, the sole input to dispatch."""
    kind: VariantKind
    identity: str
    handle_class: type[DeviceHandle]
    # Name of the probe that settled a generic platform identity
    evidence: str = ""

    @property
    def vendor(self) -> str:
        return self.handle_class.vendor

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "vendor": self.vendor,
            "identity": self.identity,
            "handle": self.handle_class.__name__,
            "evidence": self.evidence,
        }


@dataclass(frozen=True)
class IdentityCorrection:
    """
    Replace an identity reported by buggy agent firmware.

    With ``probe_oid`` set the correction applies only if that object answers.
    """
    observed: str
    corrected: str
    probe_oid: str | None = None


IDENTITY_CORRECTIONS = (
    # Eaton UPS network card
    IdentityCorrection(
        "2.1932768099.842208050.858927922.858993459.859026295.825438771.858993459",
        "1.3.6.1.4.1.705.1",
    ),
    # STULZ WIB1000
    IdentityCorrection("0.0", "1.3.6.1.4.1.39983.1.1", probe_oid="1.3.6.1.4.1.39983.1.1.1.1.0"),
)

# Tried in order when the agent does not answer sysObjectID
MISSING_IDENTITY_PROBES = (
    # Eltek eNexus
    IdentityCorrection("", "1.3.6.1.4.1.12148.10", probe_oid="1.3.6.1.4.1.12148.10.2.2.0"),
)


class DeviceResolver:
    """
    Maps a Device to a ResolvedVariant.

    Order of evidence: caller supplied identity, SNMP sysObjectID with
    firmware corrections, then the generic platform probes of the matched
    handle class, cheapest first. Devices nothing claims get the common
    capability set rather than an error.
    """

    def __init__(self, device: "Device"):
        self.device = device

    def resolve(self) -> ResolvedVariant:
        device = self.device
        identity = device.sys_object_id
        if not identity and device.snmp is not None:
            identity = self.discover_identity()
            device.sys_object_id = identity

        variant = self.dispatch(identity)
        log = logger.info if device.debug > 0 else logger.debug
        log(f"{device.ip}: resolved {variant.to_dict()}")
        return variant

    def discover_identity(self) -> str:
        """
        Read sysName and sysObjectID and apply the correction table.

        Raises:
            SNMPError: transport or authentication failure
        """
        device = self.device
        snmp = device.snmp
        try:
            result = snmp.get([SystemOIDs.SYS_NAME, SystemOIDs.SYS_OBJECT_ID])
        except SNMPNoSuchError as e:
            logger.debug(f"{device.ip}: identity query: {e}")
            for probe in MISSING_IDENTITY_PROBES:
                if self._answers(probe.probe_oid):
                    return probe.corrected
            return ""

        name = result.get(SystemOIDs.SYS_NAME)
        if name is not None:
            device.name = str(name)

        value = result.get(SystemOIDs.SYS_OBJECT_ID)
        identity = normalize_oid(str(value)) if value is not None else ""
        return self.correct_identity(identity)

    def correct_identity(self, identity: str) -> str:
        for correction in IDENTITY_CORRECTIONS:
            if identity != correction.observed:
                continue
            if correction.probe_oid is None or self._answers(correction.probe_oid):
                logger.debug(f"{self.device.ip}: identity {identity} corrected to {correction.corrected}")
                return correction.corrected
        return identity

    def _answers(self, oid: str) -> bool:
        try:
            self.device.snmp.get([oid])
        except SNMPError as e:
            logger.debug(f"{self.device.ip}: {oid}: {e}")
            return False
        return True

    def dispatch(self, identity: str) -> ResolvedVariant:
        """Select the handle class for ``identity``."""
        generic = SnmpDevice if self.device.snmp is not None else DeviceHandle

        if not identity:
            return ResolvedVariant(VariantKind.GENERIC, identity, generic)

        handle_class = VendorRegistry.match(identity)
        if identity.startswith("no-snmp"):
            if handle_class is None:
                return ResolvedVariant(VariantKind.GENERIC, identity, DeviceHandle)
            return ResolvedVariant(VariantKind.NO_SNMP, identity, handle_class)

        if handle_class is None:
            return ResolvedVariant(VariantKind.GENERIC, identity, generic)

        if handle_class.PROBES:
            return self.disambiguate(identity, handle_class)

        return ResolvedVariant(VariantKind.SNMP, identity, handle_class)

    def disambiguate(self, identity: str, platform_class: type[DeviceHandle]) -> ResolvedVariant:
        """Run the platform's probes in order; the first that holds wins."""
        ctx = ProbeContext(self.device)
        for probe in platform_class.PROBES:
            try:
                matched = probe.test(ctx)
            except (SNMPError, WebError) as e:
                logger.warning(f"{self.device.ip}: probe '{probe.name}' failed: {e}")
                continue
            if matched:
                return ResolvedVariant(VariantKind.SNMP, identity, probe.target, evidence=probe.name)

        return ResolvedVariant(VariantKind.SNMP, identity, platform_class)
