"""
Devices without SNMP, managed over their web interface.
"""
import logging
import xml.etree.ElementTree as ET

from devman.vendors.base import DeviceHandle, SystemInfo, UnsupportedError

logger = logging.getLogger(__name__)


class EcsDevice(DeviceHandle):
    """ECS energy meter (v1 XML status page, v2 eVision web UI)."""

    vendor = "ecs"
    NO_SNMP_IDENTITY = "no-snmp-ecs"

    def web_api_get(self, params: str = "") -> bytes:
        # Meter web server speaks plain HTTP only
        return self.device.web.get(params, scheme="http")

    def ecs_version(self) -> str:
        """Identify the meter generation ("v1" or "v2"). Cached per device."""
        return self.device.cache.get_or_set("ecs_version", self._detect_version)

    def _detect_version(self) -> str:
        if b"Energy Meter" in self.web_api_get("status.xml"):
            return "v1"
        if b"granted" in self.web_api_get("login.cgi"):
            return "v2"
        raise UnsupportedError(f"{self.ip}: ECS version identification failed")

    def system(self, targets: list[str] | None = None) -> SystemInfo:
        targets = targets or ["All"]
        out = SystemInfo(object_id=self.NO_SNMP_IDENTITY)

        if self.ecs_version() == "v2":
            out.descr = "Energy Meter v2"
            return out

        try:
            root = ET.fromstring(self.web_api_get("status.xml"))
        except ET.ParseError as e:
            raise UnsupportedError(f"{self.ip}: status.xml parse error: {e}") from e

        if "All" in targets or "Descr" in targets:
            out.descr = root.findtext("type")
        if "All" in targets or "Name" in targets:
            out.name = root.findtext("name")
        return out


class ViolaNoSnmpDevice(DeviceHandle):
    """Viola Systems gateway with SNMP disabled."""

    vendor = "viola"
    NO_SNMP_IDENTITY = "no-snmp-viola"

    def system(self, targets: list[str] | None = None) -> SystemInfo:
        return SystemInfo(object_id=self.NO_SNMP_IDENTITY)
