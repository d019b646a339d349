"""
Base classes for vendor-specific device handles.

A handle wraps a Device and exposes the capability set of its vendor.
DeviceHandle offers what every device has (CLI, web API); SnmpDevice adds
the common SNMP capability set that vendor classes extend.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar
from zoneinfo import ZoneInfo

from devman.cli.channel import CommandChannel
from devman.cli.negotiator import ConnectionNegotiator
from devman.cli.params import CliCmdOpts, CliDefaults, CliParams
from devman.core.probes import Probe
from devman.snmp.batch import SnmpBatchClient
from devman.snmp.client import SnmpType, SnmpValue
from devman.snmp.oids import InterfaceOIDs, SystemOIDs

if TYPE_CHECKING:
    from devman.core.device import Device

logger = logging.getLogger(__name__)

# MIB-II system group instance suffixes
SYSTEM_TARGETS = {
    "Descr": "1.0",
    "ObjectID": "2.0",
    "UpTime": "3.0",
    "Contact": "4.0",
    "Name": "5.0",
    "Location": "6.0",
}


class UnsupportedError(Exception):
    """Operation is not available for this device type."""
    pass


@dataclass
class SystemInfo:
    """MIB-II system group values. Unset fields stay None."""

    descr: str | None = None
    object_id: str | None = None
    uptime: int | None = None
    uptime_str: str | None = None
    contact: str | None = None
    name: str | None = None
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, dropping unset fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def uptime_string(ticks: int, tz: str, last_change: int = 0) -> str:
    """Return the ISO 8601 time the counter was at zero (or at ``last_change``)."""
    seconds = (ticks - last_change) // 100
    started = datetime.now(ZoneInfo(tz)) - timedelta(seconds=seconds)
    return started.isoformat(timespec="seconds")


def system_targets(targets: list[str]) -> list[str]:
    """Map target names ("All", "Descr", ...) to system group instance suffixes."""
    if "All" in targets:
        return list(SYSTEM_TARGETS.values())
    return [SYSTEM_TARGETS[t] for t in targets if t in SYSTEM_TARGETS]


class DeviceHandle:
    """
    Capabilities shared by every device, SNMP or not.

    Subclasses customize CLI behaviour through the class attributes.
    """

    vendor: ClassVar[str] = "generic"
    cli_defaults: ClassVar[CliDefaults] = CliDefaults()
    negotiator_class: ClassVar[type[ConnectionNegotiator]] = ConnectionNegotiator
    channel_class: ClassVar[type[CommandChannel]] = CommandChannel

    # Dispatch data read by VendorRegistry
    SYS_OBJECT_IDS: ClassVar[tuple[str, ...]] = ()
    SYS_OBJECT_ID_PREFIXES: ClassVar[tuple[str, ...]] = ()
    NO_SNMP_IDENTITY: ClassVar[str | None] = None
    # Disambiguation probes for generic platform identities, cheapest first
    PROBES: ClassVar[tuple[Probe, ...]] = ()

    def __init__(self, device: "Device"):
        self.device = device
        device.cli.configure(
            defaults=self.cli_defaults,
            negotiator_class=self.negotiator_class,
            channel_class=self.channel_class,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.device.ip}>"

    @property
    def ip(self) -> str:
        return self.device.ip

    @property
    def name(self) -> str:
        return self.device.name

    def cli_prepare(self) -> CliParams:
        """Caller's CLI params completed with this vendor's defaults."""
        return self.device.cli.prepare()

    def run_cmds(self, commands: list[str], opts: CliCmdOpts | None = None) -> list[str]:
        """Connect, run ``commands``, disconnect. Returns the transcript."""
        return self.device.cli.run(commands, opts)

    def web_api_get(self, params: str = "") -> bytes:
        """GET a path from the device web server."""
        return self.device.web.get(params)

    def system(self, targets: list[str] | None = None) -> SystemInfo:
        raise UnsupportedError(f"{self.vendor}: system info not supported")

    def sw_version(self) -> str:
        raise UnsupportedError(f"{self.vendor}: software version not supported")


class SnmpDevice(DeviceHandle):
    """Common SNMP capability set."""

    # Scalar holding the running software version, if the vendor has one
    SW_VERSION_OID: ClassVar[str | None] = None

    @property
    def snmp(self) -> SnmpBatchClient:
        snmp = self.device.snmp
        if snmp is None:
            raise UnsupportedError(f"{self.ip}: no SNMP session")
        return snmp

    @property
    def sys_object_id(self) -> str:
        return self.device.sys_object_id

    def system(self, targets: list[str] | None = None) -> SystemInfo:
        """
        Read the MIB-II system group.

        Args:
            targets: any of "All", "Descr", "ObjectID", "UpTime", "Contact",
                "Name", "Location". Defaults to "All".
        """
        base = SystemOIDs.SYSTEM
        result = self.snmp.batched_get(base, system_targets(targets or ["All"]))
        return self.parse_system(result, base)

    def parse_system(self, result: dict[str, SnmpValue], base: str) -> SystemInfo:
        out = SystemInfo()
        for oid, value in result.items():
            suffix = oid[len(base) + 1:]
            if suffix == "1.0":
                out.descr = str(value)
            elif suffix == "2.0":
                out.object_id = str(value)
            elif suffix == "3.0":
                # Some agents (e.g. Ceragon IP50) report sysUpTime as Gauge32
                if value.type in (SnmpType.TIME_TICKS, SnmpType.GAUGE32, SnmpType.INTEGER):
                    out.uptime = value.as_int
                    out.uptime_str = uptime_string(out.uptime, self.device.timezone)
            elif suffix == "4.0":
                out.contact = str(value)
            elif suffix == "5.0":
                out.name = str(value)
            elif suffix == "6.0":
                out.location = str(value)
        return out

    def if_number(self) -> int:
        """Number of network interfaces (ifNumber)."""
        return self.snmp.get_one(InterfaceOIDs.IF_NUMBER).as_int

    def sw_version(self) -> str:
        """Running software version."""
        if self.SW_VERSION_OID is None:
            raise UnsupportedError(f"{self.vendor}: software version not supported")
        return str(self.snmp.get_one(self.SW_VERSION_OID))

    def descr_version(self) -> str:
        """sysDescr as version string, for vendors without a dedicated object."""
        return (self.system(["Descr"]).descr or "").strip()
