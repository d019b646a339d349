"""
Fingerprint probes used to disambiguate generic platform identities.

A probe is a named predicate over a ProbeContext. The context fetches
evidence lazily and memoizes it, so several probes reading sysDescr cost a
single SNMP request.
"""
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from devman.snmp.client import SNMPError, is_tolerable
from devman.snmp.oids import NetSnmpOIDs, SystemOIDs
from devman.web.client import WebError

if TYPE_CHECKING:
    from devman.core.device import Device

logger = logging.getLogger(__name__)

WEB_ROOT_CACHE_KEY = "web_root"


class ProbeContext:
    """Lazily collected evidence about one device."""

    def __init__(self, device: "Device"):
        self.device = device
        self._values: dict[str, str | None] = {}

    def snmp_text(self, oid: str) -> str | None:
        """
        Value of ``oid`` as text, or None if absent.

        Fatal SNMP errors propagate to the resolver, which logs them and
        moves on to the next probe.
        """
        if oid not in self._values:
            snmp = self.device.snmp
            value = None
            if snmp is not None:
                try:
                    value = str(snmp.get_one(oid))
                except SNMPError as e:
                    if not is_tolerable(e):
                        raise
                    logger.debug(f"{self.device.ip}: probe {oid}: {e}")
            self._values[oid] = value
        return self._values[oid]

    def answers(self, oid: str) -> bool:
        return self.snmp_text(oid) is not None

    @property
    def sys_descr(self) -> str:
        return self.snmp_text(SystemOIDs.SYS_DESCR) or ""

    @property
    def build_opts(self) -> str:
        return self.snmp_text(NetSnmpOIDs.BUILD_OPTS) or ""

    def web_root(self) -> bytes:
        """Body of the HTTPS web root, cached on the device."""
        def fetch() -> bytes:
            try:
                return self.device.web.get("")
            except WebError as e:
                logger.warning(f"{self.device.ip}: web root probe failed: {e}")
                return e.body

        return self.device.cache.get_or_set(WEB_ROOT_CACHE_KEY, fetch)


@dataclass(frozen=True)
class Probe:
    """One disambiguation step: if ``test`` holds, the device is ``target``."""
    name: str
    test: Callable[[ProbeContext], bool]
    target: type


def descr_matches(pattern: str) -> Callable[[ProbeContext], bool]:
    regex = re.compile(pattern)
    return lambda ctx: bool(regex.search(ctx.sys_descr))


def build_opts_match(pattern: str) -> Callable[[ProbeContext], bool]:
    regex = re.compile(pattern)
    return lambda ctx: bool(regex.search(ctx.build_opts))


def oid_answers(oid: str) -> Callable[[ProbeContext], bool]:
    return lambda ctx: ctx.answers(oid)


def web_root_matches(descr_pattern: str, body_pattern: str) -> Callable[[ProbeContext], bool]:
    """sysDescr must match before the web root is fetched at all."""
    descr_re = re.compile(descr_pattern)
    body_re = re.compile(body_pattern.encode())

    def test(ctx: ProbeContext) -> bool:
        if not descr_re.search(ctx.sys_descr):
            return False
        return bool(body_re.search(ctx.web_root()))

    return test
