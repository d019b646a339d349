"""
Pytest configuration and shared fixtures.

Provides network-free stand-ins:
- FakeTransport: scripted device shell behind the Transport protocol
- FakeSNMPClient: async SNMP client answering from a dict
- make_device: Device wired to a FakeSNMPClient
"""
import time

import pytest

from devman.cli.errors import TransportClosedError
from devman.cli.expect import Expecter
from devman.cli.negotiator import ConnectionNegotiator
from devman.config.settings import Settings
from devman.core.device import Device
from devman.snmp.batch import SnmpBatchClient
from devman.snmp.client import (
    SNMPNoResultsError,
    SNMPNoSuchError,
    SNMPv2cCredential,
    SnmpType,
    SnmpValue,
)
from devman.snmp.oids import normalize_oid


class FakeTransport:
    """
    Scripted device shell.

    Every complete input line is echoed back (with CRLF) followed by the
    scripted reply for that line, or ``default_reply``.
    """

    def __init__(
        self,
        script: dict[str, str] | None = None,
        banner: str = "device# ",
        default_reply: str = "device# ",
        line_end: str = "\r\n",
        echo: bool = True,
        eof_after: str | None = None,
    ):
        self.script = script or {}
        self.default_reply = default_reply
        self.line_end = line_end
        self.echo = echo
        self.eof_after = eof_after
        self.pending = banner.encode()
        self.sent: list[bytes] = []
        self.lines: list[str] = []
        self.closed = False
        self._input = ""
        self._eof = False

    def send(self, data: bytes) -> None:
        if self.closed or self._eof:
            raise TransportClosedError("fake transport closed")
        self.sent.append(data)
        self._input += data.decode()
        while self.line_end in self._input:
            line, self._input = self._input.split(self.line_end, 1)
            self.lines.append(line)
            if self.echo:
                self.pending += (line + self.line_end).encode()
            self.pending += self.script.get(line, self.default_reply).encode()
            if line == self.eof_after:
                self._eof = True

    def recv(self, timeout: float) -> bytes:
        if self.pending:
            data, self.pending = self.pending, b""
            return data
        if self._eof or self.closed:
            raise TransportClosedError("fake transport closed")
        time.sleep(min(timeout, 0.01))
        return b""

    def close(self) -> None:
        self.closed = True


def make_negotiator(transport: FakeTransport):
    """Negotiator class whose transport is ``transport``; counts connects."""

    class FakeNegotiator(ConnectionNegotiator):
        connects = 0

        def open_transport(self):
            FakeNegotiator.connects += 1
            return transport

    return FakeNegotiator


class FakeSNMPClient:
    """Async SNMP client answering from ``data`` (OID -> SnmpValue)."""

    def __init__(
        self,
        data: dict[str, SnmpValue] | None = None,
        max_repetitions: int = 0,
        errors: dict[str, Exception] | None = None,
        host: str = "192.0.2.10",
    ):
        self.data = {normalize_oid(k): v for k, v in (data or {}).items()}
        self.max_repetitions = max_repetitions
        self.errors = errors or {}
        self.host = host
        self.get_calls: list[list[str]] = []
        self.walk_calls: list[str] = []

    async def get(self, oids, credential):
        oids = [normalize_oid(o) for o in oids]
        self.get_calls.append(oids)
        for oid in oids:
            if oid in self.errors:
                raise self.errors[oid]
        result = {}
        for oid in oids:
            if oid not in self.data:
                raise SNMPNoSuchError(f"SNMP get for {self.host} at {oid}: NoSuchObject")
            result[oid] = self.data[oid]
        return result

    async def walk(self, oid, credential, include_base=False, stop_at_subtree=True, max_rows=None):
        base = normalize_oid(oid)
        self.walk_calls.append(base)
        if base in self.errors:
            raise self.errors[base]
        result = {
            k: v for k, v in self.data.items()
            if k.startswith(base + ".") or (include_base and k == base)
        }
        if not result:
            raise SNMPNoResultsError(f"SNMP walk for {self.host} at {base}: no results")
        return result

    def close(self):
        pass


def octets(text: str) -> SnmpValue:
    return SnmpValue(SnmpType.OCTET_STRING, text, text.encode())


def integer(value: int) -> SnmpValue:
    return SnmpValue(SnmpType.INTEGER, value)


def oid_value(value: str) -> SnmpValue:
    return SnmpValue(SnmpType.OBJECT_IDENTIFIER, value)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, cli_teardown_pause=0, credential_path="unused")


@pytest.fixture
def make_device(settings, monkeypatch):
    """
    Factory for a Device backed by a FakeSNMPClient.

    Usage:
        device, snmp = make_device({"1.3.6.1.2.1.1.2.0": oid_value("...")})
    """
    monkeypatch.delenv("DEVMAN_DEBUG", raising=False)

    def _make(data=None, max_repetitions=0, errors=None, **kwargs):
        fake = FakeSNMPClient(data, max_repetitions=max_repetitions, errors=errors)
        kwargs.setdefault("snmp_credential", SNMPv2cCredential("public"))
        device = Device("192.0.2.10", settings=settings, **kwargs)
        if device.snmp_credential is not None:
            device._snmp = SnmpBatchClient(fake, device.snmp_credential)
        return device, fake

    return _make


@pytest.fixture
def expecter_for():
    """Build an Expecter over a FakeTransport."""

    def _make(transport: FakeTransport, timeout: float = 1.0) -> Expecter:
        return Expecter(transport, timeout=timeout, name="192.0.2.10:22")

    return _make
