"""
SNMP Client wrapper using pysnmp library.
Handles SNMPv1, SNMPv2c and SNMPv3 operations and converts agent responses
into typed values.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    UsmUserData,
    bulk_cmd,
    get_cmd,
    next_cmd,
    usmAesCfb128Protocol,
    usmAesCfb192Protocol,
    usmAesCfb256Protocol,
    usmAesBlumenthalCfb192Protocol,
    usmAesBlumenthalCfb256Protocol,
    usmDESPrivProtocol,
    usm3DESEDEPrivProtocol,
    usmHMAC128SHA224AuthProtocol,
    usmHMAC192SHA256AuthProtocol,
    usmHMAC256SHA384AuthProtocol,
    usmHMAC384SHA512AuthProtocol,
    usmHMACMD5AuthProtocol,
    usmHMACSHAAuthProtocol,
    usmNoAuthProtocol,
    usmNoPrivProtocol,
)
from pysnmp.proto import rfc1902, rfc1905

from devman.snmp.oids import normalize_oid

logger = logging.getLogger(__name__)


class AuthProtocol(str, Enum):
    """SNMPv3 authentication protocols."""
    NONE = "none"
    MD5 = "MD5"
    SHA = "SHA"
    SHA224 = "SHA-224"
    SHA256 = "SHA-256"
    SHA384 = "SHA-384"
    SHA512 = "SHA-512"


class PrivProtocol(str, Enum):
    """SNMPv3 privacy protocols."""
    NONE = "none"
    DES = "DES"
    DES3 = "3DES"
    AES128 = "AES-128"
    AES192 = "AES-192"
    AES256 = "AES-256"
    # Cisco style key extension
    AES192C = "AES-192-C"
    AES256C = "AES-256-C"


# Protocol mappings for pysnmp
AUTH_PROTOCOL_MAP = {
    AuthProtocol.NONE: usmNoAuthProtocol,
    AuthProtocol.MD5: usmHMACMD5AuthProtocol,
    AuthProtocol.SHA: usmHMACSHAAuthProtocol,
    AuthProtocol.SHA224: usmHMAC128SHA224AuthProtocol,
    AuthProtocol.SHA256: usmHMAC192SHA256AuthProtocol,
    AuthProtocol.SHA384: usmHMAC256SHA384AuthProtocol,
    AuthProtocol.SHA512: usmHMAC384SHA512AuthProtocol,
}

PRIV_PROTOCOL_MAP = {
    PrivProtocol.NONE: usmNoPrivProtocol,
    PrivProtocol.DES: usmDESPrivProtocol,
    PrivProtocol.DES3: usm3DESEDEPrivProtocol,
    PrivProtocol.AES128: usmAesCfb128Protocol,
    PrivProtocol.AES192: usmAesBlumenthalCfb192Protocol,
    PrivProtocol.AES256: usmAesBlumenthalCfb256Protocol,
    PrivProtocol.AES192C: usmAesCfb192Protocol,
    PrivProtocol.AES256C: usmAesCfb256Protocol,
}


@dataclass
class SNMPv2cCredential:
    """SNMPv2c credential with community string."""
    community: str

    # SNMP message processing model: 1 = v2c
    mp_model = 1

    @property
    def version(self) -> str:
        return "v2c"


@dataclass
class SNMPv1Credential(SNMPv2cCredential):
    """SNMPv1 credential. Agents only answer GET and GET-NEXT."""

    mp_model = 0

    @property
    def version(self) -> str:
        return "v1"


@dataclass
class SNMPv3Credential:
    """SNMPv3 credential with auth and privacy settings."""
    username: str
    auth_protocol: AuthProtocol = AuthProtocol.NONE
    auth_password: str | None = None
    priv_protocol: PrivProtocol = PrivProtocol.NONE
    priv_password: str | None = None

    @property
    def version(self) -> str:
        return "v3"

    @property
    def security_level(self) -> str:
        """Return the security level based on configured protocols."""
        if self.priv_protocol != PrivProtocol.NONE and self.auth_protocol != AuthProtocol.NONE:
            return "authPriv"
        elif self.auth_protocol != AuthProtocol.NONE:
            return "authNoPriv"
        return "noAuthNoPriv"


SNMPCredential = SNMPv1Credential | SNMPv2cCredential | SNMPv3Credential


class SNMPError(Exception):
    """Base exception for SNMP operations."""

    def __init__(self, message: str, partial: dict | None = None):
        super().__init__(message)
        # Entries collected before a walk was aborted
        self.partial = partial or {}


class SNMPTimeoutError(SNMPError):
    """SNMP request timed out."""
    pass


class SNMPNoSuchError(SNMPError):
    """Requested object is not present on the agent (noSuchName/noSuchObject)."""
    pass


class SNMPNoResultsError(SNMPError):
    """Walk returned no instances under the requested subtree."""
    pass


_TOLERABLE_RE = re.compile(r"(?i)no\s*such\s*(name|object|instance)|no results")


def is_tolerable(error: Exception) -> bool:
    """
    Return True if the error only says the requested data is absent.

    Such errors are logged and treated as "not supported by this device".
    Everything else (timeouts, authentication, malformed responses) is fatal.
    """
    if isinstance(error, (SNMPNoSuchError, SNMPNoResultsError)):
        return True
    return bool(_TOLERABLE_RE.search(str(error)))


class SnmpType(str, Enum):
    """SNMP value types returned to callers."""
    OCTET_STRING = "OctetString"
    INTEGER = "Integer"
    COUNTER32 = "Counter32"
    COUNTER64 = "Counter64"
    GAUGE32 = "Gauge32"
    TIME_TICKS = "TimeTicks"
    OBJECT_IDENTIFIER = "ObjectIdentifier"
    IP_ADDRESS = "IpAddress"
    OPAQUE = "Opaque"
    NULL = "Null"


@dataclass(frozen=True)
class SnmpValue:
    """Typed value of one variable binding."""
    type: SnmpType
    value: Any
    raw: bytes | None = None

    def __str__(self) -> str:
        return str(self.value)

    @property
    def as_int(self) -> int:
        if isinstance(self.value, int):
            return self.value
        return int(str(self.value).strip())


def convert_value(value: Any) -> SnmpValue:
    """Convert a pysnmp value object into an SnmpValue."""
    # IpAddress is an OctetString subclass, check it first
    if isinstance(value, rfc1902.IpAddress):
        return SnmpValue(SnmpType.IP_ADDRESS, value.prettyPrint())
    if isinstance(value, rfc1902.Opaque):
        raw = bytes(value)
        return SnmpValue(SnmpType.OPAQUE, raw.hex(), raw)
    if isinstance(value, rfc1902.OctetString):
        raw = bytes(value)
        return SnmpValue(SnmpType.OCTET_STRING, raw.decode("utf-8", errors="replace"), raw)
    if isinstance(value, rfc1902.ObjectIdentifier):
        return SnmpValue(SnmpType.OBJECT_IDENTIFIER, normalize_oid(value.prettyPrint()))
    if isinstance(value, rfc1902.TimeTicks):
        return SnmpValue(SnmpType.TIME_TICKS, int(value))
    if isinstance(value, rfc1902.Counter64):
        return SnmpValue(SnmpType.COUNTER64, int(value))
    if isinstance(value, rfc1902.Counter32):
        return SnmpValue(SnmpType.COUNTER32, int(value))
    if isinstance(value, (rfc1902.Gauge32, rfc1902.Unsigned32)):
        return SnmpValue(SnmpType.GAUGE32, int(value))
    if isinstance(value, (rfc1902.Integer32, rfc1902.Integer)):
        return SnmpValue(SnmpType.INTEGER, int(value))
    return SnmpValue(SnmpType.NULL, None)


def _is_no_such(value: Any) -> bool:
    return isinstance(value, (rfc1905.NoSuchObject, rfc1905.NoSuchInstance))


def _is_end_of_mib(value: Any) -> bool:
    return isinstance(value, rfc1905.EndOfMibView)


def build_auth_data(credential: SNMPCredential):
    """Build pysnmp auth data from credential."""
    try:
        if isinstance(credential, SNMPv2cCredential):
            return CommunityData(credential.community, mpModel=credential.mp_model)

        # SNMPv3
        auth_proto = AUTH_PROTOCOL_MAP.get(credential.auth_protocol, usmNoAuthProtocol)
        priv_proto = PRIV_PROTOCOL_MAP.get(credential.priv_protocol, usmNoPrivProtocol)

        return UsmUserData(
            userName=credential.username,
            authKey=credential.auth_password,
            privKey=credential.priv_password,
            authProtocol=auth_proto,
            privProtocol=priv_proto,
        )
    except PySnmpError as e:
        raise SNMPError(f"Invalid SNMP credential: {e}") from e


class SNMPClient:
    """
    Unified SNMP client supporting v1, v2c and v3.

    Usage:
        client = SNMPClient(host="192.168.1.1", port=161, timeout=5, retries=2)
        result = await client.get(["1.3.6.1.2.1.1.1.0"], SNMPv2cCredential("public"))
    """

    # Rows requested per GETBULK when the caller does not set max_repetitions
    DEFAULT_BULK_SIZE = 25

    def __init__(
        self,
        host: str,
        port: int = 161,
        timeout: int = 5,
        retries: int = 2,
        max_repetitions: int = 0,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.retries = retries
        self.max_repetitions = max_repetitions
        self._engine = SnmpEngine()

    async def _get_transport(self):
        """Build UDP transport target."""
        try:
            return await UdpTransportTarget.create(
                (self.host, self.port),
                timeout=self.timeout,
                retries=self.retries
            )
        except PySnmpError as e:
            raise SNMPError(f"SNMP transport setup for {self.host} failed: {e}") from e

    def _check_errors(self, op: str, error_indication, error_status, error_index, var_binds) -> None:
        """Raise the matching SNMPError for a failed response."""
        if error_indication:
            if "timeout" in str(error_indication).lower():
                raise SNMPTimeoutError(f"SNMP {op} timeout for {self.host}: {error_indication}")
            raise SNMPError(f"SNMP {op} error for {self.host}: {error_indication}")

        if error_status:
            status = error_status.prettyPrint()
            where = error_index and var_binds[int(error_index) - 1][0] or "?"
            if status == "noSuchName":
                raise SNMPNoSuchError(f"SNMP {op} for {self.host} at {where}: NoSuchName")
            raise SNMPError(f"SNMP {op} error {status} for {self.host} at {where}")

    async def get(self, oids: list[str], credential: SNMPCredential) -> dict[str, SnmpValue]:
        """
        Get multiple OIDs in a single request.

        Args:
            oids: List of OIDs to retrieve
            credential: SNMP credential (v1, v2c or v3)

        Returns:
            Dict mapping OID (without leading dot) to typed value

        Raises:
            SNMPNoSuchError: if any requested object is not present
            SNMPTimeoutError: if the agent did not answer
        """
        if not oids:
            return {}

        transport = await self._get_transport()
        object_types = [ObjectType(ObjectIdentity(normalize_oid(oid))) for oid in oids]

        error_indication, error_status, error_index, var_binds = await get_cmd(
            self._engine,
            build_auth_data(credential),
            transport,
            ContextData(),
            *object_types,
            lookupMib=False,
        )
        self._check_errors("get", error_indication, error_status, error_index, var_binds)

        results = {}
        for name, value in var_binds:
            oid_str = normalize_oid(str(name))
            if _is_no_such(value):
                raise SNMPNoSuchError(
                    f"SNMP get for {self.host} at {oid_str}: {value.__class__.__name__}"
                )
            results[oid_str] = convert_value(value)

        return results

    async def walk(
        self,
        oid: str,
        credential: SNMPCredential,
        include_base: bool = False,
        stop_at_subtree: bool = True,
        max_rows: int | None = None,
    ) -> dict[str, SnmpValue]:
        """
        Walk an OID tree using GETBULK, with automatic fallback to GETNEXT.

        Tries GETBULK first for performance. SNMPv1 agents and devices that
        reject GETBULK are walked with GETNEXT instead.

        Args:
            oid: The base OID to walk
            credential: SNMP credential (v1, v2c or v3)
            include_base: Also fetch the base OID itself as an instance
            stop_at_subtree: Stop when traversal leaves the subtree. When False
                the walk continues to the end of the MIB view or max_rows.
            max_rows: Maximum number of rows to retrieve (None = unlimited)

        Returns:
            Dict mapping OID to typed value in traversal order

        Raises:
            SNMPNoResultsError: if the subtree holds no instances
            SNMPError: on transport failures; ``partial`` holds rows collected so far
        """
        base_oid = normalize_oid(oid)
        results: dict[str, SnmpValue] = {}

        if include_base:
            try:
                results.update(await self.get([base_oid], credential))
            except SNMPNoSuchError:
                pass

        if isinstance(credential, SNMPv1Credential):
            await self._getnext_walk(base_oid, credential, results, stop_at_subtree, max_rows)
        else:
            try:
                await self._bulk_walk(base_oid, credential, results, stop_at_subtree, max_rows)
            except SNMPError as e:
                # Some devices don't support GETBULK properly
                if "tooBig" in str(e) or "genErr" in str(e):
                    logger.debug(f"GETBULK failed for {self.host} ({e}), continuing with GETNEXT")
                    await self._getnext_walk(
                        base_oid,
                        credential,
                        results,
                        stop_at_subtree,
                        max_rows,
                        start_oid=next(reversed(results), None),
                    )
                else:
                    raise

        if not results:
            raise SNMPNoResultsError(f"SNMP walk for {self.host} at {base_oid}: no results")

        return results

    def _accept(
        self,
        base_oid: str,
        oid_str: str,
        value: Any,
        results: dict[str, SnmpValue],
        stop_at_subtree: bool,
        max_rows: int | None,
    ) -> bool:
        """Store one walked row. Returns False when the walk must stop."""
        if stop_at_subtree and not oid_str.startswith(base_oid + "."):
            return False
        if _is_end_of_mib(value) or _is_no_such(value):
            return False
        if oid_str in results and oid_str != base_oid:
            # Agent is not increasing OIDs
            return False
        results[oid_str] = convert_value(value)
        if max_rows is not None and len(results) >= max_rows:
            return False
        return True

    async def _bulk_walk(
        self,
        base_oid: str,
        credential: SNMPCredential,
        results: dict[str, SnmpValue],
        stop_at_subtree: bool,
        max_rows: int | None,
    ) -> None:
        """
        Walk an OID tree using GETBULK requests, filling ``results``.

        Agents may trim a reply below max-repetitions to fit the message, so
        only leaving the subtree, end of MIB view or an empty reply ends the walk.
        """
        current_oid = base_oid
        batch_size = self.max_repetitions or self.DEFAULT_BULK_SIZE

        while True:
            try:
                transport = await self._get_transport()
                error_indication, error_status, error_index, var_binds = await bulk_cmd(
                    self._engine,
                    build_auth_data(credential),
                    transport,
                    ContextData(),
                    0,  # nonRepeaters
                    batch_size,  # maxRepetitions
                    ObjectType(ObjectIdentity(current_oid)),
                    lookupMib=False,
                )
                self._check_errors("walk", error_indication, error_status, error_index, var_binds)
            except SNMPError as e:
                e.partial = dict(results)
                raise

            if not var_binds:
                return

            for name, value in var_binds:
                oid_str = normalize_oid(str(name))
                if not self._accept(base_oid, oid_str, value, results, stop_at_subtree, max_rows):
                    return
                current_oid = oid_str

    async def _getnext_walk(
        self,
        base_oid: str,
        credential: SNMPCredential,
        results: dict[str, SnmpValue],
        stop_at_subtree: bool,
        max_rows: int | None,
        start_oid: str | None = None,
    ) -> None:
        """
        Walk an OID tree using GETNEXT requests (slower but more compatible).

        ``start_oid`` resumes an interrupted walk after the last collected row.
        """
        current_oid = start_oid or base_oid

        while True:
            try:
                transport = await self._get_transport()
                error_indication, error_status, error_index, var_binds = await next_cmd(
                    self._engine,
                    build_auth_data(credential),
                    transport,
                    ContextData(),
                    ObjectType(ObjectIdentity(current_oid)),
                    lookupMib=False,
                )
                self._check_errors("walk", error_indication, error_status, error_index, var_binds)
            except SNMPNoSuchError:
                # SNMPv1 agents report the end of the MIB view as noSuchName
                return
            except SNMPError as e:
                e.partial = dict(results)
                raise

            if not var_binds:
                return

            name, value = var_binds[0]
            oid_str = normalize_oid(str(name))
            if not self._accept(base_oid, oid_str, value, results, stop_at_subtree, max_rows):
                return
            current_oid = oid_str

    def close(self) -> None:
        """Release the engine's transport dispatcher."""
        dispatcher = getattr(self._engine, "transport_dispatcher", None)
        if dispatcher is not None:
            dispatcher.close_dispatcher()
