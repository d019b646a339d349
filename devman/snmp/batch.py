"""
Synchronous batch facade over the async SNMP client.

Device handles are driven from blocking code, so every call runs the
client's coroutine on a private event loop owned by the facade.
"""
import asyncio
import logging
import math

from devman.snmp.client import (
    SNMPClient,
    SNMPCredential,
    SNMPError,
    SnmpValue,
    is_tolerable,
)
from devman.snmp.oids import normalize_oid

logger = logging.getLogger(__name__)

# Chunk size used when the agent advertises no max-repetitions value
DEFAULT_CHUNK_SIZE = 5

SnmpBatchResult = dict[str, SnmpValue]


class SnmpBatchClient:
    """
    Single/batched GET and subtree WALK against one agent.

    Results are fresh dicts keyed by OID without a leading dot.
    """

    def __init__(
        self,
        client: SNMPClient,
        credential: SNMPCredential,
        walk_max_rows: int | None = None,
    ):
        self.client = client
        self.credential = credential
        self.walk_max_rows = walk_max_rows
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def host(self) -> str:
        return self.client.host

    @property
    def max_repetitions(self) -> int:
        return self.client.max_repetitions

    @property
    def chunk_size(self) -> int:
        """Number of OIDs per GET in batched_get."""
        if self.max_repetitions < 1:
            return DEFAULT_CHUNK_SIZE
        return self.max_repetitions

    def _run(self, coro):
        """Run async coroutine on the facade's own loop."""
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coro)

    def get(self, oids: list[str]) -> SnmpBatchResult:
        """
        GET the given OIDs in one request.

        Absent objects raise SNMPNoSuchError, which callers can tell apart
        from transport errors with is_tolerable().
        """
        return self._run(self.client.get(list(oids), self.credential))

    def get_one(self, oid: str) -> SnmpValue:
        """GET a single OID and return its value."""
        oid = normalize_oid(oid)
        return self.get([oid])[oid]

    def walk(
        self,
        base_oid: str,
        include_base: bool = False,
        stop_at_subtree: bool = True,
    ) -> SnmpBatchResult:
        """
        Return every instance under ``base_oid``.

        Tolerable errors (no such name, no results) are logged and yield an
        empty dict. Any other error propagates and carries the rows
        collected before it in ``partial``.
        """
        max_rows = None if stop_at_subtree else self.walk_max_rows
        try:
            return self._run(
                self.client.walk(
                    base_oid,
                    self.credential,
                    include_base=include_base,
                    stop_at_subtree=stop_at_subtree,
                    max_rows=max_rows,
                )
            )
        except SNMPError as e:
            if is_tolerable(e):
                logger.warning(f"{self.host}: walk {normalize_oid(base_oid)}: {e}")
                return {}
            raise

    def batched_get(self, base_oid: str, indexes: list[str] | None = None) -> SnmpBatchResult:
        """
        GET ``base_oid.<index>`` for every index, chunked by max-repetitions.

        An empty index list walks the whole subtree instead. M indexes are
        fetched with ceil(M / chunk_size) GET requests.
        """
        base_oid = normalize_oid(base_oid)
        if not indexes:
            return self.walk(base_oid, include_base=True)

        oids = [f"{base_oid}.{idx}" for idx in indexes]
        size = self.chunk_size
        result: SnmpBatchResult = {}
        for n in range(math.ceil(len(oids) / size)):
            result.update(self.get(oids[n * size:(n + 1) * size]))

        return result

    def close(self) -> None:
        """Close the private loop and the client engine."""
        self.client.close()
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None
