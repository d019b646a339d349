"""
Expect-style synchronization over a byte-stream transport.

Both SSH and Telnet sessions are reduced to a Transport (send / recv /
close); the Expecter accumulates decoded output until a compiled pattern
matches or the deadline passes.
"""
import codecs
import logging
import re
import time
from typing import Protocol

from devman.cli.errors import ExpectTimeoutError, TransportClosedError

logger = logging.getLogger(__name__)

# Upper bound for a single blocking read so deadlines stay responsive
READ_SLICE = 0.5


class Transport(Protocol):
    """Duplex byte stream to a device."""

    def send(self, data: bytes) -> None:
        ...

    def recv(self, timeout: float) -> bytes:
        """
        Return available bytes, waiting at most ``timeout`` seconds.

        Returns b"" if nothing arrived, raises TransportClosedError on EOF.
        """
        ...

    def close(self) -> None:
        ...


class Expecter:
    """
    Reader loop with a deadline over one transport.

    Matched text and everything before it is consumed from the buffer;
    the text before the match is returned as command output.
    """

    def __init__(self, transport: Transport, timeout: float, name: str = "", verbose: bool = False):
        self.transport = transport
        self.timeout = timeout
        self.name = name
        self.verbose = verbose
        self.buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.closed = False

    def send(self, data: str) -> None:
        """Write ``data`` to the stream."""
        if self.closed:
            raise TransportClosedError(f"{self.name}: send on closed session")
        if self.verbose:
            logger.debug(f"{self.name} >>> {data!r}")
        self.transport.send(data.encode("utf-8"))

    def expect(self, pattern: str | re.Pattern, timeout: float | None = None) -> tuple[str, re.Match]:
        """
        Block until ``pattern`` matches buffered output.

        Returns:
            (output before the match, match object)

        Raises:
            ExpectTimeoutError: deadline passed; ``output`` holds the buffer
            TransportClosedError: stream ended before a match
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout

        while True:
            m = regex.search(self.buffer)
            if m:
                output = self.buffer[:m.start()]
                self.buffer = self.buffer[m.end():]
                return output, m

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                output = self.buffer
                raise ExpectTimeoutError(
                    f"{self.name}: expect({regex.pattern}) timed out after {timeout}s",
                    output=output,
                )

            try:
                chunk = self.transport.recv(min(remaining, READ_SLICE))
            except TransportClosedError as e:
                self.closed = True
                e.output = self.buffer
                raise

            if chunk:
                text = self._decoder.decode(chunk)
                if self.verbose:
                    logger.debug(f"{self.name} <<< {text!r}")
                self.buffer += text

    def close(self) -> None:
        """Close the underlying transport."""
        if not self.closed:
            self.closed = True
            self.transport.close()
