"""
CLI session lifecycle: prepare, start, run, close.
"""
import logging
import threading
import time
from enum import Enum
from functools import wraps

from devman.cli.channel import CommandChannel
from devman.cli.errors import CliError, CliNotConnectedError, CliParamsError, CliSessionBusyError
from devman.cli.expect import Expecter
from devman.cli.negotiator import ConnectionNegotiator
from devman.cli.params import CliCmdOpts, CliDefaults, CliParams, prepare

logger = logging.getLogger(__name__)


class CliState(str, Enum):
    """Session lifecycle states."""
    NO_PARAMS = "no_params"
    PREPARED = "prepared"
    CONNECTED = "connected"
    READY = "ready"
    EXECUTING = "executing"
    FAILED = "failed"
    CLOSED = "closed"


def exclusive(method):
    """Reject concurrent callers instead of queueing them."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self._lock.acquire(blocking=False):
            raise CliSessionBusyError(f"{self.host}: cli session is in use by another caller")
        try:
            return method(self, *args, **kwargs)
        finally:
            self._lock.release()

    return wrapper


class CliSession:
    """
    One CLI session per Device.

    Holds the caller's parameters, the vendor defaults and, once connected,
    the live Expecter. A session is driven by one caller at a time;
    concurrent calls raise CliSessionBusyError.
    """

    def __init__(
        self,
        host: str,
        params: CliParams | None = None,
        defaults: CliDefaults | None = None,
        negotiator_class: type[ConnectionNegotiator] = ConnectionNegotiator,
        channel_class: type[CommandChannel] = CommandChannel,
        teardown_pause: float = 1.0,
        debug: int = 0,
    ):
        self.host = host
        self.params = params
        self.defaults = defaults or CliDefaults()
        self.negotiator_class = negotiator_class
        self.channel_class = channel_class
        self.teardown_pause = teardown_pause
        self.debug = debug
        self.active_params: CliParams | None = None
        self.expecter: Expecter | None = None
        self.state = CliState.NO_PARAMS if params is None else CliState.PREPARED
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self.expecter is not None

    def configure(
        self,
        defaults: CliDefaults,
        negotiator_class: type[ConnectionNegotiator] = ConnectionNegotiator,
        channel_class: type[CommandChannel] = CommandChannel,
    ) -> None:
        """Install vendor behaviour. Takes effect on the next connect."""
        self.defaults = defaults
        self.negotiator_class = negotiator_class
        self.channel_class = channel_class

    def prepare(self) -> CliParams:
        """Return the caller's params completed with vendor defaults."""
        return prepare(self.params, self.defaults)

    @exclusive
    def start(self, params: CliParams) -> None:
        """
        Connect and run the setup commands. No-op if already connected.
        """
        self._start(params)

    def _start(self, params: CliParams) -> None:
        if self.expecter is not None:
            return
        if params is None:
            raise CliParamsError("cli parameters missing")

        self.active_params = params
        negotiator = self.negotiator_class(self.host, params, verbose=self.debug > 0)
        expecter = negotiator.negotiate()
        self.state = CliState.CONNECTED

        if params.pre_cmds:
            try:
                self.channel_class(expecter, params).run_cmds(list(params.pre_cmds), relax_last=False)
            except CliError:
                expecter.close()
                self.state = CliState.FAILED
                raise

        self.expecter = expecter
        self.state = CliState.READY
        logger.debug(f"{self.host}: cli session ready")

    @exclusive
    def run_cmds(self, commands: list[str], opts: CliCmdOpts | None = None) -> list[str]:
        """Execute commands on the connected session and return the transcript."""
        return self._run_cmds(commands, opts or CliCmdOpts())

    def _run_cmds(self, commands: list[str], opts: CliCmdOpts) -> list[str]:
        if self.expecter is None:
            raise CliNotConnectedError(f"{self.host}: active cli session not found")

        channel = self.channel_class(self.expecter, self.active_params)
        self.state = CliState.EXECUTING
        try:
            if opts.privileged:
                channel.elevate(self.defaults)
            transcript = channel.run_cmds(commands, check_errors=opts.check_errors)
        except CliError:
            self.state = CliState.FAILED
            raise
        self.state = CliState.READY
        return transcript

    @exclusive
    def run(self, commands: list[str], opts: CliCmdOpts | None = None) -> list[str]:
        """
        Prepare, connect, execute and disconnect.

        The session is closed even when execution fails. If closing fails
        too, the raised error names both causes.
        """
        opts = opts or CliCmdOpts()
        self._start(self.prepare())
        try:
            transcript = self._run_cmds(commands, opts)
        except CliError as e:
            try:
                self._close()
            except CliError as close_error:
                raise type(e)(
                    f"{e}; close failed: {close_error}",
                    transcript=e.transcript,
                    output=e.output,
                ) from e
            raise

        self._close()
        return transcript

    @exclusive
    def close(self) -> None:
        """Send the teardown commands (best effort) and drop the stream."""
        self._close()

    def _close(self) -> None:
        expecter = self.expecter
        if expecter is None:
            return

        params = self.active_params
        try:
            for cmd in params.disconnect_cmds or ():
                try:
                    expecter.send(cmd + params.line_end)
                except CliError as e:
                    logger.debug(f"{self.host}: teardown send({cmd!r}) failed: {e}")
                    break
                time.sleep(self.teardown_pause)
        finally:
            self.expecter = None
            self.state = CliState.CLOSED
            try:
                expecter.close()
            except OSError as e:
                raise CliError(f"{self.host}: closing cli transport failed: {e}") from e
