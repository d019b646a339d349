"""
Connection negotiation: open a transport, log in, wait for the prompt.
"""
import logging
import re

from devman.cli.errors import CliConnectionError, CliError, CliParamsError
from devman.cli.expect import Expecter, Transport
from devman.cli.params import CliParams
from devman.cli.transport import SSHTransport, TelnetTransport

logger = logging.getLogger(__name__)

USERNAME_PROMPT_RE = re.compile(r"(?i)(ogin:|name:|as:)\s*$")
PASSWORD_PROMPT_RE = re.compile(r"(?i)pass.*:\s*$")


class ConnectionNegotiator:
    """
    Produce a ready Expecter for one device.

    Vendors needing extra interaction before the shell is usable (a
    "press enter" banner, a menu) override before_prompt/after_prompt.
    """

    def __init__(self, host: str, params: CliParams, verbose: bool = False):
        self.host = host
        self.params = params
        self.verbose = verbose

    @property
    def address(self) -> str:
        return f"{self.host}:{self.params.port}"

    def open_transport(self) -> Transport:
        """Open the SSH or Telnet byte stream."""
        p = self.params
        if p.telnet:
            return TelnetTransport.spawn(self.host, p.port)
        return SSHTransport.connect(
            self.host,
            p.port,
            p.username,
            password=p.password,
            key_path=p.key_path,
            key_secret=p.key_secret,
            timeout=p.timeout,
        )

    def negotiate(self) -> Expecter:
        """
        Connect and wait for the command prompt.

        Raises:
            CliParamsError: no username configured
            CliConnectionError: transport, login or prompt failure
        """
        if not self.params.username:
            raise CliParamsError(f"cli username missing for {self.host}")

        logger.debug(f"Opening {self.params.transport_name} session to {self.address}")
        expecter = Expecter(
            self.open_transport(),
            timeout=self.params.timeout,
            name=self.address,
            verbose=self.verbose,
        )
        try:
            if self.params.telnet:
                self.telnet_login(expecter)
            self.before_prompt(expecter)
            self.wait_prompt(expecter)
            self.after_prompt(expecter)
        except CliError:
            expecter.close()
            raise

        return expecter

    def telnet_login(self, expecter: Expecter) -> None:
        """Answer the username and password prompts."""
        p = self.params
        self._expect_step(expecter, USERNAME_PROMPT_RE, "telnet login prompt")
        expecter.send(p.username + p.line_end)
        self._expect_step(expecter, PASSWORD_PROMPT_RE, "telnet password prompt")
        expecter.send(p.password + p.line_end)

    def wait_prompt(self, expecter: Expecter) -> None:
        self._expect_step(expecter, self.params.prompt_re, f"prompt({self.params.prompt_re})")

    def before_prompt(self, expecter: Expecter) -> None:
        """Hook run after login, before the first prompt is awaited."""
        pass

    def after_prompt(self, expecter: Expecter) -> None:
        """Hook run once the first prompt matched."""
        pass

    def _expect_step(self, expecter: Expecter, pattern, what: str) -> str:
        try:
            output, _ = expecter.expect(pattern)
        except CliError as e:
            raise CliConnectionError(
                f"{what} match failed on {self.address}: {e} out: {e.output!r}",
                output=e.output,
            ) from e
        return output
