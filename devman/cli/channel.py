"""
Command execution on a negotiated CLI stream.
"""
import logging
import re

from devman.cli.errors import CliCommandError, CliError, CliNotConnectedError
from devman.cli.expect import Expecter
from devman.cli.params import RELAXED_RE, CliDefaults, CliParams

logger = logging.getLogger(__name__)


class CommandChannel:
    """
    Send commands one at a time and capture the output up to the next prompt.

    The transcript alternates command and captured output. Vendors whose
    shells drop characters on fast input override send_command.
    """

    def __init__(self, expecter: Expecter | None, params: CliParams):
        self.expecter = expecter
        self.params = params
        self._prompt = re.compile(params.prompt_re)
        self._error = re.compile(params.err_re)
        self._relaxed = re.compile(RELAXED_RE)

    def send_command(self, cmd: str) -> None:
        """Transmit one command followed by the line terminator."""
        self.expecter.send(cmd + self.params.line_end)

    def strip_echo(self, cmd: str, output: str) -> str:
        echo = cmd + self.params.line_end
        if output.startswith(echo):
            return output[len(echo):]
        return output

    def has_error(self, output: str) -> bool:
        return bool(self._error.search(output))

    def run_cmds(
        self,
        commands: list[str],
        check_errors: bool = False,
        relax_last: bool = True,
    ) -> list[str]:
        """
        Execute ``commands`` in order and return the transcript.

        After the last command only a relaxed "any line" pattern is awaited,
        since shells often drop their prompt after e.g. ``exit``.

        Raises:
            CliNotConnectedError: no active stream
            CliCommandError: an output matched the error pattern (check_errors)
            CliError: send or expect failure; ``transcript`` holds what was collected
        """
        transcript: list[str] = []
        if self.expecter is None or self.expecter.closed:
            raise CliNotConnectedError("active cli session not found")

        name = self.expecter.name
        last = len(commands) - 1
        for n, cmd in enumerate(commands):
            transcript.append(cmd)
            try:
                self.send_command(cmd)
            except CliError as e:
                transcript.append("")
                raise type(e)(
                    f"{name}: send({cmd!r}) failed: {e}", transcript=transcript, output=e.output
                ) from e

            pattern = self._relaxed if relax_last and n == last else self._prompt
            expect_error = None
            try:
                output, _ = self.expecter.expect(pattern)
            except CliError as e:
                expect_error = e
                output = e.output

            output = self.strip_echo(cmd, output)
            transcript.append(output)

            if check_errors and self.has_error(output):
                raise CliCommandError(
                    f"{name}: cli command exec error: {output.strip()}",
                    transcript=transcript,
                    output=output,
                )

            if expect_error is not None:
                raise type(expect_error)(
                    f"{name}: expect({pattern.pattern}) failed: {expect_error}",
                    transcript=transcript,
                    output=output,
                ) from expect_error

        return transcript

    def elevate(self, defaults: CliDefaults) -> None:
        """
        Enter the privileged sub-shell.

        Any error-pattern match in this exchange is fatal.
        """
        if not defaults.elevate_cmd:
            return
        if self.expecter is None or self.expecter.closed:
            raise CliNotConnectedError("active cli session not found")

        transcript = [defaults.elevate_cmd]
        self.send_command(defaults.elevate_cmd)
        output, _ = self.expecter.expect(defaults.elevate_prompt_re)
        transcript.append(self.strip_echo(defaults.elevate_cmd, output))
        if self.has_error(output):
            raise CliCommandError(
                f"{self.expecter.name}: privilege elevation failed: {output.strip()}",
                transcript=transcript,
                output=output,
            )

        self.expecter.send(self.params.enable_password + self.params.line_end)
        output, _ = self.expecter.expect(self._prompt)
        if self.has_error(output):
            transcript.append(output)
            raise CliCommandError(
                f"{self.expecter.name}: privilege elevation failed: {output.strip()}",
                transcript=transcript,
                output=output,
            )
        logger.debug(f"{self.expecter.name}: privileged mode enabled")


class TokenCommandChannel(CommandChannel):
    """Channel sending each whitespace separated token as its own write."""

    def send_command(self, cmd: str) -> None:
        tokens = cmd.split(" ")
        for token in tokens[:-1]:
            self.expecter.send(token + " ")
        self.expecter.send(tokens[-1] + self.params.line_end)
