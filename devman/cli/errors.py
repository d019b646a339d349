"""
Exceptions raised by the CLI automation engine.
"""


class CliError(Exception):
    """
    Base exception for CLI operations.

    ``transcript`` holds the command/output pairs collected before the
    failure, ``output`` the last output observed on the stream.
    """

    def __init__(self, message: str, transcript: list[str] | None = None, output: str = ""):
        super().__init__(message)
        self.transcript = list(transcript or [])
        self.output = output


class CliParamsError(CliError, ValueError):
    """Session parameters are missing or malformed."""
    pass


class CliConnectionError(CliError):
    """Transport could not be opened or the session never became ready."""
    pass


class CliAuthError(CliConnectionError):
    """Device rejected the supplied credentials."""
    pass


class CliNotConnectedError(CliError):
    """Commands were issued without an active session."""
    pass


class CliSessionBusyError(CliError):
    """Session is already driven by another caller."""
    pass


class ExpectTimeoutError(CliError):
    """Expected pattern did not appear before the session timeout."""
    pass


class TransportClosedError(CliError):
    """Remote end closed the stream."""
    pass


class CliCommandError(CliError):
    """Command output matched the error-detection pattern."""
    pass
