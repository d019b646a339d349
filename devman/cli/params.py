"""
CLI session parameters and vendor defaulting.
"""
import re
from dataclasses import dataclass, field, replace

from devman.cli.errors import CliParamsError

DEFAULT_PROMPT_RE = r"[^\r\n]*[>#\$]\s*$"
DEFAULT_ERR_RE = r"(?im)(error|unknown|unrecognized|invalid)"
DEFAULT_LINE_END = "\r\n"
DEFAULT_TIMEOUT = 10

# Matches anything; used after the last command of a batch
RELAXED_RE = r"(?m).*$"


def _as_tuple(cmds) -> tuple[str, ...] | None:
    if cmds is None:
        return None
    if isinstance(cmds, str):
        return (cmds,)
    return tuple(cmds)


@dataclass(frozen=True)
class CliParams:
    """
    CLI session configuration.

    Empty fields are filled from vendor defaults by prepare(). For the
    command lists ``None`` means "use the default", an empty sequence
    means "run nothing".
    """
    prompt_re: str = ""
    err_re: str = ""
    line_end: str = ""
    telnet: bool = False
    port: int = 0
    username: str = ""
    password: str = field(default="", repr=False)
    enable_password: str = field(default="", repr=False)
    key_path: str = ""
    key_secret: str = field(default="", repr=False)
    timeout: int = 0
    pre_cmds: tuple[str, ...] | None = None
    disconnect_cmds: tuple[str, ...] | None = None

    def __post_init__(self):
        object.__setattr__(self, "pre_cmds", _as_tuple(self.pre_cmds))
        object.__setattr__(self, "disconnect_cmds", _as_tuple(self.disconnect_cmds))

    @property
    def transport_name(self) -> str:
        return "telnet" if self.telnet else "ssh"


@dataclass(frozen=True)
class CliCmdOpts:
    """Options for a command batch."""
    check_errors: bool = False
    privileged: bool = False


@dataclass(frozen=True)
class CliDefaults:
    """Vendor supplied defaults for CliParams."""
    prompt_re: str = DEFAULT_PROMPT_RE
    err_re: str = DEFAULT_ERR_RE
    line_end: str = DEFAULT_LINE_END
    ssh_port: int = 22
    telnet_port: int = 23
    timeout: int = DEFAULT_TIMEOUT
    pre_cmds: tuple[str, ...] = ()
    disconnect_cmds: tuple[str, ...] = ("exit",)
    # Privileged mode elevation, None if the vendor has none
    elevate_cmd: str | None = None
    elevate_prompt_re: str = r"(?i)pass.*:\s*$"


def prepare(params: CliParams | None, defaults: CliDefaults | None = None) -> CliParams:
    """
    Return a copy of ``params`` with every empty field taken from ``defaults``.

    The caller's value is never modified.

    Raises:
        CliParamsError: if params are missing or a pattern does not compile
    """
    if params is None:
        raise CliParamsError("cli parameters missing")
    defaults = defaults or CliDefaults()

    port = params.port or (defaults.telnet_port if params.telnet else defaults.ssh_port)
    prepared = replace(
        params,
        prompt_re=params.prompt_re or defaults.prompt_re,
        err_re=params.err_re or defaults.err_re,
        line_end=params.line_end or defaults.line_end,
        port=port,
        timeout=params.timeout or defaults.timeout,
        pre_cmds=params.pre_cmds if params.pre_cmds is not None else defaults.pre_cmds,
        disconnect_cmds=(
            params.disconnect_cmds
            if params.disconnect_cmds is not None
            else defaults.disconnect_cmds
        ),
    )

    for name in ("prompt_re", "err_re"):
        try:
            re.compile(getattr(prepared, name))
        except re.error as e:
            raise CliParamsError(f"invalid {name} {getattr(prepared, name)!r}: {e}") from e

    if prepared.timeout < 0 or not 0 < prepared.port < 65536:
        raise CliParamsError(f"invalid port/timeout: {prepared.port}/{prepared.timeout}")

    return prepared
