"""
Tests for CLI parameter defaulting.
"""
import pytest

from devman.cli.errors import CliParamsError
from devman.cli.params import (
    DEFAULT_ERR_RE,
    DEFAULT_LINE_END,
    DEFAULT_PROMPT_RE,
    CliDefaults,
    CliParams,
    prepare,
)
from devman.vendors.cisco.device import CiscoDevice


class TestPrepareDefaults:
    """prepare() fills every empty field."""

    def test_empty_params_fully_populated(self):
        p = prepare(CliParams())
        assert p.prompt_re == DEFAULT_PROMPT_RE
        assert p.err_re == DEFAULT_ERR_RE
        assert p.line_end == DEFAULT_LINE_END
        assert p.port == 22
        assert p.timeout == 10
        assert p.disconnect_cmds == ("exit",)
        assert p.pre_cmds == ()

    def test_telnet_port(self):
        assert prepare(CliParams(telnet=True)).port == 23

    def test_caller_values_kept(self):
        p = prepare(CliParams(prompt_re=r"\$ $", port=2222, timeout=30, line_end="\n"))
        assert (p.prompt_re, p.port, p.timeout, p.line_end) == (r"\$ $", 2222, 30, "\n")

    def test_caller_params_not_mutated(self):
        params = CliParams(username="admin")
        prepared = prepare(params)
        assert params.prompt_re == ""
        assert params.port == 0
        assert params.disconnect_cmds is None
        assert prepared is not params
        assert prepared.username == "admin"

    def test_empty_list_means_none(self):
        p = prepare(CliParams(disconnect_cmds=[]))
        assert p.disconnect_cmds == ()

    def test_lists_converted_to_tuples(self):
        p = CliParams(pre_cmds=["a", "b"])
        assert p.pre_cmds == ("a", "b")

    def test_missing_params(self):
        with pytest.raises(CliParamsError, match="missing"):
            prepare(None)

    def test_invalid_pattern(self):
        with pytest.raises(CliParamsError, match="prompt_re"):
            prepare(CliParams(prompt_re="(unclosed"))

    def test_secrets_not_in_repr(self):
        text = repr(CliParams(username="admin", password="s3cret", enable_password="en4ble"))
        assert "s3cret" not in text
        assert "en4ble" not in text


class TestVendorDefaults:
    """Vendor defaults replace the generic ones."""

    def test_cisco_defaults(self):
        p = prepare(CliParams(), CiscoDevice.cli_defaults)
        assert p.pre_cmds == ("terminal length 0", "terminal width 132")
        assert p.disconnect_cmds == ("end", "exit")

    def test_caller_overrides_vendor(self):
        p = prepare(CliParams(pre_cmds=()), CiscoDevice.cli_defaults)
        assert p.pre_cmds == ()

    def test_custom_defaults(self):
        defaults = CliDefaults(timeout=60, ssh_port=830)
        p = prepare(CliParams(), defaults)
        assert p.timeout == 60
        assert p.port == 830
