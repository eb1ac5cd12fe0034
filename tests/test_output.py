"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- emit and print_table in JSON and plain modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from specmodel import output as output_module
from specmodel.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("specmodel.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("specmodel.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_emit_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.emit({"valid": True})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"valid": True}
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("schema group loaded")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "schema group loaded" in captured.err

    def test_warning_and_error_prefixes(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.warning("Unknown properties found: nickname")
        mgr.error("Schema 'Dragon' is not defined in this document")
        err = capfd.readouterr().err
        assert "Warning: Unknown properties found: nickname" in err
        assert "Error: Schema 'Dragon' is not defined in this document" in err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_and_errors(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("visible")
        mgr.error("also visible")
        err = capfd.readouterr().err
        assert "visible" in err
        assert "also visible" in err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("quiet")
        assert capfd.readouterr().err == ""

        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("loud")
        assert "[debug] loud" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Data formatting
# ------------------------------------------------------------------ #


class TestEmit:
    def test_plain_dict_is_key_tab_value(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.emit({"title": "Petstore API", "servers": ["https://a", "https://b"]})
        assert capfd.readouterr().out.splitlines() == [
            "title\tPetstore API",
            "servers\thttps://a, https://b",
        ]

    def test_plain_list_of_dicts(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.emit([{"name": "Pet", "type": "object"}])
        assert capfd.readouterr().out == "Pet\tobject\n"

    def test_json_is_indented(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.emit({"errors": {"name": ["is required"]}})
        out = capfd.readouterr().out
        assert out.startswith("{\n  ")
        assert json.loads(out)["errors"]["name"] == ["is required"]


class TestPrintTable:
    HEADERS = ["Schema", "Property", "Kind", "Target"]
    ROWS = [["Pet", "owner", "belongs_to", "Owner"], ["Owner", "pets", "has_many", "Pet"]]

    def test_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS)
        assert capfd.readouterr().out.splitlines() == [
            "Schema\tProperty\tKind\tTarget",
            "Pet\towner\tbelongs_to\tOwner",
            "Owner\tpets\thas_many\tPet",
        ]

    def test_json_rows_keyed_by_header(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS, title="Relationships")
        data = json.loads(capfd.readouterr().out)
        assert data[1] == {"Schema": "Owner", "Property": "pets", "Kind": "has_many", "Target": "Pet"}

    def test_rich_renders_cells(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS, title="Relationships")
        out = capfd.readouterr().out
        assert "belongs_to" in out
        assert "Relationships" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        reset_output()
        mgr = get_output()
        assert isinstance(mgr, OutputManager)
        assert get_output() is mgr

    def test_set_output_used_by_helpers(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.emit({"size": 3})
        output_module.warning("stale entry")
        captured = capfd.readouterr()
        assert captured.out == "size\t3\n"
        assert "Warning: stale entry" in captured.err
