"""
Tests for terminal rendering (node_switch/render.py).
"""

import pytest

from node_switch import render
from node_switch.catalog import VersionCatalog
from node_switch.managers import DetectedManager, get_manager
from node_switch.parsers import VersionRecord
from node_switch.switcher import Confirmed, ExecutedUnconfirmed, Failed, InstallResult


NVM = get_manager("nvm")
FNM = get_manager("fnm")


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    """Disable colors and emoji so assertions see plain text."""
    monkeypatch.setattr(render, "USE_COLOR", False)
    monkeypatch.setattr(render, "USE_EMOJI", False)


class TestFormatStatus:
    """Tests for status-line text."""

    def test_found(self):
        state, text, tooltip = render.format_status("v18.17.0")
        assert state == render.STATE_OK
        assert text == "Node v18.17.0"
        assert tooltip == "Node.js v18.17.0"

    def test_custom_template(self):
        _, text, _ = render.format_status("v20.5.1", template="⬢ {version} (node)")
        assert text == "⬢ v20.5.1 (node)"

    def test_not_found(self):
        """Test a missing runtime is a distinct, non-error state."""
        state, text, tooltip = render.format_status(None)
        assert state == render.STATE_NOT_FOUND
        assert text.endswith("Node.js not found")
        assert tooltip == render.NOT_FOUND_HINT

    def test_error(self):
        state, text, tooltip = render.format_status(None, error_message="resolver crashed")
        assert state == render.STATE_ERROR
        assert text.endswith("Node Error")
        assert tooltip.startswith("resolver crashed")


class TestFormatOutcome:
    """Tests for switch outcome messages."""

    def test_confirmed_has_restart_hint(self):
        message = render.format_outcome(Confirmed("v18.17.0", manager="nvm"))
        assert "Switched to v18.17.0 (nvm)" in message
        assert render.RESTART_HINT in message

    def test_unconfirmed_distinct_from_confirmed(self):
        """Test an unconfirmed switch is neither success nor failure wording."""
        message = render.format_outcome(ExecutedUnconfirmed("v18.17.0", "active version is v16.20.0"))
        assert "unconfirmed" in message
        assert "Switched to" not in message
        assert "failed" not in message
        assert render.RESTART_HINT in message

    def test_failed_has_no_restart_hint(self):
        message = render.format_outcome(Failed("nvm could not switch"))
        assert message == "x Switch failed: nvm could not switch"

    def test_unknown_outcome(self):
        with pytest.raises(TypeError):
            render.format_outcome("done")


class TestFormatInstall:
    """Tests for install messages."""

    def test_success(self):
        result = InstallResult("v20.5.1", "fnm", "fnm install v20.5.1", success=True)
        assert render.format_install(result) == "✓ Installed v20.5.1 with fnm"

    def test_failure(self):
        result = InstallResult("v20.5.1", "fnm", "fnm install v20.5.1", success=False, error_message="timeout: no output")
        assert "failed: timeout: no output" in render.format_install(result)


class TestRenderTables:
    """Tests for table output."""

    def test_render_catalog(self, capsys):
        catalog = VersionCatalog(
            records=(
                VersionRecord("v18.17.0", NVM, is_active=True),
                VersionRecord("v16.20.0", FNM, install_path="/opt/node16"),
            ),
            warnings=("volta: listing failed (timeout: timed out after 30s)",),
        )
        render.render_catalog(catalog)
        out, err = capsys.readouterr()
        lines = out.splitlines()
        assert lines[0] == "state|version|manager|path"
        assert lines[1] == "*|v18.17.0|nvm|"
        assert lines[2] == " |v16.20.0|fnm|/opt/node16"
        assert "# warning: volta: listing failed" in err

    def test_render_catalog_marks_current(self, capsys):
        """Test the resolver's version is marked when no record is active."""
        catalog = VersionCatalog(records=(VersionRecord("v16.20.0", FNM),))
        render.render_catalog(catalog, current="v16.20.0")
        out, _ = capsys.readouterr()
        assert out.splitlines()[1].startswith("*|")

    def test_render_empty_catalog(self, capsys):
        render.render_catalog(VersionCatalog())
        _, err = capsys.readouterr()
        assert "No installed Node.js versions found" in err

    def test_render_managers(self, capsys):
        render.render_managers([DetectedManager(FNM, available=True, probe_output="fnm 1.35.1\n")])
        out, _ = capsys.readouterr()
        assert out.splitlines() == ["manager|version", "fnm (Fast Node Manager)|fnm 1.35.1"]

    def test_render_no_managers(self, capsys):
        render.render_managers([])
        _, err = capsys.readouterr()
        assert "No Node.js version manager found" in err
