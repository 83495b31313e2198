"""
Tests for manager registry, detection and selection (node_switch/managers.py).
"""

import asyncio

import pytest

from conftest import FakeRunner, fail
from node_switch.managers import (
    MANAGERS,
    DetectedManager,
    ManagerDescriptor,
    ManagerSelectionError,
    detect_available_managers,
    get_manager,
    managers_by_name,
    probe_manager,
    render_install_command,
    render_list_command,
    render_probe_command,
    render_use_command,
    select_manager,
    version_argument,
)


NVM = get_manager("nvm")
FNM = get_manager("fnm")
VOLTA = get_manager("volta")


class TestManagerRegistry:
    """Tests for the static manager catalog."""

    def test_registry_order(self):
        """Test managers are registered in probe order."""
        assert [m.name for m in MANAGERS] == ["nvm", "fnm", "volta"]

    def test_descriptor_commands(self):
        """Test command lines match what the managers expect."""
        assert NVM.probe_command == "nvm --version"
        assert NVM.list_command == "nvm list"
        assert FNM.list_command == "fnm list"
        assert VOLTA.list_command == "volta list node"
        assert VOLTA.use_command_template == "volta install node@{version}"

    def test_descriptor_immutable(self):
        """Test descriptors are frozen."""
        with pytest.raises(AttributeError):
            NVM.name = "other"

    def test_get_manager_not_exists(self):
        """Test unknown manager lookup."""
        assert get_manager("asdf") is None

    def test_managers_by_name_skips_unknown(self):
        """Test configured names resolve in the given order."""
        assert managers_by_name(["volta", "asdf", "nvm"]) == (VOLTA, NVM)


class TestCommandRendering:
    """Tests for platform-specific command rendering."""

    def test_probe_posix(self):
        assert render_probe_command(NVM, "linux") == "nvm --version"

    def test_probe_windows_nvm_wrapped(self):
        """Test nvm-windows probes run through cmd /c."""
        assert render_probe_command(NVM, "windows") == 'cmd /c "nvm --version"'

    def test_probe_windows_fnm_not_wrapped(self):
        assert render_probe_command(FNM, "windows") == "fnm --version"

    def test_list_windows_nvm_wrapped(self):
        assert render_list_command(NVM, "windows") == 'cmd /c "nvm list"'
        assert render_list_command(VOLTA, "windows") == "volta list node"

    def test_use_posix_keeps_prefix(self):
        """Test POSIX nvm keeps the version as parsed."""
        assert render_use_command(NVM, "v18.17.0", "linux") == "nvm use v18.17.0"
        assert render_use_command(FNM, "v18.17.0", "macos") == "fnm use v18.17.0"

    def test_use_windows_nvm_strips_prefix(self):
        """Test nvm-windows receives a bare numeric version."""
        assert render_use_command(NVM, "v18.17.0", "windows") == 'cmd /c "nvm use 18.17.0"'

    def test_use_windows_nvm_prefix_kept_when_disabled(self):
        """Test the bare-version rule can be turned off."""
        command = render_use_command(NVM, "v18.17.0", "windows", windows_bare_version=False)
        assert command == 'cmd /c "nvm use v18.17.0"'

    def test_use_windows_other_managers_keep_prefix(self):
        assert render_use_command(FNM, "v18.17.0", "windows") == "fnm use v18.17.0"
        assert render_use_command(VOLTA, "v18.17.0", "windows") == "volta install node@v18.17.0"

    def test_install_commands(self):
        assert render_install_command(NVM, "v20.5.1", "linux") == "nvm install v20.5.1"
        assert render_install_command(FNM, "v20.5.1", "linux") == "fnm install v20.5.1"
        assert render_install_command(NVM, "v20.5.1", "windows") == 'cmd /c "nvm install 20.5.1"'

    def test_version_argument_bare_input_unchanged(self):
        assert version_argument(NVM, "18.17.0", "windows") == "18.17.0"


class TestDetection:
    """Tests for concurrent manager detection."""

    def test_only_successful_probes_included(self):
        """Test failed probes are silently excluded."""
        runner = FakeRunner({"fnm --version": "fnm 1.35.1\n"})
        detected = asyncio.run(detect_available_managers(platform="linux", runner=runner))
        assert [d.name for d in detected] == ["fnm"]
        assert detected[0].available is True
        assert detected[0].probe_output.strip() == "fnm 1.35.1"

    def test_every_probe_is_run(self):
        """Test each descriptor is probed exactly once."""
        runner = FakeRunner()
        detected = asyncio.run(detect_available_managers(platform="linux", runner=runner))
        assert detected == []
        assert sorted(runner.commands()) == ["fnm --version", "nvm --version", "volta --version"]

    def test_order_follows_descriptors(self):
        """Test result order matches input order, not completion order."""

        class SlowFirstRunner(FakeRunner):
            async def __call__(self, command_line, cwd=None, timeout=None):
                if command_line.startswith("nvm"):
                    await asyncio.sleep(0.05)
                return await super().__call__(command_line, cwd, timeout)

        runner = SlowFirstRunner({
            "nvm --version": "0.39.7",
            "fnm --version": "fnm 1.35.1",
            "volta --version": "1.1.1",
        })
        detected = asyncio.run(detect_available_managers(platform="linux", runner=runner))
        assert [d.name for d in detected] == ["nvm", "fnm", "volta"]

    def test_windows_probe_wrapping(self):
        """Test nvm is probed through cmd on Windows."""
        runner = FakeRunner({'cmd /c "nvm --version"': "1.1.11"})
        detected = asyncio.run(detect_available_managers(platform="windows", runner=runner))
        assert [d.name for d in detected] == ["nvm"]
        assert 'cmd /c "nvm --version"' in runner.commands()

    def test_timeout_probe_excluded(self):
        """Test a timed-out probe is treated as absent."""
        runner = FakeRunner({"volta --version": fail("volta --version", "timeout", "timed out", None)})
        detected = asyncio.run(detect_available_managers((VOLTA,), platform="linux", runner=runner))
        assert detected == []

    def test_probe_timeout_passed(self):
        """Test the probe timeout reaches the runner."""
        runner = FakeRunner({"nvm --version": "0.39.7"})
        asyncio.run(probe_manager(NVM, "linux", timeout=1.5, runner=runner))
        assert runner.calls[0][2] == 1.5

    def test_detection_is_repeatable(self):
        """Test detection re-probes on every call."""
        runner = FakeRunner({"nvm --version": ["0.39.7", fail("nvm --version")]})
        first = asyncio.run(detect_available_managers((NVM,), platform="linux", runner=runner))
        second = asyncio.run(detect_available_managers((NVM,), platform="linux", runner=runner))
        assert [d.name for d in first] == ["nvm"]
        assert second == []


class TestSelectManager:
    """Tests for manager selection."""

    def _detected(self, *managers):
        return [DetectedManager(m, available=True) for m in managers]

    def test_single_manager_auto_selected(self):
        assert select_manager(self._detected(FNM)) is FNM

    def test_preferred_manager(self):
        assert select_manager(self._detected(NVM, VOLTA), preferred="volta") is VOLTA

    def test_preferred_unavailable(self):
        with pytest.raises(ManagerSelectionError, match="not available"):
            select_manager(self._detected(NVM), preferred="volta")

    def test_ambiguous_without_preference(self):
        with pytest.raises(ManagerSelectionError, match="Multiple managers"):
            select_manager(self._detected(NVM, FNM))

    def test_none_available(self):
        with pytest.raises(ManagerSelectionError, match="No Node.js version manager"):
            select_manager([])

    def test_selection_error_is_value_error(self):
        assert issubclass(ManagerSelectionError, ValueError)

    def test_detected_to_dict(self):
        data = DetectedManager(VOLTA, available=True, probe_output="1.1.1\n").to_dict()
        assert data == {"name": "volta", "display_name": "Volta", "available": True, "version": "1.1.1"}

    def test_custom_descriptor(self):
        custom = ManagerDescriptor("n", "n", "n --version", "n ls", "n {version}", "n install {version}")
        assert render_use_command(custom, "v18.17.0", "linux") == "n v18.17.0"
