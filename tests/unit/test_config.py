# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
import pytest

from runwarden.config import RunnerSettings
from runwarden.core.constants import DEFAULT_HOMEBREW_PREFIX


_RUNNER_ENV = (
    "RUNNER_DEBUG",
    "RUNNER_SUMMARY_STYLE",
    "RUNNER_THE_USER_GAVE_ME_CONSENT",
    "RUNNER_TMUX",
    "RUNNER_COMMIT_HELPER",
    "TMUX",
    "HOMEBREW_PREFIX",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _RUNNER_ENV:
        monkeypatch.delenv(name, raising=False)


class TestRunnerSettingsFromEnv:
    """Tests for environment-driven configuration."""

    def test_defaults(self) -> None:
        settings = RunnerSettings()
        assert settings.debug is False
        assert settings.consent is False
        assert settings.summary_style == "compact"
        assert settings.homebrew_prefix == DEFAULT_HOMEBREW_PREFIX
        assert settings.commit_helper == "./scripts/committer"
        assert settings.in_tmux_session is False
        assert settings.log_level == "WARNING"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param("1", True, id="one"),
            pytest.param("0", False, id="zero"),
            pytest.param("true", False, id="true_is_not_one"),
            pytest.param("", False, id="empty"),
        ],
    )
    def test_debug_only_enabled_by_one(
        self, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        monkeypatch.setenv("RUNNER_DEBUG", value)
        settings = RunnerSettings()
        assert settings.debug is expected
        assert settings.log_level == ("DEBUG" if expected else "WARNING")

    def test_consent_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUNNER_THE_USER_GAVE_ME_CONSENT", "1")
        assert RunnerSettings().consent is True

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param("minimal", "minimal", id="minimal"),
            pytest.param("VERBOSE", "verbose", id="verbose_uppercase"),
            pytest.param("short", "compact", id="legacy_short"),
            pytest.param("fancy", "compact", id="unknown"),
        ],
    )
    def test_summary_style(self, monkeypatch: pytest.MonkeyPatch, value: str, expected: str) -> None:
        monkeypatch.setenv("RUNNER_SUMMARY_STYLE", value)
        assert RunnerSettings().summary_style == expected

    def test_standard_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/agent")
        monkeypatch.setenv("PATH", "/opt/bin:/usr/bin")
        monkeypatch.setenv("HOMEBREW_PREFIX", "/usr/local")
        settings = RunnerSettings()
        assert settings.home == "/home/agent"
        assert settings.search_path == "/opt/bin:/usr/bin"
        assert settings.homebrew_prefix == "/usr/local"

    def test_empty_homebrew_prefix_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOMEBREW_PREFIX", "")
        assert RunnerSettings().homebrew_prefix == DEFAULT_HOMEBREW_PREFIX

    def test_commit_helper_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUNNER_COMMIT_HELPER", "bin/commit")
        assert RunnerSettings().commit_helper == "bin/commit"


class TestTmuxDetection:
    """Tests for tmux session detection."""

    @pytest.mark.parametrize(
        ("runner_tmux", "tmux", "expected"),
        [
            pytest.param(None, None, False, id="nothing_set"),
            pytest.param(None, "/tmp/tmux-1000/default,123,0", True, id="tmux_socket"),
            pytest.param("1", None, True, id="explicit_flag"),
            pytest.param("0", "/tmp/tmux-1000/default,123,0", False, id="flag_zero_overrides"),
            pytest.param("false", "/tmp/tmux-1000/default,123,0", False, id="flag_false_overrides"),
        ],
    )
    def test_in_tmux_session(
        self,
        monkeypatch: pytest.MonkeyPatch,
        runner_tmux: str | None,
        tmux: str | None,
        expected: bool,
    ) -> None:
        if runner_tmux is not None:
            monkeypatch.setenv("RUNNER_TMUX", runner_tmux)
        if tmux is not None:
            monkeypatch.setenv("TMUX", tmux)
        assert RunnerSettings().in_tmux_session is expected
