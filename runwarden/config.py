# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Runner configuration with environment variable support."""
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from runwarden.core.constants import DEFAULT_HOMEBREW_PREFIX


SummaryStyle = Literal["compact", "minimal", "verbose"]


class RunnerSettings(BaseSettings):
    """Runner configuration read from the environment.

    Runner-specific settings use the RUNNER_ prefix (e.g. RUNNER_DEBUG=1).
    HOME, PATH, TMUX and HOMEBREW_PREFIX are read under their usual names
    and only feed trash discovery and tmux detection.
    """

    model_config = SettingsConfigDict(
        env_prefix="RUNNER_",
        extra="ignore",
        populate_by_name=True,
    )

    debug: bool = Field(
        default=False,
        description="Emit debug diagnostics to stderr",
    )
    summary_style: SummaryStyle = Field(
        default="compact",
        description="Completion summary verbosity",
    )
    consent: bool = Field(
        default=False,
        validation_alias="RUNNER_THE_USER_GAVE_ME_CONSENT",
        description="User approved a gated git operation",
    )
    tmux_flag: str | None = Field(
        default=None,
        validation_alias="RUNNER_TMUX",
        description="Explicit marker that the runner is inside a tmux session",
    )
    tmux_env: str | None = Field(
        default=None,
        validation_alias="TMUX",
    )
    home: str | None = Field(
        default=None,
        validation_alias="HOME",
    )
    search_path: str = Field(
        default="",
        validation_alias="PATH",
    )
    homebrew_prefix: str = Field(
        default=DEFAULT_HOMEBREW_PREFIX,
        validation_alias="HOMEBREW_PREFIX",
    )

    commit_helper: str = Field(
        default="./scripts/committer",
        description="Command agents must use instead of direct git add/commit",
    )

    @field_validator("debug", "consent", mode="before")
    @classmethod
    def _only_one_enables(cls, value: Any) -> bool:
        """Only the literal "1" (or a real bool) switches a toggle on."""
        if isinstance(value, bool):
            return value
        return str(value).strip() == "1"

    @field_validator("summary_style", mode="before")
    @classmethod
    def _normalize_summary_style(cls, value: Any) -> str:
        """Unknown styles (including the legacy "short") fall back to compact."""
        if value is None:
            return "compact"
        normalized = str(value).strip().lower()
        if normalized in ("minimal", "verbose"):
            return normalized
        return "compact"

    @field_validator("homebrew_prefix", mode="before")
    @classmethod
    def _default_empty_prefix(cls, value: Any) -> str:
        if not value:
            return DEFAULT_HOMEBREW_PREFIX
        return str(value)

    @property
    def in_tmux_session(self) -> bool:
        """Whether the runner is already executing inside a tmux session."""
        if self.tmux_flag:
            return self.tmux_flag != "0" and self.tmux_flag.lower() != "false"
        return bool(self.tmux_env)

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "WARNING"
