"""
Emitter configuration.

Values come from keyword arguments, an ``EmitterConfig`` instance, or the
environment via ``EmitterConfig.from_env()``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .events.registry import DEFAULT_MAX_LISTENERS

ENV_PREFIX = "GOOD_EMITTER_"

_TRUTHY = {"1", "true", "yes", "on"}


class EmitterConfig(BaseModel):
    """Settings shared by an emitter's global registry and its channels."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_listeners: int = Field(
        default=DEFAULT_MAX_LISTENERS,
        ge=0,
        description="Per-event listener count above which a leak advisory is logged (0 = unlimited)",
    )
    debug: bool = Field(
        default=False,
        description="Log listener failures with tracebacks",
    )
    event_trace: bool = Field(
        default=False,
        description="Print a trace line for every emit",
    )
    trace_verbosity: int = Field(
        default=1,
        ge=0,
        le=2,
        description="Trace detail: 0=minimal, 1=normal, 2=verbose",
    )
    trace_use_rich: bool = Field(
        default=True,
        description="Format traces with Rich instead of plain log lines",
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> EmitterConfig:
        """Build a config from ``GOOD_EMITTER_*`` environment variables.

        Recognised variables: ``GOOD_EMITTER_MAX_LISTENERS``,
        ``GOOD_EMITTER_DEBUG``, ``GOOD_EMITTER_TRACE``,
        ``GOOD_EMITTER_TRACE_VERBOSITY``. Explicit ``overrides`` win.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if (raw := env.get(f"{ENV_PREFIX}MAX_LISTENERS")) is not None:
            values["max_listeners"] = raw
        if (raw := env.get(f"{ENV_PREFIX}DEBUG")) is not None:
            values["debug"] = raw.strip().lower() in _TRUTHY
        if (raw := env.get(f"{ENV_PREFIX}TRACE")) is not None:
            values["event_trace"] = raw.strip().lower() in _TRUTHY
        if (raw := env.get(f"{ENV_PREFIX}TRACE_VERBOSITY")) is not None:
            values["trace_verbosity"] = raw

        values.update(overrides)
        return cls.model_validate(values)
