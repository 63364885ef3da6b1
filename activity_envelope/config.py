"""
Envelope Configuration

Phase durations and retrigger behavior for an ActivityEnvelope, validated
with pydantic so degenerate envelopes fail at construction instead of
dividing by zero while interpolating, or never finishing a phase.
"""

import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field


ENV_PREFIX = "ACTIVITY_ENVELOPE_"


class RetriggerPolicy(str, Enum):
    """How an attack that starts partway up (after a release retrigger) behaves."""
    FIXED_RATE = "fixed_rate"  # Same slope every time, shorter rise when retriggered
    CONSTANT_DURATION = "constant_duration"  # Same rise time every time, slope varies


class EnvelopeConfig(BaseModel):
    """
    Durations and retrigger policy for an activity envelope.

    Unlike a sound-design ADSR, sustain is a duration rather than a level:
    it is the window during which new triggers hold the envelope at full
    activity instead of restarting it.

    Example:
        # Snappy keypress indicator
        config = EnvelopeConfig(attack_ms=80, sustain_ms=400, release_ms=1200)

        # Every attack takes 80ms even when retriggered mid-release
        config = EnvelopeConfig(
            attack_ms=80,
            retrigger_policy=RetriggerPolicy.CONSTANT_DURATION,
        )
    """
    model_config = ConfigDict(frozen=True)

    attack_ms: float = Field(
        default=500.0,
        gt=0.0,
        allow_inf_nan=False,
        description="Time for a full 0 -> 1 rise, in milliseconds"
    )
    sustain_ms: float = Field(
        default=1000.0,
        gt=0.0,
        allow_inf_nan=False,
        description="How long activity holds at 1 after the last trigger, in milliseconds"
    )
    release_ms: float = Field(
        default=2000.0,
        gt=0.0,
        allow_inf_nan=False,
        description="Time for a full 1 -> 0 decay, in milliseconds"
    )
    retrigger_policy: RetriggerPolicy = Field(
        default=RetriggerPolicy.FIXED_RATE,
        description="Attack behavior when retriggered during release"
    )

    @property
    def constant_attack_duration(self) -> bool:
        """True when every attack takes attack_ms regardless of its start value."""
        return self.retrigger_policy == RetriggerPolicy.CONSTANT_DURATION

    @property
    def cycle_ms(self) -> float:
        """Length of an uninterrupted inactive -> inactive cycle."""
        return self.attack_ms + self.sustain_ms + self.release_ms

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
        dotenv_path: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "EnvelopeConfig":
        """
        Build a config from environment variables.

        Recognized variables (with the default prefix):
            ACTIVITY_ENVELOPE_ATTACK_MS
            ACTIVITY_ENVELOPE_SUSTAIN_MS
            ACTIVITY_ENVELOPE_RELEASE_MS
            ACTIVITY_ENVELOPE_RETRIGGER_POLICY  (fixed_rate | constant_duration)

        Unset variables fall back to the field defaults. When environ is not
        given, os.environ is read on top of a .env file (dotenv_path, or the
        nearest one above the working directory). os.environ is not modified.

        Non-None entries of overrides (keyed by field name) replace the
        environment values before validation, so an invalid variable that
        is overridden never reaches the model.
        """
        if environ is None:
            environ = dict(os.environ)
            if dotenv:
                file_values = dotenv_values(dotenv_path or find_dotenv(usecwd=True))
                environ = {
                    **{k: v for k, v in file_values.items() if v is not None},
                    **environ,
                }

        values: Dict[str, Any] = {}
        for name in ("attack_ms", "sustain_ms", "release_ms", "retrigger_policy"):
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw is not None and raw.strip():
                values[name] = raw.strip()
        if overrides:
            values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def __repr__(self) -> str:
        return (
            f"EnvelopeConfig(A={self.attack_ms:g}ms, S={self.sustain_ms:g}ms, "
            f"R={self.release_ms:g}ms, {self.retrigger_policy.value})"
        )


DEFAULT_CONFIG = EnvelopeConfig()
