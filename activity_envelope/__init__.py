"""
Activity Envelope: a timed activity indicator for visualizations

Turns discrete triggers (keypresses, clicks, messages) into a continuously
queryable activity level that rises on triggers and decays over time.
Modeled on an ADSR envelope, except that sustain is a duration during
which further triggers hold the level at its peak.

This package provides:
- ActivityEnvelope: the inactive/attack/sustain/release state machine
- EnvelopeConfig: validated durations and retrigger policy
- Clocks and schedulers for threaded, asyncio and virtual-time hosts
- Phase-change notification with isolated subscribers

Example:
    from activity_envelope import ActivityEnvelope, EnvelopeConfig, VirtualScheduler

    timeline = VirtualScheduler()
    envelope = ActivityEnvelope(
        EnvelopeConfig(attack_ms=100, sustain_ms=200, release_ms=300),
        clock=timeline,
        scheduler=timeline,
    )
    envelope.subscribe(lambda phase: print(phase.value))

    envelope.activate()          # prints "attack"
    timeline.advance(50)
    level = envelope.value()     # 0.5
"""

from activity_envelope.phase import EnvelopePhase
from activity_envelope.config import (
    EnvelopeConfig,
    RetriggerPolicy,
    DEFAULT_CONFIG,
    ENV_PREFIX,
)
from activity_envelope.envelope import ActivityEnvelope
from activity_envelope.events import (
    PhaseChange,
    PhaseNotifier,
    PhaseSubscriber,
    logging_subscriber,
    console_subscriber,
)
from activity_envelope.exceptions import (
    ActivityEnvelopeError,
    EnvelopeStateError,
    EnvelopeClosedError,
)
from activity_envelope.interpolation import lerp
from activity_envelope.scheduling import (
    Clock,
    Scheduler,
    MonotonicClock,
    ThreadingScheduler,
    LoopClock,
    AsyncioScheduler,
    VirtualScheduler,
)

__all__ = [
    # Envelope
    "ActivityEnvelope",
    "EnvelopePhase",
    # Config
    "EnvelopeConfig",
    "RetriggerPolicy",
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    # Events
    "PhaseChange",
    "PhaseNotifier",
    "PhaseSubscriber",
    "logging_subscriber",
    "console_subscriber",
    # Errors
    "ActivityEnvelopeError",
    "EnvelopeStateError",
    "EnvelopeClosedError",
    # Scheduling
    "Clock",
    "Scheduler",
    "MonotonicClock",
    "ThreadingScheduler",
    "LoopClock",
    "AsyncioScheduler",
    "VirtualScheduler",
    "lerp",
]

__version__ = "1.0.0"
