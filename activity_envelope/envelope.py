"""
Activity Envelope

An activity monitor for driving visualizations from discrete impulses
(keypresses, clicks, messages). It supports both pull and push models:
value() can be polled for the current activity level, and subscribers are
told about every phase change.

The design follows the classic ADSR envelope with one key difference:
sustain is a fixed *duration*, not a level. The envelope monitors discrete
impulses rather than a held signal, so sustain models the window in which
a new impulse keeps activity at its peak instead of restarting the rise.

    inactive --activate--> attack --attack_ms--> sustain --sustain_ms--> release --release_ms--> inactive
                             ^                     |  ^                     |
                             |                     +--+ activate extends    |
                             +-------------------- activate ----------------+
"""

import logging
from typing import Any, Optional

from activity_envelope.config import EnvelopeConfig, RetriggerPolicy
from activity_envelope.events import PhaseChange, PhaseNotifier, PhaseSubscriber
from activity_envelope.exceptions import EnvelopeClosedError, EnvelopeStateError
from activity_envelope.interpolation import (
    constant_duration_attack,
    fixed_rate_attack,
    release_level,
)
from activity_envelope.phase import EnvelopePhase
from activity_envelope.scheduling import (
    Clock,
    MonotonicClock,
    Scheduler,
    ThreadingScheduler,
)

logger = logging.getLogger(__name__)

NEVER = float("-inf")


class ActivityEnvelope:
    """
    Attack/sustain/release state machine producing an activity level.

    Retrigger behavior (activate() while not inactive):
    - attack: ignored; an attack in progress cannot be retriggered
    - sustain: the hold is extended to sustain_ms from now
    - release: a new attack starts from the current level, so the value
      never jumps

    Time and timers come from the injected clock and scheduler. Without
    them the envelope uses time.monotonic() and threading.Timer; see
    ThreadingScheduler for the locking that implies.

    Example:
        timeline = VirtualScheduler()
        envelope = ActivityEnvelope(
            EnvelopeConfig(attack_ms=100, sustain_ms=200, release_ms=300),
            clock=timeline,
            scheduler=timeline,
        )
        envelope.subscribe(lambda phase: print(phase.value))
        envelope.activate()      # attack
        timeline.advance(100)    # sustain
        envelope.value()         # 1.0
    """

    def __init__(
        self,
        config: Optional[EnvelopeConfig] = None,
        *,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        notifier: Optional[PhaseNotifier] = None,
    ):
        self._config = config or EnvelopeConfig()
        self._clock = clock or MonotonicClock()
        self._scheduler = scheduler or ThreadingScheduler()
        self._notifier = notifier or PhaseNotifier()

        self._phase = EnvelopePhase.INACTIVE
        self._last_phase_change = NEVER
        self._value_at_retrigger = 0.0
        self._pending_handle: Any = None
        self._pending_token: Optional[object] = None
        self._closed = False

    @classmethod
    def create(
        cls,
        attack_ms: float = 500.0,
        sustain_ms: float = 1000.0,
        release_ms: float = 2000.0,
        retrigger_policy: RetriggerPolicy = RetriggerPolicy.FIXED_RATE,
        **kwargs,
    ) -> "ActivityEnvelope":
        """Build an envelope from plain durations instead of an EnvelopeConfig."""
        config = EnvelopeConfig(
            attack_ms=attack_ms,
            sustain_ms=sustain_ms,
            release_ms=release_ms,
            retrigger_policy=retrigger_policy,
        )
        return cls(config, **kwargs)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> EnvelopePhase:
        """The current phase of the envelope."""
        return self._phase

    @property
    def config(self) -> EnvelopeConfig:
        return self._config

    @property
    def notifier(self) -> PhaseNotifier:
        return self._notifier

    @property
    def last_phase_change(self) -> float:
        """Clock time of the last transition, -inf before the first one."""
        return self._last_phase_change

    @property
    def value_at_retrigger(self) -> float:
        return self._value_at_retrigger

    @property
    def has_pending_transition(self) -> bool:
        return self._pending_token is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._notifier.subscribers)

    def value(self) -> float:
        """
        The current activity level.

        0 while inactive, 1 throughout sustain, interpolated in attack and
        release from the time elapsed since the last phase change. Only the
        fixed-rate attack is clamped, so a sample taken after a transition
        was due (but before its timer ran) may fall outside [0, 1].
        """
        phase = self._phase
        if phase == EnvelopePhase.INACTIVE:
            return 0.0
        if phase == EnvelopePhase.SUSTAIN:
            return 1.0

        elapsed = self._clock.now() - self._last_phase_change
        if phase == EnvelopePhase.ATTACK:
            if self._config.constant_attack_duration:
                return constant_duration_attack(
                    self._value_at_retrigger, elapsed, self._config.attack_ms
                )
            return fixed_rate_attack(
                self._value_at_retrigger, elapsed, self._config.attack_ms
            )
        if phase == EnvelopePhase.RELEASE:
            return release_level(elapsed, self._config.release_ms)
        raise EnvelopeStateError(f"Unrecognized phase: {phase!r}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def activate(self):
        """
        Trigger an attack phase, or extend the sustain phase if already active.

        Raises:
            EnvelopeClosedError: if the envelope has been torn down
        """
        if self._closed:
            raise EnvelopeClosedError("Cannot activate a torn-down envelope")

        phase = self._phase
        if phase == EnvelopePhase.INACTIVE:
            self._value_at_retrigger = 0.0
            self._enter(EnvelopePhase.ATTACK, self._config.attack_ms, cause="activate")
        elif phase == EnvelopePhase.ATTACK:
            # An attack in progress cannot be retriggered
            return
        elif phase == EnvelopePhase.SUSTAIN:
            self._schedule_phase_change(self._config.sustain_ms)
            logger.debug(f"Sustain extended by {self._config.sustain_ms:g}ms")
        elif phase == EnvelopePhase.RELEASE:
            # Capture before the phase flips so the level is continuous
            self._value_at_retrigger = self.value()
            self._enter(EnvelopePhase.ATTACK, self._config.attack_ms, cause="activate")
        else:
            raise EnvelopeStateError(f"Unrecognized phase: {phase!r}")

    def subscribe(self, subscriber: PhaseSubscriber) -> None:
        """
        Subscribe to phase change events.

        Subscribers are called synchronously, in registration order, with
        the new phase. Registering the same callable twice calls it twice.
        """
        if self._closed:
            raise EnvelopeClosedError("Cannot subscribe to a torn-down envelope")
        self._notifier.subscribe(subscriber)

    def unsubscribe(self, subscriber: PhaseSubscriber) -> bool:
        """Remove the earliest registration of subscriber. Returns True if one was removed."""
        return self._notifier.unsubscribe(subscriber)

    def teardown(self):
        """
        Cancel any pending transition and release subscribers.

        No notification is sent. Safe to call more than once.
        """
        if self._closed:
            return
        self._cancel_pending()
        self._notifier.clear()
        self._closed = True
        logger.debug(f"Envelope torn down in {self._phase.value}")

    close = teardown

    def __enter__(self) -> "ActivityEnvelope":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _schedule_phase_change(self, after_ms: float):
        self._cancel_pending()
        token = object()
        self._pending_token = token
        self._pending_handle = self._scheduler.arm(
            after_ms, lambda: self._on_phase_timer(token)
        )

    def _cancel_pending(self):
        if self._pending_token is not None:
            self._scheduler.cancel(self._pending_handle)
        self._pending_handle = None
        self._pending_token = None

    def _on_phase_timer(self, token: object):
        # A threaded timer can run after being cancelled and replaced
        if token is not self._pending_token:
            logger.debug("Ignoring superseded phase timer")
            return
        self._pending_handle = None
        self._pending_token = None
        self._phase_change()

    def _phase_change(self):
        self._value_at_retrigger = 0.0
        phase = self._phase
        if phase == EnvelopePhase.ATTACK:
            self._enter(EnvelopePhase.SUSTAIN, self._config.sustain_ms)
        elif phase == EnvelopePhase.SUSTAIN:
            self._enter(EnvelopePhase.RELEASE, self._config.release_ms)
        elif phase == EnvelopePhase.RELEASE:
            self._enter(EnvelopePhase.INACTIVE, None)
        elif phase == EnvelopePhase.INACTIVE:
            raise EnvelopeStateError("Phase should not change while inactive")
        else:
            raise EnvelopeStateError(f"Unrecognized phase: {phase!r}")

    def _enter(self, phase: EnvelopePhase, next_after_ms: Optional[float], cause: str = "advance"):
        previous = self._phase
        self._phase = phase
        self._last_phase_change = self._clock.now()
        # Armed before notifying; a subscriber calling activate() replaces it
        if next_after_ms is not None:
            self._schedule_phase_change(next_after_ms)
        logger.debug(f"Envelope phase {previous.value} -> {phase.value} ({cause})")
        self._notifier.notify(
            PhaseChange(
                phase=phase,
                previous=previous,
                timestamp=self._last_phase_change,
                cause=cause,
            )
        )

    def __repr__(self) -> str:
        return f"ActivityEnvelope({self._phase.value}, {self._config!r})"
