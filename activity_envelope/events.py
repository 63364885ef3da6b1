"""
Phase-Change Notification

Push side of the envelope: subscribers are plain callables that receive
the new EnvelopePhase. Renderers typically map phases to CSS classes or
shader uniforms and poll ActivityEnvelope.value() for the level.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional
import logging

from activity_envelope.phase import EnvelopePhase

logger = logging.getLogger(__name__)


# Type alias for phase subscribers
PhaseSubscriber = Callable[[EnvelopePhase], None]


@dataclass
class PhaseChange:
    """
    Record of a single phase transition.

    cause is "activate" for transitions made by activate(), "advance" for
    the scheduled automatic ones.
    """
    phase: EnvelopePhase
    previous: EnvelopePhase
    timestamp: float
    cause: str = "advance"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "phase": self.phase.value,
            "previous": self.previous.value,
            "timestamp": self.timestamp,
            "cause": self.cause,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PhaseChange":
        """Create from dictionary."""
        return cls(
            phase=EnvelopePhase(d["phase"]),
            previous=EnvelopePhase(d["previous"]),
            timestamp=d["timestamp"],
            cause=d.get("cause", "advance"),
        )


class PhaseNotifier:
    """
    Ordered, append-only subscriber list with isolated dispatch.

    Registration order is notification order. Registering the same
    callable twice is allowed and it is called twice. A subscriber that
    raises is logged and skipped; the rest are still notified.

    Example:
        notifier = PhaseNotifier()
        notifier.subscribe(lambda phase: print(phase.value))
        notifier.notify(PhaseChange(EnvelopePhase.ATTACK, EnvelopePhase.INACTIVE, 0.0))
    """

    def __init__(self, max_history: int = 1000):
        self.subscribers: List[PhaseSubscriber] = []
        self._history: List[PhaseChange] = []
        self._max_history = max_history  # Prevent unbounded growth

    def subscribe(self, subscriber: PhaseSubscriber) -> None:
        """Register a subscriber."""
        self.subscribers.append(subscriber)

    def unsubscribe(self, subscriber: PhaseSubscriber) -> bool:
        """Remove the earliest registration of subscriber. Returns True if one was removed."""
        try:
            self.subscribers.remove(subscriber)
        except ValueError:
            return False
        return True

    def clear(self):
        """Drop every subscriber."""
        self.subscribers.clear()

    def notify(self, change: PhaseChange) -> int:
        """
        Deliver change.phase to every subscriber, in registration order.

        Returns:
            Number of subscribers that raised
        """
        self._history.append(change)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        failures = 0
        # Snapshot so subscribers may (un)subscribe during dispatch
        for subscriber in list(self.subscribers):
            try:
                subscriber(change.phase)
            except Exception as e:
                failures += 1
                logger.warning(
                    f"Phase subscriber {_describe(subscriber)} failed on "
                    f"{change.phase.value}: {e}",
                    exc_info=True,
                )
        return failures

    def get_history(self, phase: Optional[EnvelopePhase] = None) -> List[PhaseChange]:
        """
        Get recorded transitions, optionally filtered to those entering phase.

        Returns:
            List of changes in chronological order
        """
        if phase is None:
            return list(self._history)
        return [c for c in self._history if c.phase == phase]

    def clear_history(self):
        """Clear the transition history."""
        self._history.clear()


def _describe(subscriber: Any) -> str:
    return getattr(subscriber, "__qualname__", None) or repr(subscriber)


def logging_subscriber(phase: EnvelopePhase):
    """
    Subscriber that logs each phase at DEBUG.

    Example:
        envelope.subscribe(logging_subscriber)
    """
    logger.debug(f"[ENVELOPE] {phase.value}")


def console_subscriber(phase: EnvelopePhase):
    """
    Subscriber that prints each phase.

    Useful for development and debugging.
    """
    print(f"[ENVELOPE] {phase.value}")

