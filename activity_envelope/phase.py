"""
Envelope phases.
"""

from enum import Enum


class EnvelopePhase(str, Enum):
    """The four states of an activity envelope, in cycle order."""
    INACTIVE = "inactive"  # no activity
    ATTACK = "attack"  # ramping up
    SUSTAIN = "sustain"  # holding steady
    RELEASE = "release"  # ramping down
