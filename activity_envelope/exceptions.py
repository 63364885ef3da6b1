"""
Custom exceptions for the activity envelope.
"""


class ActivityEnvelopeError(Exception):
    """Base exception for all activity envelope errors."""
    pass


class EnvelopeStateError(ActivityEnvelopeError):
    """Raised when the envelope reaches a state its transition rules forbid."""
    pass


class EnvelopeClosedError(ActivityEnvelopeError):
    """Raised when a torn-down envelope is activated or subscribed to."""
    pass
