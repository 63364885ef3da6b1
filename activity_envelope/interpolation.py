"""
Value formulas for the time-driven envelope phases.

All times are milliseconds. Only the fixed-rate attack is clamped; the
constant-duration attack and the release ramp run past their endpoints if
sampled after the phase should already have advanced.
"""


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation from a to b, unclamped."""
    return a + (b - a) * t


def fixed_rate_attack(start: float, elapsed_ms: float, attack_ms: float) -> float:
    """Rise at the full-swing rate from start, capped at 1."""
    return min(1.0, start + elapsed_ms / attack_ms)


def constant_duration_attack(start: float, elapsed_ms: float, attack_ms: float) -> float:
    """Rise from start to 1 over exactly attack_ms."""
    return lerp(start, 1.0, elapsed_ms / attack_ms)


def release_level(elapsed_ms: float, release_ms: float) -> float:
    """Decay from 1 at the full-swing rate."""
    return 1.0 - elapsed_ms / release_ms
