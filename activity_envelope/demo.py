#!/usr/bin/env python3
"""
Activity Envelope Demo

Replays a trigger script against an envelope on virtual time and prints the
sampled activity level, the way a renderer polling once per frame would
see it.

Usage:
    python -m activity_envelope.demo --triggers 0,450,900

    python -m activity_envelope.demo --attack 100 --sustain 200 --release 300 \\
        --triggers 0,350 --step 25 --until 1200 --policy constant_duration
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from activity_envelope.config import EnvelopeConfig, RetriggerPolicy
from activity_envelope.envelope import ActivityEnvelope
from activity_envelope.events import PhaseChange
from activity_envelope.phase import EnvelopePhase
from activity_envelope.scheduling import VirtualScheduler

logger = logging.getLogger(__name__)

BAR_WIDTH = 40
MAX_SAMPLES = 100_000


@dataclass
class Sample:
    """One polled reading of the envelope."""
    time_ms: float
    phase: EnvelopePhase
    value: float

    def render(self, width: int = BAR_WIDTH) -> str:
        filled = int(round(max(0.0, min(1.0, self.value)) * width))
        bar = "#" * filled + " " * (width - filled)
        return f"{self.time_ms:8.1f}ms  {self.phase.value:<8}  {self.value:6.3f}  |{bar}|"


def parse_triggers(text: str) -> List[float]:
    """Parse a comma-separated list of trigger times in milliseconds."""
    if not text.strip():
        return []
    try:
        times = sorted(float(part) for part in text.split(",") if part.strip())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid trigger list {text!r}: {e}")
    if times and times[0] < 0:
        raise argparse.ArgumentTypeError("Trigger times must be >= 0")
    return times


def run_demo(
    config: EnvelopeConfig,
    triggers: Sequence[float],
    step_ms: float = 50.0,
    until_ms: Optional[float] = None,
) -> Tuple[List[Sample], List[PhaseChange]]:
    """
    Drive an envelope through the given trigger times.

    The envelope is sampled every step_ms from 0 to until_ms (default: one
    full cycle past the last trigger). Triggers landing on a sample time
    are applied before that sample is taken. Raises ValueError when the
    trace would exceed MAX_SAMPLES samples.

    Returns:
        (samples, phase changes in order)
    """
    if not step_ms > 0:
        raise ValueError("step_ms must be > 0")
    if until_ms is None:
        until_ms = (max(triggers) if triggers else 0.0) + config.cycle_ms
    sample_count = until_ms // step_ms + 1
    if not sample_count <= MAX_SAMPLES:
        raise ValueError(
            f"step_ms={step_ms:g} over {until_ms:g}ms would take {sample_count:g} "
            f"samples (max {MAX_SAMPLES})"
        )

    timeline = VirtualScheduler()
    envelope = ActivityEnvelope(config, clock=timeline, scheduler=timeline)
    pending = sorted(triggers)
    samples: List[Sample] = []

    with envelope:
        tick = 0
        t = 0.0
        while t <= until_ms:
            while pending and pending[0] <= t:
                timeline.advance_to(pending.pop(0))
                envelope.activate()
            timeline.advance_to(t)
            samples.append(Sample(time_ms=t, phase=envelope.phase, value=envelope.value()))
            tick += 1
            t = tick * step_ms
        changes = envelope.notifier.get_history()

    logger.debug(f"Demo produced {len(samples)} samples, {len(changes)} phase changes")
    return samples, changes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay triggers against an activity envelope and print the level trace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--attack", type=float, default=None, help="Attack duration (ms)")
    parser.add_argument("--sustain", type=float, default=None, help="Sustain duration (ms)")
    parser.add_argument("--release", type=float, default=None, help="Release duration (ms)")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in RetriggerPolicy],
        default=None,
        help="Retrigger policy (default: fixed_rate, or ACTIVITY_ENVELOPE_RETRIGGER_POLICY)",
    )
    parser.add_argument(
        "--triggers",
        type=parse_triggers,
        default=[0.0],
        help="Comma-separated trigger times in ms (default: 0)",
    )
    parser.add_argument("--step", type=float, default=50.0, help="Sampling interval (ms)")
    parser.add_argument("--until", type=float, default=None, help="Last sample time (ms)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    overrides = {
        "attack_ms": args.attack,
        "sustain_ms": args.sustain,
        "release_ms": args.release,
        "retrigger_policy": args.policy,
    }
    try:
        config = EnvelopeConfig.from_env(overrides=overrides)
        samples, changes = run_demo(config, args.triggers, args.step, args.until)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print("=" * 72)
    print(f"ACTIVITY ENVELOPE | {config!r}")
    print(f"Triggers: {', '.join(f'{t:g}ms' for t in args.triggers) or 'none'}")
    print("=" * 72)
    for sample in samples:
        print(sample.render())
    print("-" * 72)
    for change in changes:
        print(f"{change.timestamp:8.1f}ms  {change.previous.value} -> {change.phase.value} ({change.cause})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
