#!/usr/bin/env python3
"""
conftest.py - Shared pytest configuration and fixtures for activity_envelope

Provides:
- Marker registration (unit/integration/slow)
- Virtual-time fixtures so envelope tests never wait on the wall clock
- An envelope factory wired to the virtual timeline
- A recording subscriber for asserting notification sequences
"""
from typing import Callable, List, Tuple

import pytest

from activity_envelope import (
    ActivityEnvelope,
    EnvelopeConfig,
    EnvelopePhase,
    RetriggerPolicy,
    VirtualScheduler,
)


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config, items):
    """
    Auto-mark tests by location

    - tests/unit -> unit
    - tests that touch real timers -> slow
    """
    for item in items:
        path = str(item.fspath)
        if "/tests/unit/" in path and not item.get_closest_marker('unit'):
            item.add_marker(pytest.mark.unit)
        if 'real_timers' in item.fixturenames and not item.get_closest_marker('slow'):
            item.add_marker(pytest.mark.slow)


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--skip-slow",
        action="store_true",
        default=False,
        help="Skip tests that wait on real timers"
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings"""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated, virtual time)")
    config.addinivalue_line("markers", "integration: Integration tests (multiple components)")
    config.addinivalue_line("markers", "slow: Tests that wait on real timers")


def pytest_runtest_setup(item):
    if item.get_closest_marker('slow') and item.config.getoption("--skip-slow"):
        pytest.skip("--skip-slow specified")


# ============================================================================
# Virtual Time
# ============================================================================

@pytest.fixture(scope="function")
def timeline() -> VirtualScheduler:
    """Provide a VirtualScheduler starting at t=0 (clock and scheduler in one)"""
    return VirtualScheduler()


@pytest.fixture(scope="function")
def real_timers():
    """Marker fixture for tests that use threading/asyncio timers"""
    return True


# ============================================================================
# Envelopes
# ============================================================================

@pytest.fixture(scope="function")
def make_envelope(timeline) -> Callable[..., ActivityEnvelope]:
    """
    Factory for envelopes bound to the virtual timeline.

    Example:
        def test_something(make_envelope, timeline):
            env = make_envelope(attack_ms=100, sustain_ms=200, release_ms=300)
    """
    created: List[ActivityEnvelope] = []

    def _make(
        attack_ms: float = 100.0,
        sustain_ms: float = 200.0,
        release_ms: float = 300.0,
        retrigger_policy: RetriggerPolicy = RetriggerPolicy.FIXED_RATE,
    ) -> ActivityEnvelope:
        config = EnvelopeConfig(
            attack_ms=attack_ms,
            sustain_ms=sustain_ms,
            release_ms=release_ms,
            retrigger_policy=retrigger_policy,
        )
        envelope = ActivityEnvelope(config, clock=timeline, scheduler=timeline)
        created.append(envelope)
        return envelope

    yield _make

    for envelope in created:
        envelope.teardown()


@pytest.fixture(scope="function")
def envelope(make_envelope) -> ActivityEnvelope:
    """Provide a 100/200/300ms fixed-rate envelope on virtual time"""
    return make_envelope()


@pytest.fixture(scope="function")
def phase_log(timeline) -> Tuple[List[Tuple[float, EnvelopePhase]], Callable]:
    """
    Provide (log, subscriber): the subscriber appends (virtual time, phase)
    to log on every notification.
    """
    log: List[Tuple[float, EnvelopePhase]] = []

    def record(phase: EnvelopePhase):
        log.append((timeline.now(), phase))

    return log, record
