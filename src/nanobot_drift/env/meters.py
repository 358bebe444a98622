from enum import StrEnum, auto

from nanobot_drift.core.constants import (
    METER_MAX,
    TIER_ASSIMILATION_MULT,
    TYPE_ASSIMILATION_RATE,
)
from nanobot_drift.core.mathutil import clamp
from nanobot_drift.env.entities import Clump
from nanobot_drift.env.state import SimState


def assimilation_rate(latched: list[Clump]) -> float:
    """Instantaneous accrual from every latched clump, per second."""
    return sum(TYPE_ASSIMILATION_RATE[c.type] * TIER_ASSIMILATION_MULT[c.tier] for c in latched)


def update_meters(state: SimState, dt: float) -> None:
    """
    Integrate assimilation for one tick.

    Latched clumps accrue; with nothing latched the meter recovers, and if
    the free swarm is crowded a small pressure is added on top of (not
    instead of) the recovery.
    """
    config = state.config
    meters = state.meters
    latched = state.latched_clumps()

    meters.assimilation += assimilation_rate(latched) * dt

    if not latched:
        meters.assimilation -= config.recovery_rate * dt
        if state.free_clump_count() > config.crowding_threshold:
            meters.assimilation += config.crowding_pressure * dt

    meters.assimilation = clamp(meters.assimilation, 0.0, METER_MAX)
    meters.max_assimilation = max(meters.max_assimilation, meters.assimilation)


class Verdict(StrEnum):
    CONTINUE = auto()
    ROUND_COMPLETE = auto()
    WIN = auto()
    LOSE = auto()


def evaluate(state: SimState) -> Verdict:
    """
    Decide what the tick's meters mean for the run.

    Assimilation is checked first: a full assimilation meter loses even if the
    beacon filled in the same tick.

    Returns:
        The verdict for this tick.
    """
    meters = state.meters
    if meters.assimilation >= METER_MAX:
        return Verdict.LOSE
    if meters.beacon >= METER_MAX:
        if state.round_config.is_final:
            return Verdict.WIN
        return Verdict.ROUND_COMPLETE
    return Verdict.CONTINUE
