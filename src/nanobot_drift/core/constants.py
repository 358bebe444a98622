"""
Central constants and enumerations for Nanobot Drift.

This file is the single source of truth for round structure, scoring tables
and the enumerations shared by the simulation, renderer and host bridge.
"""

from enum import IntEnum, StrEnum

# =============================================================================
# Identity
# =============================================================================

GAME_ID_DEFAULT = "nanobot-drift"
VERSION = "1.0.0"
DEFAULT_SEED = 0x12345678
STARFIELD_SEED_MIX = 0x9E3779B9

# =============================================================================
# Round Structure
# =============================================================================

TOTAL_ROUNDS = 20
FINAL_ROUND_BEACON_MULT = 0.25
FINAL_ROUND_EMP_CHARGES = 1
EMP_BASE_COOLDOWN = 6.0
EMP_COOLDOWN_PER_ROUND = 2.0
BEACON_CHARGE_RATE = 0.125

METER_MAX = 100.0

# =============================================================================
# Enumerations
# =============================================================================


class ClumpType(StrEnum):
    DRIFTER = "drifter"
    SEEKER = "seeker"
    LATCHER = "latcher"


class Outcome(StrEnum):
    WIN = "win"
    LOSE = "lose"
    ABORT = "abort"


class ParticleKind(IntEnum):
    SPARK = 0
    DUST = 1
    THRUST = 2


# =============================================================================
# Per-tier / per-type tables
# =============================================================================
# Tier 2 is the largest clump; tier 0 is terminal and never splits.

TIER_RADIUS = {2: 38.0, 1: 26.0, 0: 16.0}

TIER_SCORE = {2: 120, 1: 60, 0: 30}
TYPE_SCORE_BONUS = {
    ClumpType.DRIFTER: 1.0,
    ClumpType.SEEKER: 1.15,
    ClumpType.LATCHER: 1.35,
}

TIER_BEACON = {2: 11.0, 1: 6.0, 0: 3.0}
TYPE_BEACON_BONUS = {
    ClumpType.DRIFTER: 1.0,
    ClumpType.SEEKER: 1.1,
    ClumpType.LATCHER: 1.25,
}

# Assimilation accrual per latched clump, per second
TYPE_ASSIMILATION_RATE = {
    ClumpType.DRIFTER: 1.8,
    ClumpType.SEEKER: 2.8,
    ClumpType.LATCHER: 4.2,
}
TIER_ASSIMILATION_MULT = {2: 1.35, 1: 1.0, 0: 0.75}

TYPE_SPEED_MULT = {
    ClumpType.DRIFTER: 1.0,
    ClumpType.SEEKER: 1.15,
    ClumpType.LATCHER: 1.2,
}

DEBRIS_COUNT = {2: 26, 1: 18, 0: 12}
