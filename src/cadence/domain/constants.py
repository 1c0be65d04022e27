"""Centralized constants for cadence.

All scheduling numbers and storage defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_DAY = 86_400_000

# ---------- Ease factor ----------
EF_DEFAULT = 2.3
EF_MIN = 1.3
EF_MAX = 3.0
EF_PRECISION = 2  # decimal places kept after each adjustment

# Per-grade ease deltas (Again, Hard, Good, Easy)
EF_DELTA_AGAIN = -0.20
EF_DELTA_HARD = -0.05
EF_DELTA_GOOD = 0.02
EF_DELTA_EASY = 0.08

# ---------- Intervals (days) ----------
FIRST_INTERVAL = 1
SECOND_INTERVAL_HARD = 2
SECOND_INTERVAL = 3

# Applied from the third consecutive success onward
MULTIPLIER_HARD = 1.15
MULTIPLIER_GOOD = 1.35
MULTIPLIER_EASY = 1.7

# ---------- Learn sessions ----------
DEFAULT_SESSION_CAP = 50

# ---------- Storage ----------
DECK_KEY_PREFIX = "deck:"
SESSION_KEY_PREFIX = "session:"
SNAPSHOT_VERSION = 1
