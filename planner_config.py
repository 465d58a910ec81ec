#!/usr/bin/env python3
"""
PLANNER CONFIGURATION
=====================

Booster rules and planner tunables for the wrapping solver.

The planner is greedy: each worker walks (BFS through wrappable space) to the
nearest unwrapped cell, grabbing boosters that lie close to its route and
spending them as soon as they pay off.

Strategy:
1. Wrap everything visible from the current pose
2. Spend charges that help right away (arms, beacons, clones)
3. Detour to nearby boosters
4. Walk to the nearest unwrapped cell (row-major tie-break)
5. Drill or teleport when plain walking cannot reach anything
"""

# ── Booster rules ───────────────────────────────────────────────────────
FAST_WHEELS_DURATION = 50   # moves with double step after activation
DRILL_DURATION = 30         # moves that may pass (and convert) obstacles

# ── Planner tunables ────────────────────────────────────────────────────
FAST_WHEELS_MIN_PATH = 6    # route length (cells) that justifies wheels
BOOSTER_DETOUR_RADIUS = 5   # BFS depth searched for nearby boosters
BEACON_MIN_SPACING = 50     # Manhattan distance between own beacons
CLONE_MIN_SEPARATION = 2    # unwrapped cell this far from every worker -> clone
ROTATE_MIN_GAIN = 2         # new cells a rotation must wrap to be worth a round
DRILL_SHORTCUT_GAIN = 10    # drill route must save this many cells

PLANNER = "nearest_unwrapped"

PLANNER_INFO = {
    "nearest_unwrapped": {
        "name": "Greedy BFS wrapper",
        "description": "Nearest unwrapped cell + booster detours + drill/teleport fallbacks.",
        "recommended": True
    }
}
