"""
Round context helpers: pistol rounds and attack/defense side.

These assume the standard competitive format of 12 rounds per half with
sides swapping every round in overtime (from round 24). Matches with other
formats (custom games, shortened modes) get approximate answers; nothing
here is used at import time.
"""
from typing import Optional

ROUNDS_PER_HALF = 12
REGULATION_ROUNDS = 2 * ROUNDS_PER_HALF

ATTACK = "Attack"
DEFENSE = "Defense"

# Red starts on attack in the source data
FIRST_HALF_ATTACKER = "Red"


def is_pistol_round(round_num: int) -> bool:
    """First round of each regulation half (0-indexed rounds 0 and 12)."""
    return round_num in (0, ROUNDS_PER_HALF)


def is_overtime(round_num: int) -> bool:
    return round_num >= REGULATION_ROUNDS


def _plays_first_half_sides(round_num: int) -> bool:
    if round_num < ROUNDS_PER_HALF:
        return True
    if round_num < REGULATION_ROUNDS:
        return False
    # Overtime alternates every round, starting with first-half sides
    return (round_num - REGULATION_ROUNDS) % 2 == 0


def side_for_round(team_side: Optional[str], round_num: int) -> Optional[str]:
    """
    Whether a team (Red or Blue) was attacking or defending in a round.

    Returns:
        "Attack", "Defense", or None when team_side is not Red/Blue
    """
    if team_side not in ("Red", "Blue"):
        return None
    starts_attacking = team_side == FIRST_HALF_ATTACKER
    return ATTACK if starts_attacking == _plays_first_half_sides(round_num) else DEFENSE
