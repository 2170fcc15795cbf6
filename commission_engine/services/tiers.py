"""
Tier crossing arithmetic shared by consultant bonuses and manager milestones.

A tier of size N is crossed every time the cumulative count reaches a
multiple of N. Everything here is pure integer math.
"""

from commission_engine.schemas.commission import NextMilestone
from commission_engine.schemas.establishment import MILESTONE_THRESHOLDS


def crossed_tiers(prior: int, increment: int, interval: int) -> int:
    """Number of tier boundaries crossed going from prior to prior + increment.

    Args:
        prior: Cumulative count before this event
        increment: Count added by this event
        interval: Tier size (>= 1)

    Returns:
        floor((prior + increment) / interval) - floor(prior / interval)
    """
    return (prior + increment) // interval - prior // interval


def units_to_next_tier(cumulative: int, interval: int) -> int:
    """Units still missing for the next tier (0 when sitting on a boundary)."""
    remaining = interval - cumulative % interval
    if remaining == interval:
        return 0
    return remaining


def next_milestone(team_units: int) -> NextMilestone:
    """First milestone above team_units.

    Past the last fixed threshold the team cycles on the smallest one,
    so the target becomes the next multiple of it (0 remaining when the
    total sits exactly on a multiple).
    """
    for threshold in MILESTONE_THRESHOLDS:
        if team_units < threshold:
            return NextMilestone(threshold=threshold, remaining=threshold - team_units)

    cycle = MILESTONE_THRESHOLDS[0]
    target = -(-team_units // cycle) * cycle
    return NextMilestone(threshold=cycle, remaining=target - team_units)
