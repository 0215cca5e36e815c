"""
Lottery service: pick waiting entrants to invite

Pure computation on an EntrantTracker, no database access. The caller
mirrors the invited entrants to storage.
"""
import random
from typing import Hashable, List, Optional

from core.entrant_status import EntrantStatus
from core.entrant_tracker import EntrantTracker


def draw_lottery(
    tracker: EntrantTracker,
    slots: int,
    rng: Optional[random.Random] = None
) -> List[Hashable]:
    """
    Draw up to `slots` entrants from the waiting list and invite them

    Rules:
    - only entrants currently WAITING take part
    - sampling is without replacement
    - if fewer entrants are waiting than slots, all of them are invited

    Parameters:
        tracker: the event's tracker (mutated: winners become INVITED)
        slots: number of invitations to hand out
        rng: random source, pass a seeded Random for reproducible draws

    Returns:
        the invited entrants in draw order

    Raises:
        ValueError: slots is negative
    """
    if slots < 0:
        raise ValueError(f"slots must be >= 0, got {slots}")

    rng = rng or random.Random()
    waiting = tracker.get_entrants(EntrantStatus.WAITING)
    winners = rng.sample(waiting, min(slots, len(waiting)))

    for entrant in winners:
        tracker.invite(entrant)

    return winners
