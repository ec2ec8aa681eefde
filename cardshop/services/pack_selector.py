"""
Card pool selection for a single pack.

Pure functions over in-memory card lists. All randomness comes from the
`random.Random` passed in, so a seeded generator makes selection
reproducible.

Selection order:
1. Roll every insert pool independently (hit iff randrange(N) == 0).
2. Fill the remaining slots with distinct base cards.
3. Pick one unused card from each pool that hit. A pool with no unused
   card drops its slot.
4. Backfill dropped slots from unused base cards while any remain.
"""

import logging
import random
from collections.abc import Sequence
from typing import TypeVar

from cardshop.models.failure import ConfigurationError
from cardshop.models.pack import InsertPool, PackSelection, PoolCard

logger = logging.getLogger(__name__)

T = TypeVar("T")


def pick_unique(items: Sequence[T], n: int, rng: random.Random) -> list[T]:
    """
    Pick up to `n` distinct items without replacement.

    Uses a partial Fisher-Yates shuffle on a copy, so the input is not
    modified. Returns fewer than `n` items when the input is shorter.
    """
    if n <= 0:
        return []

    pool = list(items)
    count = min(n, len(pool))
    for i in range(count):
        j = rng.randrange(i, len(pool))
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:count]


def roll_insert_hits(pools: Sequence[InsertPool], rng: random.Random) -> list[InsertPool]:
    """
    Roll each insert pool once.

    A pool with odds N hits with probability 1/N. Pools without
    positive odds never hit.
    """
    hits = []
    for pool in pools:
        if pool.odds_per_pack > 0 and rng.randrange(pool.odds_per_pack) == 0:
            hits.append(pool)
    return hits


def base_slots_needed(cards_per_pack: int, insert_hits: int) -> int:
    """Number of base cards to draw once insert hits are known."""
    return max(0, cards_per_pack - insert_hits)


def select_pack(
    base_cards: Sequence[PoolCard],
    insert_pools: Sequence[InsertPool],
    cards_per_pack: int,
    rng: random.Random,
) -> PackSelection:
    """
    Choose the cards for one pack.

    Args:
        base_cards: Every card in the product's base set(s)
        insert_pools: Non-base pools with positive odds
        cards_per_pack: Target pack size
        rng: Source of randomness

    Returns:
        The selected cards. Ids are pairwise distinct. The pack holds
        exactly `cards_per_pack` cards unless dropped insert slots could
        not be backfilled from the base pool.

    Raises:
        ConfigurationError: If the base pool is smaller than the number
            of base slots needed
    """
    hits = roll_insert_hits(insert_pools, rng)
    needed = base_slots_needed(cards_per_pack, len(hits))

    if len(base_cards) < needed:
        raise ConfigurationError(
            f"Not enough base cards to build a pack. Need {needed}, found {len(base_cards)}."
        )

    chosen = pick_unique(base_cards, needed, rng)
    taken = {card.id for card in chosen}

    dropped: list[str] = []
    for pool in hits:
        available = [card for card in pool.cards if card.id not in taken]
        if not available:
            dropped.append(pool.product_set_id)
            continue
        pick = pick_unique(available, 1, rng)[0]
        chosen.append(pick)
        taken.add(pick.id)

    if dropped:
        logger.warning(
            "Insert slot(s) dropped for pools %s: no unused cards available", ", ".join(dropped)
        )

    backfilled = 0
    if len(chosen) < cards_per_pack:
        remaining = [card for card in base_cards if card.id not in taken]
        extra = pick_unique(remaining, cards_per_pack - len(chosen), rng)
        chosen.extend(extra)
        backfilled = len(extra)

    return PackSelection(
        cards=chosen,
        insert_hits=[pool.product_set_id for pool in hits],
        dropped_inserts=dropped,
        backfilled=backfilled,
    )
