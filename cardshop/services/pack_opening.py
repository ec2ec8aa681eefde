"""
Open one sealed pack.

Converts one unit of a user's sealed inventory into card pulls and
applies them to the user's ownership ledger. Every read and write goes
through the caller's session, so the whole operation commits or rolls
back as one unit of work.

All preconditions are checked before the first write. A failed open
therefore leaves no pending changes even if the caller keeps the session.
"""

import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.config import settings
from cardshop.db.operations import (
    card_to_pool_card,
    consume_pack,
    get_inventory,
    get_product,
    increment_ownership,
    list_cards_in_sets,
)
from cardshop.models.failure import (
    ConfigurationError,
    InsufficientInventoryError,
    ProductNotFoundError,
    ValidationError,
)
from cardshop.models.pack import InsertPool, PackResult, PulledCard
from cardshop.services.pack_selector import select_pack

logger = logging.getLogger(__name__)


async def open_pack(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    rng: random.Random | None = None,
) -> PackResult:
    """
    Open one pack of a product for a user.

    Args:
        session: Unit of work for the whole operation
        user_id: Acting user
        product_id: Product whose pack is opened
        rng: Source of randomness (defaults to a fresh SystemRandom)

    Returns:
        The pulled cards, each tagged with insert membership and the
        user's quantity after the pull.

    Raises:
        ValidationError: If product_id is blank
        ProductNotFoundError: If the product does not exist
        ConfigurationError: If the product has no base set or too few base cards
        InsufficientInventoryError: If the user owns no packs of the product
    """
    product_id = product_id.strip()
    if not product_id:
        raise ValidationError("Missing productId")

    rng = rng or random.SystemRandom()

    product = await get_product(session, product_id, with_sets=True)
    if product is None:
        raise ProductNotFoundError(product_id)

    cards_per_pack = (
        product.cards_per_pack
        if product.cards_per_pack is not None
        else settings.default_cards_per_pack
    )

    base_set_ids = [ps.id for ps in product.product_sets if ps.is_base]
    if not base_set_ids:
        raise ConfigurationError("No Base ProductSet found for this product.")

    inventory = await get_inventory(session, user_id, product_id)
    if inventory is None or inventory.packs_owned <= 0:
        raise InsufficientInventoryError(product_id)

    insert_sets = [
        ps
        for ps in product.product_sets
        if not ps.is_base and ps.odds_per_pack is not None and ps.odds_per_pack > 0
    ]

    base_cards = [card_to_pool_card(c) for c in await list_cards_in_sets(session, base_set_ids)]
    insert_cards = [
        card_to_pool_card(c)
        for c in await list_cards_in_sets(session, [ps.id for ps in insert_sets])
    ]
    insert_pools = [
        InsertPool(
            product_set_id=ps.id,
            odds_per_pack=ps.odds_per_pack or 0,
            cards=[c for c in insert_cards if c.product_set_id == ps.id],
        )
        for ps in insert_sets
    ]

    # Raises ConfigurationError before anything is written
    selection = select_pack(base_cards, insert_pools, cards_per_pack, rng)

    packs_remaining = await consume_pack(session, user_id, product_id)
    if packs_remaining is None:
        # Another request took the last pack between the read and the update
        raise InsufficientInventoryError(product_id)

    base_ids = set(base_set_ids)
    pulled = []
    for card in selection.cards:
        owned_after = await increment_ownership(session, user_id, card.id)
        pulled.append(
            PulledCard(
                card=card,
                is_insert=card.product_set_id not in base_ids,
                owned_after=owned_after,
            )
        )

    logger.info(
        "User %s opened %s: %d cards, inserts hit=%s dropped=%s, %d packs left",
        user_id,
        product_id,
        len(pulled),
        selection.insert_hits,
        selection.dropped_inserts,
        packs_remaining,
    )

    return PackResult(
        product_id=product_id,
        pack_image_url=product.pack_image_url,
        cards_per_pack=cards_per_pack,
        cards=pulled,
        packs_remaining=packs_remaining,
    )
