"""
Admin catalog management.

Creates and edits products, product sets and cards, and imports card
checklists into a product set. Validation failures raise KnownError
subclasses so routers stay thin.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.db.operations import (
    create_product,
    create_product_set,
    delete_card,
    delete_product_set,
    get_card,
    get_card_by_number,
    get_product,
    get_product_set,
    update_card,
    update_product,
    update_product_set,
    upsert_card,
)
from cardshop.models.db import CardDB, ProductDB, ProductSetDB
from cardshop.models.failure import (
    ConflictError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from cardshop.parsers.checklist_import import LineError, parse_checklist_text

logger = logging.getLogger(__name__)

# Only the first errors are reported back to the client
MAX_REPORTED_ERRORS = 50


@dataclass
class ImportResult:
    """Outcome of importing a checklist into a product set."""

    product_set_id: str
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    error_count: int = 0
    errors: list[LineError] = field(default_factory=list)


def _require_id(value: str | None, name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"Missing required field: {name}")
    return cleaned


def _check_set_flags(is_base: bool | None, is_insert: bool | None) -> None:
    if is_base and is_insert:
        raise ValidationError("A Product Set cannot be both Base and Insert.")


# --- Products ---


async def add_product(session: AsyncSession, product_id: str, **fields: Any) -> ProductDB:
    """Create a product. Raises ConflictError if the id is taken."""
    product_id = _require_id(product_id, "id")
    if await get_product(session, product_id) is not None:
        raise ConflictError(f"Product already exists: {product_id}")

    product = await create_product(session, product_id, **fields)
    logger.info("Created product %s", product_id)
    return product


async def edit_product(session: AsyncSession, product_id: str, **fields: Any) -> ProductDB:
    """Update a product's fields."""
    product = await get_product(session, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return await update_product(session, product, **fields)


# --- Product Sets ---


async def add_product_set(
    session: AsyncSession,
    product_set_id: str,
    product_id: str,
    name: str | None = None,
    is_base: bool = False,
    is_insert: bool = False,
    odds_per_pack: int | None = None,
) -> ProductSetDB:
    """
    Create a product set on a product.

    Raises:
        ValidationError: If ids are missing or the set is both base and insert
        ProductNotFoundError: If the product does not exist
        ConflictError: If the product set id is taken
    """
    product_set_id = _require_id(product_set_id, "id")
    product_id = _require_id(product_id, "productId")
    _check_set_flags(is_base, is_insert)

    if await get_product(session, product_id) is None:
        raise ProductNotFoundError(product_id)
    if await get_product_set(session, product_set_id) is not None:
        raise ConflictError(f"Product Set already exists: {product_set_id}")

    product_set = await create_product_set(
        session,
        product_set_id,
        product_id,
        name=name,
        is_base=is_base,
        is_insert=is_insert,
        odds_per_pack=odds_per_pack,
    )
    logger.info(
        "Created product set %s on %s (base=%s, odds=%s)",
        product_set_id,
        product_id,
        is_base,
        odds_per_pack,
    )
    return product_set


async def require_product_set(session: AsyncSession, product_set_id: str) -> ProductSetDB:
    """Get a product set or raise NotFoundError."""
    product_set = await get_product_set(session, product_set_id)
    if product_set is None:
        raise NotFoundError("Product Set not found")
    return product_set


async def edit_product_set(
    session: AsyncSession, product_set_id: str, **fields: Any
) -> ProductSetDB:
    """Update a product set, keeping base and insert mutually exclusive."""
    product_set = await require_product_set(session, product_set_id)
    is_base = fields.get("is_base", product_set.is_base)
    is_insert = fields.get("is_insert", product_set.is_insert)
    _check_set_flags(is_base, is_insert)
    return await update_product_set(session, product_set, **fields)


async def remove_product_set(session: AsyncSession, product_set_id: str) -> int:
    """
    Delete a product set with its cards and their ownership rows.

    Returns the number of deleted cards.
    """
    deleted = await delete_product_set(session, product_set_id)
    if deleted is None:
        raise NotFoundError("Product Set not found")
    logger.info("Deleted product set %s with %d cards", product_set_id, deleted)
    return deleted


# --- Cards ---


async def edit_card(session: AsyncSession, card_id: int, **fields: Any) -> CardDB:
    """Update a card's fields."""
    card = await get_card(session, card_id)
    if card is None:
        raise NotFoundError(f"Card not found: {card_id}")

    card_number = fields.get("card_number")
    if card_number and card_number != card.card_number:
        if await get_card_by_number(session, card.product_set_id, card_number) is not None:
            raise ConflictError(f"Card number already exists in this set: {card_number}")
    return await update_card(session, card, **fields)


async def remove_card(session: AsyncSession, card_id: int) -> None:
    """Delete a card and its ownership rows."""
    if not await delete_card(session, card_id):
        raise NotFoundError(f"Card not found: {card_id}")


async def import_checklist(session: AsyncSession, product_set_id: str, text: str) -> ImportResult:
    """
    Import pasted checklist text into a product set.

    Cards are matched by card number: new numbers are inserted, known
    numbers have their player, team, subset and variant replaced.
    """
    product_set_id = _require_id(product_set_id, "productSetId")
    if not text or not text.strip():
        raise ValidationError("No paste text provided")

    await require_product_set(session, product_set_id)

    parsed = parse_checklist_text(text)
    result = ImportResult(
        product_set_id=product_set_id,
        skipped=parsed.skipped,
        error_count=len(parsed.errors),
        errors=parsed.errors[:MAX_REPORTED_ERRORS],
    )

    for card in parsed.cards:
        _, created = await upsert_card(
            session,
            product_set_id,
            card.card_number,
            player=card.player,
            team=card.team,
            subset=card.subset,
            variant=card.variant,
        )
        if created:
            result.inserted += 1
        else:
            result.updated += 1

    logger.info(
        "Imported checklist into %s: %d inserted, %d updated, %d skipped, %d errors",
        product_set_id,
        result.inserted,
        result.updated,
        result.skipped,
        result.error_count,
    )
    return result
