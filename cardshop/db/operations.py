"""
Database CRUD operations.

Provides async functions for reading and writing users, the product
catalog (products, product sets, cards) and the two per-user ledgers
(sealed inventory and card ownership).

None of these functions commit. The caller's session scope decides
when the unit of work ends.
"""

import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cardshop.models.db import (
    CardDB,
    CardOwnershipDB,
    ProductDB,
    ProductSetDB,
    SealedInventoryDB,
    UserDB,
)
from cardshop.models.pack import PoolCard

_DIGITS = re.compile(r"\d+")

# --- User Operations ---


async def get_user(session: AsyncSession, user_id: str) -> UserDB | None:
    """Get a user by id. Returns None if the user does not exist."""
    result = await session.execute(
        select(UserDB).where(UserDB.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_user(
    session: AsyncSession, user_id: str, starting_balance_cents: int
) -> tuple[UserDB, bool]:
    """
    Get existing user or create a new one with the starting balance.

    Returns:
        Tuple of (user, created) where created is True if new.
    """
    user = await get_user(session, user_id)
    if user:
        return user, False

    user = UserDB(id=user_id, balance_cents=starting_balance_cents, next_reward_at=None)
    session.add(user)
    await session.flush()
    return user, True


async def debit_balance(session: AsyncSession, user_id: str, amount_cents: int) -> int | None:
    """
    Subtract an amount from a user's balance.

    Issued as a single conditional UPDATE so a concurrent write to the
    balance is never overwritten and the balance never goes negative.

    Returns:
        The balance after the debit, or None if the balance was too low.
    """
    result = await session.execute(
        update(UserDB)
        .where(UserDB.id == user_id, UserDB.balance_cents >= amount_cents)
        .values(balance_cents=UserDB.balance_cents - amount_cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        return None

    user = await get_user(session, user_id)
    return user.balance_cents if user else 0


async def credit_reward(
    session: AsyncSession,
    user_id: str,
    amount_cents: int,
    now: datetime,
    next_reward_at: datetime,
) -> bool:
    """
    Credit the timed reward if the user's cooldown has elapsed at `now`.

    The eligibility check and the credit are one conditional UPDATE, so
    two concurrent claims cannot both succeed.

    Returns:
        True if the reward was credited.
    """
    result = await session.execute(
        update(UserDB)
        .where(
            UserDB.id == user_id,
            or_(UserDB.next_reward_at.is_(None), UserDB.next_reward_at <= now),
        )
        .values(
            balance_cents=UserDB.balance_cents + amount_cents,
            next_reward_at=next_reward_at,
        )
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount == 1)  # type: ignore[attr-defined]


# --- Product Operations ---


async def get_product(
    session: AsyncSession, product_id: str, with_sets: bool = False
) -> ProductDB | None:
    """Get a product by id, optionally with its product sets loaded."""
    stmt = select(ProductDB).where(ProductDB.id == product_id)
    if with_sets:
        stmt = stmt.options(selectinload(ProductDB.product_sets))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_products(
    session: AsyncSession, storefront_order: bool = False
) -> list[tuple[ProductDB, int]]:
    """
    List all products with their product set counts.

    Admin listing is ordered by id. Storefront listing is ordered by
    year, brand, then id.
    """
    set_count = (
        select(func.count(ProductSetDB.id))
        .where(ProductSetDB.product_id == ProductDB.id)
        .correlate(ProductDB)
        .scalar_subquery()
    )
    stmt = select(ProductDB, set_count)
    if storefront_order:
        stmt = stmt.order_by(
            ProductDB.year.asc(),
            ProductDB.brand.asc(),
            ProductDB.id.asc(),
        )
    else:
        stmt = stmt.order_by(ProductDB.id.asc())

    result = await session.execute(stmt)
    return [(product, int(count)) for product, count in result.all()]


async def create_product(session: AsyncSession, product_id: str, **fields: Any) -> ProductDB:
    """
    Create a new product.

    Raises IntegrityError if the product already exists.
    """
    product = ProductDB(id=product_id, **fields)
    session.add(product)
    await session.flush()
    return product


async def update_product(session: AsyncSession, product: ProductDB, **fields: Any) -> ProductDB:
    """Apply field updates to a product."""
    for name, value in fields.items():
        setattr(product, name, value)
    await session.flush()
    return product


# --- Product Set Operations ---


async def get_product_set(session: AsyncSession, product_set_id: str) -> ProductSetDB | None:
    """Get a product set by id with its owning product loaded."""
    result = await session.execute(
        select(ProductSetDB)
        .where(ProductSetDB.id == product_set_id)
        .options(selectinload(ProductSetDB.product))
    )
    return result.scalar_one_or_none()


async def list_product_sets(
    session: AsyncSession, product_id: str | None = None
) -> list[ProductSetDB]:
    """List product sets, optionally restricted to one product."""
    stmt = select(ProductSetDB)
    if product_id is not None:
        stmt = stmt.where(ProductSetDB.product_id == product_id)
        stmt = stmt.order_by(
            ProductSetDB.is_base.desc(), ProductSetDB.name.asc(), ProductSetDB.id.asc()
        )
    else:
        stmt = stmt.order_by(ProductSetDB.product_id, ProductSetDB.id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_product_set(
    session: AsyncSession, product_set_id: str, product_id: str, **fields: Any
) -> ProductSetDB:
    """
    Create a new product set.

    Raises IntegrityError if the product set already exists.
    """
    product_set = ProductSetDB(id=product_set_id, product_id=product_id, **fields)
    session.add(product_set)
    await session.flush()
    return product_set


async def update_product_set(
    session: AsyncSession, product_set: ProductSetDB, **fields: Any
) -> ProductSetDB:
    """Apply field updates to a product set."""
    for name, value in fields.items():
        setattr(product_set, name, value)
    await session.flush()
    return product_set


async def delete_product_set(session: AsyncSession, product_set_id: str) -> int | None:
    """
    Delete a product set, its cards and every ownership row for those cards.

    Returns the number of deleted cards, or None if the set was not found.
    """
    product_set = await get_product_set(session, product_set_id)
    if product_set is None:
        return None

    card_ids = select(CardDB.id).where(CardDB.product_set_id == product_set_id)
    await session.execute(
        delete(CardOwnershipDB)
        .where(CardOwnershipDB.card_id.in_(card_ids))
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(
        delete(CardDB)
        .where(CardDB.product_set_id == product_set_id)
        .execution_options(synchronize_session=False)
    )
    await session.delete(product_set)
    await session.flush()
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]


async def count_cards_by_set(
    session: AsyncSession, product_set_ids: Iterable[str]
) -> dict[str, int]:
    """Count cards per product set id. Sets without cards are omitted."""
    ids = list(product_set_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(CardDB.product_set_id, func.count(CardDB.id))
        .where(CardDB.product_set_id.in_(ids))
        .group_by(CardDB.product_set_id)
    )
    return {set_id: int(count) for set_id, count in result.all()}


async def card_stats_by_set(session: AsyncSession) -> dict[str, dict[str, int]]:
    """
    Catalog completeness per product set.

    Returns a map of product set id to counts of total cards, cards with
    a book value, and cards with front/back images.
    """

    def _present(column: Any) -> Any:
        return func.coalesce(
            func.sum(case((func.trim(func.coalesce(column, "")) != "", 1), else_=0)), 0
        )

    result = await session.execute(
        select(
            CardDB.product_set_id,
            func.count(CardDB.id),
            func.coalesce(func.sum(case((CardDB.book_value > 0, 1), else_=0)), 0),
            _present(CardDB.front_image_url),
            _present(CardDB.back_image_url),
        ).group_by(CardDB.product_set_id)
    )
    return {
        set_id: {
            "total_cards": int(total),
            "priced_cards": int(priced),
            "front_cards": int(front),
            "back_cards": int(back),
        }
        for set_id, total, priced, front, back in result.all()
    }


# --- Card Operations ---


def card_number_sort_key(card_number: str) -> tuple[int | float, str]:
    """
    Sort key for card numbers.

    Orders by the first run of digits ("12a" -> 12), then by the full
    text. Numbers without digits sort last.
    """
    match = _DIGITS.search(card_number or "")
    number: int | float = int(match.group(0)) if match else float("inf")
    return number, (card_number or "").casefold()


async def list_cards(session: AsyncSession, product_set_id: str) -> list[CardDB]:
    """List every card in a product set, in card number order."""
    result = await session.execute(select(CardDB).where(CardDB.product_set_id == product_set_id))
    cards = list(result.scalars().all())
    cards.sort(key=lambda c: card_number_sort_key(c.card_number))
    return cards


async def list_cards_in_sets(
    session: AsyncSession, product_set_ids: Iterable[str]
) -> list[CardDB]:
    """List every card in any of the given product sets."""
    ids = list(product_set_ids)
    if not ids:
        return []
    result = await session.execute(
        select(CardDB).where(CardDB.product_set_id.in_(ids)).order_by(CardDB.id)
    )
    return list(result.scalars().all())


async def get_card(session: AsyncSession, card_id: int) -> CardDB | None:
    """Get a card by id."""
    return await session.get(CardDB, card_id)


async def get_card_by_number(
    session: AsyncSession, product_set_id: str, card_number: str
) -> CardDB | None:
    """Get a card by its number within a product set."""
    result = await session.execute(
        select(CardDB).where(
            CardDB.product_set_id == product_set_id,
            CardDB.card_number == card_number,
        )
    )
    return result.scalar_one_or_none()


async def update_card(session: AsyncSession, card: CardDB, **fields: Any) -> CardDB:
    """Apply field updates to a card."""
    for name, value in fields.items():
        setattr(card, name, value)
    await session.flush()
    return card


async def delete_card(session: AsyncSession, card_id: int) -> bool:
    """
    Delete a card and its ownership rows.

    Returns True if deleted, False if not found.
    """
    card = await get_card(session, card_id)
    if card is None:
        return False

    await session.execute(
        delete(CardOwnershipDB)
        .where(CardOwnershipDB.card_id == card_id)
        .execution_options(synchronize_session=False)
    )
    await session.delete(card)
    await session.flush()
    return True


async def upsert_card(
    session: AsyncSession, product_set_id: str, card_number: str, **fields: Any
) -> tuple[CardDB, bool]:
    """
    Insert or update a card keyed by (product_set_id, card_number).

    Returns:
        Tuple of (card, created) where created is True if new.
    """
    existing = await get_card_by_number(session, product_set_id, card_number)

    if existing:
        for name, value in fields.items():
            setattr(existing, name, value)
        await session.flush()
        return existing, False

    card = CardDB(product_set_id=product_set_id, card_number=card_number, **fields)
    session.add(card)
    await session.flush()
    return card, True


def card_to_pool_card(card: CardDB) -> PoolCard:
    """Convert a database card to the selector's card model."""
    return PoolCard(
        id=card.id,
        product_set_id=card.product_set_id,
        card_number=card.card_number,
        player=card.player,
        team=card.team,
        subset=card.subset,
        variant=card.variant,
        front_image_url=card.front_image_url,
        back_image_url=card.back_image_url,
        book_value=card.book_value or 0.0,
    )


# --- Sealed Inventory Operations ---


async def get_inventory(
    session: AsyncSession, user_id: str, product_id: str
) -> SealedInventoryDB | None:
    """Get a user's sealed inventory row for one product."""
    result = await session.execute(
        select(SealedInventoryDB)
        .where(
            SealedInventoryDB.user_id == user_id,
            SealedInventoryDB.product_id == product_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_inventory(session: AsyncSession, user_id: str) -> list[SealedInventoryDB]:
    """List a user's sealed inventory with products loaded, most recently changed first."""
    result = await session.execute(
        select(SealedInventoryDB)
        .where(SealedInventoryDB.user_id == user_id)
        .options(selectinload(SealedInventoryDB.product))
        .order_by(SealedInventoryDB.updated_at.desc(), SealedInventoryDB.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def add_packs(
    session: AsyncSession, user_id: str, product_id: str, packs: int
) -> SealedInventoryDB:
    """
    Add sealed packs to a user's inventory.

    Creates the inventory row on first purchase. An existing row is
    incremented in SQL so a concurrent decrement is never overwritten.
    """
    result = await session.execute(
        update(SealedInventoryDB)
        .where(
            SealedInventoryDB.user_id == user_id,
            SealedInventoryDB.product_id == product_id,
        )
        .values(packs_owned=SealedInventoryDB.packs_owned + packs)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        inventory = SealedInventoryDB(user_id=user_id, product_id=product_id, packs_owned=packs)
        session.add(inventory)
        await session.flush()
        return inventory

    updated = await get_inventory(session, user_id, product_id)
    if updated is None:
        raise LookupError(f"Inventory row vanished for {user_id}/{product_id}")
    return updated


async def consume_pack(session: AsyncSession, user_id: str, product_id: str) -> int | None:
    """
    Remove one sealed pack from a user's inventory.

    Issued as a single conditional UPDATE so two concurrent opens cannot
    both take the last pack.

    Returns:
        Packs remaining after the decrement, or None if the user had none.
    """
    result = await session.execute(
        update(SealedInventoryDB)
        .where(
            SealedInventoryDB.user_id == user_id,
            SealedInventoryDB.product_id == product_id,
            SealedInventoryDB.packs_owned > 0,
        )
        .values(packs_owned=SealedInventoryDB.packs_owned - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        return None

    inventory = await get_inventory(session, user_id, product_id)
    return inventory.packs_owned if inventory else 0


# --- Card Ownership Operations ---


async def increment_ownership(session: AsyncSession, user_id: str, card_id: int) -> int:
    """
    Add one copy of a card to a user's collection.

    Creates the ownership row on the first pull.

    Returns:
        The user's quantity of the card after the increment.
    """
    result = await session.execute(
        update(CardOwnershipDB)
        .where(CardOwnershipDB.user_id == user_id, CardOwnershipDB.card_id == card_id)
        .values(quantity=CardOwnershipDB.quantity + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        session.add(CardOwnershipDB(user_id=user_id, card_id=card_id, quantity=1))
        await session.flush()
        return 1

    quantity = await session.scalar(
        select(CardOwnershipDB.quantity).where(
            CardOwnershipDB.user_id == user_id, CardOwnershipDB.card_id == card_id
        )
    )
    return int(quantity or 0)


async def get_ownership_map(
    session: AsyncSession, user_id: str, card_ids: Iterable[int] | None = None
) -> dict[int, int]:
    """
    Map card id to owned quantity for a user.

    Only cards with a positive quantity are included. When card_ids is
    given, the map is restricted to those cards.
    """
    stmt = select(CardOwnershipDB.card_id, CardOwnershipDB.quantity).where(
        CardOwnershipDB.user_id == user_id, CardOwnershipDB.quantity > 0
    )
    if card_ids is not None:
        ids = list(card_ids)
        if not ids:
            return {}
        stmt = stmt.where(CardOwnershipDB.card_id.in_(ids))

    result = await session.execute(stmt)
    return {card_id: int(quantity) for card_id, quantity in result.all()}


async def list_owned_cards(
    session: AsyncSession, user_id: str, product_set_id: str | None = None
) -> list[tuple[CardDB, int]]:
    """
    List (card, quantity) pairs a user owns, optionally within one product set.

    Only positive quantities are returned.
    """
    stmt = (
        select(CardDB, CardOwnershipDB.quantity)
        .join(CardOwnershipDB, CardOwnershipDB.card_id == CardDB.id)
        .where(CardOwnershipDB.user_id == user_id, CardOwnershipDB.quantity > 0)
        .options(selectinload(CardDB.product_set).selectinload(ProductSetDB.product))
    )
    if product_set_id is not None:
        stmt = stmt.where(CardDB.product_set_id == product_set_id)

    result = await session.execute(stmt)
    return [(card, int(quantity)) for card, quantity in result.all()]
