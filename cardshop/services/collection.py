"""
Read models over a user's card collection.

- Checklist: every card of one product set with the owned quantity
- Product collection: only the owned cards of one product set
- Summary: completion per product, counted against base cards only
- Stats: total cards owned and their book value
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.db.operations import (
    card_number_sort_key,
    count_cards_by_set,
    get_ownership_map,
    get_product,
    list_cards,
    list_owned_cards,
    list_product_sets,
)
from cardshop.models.db import CardDB, ProductDB, ProductSetDB
from cardshop.models.failure import NotFoundError, ProductNotFoundError, ValidationError


@dataclass(frozen=True)
class ChecklistRow:
    """One card of a checklist with the user's quantity."""

    card: CardDB
    is_insert: bool
    owned_qty: int


@dataclass
class SetProgress:
    """Completion of one product set for one user."""

    product_id: str
    product_set: ProductSetDB
    product_sets: list[ProductSetDB]
    total_cards: int
    unique_owned: int
    total_qty: int
    rows: list[ChecklistRow] = field(default_factory=list)

    @property
    def percent_complete(self) -> float:
        if self.total_cards <= 0:
            return 0.0
        return self.unique_owned / self.total_cards * 100


@dataclass(frozen=True)
class ProductProgress:
    """Base-set completion for one product in the collection summary."""

    product_id: str
    unique_owned: int
    total_cards: int
    percent_complete: float
    pack_image_url: str | None
    total_qty: int


@dataclass(frozen=True)
class CollectionStats:
    """Totals over a user's whole collection."""

    cards_owned: int
    collection_value_cents: int


def _percent(numerator: int, denominator: int) -> float:
    """Percentage rounded to one decimal."""
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 1000) / 10


async def _load_product_and_set(
    session: AsyncSession, product_id: str, product_set_id: str | None
) -> tuple[ProductDB, ProductSetDB, list[ProductSetDB]]:
    """
    Resolve the product and the product set to report on.

    Defaults to the base set, else the first set of the product.
    """
    product_id = product_id.strip()
    if not product_id:
        raise ValidationError("Missing productId")

    product = await get_product(session, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    product_sets = await list_product_sets(session, product_id)
    if not product_sets:
        raise ValidationError(f"Product has no productSets: {product_id}")

    if product_set_id:
        selected = next((ps for ps in product_sets if ps.id == product_set_id), None)
        if selected is None:
            raise NotFoundError(f"productSetId not found on product: {product_set_id}")
        return product, selected, product_sets

    base = next((ps for ps in product_sets if ps.is_base), None)
    return product, base or product_sets[0], product_sets


async def get_checklist(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    product_set_id: str | None = None,
) -> SetProgress:
    """Every card of the selected product set, with the user's quantities."""
    product, selected, product_sets = await _load_product_and_set(
        session, product_id, product_set_id
    )

    cards = await list_cards(session, selected.id)
    owned = await get_ownership_map(session, user_id, [c.id for c in cards])

    rows = [
        ChecklistRow(card=c, is_insert=not selected.is_base, owned_qty=owned.get(c.id, 0))
        for c in cards
    ]
    return SetProgress(
        product_id=product.id,
        product_set=selected,
        product_sets=product_sets,
        total_cards=len(rows),
        unique_owned=sum(1 for r in rows if r.owned_qty > 0),
        total_qty=sum(r.owned_qty for r in rows),
        rows=rows,
    )


async def get_product_collection(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    product_set_id: str | None = None,
) -> SetProgress:
    """The user's owned cards of the selected product set."""
    product, selected, product_sets = await _load_product_and_set(
        session, product_id, product_set_id
    )

    totals = await count_cards_by_set(session, [selected.id])
    owned = await list_owned_cards(session, user_id, selected.id)
    owned.sort(key=lambda pair: card_number_sort_key(pair[0].card_number))

    rows = [
        ChecklistRow(card=card, is_insert=not selected.is_base, owned_qty=qty)
        for card, qty in owned
    ]
    return SetProgress(
        product_id=product.id,
        product_set=selected,
        product_sets=product_sets,
        total_cards=totals.get(selected.id, 0),
        unique_owned=len(rows),
        total_qty=sum(r.owned_qty for r in rows),
        rows=rows,
    )


async def get_collection_summary(session: AsyncSession, user_id: str) -> list[ProductProgress]:
    """
    Completion per product the user owns base cards of.

    Only base cards count toward completion. The denominator is the
    product's base card count, or all of its cards when it has no base
    cards.
    """
    owned_by_product: dict[str, dict[str, int]] = {}
    images: dict[str, str | None] = {}

    for card, qty in await list_owned_cards(session, user_id):
        product_set = card.product_set
        if product_set is None or not product_set.is_base:
            continue
        product = product_set.product
        agg = owned_by_product.setdefault(product.id, {"unique": 0, "qty": 0})
        agg["unique"] += 1
        agg["qty"] += qty
        if not images.get(product.id):
            images[product.id] = product.pack_image_url

    summary = []
    for product_id in sorted(owned_by_product):
        product_sets = await list_product_sets(session, product_id)
        counts = await count_cards_by_set(session, [ps.id for ps in product_sets])
        total_all = sum(counts.values())
        total_base = sum(counts.get(ps.id, 0) for ps in product_sets if ps.is_base)
        total = total_base if total_base > 0 else total_all

        agg = owned_by_product[product_id]
        summary.append(
            ProductProgress(
                product_id=product_id,
                unique_owned=agg["unique"],
                total_cards=total,
                percent_complete=_percent(agg["unique"], total),
                pack_image_url=images.get(product_id),
                total_qty=agg["qty"],
            )
        )
    return summary


async def get_collection_stats(session: AsyncSession, user_id: str) -> CollectionStats:
    """Total cards owned (duplicates included) and their book value in cents."""
    cards_owned = 0
    value_cents = 0
    for card, qty in await list_owned_cards(session, user_id):
        cards_owned += qty
        value_cents += round((card.book_value or 0.0) * 100) * qty
    return CollectionStats(cards_owned=cards_owned, collection_value_cents=value_cents)
