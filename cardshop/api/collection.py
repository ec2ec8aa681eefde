"""
Collection, checklist and sealed inventory endpoints.

All views are for the acting user.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import Field

from cardshop.api.deps import CurrentUser, SessionDep
from cardshop.api.schemas import CamelModel, ProductSetRef, ProductSummary
from cardshop.db.operations import list_inventory
from cardshop.models.failure import ErrorResponse
from cardshop.services.collection import (
    SetProgress,
    get_checklist,
    get_collection_stats,
    get_collection_summary,
    get_product_collection,
)

router = APIRouter(prefix="/api", tags=["collection"])

_ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}

ProductSetQuery = Annotated[
    str | None,
    Query(alias="productSetId", description="Product set to report on (default: base set)"),
]


class InventoryItemResponse(CamelModel):
    """Sealed packs of one product."""

    id: int
    product_id: str
    packs_owned: int
    product: ProductSummary
    updated_at: datetime | None = None


class ChecklistRowResponse(CamelModel):
    """One card of a checklist."""

    card_id: int
    card_number: str
    player: str
    team: str | None = None
    subset: str | None = None
    variant: str | None = None
    is_insert: bool = False
    book_value: float = 0.0
    owned_qty: int = 0


class ChecklistResponse(CamelModel):
    """Every card of a product set with the user's quantities."""

    ok: bool = True
    product_id: str
    product_set_id: str
    product_set_is_base: bool
    total_cards: int
    unique_owned: int
    percent_complete: float
    product_sets: list[ProductSetRef] = Field(default_factory=list)
    rows: list[ChecklistRowResponse] = Field(default_factory=list)


class OwnedCardResponse(CamelModel):
    """A card the user owns."""

    card_id: int
    card_number: str
    player: str
    team: str | None = None
    subset: str | None = None
    variant: str | None = None
    is_insert: bool = False
    quantity: int
    book_value: float | None = None
    front_image_url: str | None = None
    back_image_url: str | None = None


class ProductCollectionResponse(CamelModel):
    """The user's owned cards of a product set."""

    ok: bool = True
    product_id: str
    product_set_id: str
    product_set_is_base: bool
    product_sets: list[ProductSetRef] = Field(default_factory=list)
    unique_owned: int
    total_cards: int
    percent_complete: float
    total_qty: int
    cards: list[OwnedCardResponse] = Field(default_factory=list)


class ProductProgressResponse(CamelModel):
    """Base-set completion of one product."""

    product_id: str
    unique_owned: int
    total_cards: int
    percent_complete: float
    pack_image_url: str | None = None
    total_qty: int


class CollectionStatsResponse(CamelModel):
    """Totals over the whole collection."""

    ok: bool = True
    cards_owned: int
    collection_value_cents: int


def _set_refs(progress: SetProgress) -> list[ProductSetRef]:
    return [ProductSetRef.model_validate(ps) for ps in progress.product_sets]


@router.get("/inventory", response_model=list[InventoryItemResponse])
async def get_inventory(session: SessionDep, user: CurrentUser) -> list[InventoryItemResponse]:
    """Sealed packs the user owns, most recently changed first."""
    return [
        InventoryItemResponse(
            id=item.id,
            product_id=item.product_id,
            packs_owned=item.packs_owned,
            product=ProductSummary.model_validate(item.product),
            updated_at=item.updated_at,
        )
        for item in await list_inventory(session, user.id)
    ]


@router.get(
    "/checklist/product/{product_id}",
    response_model=ChecklistResponse,
    responses=_ERRORS,
)
async def get_product_checklist(
    product_id: str,
    session: SessionDep,
    user: CurrentUser,
    product_set_id: ProductSetQuery = None,
) -> ChecklistResponse:
    """
    Checklist of one product set.

    Lists every card with the user's owned quantity. Defaults to the
    product's base set.
    """
    progress = await get_checklist(session, user.id, product_id, product_set_id)
    return ChecklistResponse(
        product_id=progress.product_id,
        product_set_id=progress.product_set.id,
        product_set_is_base=progress.product_set.is_base,
        total_cards=progress.total_cards,
        unique_owned=progress.unique_owned,
        percent_complete=progress.percent_complete,
        product_sets=_set_refs(progress),
        rows=[
            ChecklistRowResponse(
                card_id=row.card.id,
                card_number=row.card.card_number,
                player=row.card.player,
                team=row.card.team,
                subset=row.card.subset,
                variant=row.card.variant,
                is_insert=row.is_insert,
                book_value=row.card.book_value or 0.0,
                owned_qty=row.owned_qty,
            )
            for row in progress.rows
        ],
    )


@router.get(
    "/collection/product/{product_id}",
    response_model=ProductCollectionResponse,
    responses=_ERRORS,
)
async def get_collection_for_product(
    product_id: str,
    session: SessionDep,
    user: CurrentUser,
    product_set_id: ProductSetQuery = None,
) -> ProductCollectionResponse:
    """Cards the user owns in one product set. Defaults to the base set."""
    progress = await get_product_collection(session, user.id, product_id, product_set_id)
    return ProductCollectionResponse(
        product_id=progress.product_id,
        product_set_id=progress.product_set.id,
        product_set_is_base=progress.product_set.is_base,
        product_sets=_set_refs(progress),
        unique_owned=progress.unique_owned,
        total_cards=progress.total_cards,
        percent_complete=progress.percent_complete,
        total_qty=progress.total_qty,
        cards=[
            OwnedCardResponse(
                card_id=row.card.id,
                card_number=row.card.card_number,
                player=row.card.player,
                team=row.card.team,
                subset=row.card.subset,
                variant=row.card.variant,
                is_insert=row.is_insert,
                quantity=row.owned_qty,
                book_value=row.card.book_value,
                front_image_url=row.card.front_image_url,
                back_image_url=row.card.back_image_url,
            )
            for row in progress.rows
        ],
    )


@router.get("/collection/summary", response_model=list[ProductProgressResponse])
async def get_summary(session: SessionDep, user: CurrentUser) -> list[ProductProgressResponse]:
    """Base-set completion for every product the user has pulled base cards from."""
    return [
        ProductProgressResponse(
            product_id=p.product_id,
            unique_owned=p.unique_owned,
            total_cards=p.total_cards,
            percent_complete=p.percent_complete,
            pack_image_url=p.pack_image_url,
            total_qty=p.total_qty,
        )
        for p in await get_collection_summary(session, user.id)
    ]


@router.get("/collection/stats", response_model=CollectionStatsResponse)
async def get_stats(session: SessionDep, user: CurrentUser) -> CollectionStatsResponse:
    """Total cards owned and their book value in cents."""
    stats = await get_collection_stats(session, user.id)
    return CollectionStatsResponse(
        cards_owned=stats.cards_owned,
        collection_value_cents=stats.collection_value_cents,
    )
