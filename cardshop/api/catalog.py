"""
Admin catalog endpoints.

CRUD for products, product sets and cards, pack display metadata, and
pasted checklist import.
"""

from typing import Any

from fastapi import APIRouter, status
from pydantic import Field

from cardshop.api.deps import SessionDep
from cardshop.api.schemas import CamelModel, ProductSummary
from cardshop.db.operations import (
    card_stats_by_set,
    count_cards_by_set,
    get_product,
    list_cards,
    list_product_sets,
    list_products,
)
from cardshop.models.failure import ErrorResponse, ProductNotFoundError
from cardshop.services.catalog import (
    add_product,
    add_product_set,
    edit_card,
    edit_product,
    edit_product_set,
    import_checklist,
    remove_card,
    remove_product_set,
    require_product_set,
)

router = APIRouter(prefix="/api", tags=["catalog"])

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# --- Request models ---


class ProductFields(CamelModel):
    """Editable product fields. Unset fields are left unchanged on update."""

    year: int | None = None
    brand: str | None = None
    sport: str | None = None
    pack_price_cents: int | None = Field(default=None, ge=0)
    packs_per_box: int | None = Field(default=None, ge=1)
    cards_per_pack: int | None = Field(default=None, ge=1)
    pack_image_url: str | None = None
    box_image_url: str | None = None
    released: bool | None = None


class ProductCreate(ProductFields):
    """Request model for creating a product."""

    id: str = ""


class ProductSetFields(CamelModel):
    """Editable product set fields."""

    name: str | None = None
    is_base: bool | None = None
    is_insert: bool | None = None
    odds_per_pack: int | None = Field(default=None, ge=1)


class ProductSetCreate(ProductSetFields):
    """Request model for creating a product set."""

    id: str = ""
    product_id: str = ""


class CardFields(CamelModel):
    """Editable card fields."""

    card_number: str | None = Field(default=None, min_length=1, max_length=50)
    player: str | None = Field(default=None, min_length=1, max_length=255)
    team: str | None = None
    position: str | None = None
    subset: str | None = None
    variant: str | None = None
    book_value: float | None = Field(default=None, ge=0)
    front_image_url: str | None = None
    back_image_url: str | None = None


class ImportPasteRequest(CamelModel):
    """Request model for a pasted checklist import."""

    product_set_id: str = ""
    text: str = ""


# --- Response models ---


class ProductResponse(ProductSummary):
    """A product with its product set count."""

    released: bool = False
    product_sets_count: int = 0


class ProductSetResponse(CamelModel):
    """A product set with its card count."""

    id: str
    product_id: str
    name: str | None = None
    is_base: bool = False
    is_insert: bool = False
    odds_per_pack: int | None = None
    cards_count: int = 0


class ProductDetailResponse(ProductResponse):
    """A product with its product sets."""

    product_sets: list[ProductSetResponse] = Field(default_factory=list)


class ProductSetStatsResponse(ProductSetResponse):
    """A product set with catalog completeness stats."""

    priced_cards: int = 0
    front_cards: int = 0
    back_cards: int = 0
    priced_percent: float = 0.0
    front_percent: float = 0.0
    back_percent: float = 0.0


class CardResponse(CamelModel):
    """A catalog card."""

    id: int
    product_set_id: str
    card_number: str
    player: str
    team: str | None = None
    position: str | None = None
    subset: str | None = None
    variant: str | None = None
    book_value: float = 0.0
    front_image_url: str | None = None
    back_image_url: str | None = None


class ProductSetDetailResponse(ProductSetResponse):
    """A product set with its cards."""

    cards: list[CardResponse] = Field(default_factory=list)


class DeleteProductSetResponse(CamelModel):
    ok: bool = True
    deleted_cards: int


class OkResponse(CamelModel):
    ok: bool = True


class PackMetaResponse(CamelModel):
    """Display metadata for a product set's pack."""

    product_set_id: str
    name: str | None = None
    product_id: str
    pack_image_url: str | None = None


class ImportErrorResponse(CamelModel):
    line: int
    reason: str
    raw: str


class ImportResponse(CamelModel):
    """Outcome of a checklist import."""

    ok: bool = True
    product_set_id: str
    inserted: int
    updated: int
    skipped: int
    error_count: int
    errors: list[ImportErrorResponse] = Field(default_factory=list)


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def _set_response(product_set: Any, cards_count: int) -> ProductSetResponse:
    return ProductSetResponse(
        id=product_set.id,
        product_id=product_set.product_id,
        name=product_set.name,
        is_base=product_set.is_base,
        is_insert=product_set.is_insert,
        odds_per_pack=product_set.odds_per_pack,
        cards_count=cards_count,
    )


def _product_response(product: Any, sets_count: int) -> ProductResponse:
    return ProductResponse.model_validate(product).model_copy(
        update={"product_sets_count": sets_count}
    )


# --- Products ---


@router.get("/products", response_model=list[ProductResponse])
async def get_products(session: SessionDep) -> list[ProductResponse]:
    """List all products ordered by id."""
    return [_product_response(p, count) for p, count in await list_products(session)]


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def create_product(request: ProductCreate, session: SessionDep) -> ProductResponse:
    """Create a product. 409 if the id already exists."""
    fields = request.model_dump(exclude={"id"}, exclude_unset=True)
    product = await add_product(session, request.id, **fields)
    await session.commit()
    return _product_response(product, 0)


@router.get("/products/{product_id}", response_model=ProductDetailResponse, responses=_ERRORS)
async def get_product_detail(product_id: str, session: SessionDep) -> ProductDetailResponse:
    """A product with its product sets, base set first, and their card counts."""
    product = await get_product(session, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    product_sets = await list_product_sets(session, product_id)
    counts = await count_cards_by_set(session, [ps.id for ps in product_sets])
    base = _product_response(product, len(product_sets))
    return ProductDetailResponse(
        **base.model_dump(),
        product_sets=[_set_response(ps, counts.get(ps.id, 0)) for ps in product_sets],
    )


@router.put("/products/{product_id}", response_model=ProductResponse, responses=_ERRORS)
async def update_product(
    product_id: str, request: ProductFields, session: SessionDep
) -> ProductResponse:
    """Update the fields present in the body."""
    product = await edit_product(session, product_id, **request.model_dump(exclude_unset=True))
    product_sets = await list_product_sets(session, product_id)
    await session.commit()
    return _product_response(product, len(product_sets))


@router.get(
    "/products/{product_id}/product-sets",
    response_model=list[ProductSetResponse],
    responses=_ERRORS,
)
async def get_product_sets_for_product(
    product_id: str, session: SessionDep
) -> list[ProductSetResponse]:
    """Product sets of one product, base set first."""
    if await get_product(session, product_id) is None:
        raise ProductNotFoundError(product_id)
    product_sets = await list_product_sets(session, product_id)
    counts = await count_cards_by_set(session, [ps.id for ps in product_sets])
    return [_set_response(ps, counts.get(ps.id, 0)) for ps in product_sets]


# --- Product Sets ---


@router.get("/product-sets", response_model=list[ProductSetStatsResponse])
async def get_product_sets(session: SessionDep) -> list[ProductSetStatsResponse]:
    """
    All product sets with catalog completeness.

    Reports how many cards have a book value and front/back images, as
    counts and as percentages of the set's cards.
    """
    stats = await card_stats_by_set(session)
    responses = []
    for ps in await list_product_sets(session):
        s = stats.get(ps.id, {})
        total = s.get("total_cards", 0)
        priced = s.get("priced_cards", 0)
        front = s.get("front_cards", 0)
        back = s.get("back_cards", 0)
        responses.append(
            ProductSetStatsResponse(
                **_set_response(ps, total).model_dump(),
                priced_cards=priced,
                front_cards=front,
                back_cards=back,
                priced_percent=_percent(priced, total),
                front_percent=_percent(front, total),
                back_percent=_percent(back, total),
            )
        )
    return responses


@router.post(
    "/product-sets",
    response_model=ProductSetResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def create_product_set(request: ProductSetCreate, session: SessionDep) -> ProductSetResponse:
    """Create a product set. A set cannot be both base and insert."""
    product_set = await add_product_set(
        session,
        request.id,
        request.product_id,
        name=request.name,
        is_base=bool(request.is_base),
        is_insert=bool(request.is_insert),
        odds_per_pack=request.odds_per_pack,
    )
    await session.commit()
    return _set_response(product_set, 0)


@router.get(
    "/product-sets/{product_set_id}",
    response_model=ProductSetDetailResponse,
    responses=_ERRORS,
)
async def get_product_set_detail(
    product_set_id: str, session: SessionDep
) -> ProductSetDetailResponse:
    """A product set with its cards ordered by card number."""
    product_set = await require_product_set(session, product_set_id)
    cards = await list_cards(session, product_set_id)
    return ProductSetDetailResponse(
        **_set_response(product_set, len(cards)).model_dump(),
        cards=[CardResponse.model_validate(card) for card in cards],
    )


@router.put(
    "/product-sets/{product_set_id}",
    response_model=ProductSetResponse,
    responses=_ERRORS,
)
async def update_product_set(
    product_set_id: str, request: ProductSetFields, session: SessionDep
) -> ProductSetResponse:
    """Update the fields present in the body."""
    product_set = await edit_product_set(
        session, product_set_id, **request.model_dump(exclude_unset=True)
    )
    counts = await count_cards_by_set(session, [product_set_id])
    await session.commit()
    return _set_response(product_set, counts.get(product_set_id, 0))


@router.delete(
    "/product-sets/{product_set_id}",
    response_model=DeleteProductSetResponse,
    responses=_ERRORS,
)
async def delete_product_set(product_set_id: str, session: SessionDep) -> DeleteProductSetResponse:
    """Delete a product set with its cards and everyone's copies of them."""
    deleted = await remove_product_set(session, product_set_id)
    await session.commit()
    return DeleteProductSetResponse(deleted_cards=deleted)


@router.get(
    "/product-sets/{product_set_id}/cards",
    response_model=list[CardResponse],
    responses=_ERRORS,
)
async def get_product_set_cards(product_set_id: str, session: SessionDep) -> list[CardResponse]:
    """Cards of a product set ordered by card number."""
    await require_product_set(session, product_set_id)
    return [CardResponse.model_validate(card) for card in await list_cards(session, product_set_id)]


# --- Cards ---


@router.put("/cards/{card_id}", response_model=CardResponse, responses=_ERRORS)
async def update_card(card_id: int, request: CardFields, session: SessionDep) -> CardResponse:
    """Update the fields present in the body."""
    card = await edit_card(session, card_id, **request.model_dump(exclude_unset=True))
    await session.commit()
    return CardResponse.model_validate(card)


@router.delete("/cards/{card_id}", response_model=OkResponse, responses=_ERRORS)
async def delete_card(card_id: int, session: SessionDep) -> OkResponse:
    await remove_card(session, card_id)
    await session.commit()
    return OkResponse()


# --- Pack display and import ---


@router.get(
    "/open-pack/meta/{product_set_id}",
    response_model=PackMetaResponse,
    responses=_ERRORS,
)
async def get_pack_meta(product_set_id: str, session: SessionDep) -> PackMetaResponse:
    """Name and pack image shown while a pack of this set is opened."""
    product_set = await require_product_set(session, product_set_id)
    return PackMetaResponse(
        product_set_id=product_set.id,
        name=product_set.name,
        product_id=product_set.product_id,
        pack_image_url=product_set.product.pack_image_url,
    )


@router.post("/import/paste", response_model=ImportResponse, responses=_ERRORS)
async def import_paste(request: ImportPasteRequest, session: SessionDep) -> ImportResponse:
    """
    Import a pasted checklist into a product set.

    Each line is "cardNumber, player[, team]" separated by tabs or runs
    of spaces. Cards are upserted by card number.
    """
    result = await import_checklist(session, request.product_set_id, request.text)
    await session.commit()
    return ImportResponse(
        product_set_id=result.product_set_id,
        inserted=result.inserted,
        updated=result.updated,
        skipped=result.skipped,
        error_count=result.error_count,
        errors=[
            ImportErrorResponse(line=e.line, reason=e.reason, raw=e.raw) for e in result.errors
        ],
    )
