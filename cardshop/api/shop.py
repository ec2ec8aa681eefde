"""
Storefront endpoints.

Lists products for sale and buys packs or boxes with the acting user's
balance.
"""

from typing import Literal

from fastapi import APIRouter
from pydantic import Field

from cardshop.api.deps import CurrentUser, SessionDep
from cardshop.api.schemas import CamelModel
from cardshop.models.failure import ErrorResponse
from cardshop.services.shop import buy, list_shop_products

router = APIRouter(prefix="/api/shop", tags=["shop"])


class ShopProductResponse(CamelModel):
    """A product as listed in the storefront."""

    id: str
    year: int | None = None
    brand: str | None = None
    sport: str | None = None
    pack_price_cents: int = 0
    packs_per_box: int | None = None
    box_price_cents: int | None = None
    pack_image_url: str | None = None
    box_image_url: str | None = None
    product_sets_count: int = 0


class BuyRequest(CamelModel):
    """Request model for a purchase."""

    product_id: str = Field(..., min_length=1)
    kind: Literal["pack", "box"] = Field(..., description="Buy single packs or sealed boxes")
    quantity: int = Field(..., description="Number of packs or boxes")


class BuyResponse(CamelModel):
    """Response model for a completed purchase."""

    ok: bool = True
    product_id: str
    kind: Literal["pack", "box"]
    quantity: int
    cost_cents: int
    packs_added: int
    balance_cents: int
    packs_owned: int


@router.get("/products", response_model=list[ShopProductResponse])
async def get_shop_products(session: SessionDep) -> list[ShopProductResponse]:
    """List every product with pack and box pricing."""
    return [
        ShopProductResponse(
            id=item.product.id,
            year=item.product.year,
            brand=item.product.brand,
            sport=item.product.sport,
            pack_price_cents=item.pack_price_cents,
            packs_per_box=item.product.packs_per_box,
            box_price_cents=item.box_price_cents,
            pack_image_url=item.product.pack_image_url,
            box_image_url=item.product.box_image_url,
            product_sets_count=item.product_sets_count,
        )
        for item in await list_shop_products(session)
    ]


@router.post(
    "/buy",
    response_model=BuyResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def buy_product(
    request: BuyRequest,
    session: SessionDep,
    user: CurrentUser,
) -> BuyResponse:
    """
    Buy packs or boxes of a product.

    Box price is the price of its packs at the box discount. The cost is
    debited and the packs credited in one transaction.
    """
    result = await buy(session, user.id, request.product_id, request.kind, request.quantity)
    await session.commit()
    return BuyResponse(
        product_id=result.product_id,
        kind=result.kind,
        quantity=result.quantity,
        cost_cents=result.cost_cents,
        packs_added=result.packs_added,
        balance_cents=result.balance_cents,
        packs_owned=result.packs_owned,
    )
