"""
Pack opening ("rip") endpoint.

Opens one sealed pack the acting user owns and returns the pulled cards.
"""

from fastapi import APIRouter
from pydantic import Field

from cardshop.api.deps import CurrentUser, RngDep, SessionDep
from cardshop.api.schemas import CamelModel
from cardshop.models.failure import ErrorResponse
from cardshop.models.pack import PackResult
from cardshop.services.pack_opening import open_pack

router = APIRouter(prefix="/api/rip", tags=["rip"])


class OpenPackRequest(CamelModel):
    """Request model for opening a pack."""

    product_id: str = Field(
        ...,
        min_length=1,
        description="Product whose pack is opened",
        examples=["1991 Donruss Baseball"],
    )


class PulledCardResponse(CamelModel):
    """A card revealed from the pack."""

    id: int
    card_number: str
    player: str
    team: str | None = None
    subset: str | None = None
    variant: str | None = None
    front_image_url: str | None = None
    back_image_url: str | None = None
    book_value: float = 0.0
    is_insert: bool = False
    owned_after: int = Field(..., description="Copies the user owns after this pull")


class OpenPackResponse(CamelModel):
    """Response model for an opened pack."""

    ok: bool = True
    product_id: str
    pack_image_url: str | None = None
    cards_per_pack: int
    packs_remaining: int
    cards: list[PulledCardResponse] = Field(default_factory=list)


def _to_response(result: PackResult) -> OpenPackResponse:
    return OpenPackResponse(
        product_id=result.product_id,
        pack_image_url=result.pack_image_url,
        cards_per_pack=result.cards_per_pack,
        packs_remaining=result.packs_remaining,
        cards=[
            PulledCardResponse(
                id=pulled.card.id,
                card_number=pulled.card.card_number,
                player=pulled.card.player,
                team=pulled.card.team,
                subset=pulled.card.subset,
                variant=pulled.card.variant,
                front_image_url=pulled.card.front_image_url,
                back_image_url=pulled.card.back_image_url,
                book_value=pulled.card.book_value,
                is_insert=pulled.is_insert,
                owned_after=pulled.owned_after,
            )
            for pulled in result.cards
        ],
    )


@router.post(
    "/open",
    response_model=OpenPackResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def open_one_pack(
    request: OpenPackRequest,
    session: SessionDep,
    user: CurrentUser,
    rng: RngDep,
) -> OpenPackResponse:
    """
    Open one sealed pack of a product.

    Consumes one pack from the acting user's inventory, draws the cards
    and adds them to the user's collection in a single transaction.
    Nothing changes when the request fails.
    """
    result = await open_pack(session, user.id, request.product_id, rng=rng)
    await session.commit()
    return _to_response(result)
