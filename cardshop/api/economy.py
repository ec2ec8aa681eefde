"""
Balance, reward and identity endpoints.
"""

from datetime import datetime

from fastapi import APIRouter

from cardshop.api.deps import CurrentUser, SessionDep
from cardshop.api.schemas import CamelModel
from cardshop.config import settings
from cardshop.services.economy import EconomyState, claim_reward, economy_state, get_economy

router = APIRouter(prefix="/api", tags=["economy"])


class EconomyResponse(CamelModel):
    """A user's balance and reward eligibility."""

    balance_cents: int
    can_claim: bool
    next_reward_at: datetime | None = None
    ms_until_next_claim: int = 0


class MeResponse(CamelModel):
    """The acting user."""

    id: str
    balance_cents: int
    next_reward_at: datetime | None = None
    is_admin: bool = False


def _to_response(state: EconomyState) -> EconomyResponse:
    return EconomyResponse(
        balance_cents=state.balance_cents,
        can_claim=state.can_claim,
        next_reward_at=state.next_reward_at,
        ms_until_next_claim=state.ms_until_next_claim,
    )


@router.get("/economy", response_model=EconomyResponse)
async def read_economy(session: SessionDep, user: CurrentUser) -> EconomyResponse:
    """Current balance and whether the timed reward can be claimed."""
    return _to_response(await get_economy(session, user.id))


@router.post("/economy/claim", response_model=EconomyResponse)
async def claim(session: SessionDep, user: CurrentUser) -> EconomyResponse:
    """
    Claim the timed reward.

    Returns the unchanged state when the cooldown has not elapsed.
    """
    state = await claim_reward(session, user.id)
    await session.commit()
    return _to_response(state)


@router.get("/me", response_model=MeResponse)
async def get_me(user: CurrentUser) -> MeResponse:
    """The acting user with balance and admin flag."""
    state = economy_state(user)
    return MeResponse(
        id=user.id,
        balance_cents=user.balance_cents,
        next_reward_at=state.next_reward_at,
        is_admin=user.id in settings.admin_user_ids,
    )
