"""
Virtual balance and the timed reward.

A user may claim a fixed reward whenever their cooldown has elapsed.
Claiming early is not an error: the unchanged state is returned.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.config import settings
from cardshop.db.operations import credit_reward, get_user
from cardshop.models.db import UserDB
from cardshop.models.failure import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EconomyState:
    """A user's balance and reward eligibility at a point in time."""

    balance_cents: int
    can_claim: bool
    next_reward_at: datetime | None
    ms_until_next_claim: int


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def economy_state(user: UserDB, now: datetime | None = None) -> EconomyState:
    """Describe a user's balance and whether the reward can be claimed at `now`."""
    now = now or datetime.now(UTC)
    next_reward_at = _as_utc(user.next_reward_at)

    can_claim = next_reward_at is None or now >= next_reward_at
    if can_claim or next_reward_at is None:
        ms_until = 0
    else:
        ms_until = max(0, int((next_reward_at - now).total_seconds() * 1000))

    return EconomyState(
        balance_cents=user.balance_cents,
        can_claim=can_claim,
        next_reward_at=next_reward_at,
        ms_until_next_claim=ms_until,
    )


async def get_economy(
    session: AsyncSession, user_id: str, now: datetime | None = None
) -> EconomyState:
    """Current economy state for a user."""
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")
    return economy_state(user, now)


async def claim_reward(
    session: AsyncSession, user_id: str, now: datetime | None = None
) -> EconomyState:
    """
    Claim the timed reward if the cooldown has elapsed.

    Credits `settings.reward_cents` and restarts the cooldown. When the
    user is not yet eligible nothing changes.
    """
    now = now or datetime.now(UTC)
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")

    state = economy_state(user, now)
    if not state.can_claim:
        return state

    next_reward_at = now + timedelta(minutes=settings.reward_cooldown_minutes)
    credited = await credit_reward(session, user_id, settings.reward_cents, now, next_reward_at)
    if credited:
        logger.info("User %s claimed %d cents reward", user_id, settings.reward_cents)

    # Reload: a concurrent claim may have won the race
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")
    return economy_state(user, now)
