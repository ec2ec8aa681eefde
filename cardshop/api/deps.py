"""
Request-scoped dependencies shared by the routers.

The acting user is resolved here and nowhere else: services always
receive an explicit user id.
"""

import random
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.config import USER_ID_HEADER, settings
from cardshop.db.database import get_session
from cardshop.db.operations import get_or_create_user
from cardshop.models.db import UserDB

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """Acting user id from the request header, else the configured default user."""
    user_id = (x_user_id or "").strip()
    return user_id or settings.default_user_id


async def get_current_user(
    session: SessionDep,
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> UserDB:
    """The acting user, created with the starting balance on first use."""
    user, _ = await get_or_create_user(session, user_id, settings.starting_balance_cents)
    return user


def get_rng() -> random.Random:
    """Randomness for pack selection. Overridden with a seeded Random in tests."""
    return random.SystemRandom()


CurrentUser = Annotated[UserDB, Depends(get_current_user)]
RngDep = Annotated[random.Random, Depends(get_rng)]
