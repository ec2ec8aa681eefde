import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cardshop.api.deps import get_rng
from cardshop.db.database import get_session, session_scope
from cardshop.main import app
from cardshop.models.db import (
    Base,
    CardDB,
    ProductDB,
    ProductSetDB,
    SealedInventoryDB,
    UserDB,
)

PRODUCT_ID = "1991 Donruss Baseball"
BASE_SET_ID = "1991-donruss-base"
DK_SET_ID = "1991-donruss-diamond-kings"


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def file_session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """Sessions on a file-backed SQLite database, each with its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cardshop.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1991)


@pytest.fixture
async def client(session_factory, rng):
    """Provide an async test client with overridden database session and a seeded rng."""

    async def override_get_session():
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_rng] = lambda: rng

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_catalog():
    return _seed_catalog


@pytest.fixture
def seed_user():
    return _seed_user


async def _seed_catalog(
    session: AsyncSession,
    *,
    base_cards: int = 20,
    insert_cards: int = 3,
    odds_per_pack: int = 10,
    cards_per_pack: int | None = 5,
) -> ProductDB:
    """
    Add a product with a base set and one Diamond Kings insert set.

    Base cards are numbered 1..base_cards, inserts DK1..DKn.
    """
    product = ProductDB(
        id=PRODUCT_ID,
        year=1991,
        brand="Donruss",
        sport="Baseball",
        pack_price_cents=100,
        packs_per_box=36,
        cards_per_pack=cards_per_pack,
        pack_image_url="/img/1991-donruss-pack.png",
    )
    session.add(product)
    session.add(ProductSetDB(id=BASE_SET_ID, product_id=PRODUCT_ID, name="Base", is_base=True))
    session.add(
        ProductSetDB(
            id=DK_SET_ID,
            product_id=PRODUCT_ID,
            name="Diamond Kings",
            is_insert=True,
            odds_per_pack=odds_per_pack,
        )
    )
    for n in range(1, base_cards + 1):
        session.add(
            CardDB(
                product_set_id=BASE_SET_ID,
                card_number=str(n),
                player=f"Base Player {n}",
                team="Braves",
                book_value=0.05,
            )
        )
    for n in range(1, insert_cards + 1):
        session.add(
            CardDB(
                product_set_id=DK_SET_ID,
                card_number=f"DK{n}",
                player=f"King {n}",
                subset="Diamond Kings",
                book_value=1.5,
            )
        )
    await session.flush()
    return product


async def _seed_user(
    session: AsyncSession,
    user_id: str = "default",
    *,
    balance_cents: int = 5000,
    packs: int | None = None,
    product_id: str = PRODUCT_ID,
) -> UserDB:
    """Add a user, optionally holding sealed packs of a product."""
    user = UserDB(id=user_id, balance_cents=balance_cents)
    session.add(user)
    if packs is not None:
        session.add(SealedInventoryDB(user_id=user_id, product_id=product_id, packs_owned=packs))
    await session.flush()
    return user
