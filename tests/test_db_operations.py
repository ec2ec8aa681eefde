"""Tests for database CRUD operations."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.db.operations import (
    add_packs,
    card_number_sort_key,
    consume_pack,
    count_cards_by_set,
    credit_reward,
    debit_balance,
    delete_product_set,
    get_inventory,
    get_or_create_user,
    get_ownership_map,
    get_user,
    increment_ownership,
    list_owned_cards,
    list_products,
    upsert_card,
)
from cardshop.models.db import ProductDB

PRODUCT_ID = "1991 Donruss Baseball"
BASE_SET_ID = "1991-donruss-base"
DK_SET_ID = "1991-donruss-diamond-kings"


class TestUserOperations:
    async def test_get_or_create_user(self, session: AsyncSession) -> None:
        user, created = await get_or_create_user(session, "alice", 5000)
        again, created_again = await get_or_create_user(session, "alice", 100)

        assert created is True
        assert created_again is False
        assert again.balance_cents == 5000


    async def test_debit_refuses_overdraft(self, session: AsyncSession, seed_user) -> None:
        await seed_user(session, "alice", balance_cents=100)

        assert await debit_balance(session, "alice", 150) is None
        assert await debit_balance(session, "alice", 100) == 0


class TestInventoryOperations:
    async def test_add_packs_creates_then_increments(
        self, session: AsyncSession, seed_catalog, seed_user
    ) -> None:
        await seed_catalog(session)
        await seed_user(session, "alice")

        await add_packs(session, "alice", PRODUCT_ID, 2)
        inventory = await add_packs(session, "alice", PRODUCT_ID, 3)

        assert inventory.packs_owned == 5

    async def test_consume_pack_stops_at_zero(
        self, session: AsyncSession, seed_catalog, seed_user
    ) -> None:
        await seed_catalog(session)
        await seed_user(session, "alice", packs=2)

        assert await consume_pack(session, "alice", PRODUCT_ID) == 1
        assert await consume_pack(session, "alice", PRODUCT_ID) == 0
        assert await consume_pack(session, "alice", PRODUCT_ID) is None

        inventory = await get_inventory(session, "alice", PRODUCT_ID)
        assert inventory is not None
        assert inventory.packs_owned == 0

    async def test_consume_without_row(self, session: AsyncSession, seed_catalog) -> None:
        await seed_catalog(session)

        assert await consume_pack(session, "nobody", PRODUCT_ID) is None


class TestOwnershipOperations:
    async def test_increment_creates_then_counts(
        self, session: AsyncSession, seed_catalog, seed_user
    ) -> None:
        await seed_catalog(session)
        await seed_user(session, "alice")

        assert await increment_ownership(session, "alice", 1) == 1
        assert await increment_ownership(session, "alice", 1) == 2
        assert await increment_ownership(session, "alice", 2) == 1

        assert await get_ownership_map(session, "alice") == {1: 2, 2: 1}
        assert await get_ownership_map(session, "alice", [2, 3]) == {2: 1}
        assert await get_ownership_map(session, "alice", []) == {}

    async def test_list_owned_cards_by_set(
        self, session: AsyncSession, seed_catalog, seed_user
    ) -> None:
        await seed_catalog(session)
        await seed_user(session, "alice")
        await increment_ownership(session, "alice", 1)
        await increment_ownership(session, "alice", 21)

        owned = await list_owned_cards(session, "alice", DK_SET_ID)

        assert [(card.card_number, qty) for card, qty in owned] == [("DK1", 1)]
        assert owned[0][0].product_set.product.id == PRODUCT_ID


class TestCatalogOperations:
    async def test_list_products_orders(self, session: AsyncSession, seed_catalog) -> None:
        await seed_catalog(session)
        session.add(ProductDB(id="A 1995 Product", year=1995))
        session.add(ProductDB(id="Z 1989 Product", year=1989))
        await session.flush()

        by_id = [p.id for p, _ in await list_products(session)]
        storefront = [p.id for p, _ in await list_products(session, storefront_order=True)]

        assert by_id == ["1991 Donruss Baseball", "A 1995 Product", "Z 1989 Product"]
        assert storefront == ["Z 1989 Product", "1991 Donruss Baseball", "A 1995 Product"]

    async def test_upsert_card(self, session: AsyncSession, seed_catalog) -> None:
        await seed_catalog(session, base_cards=1)

        updated, created = await upsert_card(session, BASE_SET_ID, "1", player="New Name")
        inserted, created_new = await upsert_card(session, BASE_SET_ID, "2", player="Another")

        assert (created, created_new) == (False, True)
        assert updated.player == "New Name"
        assert inserted.id is not None
        assert await count_cards_by_set(session, [BASE_SET_ID]) == {BASE_SET_ID: 2}

    async def test_delete_missing_product_set(self, session: AsyncSession) -> None:
        assert await delete_product_set(session, "missing") is None

    async def test_delete_product_set_removes_cards(
        self, session: AsyncSession, seed_catalog, seed_user
    ) -> None:
        await seed_catalog(session)
        await seed_user(session, "alice")
        await increment_ownership(session, "alice", 22)

        assert await delete_product_set(session, DK_SET_ID) == 3
        assert await count_cards_by_set(session, [DK_SET_ID]) == {}
        assert await get_ownership_map(session, "alice") == {}


class TestCardNumberSortKey:
    @pytest.mark.parametrize(
        ("numbers", "expected"),
        [
            (["10", "2", "1"], ["1", "2", "10"]),
            (["12b", "12a", "3"], ["3", "12a", "12b"]),
            (["DK2", "DK10", "DK1"], ["DK1", "DK2", "DK10"]),
            (["CL", "5"], ["5", "CL"]),
        ],
    )
    def test_order(self, numbers: list[str], expected: list[str]) -> None:
        assert sorted(numbers, key=card_number_sort_key) == expected


class TestConcurrentWrites:
    """Writes from one session must not overwrite a commit made by another."""

    async def test_purchase_keeps_concurrent_pack_open(
        self, file_session_factory, seed_catalog, seed_user
    ) -> None:
        async with file_session_factory() as setup:
            await seed_catalog(setup)
            await seed_user(setup, "alice", packs=1)
            await setup.commit()

        async with file_session_factory() as buyer, file_session_factory() as opener:
            loaded = await get_inventory(buyer, "alice", PRODUCT_ID)
            assert loaded is not None
            assert loaded.packs_owned == 1

            assert await consume_pack(opener, "alice", PRODUCT_ID) == 0
            await opener.commit()

            inventory = await add_packs(buyer, "alice", PRODUCT_ID, 5)
            await buyer.commit()

        assert inventory.packs_owned == 5
        async with file_session_factory() as fresh:
            final = await get_inventory(fresh, "alice", PRODUCT_ID)
        assert final is not None
        assert final.packs_owned == 5

    async def test_debits_from_two_sessions_both_apply(
        self, file_session_factory, seed_user
    ) -> None:
        async with file_session_factory() as setup:
            await seed_user(setup, "alice", balance_cents=1000)
            await setup.commit()

        async with file_session_factory() as first, file_session_factory() as second:
            loaded = await get_user(first, "alice")
            assert loaded is not None

            assert await debit_balance(second, "alice", 300) == 700
            await second.commit()

            assert await debit_balance(first, "alice", 100) == 600
            await first.commit()

        assert loaded.balance_cents == 600

    async def test_reward_credited_once(self, file_session_factory, seed_user) -> None:
        now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
        next_reward_at = now + timedelta(minutes=30)
        async with file_session_factory() as setup:
            await seed_user(setup, "alice", balance_cents=0)
            await setup.commit()

        async with file_session_factory() as first, file_session_factory() as second:
            assert await get_user(first, "alice") is not None
            assert await get_user(second, "alice") is not None

            assert await credit_reward(second, "alice", 1000, now, next_reward_at) is True
            await second.commit()

            assert await credit_reward(first, "alice", 1000, now, next_reward_at) is False
            await first.commit()

        async with file_session_factory() as fresh:
            user = await get_user(fresh, "alice")
        assert user is not None
        assert user.balance_cents == 1000
