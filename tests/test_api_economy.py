"""Tests for balance, reward and identity endpoints."""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.models.db import UserDB
from cardshop.services.economy import claim_reward, economy_state, get_economy

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class TestEconomyState:
    def test_new_user_can_claim(self) -> None:
        state = economy_state(UserDB(id="u", balance_cents=5000, next_reward_at=None), NOW)

        assert state.can_claim is True
        assert state.ms_until_next_claim == 0

    def test_cooldown_remaining(self) -> None:
        user = UserDB(id="u", balance_cents=0, next_reward_at=NOW + timedelta(minutes=5))

        state = economy_state(user, NOW)

        assert state.can_claim is False
        assert state.ms_until_next_claim == 300_000

    def test_naive_timestamps_are_utc(self) -> None:
        naive = (NOW - timedelta(seconds=1)).replace(tzinfo=None)

        state = economy_state(UserDB(id="u", balance_cents=0, next_reward_at=naive), NOW)

        assert state.can_claim is True
        assert state.next_reward_at is not None
        assert state.next_reward_at.tzinfo is UTC


class TestClaimReward:
    async def test_claim_credits_and_starts_cooldown(
        self, session: AsyncSession, seed_user
    ) -> None:
        await seed_user(session, "alice", balance_cents=100)

        state = await claim_reward(session, "alice", now=NOW)

        assert state.balance_cents == 1100
        assert state.can_claim is False
        assert state.next_reward_at == NOW + timedelta(minutes=30)

    async def test_early_claim_is_a_no_op(self, session: AsyncSession, seed_user) -> None:
        await seed_user(session, "alice", balance_cents=100)
        await claim_reward(session, "alice", now=NOW)

        state = await claim_reward(session, "alice", now=NOW + timedelta(minutes=10))

        assert state.balance_cents == 1100
        assert state.ms_until_next_claim == 20 * 60 * 1000

    async def test_claim_after_cooldown(self, session: AsyncSession, seed_user) -> None:
        await seed_user(session, "alice", balance_cents=0)
        await claim_reward(session, "alice", now=NOW)

        state = await claim_reward(session, "alice", now=NOW + timedelta(minutes=30))

        assert state.balance_cents == 2000
        economy = await get_economy(session, "alice", now=NOW + timedelta(minutes=30))
        assert economy.balance_cents == 2000


class TestEconomyEndpoints:
    async def test_new_user_gets_starting_balance(self, client: AsyncClient) -> None:
        response = await client.get("/api/economy", headers={"X-User-Id": "newbie"})

        assert response.status_code == 200
        data = response.json()
        assert data["balanceCents"] == 5000
        assert data["canClaim"] is True
        assert data["nextRewardAt"] is None
        assert data["msUntilNextClaim"] == 0

    async def test_claim_then_claim_again(self, client: AsyncClient) -> None:
        first = await client.post("/api/economy/claim")
        second = await client.post("/api/economy/claim")

        assert first.json()["balanceCents"] == 6000
        assert first.json()["canClaim"] is False
        assert second.json()["balanceCents"] == 6000
        assert second.json()["msUntilNextClaim"] > 0

    async def test_me_default_user_is_admin(self, client: AsyncClient) -> None:
        response = await client.get("/api/me")

        assert response.json() == {
            "id": "default",
            "balanceCents": 5000,
            "nextRewardAt": None,
            "isAdmin": True,
        }

    async def test_me_other_user(self, client: AsyncClient) -> None:
        response = await client.get("/api/me", headers={"X-User-Id": "alice"})

        assert response.json()["id"] == "alice"
        assert response.json()["isAdmin"] is False
