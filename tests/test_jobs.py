"""Tests for the checklist import job."""

from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, patch

from sqlalchemy import select

from cardshop.db.database import session_scope
from cardshop.jobs.import_checklist import main, read_checklist, run_import
from cardshop.models.db import CardDB
from cardshop.models.failure import NotFoundError
from cardshop.services.catalog import ImportResult

BASE_SET_ID = "1991-donruss-base"


class TestReadChecklist:
    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "checklist.txt"
        path.write_text("1\tDave Stieb DK\tBlue Jays\n", encoding="utf-8")

        assert read_checklist(str(path)) == "1\tDave Stieb DK\tBlue Jays\n"


class TestRunImport:
    async def test_imports_into_set(self, session_factory, session, seed_catalog) -> None:
        await seed_catalog(session, base_cards=1)
        await session.commit()

        @asynccontextmanager
        async def test_scope():
            async with session_scope(session_factory) as s:
                yield s

        with (
            patch("cardshop.jobs.import_checklist.init_db", new_callable=AsyncMock),
            patch("cardshop.jobs.import_checklist.session_scope", test_scope),
        ):
            result = await run_import(BASE_SET_ID, "1\tDave Stieb DK\n2\tMark Grace, UER\n")

        assert (result.inserted, result.updated) == (1, 1)
        async with session_factory() as fresh:
            players = (
                await fresh.execute(
                    select(CardDB.player)
                    .where(CardDB.product_set_id == BASE_SET_ID)
                    .order_by(CardDB.id)
                )
            ).all()
        assert [p for (p,) in players] == ["Dave Stieb", "Mark Grace"]


class TestMain:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert main([BASE_SET_ID, str(tmp_path / "missing.txt")]) == 1

    def test_success(self, tmp_path: Path) -> None:
        path = tmp_path / "checklist.txt"
        path.write_text("1\tSomeone\n", encoding="utf-8")

        with patch(
            "cardshop.jobs.import_checklist.run_import",
            new_callable=AsyncMock,
            return_value=ImportResult(product_set_id=BASE_SET_ID, inserted=1),
        ) as run:
            assert main([BASE_SET_ID, str(path)]) == 0

        run.assert_awaited_once_with(BASE_SET_ID, "1\tSomeone\n")

    def test_known_error_exits_nonzero(self, tmp_path: Path) -> None:
        path = tmp_path / "checklist.txt"
        path.write_text("1\tSomeone\n", encoding="utf-8")

        with patch(
            "cardshop.jobs.import_checklist.run_import",
            new_callable=AsyncMock,
            side_effect=NotFoundError("Product Set not found"),
        ):
            assert main(["missing", str(path)]) == 1
