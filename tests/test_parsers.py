"""Tests for the checklist text parser."""

import pytest

from cardshop.parsers.checklist_import import (
    CHECKLIST,
    DIAMOND_KINGS,
    looks_like_checklist,
    parse_checklist_line,
    parse_checklist_text,
    parse_player_field,
    split_columns,
)


class TestSplitColumns:
    def test_tabs(self) -> None:
        assert split_columns("1\tRon Gant\tBraves") == ["1", "Ron Gant", "Braves"]

    def test_runs_of_spaces(self) -> None:
        assert split_columns("1   Ron Gant  Braves") == ["1", "Ron Gant", "Braves"]

    def test_single_spaces_stay_together(self) -> None:
        assert split_columns("Cal Ripken Jr.") == ["Cal Ripken Jr."]


class TestParsePlayerField:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Cal Ripken", ("Cal Ripken", None, None)),
            ("Dave Stieb DK", ("Dave Stieb", DIAMOND_KINGS, None)),
            ("Ron Gant DK, UER", ("Ron Gant", DIAMOND_KINGS, "UER")),
            ("Ron Gant, DK", ("Ron Gant", DIAMOND_KINGS, None)),
            ("Mark Grace,UER", ("Mark Grace", None, "UER")),
            ("Nolan Ryan, RR, ERR", ("Nolan Ryan", None, "RR, ERR")),
        ],
    )
    def test_flags(self, raw: str, expected: tuple[str, str | None, str | None]) -> None:
        assert parse_player_field(raw) == expected


class TestLooksLikeChecklist:
    @pytest.mark.parametrize("text", ["Checklist 1-132", "CL", "chk 2", "Team CL"])
    def test_checklist_markers(self, text: str) -> None:
        assert looks_like_checklist(text)

    @pytest.mark.parametrize("text", ["Cleveland Indians", "Chuck Finley", ""])
    def test_players(self, text: str) -> None:
        assert not looks_like_checklist(text)


class TestParseChecklistLine:
    def test_full_row(self) -> None:
        card = parse_checklist_line("1\tDave Stieb DK\tBlue Jays")

        assert card is not None
        assert card.card_number == "1"
        assert card.player == "Dave Stieb"
        assert card.team == "Blue Jays"
        assert card.subset == DIAMOND_KINGS

    def test_strips_thumbnail_tokens(self) -> None:
        card = parse_checklist_line("Image thumbnail Image thumbnail\t44\tCal Ripken\tOrioles")

        assert card is not None
        assert card.card_number == "44"
        assert card.player == "Cal Ripken"

    def test_row_without_team(self) -> None:
        card = parse_checklist_line("12  Ken Griffey Jr.")

        assert card is not None
        assert card.team is None

    def test_checklist_row(self) -> None:
        card = parse_checklist_line("27\tChecklist 1-27")

        assert card is not None
        assert card.player == "Checklist 1-27"
        assert card.subset == CHECKLIST

    @pytest.mark.parametrize("line", ["", "   ", "Image thumbnail", "55"])
    def test_rows_without_a_card(self, line: str) -> None:
        assert parse_checklist_line(line) is None


class TestParseChecklistText:
    def test_counts_and_skips(self) -> None:
        text = "\n".join(
            [
                "1\tDave Stieb DK\tBlue Jays",
                "",
                "2\tMike Greenwell DK\tRed Sox",
                "header only",
                "3\tRuben Sierra\tRangers",
            ]
        )

        result = parse_checklist_text(text)

        assert [c.card_number for c in result.cards] == ["1", "2", "3"]
        assert result.skipped == 1
        assert result.errors == []

    def test_last_duplicate_wins(self) -> None:
        result = parse_checklist_text("7\tOld Name\n7\tNew Name")

        assert len(result.cards) == 1
        assert result.cards[0].player == "New Name"

    def test_overlong_fields_are_errors(self) -> None:
        long_number = "9" * 60
        result = parse_checklist_text(f"{long_number}\tSomeone\n1\tSomeone Else")

        assert [c.card_number for c in result.cards] == ["1"]
        assert len(result.errors) == 1
        assert result.errors[0].line == 1
        assert result.errors[0].raw.startswith("999")

    def test_empty_text(self) -> None:
        result = parse_checklist_text("")

        assert result.cards == []
        assert result.skipped == 0
