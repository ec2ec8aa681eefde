"""
Parser for pasted checklist text.

Each line describes one card. Columns are separated by tabs (spreadsheet
copy/paste) or by runs of two or more spaces (web page copy/paste):

    cardNumber    player field    team

- Leading "Image thumbnail" columns (checklist site exports) are dropped
- A "DK" flag on the player field sets the subset to "Diamond Kings"
- Other comma flags on the player field become the variant ("UER")
- Checklist cards ("Checklist", "CL", "CHK") get subset "Checklist"
"""

import re
from dataclasses import dataclass, field

# One or more leading "Image thumbnail" tokens
THUMBNAIL_PATTERN = re.compile(r"^(\s*Image\s+thumbnail\s*)+", re.IGNORECASE)

# Checklist markers anywhere in the row
CHECKLIST_PATTERN = re.compile(r"checklist|\bcl\b|\bchk\b", re.IGNORECASE)

# "Dave Stieb DK" (flag without a comma)
TRAILING_DK_PATTERN = re.compile(r"^(.*)\sDK$", re.IGNORECASE)

DIAMOND_KINGS = "Diamond Kings"
CHECKLIST = "Checklist"

# Column widths of the cards table
MAX_CARD_NUMBER_LENGTH = 50
MAX_TEXT_LENGTH = 255


@dataclass(frozen=True)
class ParsedCard:
    """A card row recovered from checklist text."""

    card_number: str
    player: str
    team: str | None = None
    subset: str | None = None
    variant: str | None = None


@dataclass(frozen=True)
class LineError:
    """A line that could not be parsed."""

    line: int
    reason: str
    raw: str


@dataclass
class ParsedChecklist:
    """Result of parsing a checklist paste."""

    cards: list[ParsedCard] = field(default_factory=list)
    skipped: int = 0
    errors: list[LineError] = field(default_factory=list)


def split_columns(line: str) -> list[str]:
    """Split a row on tabs when present, else on runs of 2+ spaces."""
    if "\t" in line:
        parts = line.split("\t")
    else:
        parts = re.split(r"\s{2,}", line)
    return [p.strip() for p in parts if p.strip()]


def looks_like_checklist(text: str) -> bool:
    """True if the row describes a checklist card rather than a player."""
    return bool(CHECKLIST_PATTERN.search(text or ""))


def parse_player_field(raw: str) -> tuple[str, str | None, str | None]:
    """
    Split a player field into (player, subset, variant).

    Examples:
        "Ron Gant DK, UER" -> ("Ron Gant", "Diamond Kings", "UER")
        "Dave Stieb DK"    -> ("Dave Stieb", "Diamond Kings", None)
        "Cal Ripken"       -> ("Cal Ripken", None, None)
    """
    cleaned = re.sub(r"\s*,\s*", ", ", raw).strip()
    player = cleaned
    subset: str | None = None
    variant: str | None = None

    parts = [p.strip() for p in cleaned.split(",")]
    if len(parts) > 1:
        player = parts[0]
        flags = [p for p in parts[1:] if p]
        if "DK" in flags:
            subset = DIAMOND_KINGS
        others = [f for f in flags if f != "DK"]
        if others:
            variant = ", ".join(others)

    match = TRAILING_DK_PATTERN.match(player)
    if match:
        player = match.group(1).strip()
        subset = subset or DIAMOND_KINGS

    return player, subset, variant


def parse_checklist_line(line: str) -> ParsedCard | None:
    """
    Parse one checklist row.

    Returns None for rows that carry no card (blank, no card number,
    or no player on a non-checklist row).
    """
    cleaned = THUMBNAIL_PATTERN.sub("", line).strip()
    if not cleaned:
        return None

    parts = split_columns(cleaned)
    if not parts:
        return None

    card_number = parts[0]
    player_field = parts[1] if len(parts) > 1 else ""
    team = parts[2] if len(parts) > 2 else ""

    if not card_number:
        return None

    is_checklist = looks_like_checklist(" ".join([player_field, team, cleaned]))
    if not player_field and not is_checklist:
        return None

    if is_checklist:
        return ParsedCard(
            card_number=card_number,
            player=player_field or CHECKLIST,
            team=team or None,
            subset=CHECKLIST,
        )

    player, subset, variant = parse_player_field(player_field)
    return ParsedCard(
        card_number=card_number,
        player=player,
        team=team or None,
        subset=subset,
        variant=variant,
    )


def _check_lengths(card: ParsedCard) -> str | None:
    if len(card.card_number) > MAX_CARD_NUMBER_LENGTH:
        return f"Card number longer than {MAX_CARD_NUMBER_LENGTH} characters"
    for value in (card.player, card.team, card.variant):
        if value and len(value) > MAX_TEXT_LENGTH:
            return f"Field longer than {MAX_TEXT_LENGTH} characters: {value[:20]}..."
    return None


def parse_checklist_text(text: str) -> ParsedChecklist:
    """
    Parse pasted checklist text into card rows.

    Blank lines are ignored. Lines without a card are counted as skipped.
    Lines whose fields do not fit the cards table are reported as errors.
    A repeated card number keeps the last row seen.
    """
    result = ParsedChecklist()
    by_number: dict[str, ParsedCard] = {}

    lines = [line.rstrip() for line in (text or "").splitlines() if line.strip()]
    for index, raw in enumerate(lines, start=1):
        card = parse_checklist_line(raw)
        if card is None:
            result.skipped += 1
            continue

        reason = _check_lengths(card)
        if reason:
            result.errors.append(LineError(line=index, reason=reason, raw=raw))
            continue
        by_number[card.card_number] = card

    result.cards = list(by_number.values())
    return result
