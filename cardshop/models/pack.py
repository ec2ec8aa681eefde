from dataclasses import dataclass, field


@dataclass(frozen=True)
class PoolCard:
    """
    A card as seen by the pack selector.

    Carries the display fields returned to the client so the
    selection result can be serialized without another query.
    """

    id: int
    product_set_id: str
    card_number: str
    player: str
    team: str | None = None
    subset: str | None = None
    variant: str | None = None
    front_image_url: str | None = None
    back_image_url: str | None = None
    book_value: float = 0.0


@dataclass(frozen=True)
class InsertPool:
    """A non-base product set that can hit 1 in `odds_per_pack` packs."""

    product_set_id: str
    odds_per_pack: int
    cards: list[PoolCard] = field(default_factory=list)


@dataclass(frozen=True)
class PackSelection:
    """Cards chosen for one pack, in reveal order (base first, then inserts)."""

    cards: list[PoolCard]
    insert_hits: list[str] = field(default_factory=list)
    dropped_inserts: list[str] = field(default_factory=list)
    backfilled: int = 0


@dataclass(frozen=True)
class PulledCard:
    """A card pulled from an opened pack, with the user's quantity after the pull."""

    card: PoolCard
    is_insert: bool
    owned_after: int


@dataclass(frozen=True)
class PackResult:
    """Outcome of opening one pack."""

    product_id: str
    pack_image_url: str | None
    cards_per_pack: int
    cards: list[PulledCard]
    packs_remaining: int
