"""
SQLAlchemy ORM models for persistent storage.

Products own product sets (card pools), product sets own cards.
Users own sealed packs per product and cards per card.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """
    A shop user.

    Holds the virtual balance spent in the storefront and the
    cooldown for the timed reward.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    balance_cents: Mapped[int] = mapped_column(Integer, default=5000)
    next_reward_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, balance_cents={self.balance_cents})>"


class ProductDB(Base):
    """
    A purchasable release, e.g. "1991 Donruss Baseball".

    Sold as packs (and boxes of packs). Its cards live in product sets.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sport: Mapped[str | None] = mapped_column(String(100), nullable=True)

    pack_price_cents: Mapped[int] = mapped_column(Integer, default=0)
    packs_per_box: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cards_per_pack: Mapped[int | None] = mapped_column(Integer, nullable=True)

    pack_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    box_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    released: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    product_sets: Mapped[list["ProductSetDB"]] = relationship(
        back_populates="product", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ProductDB(id={self.id})>"


class ProductSetDB(Base):
    """
    A pool of cards within a product.

    Exactly one set per product is expected to be the base set.
    Insert sets carry odds_per_pack, read as "1 in N packs".
    """

    __tablename__ = "product_sets"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    product_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_base: Mapped[bool] = mapped_column(Boolean, default=False)
    is_insert: Mapped[bool] = mapped_column(Boolean, default=False)
    odds_per_pack: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    product: Mapped["ProductDB"] = relationship(back_populates="product_sets")
    cards: Mapped[list["CardDB"]] = relationship(
        back_populates="product_set", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ProductSetDB(id={self.id}, base={self.is_base}, odds={self.odds_per_pack})>"


class CardDB(Base):
    """A single card in a product set, unique by card number within the set."""

    __tablename__ = "cards"
    __table_args__ = (
        UniqueConstraint("product_set_id", "card_number", name="uq_product_set_card_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_set_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("product_sets.id", ondelete="CASCADE"), index=True
    )
    card_number: Mapped[str] = mapped_column(String(50))
    player: Mapped[str] = mapped_column(String(255), index=True)
    team: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subset: Mapped[str | None] = mapped_column(String(255), nullable=True)
    variant: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Stored in dollars
    book_value: Mapped[float] = mapped_column(Float, default=0.0)

    front_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    back_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    product_set: Mapped["ProductSetDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, number={self.card_number}, player={self.player})>"


class SealedInventoryDB(Base):
    """
    Unopened packs a user owns of one product.

    Incremented by purchases, decremented only by opening a pack.
    """

    __tablename__ = "sealed_inventory"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_user_product"),
        CheckConstraint("packs_owned >= 0", name="ck_packs_owned_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    packs_owned: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    product: Mapped["ProductDB"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<SealedInventoryDB(user={self.user_id}, product={self.product_id}, "
            f"packs={self.packs_owned})>"
        )


class CardOwnershipDB(Base):
    """
    Individual card ownership record.

    Tracks how many copies of a specific card a user owns.
    """

    __tablename__ = "card_ownership"
    __table_args__ = (
        UniqueConstraint("user_id", "card_id", name="uq_user_card"),
        CheckConstraint("quantity >= 0", name="ck_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0)

    card: Mapped["CardDB"] = relationship()

    def __repr__(self) -> str:
        return f"<CardOwnershipDB(user={self.user_id}, card={self.card_id}, qty={self.quantity})>"
