"""
Storefront pricing and purchases.

Buying is the only way sealed packs enter a user's inventory. A purchase
debits the user's balance and credits packs in the same unit of work.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from cardshop.config import settings
from cardshop.db.operations import (
    add_packs,
    debit_balance,
    get_product,
    get_user,
    list_products,
)
from cardshop.models.db import ProductDB
from cardshop.models.failure import (
    ConfigurationError,
    InsufficientFundsError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

PurchaseKind = Literal["pack", "box"]


@dataclass(frozen=True)
class ShopProduct:
    """A product as listed in the storefront."""

    product: ProductDB
    product_sets_count: int
    pack_price_cents: int
    box_price_cents: int | None


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a purchase."""

    product_id: str
    kind: PurchaseKind
    quantity: int
    cost_cents: int
    packs_added: int
    balance_cents: int
    packs_owned: int


def compute_box_price_cents(
    pack_price_cents: int, packs_per_box: int, discount: float | None = None
) -> int:
    """Price of a sealed box: the packs it holds at the box discount, rounded to a cent."""
    if discount is None:
        discount = settings.box_discount
    return round(pack_price_cents * packs_per_box * discount)


async def list_shop_products(session: AsyncSession) -> list[ShopProduct]:
    """List every product with storefront pricing."""
    listed = []
    for product, sets_count in await list_products(session, storefront_order=True):
        pack_price = product.pack_price_cents or 0
        packs_per_box = product.packs_per_box or 0
        box_price = (
            compute_box_price_cents(pack_price, packs_per_box) if packs_per_box > 0 else None
        )
        listed.append(
            ShopProduct(
                product=product,
                product_sets_count=sets_count,
                pack_price_cents=pack_price,
                box_price_cents=box_price,
            )
        )
    return listed


async def buy(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    kind: PurchaseKind,
    quantity: int,
) -> PurchaseResult:
    """
    Buy packs or boxes of a product.

    Raises:
        ValidationError: If the product id, kind or quantity is invalid
        ProductNotFoundError: If the product does not exist
        ConfigurationError: If buying boxes of a product without packs_per_box
        InsufficientFundsError: If the balance does not cover the cost
    """
    product_id = product_id.strip()
    if not product_id:
        raise ValidationError("Missing productId")
    if kind not in ("pack", "box"):
        raise ValidationError("Invalid kind")
    if quantity <= 0 or quantity > settings.max_purchase_quantity:
        raise ValidationError("Invalid quantity")

    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")

    product = await get_product(session, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    pack_price = product.pack_price_cents or 0
    packs_per_box = product.packs_per_box or 0

    if kind == "pack":
        cost_cents = pack_price * quantity
        packs_to_add = quantity
    else:
        if packs_per_box <= 0:
            raise ConfigurationError("Product has no packsPerBox set", status_code=400)
        cost_cents = compute_box_price_cents(pack_price, packs_per_box) * quantity
        packs_to_add = packs_per_box * quantity

    if user.balance_cents < cost_cents:
        raise InsufficientFundsError(user.balance_cents, cost_cents)

    balance_cents = await debit_balance(session, user_id, cost_cents)
    if balance_cents is None:
        # The balance was spent by another request after the check above
        current = await get_user(session, user_id)
        raise InsufficientFundsError(current.balance_cents if current else 0, cost_cents)

    inventory = await add_packs(session, user_id, product_id, packs_to_add)

    logger.info(
        "User %s bought %d %s(s) of %s for %d cents (%d packs added)",
        user_id,
        quantity,
        kind,
        product_id,
        cost_cents,
        packs_to_add,
    )

    return PurchaseResult(
        product_id=product_id,
        kind=kind,
        quantity=quantity,
        cost_cents=cost_cents,
        packs_added=packs_to_add,
        balance_cents=balance_cents,
        packs_owned=inventory.packs_owned,
    )
