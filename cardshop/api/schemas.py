"""
Shared response building blocks.

The JSON API speaks camelCase. Models accept snake_case field names in
Python and serialize with camelCase aliases.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProductSummary(CamelModel):
    """Product fields embedded in other responses."""

    id: str
    year: int | None = None
    brand: str | None = None
    sport: str | None = None
    pack_price_cents: int = 0
    packs_per_box: int | None = None
    cards_per_pack: int | None = None
    pack_image_url: str | None = None
    box_image_url: str | None = None


class ProductSetRef(CamelModel):
    """Minimal product set reference for set pickers."""

    id: str
    name: str | None = None
    is_base: bool = False
