from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CARDSHOP_")

    app_name: str = "CardShop"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./cardshop.db"

    # Acting user when a request carries no X-User-Id header
    default_user_id: str = "default"
    admin_user_ids: list[str] = ["default", "local"]

    # Economy
    starting_balance_cents: int = 5000
    reward_cents: int = 1000
    reward_cooldown_minutes: int = 30

    # Storefront
    box_discount: float = 0.75
    max_purchase_quantity: int = 999

    # Pack size used when a product has no cards_per_pack configured
    default_cards_per_pack: int = 15


settings = Settings()


# =============================================================================
# REQUEST HEADERS
# =============================================================================

# Header carrying the acting user id (set by an upstream auth proxy)
USER_ID_HEADER = "X-User-Id"
