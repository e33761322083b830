"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    # Artifacts
    output_dir: str = "output"

    # ==========================================================================
    # Browser Session Settings
    # ==========================================================================
    headless: bool = True
    browser_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_ms: int = 60000
    navigation_wait_until: str = "networkidle"

    # ==========================================================================
    # Pagination Settings
    # ==========================================================================
    network_settle_timeout_ms: int = 30000  # Wait for network idle after "next" click
    settle_fallback_delay_seconds: float = 3.0  # Used when network idle never fires
    pre_pagination_delay_seconds: float = 1.0  # After scrolling to the pagination bar
    click_delay_seconds: float = 2.0  # Between click and network-idle wait
    inter_page_delay_seconds: float = 2.0
    max_pages_limit: int = 50  # Upper bound accepted from job submitters

    # ==========================================================================
    # Readiness / Lazy Loading Settings
    # ==========================================================================
    auto_scroll_step_px: int = 100
    auto_scroll_interval_seconds: float = 0.1
    auto_scroll_max_steps: int = 400
    post_scroll_settle_seconds: float = 3.0

    # ==========================================================================
    # Extraction Settings
    # ==========================================================================
    delivery_scan_max_length: int = 100  # Longer texts are ignored by the subtree scan

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
