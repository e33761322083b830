"""Site profile registry."""

import logging

from listing_scraper.ingest.retailers.amazon import AMAZON_PROFILE
from listing_scraper.ingest.retailers.base import SiteProfile
from listing_scraper.ingest.retailers.flipkart import FLIPKART_PROFILE

logger = logging.getLogger(__name__)


class UnknownPlatformError(ValueError):
    """No site profile is registered for the requested platform."""

    def __init__(self, platform: str, available: list[str]):
        self.platform = platform
        self.available = available
        super().__init__(f"Unknown platform: {platform}. Available: {available}")


class ProfileRegistry:
    """Registry of supported sites keyed by platform name."""

    _profiles: dict[str, SiteProfile] = {
        "amazon": AMAZON_PROFILE,
        "flipkart": FLIPKART_PROFILE,
    }

    @classmethod
    def get_profile(cls, platform: str) -> SiteProfile:
        """
        Get the profile for a platform.

        Args:
            platform: Platform identifier, case-insensitive

        Returns:
            Site profile

        Raises:
            UnknownPlatformError: If the platform is not registered
        """
        key = (platform or "").strip().lower()
        if key not in cls._profiles:
            raise UnknownPlatformError(platform, cls.list_platforms())
        return cls._profiles[key]

    @classmethod
    def register_profile(cls, profile: SiteProfile) -> None:
        """Register (or replace) a site profile under its own name."""
        cls._profiles[profile.name] = profile
        logger.info(f"Registered site profile: {profile.name}")

    @classmethod
    def list_platforms(cls) -> list[str]:
        """List all registered platform identifiers."""
        return list(cls._profiles.keys())
