"""
Case Engine - Configuration

All runtime settings are read once from the environment and handed to
services explicitly. Nothing below is mutated after startup.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class BuyerProfile:
    """Business identity printed on every bill of sale."""
    name: str = "VOS (VIN On Spot)"
    short_name: str = "VOS"
    address: str = "123 Business Ave"
    city: str = "Business City"
    state: str = "BC"
    zip_code: str = "12345"
    business_license: str = ""


@dataclass(frozen=True)
class Settings:
    """Application settings."""
    database_url: str = "sqlite:///./case_engine.db"
    webhook_url: str = ""
    webhook_timeout_seconds: float = 15.0
    document_storage_dir: str = "./uploads/pdfs"
    public_base_url: str = "http://localhost:8001"
    log_level: str = "INFO"
    buyer: BuyerProfile = field(default_factory=BuyerProfile)

    @property
    def webhook_enabled(self) -> bool:
        return bool(self.webhook_url)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        buyer_defaults = BuyerProfile()

        buyer = BuyerProfile(
            name=os.getenv("BUYER_NAME", buyer_defaults.name),
            short_name=os.getenv("BUYER_SHORT_NAME", buyer_defaults.short_name),
            address=os.getenv("BUYER_ADDRESS", buyer_defaults.address),
            city=os.getenv("BUYER_CITY", buyer_defaults.city),
            state=os.getenv("BUYER_STATE", buyer_defaults.state),
            zip_code=os.getenv("BUYER_ZIP", buyer_defaults.zip_code),
            business_license=os.getenv("BUYER_BUSINESS_LICENSE", buyer_defaults.business_license),
        )

        timeout_raw = os.getenv("WEBHOOK_TIMEOUT_SECONDS")
        try:
            timeout = float(timeout_raw) if timeout_raw else defaults.webhook_timeout_seconds
        except ValueError:
            raise ValueError(f"WEBHOOK_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}")

        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            webhook_url=os.getenv("WEBHOOK_URL", defaults.webhook_url),
            webhook_timeout_seconds=timeout,
            document_storage_dir=os.getenv("DOCUMENT_STORAGE_DIR", defaults.document_storage_dir),
            public_base_url=os.getenv("PUBLIC_BASE_URL", defaults.public_base_url).rstrip("/"),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            buyer=buyer,
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    return Settings.from_env()
