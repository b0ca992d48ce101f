"""
Configuration Management for Ledgerbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: The member roster lives in configuration, not in code.
The engine never reads it directly - callers pass the roster into every
engine call, so tests can use any roster they like.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MEMBERS = (
    "Arun,Vivek,Nidit,Kunal,Manan,Amit,Akshit,Shan,Pratik,Parikshit,Mridul"
)


class LedgerSettings(BaseSettings):
    """Ledger rules: who is in the group and what a valid entry looks like."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    members: str = Field(
        default=DEFAULT_MEMBERS,
        description="Comma-separated member roster, in display order"
    )
    max_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Largest amount a single transaction may carry"
    )
    amount_decimal_places: int = Field(
        default=2,
        ge=0,
        le=2,
        description="Currency precision accepted for amounts (stored rows keep at most 2)"
    )
    note_max_length: int = Field(
        default=200,
        ge=1,
        le=200,
        description="Maximum length of a transaction note"
    )
    settlement_note: str = Field(
        default="Settled up",
        min_length=1,
        description="Note attached to settle-up repayments"
    )

    @field_validator('members')
    @classmethod
    def validate_members(cls, v: str) -> str:
        """Roster must be non-empty and free of duplicates."""
        names = [name.strip() for name in v.split(",") if name.strip()]
        if len(names) < 2:
            raise ValueError("Roster needs at least two members")
        if len(set(names)) != len(names):
            raise ValueError("Roster contains duplicate members")
        return v

    @property
    def roster(self) -> tuple[str, ...]:
        """Get the roster as an ordered tuple."""
        return tuple(name.strip() for name in self.members.split(",") if name.strip())


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for the structured log"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
