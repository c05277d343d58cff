"""Configuration management using Pydantic Settings."""

import os
from dataclasses import dataclass
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class CustomEnvSettings(PydanticBaseSettingsSource):
    """Custom environment settings source that handles comma-separated lists."""

    LIST_FIELDS = frozenset({"title_articles"})

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get field value from environment."""
        env_name = field_name.upper()
        env_val = os.getenv(env_name)

        if env_val is None:
            return None, env_name, False

        return env_val, env_name, False

    def prepare_field_value(
        self, field_name: str, field: Any, value: Any, value_is_complex: bool
    ) -> Any:
        """Prepare field value, skipping JSON parsing for list fields."""
        if field_name in self.LIST_FIELDS:
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)

    def __call__(self) -> dict[str, Any]:
        """Load settings from environment variables."""
        d: dict[str, Any] = {}

        for field_name, field_info in self.settings_cls.model_fields.items():
            field_value, _, value_is_complex = self.get_field_value(
                field_info, field_name
            )
            if field_value is not None:
                d[field_name] = self.prepare_field_value(
                    field_name,
                    field_info,
                    field_value,
                    value_is_complex,
                )

        return d


@dataclass(frozen=True)
class ConfidencePolicy:
    """Parse-confidence adjustments. Hashable so parse results can be cached."""

    base: int = 40
    identity_bonus: int = 25
    quality_bonus: int = 20
    group_bonus: int = 15
    short_title_penalty: int = 30
    numeric_penalty: int = 15
    floor: int = 50
    articles: tuple[str, ...] = ("the", "a", "an")


@dataclass(frozen=True)
class DecisionPolicy:
    """Tunable knobs of the quality decision engine."""

    quality_rank_multiplier: int = 10_000
    allow_format_upgrade_past_cutoff: bool = False
    format_upgrade_past_cutoff_threshold: int = 0


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to use custom environment handler."""
        return (
            init_settings,
            CustomEnvSettings(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    # Parse confidence
    confidence_base: int = Field(
        default=40, description="Starting confidence for every parsed title"
    )
    confidence_identity_bonus: int = Field(
        default=25, description="Added when an episode, date or year is found"
    )
    confidence_quality_bonus: int = Field(
        default=20, description="Added when resolution or source is found"
    )
    confidence_group_bonus: int = Field(
        default=15, description="Added when a release group is found"
    )
    confidence_short_title_penalty: int = Field(
        default=30, description="Subtracted when the title is shorter than 2 chars"
    )
    confidence_numeric_penalty: int = Field(
        default=15,
        description="Subtracted when several bare numbers are left in the title",
    )
    confidence_floor: int = Field(
        default=50,
        description="Below this, a parse needs manual confirmation",
    )

    title_articles: list[str] = Field(
        default=["the", "a", "an"],
        description="Leading articles dropped from clean titles (comma-separated)",
    )

    @field_validator("title_articles", mode="before")
    @classmethod
    def parse_title_articles(cls, v: str | list[str]) -> list[str]:
        """Parse articles from comma-separated string or list."""
        if isinstance(v, list):
            return [article.strip().lower() for article in v if article.strip()]
        if isinstance(v, str):
            articles = v.split(",")
            return [article.strip().lower() for article in articles if article.strip()]
        raise ValueError("title_articles must be a comma-separated string or list")

    @field_validator(
        "confidence_identity_bonus",
        "confidence_quality_bonus",
        "confidence_group_bonus",
        "confidence_short_title_penalty",
        "confidence_numeric_penalty",
    )
    @classmethod
    def validate_adjustment(cls, v: int) -> int:
        """Bonuses and penalties are magnitudes; their direction is fixed."""
        if v < 0:
            raise ValueError("confidence adjustments must not be negative")
        return v

    @field_validator("confidence_base", "confidence_floor")
    @classmethod
    def validate_confidence_range(cls, v: int) -> int:
        """Validate a value on the 0-100 confidence scale."""
        if not 0 <= v <= 100:
            raise ValueError("confidence values must be between 0 and 100")
        return v

    # Parse cache
    parse_cache_size: int = Field(
        default=1024, description="Number of parsed titles kept in memory"
    )

    # Quality decisions
    quality_rank_multiplier: int = Field(
        default=10_000,
        description="Minimum weight of one quality rank step in the total score",
    )
    allow_format_upgrade_past_cutoff: bool = Field(
        default=False,
        description="Allow upgrades by custom format score once cutoff is met",
    )
    format_upgrade_past_cutoff_threshold: int = Field(
        default=0,
        description="Format score a release must exceed to upgrade past cutoff",
    )
    evaluation_workers: int = Field(
        default=1, description="Threads used to evaluate candidates of one item"
    )

    @field_validator(
        "quality_rank_multiplier", "evaluation_workers", "parse_cache_size"
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate a strictly positive integer."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    log_level: str = Field(default="INFO", description="Log level for the CLI")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"invalid log level: {v}")
        return level

    def confidence_policy(self) -> ConfidencePolicy:
        """Build the immutable confidence policy for the parser."""
        return ConfidencePolicy(
            base=self.confidence_base,
            identity_bonus=self.confidence_identity_bonus,
            quality_bonus=self.confidence_quality_bonus,
            group_bonus=self.confidence_group_bonus,
            short_title_penalty=self.confidence_short_title_penalty,
            numeric_penalty=self.confidence_numeric_penalty,
            floor=self.confidence_floor,
            articles=tuple(self.title_articles),
        )

    def decision_policy(self) -> DecisionPolicy:
        """Build the immutable policy for the decision engine."""
        return DecisionPolicy(
            quality_rank_multiplier=self.quality_rank_multiplier,
            allow_format_upgrade_past_cutoff=self.allow_format_upgrade_past_cutoff,
            format_upgrade_past_cutoff_threshold=(
                self.format_upgrade_past_cutoff_threshold
            ),
        )


def get_settings() -> Settings:
    """Get engine settings."""
    try:
        # Pydantic BaseSettings automatically loads from environment variables
        return Settings()
    except ValidationError as e:
        raise ValueError(f"Configuration error: {e}") from e
