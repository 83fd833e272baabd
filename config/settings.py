"""
Signal Entity Engine - Configuration

Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (profile store only, the engine itself never touches it)
    DATABASE_URL: str = Field(
        default=f"sqlite:///{PROJECT_ROOT}/data/signal_profiles.db"
    )

    @property
    def project_root(self) -> Path:
        """Return project root directory."""
        return PROJECT_ROOT

    # Application
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_TO_FILE: bool = Field(default=True)

    # Entity resolution settings (0-100, compared against normalized similarity)
    FUZZY_MATCH_THRESHOLD: int = Field(default=85)
    COHORT_MATCH_THRESHOLD: int = Field(default=70)
    MIN_NAME_LENGTH: int = Field(default=4)
    MIN_SHARED_TAGS: int = Field(default=2)

    # Batches at or above this size are bucketed by blocking key before matching
    BLOCKING_MIN_BATCH: int = Field(default=2000)

    # Profile building
    DESCRIPTION_MIN_LENGTH: int = Field(default=20)

    # Eligibility policy
    EARLY_STAGE_FUNDING_CEILING: float = Field(default=2_000_000)
    FUNDING_HARD_CEILING: float = Field(default=500_000)
    MAX_TEAM_SIZE: int = Field(default=10)
    LAUNCH_CUTOFF_YEAR: int = Field(default=2024)
    FOCUS_KEYWORDS: list[str] = Field(
        default=["web3", "crypto", "blockchain", "defi", "nft"]
    )
    FOCUS_METRICS: list[str] = Field(default=["tvl"])
    FEATURE_THRESHOLD: int = Field(default=80)
    APPROVE_THRESHOLD: int = Field(default=60)
    REVIEW_THRESHOLD: int = Field(default=40)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
