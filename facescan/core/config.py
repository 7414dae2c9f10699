"""Configuration settings for the face scan matching engine."""
from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from facescan.domain.value_objects.recognition import PositiveScanReturnType


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        POSITIVE_MATCH_THRESHOLD: Minimum similarity for a positive match
        POTENTIAL_MATCH_THRESHOLD: Minimum similarity for a potential match
        POSITIVE_SCAN_RETURN_TYPE: Whether a gallery scan stops at the first
            positive match or keeps scanning for the best one
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="FACESCAN_",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Face Scan"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    # Matching Settings
    POSITIVE_MATCH_THRESHOLD: float = 0.42
    POTENTIAL_MATCH_THRESHOLD: float = 0.18
    POSITIVE_SCAN_RETURN_TYPE: PositiveScanReturnType = PositiveScanReturnType.RETURN_FIRST_MATCH

    # Face Scanner Settings (only used by the InsightFace scanner)
    MODEL_NAME: str = "buffalo_l"
    MODEL_CACHE_DIR: str = ".model_cache"
    DETECTION_SIZE: Tuple[int, int] = (640, 640)
    USE_CUDA: bool = False
    MIN_FACE_CONFIDENCE: float = 0.5
    MAX_IMAGE_PIXELS: int = 1920 * 1080  # ~2MP (Full HD)

    # Logging
    LOG_LEVEL: str = "INFO"

settings = Settings()
