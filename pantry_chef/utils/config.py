"""Configuration management for Pantry Chef.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults

Generation components never read this module directly: they receive an
immutable GenerationSettings built once from the loaded Config.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API key: required only when the Gemini client is constructed
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Model used for recipe generation, reconciliation and pantry helpers
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Image Detection Model: separate model for pantry photo detection
        self.IMAGE_DETECTION_MODEL: str = os.getenv("IMAGE_DETECTION_MODEL", "gemini-2.5-flash")
        # LLM Model Parameters
        # Temperature: recipes need some creativity so variations actually differ
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Output Tokens: a full recipe with shopping list fits comfortably in 4096
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "4096"))

        # Generation policy
        # MAX_ATTEMPTS: model calls per recipe before a refusal is synthesized
        self.MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))
        # MIN_QUALITY_SCORE: self-reported quality (0-100) a recipe must reach
        self.MIN_QUALITY_SCORE: int = int(os.getenv("MIN_QUALITY_SCORE", "50"))
        # EXPIRING_SOON_THRESHOLD_DAYS: pantry items at or below this are prioritized
        self.EXPIRING_SOON_THRESHOLD_DAYS: int = int(os.getenv("EXPIRING_SOON_THRESHOLD_DAYS", "3"))
        # MAX_VARIATIONS: upper bound for concurrently generated variations
        self.MAX_VARIATIONS: int = int(os.getenv("MAX_VARIATIONS", "5"))

        # Prompt input limits (user text is sanitized and truncated to these)
        self.MAX_FEEDBACK_CHARS: int = int(os.getenv("MAX_FEEDBACK_CHARS", "100"))
        self.MAX_USER_PROMPT_CHARS: int = int(os.getenv("MAX_USER_PROMPT_CHARS", "300"))

        # Pantry reconciliation
        # FALLBACK_MATCH_CONFIDENCE: confidence assigned by substring fallback matching
        self.FALLBACK_MATCH_CONFIDENCE: float = float(os.getenv("FALLBACK_MATCH_CONFIDENCE", "0.7"))
        # RECONCILE_GENERATED_RECIPES: re-match generated ingredients against the pantry
        # Cost: one extra LLM call per generated recipe
        self.RECONCILE_GENERATED_RECIPES: bool = _env_bool("RECONCILE_GENERATED_RECIPES", "false")

        # Pantry photo detection
        # Maximum image size (in MB) that can be processed. Default: 5 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        # Image Compression: Enable/disable image compression before processing
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Image Compression Threshold: only images at or above this size (in KB) are compressed
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))

    def validate(self) -> None:
        """Validate configuration values.

        The API key is not checked here so that the library can be imported
        (and tested with stub models) without credentials.

        Raises:
            ValueError: If invalid values are provided.
        """
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.MAX_ATTEMPTS < 1:
            raise ValueError(
                f"MAX_ATTEMPTS must be at least 1, got: {self.MAX_ATTEMPTS}"
            )
        if not (0 <= self.MIN_QUALITY_SCORE <= 100):
            raise ValueError(
                f"MIN_QUALITY_SCORE must be between 0 and 100, got: {self.MIN_QUALITY_SCORE}"
            )
        if self.EXPIRING_SOON_THRESHOLD_DAYS < 0:
            raise ValueError(
                f"EXPIRING_SOON_THRESHOLD_DAYS must be non-negative, got: {self.EXPIRING_SOON_THRESHOLD_DAYS}"
            )
        if not (1 <= self.MAX_VARIATIONS <= 5):
            raise ValueError(
                f"MAX_VARIATIONS must be between 1 and 5, got: {self.MAX_VARIATIONS}"
            )
        if self.MAX_FEEDBACK_CHARS < 1 or self.MAX_USER_PROMPT_CHARS < 1:
            raise ValueError("MAX_FEEDBACK_CHARS and MAX_USER_PROMPT_CHARS must be positive")
        if not (0.0 <= self.FALLBACK_MATCH_CONFIDENCE <= 1.0):
            raise ValueError(
                f"FALLBACK_MATCH_CONFIDENCE must be between 0.0 and 1.0, got: {self.FALLBACK_MATCH_CONFIDENCE}"
            )


@dataclass(frozen=True)
class GenerationSettings:
    """Read-only constants shared by the generation pipeline."""

    model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_output_tokens: int = 4096
    max_attempts: int = 3
    min_quality_score: int = 50
    expiring_soon_days: int = 3
    max_variations: int = 5
    max_feedback_chars: int = 100
    max_user_prompt_chars: int = 300
    fallback_match_confidence: float = 0.7
    reconcile_generated_recipes: bool = False
    max_image_size_mb: int = 5
    compress_images: bool = True
    compress_threshold_kb: int = 300

    @classmethod
    def from_config(cls, cfg: Config) -> "GenerationSettings":
        """Snapshot a loaded Config into an immutable settings value."""
        return cls(
            model=cfg.GEMINI_MODEL,
            image_model=cfg.IMAGE_DETECTION_MODEL,
            temperature=cfg.TEMPERATURE,
            max_output_tokens=cfg.MAX_OUTPUT_TOKENS,
            max_attempts=cfg.MAX_ATTEMPTS,
            min_quality_score=cfg.MIN_QUALITY_SCORE,
            expiring_soon_days=cfg.EXPIRING_SOON_THRESHOLD_DAYS,
            max_variations=cfg.MAX_VARIATIONS,
            max_feedback_chars=cfg.MAX_FEEDBACK_CHARS,
            max_user_prompt_chars=cfg.MAX_USER_PROMPT_CHARS,
            fallback_match_confidence=cfg.FALLBACK_MATCH_CONFIDENCE,
            reconcile_generated_recipes=cfg.RECONCILE_GENERATED_RECIPES,
            max_image_size_mb=cfg.MAX_IMAGE_SIZE_MB,
            compress_images=cfg.COMPRESS_IMG,
            compress_threshold_kb=cfg.COMPRESS_IMG_THRESHOLD_KB,
        )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
