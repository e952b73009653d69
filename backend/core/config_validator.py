"""
Configuration validation for the StudyAssist backend.
Validates prompt files, generation credentials and settings on startup.
"""
from typing import Any, Dict, List


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


class ConfigValidator:
    """Validates system configuration before serving requests."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        self._validate_prompt_files()
        self._validate_generation_settings()
        self._validate_chunk_sizes()
        self._validate_time_bounds()
        self._validate_limits()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_prompt_files(self):
        """Prompt files are optional (fallbacks exist) but empty ones are suspicious."""
        from core.config import PROMPTS_DIR
        from core.prompt_manager import REQUIRED_PROMPTS

        if not PROMPTS_DIR.exists():
            self.warnings.append(
                f"Prompts directory not found: {PROMPTS_DIR}. Fallback templates will be used."
            )
            return

        for prompt_name in REQUIRED_PROMPTS:
            path = PROMPTS_DIR / f"{prompt_name}.txt"
            if not path.exists():
                self.warnings.append(
                    f"Prompt file missing: {prompt_name}.txt. Fallback template will be used."
                )
            elif path.stat().st_size == 0:
                self.warnings.append(f"Prompt file is empty: {prompt_name}.txt")

    def _validate_generation_settings(self):
        """Summaries need an API key; analysis and chunking work without one."""
        from core.config import GEMINI_API_KEY, LLM_MAX_TOKENS, LLM_TEMPERATURE

        if not GEMINI_API_KEY:
            self.warnings.append(
                "GEMINI_API_KEY is not set. Summary requests will fail until it is configured."
            )

        if not (0.0 <= LLM_TEMPERATURE <= 1.0):
            self.warnings.append(
                f"LLM_TEMPERATURE ({LLM_TEMPERATURE}) outside normal range [0.0, 1.0]"
            )

        if LLM_MAX_TOKENS <= 0:
            self.errors.append(f"LLM_MAX_TOKENS ({LLM_MAX_TOKENS}) must be positive")

    def _validate_chunk_sizes(self):
        from core.config import CHUNK_MAX_SIZE, CHUNK_MIN_SIZE, CHUNK_TARGET_SIZE

        if CHUNK_MIN_SIZE <= 0:
            self.errors.append(f"CHUNK_MIN_SIZE ({CHUNK_MIN_SIZE}) must be positive")

        if CHUNK_MIN_SIZE > CHUNK_TARGET_SIZE:
            self.errors.append(
                f"CHUNK_MIN_SIZE ({CHUNK_MIN_SIZE}) must be <= CHUNK_TARGET_SIZE ({CHUNK_TARGET_SIZE})"
            )

        if CHUNK_TARGET_SIZE > CHUNK_MAX_SIZE:
            self.errors.append(
                f"CHUNK_TARGET_SIZE ({CHUNK_TARGET_SIZE}) must be <= CHUNK_MAX_SIZE ({CHUNK_MAX_SIZE})"
            )

    def _validate_time_bounds(self):
        from core.config import (
            DEFAULT_TARGET_READING_SECONDS,
            TIME_CHUNK_MAX_SECONDS,
            TIME_CHUNK_MIN_SECONDS,
            WORDS_PER_MINUTE,
        )

        if WORDS_PER_MINUTE <= 0:
            self.errors.append(f"WORDS_PER_MINUTE ({WORDS_PER_MINUTE}) must be positive")

        if TIME_CHUNK_MIN_SECONDS > TIME_CHUNK_MAX_SECONDS:
            self.errors.append(
                f"TIME_CHUNK_MIN_SECONDS ({TIME_CHUNK_MIN_SECONDS}) must be <= "
                f"TIME_CHUNK_MAX_SECONDS ({TIME_CHUNK_MAX_SECONDS})"
            )

        if not (TIME_CHUNK_MIN_SECONDS <= DEFAULT_TARGET_READING_SECONDS <= TIME_CHUNK_MAX_SECONDS):
            self.warnings.append(
                f"DEFAULT_TARGET_READING_SECONDS ({DEFAULT_TARGET_READING_SECONDS}) will be clamped "
                f"into [{TIME_CHUNK_MIN_SECONDS}, {TIME_CHUNK_MAX_SECONDS}]"
            )

    def _validate_limits(self):
        from core.config import (
            CACHE_MAX_ENTRIES,
            LENGTH_ADJUST_MAX_ATTEMPTS,
            PROGRESS_MAX_JOBS,
            RATE_LIMIT_MAX_REQUESTS,
            RATE_LIMIT_WINDOW_SECONDS,
            SUMMARY_BAND_TOLERANCE,
        )

        if RATE_LIMIT_MAX_REQUESTS <= 0 or RATE_LIMIT_WINDOW_SECONDS <= 0:
            self.errors.append("Rate limit requests and window must both be positive")

        if CACHE_MAX_ENTRIES <= 0:
            self.errors.append(f"CACHE_MAX_ENTRIES ({CACHE_MAX_ENTRIES}) must be positive")

        if PROGRESS_MAX_JOBS <= 0:
            self.errors.append(f"PROGRESS_MAX_JOBS ({PROGRESS_MAX_JOBS}) must be positive")

        if LENGTH_ADJUST_MAX_ATTEMPTS < 1:
            self.errors.append(
                f"LENGTH_ADJUST_MAX_ATTEMPTS ({LENGTH_ADJUST_MAX_ATTEMPTS}) must be at least 1"
            )

        if not (0.0 < SUMMARY_BAND_TOLERANCE < 1.0):
            self.errors.append(
                f"SUMMARY_BAND_TOLERANCE ({SUMMARY_BAND_TOLERANCE}) must be between 0.0 and 1.0"
            )


# Global validator instance
config_validator = ConfigValidator()
