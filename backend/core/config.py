"""
Configuration management for the StudyAssist backend.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the project root or the backend directory
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

PROMPTS_DIR = BACKEND_DIR / "prompts"

# Generation API (Google Generative Language)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GENAI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-exp")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")

# LLM settings (can be overridden via env vars)
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4096"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# API configuration
API_V1_PREFIX = "/api/v1"
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Input validation
MIN_CONTENT_CHARS = int(os.getenv("MIN_CONTENT_CHARS", "100"))

# Semantic chunking (word counts)
CHUNK_TARGET_SIZE = int(os.getenv("CHUNK_TARGET_SIZE", "300"))
CHUNK_MIN_SIZE = int(os.getenv("CHUNK_MIN_SIZE", "150"))
CHUNK_MAX_SIZE = int(os.getenv("CHUNK_MAX_SIZE", "500"))

# Time-based chunking
WORDS_PER_MINUTE = int(os.getenv("WORDS_PER_MINUTE", "200"))
TIME_CHUNK_MIN_SECONDS = int(os.getenv("TIME_CHUNK_MIN_SECONDS", "120"))  # 2 minutes
TIME_CHUNK_MAX_SECONDS = int(os.getenv("TIME_CHUNK_MAX_SECONDS", "900"))  # 15 minutes
DEFAULT_TARGET_READING_SECONDS = int(os.getenv("DEFAULT_TARGET_READING_SECONDS", "180"))

# Summarization
LENGTH_ADJUST_MAX_ATTEMPTS = int(os.getenv("LENGTH_ADJUST_MAX_ATTEMPTS", "4"))
SUMMARY_SINGLE_PASS_WORDS = int(os.getenv("SUMMARY_SINGLE_PASS_WORDS", "1500"))
SUMMARY_MIN_WORDS = int(os.getenv("SUMMARY_MIN_WORDS", "50"))
SUMMARY_BAND_TOLERANCE = float(os.getenv("SUMMARY_BAND_TOLERANCE", "0.15"))

# In-process result cache
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "100"))
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "600"))  # 10 minutes

# Rate limiting (per client IP, fixed window)
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "15"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# Progress reporting
PROGRESS_STALE_SECONDS = int(os.getenv("PROGRESS_STALE_SECONDS", "180"))  # 3 minutes
PROGRESS_MAX_JOBS = int(os.getenv("PROGRESS_MAX_JOBS", "200"))
