# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Configuration settings for the legal retrieval engine
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Use find_dotenv() to locate .env regardless of the current working directory.
# Falls back to an explicit path relative to this file (project root) if not found.
_dotenv_path = find_dotenv(usecwd=True) or str(Path(__file__).resolve().parent.parent.parent / ".env")
load_dotenv(_dotenv_path)


def _env_bool(name: str, default: str) -> bool:
    return (os.getenv(name, default)).strip().lower() in ("true", "1", "yes")


# ============================================
# Environment-based Configuration
# ============================================


class Config:
    """
    Centralized configuration loaded from environment variables.
    Edit .env file to change these values.
    """

    # Entity store (Supabase + pgvector)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").strip()
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "").strip()

    # Embedding provider. Any OpenAI-compatible /embeddings endpoint works;
    # the default is Mistral (mistral-embed, 1024 dimensions).
    EMBEDDING_API_KEY: str = (os.getenv("EMBEDDING_API_KEY") or os.getenv("MISTRAL_API_KEY") or "").strip()
    EMBEDDING_API_BASE: str = os.getenv("EMBEDDING_API_BASE", "https://api.mistral.ai/v1").strip()
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "mistral-embed")
    EMBEDDING_DIMENSIONS: int = int(os.getenv("EMBEDDING_DIMENSIONS", "1024"))
    # Provider-side input limit, applied as a character cut before the request.
    EMBEDDING_MAX_INPUT_CHARS: int = int(os.getenv("EMBEDDING_MAX_INPUT_CHARS", "8000"))
    EMBEDDING_TIMEOUT_SECONDS: float = float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "30"))

    # Rate limiting of the embedding endpoint (shared by every call in the process)
    EMBEDDING_REQUESTS_PER_MINUTE: int = int(os.getenv("EMBEDDING_REQUESTS_PER_MINUTE", "50"))
    EMBEDDING_MIN_DELAY: float = float(os.getenv("EMBEDDING_MIN_DELAY", "2.0"))
    EMBEDDING_MAX_DELAY: float = float(os.getenv("EMBEDDING_MAX_DELAY", "60.0"))
    EMBEDDING_DELAY_RELAX_FACTOR: float = float(os.getenv("EMBEDDING_DELAY_RELAX_FACTOR", "0.9"))

    # Ingestion pipeline
    INGESTION_BATCH_SIZE: int = int(os.getenv("INGESTION_BATCH_SIZE", "50"))
    INGESTION_TRANSIENT_RETRIES: int = int(os.getenv("INGESTION_TRANSIENT_RETRIES", "3"))
    INGESTION_TRANSIENT_RETRY_DELAY: float = float(os.getenv("INGESTION_TRANSIENT_RETRY_DELAY", "1.0"))

    # Retrieval: per-corpus budgets. Statutes favour precision (high threshold,
    # few results), case law favours recall.
    STATUTE_SEARCH_ENABLED: bool = _env_bool("STATUTE_SEARCH_ENABLED", "true")
    STATUTE_MAX_RESULTS: int = int(os.getenv("STATUTE_MAX_RESULTS", "3"))
    STATUTE_SIMILARITY_THRESHOLD: float = float(os.getenv("STATUTE_SIMILARITY_THRESHOLD", "0.75"))

    CASE_LAW_SEARCH_ENABLED: bool = _env_bool("CASE_LAW_SEARCH_ENABLED", "true")
    CASE_LAW_MAX_RESULTS: int = int(os.getenv("CASE_LAW_MAX_RESULTS", "8"))
    CASE_LAW_SIMILARITY_THRESHOLD: float = float(os.getenv("CASE_LAW_SIMILARITY_THRESHOLD", "0.40"))

    METHODOLOGY_SEARCH_ENABLED: bool = _env_bool("METHODOLOGY_SEARCH_ENABLED", "true")
    METHODOLOGY_MAX_RESULTS: int = int(os.getenv("METHODOLOGY_MAX_RESULTS", "3"))
    METHODOLOGY_SIMILARITY_THRESHOLD: float = float(os.getenv("METHODOLOGY_SIMILARITY_THRESHOLD", "0.60"))

    MAX_TOTAL_RESULTS: int = int(os.getenv("MAX_TOTAL_RESULTS", "14"))
    # Each corpus query is capped so one slow RPC never blocks the others.
    SEARCH_CORPUS_TIMEOUT: float = float(os.getenv("SEARCH_CORPUS_TIMEOUT", "15.0"))

    # Query length limit (chars) - longer queries are truncated before embedding
    MAX_QUERY_LENGTH: int = int(os.getenv("MAX_QUERY_LENGTH", "2000"))


# Singleton instance
config = Config()

_THRESHOLD_FIELDS = (
    "STATUTE_SIMILARITY_THRESHOLD",
    "CASE_LAW_SIMILARITY_THRESHOLD",
    "METHODOLOGY_SIMILARITY_THRESHOLD",
)

_POSITIVE_INT_FIELDS = (
    "EMBEDDING_DIMENSIONS",
    "EMBEDDING_MAX_INPUT_CHARS",
    "EMBEDDING_REQUESTS_PER_MINUTE",
    "INGESTION_BATCH_SIZE",
    "STATUTE_MAX_RESULTS",
    "CASE_LAW_MAX_RESULTS",
    "METHODOLOGY_MAX_RESULTS",
    "MAX_TOTAL_RESULTS",
    "MAX_QUERY_LENGTH",
)


def validate_config_dependencies() -> list[str]:
    """
    Check cross-field consistency of the loaded settings.

    Returns a list of human-readable problems (empty when the configuration is
    usable). Callers decide whether a problem is fatal.
    """
    errors: list[str] = []

    for name in _THRESHOLD_FIELDS:
        value = getattr(config, name)
        if not 0.0 < value < 1.0:
            errors.append(f"{name} must be between 0 and 1 (exclusive), got {value}")

    for name in _POSITIVE_INT_FIELDS:
        value = getattr(config, name)
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    if config.INGESTION_TRANSIENT_RETRIES < 0:
        errors.append(f"INGESTION_TRANSIENT_RETRIES must be >= 0, got {config.INGESTION_TRANSIENT_RETRIES}")

    if config.EMBEDDING_MIN_DELAY <= 0:
        errors.append(f"EMBEDDING_MIN_DELAY must be positive, got {config.EMBEDDING_MIN_DELAY}")
    if config.EMBEDDING_MAX_DELAY < config.EMBEDDING_MIN_DELAY:
        errors.append(
            f"EMBEDDING_MAX_DELAY ({config.EMBEDDING_MAX_DELAY}) must be >= "
            f"EMBEDDING_MIN_DELAY ({config.EMBEDDING_MIN_DELAY})"
        )
    if not 0.0 < config.EMBEDDING_DELAY_RELAX_FACTOR <= 1.0:
        errors.append(
            f"EMBEDDING_DELAY_RELAX_FACTOR must be in (0, 1], got {config.EMBEDDING_DELAY_RELAX_FACTOR}"
        )

    if not (config.EMBEDDING_MODEL or "").strip():
        errors.append("EMBEDDING_MODEL must not be empty")

    return errors


def validate_env_for_app(require_embeddings: bool = True) -> None:
    """
    Validate required env vars for the scripts. Call at startup.
    Raises SystemExit with clear message if any required var is missing.
    """
    required = {
        "SUPABASE_URL": os.getenv("SUPABASE_URL", "").strip(),
        "SUPABASE_KEY": os.getenv("SUPABASE_KEY", "").strip(),
    }
    if require_embeddings:
        required["EMBEDDING_API_KEY (or MISTRAL_API_KEY)"] = (
            os.getenv("EMBEDDING_API_KEY", "").strip() or os.getenv("MISTRAL_API_KEY", "").strip()
        )
    missing = [k for k, v in required.items() if not v]
    if missing:
        msg = f"Missing required env vars: {', '.join(missing)}. Set them in .env or environment."
        raise SystemExit(msg)

    errors = validate_config_dependencies()
    if errors:
        raise SystemExit("Invalid configuration:\n  - " + "\n  - ".join(errors))
