import os
from functools import lru_cache

from claimcheck.errors import ConfigurationError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


class Settings:
    def __init__(self) -> None:
        self.ENV = os.getenv("ENV", "dev")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

        # Inference
        self.GROQ_API_KEY = os.getenv("GROQ_API_KEY")
        self.GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
        self.LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", 1024)
        self.LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", 60.0)

        # Retrieval
        self.SENT_TRANSFORMER_MODEL = os.getenv(
            "SENT_TRANSFORMER_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
        self.POLICY_INDEX_DIR = os.getenv("POLICY_INDEX_DIR", "./vectorstore")
        self.RETRIEVAL_TOP_K = _env_int("RETRIEVAL_TOP_K", 5)
        self.EMBED_TIMEOUT_SECONDS = _env_float("EMBED_TIMEOUT_SECONDS", 30.0)
        self.RETRIEVAL_TIMEOUT_SECONDS = _env_float("RETRIEVAL_TIMEOUT_SECONDS", 30.0)

        # Evidence
        self.EVIDENCE_DIR = os.getenv("EVIDENCE_DIR", "./uploaded_docs")
        self.EVIDENCE_TIMEOUT_SECONDS = _env_float("EVIDENCE_TIMEOUT_SECONDS", 45.0)

        # Audit
        self.AUDIT_DIR = os.getenv("AUDIT_DIR", "./audit")

        self.MAX_DESCRIPTION_CHARS = _env_int("MAX_DESCRIPTION_CHARS", 5000)

    def require_groq_key(self) -> str:
        if not self.GROQ_API_KEY:
            raise ConfigurationError("GROQ_API_KEY environment variable is required")
        return self.GROQ_API_KEY


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
