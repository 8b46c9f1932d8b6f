"""
Runtime configuration loaded from the environment (and .env via python-dotenv).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Provider keys, model names and service knobs."""
    use_nvidia: bool = False
    nvidia_api_key: str = ""
    nvidia_model: str = "mistralai/devstral-2-123b-instruct-2512"
    nvidia_base_url: str = "https://integrate.api.nvidia.com/v1"
    groq_api_key: str = ""
    groq_model: str = "qwen/qwen3-32b"
    google_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    temperature: float = 0.4
    max_tokens: int = 16384
    enhance_prompts: bool = False
    verbose_logs: bool = False
    max_retries: int = 3
    initial_backoff: float = 10.0
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:8000", "http://127.0.0.1:8000"])

    @property
    def api_key_configured(self) -> bool:
        return bool(self.nvidia_api_key or self.groq_api_key or self.google_api_key)


def load_settings() -> Settings:
    """Read settings from the current environment."""
    defaults = Settings()
    origins = os.getenv("CORS_ORIGINS", "")
    return Settings(
        use_nvidia=_env_flag("USE_NVIDIA"),
        nvidia_api_key=os.getenv("NVIDIA_API_KEY", ""),
        nvidia_model=os.getenv("NVIDIA_MODEL", defaults.nvidia_model),
        nvidia_base_url=os.getenv("NVIDIA_BASE_URL", defaults.nvidia_base_url),
        groq_api_key=os.getenv("GROQ_API_KEY", ""),
        groq_model=os.getenv("GROQ_MODEL", defaults.groq_model),
        google_api_key=os.getenv("GOOGLE_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
        temperature=float(os.getenv("LLM_TEMPERATURE", defaults.temperature)),
        max_tokens=int(os.getenv("LLM_MAX_TOKENS", defaults.max_tokens)),
        enhance_prompts=_env_flag("ENHANCE_PROMPTS"),
        verbose_logs=os.getenv("VERBOSE_LOGS", "0") == "1",
        max_retries=int(os.getenv("MAX_RETRIES", defaults.max_retries)),
        initial_backoff=float(os.getenv("INITIAL_BACKOFF", defaults.initial_backoff)),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or defaults.cors_origins,
    )


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging once for the service process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    # httpx logs every LLM request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
