"""
Chat model factory shared by all agents.
Priority: NVIDIA NIM (OpenAI-compatible) -> Groq -> Gemini
"""

import logging
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from ..config import Settings, load_settings

logger = logging.getLogger(__name__)


def build_chat_model(
    settings: Optional[Settings] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Create the chat model for the first provider that has a key configured."""
    settings = settings or load_settings()
    temperature = settings.temperature if temperature is None else temperature
    max_tokens = max_tokens or settings.max_tokens

    if settings.use_nvidia and settings.nvidia_api_key:
        logger.info("🚀 Using NVIDIA NIM: %s", settings.nvidia_model)
        return ChatOpenAI(
            model=settings.nvidia_model,
            base_url=settings.nvidia_base_url,
            api_key=settings.nvidia_api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if settings.groq_api_key:
        logger.info("🚀 Using Groq: %s", settings.groq_model)
        return ChatGroq(
            model=settings.groq_model,
            api_key=settings.groq_api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    logger.info("🔄 Using Gemini: %s", settings.gemini_model)
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key or None,
        temperature=temperature,
        max_output_tokens=max_tokens,
    )


def model_name(llm) -> str:
    """Best-effort model identifier for log lines."""
    return getattr(llm, "model_name", None) or getattr(llm, "model", None) or type(llm).__name__
