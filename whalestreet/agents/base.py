"""
Base class for single-prompt agents that return a structured reply.
"""

import logging
from typing import ClassVar, Generic, Optional, Type, TypeVar

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from ..config import Settings
from ..parsers.response_parser import extract_content, parse_model_reply
from .llm import build_chat_model, model_name

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


class StructuredAgent(Generic[OutputT]):
    """
    Formats one prompt template, invokes the chat model and validates the
    JSON reply against ``output_model``.

    Subclasses set the class attributes and expose a domain-specific method.
    """

    prompt_template: ClassVar[str] = ""
    output_model: ClassVar[Type[BaseModel]]
    # Field that receives the whole reply when the model answers in plain text
    fallback_field: ClassVar[Optional[str]] = None
    temperature: ClassVar[Optional[float]] = None

    def __init__(self, llm=None, settings: Optional[Settings] = None):
        self.llm = llm or build_chat_model(settings, temperature=self.temperature)
        self.model = model_name(self.llm)
        self.prompt = ChatPromptTemplate.from_template(self.prompt_template)

    def _run(self, **variables) -> OutputT:
        messages = self.prompt.format_messages(**variables)
        logger.debug("Invoking %s (%s)...", type(self).__name__, self.model)
        response = self.llm.invoke(messages)
        content = extract_content(response)
        return parse_model_reply(content, self.output_model, fallback_field=self.fallback_field)
