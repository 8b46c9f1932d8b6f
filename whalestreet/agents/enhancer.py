"""
Prompt Enhancer Agent - Expands a short game idea into a richer one.
"""

from pydantic import BaseModel, Field

from ..prompts.templates import ENHANCE_PROMPT
from .base import StructuredAgent


class EnhancedPrompt(BaseModel):
    enhanced_prompt: str = Field(..., description="The enhanced game idea prompt")


class PromptEnhancerAgent(StructuredAgent[EnhancedPrompt]):
    prompt_template = ENHANCE_PROMPT
    output_model = EnhancedPrompt
    fallback_field = "enhanced_prompt"
    temperature = 0.7

    def enhance(self, original_prompt: str) -> EnhancedPrompt:
        return self._run(original_prompt=original_prompt)
