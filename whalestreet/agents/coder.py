"""
Coder Agent - Turns a game idea into separate HTML, CSS and JavaScript.
"""

from pydantic import BaseModel, Field

from ..parsers.combined_code import FragmentSet
from ..prompts.templates import GENERATE_GAME_PROMPT
from .base import StructuredAgent


class GeneratedGame(BaseModel):
    """Reply of the generate flow. Fields arrive already split."""
    html_code: str = Field(default="", description="The HTML code for the game")
    css_code: str = Field(default="", description="The CSS code for the game")
    js_code: str = Field(default="", description="The JavaScript code for the game")
    game_description: str = Field(default="", description="Brief description and how to play")

    def to_fragments(self) -> FragmentSet:
        return FragmentSet(markup=self.html_code, styles=self.css_code, script=self.js_code)


class CoderAgent(StructuredAgent[GeneratedGame]):
    """Game Coding Agent - one call, three code fields plus a description."""

    prompt_template = GENERATE_GAME_PROMPT
    output_model = GeneratedGame
    temperature = 0.3

    def generate(self, game_idea: str) -> GeneratedGame:
        return self._run(game_idea=game_idea)
