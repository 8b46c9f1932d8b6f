"""
Brief Agent - Writes a short, player-facing summary of a game.
"""

from pydantic import BaseModel, Field

from ..prompts.templates import GAME_BRIEF_PROMPT
from .base import StructuredAgent


class GameBrief(BaseModel):
    game_brief: str = Field(..., description="Brief description, rules and how to play")


class BriefAgent(StructuredAgent[GameBrief]):
    prompt_template = GAME_BRIEF_PROMPT
    output_model = GameBrief
    fallback_field = "game_brief"
    temperature = 0.7

    def brief(self, game_name: str, game_description: str, game_rules: str) -> GameBrief:
        return self._run(game_name=game_name, game_description=game_description, game_rules=game_rules)
