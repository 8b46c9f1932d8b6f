"""
Improver Agent - Applies a change request to an existing game.

The current game goes out as one combined HTML document and comes back the
same way; the chain splits the reply with parse_combined_code.
"""

from pydantic import BaseModel, Field

from ..prompts.templates import IMPROVE_GAME_PROMPT
from .base import StructuredAgent


class ImprovedGame(BaseModel):
    improved_game_code: str = Field(..., description="The improved HTML/CSS/JS code of the game")
    review: str = Field(default="", description="Review of the changes and potential issues")
    updated_game_description: str = Field(default="", description="Updated description and how to play")


class ImproverAgent(StructuredAgent[ImprovedGame]):
    prompt_template = IMPROVE_GAME_PROMPT
    output_model = ImprovedGame
    temperature = 0.3

    def improve(self, current_game_code: str, user_request: str, game_description: str = "") -> ImprovedGame:
        return self._run(
            current_game_code=current_game_code,
            user_request=user_request,
            game_description=game_description or "No description yet.",
        )
