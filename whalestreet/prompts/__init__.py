from .templates import ENHANCE_PROMPT, GAME_BRIEF_PROMPT, GENERATE_GAME_PROMPT, IMPROVE_GAME_PROMPT

__all__ = ["ENHANCE_PROMPT", "GAME_BRIEF_PROMPT", "GENERATE_GAME_PROMPT", "IMPROVE_GAME_PROMPT"]
