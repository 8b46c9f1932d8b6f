# Agents package
from .briefer import BriefAgent, GameBrief
from .coder import CoderAgent, GeneratedGame
from .enhancer import EnhancedPrompt, PromptEnhancerAgent
from .improver import ImprovedGame, ImproverAgent

__all__ = [
    "BriefAgent",
    "CoderAgent",
    "ImproverAgent",
    "PromptEnhancerAgent",
    "EnhancedPrompt",
    "GameBrief",
    "GeneratedGame",
    "ImprovedGame",
]
