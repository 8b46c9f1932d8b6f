from .game_chain import GameStudioChain, PipelineStep, StudioResult

__all__ = ["GameStudioChain", "PipelineStep", "StudioResult"]
