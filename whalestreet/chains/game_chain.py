"""
Game Studio Chain - Orchestrates the generate and improve flows.

Generate: idea -> (enhance) -> coder -> three fragments
Improve:  fragments -> combined document -> improver -> parse -> fragments
"""

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..agents.briefer import BriefAgent
from ..agents.coder import CoderAgent
from ..agents.enhancer import PromptEnhancerAgent
from ..agents.improver import ImproverAgent
from ..config import Settings, load_settings
from ..errors import GenerationError, NoGameToImproveError
from ..parsers.combined_code import FragmentSet, format_code_for_iteration, parse_combined_code
from ..sessions import GameSession

logger = logging.getLogger(__name__)


@dataclass
class PipelineStep:
    """Represents a single step in a studio request."""
    name: str
    status: str  # 'running', 'completed', 'failed'
    message: str = ""


ProgressCallback = Callable[[PipelineStep], None]


@dataclass
class StudioResult:
    """Outcome of one generate or improve request."""
    success: bool
    fragments: FragmentSet = field(default_factory=FragmentSet)
    game_description: str = ""
    review: Optional[str] = None
    enhanced_prompt: Optional[str] = None
    error: Optional[str] = None
    generation_time: float = 0.0
    steps_completed: List[str] = field(default_factory=list)


class GameStudioChain:
    """
    Runs the LLM flows against a GameSession.

    Features:
    - Retry with exponential backoff and jitter for 429 errors
    - Progress callbacks for UI updates (per chain or per request)
    - Chat transcript kept on the session
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        coder: Optional[CoderAgent] = None,
        improver: Optional[ImproverAgent] = None,
        enhancer: Optional[PromptEnhancerAgent] = None,
        briefer: Optional[BriefAgent] = None,
        on_progress: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or load_settings()
        self.coder = coder or CoderAgent(settings=self.settings)
        self.improver = improver or ImproverAgent(settings=self.settings)
        self.enhancer = enhancer or PromptEnhancerAgent(settings=self.settings)
        self.briefer = briefer or BriefAgent(settings=self.settings)
        self.on_progress = on_progress
        self.max_retries = self.settings.max_retries
        self.initial_backoff = self.settings.initial_backoff
        self._sleep = sleep

    def _notify_progress(self, step: PipelineStep, callback: Optional[ProgressCallback] = None):
        callback = callback or self.on_progress
        if callback:
            try:
                callback(step)
            except Exception:
                logger.exception("Progress callback failed for step %s", step.name)

    def _run_with_backoff(self, operation: Callable, step_name: str, on_progress: Optional[ProgressCallback] = None):
        """Execute operation with exponential backoff and jitter."""
        last_error: Optional[Exception] = None
        current_backoff = self.initial_backoff

        for attempt in range(self.max_retries + 1):
            try:
                return operation()
            except Exception as e:
                last_error = e
                if attempt >= self.max_retries:
                    break

                error_msg = str(e).lower()
                if "429" in error_msg or "resource_exhausted" in error_msg or "rate limit" in error_msg:
                    wait_time = current_backoff * random.uniform(0.8, 1.2)
                    logger.warning("⏳ %s rate limited, waiting %.1fs (attempt %d)", step_name, wait_time, attempt + 1)
                    self._notify_progress(PipelineStep(
                        name=step_name,
                        status="running",
                        message=f"Rate limit hit. Waiting {wait_time:.1f}s before retry..."
                    ), on_progress)
                    self._sleep(wait_time)
                    current_backoff *= 2.0
                else:
                    logger.warning("⚠️ %s failed (attempt %d): %s", step_name, attempt + 1, e)
                    self._sleep(2.0)

        if isinstance(last_error, GenerationError):
            raise last_error
        raise GenerationError(f"{step_name} failed after {self.max_retries + 1} attempts: {last_error}") from last_error

    # ============ FLOWS ============

    def enhance(self, idea: str, on_progress: Optional[ProgressCallback] = None) -> str:
        result = self._run_with_backoff(lambda: self.enhancer.enhance(idea), "Enhancing", on_progress)
        return result.enhanced_prompt

    def brief(self, game_name: str, game_description: str, game_rules: str) -> str:
        result = self._run_with_backoff(
            lambda: self.briefer.brief(game_name, game_description, game_rules),
            "Brief"
        )
        return result.game_brief

    def generate(
        self,
        session: GameSession,
        idea: str,
        enhance: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> StudioResult:
        """Start a new game from an idea. Replaces whatever the session held."""
        start_time = datetime.now()
        steps: List[str] = []
        session.add_message("user", idea)

        session.fragments = FragmentSet()
        session.game_description = ""

        try:
            enhanced = None
            if enhance is None:
                enhance = self.settings.enhance_prompts
            if enhance:
                self._notify_progress(PipelineStep(
                    name="Enhancing",
                    status="running",
                    message="Refining your idea..."
                ), on_progress)
                enhanced = self.enhance(idea, on_progress)
                steps.append("Enhancing")

            self._notify_progress(PipelineStep(
                name="Coding",
                status="running",
                message="Designing game rules & generating code..."
            ), on_progress)
            logger.info("🎮 Generating game (%s)", self.coder.model)
            game = self._run_with_backoff(lambda: self.coder.generate(enhanced or idea), "Coding", on_progress)
            fragments = game.to_fragments()
            if fragments.is_empty:
                raise GenerationError("Model returned no game code")
            steps.append("Coding")

            session.fragments = fragments
            session.game_description = game.game_description
            session.add_message("ai", "Your game is ready! Check out the code and preview.", status="Game generated!")
            if game.game_description:
                session.add_message("ai", f"Game Description: {game.game_description}")

            self._notify_progress(PipelineStep(name="Complete", status="completed", message="Game generated!"), on_progress)
            logger.info(
                "✅ Game generated - HTML=%d CSS=%d JS=%d chars",
                len(fragments.markup), len(fragments.styles), len(fragments.script)
            )
            return StudioResult(
                success=True,
                fragments=fragments,
                game_description=game.game_description,
                enhanced_prompt=enhanced,
                generation_time=(datetime.now() - start_time).total_seconds(),
                steps_completed=steps,
            )
        except GenerationError as e:
            logger.error("❌ Generation failed: %s", e)
            return self._error_result(
                session, "Sorry, I encountered an error. Please try again.", e, start_time, steps, on_progress
            )

    def improve(
        self,
        session: GameSession,
        request: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> StudioResult:
        """Apply a change request to the session's current game."""
        if not session.has_game:
            raise NoGameToImproveError()

        start_time = datetime.now()
        steps: List[str] = []
        session.add_message("user", request)
        previous_description = session.game_description

        try:
            self._notify_progress(PipelineStep(
                name="Improving",
                status="running",
                message="Applying improvements..."
            ), on_progress)
            combined = format_code_for_iteration(
                session.fragments.markup,
                session.fragments.styles,
                session.fragments.script,
            )
            logger.info("🔧 Improving game (%s) - %d chars in", self.improver.model, len(combined))
            improved = self._run_with_backoff(
                lambda: self.improver.improve(combined, request, previous_description),
                "Improving",
                on_progress
            )
            fragments = parse_combined_code(improved.improved_game_code)
            if fragments.is_empty:
                raise GenerationError("Improved game code could not be split into HTML/CSS/JS")
            steps.append("Improving")

            session.fragments = fragments
            session.game_description = improved.updated_game_description or previous_description
            session.add_message("ai", "Game updated with your improvements!", status="Improvements applied")
            session.add_message("ai", f"Review: {improved.review}")
            if improved.updated_game_description and improved.updated_game_description != previous_description:
                session.add_message("ai", f"Updated Game Description: {improved.updated_game_description}")

            self._notify_progress(PipelineStep(
                name="Complete",
                status="completed",
                message="Improvements applied"
            ), on_progress)
            return StudioResult(
                success=True,
                fragments=fragments,
                game_description=session.game_description,
                review=improved.review,
                generation_time=(datetime.now() - start_time).total_seconds(),
                steps_completed=steps,
            )
        except GenerationError as e:
            logger.error("❌ Improvement failed: %s", e)
            return self._error_result(
                session,
                "Sorry, I encountered an error during improvement. Please try again.",
                e, start_time, steps, on_progress
            )

    def _error_result(
        self,
        session: GameSession,
        chat_text: str,
        error: Exception,
        start_time: datetime,
        steps: List[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> StudioResult:
        session.add_message("ai", chat_text, status="Error")
        self._notify_progress(PipelineStep(name="Complete", status="failed", message=str(error)[:100]), on_progress)
        return StudioResult(
            success=False,
            fragments=session.fragments,
            game_description=session.game_description,
            error=str(error),
            generation_time=(datetime.now() - start_time).total_seconds(),
            steps_completed=steps,
        )
