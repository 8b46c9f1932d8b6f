"""
Tests for the generate/improve orchestration.
"""

import pytest

from whalestreet.errors import NoGameToImproveError
from whalestreet.parsers.combined_code import FragmentSet, format_code_for_iteration
from whalestreet.sessions import GameSession

from .conftest import prompt_text

IMPROVED_DOCUMENT = """<!DOCTYPE html>
<html lang="en">
<head>
<style>
canvas { border: 2px solid gold; }
</style>
</head>
<body>
<canvas id="board"></canvas>
<div id="score">0</div>
<script type="application/json">{"levels": 3}</script>
<script>
let score = 0;
</script>
</body>
</html>"""


class TestGenerate:

    def test_generate_stores_fragments(self, make_chain, generated_game):
        chain = make_chain(coder=[generated_game])
        session = GameSession()

        result = chain.generate(session, "A tile puzzle")

        assert result.success
        assert session.fragments == FragmentSet(
            markup=generated_game["html_code"],
            styles=generated_game["css_code"],
            script=generated_game["js_code"],
        )
        assert session.game_description == "Click to place tiles."
        texts = [m.text for m in session.messages]
        assert texts == [
            "A tile puzzle",
            "Your game is ready! Check out the code and preview.",
            "Game Description: Click to place tiles.",
        ]
        assert "A tile puzzle" in prompt_text(chain.llms["coder"])
        assert result.steps_completed == ["Coding"]

    def test_generate_with_enhanced_prompt(self, make_chain, generated_game):
        chain = make_chain(
            coder=[generated_game],
            enhancer=[{"enhanced_prompt": "A tile puzzle with combos and a timer"}],
        )
        result = chain.generate(GameSession(), "A tile puzzle", enhance=True)

        assert result.enhanced_prompt == "A tile puzzle with combos and a timer"
        assert "combos and a timer" in prompt_text(chain.llms["coder"])
        assert result.steps_completed == ["Enhancing", "Coding"]

    def test_generate_failure_after_retries(self, make_chain, sleeps):
        chain = make_chain(coder=[RuntimeError("boom"), RuntimeError("boom again")])
        session = GameSession()

        result = chain.generate(session, "A racing game")

        assert not result.success
        assert "boom again" in result.error
        assert session.fragments.is_empty
        assert session.messages[-1].text == "Sorry, I encountered an error. Please try again."
        assert chain.llms["coder"].invoke.call_count == 2
        assert sleeps == [2.0]

    def test_generate_retries_rate_limit_with_backoff(self, make_chain, sleeps, generated_game):
        steps = []
        chain = make_chain(
            coder=[RuntimeError("Error code: 429 - rate limit exceeded"), generated_game],
            on_progress=steps.append,
        )
        result = chain.generate(GameSession(), "A tile puzzle")

        assert result.success
        assert len(sleeps) == 1
        assert 0.8 <= sleeps[0] <= 1.2
        assert any("Rate limit hit" in step.message for step in steps)
        assert steps[-1].name == "Complete" and steps[-1].status == "completed"

    def test_generate_empty_code_is_an_error(self, make_chain):
        chain = make_chain(coder=[{"game_description": "nothing"}, {"game_description": "nothing"}])
        result = chain.generate(GameSession(), "Anything")
        assert not result.success

    def test_per_request_progress_callback(self, make_chain, generated_game):
        steps = []
        chain = make_chain(coder=[generated_game])
        chain.generate(GameSession(), "A tile puzzle", on_progress=steps.append)
        assert [s.name for s in steps] == ["Coding", "Complete"]

    def test_generate_replaces_previous_game(self, make_chain, generated_game):
        chain = make_chain(coder=[generated_game])
        session = GameSession(fragments=FragmentSet(markup="<old></old>"), game_description="old")
        chain.generate(session, "New idea")
        assert session.fragments.markup == generated_game["html_code"]


class TestImprove:

    def _session(self, generated_game):
        return GameSession(
            fragments=FragmentSet(
                markup=generated_game["html_code"],
                styles=generated_game["css_code"],
                script=generated_game["js_code"],
            ),
            game_description=generated_game["game_description"],
        )

    def test_improve_requires_a_game(self, make_chain):
        chain = make_chain()
        with pytest.raises(NoGameToImproveError):
            chain.improve(GameSession(), "Add sound")
        assert chain.llms["improver"].invoke.call_count == 0

    def test_improve_round_trip(self, make_chain, generated_game):
        chain = make_chain(improver=[{
            "improved_game_code": IMPROVED_DOCUMENT,
            "review": "Added a score display.",
            "updated_game_description": "Click to place tiles and score points.",
        }])
        session = self._session(generated_game)
        combined = format_code_for_iteration(
            session.fragments.markup, session.fragments.styles, session.fragments.script
        )

        result = chain.improve(session, "Show the score")

        assert result.success
        sent = prompt_text(chain.llms["improver"])
        assert combined in sent
        assert "Show the score" in sent
        assert "Click to place tiles." in sent

        assert session.fragments.styles == "canvas { border: 2px solid gold; }"
        assert session.fragments.script == "let score = 0;"
        assert session.fragments.markup.startswith('<canvas id="board"></canvas>\n<div id="score">0</div>')
        assert '{"levels": 3}' in session.fragments.markup
        assert session.game_description == "Click to place tiles and score points."

        texts = [m.text for m in session.messages]
        assert texts[-3:] == [
            "Game updated with your improvements!",
            "Review: Added a score display.",
            "Updated Game Description: Click to place tiles and score points.",
        ]

    def test_unchanged_description_is_not_repeated(self, make_chain, generated_game):
        chain = make_chain(improver=[{
            "improved_game_code": IMPROVED_DOCUMENT,
            "review": "Tweaked colors.",
            "updated_game_description": generated_game["game_description"],
        }])
        session = self._session(generated_game)
        chain.improve(session, "Gold border")
        assert session.messages[-1].text == "Review: Tweaked colors."

    def test_unusable_reply_keeps_current_game(self, make_chain, generated_game):
        reply = {"improved_game_code": "", "review": "", "updated_game_description": ""}
        chain = make_chain(improver=[reply, reply])
        session = self._session(generated_game)
        before = session.fragments

        result = chain.improve(session, "Break it")

        assert not result.success
        assert session.fragments == before
        assert session.messages[-1].text == "Sorry, I encountered an error during improvement. Please try again."


class TestStandaloneFlows:

    def test_enhance(self, make_chain):
        chain = make_chain(enhancer=["A bigger, better snake game."])
        assert chain.enhance("snake") == "A bigger, better snake game."

    def test_brief(self, make_chain):
        chain = make_chain(briefer=[{"game_brief": "Match three tiles to clear them."}])
        assert chain.brief("Tiles", "A puzzle", "Match three") == "Match three tiles to clear them."
        sent = prompt_text(chain.llms["briefer"])
        assert "Game Name: Tiles" in sent
