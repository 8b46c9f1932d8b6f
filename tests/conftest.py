"""
Shared fixtures for the game studio tests.

No test talks to a real provider: agents get a Mock chat model whose
``invoke`` returns canned AIMessage replies.
"""

import json
from unittest.mock import Mock

import pytest
from langchain_core.messages import AIMessage

from whalestreet.agents import BriefAgent, CoderAgent, ImproverAgent, PromptEnhancerAgent
from whalestreet.chains.game_chain import GameStudioChain
from whalestreet.config import Settings
from whalestreet.sessions import SessionStore


def make_llm(*replies):
    """Mock chat model. Each reply is a str, a dict (sent as JSON) or an exception."""
    llm = Mock()
    llm.model_name = "fake-model"
    llm.invoke.side_effect = [
        reply if isinstance(reply, Exception)
        else AIMessage(content=json.dumps(reply) if isinstance(reply, dict) else reply)
        for reply in replies
    ]
    return llm


def prompt_text(llm, call_index: int = 0) -> str:
    """Text of the prompt sent on a given invoke call."""
    messages = llm.invoke.call_args_list[call_index][0][0]
    return "\n".join(m.content for m in messages)


@pytest.fixture
def settings():
    return Settings(max_retries=1, initial_backoff=1.0, enhance_prompts=False)


@pytest.fixture
def sleeps():
    """Records backoff waits instead of sleeping."""
    return []


@pytest.fixture
def make_chain(settings, sleeps):
    def _make(coder=(), improver=(), enhancer=(), briefer=(), on_progress=None):
        llms = {
            "coder": make_llm(*coder),
            "improver": make_llm(*improver),
            "enhancer": make_llm(*enhancer),
            "briefer": make_llm(*briefer),
        }
        chain = GameStudioChain(
            settings=settings,
            coder=CoderAgent(llm=llms["coder"]),
            improver=ImproverAgent(llm=llms["improver"]),
            enhancer=PromptEnhancerAgent(llm=llms["enhancer"]),
            briefer=BriefAgent(llm=llms["briefer"]),
            on_progress=on_progress,
            sleep=sleeps.append,
        )
        chain.llms = llms
        return chain
    return _make


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def generated_game():
    return {
        "html_code": '<canvas id="board"></canvas>',
        "css_code": "canvas { border: 1px solid #333; }",
        "js_code": "const board = document.getElementById('board');",
        "game_description": "Click to place tiles.",
    }
