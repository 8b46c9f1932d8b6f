"""
Tests for session state and request serialization.
"""

import pytest

from whalestreet.errors import SessionBusyError, SessionNotFoundError
from whalestreet.parsers.combined_code import FragmentSet
from whalestreet.sessions import WELCOME_MESSAGE, GameSession


class TestSessionStore:

    def test_create_starts_with_welcome_message(self, store):
        session = store.create()
        assert [m.text for m in session.messages] == [WELCOME_MESSAGE]
        assert session.messages[0].sender == "ai"
        assert session.fragments.is_empty
        assert store.get(session.session_id) is session

    def test_get_unknown_session(self, store):
        with pytest.raises(SessionNotFoundError):
            store.get("missing")

    def test_delete(self, store):
        session = store.create()
        store.delete(session.session_id)
        assert len(store) == 0
        with pytest.raises(SessionNotFoundError):
            store.delete(session.session_id)

    def test_claim_marks_session_busy(self, store):
        session = store.create()
        with store.claim(session.session_id, "Applying improvements...") as claimed:
            assert claimed is session
            assert session.busy
            assert session.current_step == "Applying improvements..."
            with pytest.raises(SessionBusyError):
                with store.claim(session.session_id, "Generating"):
                    pass
        assert not session.busy
        assert session.current_step == ""

    def test_claim_released_after_error(self, store):
        session = store.create()
        with pytest.raises(RuntimeError):
            with store.claim(session.session_id, "Generating"):
                raise RuntimeError("boom")
        assert not session.busy

    def test_claim_unknown_session(self, store):
        with pytest.raises(SessionNotFoundError):
            with store.claim("missing", "Generating"):
                pass

    def test_update_code(self, store):
        session = store.create()
        assert store.update_code(session.session_id, markup="<p></p>") is session
        assert session.fragments.markup == "<p></p>"

    def test_update_code_rejected_while_claimed(self, store):
        session = store.create()
        with store.claim(session.session_id, "Applying improvements..."):
            with pytest.raises(SessionBusyError):
                store.update_code(session.session_id, script="go()")
        assert session.fragments.script == ""

    def test_update_code_unknown_session(self, store):
        with pytest.raises(SessionNotFoundError):
            store.update_code("missing", markup="<p></p>")

    def test_sessions_are_independent(self, store):
        first, second = store.create(), store.create()
        with store.claim(first.session_id, "Generating"):
            with store.claim(second.session_id, "Generating"):
                assert first.busy and second.busy


class TestGameSession:

    def test_update_code_replaces_only_given_fragments(self):
        session = GameSession(fragments=FragmentSet(markup="<p></p>", styles="p{}", script="go()"))
        session.update_code(styles="div{}")
        assert session.fragments == FragmentSet(markup="<p></p>", styles="div{}", script="go()")

    def test_update_code_allows_clearing(self):
        session = GameSession(fragments=FragmentSet(script="go()"))
        session.update_code(script="")
        assert not session.has_game

    def test_add_message(self):
        session = GameSession()
        message = session.add_message("user", "Make a pong game")
        assert session.messages[-1] is message
        assert message.sender == "user"
