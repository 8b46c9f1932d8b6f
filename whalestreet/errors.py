"""Service-level exceptions. The parser and formatter never raise."""


class StudioError(Exception):
    """Base class for game studio errors."""


class GenerationError(StudioError):
    """The model call failed or its reply could not be used."""


class SessionNotFoundError(StudioError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionBusyError(StudioError):
    """Another generate/improve request is already running for the session."""

    def __init__(self, session_id: str, step: str = ""):
        message = f"Session {session_id} is busy"
        if step:
            message += f" ({step})"
        super().__init__(message)
        self.session_id = session_id
        self.step = step


class NoGameToImproveError(StudioError):
    def __init__(self):
        super().__init__("Please generate a game first before asking for improvements.")
