"""
FastAPI Web Application - Chat-driven game studio.
Describe a game, get HTML/CSS/JS back, edit it, and ask for improvements.
"""

import asyncio
import json
import logging
import time
from functools import lru_cache
from pathlib import Path
from queue import Empty, Queue
from threading import Lock
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response, StreamingResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .chains.game_chain import GameStudioChain, PipelineStep
from .config import Settings, configure_logging, load_settings
from .errors import GenerationError, NoGameToImproveError, SessionBusyError, SessionNotFoundError
from .parsers.combined_code import (
    FragmentSet,
    build_preview_document,
    format_code_for_iteration,
    parse_combined_code,
)
from .sessions import GameSession, SessionStore

logger = logging.getLogger(__name__)

# Preview documents only run their own inline code
SANDBOX_CSP = "default-src 'none'; script-src 'unsafe-inline'; style-src 'unsafe-inline'; img-src data: blob:;"
SSE_TIMEOUT = 600  # seconds

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


# ============ DEPENDENCIES ============

@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_store() -> SessionStore:
    return SessionStore()


@lru_cache
def get_chain() -> GameStudioChain:
    # Built lazily so the app imports without provider keys
    return GameStudioChain(settings=get_settings())


# Per-session progress queues for SSE
progress_sessions: Dict[str, Queue] = {}
progress_lock = Lock()


def _progress_queue(session_id: str) -> Queue:
    with progress_lock:
        queue = progress_sessions.get(session_id)
        if queue is None:
            queue = Queue()
            progress_sessions[session_id] = queue
        return queue


def make_progress_callback(session_id: str):
    """Create a per-session progress callback, dropping events of earlier requests."""
    queue = _progress_queue(session_id)
    while True:
        try:
            queue.get_nowait()
        except Empty:
            break

    def on_progress(step: PipelineStep):
        queue.put({"name": step.name, "status": step.status, "message": step.message})
    return on_progress


configure_logging(get_settings().verbose_logs)

app = FastAPI(
    title="WhaleStreetAI Game Studio",
    description="Describe a game idea and iterate on the generated HTML/CSS/JS",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


# ============ REQUEST/RESPONSE MODELS ============

class GenerateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: str = Field(..., min_length=1, max_length=4000, description="Game idea")
    enhance: Optional[bool] = Field(None, description="Enhance the idea first (defaults to ENHANCE_PROMPTS)")


class ImproveRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: str = Field(..., min_length=1, max_length=4000, description="Requested changes")


class CodeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    html: Optional[str] = None
    css: Optional[str] = None
    js: Optional[str] = None


class ParseRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document: str = ""


class FormatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    html: str = ""
    css: str = ""
    js: str = ""


class FormatResponse(BaseModel):
    document: str


class EnhanceRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: str = Field(..., min_length=1, max_length=4000)


class EnhanceResponse(BaseModel):
    success: bool
    enhanced_prompt: Optional[str] = None
    error: Optional[str] = None


class BriefRequest(BaseModel):
    game_name: str = Field(..., min_length=1, max_length=200)
    game_description: str = Field(..., min_length=1, max_length=4000)
    game_rules: str = Field("", max_length=4000)


class BriefResponse(BaseModel):
    success: bool
    game_brief: Optional[str] = None
    error: Optional[str] = None


class GameResponse(BaseModel):
    """Result of a generate/improve request. ``error`` is shown as a toast."""
    success: bool
    session_id: str
    fragments: FragmentSet = Field(default_factory=FragmentSet)
    game_description: str = ""
    review: Optional[str] = None
    enhanced_prompt: Optional[str] = None
    error: Optional[str] = None
    generation_time: Optional[float] = None
    steps_completed: List[str] = []


# ============ ERROR HANDLERS ============

@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SessionBusyError)
async def session_busy_handler(request: Request, exc: SessionBusyError):
    return JSONResponse(status_code=409, content={"detail": "A request is already in progress for this session"})


@app.exception_handler(NoGameToImproveError)
async def no_game_handler(request: Request, exc: NoGameToImproveError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ============ PAGES ============

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Serve the studio page."""
    return templates.TemplateResponse(request, "index.html", {"version": __version__})


# ============ SESSIONS ============

@app.post("/api/sessions", response_model=GameSession, status_code=201)
async def create_session(store: SessionStore = Depends(get_store)):
    session = store.create()
    _progress_queue(session.session_id)
    return session


@app.get("/api/sessions/{session_id}", response_model=GameSession)
async def get_session(session_id: str, store: SessionStore = Depends(get_store)):
    return store.get(session_id)


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str, store: SessionStore = Depends(get_store)):
    store.delete(session_id)
    with progress_lock:
        progress_sessions.pop(session_id, None)
    return {"success": True, "message": f"Session {session_id} deleted"}


@app.post("/api/sessions/{session_id}/generate", response_model=GameResponse)
async def generate_game(
    session_id: str,
    request: GenerateRequest,
    store: SessionStore = Depends(get_store),
    chain: GameStudioChain = Depends(get_chain),
):
    """Generate a new game from an idea (replaces the session's current game)."""
    with store.claim(session_id, "Designing game rules & generating code...") as session:
        on_progress = make_progress_callback(session_id)
        # LLM calls block, keep them off the event loop
        result = await asyncio.to_thread(chain.generate, session, request.prompt, request.enhance, on_progress)

    return GameResponse(
        success=result.success,
        session_id=session_id,
        fragments=result.fragments,
        game_description=result.game_description,
        enhanced_prompt=result.enhanced_prompt,
        error="Something went wrong while generating the game." if not result.success else None,
        generation_time=round(result.generation_time, 2),
        steps_completed=result.steps_completed,
    )


@app.post("/api/sessions/{session_id}/improve", response_model=GameResponse)
async def improve_game(
    session_id: str,
    request: ImproveRequest,
    store: SessionStore = Depends(get_store),
    chain: GameStudioChain = Depends(get_chain),
):
    """Apply a change request to the current game."""
    with store.claim(session_id, "Applying improvements...") as session:
        on_progress = make_progress_callback(session_id)
        result = await asyncio.to_thread(chain.improve, session, request.prompt, on_progress)

    return GameResponse(
        success=result.success,
        session_id=session_id,
        fragments=result.fragments,
        game_description=result.game_description,
        review=result.review,
        error="Something went wrong while improving the game." if not result.success else None,
        generation_time=round(result.generation_time, 2),
        steps_completed=result.steps_completed,
    )


@app.put("/api/sessions/{session_id}/code", response_model=GameSession)
async def update_code(session_id: str, update: CodeUpdate, store: SessionStore = Depends(get_store)):
    """Save edits made in the HTML/CSS/JS tabs."""
    return store.update_code(session_id, markup=update.html, styles=update.css, script=update.js)


@app.get("/api/sessions/{session_id}/combined", response_class=PlainTextResponse)
async def combined_code(session_id: str, store: SessionStore = Depends(get_store)):
    """The single-document form sent to the improve flow."""
    return store.get(session_id).fragments.to_document()


@app.get("/api/sessions/{session_id}/preview")
async def preview(session_id: str, store: SessionStore = Depends(get_store)):
    """Live preview document, loaded by a sandboxed iframe."""
    session = store.get(session_id)
    return Response(
        content=build_preview_document(session.fragments),
        media_type="text/html",
        headers={"Content-Security-Policy": SANDBOX_CSP},
    )


@app.get("/api/sessions/{session_id}/progress")
async def progress_stream(session_id: str, store: SessionStore = Depends(get_store)):
    """SSE endpoint for step updates of the running request."""
    store.get(session_id)
    queue = _progress_queue(session_id)

    async def event_generator():
        start = time.time()
        while time.time() - start < SSE_TIMEOUT:
            try:
                event = queue.get_nowait()
            except Empty:
                await asyncio.sleep(0.1)
                continue
            yield f"data: {json.dumps(event)}\n\n"
            if event.get("name") == "Complete":
                return
        yield f"data: {json.dumps({'name': 'Timeout', 'status': 'failed', 'message': 'SSE timeout'})}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )


# ============ STATELESS TOOLS ============

@app.post("/api/parse", response_model=FragmentSet)
async def parse_document(request: ParseRequest):
    """Split a combined HTML document into markup, styles and script."""
    return parse_combined_code(request.document)


@app.post("/api/format", response_model=FormatResponse)
async def format_document(request: FormatRequest):
    return FormatResponse(document=format_code_for_iteration(request.html, request.css, request.js))


@app.post("/api/enhance", response_model=EnhanceResponse)
async def enhance_prompt(request: EnhanceRequest, chain: GameStudioChain = Depends(get_chain)):
    try:
        enhanced = await asyncio.to_thread(chain.enhance, request.prompt)
        return EnhanceResponse(success=True, enhanced_prompt=enhanced)
    except GenerationError as e:
        logger.error("❌ Enhance failed: %s", e)
        return EnhanceResponse(success=False, error="Something went wrong while enhancing the idea.")


@app.post("/api/brief", response_model=BriefResponse)
async def game_brief(request: BriefRequest, chain: GameStudioChain = Depends(get_chain)):
    try:
        brief = await asyncio.to_thread(chain.brief, request.game_name, request.game_description, request.game_rules)
        return BriefResponse(success=True, game_brief=brief)
    except GenerationError as e:
        logger.error("❌ Brief failed: %s", e)
        return BriefResponse(success=False, error="Something went wrong while writing the game brief.")


@app.get("/health")
async def health_check(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_store),
):
    return {
        "status": "healthy",
        "version": __version__,
        "llm_provider": "Multi-Provider (NVIDIA NIM / Groq / Gemini)",
        "api_key_configured": settings.api_key_configured,
        "active_sessions": len(store),
    }


# Run with: uvicorn whalestreet.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
