import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from wordloop.application.review_service import ReviewService
from wordloop.application.session import ReviewSession
from wordloop.consts import VERSION
from wordloop.domain.errors import InvalidInput, NotAuthorized, StoreUnavailable, WordloopError
from wordloop.domain.models import Card
from wordloop.infrastructure.adapters.wire import WordItem

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("wordloop.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"wordloop server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("wordloop server shutting down...")
    if app.state.service is not None:
        await app.state.service.close()


app = FastAPI(
    title="wordloop server",
    description="Review session API for the wordloop front end.",
    version=VERSION,
    lifespan=lifespan,
)
app.state.service = None

start_time = time.time()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class AnswerRequest(BaseModel):
    # Range is checked by the scheduler so bad input maps to InvalidInput.
    quality: int


class ProgressResponse(BaseModel):
    remaining: int
    missed: int
    completed: int
    answered: int
    restarts: int


class SessionResponse(BaseModel):
    state: str
    card: dict[str, Any] | None = None
    progress: ProgressResponse


class AnswerResponse(SessionResponse):
    missed: bool
    restarted: bool
    interval_days: int
    next_review: str


class FlushResponse(BaseModel):
    written: int


def _get_service(request: Request) -> ReviewService:
    if request.app.state.service is None:
        from wordloop.application.config import resolve_config
        from wordloop.application.factory import get_review_service

        try:
            request.app.state.service = get_review_service(resolve_config())
        except WordloopError as e:
            logger.error(f"Word store is misconfigured: {e}")
            raise _to_http(e) from e
    return request.app.state.service


def _get_session(request: Request) -> ReviewSession:
    session = _get_service(request).session
    if session is None:
        raise HTTPException(status_code=409, detail="no session started")
    return session


def _to_http(e: WordloopError) -> HTTPException:
    if isinstance(e, InvalidInput):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotAuthorized):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, StoreUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _card_json(card: Card | None) -> dict[str, Any] | None:
    if card is None:
        return None
    return WordItem.from_card(card).model_dump(mode="json", by_alias=True)


def _session_response(session: ReviewSession) -> SessionResponse:
    return SessionResponse(
        state=session.state.value,
        card=_card_json(session.current_card),
        progress=ProgressResponse(**asdict(session.progress())),
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.post("/session/start", response_model=SessionResponse)
async def start_session(request: Request):
    """Load the due set and start a new session."""
    service = _get_service(request)
    try:
        session = await service.start()
    except WordloopError as e:
        logger.error(f"Session start failed: {e}")
        raise _to_http(e) from e
    return _session_response(session)


@app.get("/session/current", response_model=SessionResponse)
async def current_card(request: Request):
    return _session_response(_get_session(request))


@app.get("/session/progress", response_model=ProgressResponse)
async def session_progress(request: Request):
    return ProgressResponse(**asdict(_get_session(request).progress()))


@app.post("/session/answer", response_model=AnswerResponse)
async def answer_card(req: AnswerRequest, request: Request):
    """Grade the current card and advance the session."""
    session = _get_session(request)
    try:
        outcome = _get_service(request).answer(req.quality)
    except WordloopError as e:
        raise _to_http(e) from e

    current = _session_response(session)
    return AnswerResponse(
        **current.model_dump(),
        missed=outcome.missed,
        restarted=outcome.restarted,
        interval_days=outcome.update.interval_days,
        next_review=outcome.update.next_review.isoformat(),
    )


@app.post("/session/flush", response_model=FlushResponse)
async def flush_session(request: Request):
    """Write pending reviews to the word store. Safe to call again after a failure."""
    try:
        written = await _get_service(request).flush()
    except WordloopError as e:
        logger.error(f"Flush failed: {e}")
        raise _to_http(e) from e
    return FlushResponse(written=written)
