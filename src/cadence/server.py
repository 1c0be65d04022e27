import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from cadence.application.config import resolve_config
from cadence.application.factory import get_clock, get_shared_card_store, new_learn_session
from cadence.application.learn_queue import LearnSession, SessionState, TransitionResult
from cadence.application.session_registry import SessionRegistry
from cadence.application.stats import summarize_deck
from cadence.consts import VERSION
from cadence.domain.models import Card, InvalidGradeError
from cadence.domain.ports import UnknownCardError
from cadence.domain.records import card_to_record

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cadence.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cadence server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info(f"cadence server shutting down ({len(registry)} open session(s) discarded)")


app = FastAPI(
    title="cadence",
    description="Spaced-repetition learn sessions over flashcard decks.",
    version=VERSION,
    lifespan=lifespan,
)

registry = SessionRegistry()
start_time = time.time()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CardModel(BaseModel):
    id: str
    term: str
    definition: str
    due: int
    ef: float
    reps: int
    interval: int
    lapses: int
    lastReviewed: int | None = None


class ProgressModel(BaseModel):
    position: int
    graded: int
    total: int
    remaining: int
    percent: int


class SessionResponse(BaseModel):
    session_id: str
    deck_id: str
    state: str
    flipped: bool
    started_at: int | None
    progress: ProgressModel
    current: CardModel | None = None
    last_card: CardModel | None = None


class StartRequest(BaseModel):
    deck_id: str
    session_cap: int | None = None
    seed: int | None = None


class GradeRequest(BaseModel):
    # Validated by Grade.parse so that out-of-range values get a typed rejection.
    grade: int | float | str | bool | None = None


class SummaryResponse(BaseModel):
    deck_id: str
    total: int
    due: int
    new: int
    learned: int
    lapses: int
    average_ef: float | None
    next_due: int | None


def _card(card: Card | None) -> CardModel | None:
    return CardModel(**card_to_record(card)) if card else None


def _session_response(
    session_id: str, session: LearnSession, last_card: Card | None = None
) -> SessionResponse:
    p = session.progress
    current = session.current
    # The definition stays hidden until the card is revealed.
    if current is not None and not session.flipped:
        current_model = _card(current).model_copy(update={"definition": ""})
    else:
        current_model = _card(current)
    return SessionResponse(
        session_id=session_id,
        deck_id=session.deck_id,
        state=session.state.value,
        flipped=session.flipped,
        started_at=session.started_at,
        progress=ProgressModel(
            position=p.position,
            graded=p.graded,
            total=p.total,
            remaining=p.remaining,
            percent=p.percent,
        ),
        current=current_model,
        last_card=_card(last_card),
    )


def _get_session(session_id: str) -> LearnSession:
    try:
        return registry.get(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from e


def _check(result: TransitionResult) -> None:
    if not result.ok:
        raise HTTPException(status_code=409, detail=f"Invalid transition: {result.reason}")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/decks/{deck_id}/summary", response_model=SummaryResponse)
def deck_summary(deck_id: str):
    config = resolve_config()
    store = get_shared_card_store(config)
    if not store.deck_exists(deck_id):
        raise HTTPException(status_code=404, detail=f"Unknown deck {deck_id}")
    summary = summarize_deck(store.get(deck_id), get_clock().now())
    return SummaryResponse(deck_id=deck_id, **asdict(summary))


@app.post("/sessions", response_model=SessionResponse)
def start_session(req: StartRequest):
    config = resolve_config({"session_cap": req.session_cap, "seed": req.seed})
    registry.expire_idle(config.session_idle_minutes * 60_000)
    store = get_shared_card_store(config)
    if not store.deck_exists(req.deck_id):
        raise HTTPException(status_code=404, detail=f"Unknown deck {req.deck_id}")

    session = new_learn_session(config, req.deck_id, store)
    _check(session.start())
    session_id = registry.add(session)
    logger.info(f"Opened {session_id} on '{req.deck_id}'")
    return _session_response(session_id, session)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str):
    return _session_response(session_id, _get_session(session_id))


@app.post("/sessions/{session_id}/reveal", response_model=SessionResponse)
def reveal_card(session_id: str):
    session = _get_session(session_id)
    _check(session.reveal())
    return _session_response(session_id, session)


@app.post("/sessions/{session_id}/grade", response_model=SessionResponse)
def grade_card(session_id: str, req: GradeRequest):
    session = _get_session(session_id)
    try:
        result = session.grade(req.grade)
    except InvalidGradeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except UnknownCardError as e:
        logger.error(f"Grade write failed for {session_id}: {e}")
        raise HTTPException(status_code=404, detail=f"Card no longer exists: {e.card_id}") from e
    _check(result)
    response = _session_response(session_id, session, last_card=result.card)
    if result.state == SessionState.COMPLETED:
        # Nothing left to do in a finished session.
        registry.discard(session_id)
        logger.info(f"Closed completed {session_id}")
    return response


@app.delete("/sessions/{session_id}")
def end_session(session_id: str):
    if registry.discard(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return {"ok": True}
