"""
FastAPI surface for the Chess Launchpad trainer

Endpoints:
  PUT    /users/{username}                 - Create an empty repertoire
  DELETE /users/{username}                 - Delete a repertoire
  GET    /users/{username}/repertoire      - Stored snapshot and its version
  PUT    /users/{username}/repertoire      - Replace the snapshot (optimistic versioning)
  GET    /users/{username}/summary         - Progress badges
  POST   /users/{username}/sessions        - Start a training round
  POST   /sessions/{id}/moves              - Check a learner move
  POST   /sessions/{id}/next               - Auto-play the next move
  POST   /sessions/{id}/errors             - Record a mistake
  POST   /sessions/{id}/complete           - Finish the round and persist statistics
  POST   /sessions/{id}/reset              - Discard the errors of the current round
  DELETE /sessions/{id}                    - Close a session without saving
  GET    /sessions/{id}/annotations        - Arrows/highlights for a position
  GET    /sessions/{id}/variants           - Debug listing with weight factors
"""

import logging
import os
import sys
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import chess
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from badges import summarize
from db import create_repertoire, delete_repertoire, ensure_schema, get_connection, load_snapshot, store_snapshot
from epoch_manager import advance_epoch
from errors import PositionError, StaleSnapshotError, VariantReplayError
from models import MoveCheck, Variant, WeightSettings
from repertoire import snapshot_from_dict, snapshot_to_dict, to_snapshot, to_variants
from session import TrainingSession
from training_set import choose_orientation, filter_variants, for_orientation
from variants import plain_pgn

logging.basicConfig(
    level=os.environ.get("LAUNCHPAD_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = float(os.environ.get("LAUNCHPAD_SESSION_TTL", "3600"))
MAX_SESSIONS = int(os.environ.get("LAUNCHPAD_MAX_SESSIONS", "1000"))


@dataclass
class SessionEntry:
    username: str
    session: TrainingSession
    # full repertoire; the session only sees the filtered subset
    variants: list[Variant]
    current_epoch: int
    daily_play_count: int
    weight_settings: WeightSettings
    version: int


@dataclass
class SessionRegistry:
    """
    In-memory sessions by id. Sessions idle for longer than `ttl_seconds`
    are dropped on the next add, and the least recently used ones are
    dropped when `max_entries` is reached.
    """

    ttl_seconds: float = SESSION_TTL_SECONDS
    max_entries: int = MAX_SESSIONS
    clock: Callable[[], float] = time.monotonic
    entries: dict[str, SessionEntry] = field(default_factory=dict)
    last_used: dict[str, float] = field(default_factory=dict)

    def add(self, entry: SessionEntry) -> str:
        self.evict_expired()
        while self.entries and len(self.entries) >= self.max_entries:
            oldest = min(self.last_used, key=self.last_used.get)
            logger.info("Session limit reached; dropping %s", oldest)
            self.discard(oldest)
        session_id = uuid.uuid4().hex
        self.entries[session_id] = entry
        self.last_used[session_id] = self.clock()
        return session_id

    def get(self, session_id: str) -> SessionEntry:
        entry = self.entries.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Session not found")
        self.last_used[session_id] = self.clock()
        return entry

    def discard(self, session_id: str) -> None:
        self.entries.pop(session_id, None)
        self.last_used.pop(session_id, None)

    def evict_expired(self) -> int:
        cutoff = self.clock() - self.ttl_seconds
        expired = [sid for sid, used in self.last_used.items() if used < cutoff]
        for sid in expired:
            self.discard(sid)
        if expired:
            logger.info("Dropped %d idle sessions", len(expired))
        return len(expired)


app = FastAPI(title="Chess Launchpad API", version="1.0.0")
app.state.sessions = SessionRegistry()


@app.exception_handler(PositionError)
def position_error_handler(request: Request, exc: PositionError):
    # Caller bug: log the details, return only the error kind.
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": type(exc).__name__})


@app.exception_handler(StaleSnapshotError)
def stale_snapshot_handler(request: Request, exc: StaleSnapshotError):
    return JSONResponse(status_code=412, content={"detail": str(exc)})


class StartSessionRequest(BaseModel):
    filter: str | None = None
    orientation: Literal["white", "black"] | None = None


class MoveRequest(BaseModel):
    fen: str
    uci: str
    ply: int
    mark_error: bool = False


class PlyRequest(BaseModel):
    fen: str
    ply: int


class PositionRequest(BaseModel):
    fen: str


def registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def parse_board(fen: str) -> chess.Board:
    try:
        return chess.Board(fen)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {fen}")


def load_or_404(conn, username: str):
    loaded = load_snapshot(conn, username)
    if loaded is None:
        raise HTTPException(status_code=404, detail=f"User '{username}' not found")
    return loaded


def build_variants(snapshot) -> list[Variant]:
    try:
        return to_variants(snapshot)
    except VariantReplayError as exc:
        logger.error("Repertoire load failed: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))


@app.put("/users/{username}", status_code=201)
def create_user(username: str):
    with get_connection() as conn:
        ensure_schema(conn)
        create_repertoire(conn, username)
    return {"username": username}


@app.delete("/users/{username}", status_code=204)
def delete_user(username: str):
    with get_connection() as conn:
        if not delete_repertoire(conn, username):
            raise HTTPException(status_code=404, detail=f"User '{username}' not found")
    return Response(status_code=204)


@app.get("/users/{username}/repertoire")
def get_repertoire(username: str):
    with get_connection() as conn:
        snapshot, version = load_or_404(conn, username)
    return {"version": version, "snapshot": snapshot_to_dict(snapshot)}


@app.put("/users/{username}/repertoire")
def put_repertoire(username: str, body: dict, expected_version: int = Query(...)):
    """Replace the stored repertoire. Every variant must replay."""
    snapshot = snapshot_from_dict(body)
    build_variants(snapshot)
    with get_connection() as conn:
        version = store_snapshot(conn, username, snapshot, expected_version)
    return {"version": version, "variant_count": len(snapshot.variants)}


@app.get("/users/{username}/summary")
def get_summary(username: str):
    with get_connection() as conn:
        snapshot, _ = load_or_404(conn, username)
    advance_epoch(snapshot)
    summary = summarize(snapshot)
    return {
        "oldest": summary.oldest,
        "oldest_count": summary.oldest_count,
        "eightieth": summary.eightieth,
        "eightieth_count": summary.eightieth_count,
        "errors_count": summary.errors_count,
        "total": summary.total,
        "daily_count": summary.daily_count,
    }


@app.post("/users/{username}/sessions", status_code=201)
def start_session(username: str, body: StartSessionRequest, request: Request):
    """Load the repertoire, start a new epoch if a new day began, and build a session."""
    with get_connection() as conn:
        snapshot, version = load_or_404(conn, username)
        if advance_epoch(snapshot):
            version = store_snapshot(conn, username, snapshot, version)

    variants = build_variants(snapshot)
    selected = filter_variants(variants, body.filter)
    if body.orientation:
        orientation, selected = body.orientation, for_orientation(selected, body.orientation)
    elif selected:
        orientation, selected = choose_orientation(selected)
    if not selected:
        raise HTTPException(status_code=400, detail="No variants match the filter")

    session = TrainingSession(selected, weight_settings=snapshot.weight_settings)
    session_id = registry(request).add(
        SessionEntry(
            username=username,
            session=session,
            variants=variants,
            current_epoch=snapshot.current_epoch,
            daily_play_count=snapshot.daily_play_count,
            weight_settings=snapshot.weight_settings,
            version=version,
        )
    )
    logger.info("Session %s for %s: %d %s variants", session_id, username, len(selected), orientation)
    return {
        "session_id": session_id,
        "orientation": orientation,
        "variant_count": len(selected),
        "current_epoch": snapshot.current_epoch,
    }


@app.post("/sessions/{session_id}/moves")
def play_move(session_id: str, body: MoveRequest, request: Request):
    """Check a learner move; an unknown continuation is reported, not raised."""
    entry = registry(request).get(session_id)
    board = parse_board(body.fen)
    try:
        move = chess.Move.from_uci(body.uci)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid move: {body.uci}")

    result = entry.session.check_move(body.fen, move, body.ply)
    if result is MoveCheck.INVALID_MOVE:
        if body.mark_error:
            entry.session.mark_error(body.fen)
        return {"result": result.value, "fen": body.fen}
    board.push(move)
    return {"result": result.value, "fen": board.fen()}


@app.post("/sessions/{session_id}/next")
def next_move(session_id: str, body: PlyRequest, request: Request):
    entry = registry(request).get(session_id)
    board = parse_board(body.fen)
    selection = entry.session.select_next_move(body.fen, body.ply)
    san = board.san(selection.move)
    board.push(selection.move)
    return {
        "uci": selection.move.uci(),
        "san": san,
        "fen": board.fen(),
        "candidates": [
            {
                "pgn": plain_pgn(c.variant),
                "uci": c.move.uci(),
                "probability": c.probability,
                "weight": c.factors.weight,
                "picked": c is selection.picked,
            }
            for c in selection.candidates
        ],
    }


@app.post("/sessions/{session_id}/errors", status_code=204)
def mark_error(session_id: str, body: PositionRequest, request: Request):
    registry(request).get(session_id).session.mark_error(body.fen)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/complete")
def complete(session_id: str, body: PositionRequest, request: Request):
    """
    Apply the round outcome, persist the repertoire and close the session.

    A position that identifies no single variant leaves the session open.
    Once the outcome is applied the session is closed even if storing
    fails; the learner starts a new session from the stored repertoire.
    """
    sessions = registry(request)
    entry = sessions.get(session_id)
    had_errors = entry.session.had_errors()
    entry.session.complete_variant(body.fen)
    sessions.discard(session_id)
    daily_play_count = entry.daily_play_count + 1

    snapshot = to_snapshot(entry.variants, entry.current_epoch, daily_play_count, entry.weight_settings)
    with get_connection() as conn:
        store_snapshot(conn, entry.username, snapshot, entry.version)
    return {"had_errors": had_errors, "daily_play_count": daily_play_count}


@app.post("/sessions/{session_id}/reset", status_code=204)
def reset_round(session_id: str, request: Request):
    registry(request).get(session_id).session.reset_round()
    return Response(status_code=204)


@app.delete("/sessions/{session_id}", status_code=204)
def close_session(session_id: str, request: Request):
    sessions = registry(request)
    sessions.get(session_id)
    sessions.discard(session_id)
    return Response(status_code=204)


@app.get("/sessions/{session_id}/annotations")
def get_annotations(session_id: str, request: Request, fen: str = Query(...)):
    entry = registry(request).get(session_id)
    return [
        {"brush": a.brush, "orig": a.orig, "dest": a.dest}
        for a in entry.session.get_annotations(fen)
    ]


@app.get("/sessions/{session_id}/variants")
def list_variants(session_id: str, request: Request):
    entry = registry(request).get(session_id)
    return [
        {
            "pgn": plain_pgn(r.variant),
            "orientation": r.variant.orientation,
            "played": r.variant.number_of_times_played,
            "newness": r.factors.newness,
            "recency": r.factors.recency,
            "frequency": r.factors.frequency,
            "error": r.factors.error,
            "weight": r.factors.weight,
            "probability": r.probability,
            "errors_this_round": r.number_of_errors,
            "picked": r.picked,
        }
        for r in entry.session.list_variants()
    ]


@app.get("/health")
def health():
    return {"status": "ok"}
