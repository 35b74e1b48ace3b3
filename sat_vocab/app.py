"""FastAPI application with all routes."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from sat_vocab.cache import TTLCache
from sat_vocab.config import Settings, load_settings, save_settings
from sat_vocab.db import Database
from sat_vocab.dictionary import DictionaryClient
from sat_vocab.drill import DrillEvent, SwipeDirection, VocabularyDrill
from sat_vocab.models import ReadingSnapshot
from sat_vocab.passages import PassageGenerationError, PassageGenerator, fallback_passage
from sat_vocab.providers.base import LLMProvider
from sat_vocab.providers.registry import build_llm
from sat_vocab.reading import ReadingSession
from sat_vocab.resolver import DefinitionResolver

app = FastAPI(title="SAT Vocab")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None
_resolver: DefinitionResolver | None = None
_passages: PassageGenerator | None = None
_reading_sessions: TTLCache | None = None  # session_id -> ReadingSession
_drills: TTLCache | None = None  # drill_id -> VocabularyDrill

log = logging.getLogger("sat_vocab.app")


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_resolver() -> DefinitionResolver:
    assert _resolver is not None
    return _resolver


def get_passages() -> PassageGenerator:
    assert _passages is not None
    return _passages


def _get_llm() -> LLMProvider | None:
    return build_llm(get_settings())


def _build_services(keep_sessions: bool = False) -> None:
    """(Re)create resolver, passage generator and session stores from settings."""
    global _resolver, _passages, _reading_sessions, _drills
    s = get_settings()
    llm = _get_llm()
    dictionary = DictionaryClient(base_url=s.dictionary_url, timeout=s.lookup_timeout_seconds)
    _resolver = DefinitionResolver(
        dictionary,
        llm,
        cache_ttl_seconds=s.definition_cache_ttl_seconds,
        llm_timeout_seconds=s.lookup_timeout_seconds,
    )
    _passages = PassageGenerator(llm, history_ttl_seconds=s.passage_history_ttl_seconds)
    if not keep_sessions or _reading_sessions is None:
        _reading_sessions = TTLCache(s.session_ttl_seconds)
        _drills = TTLCache(s.session_ttl_seconds)


@app.on_event("startup")
async def startup():
    global _db, _settings
    if _db is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)
    _build_services()


@app.on_event("shutdown")
async def shutdown():
    if _db:
        _db.close()


def _user_id(request: Request) -> str:
    return request.headers.get("X-User-Id", "anonymous")


async def _json_body(request: Request) -> dict:
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    return body


def _get_session(session_id: str) -> ReadingSession:
    assert _reading_sessions is not None
    session = _reading_sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Reading session not found")
    _reading_sessions.touch(session_id)
    return session


def _get_drill(drill_id: str) -> VocabularyDrill:
    assert _drills is not None
    drill = _drills.get(drill_id)
    if drill is None:
        raise HTTPException(404, "Drill not found")
    _drills.touch(drill_id)
    return drill


def _new_session(user_id: str, snapshot: ReadingSnapshot | None = None) -> ReadingSession:
    s = get_settings()
    options = dict(
        passages=get_passages(),
        user_id=user_id,
        lookup_timeout_seconds=s.lookup_timeout_seconds,
        passage_timeout_seconds=s.passage_timeout_seconds,
    )
    if snapshot is not None:
        return ReadingSession.restore(snapshot, get_resolver(), **options)
    return ReadingSession(get_resolver(), **options)


# ── API: Dictionary ───────────────────────────────────────────────────────

@app.get("/api/dictionary/{word}")
async def api_dictionary(word: str, concise: bool = False):
    definition = await get_resolver().resolve(word, concise=concise)
    if definition is None:
        return JSONResponse({"error": "Definition not found"}, status_code=404)
    return definition.to_dict()


# ── API: Passages ─────────────────────────────────────────────────────────

@app.post("/api/reading/generate")
async def api_reading_generate(request: Request):
    try:
        passage = await get_passages().generate(_user_id(request))
        return {"passage": passage, "fallback": False}
    except PassageGenerationError as e:
        log.warning("Serving fallback passage: %s", e)
        return {"passage": fallback_passage(), "fallback": True}


# ── API: Reading session ──────────────────────────────────────────────────

@app.post("/api/reading/session")
async def api_reading_session_start(request: Request):
    body = await _json_body(request)
    user_id = _user_id(request)

    snapshot = get_db().load_snapshot(user_id) if body.get("restore") else None
    session = _new_session(user_id, snapshot)

    _reading_sessions.set(session.id, session)
    await session.start()
    return session.view()


@app.get("/api/reading/session/{session_id}")
async def api_reading_session(session_id: str):
    return _get_session(session_id).view()


@app.post("/api/reading/session/{session_id}/toggle")
async def api_reading_toggle(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    token = body.get("token", "")
    if not isinstance(token, str) or not token.strip():
        raise HTTPException(400, "No token provided")
    marked = session.toggle(token)
    return {"marked": marked, **session.view()}


@app.get("/api/reading/session/{session_id}/hover/{token}")
async def api_reading_hover(session_id: str, token: str):
    session = _get_session(session_id)
    return {"tooltip": await session.hover(token)}


@app.post("/api/reading/session/{session_id}/clear")
async def api_reading_clear(session_id: str):
    session = _get_session(session_id)
    session.clear_all()
    return session.view()


@app.post("/api/reading/session/{session_id}/dismiss-error")
async def api_reading_dismiss_error(session_id: str):
    session = _get_session(session_id)
    session.dismiss_error()
    return session.view()


@app.post("/api/reading/session/{session_id}/save")
async def api_reading_save(session_id: str, request: Request):
    session = _get_session(session_id)
    snapshot = session.snapshot()
    get_db().save_snapshot(_user_id(request), snapshot)
    return {"saved": True, "snapshot": snapshot.to_dict()}


@app.delete("/api/reading/saved")
async def api_reading_discard(request: Request):
    return {"deleted": get_db().delete_snapshot(_user_id(request))}


# ── API: Drill ────────────────────────────────────────────────────────────

def _on_drill_complete(user_id: str):
    def record(drill: VocabularyDrill) -> None:
        if drill.outcomes:
            n = get_db().record_drill_outcomes(user_id, drill.id, drill.outcomes)
            log.info("Drill %s complete, %d outcomes recorded", drill.id, n)
    return record


@app.post("/api/reading/session/{session_id}/drill")
async def api_reading_to_drill(session_id: str, request: Request):
    session = _get_session(session_id)
    user_id = _user_id(request)
    s = get_settings()
    get_db().save_snapshot(user_id, session.snapshot())

    words = session.marked.words()
    drill = next(
        (d for d in _drills.values() if d.reading_session_id == session.id and d.active),
        None,
    )
    if drill is not None:
        drill.rebind(words)
    else:
        drill = VocabularyDrill(
            words,
            session.cache,
            get_resolver(),
            budget=s.display_budget,
            swipe_threshold=s.swipe_threshold_px,
            exit_animation_seconds=s.exit_animation_seconds,
            lookup_timeout_seconds=s.lookup_timeout_seconds,
            on_complete=_on_drill_complete(user_id),
            reading_session_id=session.id,
        )
        _drills.set(drill.id, drill)

    await drill.load_current()
    return drill.view()


@app.get("/api/drill/{drill_id}")
async def api_drill(drill_id: str):
    return _get_drill(drill_id).view()


@app.post("/api/drill/{drill_id}/event")
async def api_drill_event(drill_id: str, request: Request):
    drill = _get_drill(drill_id)
    body = await _json_body(request)
    prevent_default = False

    try:
        if "event" in body:
            await drill.handle(DrillEvent(body["event"]))
        elif "key" in body:
            _, prevent_default = await drill.press_key(body["key"])
        elif "button" in body:
            await drill.press_button(body["button"])
        elif "swipe" in body:
            await drill.commit_swipe(SwipeDirection(body["swipe"]))
        elif "drag" in body:
            phase = body["drag"]
            if phase == "start":
                drill.swipe.start()
            elif phase == "move":
                drill.swipe.move(float(body.get("offset", 0)))
            elif phase == "end":
                await drill.release_drag()
            else:
                raise ValueError(f"Unknown drag phase: {phase}")
        else:
            raise HTTPException(400, "Expected one of: event, key, button, swipe, drag")
    except (ValueError, TypeError) as e:
        raise HTTPException(400, str(e))

    return {**drill.view(), "prevent_default": prevent_default}


@app.post("/api/drill/{drill_id}/back")
async def api_drill_back(drill_id: str, request: Request):
    """Save progress and return to the reading session the drill came from."""
    drill = _get_drill(drill_id)
    session = _get_session(drill.reading_session_id or "")
    get_db().save_snapshot(_user_id(request), session.snapshot())
    return session.view()


@app.get("/api/outcomes")
async def api_outcomes(request: Request):
    return {"words": get_db().get_outcome_counts(_user_id(request))}


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _json_body(request)
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    _build_services(keep_sessions=True)
    return s.to_dict()
