"""
FastAPI web server — HTTP front for one layout editing session.

Every route maps to one inbound session event and answers with the
resulting layout snapshot plus the events emitted by the call.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Mapping

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.catalog import catalog_to_dict, load_catalog
from src.layout import CatalogError, LayoutConfig, LayoutSession
from src.layout.serialization import (
    analysis_to_dict, event_to_dict, hint_to_dict, snapshot_to_dict,
)


log = logging.getLogger(__name__)

# ── Grid settings from the environment ─────────────────────────────
# Only GRID_* keys are read; the process environment wins over .env.

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

_GRID_SETTINGS = {
    "GRID_COLUMNS": ("columns", int),
    "GRID_ROWS": ("rows", int),
    "GRID_CELL_WIDTH": ("cell_width", float),
    "GRID_CELL_HEIGHT": ("cell_height", float),
    "GRID_GAP": ("gap", float),
    "GRID_DRAG_THRESHOLD": ("drag_threshold_px", float),
}


def read_grid_env_file(path: Path) -> dict[str, str]:
    """Return the GRID_* assignments of a dotenv-style file ({} if absent)."""
    if not path.exists():
        return {}
    found: dict[str, str] = {}
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if not key.startswith("GRID_"):
            continue
        if key not in _GRID_SETTINGS:
            log.warning("%s:%d: unknown grid setting %s ignored", path.name, lineno, key)
            continue
        found[key] = value.strip('"').strip("'")
    return found


def config_from_env(
    environ: Mapping[str, str] | None = None,
    env_file: Path | None = ENV_FILE,
) -> LayoutConfig:
    """Build the grid config from GRID_* settings.

    Raises ValueError naming the offending key for a malformed value.
    """
    environ = os.environ if environ is None else environ
    raw = read_grid_env_file(env_file) if env_file is not None else {}
    raw.update({k: environ[k] for k in _GRID_SETTINGS if k in environ})

    overrides = {}
    for key, value in raw.items():
        field_name, convert = _GRID_SETTINGS[key]
        try:
            overrides[field_name] = convert(value)
        except ValueError:
            raise ValueError(f"{key}={value!r} is not a valid {convert.__name__}") from None
    if overrides:
        log.info("Grid settings from environment: %s",
                 ", ".join(f"{k}={v}" for k, v in sorted(overrides.items())))
    return LayoutConfig(**overrides)


# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Profile Grid")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Session state (persists across requests) ───────────────────────
# Handlers run on a thread pool; every engine call goes through _lock so
# the registry and the drag slot change as one unit.

_lock = threading.RLock()
_session: LayoutSession | None = None


def get_session() -> LayoutSession:
    global _session
    with _lock:
        if _session is None:
            _session = LayoutSession(config_from_env(), load_catalog())
        return _session


def set_session(session: LayoutSession | None) -> None:
    """Replace the served session (None = rebuild lazily from env)."""
    global _session
    with _lock:
        _session = session


def _respond(session: LayoutSession, **extra) -> dict:
    return {
        "layout": snapshot_to_dict(session.snapshot()),
        "events": [event_to_dict(e) for e in session.drain_events()],
        **extra,
    }


# ── Models ─────────────────────────────────────────────────────────

class AddWidgetRequest(BaseModel):
    type: str
    width: int | None = None
    height: int | None = None


class DragRequest(BaseModel):
    dx: float = 0.0
    dy: float = 0.0


class EditModeRequest(BaseModel):
    enabled: bool


class ResetRequest(BaseModel):
    confirm: bool = False


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/layout")
def get_layout():
    with _lock:
        return _respond(get_session())


@app.get("/api/catalog")
def get_catalog():
    with _lock:
        return catalog_to_dict(get_session().catalog)


@app.get("/api/space")
def get_space():
    with _lock:
        return analysis_to_dict(get_session().space_analysis())


@app.post("/api/widgets")
def add_widget(req: AddWidgetRequest):
    """Add a widget at the first free cell.

    Without an explicit size the type's catalog default is used.
    """
    with _lock:
        session = get_session()
        try:
            if req.width is None or req.height is None:
                widget = session.add_default_widget(req.type)
            else:
                widget = session.add_widget(req.type, req.width, req.height)
        except CatalogError as exc:
            log.info("Rejected add request for %r: %s", req.type, exc)
            session.drain_events()
            raise HTTPException(422, str(exc))

        if widget is None:
            body = _respond(session)
            raise HTTPException(409, body["layout"]["failure"])
        return _respond(session, widget_id=widget.id)


@app.delete("/api/widgets/{widget_id}")
def remove_widget(widget_id: str):
    with _lock:
        session = get_session()
        freed = session.remove_widget(widget_id)
        if freed is None:
            raise HTTPException(404, f"Widget '{widget_id}' not found")
        return _respond(session)


@app.post("/api/widgets/{widget_id}/drag/start")
def drag_start(widget_id: str):
    with _lock:
        session = get_session()
        started = session.move_drag_start(widget_id)
        return _respond(session, started=started)


@app.post("/api/widgets/{widget_id}/drag/move")
def drag_move(widget_id: str, req: DragRequest):
    with _lock:
        session = get_session()
        hint = session.move_drag_update(widget_id, req.dx, req.dy)
        return _respond(session, hint=hint_to_dict(hint))


@app.post("/api/widgets/{widget_id}/drag/end")
def drag_end(widget_id: str, req: DragRequest):
    with _lock:
        session = get_session()
        result = session.move_drag_end(widget_id, req.dx, req.dy)
        return _respond(
            session,
            outcome=result.outcome.value,
            anchor=result.anchor._asdict() if result.anchor else None,
        )


@app.post("/api/widgets/{widget_id}/drag/cancel")
def drag_cancel(widget_id: str):
    with _lock:
        session = get_session()
        cancelled = session.move_drag_cancel(widget_id)
        return _respond(session, cancelled=cancelled)


@app.post("/api/edit_mode")
def set_edit_mode(req: EditModeRequest):
    with _lock:
        session = get_session()
        session.set_edit_mode(req.enabled)
        return _respond(session)


@app.get("/api/reset")
def reset_prompt():
    """Confirmation prompt for removing every widget."""
    with _lock:
        session = get_session()
        msg = session.reset_prompt()
        return {
            "count": session.pending_reset_count(),
            "title": msg.title,
            "message": msg.body,
        }


@app.post("/api/reset")
def reset_all(req: ResetRequest):
    with _lock:
        session = get_session()
        removed = session.reset_all(confirmed=req.confirm)
        return _respond(session, removed=removed)


def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("src.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
