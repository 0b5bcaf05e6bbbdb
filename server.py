# server.py
# Local Flask server: hands out session snapshots and accepts player actions.
# Run: python server.py  (or flask --app server run, which picks up create_app)

from __future__ import annotations
from typing import Dict, Any, Optional
import threading, weakref

from flask import Flask, request, jsonify

import game
import content
from config import Settings, settings as default_settings
from logger import get_logger, set_level
from storage import make_store

logger = get_logger("farm.server")


class SessionLocks:
    """One lock per session id: at most one in-flight reduction per session.

    Locks are held weakly, so an id drops out once no request is using it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def get(self, sid: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(sid)
            if lock is None:
                lock = threading.Lock()
                self._locks[sid] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


def create_app(store=None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or default_settings
    problems = settings.validate()
    if problems:
        raise ValueError(f"invalid settings: {', '.join(problems)}")
    set_level(settings.LOG_LEVEL)
    if store is None:
        store = make_store(settings.STORE, settings.SAVE_DIR)

    app = Flask(__name__)
    locks = SessionLocks()

    def view(st: Dict[str, Any]) -> Dict[str, Any]:
        return game.sanitize_for_client(st, settings.LOG_LIMIT)

    def load_state(sid: str) -> Dict[str, Any]:
        st = store.get(sid)
        if st is None:
            return game.create_blank_session()
        # light guard against stale saves
        if int(st.get("version", 0)) != game.SAVE_VERSION:
            logger.info("session %s has save version %s, resetting", sid, st.get("version"))
            return game.create_blank_session()
        return st

    def reduce(sid: str, action: Dict[str, Any]):
        with locks.get(sid):
            st = load_state(sid)
            toast = None
            try:
                st = game.dispatch(st, action)
            except Exception as e:
                # keep the front end alive; the state stays as it was
                logger.exception("action %r failed for session %s", action, sid)
                toast = f"Error: {type(e).__name__}"
            store.set(sid, st)
        out = {"sid": sid, "state": view(st)}
        if toast:
            out["toast"] = toast
        return jsonify(out)

    @app.post("/api/bootstrap")
    def api_bootstrap():
        data = request.get_json(silent=True) or {}
        sid = data.get("sid") or game.make_uid("sid")
        with locks.get(sid):
            st = load_state(sid)
            store.set(sid, st)
        logger.info("bootstrap %s (%s)", sid, st.get("status"))
        return jsonify({"sid": sid, "state": view(st)})

    @app.post("/api/start")
    def api_start():
        data = request.get_json(silent=True) or {}
        sid = data.get("sid")
        if not sid:
            return jsonify({"error": "missing sid"}), 400
        logger.info("start %s", sid)
        return reduce(sid, {"type": "start", "name": data.get("name")})

    @app.post("/api/action")
    def api_action():
        data = request.get_json(silent=True) or {}
        sid = data.get("sid")
        action = data.get("action") or {}
        if not sid:
            return jsonify({"error": "missing sid"}), 400
        logger.info("action %s %s", sid, action.get("type") if isinstance(action, dict) else action)
        return reduce(sid, action)

    @app.get("/api/content")
    def api_content():
        return jsonify({
            "skills": [content.skill_view(sid) for sid in content.SKILLS],
            "upgrades": [dict(u, id=uid) for uid, u in content.UPGRADES.items()],
            "relics": content.RELICS,
            "archetypes": [{"id": a, "name": content.ARCHETYPE_NAMES[a]} for a in content.ARCHETYPES],
            "story_events": [{"id": ev["id"], "title": ev["title"]} for ev in content.STORY_EVENTS],
        })

    @app.get("/api/ping")
    def ping():
        return jsonify({"ok": True})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host=default_settings.HOST, port=default_settings.PORT, debug=default_settings.DEBUG)
