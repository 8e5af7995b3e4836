"""HTTP relay that feeds wearable session events into the app.

Routes:
    GET    /health
    GET    /sessions
    POST   /sessions/{session_id}              start a session
    GET    /sessions/{session_id}              registry snapshot
    DELETE /sessions/{session_id}              end a session
    POST   /sessions/{session_id}/transcription   {"text", "is_final"}
    POST   /sessions/{session_id}/button          {"press_type", "button_id"}

Event routes answer 202 immediately and handle the event in the background;
pass ``?wait=1`` to get the response only after handling has finished.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

from aiohttp import web

from lumiere import __version__
from lumiere.app import ActiveSession, LumiereApp
from lumiere.common.events import BUTTON_PRESS, TRANSCRIPTION
from lumiere.common.logging import get_logger
from lumiere.session import MockSession, Session

SessionFactory = Callable[[str], Session]

APP_KEY = web.AppKey("lumiere_app", LumiereApp)
FACTORY_KEY = web.AppKey("session_factory", object)
TASKS_KEY = web.AppKey("event_tasks", set)

logger = get_logger("event_relay")


def _active(request: web.Request) -> ActiveSession:
    session_id = request.match_info["session_id"]
    active = request.app[APP_KEY].get_session(session_id)
    if active is None:
        raise web.HTTPNotFound(
            text=json.dumps({"error": f"Unknown session: {session_id}"}),
            content_type="application/json",
        )
    return active


async def _read_json(request: web.Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Expected a JSON object"}),
            content_type="application/json",
        )
    return data


async def _dispatch(request: web.Request, topic: str, data: dict[str, Any]) -> web.Response:
    active = _active(request)
    publish = active.bus.publish(topic, data)

    if request.query.get("wait", "").lower() in ("1", "true", "yes"):
        event = await publish
        return web.json_response({"event_id": event.event_id, "handled": True})

    tasks: set[asyncio.Task] = request.app[TASKS_KEY]
    task = asyncio.create_task(publish)
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return web.json_response({"accepted": True}, status=202)


# --- Handlers ---


async def handle_health(request: web.Request) -> web.Response:
    app = request.app[APP_KEY]
    return web.json_response(
        {
            "status": "ok",
            "version": __version__,
            "mock_mode": app.mock_mode,
            "sessions": len(app.sessions),
        }
    )


async def handle_list_sessions(request: web.Request) -> web.Response:
    sessions = request.app[APP_KEY].sessions
    return web.json_response({"sessions": sorted(sessions)})


async def handle_start_session(request: web.Request) -> web.Response:
    session_id = request.match_info["session_id"]
    factory: SessionFactory = request.app[FACTORY_KEY]  # type: ignore[assignment]
    request.app[APP_KEY].on_session(factory(session_id))
    return web.json_response({"session_id": session_id}, status=201)


async def handle_get_session(request: web.Request) -> web.Response:
    active = _active(request)
    handler = active.handler
    return web.json_response(
        {
            "session_id": active.session.session_id,
            "awakened": handler.awakened,
            "generation": handler.registry.generation,
            "objects": handler.registry.snapshot(),
        }
    )


async def handle_end_session(request: web.Request) -> web.Response:
    session_id = request.match_info["session_id"]
    if not request.app[APP_KEY].end_session(session_id):
        raise web.HTTPNotFound(
            text=json.dumps({"error": f"Unknown session: {session_id}"}),
            content_type="application/json",
        )
    return web.json_response({"session_id": session_id, "ended": True})


async def handle_transcription(request: web.Request) -> web.Response:
    data = await _read_json(request)
    if not isinstance(data.get("text"), str):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "'text' must be a string"}),
            content_type="application/json",
        )
    return await _dispatch(
        request,
        TRANSCRIPTION,
        {"text": data["text"], "is_final": bool(data.get("is_final", True))},
    )


async def handle_button(request: web.Request) -> web.Response:
    data = await _read_json(request)
    return await _dispatch(
        request,
        BUTTON_PRESS,
        {
            "press_type": str(data.get("press_type", "")),
            "button_id": str(data.get("button_id", "main")),
        },
    )


# --- App Setup ---


async def on_startup(app: web.Application) -> None:
    await app[APP_KEY].start()


async def on_cleanup(app: web.Application) -> None:
    tasks: set[asyncio.Task] = app[TASKS_KEY]
    for task in list(tasks):
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    await app[APP_KEY].stop()


def create_server_app(
    lumiere_app: LumiereApp,
    session_factory: SessionFactory = MockSession,
) -> web.Application:
    """Create the aiohttp application."""
    app = web.Application()
    app[APP_KEY] = lumiere_app
    app[FACTORY_KEY] = session_factory
    app[TASKS_KEY] = set()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    app.router.add_get("/health", handle_health)
    app.router.add_get("/sessions", handle_list_sessions)
    app.router.add_post("/sessions/{session_id}", handle_start_session)
    app.router.add_get("/sessions/{session_id}", handle_get_session)
    app.router.add_delete("/sessions/{session_id}", handle_end_session)
    app.router.add_post("/sessions/{session_id}/transcription", handle_transcription)
    app.router.add_post("/sessions/{session_id}/button", handle_button)

    return app


def run_server(
    lumiere_app: LumiereApp,
    session_factory: SessionFactory = MockSession,
    host: str = "0.0.0.0",
    port: int | None = None,
) -> None:
    """Serve until interrupted."""
    port = port or lumiere_app.config.app.port
    logger.info("relay_listening", host=host, port=port)
    web.run_app(create_server_app(lumiere_app, session_factory), host=host, port=port, print=None)
