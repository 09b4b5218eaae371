#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the SQLite task repository. This is the persistence layer
the board's HttpTaskGateway talks to.

Usage:
    taskboard-server --port 3000 --db ~/.local/share/taskboard/tasks.db

API:
    GET   /api/board             → { columns, transitions, stats }
    GET   /api/tasks             → { tasks, count }
    POST  /api/tasks             → create a task        { title, ... }
    GET   /api/tasks/<id>        → { task }
    PATCH /api/tasks/<id>        → partial update       { status, ... }
    POST  /api/tasks/move        → persist a reorder    { taskId, sourceStatus, ... }
    GET   /health
"""

import hmac
import logging
import os
import sys
from functools import wraps

from flask import Flask, jsonify, request, abort

from .config import BoardConfig
from .projector import project
from .repository import TaskRepository
from .schema import MoveIntent, TaskItem

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("BOARD_CONFIG", None)
app.config.setdefault("API_SECRET", os.environ.get("TASKBOARD_API_KEY", ""))


# ── Config ───────────────────────────────────────────────────────────────────

def get_config() -> BoardConfig:
    cfg = app.config.get("BOARD_CONFIG")
    if cfg is None:
        cfg = BoardConfig.load(os.environ.get("TASKBOARD_CONFIG"))
        app.config["BOARD_CONFIG"] = cfg
    return cfg


def get_repository() -> TaskRepository:
    return TaskRepository(get_config().db_path)


# ── Auth ─────────────────────────────────────────────────────────────────────

def require_api_key(f):
    """Decorator: when a secret is configured, require a matching X-API-Key."""
    @wraps(f)
    def decorated(*args, **kwargs):
        secret = app.config.get("API_SECRET", "")
        if secret:
            provided = request.headers.get("X-API-Key", "").strip()
            if not hmac.compare_digest(provided, secret):
                code = 401 if not provided else 403
                return jsonify({"error": "Unauthorized"}), code
        return f(*args, **kwargs)
    return decorated


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        abort(400, "JSON object body required")
    return data


@app.errorhandler(400)
def bad_request(e):
    return jsonify({"error": e.description}), 400


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/board")
def api_board():
    cfg = get_config()
    tasks = get_repository().list_all()
    columns = project(tasks, cfg.column_definitions())
    stats = {"total": len(tasks)}
    for column in columns:
        stats[column.id.value] = column.count
    return jsonify({
        "columns":     [c.to_dict() for c in columns],
        "transitions": cfg.transition_table().to_mapping(),
        "stats":       stats,
    })


@app.route("/api/tasks", methods=["GET"])
def api_tasks():
    tasks = get_repository().list_all()
    status = request.args.get("status")
    if status:
        tasks = [t for t in tasks if t.status.value == status]
    return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)})


@app.route("/api/tasks", methods=["POST"])
@require_api_key
def api_create_task():
    """Create a task. New tasks start at the end of their lane."""
    data = _json_body()
    title = str(data.get("title", "")).strip()
    if not title:
        return jsonify({"error": "title is required"}), 400

    repo = get_repository()
    try:
        task = TaskItem.from_dict({**data, "id": data.get("id") or repo.next_task_id(), "title": title})
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if repo.get(task.id):
        return jsonify({"error": f"Task {task.id} already exists"}), 409
    repo.save(task)
    logger.info(f"Created task {task.id}")
    return jsonify({"task": task.to_dict(), "id": task.id}), 201


@app.route("/api/tasks/<task_id>", methods=["GET"])
def api_get_task(task_id):
    task = get_repository().get(task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404
    return jsonify({"task": task.to_dict()})


@app.route("/api/tasks/<task_id>", methods=["PATCH"])
@require_api_key
def api_update_task(task_id):
    data = _json_body()
    try:
        task = get_repository().update(task_id, data)
    except KeyError:
        return jsonify({"error": "Task not found"}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error(f"Updating {task_id} failed: {e}")
        return jsonify({"error": "Failed to update task"}), 500
    return jsonify({"task": task.to_dict()})


@app.route("/api/tasks/move", methods=["POST"])
@require_api_key
def api_move_task():
    data = _json_body()
    try:
        intent = MoveIntent.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    try:
        get_repository().move(intent)
    except KeyError:
        return jsonify({"error": "Task not found"}), 404
    except Exception as e:
        logger.error(f"Moving {intent.task_id} failed: {e}")
        return jsonify({"error": "Failed to move task"}), 500
    return jsonify({"ok": True, "intent": intent.to_dict()})


@app.route("/health")
def health():
    return jsonify({"status": "ok", "db": get_config().db_path})


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--host", default="127.0.0.1",
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--db", help="Path to tasks.db (overrides TASKBOARD_DB)")
    parser.add_argument("--config", help="Path to board.yaml")
    args = parser.parse_args(argv)

    if args.db:
        os.environ["TASKBOARD_DB"] = args.db
    cfg = BoardConfig.load(args.config)
    app.config["BOARD_CONFIG"] = cfg

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info(f"Serving {cfg.db_path} on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
