"""
Persistence gateway: the two calls the board needs from the API layer.

  on_task_move(intent)            persist a reorder or lane move
  on_task_update(task_id, fields) persist a field change (status after a move)

Both are awaited by the move orchestrator. A rejection must raise; the
orchestrator wraps it in MoveFailed.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from .errors import GatewayError
from .schema import MoveIntent, TaskStatus

logger = logging.getLogger(__name__)


class TaskGateway(Protocol):
    async def on_task_move(self, intent: MoveIntent) -> None:
        ...

    async def on_task_update(self, task_id: str, updates: Dict[str, Any]) -> None:
        ...


def _jsonable(updates: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, TaskStatus) else v) for k, v in updates.items()}


class HttpTaskGateway:
    """
    Talks to the board API over HTTP with requests.

    requests is blocking, so each call runs in a worker thread and the
    event loop stays free while the round-trip is in flight.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        api_key: str = "",
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["X-API-Key"] = api_key

    async def on_task_move(self, intent: MoveIntent) -> None:
        await asyncio.to_thread(
            self._send, "POST", "/api/tasks/move", intent.to_dict()
        )

    async def on_task_update(self, task_id: str, updates: Dict[str, Any]) -> None:
        await asyncio.to_thread(
            self._send, "PATCH", f"/api/tasks/{task_id}", _jsonable(updates)
        )

    def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self.base_url + path
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise GatewayError(f"{method} {path} failed: {e}") from e

        if not r.ok:
            try:
                message = r.json().get("error", r.text)
            except ValueError:
                message = r.text
            logger.warning(f"{method} {url} -> {r.status_code}: {message}")
            raise GatewayError(f"{method} {path} -> {r.status_code}: {message}", r.status_code)

        logger.debug(f"{method} {url} -> {r.status_code}")
        try:
            return r.json()
        except ValueError:
            return {}
