# Task board: configuration
# Override defaults via board.yaml or environment variables.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .projector import DEFAULT_COLUMNS
from .schema import ColumnDefinition, TaskStatus
from .transitions import DEFAULT_TRANSITIONS, TransitionTable

CONFIG_PATH = Path(__file__).parent / "board.yaml"


def _default_columns() -> Dict[str, Dict[str, Any]]:
    return {
        status.value: {"title": d.title, "color": d.color, "limit": d.limit}
        for status, d in DEFAULT_COLUMNS.items()
    }


def _default_transitions() -> List[str]:
    return [
        f"{source}->{target}"
        for source, targets in DEFAULT_TRANSITIONS.to_mapping().items()
        for target in targets
    ]


@dataclass
class BoardConfig:
    """Runtime configuration for the task board."""

    # Lanes: status -> {title, color, limit}. limit null = unbounded
    columns: Dict[str, Dict[str, Any]] = field(default_factory=_default_columns)

    # Allowed lane changes, "from->to"
    transitions: List[str] = field(default_factory=_default_transitions)

    # Persistence API
    api_url: str = "http://127.0.0.1:3000"
    api_key: str = ""
    request_timeout: float = 5.0

    # Send a reversed move when the status update fails after a reorder
    compensate_on_update_failure: bool = True

    # Pointer travel (px) before a press becomes a drag
    activation_distance: float = 8.0

    # Reference backend
    db_path: str = "~/.local/share/taskboard/tasks.db"
    log_level: str = "INFO"

    def column_definitions(self) -> Dict[TaskStatus, ColumnDefinition]:
        """Validated lane definitions, defaults filled in for missing lanes."""
        result = dict(DEFAULT_COLUMNS)
        for key, spec in (self.columns or {}).items():
            try:
                status = TaskStatus.from_str(key)
            except ValueError as e:
                raise ConfigError(str(e)) from e
            spec = spec or {}
            base = DEFAULT_COLUMNS[status]
            limit = spec.get("limit", base.limit)
            if limit is not None and (not isinstance(limit, int) or limit < 0):
                raise ConfigError(f"Lane {key}: limit must be a non-negative integer or null")
            result[status] = ColumnDefinition(
                status=status,
                title=spec.get("title", base.title),
                color=spec.get("color", base.color),
                limit=limit,
            )
        return result

    def transition_table(self) -> TransitionTable:
        return TransitionTable.from_strings(self.transitions or [])

    def resolve(self):
        """Apply environment overrides and expand paths."""
        self.api_url = os.environ.get("TASKBOARD_API_URL", self.api_url)
        self.api_key = os.environ.get("TASKBOARD_API_KEY", self.api_key)
        self.db_path = os.environ.get("TASKBOARD_DB", self.db_path)
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BoardConfig":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {cfg_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        else:
            cfg = cls()
        cfg.resolve()
        # Fail early on bad lanes or transitions
        cfg.column_definitions()
        cfg.transition_table()
        return cfg
