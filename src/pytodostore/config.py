"""Store configuration for pytodostore."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from pathlib import Path
from typing import Any

from pytodostore.exceptions import TodoStoreConfigError

#: Seconds the watcher stays deaf after a self-initiated write.
DEFAULT_GRACE_PERIOD: float = 1.0


class BackendKind(StrEnum):
    DIRECT = "direct"
    SCOPED = "scoped"


def _env_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise TodoStoreConfigError(f"Invalid {name}: {value!r}")


def _default_dir() -> Path:
    return Path.home() / ".local" / "share" / "pytodostore"


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    backend : BackendKind
        Storage mechanism. Selected once when the store is built.
    default_dir : Path
        Directory holding the default document. Also offered as a
        shortcut when listing the filesystem root.
    todo_filename : str
        Name of the canonical task-list document.
    done_filename : str
        Name of the archive document that completed tasks are appended to.
    tree_root : Path or None
        Directory granted to the scoped backend. Required when
        ``backend`` is ``"scoped"``.
    grace_period : float
        Seconds to keep change notifications suppressed after the store
        writes the watched document. The right value depends on the
        filesystem's notification latency.
    watch_enabled : bool
        Watch the direct-path document for external edits.
    """

    backend: BackendKind = BackendKind.DIRECT
    default_dir: Path = dataclasses.field(default_factory=_default_dir)
    todo_filename: str = "todo.txt"
    done_filename: str = "done.txt"
    tree_root: Path | None = None
    grace_period: float = DEFAULT_GRACE_PERIOD
    watch_enabled: bool = True

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "backend", BackendKind(self.backend))
        except ValueError as exc:
            raise TodoStoreConfigError(f"Unknown backend: {self.backend!r}") from exc
        object.__setattr__(self, "default_dir", Path(self.default_dir).expanduser())
        if self.tree_root is not None:
            object.__setattr__(self, "tree_root", Path(self.tree_root).expanduser())
        if self.grace_period < 0:
            raise TodoStoreConfigError("grace_period must be >= 0")
        if not self.todo_filename.strip() or not self.done_filename.strip():
            raise TodoStoreConfigError("todo_filename and done_filename must be non-empty")
        if self.backend == BackendKind.SCOPED and self.tree_root is None:
            raise TodoStoreConfigError("tree_root is required for the scoped backend")

    @property
    def default_file(self) -> Path:
        return self.default_dir / self.todo_filename

    @property
    def done_file(self) -> Path:
        return self.default_dir / self.done_filename

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads the optional ``TODOSTORE_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TODOSTORE_BACKEND": "backend",
            "TODOSTORE_DEFAULT_DIR": "default_dir",
            "TODOSTORE_TODO_FILENAME": "todo_filename",
            "TODOSTORE_DONE_FILENAME": "done_filename",
            "TODOSTORE_TREE_ROOT": "tree_root",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val

        # grace_period is numeric, handle separately
        grace_env = env.get("TODOSTORE_GRACE_PERIOD")
        if grace_env is not None and "grace_period" not in overrides:
            try:
                config_kwargs["grace_period"] = float(grace_env)
            except ValueError as exc:
                raise TodoStoreConfigError(f"Invalid TODOSTORE_GRACE_PERIOD: {grace_env!r}") from exc

        if "watch_enabled" not in overrides:
            config_kwargs["watch_enabled"] = _env_bool(
                "TODOSTORE_WATCH_ENABLED", env.get("TODOSTORE_WATCH_ENABLED"), True
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
