"""Session configuration loader.

Loads settings from ~/.zypto/config.json, applies ZYPTO_SESSION_*
environment overrides (a .env file is honoured), and builds ready to use
sessions from the result.
"""

import json
import logging
import os
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .logging import JSONLLogger
from .manager import SessionManager
from .session import DEFAULT_NAME, Session
from .stores import FileStore, MemoryStore, SessionStore, SQLiteStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".zypto" / "config.json"
STORES = ("memory", "file", "sqlite")
ENV_PREFIX = "ZYPTO_SESSION_"


@dataclass
class SessionConfig:
    """Configuration for sessions.

    Attributes:
        default_name: Name given to new sessions.
        store: Backend kind, one of "memory", "file" or "sqlite".
        sessions_dir: Directory for the file store.
        db_path: Database path for the sqlite store.
        populate_global: Default for mirroring entries on initialize.
        log_dir: Directory for the JSONL event log (disabled if None).
    """

    default_name: str = DEFAULT_NAME
    store: str = "memory"
    sessions_dir: Path | None = None
    db_path: Path | None = None
    populate_global: bool = True
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Validate config and set defaults."""
        if self.store not in STORES:
            raise ValueError(f"Unknown session store '{self.store}', expected one of {STORES}")

        if not self.default_name:
            raise ValueError("default_name must not be empty")

        if self.sessions_dir is None:
            self.sessions_dir = Path.home() / ".zypto" / "sessions"

        if self.db_path is None:
            self.db_path = Path.home() / ".zypto" / "sessions.db"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_config(data: dict[str, Any]) -> dict[str, Any]:
    """Pick known settings out of the "session" section of a config file."""
    section = data.get("session", {})
    if not isinstance(section, dict):
        return {}

    values: dict[str, Any] = {}

    name = section.get("name")
    if isinstance(name, str) and name:
        values["default_name"] = name

    store = section.get("store")
    if isinstance(store, str):
        values["store"] = store

    for key in ("sessions_dir", "db_path", "log_dir"):
        raw = section.get(key)
        if isinstance(raw, str) and raw:
            values[key] = Path(raw).expanduser()

    populate = section.get("populate_global")
    if isinstance(populate, bool):
        values["populate_global"] = populate

    return values


def _env_overrides() -> dict[str, Any]:
    """Read ZYPTO_SESSION_* variables into config values."""
    values: dict[str, Any] = {}
    env = {
        key[len(ENV_PREFIX):]: value
        for key, value in os.environ.items()
        if key.startswith(ENV_PREFIX) and value
    }

    if "NAME" in env:
        values["default_name"] = env["NAME"]
    if "STORE" in env:
        values["store"] = env["STORE"].strip().lower()
    for name, field_name in (("DIR", "sessions_dir"), ("DB", "db_path"), ("LOG_DIR", "log_dir")):
        if name in env:
            values[field_name] = Path(env[name]).expanduser()
    if "POPULATE_GLOBAL" in env:
        values["populate_global"] = _parse_bool(env["POPULATE_GLOBAL"])

    return values


def load_config(config_path: Path | None = None, use_env: bool = True) -> SessionConfig:
    """Load SessionConfig from a JSON file and the environment.

    The config file should have this structure:
    ```json
    {
      "session": {
        "name": "ZyptoSession",
        "store": "file",
        "sessions_dir": "~/.zypto/sessions",
        "populate_global": false
      }
    }
    ```

    Environment variables (ZYPTO_SESSION_NAME, _STORE, _DIR, _DB, _LOG_DIR,
    _POPULATE_GLOBAL) take precedence over the file.

    Args:
        config_path: Path to config file. Uses DEFAULT_CONFIG_PATH if None.
        use_env: Apply environment overrides.

    Returns:
        SessionConfig instance with loaded values.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    values: dict[str, Any] = {}

    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
    else:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
            data = {}
        except OSError as e:
            logger.warning("Cannot read %s: %s. Using defaults.", path, e)
            data = {}
        if isinstance(data, dict):
            values.update(_parse_config(data))

    if use_env:
        load_dotenv(find_dotenv(usecwd=True))
        values.update(_env_overrides())

    return SessionConfig(**values)


def save_config(config: SessionConfig, config_path: Path | None = None) -> None:
    """Save SessionConfig to a JSON file.

    Args:
        config: The config to save.
        config_path: Path to write to. Uses DEFAULT_CONFIG_PATH if None.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    section: dict[str, Any] = {
        "name": config.default_name,
        "store": config.store,
        "sessions_dir": str(config.sessions_dir),
        "db_path": str(config.db_path),
        "populate_global": config.populate_global,
    }
    if config.log_dir:
        section["log_dir"] = str(config.log_dir)

    try:
        with open(path, "w") as f:
            json.dump({"session": section}, f, indent=2)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise


def create_store(config: SessionConfig) -> SessionStore:
    """Build the store backend named by the config."""
    if config.store == "file":
        assert config.sessions_dir is not None
        return FileStore(config.sessions_dir)
    if config.store == "sqlite":
        assert config.db_path is not None
        return SQLiteStore(config.db_path)
    return MemoryStore()


def create_session(
    config: SessionConfig | None = None,
    *,
    session_id: str | None = None,
    mirror: MutableMapping[str, Any] | None = None,
    event_log: JSONLLogger | None = None,
) -> Session:
    """Wire a store, manager and session handle together.

    Args:
        config: Settings to use. Loaded with load_config() if None.
        session_id: Identifier of an existing session to resume.
        mirror: Mapping that receives entries when initialized with
            populate_global.
        event_log: Event logger. Built from config.log_dir if None.
    """
    config = config or load_config()
    if event_log is None and config.log_dir is not None:
        event_log = JSONLLogger(log_dir=config.log_dir)

    manager = SessionManager(
        create_store(config),
        session_id=session_id,
        mirror=mirror,
        event_log=event_log,
    )
    return Session(manager, name=config.default_name, populate_global=config.populate_global)
