"""Uvicorn launcher guarded by a port.lock file in the data dir."""

from __future__ import annotations

import json
import logging
import os
import signal
from pathlib import Path

from rulepack.config import Config, default_config_path, get_data_dir, load_config

logger = logging.getLogger(__name__)


class ServerAlreadyRunningError(Exception):
    """Raised when port.lock names another live rulepack server."""

    def __init__(self, pid: int, port: int | None) -> None:
        self.pid = pid
        self.port = port
        super().__init__(f"rulepack server already running (pid {pid}, port {port})")


def get_port_lock_path() -> Path:
    return get_data_dir() / "port.lock"


def write_port_lock(port: int) -> Path:
    lock_path = get_port_lock_path()
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(json.dumps({"port": port, "pid": os.getpid()}))
    return lock_path


def read_port_lock() -> dict:
    lock_path = get_port_lock_path()
    try:
        data = json.loads(lock_path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def remove_port_lock() -> None:
    lock_path = get_port_lock_path()
    lock_path.unlink(missing_ok=True)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def claim_port_lock(port: int) -> Path:
    """Write port.lock, refusing if it belongs to another live process.

    A lock left behind by a dead process is replaced.
    """
    existing = read_port_lock()
    pid = existing.get("pid")
    if isinstance(pid, int) and pid != os.getpid():
        if _pid_alive(pid):
            raise ServerAlreadyRunningError(pid, existing.get("port"))
        logger.info(f"Replacing stale port.lock from pid {pid}")
    return write_port_lock(port)


def run_server(config: Config | None = None) -> None:
    """Start the HTTP API server with uvicorn."""
    import uvicorn

    if config is None:
        config = load_config(default_config_path())

    claim_port_lock(config.port)
    logger.info(f"Serving rules from {config.root_document} on port {config.port}")

    def cleanup(signum, frame):
        remove_port_lock()
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, cleanup)
    signal.signal(signal.SIGINT, cleanup)

    try:
        uvicorn.run(
            "rulepack.server.app:create_app",
            factory=True,
            host="127.0.0.1",
            port=config.port,
        )
    finally:
        remove_port_lock()
