"""
SLA External Integrations
==========================

Default SLA policy loaded from a YAML file, with watchdog hot-reload so
operators can change deadlines without restarting the service.

File format:
    deadline_hours:
      critical: 24
      high: 24
      medium: 72
      low: 120
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from src.shared.infrastructure.logging import get_logger
from src.sla.application import ISLAConfigProvider
from src.sla.domain import SLAPolicy
from src.core import ConfigurationException

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA policy file changes."""

    def __init__(self, config_manager: "SLAConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("SLA policy file changed", extra={"path": str(event.src_path)})
            self.config_manager.reload()


class SLAConfigManager(ISLAConfigProvider):
    """
    Thread-safe default policy provider with hot-reload support.

    Values in the YAML file are overlaid on `defaults`, which normally come
    from environment settings.
    """

    def __init__(self, defaults: Optional[SLAPolicy] = None):
        self._defaults = defaults or SLAPolicy()
        self._policy: SLAPolicy = self._defaults
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLAPolicy:
        """
        Initial policy load.

        Raises:
            ConfigurationException: The file exists but is not a valid policy
        """
        self._path = Path(path)
        policy = self._load_from_file(self._path)
        with self._lock:
            self._policy = policy
        return policy

    def _load_from_file(self, path: Path) -> SLAPolicy:
        """Load and parse the YAML policy file."""
        if not path.exists():
            logger.warning("SLA policy file not found, using defaults", extra={"path": str(path)})
            return self._defaults

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationException(f"SLA policy file {path} must contain a mapping")

        hours = data.get("deadline_hours", {})
        if not isinstance(hours, dict):
            raise ConfigurationException(f"'deadline_hours' in {path} must be a mapping")

        try:
            return self._defaults.overlay({str(k): int(v) for k, v in hours.items()})
        except (TypeError, ValueError, ValidationError) as e:
            raise ConfigurationException(f"Invalid SLA policy in {path}: {e}") from e

    def reload(self) -> bool:
        """Reload policy from file; keeps the previous policy on failure."""
        if self._path is None:
            return False

        try:
            new_policy = self._load_from_file(self._path)
        except (OSError, yaml.YAMLError, ConfigurationException) as e:
            logger.error("Failed to reload SLA policy", extra={"error": str(e)})
            return False

        with self._lock:
            self._policy = new_policy
        logger.info("SLA policy reloaded", extra={"deadline_hours": new_policy.deadline_hours})
        return True

    def start_watching(self) -> None:
        """
        Start watching the policy file for changes.

        Skips watching if the file doesn't exist or inotify is unavailable.
        """
        if self._path is None:
            raise RuntimeError("Policy not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("SLA policy file absent, skipping file watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info("Watching SLA policy file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static policy", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def get_policy(self) -> SLAPolicy:
        """Get the current default policy."""
        with self._lock:
            return self._policy
