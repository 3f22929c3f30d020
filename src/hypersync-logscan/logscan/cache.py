import json
import logging
import time
from pathlib import Path
from typing import Dict, Optional, Union


class NetworkCache:
    """JSON file holding the last discovered name -> URL snapshot."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._logger = logging.getLogger("NetworkCache")

    def load(self) -> Dict[str, str]:
        """Missing, unreadable or malformed cache files all read as an empty cache."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            self._logger.warning("Failed to read networks cache %s: %s", self.path, exc)
            return {}

        try:
            data = json.loads(raw)
        except ValueError as exc:
            self._logger.warning("Ignoring corrupt networks cache %s: %s", self.path, exc)
            return {}

        if not isinstance(data, dict):
            self._logger.warning("Ignoring networks cache %s: not a JSON object", self.path)
            return {}

        networks = {
            str(name): url
            for name, url in data.items()
            if isinstance(url, str) and url
        }
        self._logger.debug("Loaded %d networks from cache", len(networks))
        return networks

    def save(self, networks: Dict[str, str]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(networks, indent=2), encoding="utf-8")
        except OSError as exc:
            self._logger.warning("Failed to save networks cache %s: %s", self.path, exc)
            return False
        self._logger.debug("Saved %d networks to cache", len(networks))
        return True

    def age_seconds(self) -> Optional[float]:
        try:
            return max(0.0, time.time() - self.path.stat().st_mtime)
        except OSError:
            return None
