from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .cache import NetworkCache
from .config import DEFAULT_NETWORKS, SUPPORTED_ECOSYSTEM, network_url
from .errors import DiscoveryFailure, UnknownNetwork

_TESTNET_MARKERS = ("sepolia", "goerli", "testnet", "test")


class NetworkRegistry:
    """
    Network name -> HyperSync endpoint registry.
    - Snapshot is populated once per process (cache, defaults or discovery).
    - Discovery replaces the snapshot wholesale and overwrites the cache file.
    - Built-in defaults always resolve, even fully offline.
    """

    def __init__(
        self,
        client: Any,
        directory_url: str,
        cache: NetworkCache,
        defaults: Optional[Dict[str, str]] = None,
        ecosystem: str = SUPPORTED_ECOSYSTEM,
        cache_ttl_seconds: int = 0,
    ) -> None:
        self._client = client
        self._directory_url = (directory_url or "").rstrip("/")
        self._cache = cache
        self._defaults: Dict[str, str] = dict(defaults if defaults is not None else DEFAULT_NETWORKS)
        self._ecosystem = ecosystem
        self._cache_ttl = max(0, int(cache_ttl_seconds))
        self._networks: Dict[str, str] = dict(self._defaults)
        self._populated = False
        self._logger = logging.getLogger("NetworkRegistry")

    @property
    def defaults(self) -> Dict[str, str]:
        return dict(self._defaults)

    @property
    def populated(self) -> bool:
        return self._populated

    def snapshot(self) -> Dict[str, str]:
        return dict(self._networks)

    def refresh(self, force: bool = False) -> Dict[str, str]:
        if not force:
            if self._populated:
                return self.snapshot()

            cached = self._fresh_cache()
            if len(cached) > len(self._defaults):
                self._logger.debug("Using %d cached networks", len(cached))
                return self._install(cached)

        try:
            discovered = self.discover()
        except DiscoveryFailure as exc:
            self._logger.warning("Failed to fetch networks: %s", exc)
            self._logger.warning("Using previously cached or default networks instead.")
            return self._install(self._cache.load() or self._defaults)

        self._cache.save(discovered)
        return self._install(discovered)

    def discover(self) -> Dict[str, str]:
        if not self._directory_url:
            raise DiscoveryFailure("directory url is empty.")

        self._logger.debug("Fetching networks from %s", self._directory_url)
        try:
            payload = self._client.get_active_chains(self._directory_url)
        except Exception as exc:  # pylint: disable=broad-except
            raise DiscoveryFailure(str(exc) or exc.__class__.__name__) from exc

        if not isinstance(payload, list):
            raise DiscoveryFailure("unexpected directory response (expected a list).")

        networks: Dict[str, str] = {}
        for item in payload:
            if not isinstance(item, dict):
                continue
            if item.get("ecosystem") != self._ecosystem:
                continue
            name = str(item.get("name", "") or "").strip()
            if not name:
                continue
            networks[name] = network_url(name)

        if not networks:
            raise DiscoveryFailure(
                f"directory returned no '{self._ecosystem}' networks."
            )
        return networks

    def resolve(self, name: str) -> str:
        self.refresh()

        url = self._networks.get(name)
        if url:
            return url
        # Defaults stay resolvable even if a discovered set dropped them.
        url = self._defaults.get(name)
        if url:
            return url
        raise UnknownNetwork(name, self._networks.keys())

    def list_networks(self) -> Dict[str, List[Dict[str, str]]]:
        self.refresh()

        groups: Dict[str, List[Dict[str, str]]] = {"mainnets": [], "testnets": [], "other": []}
        for name, url in self._networks.items():
            entry = {"name": name, "url": url}
            if any(marker in name for marker in _TESTNET_MARKERS):
                groups["testnets"].append(entry)
            elif name in self._defaults:
                groups["mainnets"].append(entry)
            else:
                groups["other"].append(entry)
        return groups

    def _fresh_cache(self) -> Dict[str, str]:
        if self._cache_ttl:
            age = self._cache.age_seconds()
            if age is not None and age > self._cache_ttl:
                self._logger.debug("Networks cache is %.0fs old; ignoring", age)
                return {}
        return self._cache.load()

    def _install(self, networks: Dict[str, str]) -> Dict[str, str]:
        self._networks = dict(networks)
        self._populated = True
        return self.snapshot()
