import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cache import NetworkCache
from .config import Config
from .hypersync_client import HypersyncClient
from .presets import list_presets, select_signatures
from .registry import NetworkRegistry
from .sampler import EventSampler
from .scanner import ScanProgress, StreamingScanner
from .signatures import SignatureIndex
from .stats import StatsAggregator


class ScanService:
    """Combine configuration, network registry, and HyperSync client to serve scans."""

    def __init__(
        self,
        config: Config,
        registry: Optional[NetworkRegistry] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.config = config
        self.client_factory = client_factory or self._scan_client
        directory_factory = client_factory or self._directory_client
        self.registry = registry or NetworkRegistry(
            client=directory_factory(config.networks_api_url),
            directory_url=config.networks_api_url,
            cache=NetworkCache(config.cache_path),
            cache_ttl_seconds=config.cache_ttl_seconds,
        )
        self._logger = logging.getLogger("ScanService")

    def list_networks(self, refresh: bool = False) -> Dict[str, Any]:
        if refresh:
            self.registry.refresh(force=True)
        groups = self.registry.list_networks()
        return {
            "total": sum(len(items) for items in groups.values()),
            "defaults": sorted(self.registry.defaults),
            **groups,
        }

    def refresh_networks(self) -> Dict[str, str]:
        return self.registry.refresh(force=True)

    def resolve_network(self, network: Optional[str] = None) -> Dict[str, str]:
        name = network or self.config.network
        return {"network": name, "url": self.registry.resolve(name)}

    def list_presets(self) -> List[Dict[str, str]]:
        return list_presets()

    def signature_ids(
        self,
        preset: Optional[str] = None,
        events: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, str]]:
        return SignatureIndex(select_signatures(preset, events)).as_list()

    def build_scanner(
        self,
        network: Optional[str] = None,
        preset: Optional[str] = None,
        events: Optional[Sequence[str]] = None,
    ) -> StreamingScanner:
        resolved = self.resolve_network(network)
        index = SignatureIndex(select_signatures(preset, events))
        sampler = EventSampler(index.decode, every=self.config.sample_every)
        aggregator = StatsAggregator(index, sampler=sampler)
        client = self.client_factory(resolved["url"])
        self._logger.info(
            "Scanning %s (%s) for %d event types",
            resolved["network"],
            resolved["url"],
            len(index.signatures),
        )
        return StreamingScanner(client, index, aggregator=aggregator)

    def scan(
        self,
        network: Optional[str] = None,
        preset: Optional[str] = None,
        events: Optional[Sequence[str]] = None,
        on_progress: Optional[Callable[[ScanProgress], None]] = None,
        max_batches: Optional[int] = None,
    ) -> Dict[str, Any]:
        if max_batches is not None and max_batches < 1:
            raise ValueError("max_batches must be a positive integer.")

        scanner = self.build_scanner(network, preset, events)
        last = scanner.progress()
        iterator = scanner.scan()
        try:
            # The first snapshot is emitted before any batch is received.
            for received, last in enumerate(iterator):
                if on_progress is not None:
                    on_progress(last)
                if max_batches is not None and received >= max_batches:
                    break
        finally:
            iterator.close()

        sampler = scanner.aggregator.sampler
        return {
            "network": network or self.config.network,
            "signatures": scanner.index.as_list(),
            "complete": last.complete,
            "anomalies": scanner.anomalies,
            "samples": list(sampler.samples) if sampler is not None else [],
            **last.as_dict(),
        }

    def _directory_client(self, url: str) -> HypersyncClient:
        return self._new_client(url, self.config.max_retries)

    def _scan_client(self, url: str) -> HypersyncClient:
        # A failed /height or /query request fails the scan on the first error.
        return self._new_client(url, max_retries=1)

    def _new_client(self, url: str, max_retries: int) -> HypersyncClient:
        return HypersyncClient(
            url=url,
            api_token=self.config.api_token,
            timeout=self.config.request_timeout,
            max_retries=max_retries,
            backoff_seconds=self.config.backoff_seconds,
        )
