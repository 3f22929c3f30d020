import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

DEFAULT_NETWORKS_API_URL = "https://chains.hyperquery.xyz/active_chains"
DEFAULT_CACHE_PATH = Path(__file__).resolve().parent.parent / ".networks-cache.json"
SUPPORTED_ECOSYSTEM = "evm"
NETWORK_URL_TEMPLATE = "http://{name}.hypersync.xyz"

# Keep a small fallback mapping so core networks still work if discovery fails.
DEFAULT_NETWORKS: Dict[str, str] = {
    "eth": "http://eth.hypersync.xyz",
    "arbitrum": "http://arbitrum.hypersync.xyz",
    "optimism": "http://optimism.hypersync.xyz",
    "base": "http://base.hypersync.xyz",
    "polygon": "http://polygon.hypersync.xyz",
}


@dataclass
class Config:
    api_token: Optional[str] = None
    network: str = "eth"
    networks_api_url: str = DEFAULT_NETWORKS_API_URL
    cache_path: Path = DEFAULT_CACHE_PATH
    cache_ttl_seconds: int = 0
    request_timeout: Optional[float] = 30.0
    max_retries: int = 3
    backoff_seconds: float = 0.5
    sample_every: int = 1000
    log_level: str = "INFO"


def network_url(name: str) -> str:
    return NETWORK_URL_TEMPLATE.format(name=name)


def load_config() -> Config:
    """Load configuration from environment variables."""
    token_env = os.getenv("HYPERSYNC_API_TOKEN")
    api_token = token_env.strip() if token_env and token_env.strip() else None

    network = os.getenv("NETWORK", "eth").strip() or "eth"
    networks_api_url = os.getenv("NETWORKS_API_URL", DEFAULT_NETWORKS_API_URL).rstrip("/")
    cache_env = os.getenv("NETWORKS_CACHE_PATH")
    cache_path = Path(cache_env).expanduser() if cache_env else DEFAULT_CACHE_PATH
    ttl = int(os.getenv("NETWORKS_CACHE_TTL_SECONDS", "0"))
    timeout = float(os.getenv("REQUEST_TIMEOUT", "30"))
    max_retries = int(os.getenv("REQUEST_RETRIES", "3"))
    backoff = float(os.getenv("REQUEST_BACKOFF_SECONDS", "0.5"))
    sample_every = int(os.getenv("SAMPLE_EVERY", "1000"))
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    if ttl < 0:
        raise ValueError("NETWORKS_CACHE_TTL_SECONDS must be >= 0.")
    if sample_every < 1:
        raise ValueError("SAMPLE_EVERY must be a positive integer.")

    return Config(
        api_token=api_token,
        network=network,
        networks_api_url=networks_api_url,
        cache_path=cache_path,
        cache_ttl_seconds=ttl,
        # REQUEST_TIMEOUT=0 disables the per-request timeout entirely.
        request_timeout=timeout if timeout > 0 else None,
        max_retries=max(1, max_retries),
        backoff_seconds=backoff,
        sample_every=sample_every,
        log_level=log_level,
    )
