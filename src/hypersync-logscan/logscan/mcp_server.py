"""
MCP server exposing network resolution and event-log scans via HyperSync.
"""

import argparse
from collections.abc import Mapping
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .logging_config import configure_logging
from .service import ScanService

DEFAULT_MAX_BATCHES = 50

server = FastMCP(
    name="hypersync-logscan",
    instructions="Resolve HyperSync networks and count event logs by signature.",
)

_service: Optional[ScanService] = None


def _get_service() -> ScanService:
    global _service
    if _service is None:
        cfg = load_config()
        _service = ScanService(cfg)
    return _service


def _normalize_events(value: Optional[Any]) -> Optional[list]:
    """
    Accept a list of signatures, or a single signature string.
    Objects/maps are rejected.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        raise ValueError("events must be an array of signature strings, not an object/map.")
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ValueError("events must be an array of signature strings.")


@server.tool(
    name="list_networks",
    title="List Networks",
    description="List HyperSync networks grouped into mainnets, testnets and others. Set refresh to re-query the directory.",
)
def list_networks(refresh: bool = False) -> dict:
    svc = _get_service()
    return svc.list_networks(refresh=refresh)


@server.tool(
    name="resolve_network",
    title="Resolve Network",
    description="Resolve a network name (e.g. eth, arbitrum) to its HyperSync endpoint URL.",
)
def resolve_network(network: Optional[str] = None) -> dict:
    svc = _get_service()
    return svc.resolve_network(network)


@server.tool(
    name="list_presets",
    title="List Event Presets",
    description="List the built-in event signature presets.",
)
def list_presets() -> dict:
    svc = _get_service()
    return {"presets": svc.list_presets()}


@server.tool(
    name="signature_ids",
    title="Event Signature Topic Ids",
    description="Compute topic0 (keccak-256) ids and display names for a preset or custom `events` array.",
)
def signature_ids(preset: Optional[str] = None, events: Optional[Any] = None) -> dict:
    svc = _get_service()
    return {"signatures": svc.signature_ids(preset, _normalize_events(events))}


@server.tool(
    name="scan_events",
    title="Scan Event Logs",
    description="Stream logs from block 0 and count them per event. Stops after max_batches batches (complete=false) unless the tip is reached first.",
)
def scan_events(
    network: Optional[str] = None,
    preset: Optional[str] = None,
    events: Optional[Any] = None,
    max_batches: Optional[int] = DEFAULT_MAX_BATCHES,
) -> dict:
    svc = _get_service()
    return svc.scan(
        network,
        preset=preset,
        events=_normalize_events(events),
        max_batches=max_batches,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the HyperSync logscan MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    # stdout carries the stdio transport; logs go to stderr.
    configure_logging(load_config().log_level)

    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
