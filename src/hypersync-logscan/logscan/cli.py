import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import load_config
from .errors import StreamFailure, UnknownNetwork, UnknownPreset
from .logging_config import configure_logging
from .presets import DEFAULT_PRESET
from .scanner import ScanProgress
from .service import ScanService

LOG_EVERY_BLOCKS = 50_000


class ProgressReporter:
    """Logs a progress line every LOG_EVERY_BLOCKS blocks and a final summary."""

    def __init__(self, title: str, every_blocks: int = LOG_EVERY_BLOCKS) -> None:
        self.title = title
        self.every_blocks = every_blocks
        self._last_logged = 0
        self._logger = logging.getLogger("logscan")

    def __call__(self, progress: ScanProgress) -> None:
        if progress.cursor - self._last_logged < self.every_blocks:
            return
        self._last_logged = progress.cursor
        self._logger.info(
            "Block %s | %s events | %.1f events/s | %.2f%%",
            f"{progress.cursor:,}",
            f"{progress.counts.get('Total', 0):,}",
            progress.events_per_second,
            progress.progress * 100,
        )

    def summary(self, result: Dict[str, Any]) -> None:
        elapsed = result.get("elapsed_seconds") or 0.1
        total = result.get("counts", {}).get("Total", 0)
        self._logger.info("%s: scan %s", self.title, "complete" if result.get("complete") else "stopped")
        self._logger.info("Blocks scanned: %s", f"{result.get('height', 0):,}")
        self._logger.info("Total events: %s", f"{total:,}")
        self._logger.info("Total processing time: %.2f seconds", elapsed)
        self._logger.info("Average speed: %s events/second", f"{round(total / elapsed):,}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logscan",
        description="Stream and classify blockchain event logs from HyperSync.",
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan a network for preset or custom events")
    scan_parser.add_argument(
        "preset",
        nargs="?",
        default=DEFAULT_PRESET,
        help="Event preset to use (e.g. uniswap-v3, erc20, erc721).",
    )
    scan_parser.add_argument(
        "network_arg",
        nargs="?",
        metavar="network",
        help="Network to connect to (e.g. eth, arbitrum, optimism).",
    )
    scan_parser.add_argument(
        "-n",
        "--network",
        required=False,
        help="Network override. Defaults to the positional network, NETWORK env or eth.",
    )
    scan_parser.add_argument(
        "-e",
        "--events",
        nargs="+",
        required=False,
        help="Custom event signatures to monitor (overrides the preset).",
    )
    scan_parser.add_argument(
        "-t",
        "--title",
        default="Blockchain Event Scanner",
        help="Custom title for the scanner.",
    )
    scan_parser.add_argument(
        "--refresh-networks",
        action="store_true",
        help="Force refresh of the network list before scanning.",
    )
    scan_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers.add_parser("list-presets", help="List available event presets")

    networks_parser = subparsers.add_parser("list-networks", help="List available networks")
    networks_parser.add_argument(
        "--refresh-networks",
        action="store_true",
        help="Force refresh of the network list from the directory API.",
    )

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a network name to its endpoint")
    resolve_parser.add_argument("--network", required=False, help="Network name. Defaults to NETWORK env or eth.")

    topics_parser = subparsers.add_parser("topics", help="Show topic0 ids for a preset or custom signatures")
    topics_parser.add_argument("--preset", required=False, help="Event preset name.")
    topics_parser.add_argument("-e", "--events", nargs="+", required=False, help="Custom event signatures.")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        configure_logging("DEBUG" if getattr(args, "verbose", False) else config.log_level)
        service = ScanService(config)

        if args.command == "scan":
            if args.refresh_networks:
                service.refresh_networks()
            network = args.network or args.network_arg or config.network
            reporter = ProgressReporter(f"{args.title} ({network})")
            result = service.scan(
                network,
                preset=args.preset,
                events=args.events,
                on_progress=reporter,
            )
            reporter.summary(result)
            print(json.dumps(result, indent=2))
        elif args.command == "list-presets":
            print(json.dumps(service.list_presets(), indent=2))
        elif args.command == "list-networks":
            print(json.dumps(service.list_networks(refresh=args.refresh_networks), indent=2))
        elif args.command == "resolve":
            print(json.dumps(service.resolve_network(args.network), indent=2))
        elif args.command == "topics":
            print(json.dumps(service.signature_ids(args.preset, args.events), indent=2))
    except UnknownNetwork as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print("Run 'logscan list-networks' to see all available networks.", file=sys.stderr)
        sys.exit(1)
    except UnknownPreset as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print("Run 'logscan list-presets' to see available presets.", file=sys.stderr)
        sys.exit(1)
    except StreamFailure as exc:
        print(f"Scan failed: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(130)
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
