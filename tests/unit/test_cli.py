"""
Unit tests for the command line entry point.
"""

import json
import logging
from unittest.mock import patch

import pytest

from logscan import cli
from logscan.config import Config
from logscan.errors import StreamFailure, UnknownNetwork, UnknownPreset
from logscan.scanner import ScanProgress, ScanState


@pytest.fixture
def service():
    with patch("logscan.cli.load_config", return_value=Config()), patch(
        "logscan.cli.configure_logging"
    ), patch("logscan.cli.ScanService") as service_cls:
        yield service_cls.return_value


def _result(**overrides):
    result = {
        "network": "eth",
        "complete": True,
        "counts": {"Total": 3},
        "height": 10,
        "elapsed_seconds": 1.5,
    }
    result.update(overrides)
    return result


class TestScanCommand:
    def test_positional_preset_and_network(self, service, capsys):
        service.scan.return_value = _result()
        cli.main(["scan", "erc20", "arbitrum"])
        args, kwargs = service.scan.call_args
        assert args == ("arbitrum",)
        assert kwargs["preset"] == "erc20"
        assert kwargs["events"] is None
        assert json.loads(capsys.readouterr().out)["complete"] is True

    def test_network_option_wins(self, service):
        service.scan.return_value = _result()
        cli.main(["scan", "erc20", "arbitrum", "--network", "base"])
        assert service.scan.call_args.args == ("base",)

    def test_defaults(self, service):
        service.scan.return_value = _result()
        cli.main(["scan"])
        assert service.scan.call_args.args == ("eth",)
        assert service.scan.call_args.kwargs["preset"] == "uniswap-v3"

    def test_custom_events(self, service):
        service.scan.return_value = _result()
        cli.main(["scan", "-e", "Transfer(address,address,uint256)", "Foo(uint8)"])
        assert service.scan.call_args.kwargs["events"] == [
            "Transfer(address,address,uint256)",
            "Foo(uint8)",
        ]

    def test_refresh_networks(self, service):
        service.scan.return_value = _result()
        cli.main(["scan", "--refresh-networks"])
        service.refresh_networks.assert_called_once_with()

    def test_unknown_network_exits_1(self, service, capsys):
        service.scan.side_effect = UnknownNetwork("nope", ["eth", "base"])
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["scan", "erc20", "nope"])
        assert excinfo.value.code == 1
        err = capsys.readouterr().err
        assert "nope" in err
        assert "list-networks" in err

    def test_unknown_preset_exits_1(self, service, capsys):
        service.scan.side_effect = UnknownPreset("bad", ["erc20"])
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["scan", "bad"])
        assert excinfo.value.code == 1
        assert "list-presets" in capsys.readouterr().err

    def test_stream_failure_exits_1(self, service, capsys):
        service.scan.side_effect = StreamFailure("Stream failed", cause=OSError("reset"))
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["scan"])
        assert excinfo.value.code == 1
        assert "reset" in capsys.readouterr().err

    def test_interrupt_exits_130(self, service):
        service.scan.side_effect = KeyboardInterrupt()
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["scan"])
        assert excinfo.value.code == 130


class TestOtherCommands:
    def test_list_presets(self, service, capsys):
        service.list_presets.return_value = [{"id": "erc20"}]
        cli.main(["list-presets"])
        assert json.loads(capsys.readouterr().out) == [{"id": "erc20"}]

    def test_list_networks_refresh(self, service):
        service.list_networks.return_value = {"total": 0}
        cli.main(["list-networks", "--refresh-networks"])
        service.list_networks.assert_called_once_with(refresh=True)

    def test_resolve(self, service, capsys):
        service.resolve_network.return_value = {"network": "eth", "url": "http://eth.hypersync.xyz"}
        cli.main(["resolve", "--network", "eth"])
        service.resolve_network.assert_called_once_with("eth")
        assert "eth.hypersync.xyz" in capsys.readouterr().out

    def test_topics(self, service):
        service.signature_ids.return_value = []
        cli.main(["topics", "--preset", "erc20"])
        service.signature_ids.assert_called_once_with("erc20", None)


class TestProgressReporter:
    def _progress(self, cursor):
        return ScanProgress(
            state=ScanState.STREAMING,
            progress=0.5,
            cursor=cursor,
            height=200_000,
            counts={"Total": 10},
            elapsed_seconds=1.0,
            events_per_second=10.0,
        )

    def test_logs_every_n_blocks(self, caplog):
        reporter = cli.ProgressReporter("Scanner (eth)", every_blocks=100)
        with caplog.at_level(logging.INFO, logger="logscan"):
            reporter(self._progress(50))
            reporter(self._progress(120))
            reporter(self._progress(150))
            reporter(self._progress(230))
        lines = [r.getMessage() for r in caplog.records]
        assert len(lines) == 2
        assert lines[0].startswith("Block 120 |")

    def test_summary(self, caplog):
        reporter = cli.ProgressReporter("Scanner (eth)")
        with caplog.at_level(logging.INFO, logger="logscan"):
            reporter.summary(_result(counts={"Total": 3000}, elapsed_seconds=2.0))
        assert "Average speed: 1,500 events/second" in caplog.text
        assert "Scanner (eth): scan complete" in caplog.text
