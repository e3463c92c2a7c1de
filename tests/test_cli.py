"""Tests for the command-line interface (cli).

WHY: The CLI is the usual way a multi-account pull is started. Flags
must reach the pipeline unchanged and configuration errors must exit
cleanly instead of dumping a traceback.

HOW: aggregate_meetings and FirefliesClient are patched in the cli
module; main() is called with explicit argv.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fireflies_sdk.cli import build_parser, main
from fireflies_sdk.core.batch import BatchProcessResult


class TestParser:
    def test_aggregate_defaults(self):
        args = build_parser().parse_args(["aggregate"])
        assert args.output == "console"
        assert args.concurrency == 5
        assert args.delay == 5.0
        assert args.keys is None

    def test_rejects_unknown_output(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["aggregate", "--output", "xml"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestAggregateCommand:
    def test_passes_flags_to_pipeline(self, capsys, tmp_path):
        fake = AsyncMock(return_value={
            "k1-aaa": BatchProcessResult(meetings=({"id": "m1"},)),
            "k2-bbb": BatchProcessResult(errors=("boom",)),
        })
        with patch("fireflies_sdk.cli.aggregate_meetings", fake):
            main([
                "aggregate", "--keys", "k1-aaa, k2-bbb", "--fields", "id,title",
                "--output", "json", "--output-dir", str(tmp_path),
                "--concurrency", "3", "--delay", "0.5",
            ])

        args, kwargs = fake.call_args
        assert args == (["k1-aaa", "k2-bbb"], ["id", "title"], "json")
        assert kwargs["output_dir"] == str(tmp_path)
        assert kwargs["concurrency_limit"] == 3
        assert kwargs["inter_batch_delay"] == 0.5

        err = capsys.readouterr().err
        assert "API key #1 (k1):" in err
        assert "Meetings found: 1" in err
        assert "Errors encountered: 1" in err
        assert "aaa" not in err

    def test_keys_from_environment(self, monkeypatch):
        monkeypatch.setenv("FIREFLIES_API_KEYS", "e1,e2")
        fake = AsyncMock(return_value={})
        with patch("fireflies_sdk.cli.aggregate_meetings", fake):
            main(["aggregate"])
        assert fake.call_args[0][0] == ["e1", "e2"]

    def test_value_error_exits_1(self, capsys):
        fake = AsyncMock(side_effect=ValueError("Unknown field 'x'"))
        with patch("fireflies_sdk.cli.aggregate_meetings", fake):
            with pytest.raises(SystemExit) as exc_info:
                main(["aggregate", "--keys", "k1"])
        assert exc_info.value.code == 1
        assert "Unknown field 'x'" in capsys.readouterr().err


    @pytest.mark.parametrize("flags", [["--concurrency", "0"], ["--delay", "-1"]])
    def test_bad_run_settings_exit_1_without_network(self, capsys, flags):
        with patch("fireflies_sdk.api.client.httpx.AsyncClient") as http_client:
            with pytest.raises(SystemExit) as exc_info:
                main(["aggregate", "--keys", "k1,k2"] + flags)
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
        http_client.assert_not_called()


class TestSingleCallCommands:
    def _client(self, **methods):
        client = MagicMock()
        for name, value in methods.items():
            setattr(client, name, AsyncMock(return_value=value))
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        return client

    def test_me_prints_json(self, capsys):
        client = self._client(get_current_user={"name": "Ada"})
        with patch("fireflies_sdk.cli.FirefliesClient", return_value=client):
            main(["me", "--key", "k", "--fields", "name"])
        assert json.loads(capsys.readouterr().out) == {"name": "Ada"}
        client.get_current_user.assert_awaited_once_with(["name"])

    def test_transcripts_prints_json(self, capsys):
        client = self._client(get_transcripts=[{"id": "t1"}])
        with patch("fireflies_sdk.cli.FirefliesClient", return_value=client):
            main(["transcripts", "--key", "k", "--limit", "10", "--mine"])
        assert json.loads(capsys.readouterr().out) == [{"id": "t1"}]
        params = client.get_transcripts.call_args[0][0]
        assert (params.limit, params.skip, params.mine) == (10, 0, True)
