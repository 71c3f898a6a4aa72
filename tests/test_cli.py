"""
Tests for the barflow command line.
"""

import json

import pytest

from barflow.cli import main, parse_cli_args

GRAPH_YAML = """
time_frame: 1m
nodes:
  close: {type: close}
  fast:  {type: sma, source: close, bar_count: 3}
  slow:  {type: sma, source: close, bar_count: 10}
  golden: {type: cross_over, up: fast, low: slow}
outputs: [fast, slow, golden]
"""


@pytest.fixture
def inputs(tmp_path, ohlcv_frame):
    """Graph YAML and OHLCV CSV written to tmp_path."""
    graph = tmp_path / "graph.yml"
    graph.write_text(GRAPH_YAML, encoding="utf-8")
    bars = tmp_path / "bars.csv"
    ohlcv_frame.to_csv(bars, index=False)
    return graph, bars


class TestParseArgs:
    """Test argument parsing."""

    def test_run_defaults(self):
        args = parse_cli_args(["run", "--graph", "g.yml", "--bars", "b.csv"])
        assert args.command == "run"
        assert args.last == 10
        assert args.num_type is None
        assert args.time_column == "timestamp"

    def test_run_requires_graph(self):
        with pytest.raises(SystemExit):
            parse_cli_args(["run", "--bars", "b.csv"])


class TestCommands:
    """Test run and types end to end."""

    def test_run_json(self, inputs, capsys):
        graph, bars = inputs
        code = main(["run", "--graph", str(graph), "--bars", str(bars), "--last", "5", "--json"])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["status"] == "pass"
        assert output["bars"] == 60
        assert len(output["snapshots"]) == 5
        assert set(output["snapshots"][-1]["values"]) == {"fast", "slow", "golden"}
        assert output["snapshots"][-1]["stable"] is True

    def test_run_table(self, inputs, capsys):
        graph, bars = inputs
        code = main(["run", "--graph", str(graph), "--bars", str(bars), "--num-type", "decimal"])

        assert code == 0
        assert "GRAPH RUN" in capsys.readouterr().out

    def test_run_bad_graph_fails(self, inputs, tmp_path, capsys):
        _, bars = inputs
        bad = tmp_path / "bad.yml"
        bad.write_text("nodes:\n  sma: {type: sma, source: nowhere, bar_count: 3}\n", encoding="utf-8")

        code = main(["run", "--graph", str(bad), "--bars", str(bars), "--json"])
        output = json.loads(capsys.readouterr().out)

        assert code == 1
        assert output["status"] == "fail"
        assert "nowhere" in output["message"]

    def test_types_json(self, inputs, capsys):
        code = main(["types", "--json"])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["sma"]["required_params"] == ["bar_count"]
        assert output["and"]["variadic"] == "operands"

    def test_no_command(self, inputs, capsys):
        assert main([]) == 1
