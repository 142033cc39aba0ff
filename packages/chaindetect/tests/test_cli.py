"""Tests for the chaindetect CLI."""

import json
import sys
from pathlib import Path

import pandas as pd
import pytest

from chaindetect import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CHAINDETECT_CONFIG", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


def test_scan_from_file(tmp_path: Path, monkeypatch, capsys):
    input_file = tmp_path / "restaurants.csv"
    input_file.write_text(
        "id,name,city_id\n"
        "1,Joe's Pizza,10\n"
        "2,Joe's Pizza NYC,11\n"
        "3,Joe's Pizza #2,10\n"
        "4,Totally Unrelated Diner,10\n"
    )
    output_file = tmp_path / "clusters.csv"
    monkeypatch.setattr(
        sys, "argv",
        ["chaindetect", "scan", "--input", str(input_file), "--output", str(output_file), "--show"],
    )

    cli.main()

    out = capsys.readouterr().out
    assert "Potential chains: 1" in out
    assert "Restaurants analyzed: 4" in out
    assert sorted(pd.read_csv(output_file)["restaurant_id"].tolist()) == [1, 2, 3]


def test_scan_threshold_flag(tmp_path: Path, monkeypatch, capsys):
    input_file = tmp_path / "restaurants.csv"
    input_file.write_text("id,name\n1,abcde\n2,abcdx\n")
    monkeypatch.setattr(
        sys, "argv",
        ["chaindetect", "scan", "--input", str(input_file), "--threshold", "0.9"],
    )

    cli.main()

    assert "Potential chains: 0" in capsys.readouterr().out


def _joes_csv(tmp_path: Path) -> Path:
    input_file = tmp_path / "restaurants.csv"
    input_file.write_text("id,name\n1,Joe's Pizza\n2,Joe's Pizza NYC\n3,Joe's Pizza #2\n")
    return input_file


@pytest.mark.parametrize("position", ["before", "after"])
def test_config_flag_either_side_of_subcommand(tmp_path: Path, monkeypatch, capsys, position):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"detection": {"min_locations": 4}}))
    scan = ["scan", "--input", str(_joes_csv(tmp_path))]
    if position == "before":
        argv = ["chaindetect", "--config", str(config_file), *scan]
    else:
        argv = ["chaindetect", *scan, "--config", str(config_file)]
    monkeypatch.setattr(sys, "argv", argv)

    cli.main()

    assert "Potential chains: 0" in capsys.readouterr().out


def test_log_level_before_subcommand_kept(tmp_path: Path, monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "configure_logging", lambda level, json_output: calls.append((level, json_output)))
    monkeypatch.setattr(
        sys, "argv",
        ["chaindetect", "--log-level", "DEBUG", "scan", "--input", str(_joes_csv(tmp_path))],
    )

    cli.main()

    assert calls == [("DEBUG", False)]


@pytest.mark.parametrize("argv", [
    ["chaindetect", "--json-logs", "scan"],
    ["chaindetect", "scan", "--json-logs"],
])
def test_json_logs_flag(tmp_path: Path, monkeypatch, capsys, argv):
    calls = []
    monkeypatch.setattr(cli, "configure_logging", lambda level, json_output: calls.append((level, json_output)))
    monkeypatch.setattr(sys, "argv", [*argv, "--input", str(_joes_csv(tmp_path))])

    cli.main()

    assert calls == [("INFO", True)]
    assert "Potential chains: 1" in capsys.readouterr().out


def test_create_without_database_exits(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["chaindetect", "create", "--name", "Joe's Pizza", "--ids", "1", "2"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "DATABASE_URL" in capsys.readouterr().err


def test_create_validation_error_exits(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["chaindetect", "create", "--name", "Joe's Pizza", "--ids", "1"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "at least 2" in capsys.readouterr().err
