"""Tests for headless session output."""

from __future__ import annotations

import json

from models.choice import ChoiceOption, ChoiceResolution
from models.config import GameConfig
from models.economy import EconomyState, Position
from models.log import SessionLog, SessionSummary
from models.trade import ExecutedTrade
from simulation.events import CHOICE_RESOLVED, TRADE_EXECUTED, EventBus
from simulation.session_logging import SessionLogger, run_name_from_config_path


def _state() -> EconomyState:
    return EconomyState(
        cash=9_880.0,
        stocks=[Position(symbol="NVDA", price=120.0, owned=1)],
        exchange_rate=100_000.0,
    )


def test_run_name_from_config_path():
    assert run_name_from_config_path("config/fast.yaml") == "fast"
    assert run_name_from_config_path(None) == "default"


def test_records_events_and_writes_summary(tmp_path):
    config_path = tmp_path / "fast.yaml"
    config_path.write_text("economy:\n  increment: 1\n", encoding="utf-8")

    session = SessionLogger(str(tmp_path / "results"), GameConfig(), "fast")
    session.init_run(str(config_path))
    events = EventBus()
    session.attach(events)

    events.publish(
        TRADE_EXECUTED,
        ExecutedTrade(
            trade_id="abc123",
            symbol="NVDA",
            side="buy",
            price=120.0,
            cash_after=9_880.0,
            owned_after=1,
        ),
    )
    events.publish(
        CHOICE_RESOLVED,
        ChoiceResolution(
            prompt_id="p1",
            option=ChoiceOption(label="fix: handle-edge-case", reward=200),
            cash_after=10_080.0,
        ),
    )
    session.record_error("typing loop crashed")

    summary = session.finalize(_state())

    run_dir = tmp_path / "results" / "fast"
    assert session.run_dir == run_dir
    assert (run_dir / "config.yaml").read_text(encoding="utf-8") == config_path.read_text(
        encoding="utf-8"
    )
    assert summary.net_worth == 10_000.0
    assert summary.reference_equivalent == 0.1
    assert summary.total_trades == 1
    assert summary.total_choices == 1

    log = json.loads((run_dir / "session_log.json").read_text(encoding="utf-8"))
    assert log["trades"][0]["symbol"] == "NVDA"
    assert log["errors"] == ["typing loop crashed"]
    assert log["final_state"]["stocks"][0]["owned"] == 1

    written = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert written["stock_value"] == 120.0


def test_unique_run_dir(tmp_path):
    (tmp_path / "demo").mkdir()
    (tmp_path / "demo_001").mkdir()
    session = SessionLogger(str(tmp_path), GameConfig(), "demo")
    assert session.run_dir.name == "demo_002"
    assert session.session_log.run_name == "demo_002"


def test_written_files_load_back_as_models(tmp_path):
    session = SessionLogger(str(tmp_path), GameConfig(), "reload")
    session.init_run()
    summary = session.finalize(_state())

    log = SessionLog.model_validate_json(
        (session.run_dir / "session_log.json").read_text(encoding="utf-8")
    )
    assert log.config == GameConfig()
    assert log.final_state == _state().to_saved()
    assert SessionSummary.model_validate_json(
        (session.run_dir / "summary.json").read_text(encoding="utf-8")
    ) == summary
