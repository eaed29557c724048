"""Session output logging: persists the SessionLog and a summary for headless runs.

The output directory structure is::

    {output_dir}/{run_name}/
    ├── config.yaml
    ├── session_log.json
    └── summary.json
"""

from __future__ import annotations

import itertools
import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

from models.choice import ChoiceResolution
from models.config import GameConfig
from models.economy import EconomyState
from models.log import SessionLog, SessionSummary
from models.trade import ExecutedTrade
from simulation.events import CHOICE_RESOLVED, TRADE_EXECUTED, EventBus

logger = logging.getLogger(__name__)


def run_name_from_config_path(config_path: str | Path | None) -> str:
    """Derive a run name from the configuration file path (stem without extension)."""
    if config_path is None:
        return "default"
    return Path(config_path).stem


class SessionLogger:
    """Manages on-disk output for one headless session.

    Call ``init_run`` once at the start, ``attach`` to start recording trades
    and choice resolutions from the event bus, and ``finalize`` at the end.
    """

    def __init__(
        self,
        output_dir: str,
        config: GameConfig,
        run_name: str,
    ) -> None:
        self._run_dir = _unique_run_dir(Path(output_dir), run_name)
        self._session_log = SessionLog(run_name=self._run_dir.name, config=config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_run(self, config_yaml_path: str | None = None) -> None:
        """Create the output directory and optionally copy the config."""
        self._run_dir.mkdir(parents=True, exist_ok=True)
        if config_yaml_path is not None:
            dest = self._run_dir / "config.yaml"
            shutil.copy2(config_yaml_path, dest)
            logger.info("Copied config to %s", dest)

    def attach(self, events: EventBus) -> None:
        events.subscribe(TRADE_EXECUTED, self.record_trade)
        events.subscribe(CHOICE_RESOLVED, self.record_choice)

    def record_trade(self, trade: ExecutedTrade) -> None:
        self._session_log.trades.append(trade)

    def record_choice(self, resolution: ChoiceResolution) -> None:
        self._session_log.choices.append(resolution)

    def record_error(self, message: str) -> None:
        """Append an error message to the session log."""
        self._session_log.errors.append(message)
        logger.error("Session error: %s", message)

    def finalize(self, state: EconomyState) -> SessionSummary:
        """Write the session log and summary; returns the summary."""
        self._session_log.final_state = state.to_saved()
        summary = SessionSummary(
            run_name=self._session_log.run_name,
            cash=state.cash,
            stock_value=state.stock_value,
            net_worth=state.net_worth,
            exchange_rate=state.exchange_rate,
            reference_equivalent=round(state.reference_equivalent, 6),
            total_trades=len(self._session_log.trades),
            total_choices=len(self._session_log.choices),
        )
        self._run_dir.mkdir(parents=True, exist_ok=True)
        _write_model(self._run_dir / "session_log.json", self._session_log)
        _write_model(self._run_dir / "summary.json", summary)
        logger.info("Session log finalized at %s", self._run_dir)
        return summary

    @property
    def session_log(self) -> SessionLog:
        return self._session_log

    @property
    def run_dir(self) -> Path:
        return self._run_dir


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _unique_run_dir(output_dir: Path, run_name: str) -> Path:
    """First free directory among ``run_name``, ``run_name_001``, ``run_name_002``, ..."""
    names = itertools.chain(
        [run_name], (f"{run_name}_{n:03d}" for n in itertools.count(1))
    )
    return next(output_dir / name for name in names if not (output_dir / name).exists())


def _write_model(path: Path, model: BaseModel) -> None:
    path.write_text(model.model_dump_json(indent=2), encoding="utf-8")
