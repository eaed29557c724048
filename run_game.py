#!/usr/bin/env python3
"""CLI entrypoint for a headless run of the idle coding game.

Usage::

    python run_game.py --duration 120 --auto-choose
    python run_game.py --config config/default.yaml --storage-dir .codex_idle --reset

The game restores the save under the configured key (starting immediately if
one exists, otherwise starting explicitly), fetches the reference price in the
background, runs for ``--duration`` seconds and writes a session log and
summary under ``--output-dir``.  Without ``--auto-choose`` a choice branch
waits forever, as it would for a player who never clicks.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import random
import sys

from dotenv import load_dotenv

from models.choice import ChoicePrompt
from models.config import GameConfig
from simulation.events import CHOICE_AVAILABLE
from simulation.orchestrator import GameOrchestrator, GameStatus
from simulation.persistence import FileKeyValueStore, PersistenceStore
from simulation.session_logging import SessionLogger, run_name_from_config_path

AUTO_CHOOSE_DELAY_SECONDS = 1.5


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the idle coding game headlessly.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to a YAML configuration file (default: built-in defaults).",
    )
    parser.add_argument(
        "--storage-dir",
        default=os.environ.get("CODEX_IDLE_STORAGE_DIR"),
        type=str,
        help="Directory for save files (default: $CODEX_IDLE_STORAGE_DIR or the config value).",
    )
    parser.add_argument(
        "--duration",
        default=60.0,
        type=float,
        help="Seconds to run before shutting down (default: 60).",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        type=str,
        help="Directory where session results will be written (default: results/).",
    )
    parser.add_argument(
        "--auto-choose",
        action="store_true",
        help="Pick a random presented option automatically at each choice branch.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Purge the existing save before booting.",
    )
    parser.add_argument(
        "--seed",
        default=None,
        type=int,
        help="Seed for the random number generator.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args()


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _install_auto_chooser(game: GameOrchestrator, rng: random.Random) -> None:
    loop = asyncio.get_running_loop()

    def _choose(prompt: ChoicePrompt) -> None:
        pending = game.pending_choice
        if pending is None or pending.prompt_id != prompt.prompt_id:
            return
        game.select_choice(rng.randrange(len(prompt.options)))

    def _on_available(prompt: ChoicePrompt) -> None:
        loop.call_later(AUTO_CHOOSE_DELAY_SECONDS, _choose, prompt)

    game.events.subscribe(CHOICE_AVAILABLE, _on_available)


async def _main() -> None:
    load_dotenv()
    args = _parse_args()
    _setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    if args.config is not None:
        logger.info("Loading config from '%s'...", args.config)
        config = GameConfig.from_yaml(args.config)
    else:
        config = GameConfig()

    storage_dir = args.storage_dir or config.persistence.storage_dir
    persistence = PersistenceStore(FileKeyValueStore(storage_dir), config.persistence.save_key)
    if args.reset:
        logger.info("Purging save '%s' in %s", persistence.key, storage_dir)
        persistence.purge()

    rng = random.Random(args.seed)
    game = GameOrchestrator(config, persistence, rng=rng)

    session = SessionLogger(args.output_dir, config, run_name_from_config_path(args.config))
    session.init_run(args.config)
    session.attach(game.events)
    if args.auto_choose:
        _install_auto_chooser(game, rng)

    game.boot()
    if game.status is GameStatus.IDLE:
        game.start()

    rate_task = asyncio.create_task(game.refresh_exchange_rate())
    try:
        await asyncio.sleep(args.duration)
    finally:
        failures = await game.stop()
        if not rate_task.done():
            rate_task.cancel()
        await asyncio.gather(rate_task, return_exceptions=True)

    for exc in failures:
        session.record_error(f"Task failed: {exc!r}")

    summary = session.finalize(game.state)
    logger.info(
        "Session '%s' complete. Net worth: $%.2f (%.6f BTC), %d trade(s), %d choice(s).",
        summary.run_name,
        summary.net_worth,
        summary.reference_equivalent,
        summary.total_trades,
        summary.total_choices,
    )


def main() -> None:
    asyncio.run(_main())


if __name__ == "__main__":
    main()
