"""
HybridStake Simulation Driver

Seeds validators and token holders, runs rounds and reports the result.
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from collections import Counter
from typing import List, Optional

from hybridstake.consensus.engine import ConsensusEngine, RoundOutcome
from hybridstake.node.clock import Clock, FixedClock, NtpClock, SystemClock
from hybridstake.node.config import ClockConfig, SimulationConfig, setup_logging
from hybridstake.node.storage import ChainStore

logger = logging.getLogger(__name__)


def build_clock(config: ClockConfig) -> Clock:
    if config.kind == "fixed":
        return FixedClock(config.fixed_start_ms, config.fixed_step_ms)
    if config.kind == "ntp":
        return NtpClock(config.ntp_host, config.ntp_timeout_sec)
    return SystemClock()


def build_engine(config: SimulationConfig, clock: Optional[Clock] = None) -> ConsensusEngine:
    """Create an engine and register the configured validators and holders."""
    engine = ConsensusEngine.from_config(
        config.engine,
        clock=clock if clock is not None else build_clock(config.clock),
    )

    for seed in config.validators:
        engine.add_validator(seed.id, seed.stake, seed.rotation_period)

    for seed in config.holders:
        engine.add_token_holder(seed.id, seed.stake, seed.delegated_to)

    return engine


def summarize(engine: ConsensusEngine, outcomes: List[RoundOutcome]) -> dict:
    """Aggregate round outcomes into a report."""
    selected = Counter(o.block.validator_id for o in outcomes if o.block is not None)
    penalized = Counter(v for o in outcomes for v in o.penalized)
    finality = Counter(n.validator_id for o in outcomes for n in o.finality)

    return {
        "rounds": len(outcomes),
        "blocks": len(engine.chain),
        "errors": sum(1 for o in outcomes if o.error is not None),
        "validators": {
            v.id: {
                "stake": v.stake,
                "delegated_stake": v.delegated_stake,
                "reputation": round(v.reputation, 4),
                "selected": selected[v.id],
                "penalized": penalized[v.id],
                "finality_events": finality[v.id],
            }
            for v in engine.validators
        },
    }


def run_simulation(config: SimulationConfig, clock: Optional[Clock] = None) -> tuple:
    """
    Run the configured number of rounds.

    Returns:
        (engine, outcomes)
    """
    errors = config.validate()
    if errors:
        raise ValueError("Invalid configuration: " + "; ".join(errors))

    engine = build_engine(config, clock)
    outcomes = engine.run(config.rounds)

    for block in engine.chain:
        logger.info(f"Block ID: {block.id}, Validator: {block.validator_id}, Hash: {block.hash}")

    return engine, outcomes


async def save_snapshot(engine: ConsensusEngine, db_path: str) -> None:
    async with ChainStore(db_path) as store:
        await store.save_engine(engine)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="HybridStake - hybrid proof-of-stake consensus simulation"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="JSON configuration file (defaults to the built-in 3-validator setup)"
    )
    parser.add_argument(
        "--rounds", "-n",
        type=int,
        default=None,
        help="Number of rounds to run"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for validator selection"
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Save the final state to this SQLite file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING)"
    )

    args = parser.parse_args(argv)

    config = SimulationConfig.load(args.config) if args.config else SimulationConfig.default()
    if args.rounds is not None:
        config.rounds = args.rounds
    if args.seed is not None:
        config.engine.seed = args.seed
    if args.db:
        config.storage.enabled = True
        config.storage.db_path = args.db
    if args.log_level:
        config.log.level = args.log_level

    setup_logging(config.log)

    try:
        engine, outcomes = run_simulation(config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    report = summarize(engine, outcomes)
    logger.info(
        f"Simulation finished: {report['blocks']} blocks in {report['rounds']} rounds, "
        f"{report['errors']} failed rounds"
    )
    for validator_id, stats in report["validators"].items():
        logger.info(f"{validator_id}: {stats}")

    if config.storage.enabled:
        asyncio.run(save_snapshot(engine, config.storage.db_path))

    return 0


if __name__ == "__main__":
    sys.exit(main())
