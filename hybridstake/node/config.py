"""
HybridStake Simulation Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from hybridstake.constants import (
    DEFAULT_BLOCK_PAYLOAD,
    DEFAULT_FINALITY_THRESHOLD,
    DEFAULT_NTP_HOST,
    DEFAULT_NTP_TIMEOUT_SEC,
    DEFAULT_ROTATION_PERIOD,
    DEFAULT_ROUNDS,
    MIN_ROTATION_PERIOD,
)
from hybridstake.core.hashing import HASHERS

logger = logging.getLogger(__name__)

CLOCK_KINDS = ("system", "fixed", "ntp")


@dataclass
class EngineConfig:
    """Consensus engine parameters."""
    finality_threshold: int = DEFAULT_FINALITY_THRESHOLD
    hasher: str = "sha3_256"
    block_payload: str = DEFAULT_BLOCK_PAYLOAD
    seed: Optional[int] = None


@dataclass
class ClockConfig:
    """Block timestamp source."""
    kind: str = "system"                # system | fixed | ntp
    fixed_start_ms: int = 1_700_000_000_000
    fixed_step_ms: int = 1000
    ntp_host: str = DEFAULT_NTP_HOST
    ntp_timeout_sec: float = DEFAULT_NTP_TIMEOUT_SEC


@dataclass
class StorageConfig:
    """Storage configuration."""
    enabled: bool = False
    db_path: str = "./data/hybridstake.db"


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None          # Round log; console only when unset
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    max_size_mb: int = 5
    backup_count: int = 2


@dataclass
class ValidatorSeed:
    id: str
    stake: int
    rotation_period: int = DEFAULT_ROTATION_PERIOD


@dataclass
class HolderSeed:
    id: str
    stake: int
    delegated_to: Optional[str] = None


@dataclass
class SimulationConfig:
    """
    Complete simulation configuration.

    All settings for seeding and running a simulation.
    """
    rounds: int = DEFAULT_ROUNDS
    engine: EngineConfig = field(default_factory=EngineConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log: LogConfig = field(default_factory=LogConfig)
    validators: List[ValidatorSeed] = field(default_factory=list)
    holders: List[HolderSeed] = field(default_factory=list)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.rounds < 0:
            errors.append(f"rounds must be non-negative, got {self.rounds}")

        # Engine validation
        if self.engine.finality_threshold < 0:
            errors.append("finality_threshold must be non-negative")

        if self.engine.hasher not in HASHERS:
            errors.append(f"Unknown hasher: {self.engine.hasher}")

        # Clock validation
        if self.clock.kind not in CLOCK_KINDS:
            errors.append(f"Unknown clock kind: {self.clock.kind}")

        # Seed validation
        seen = set()
        for seed in self.validators:
            if seed.id in seen:
                errors.append(f"Duplicate validator id: {seed.id}")
            seen.add(seed.id)
            if seed.stake < 0:
                errors.append(f"Validator {seed.id} has negative stake")
            if seed.rotation_period < MIN_ROTATION_PERIOD:
                errors.append(f"Validator {seed.id} rotation_period must be at least {MIN_ROTATION_PERIOD}")

        holder_ids = set()
        for seed in self.holders:
            if seed.id in holder_ids:
                errors.append(f"Duplicate token holder id: {seed.id}")
            holder_ids.add(seed.id)
            if seed.stake < 0:
                errors.append(f"Token holder {seed.id} has negative stake")
            if seed.delegated_to is not None and seed.delegated_to not in seen:
                errors.append(f"Token holder {seed.id} delegates to unknown validator {seed.delegated_to}")

        if self.storage.enabled and not self.storage.db_path:
            errors.append("db_path cannot be empty when storage is enabled")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationConfig":
        config = cls(rounds=data.get("rounds", DEFAULT_ROUNDS))

        if "engine" in data:
            config.engine = EngineConfig(**data["engine"])

        if "clock" in data:
            config.clock = ClockConfig(**data["clock"])

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        config.validators = [ValidatorSeed(**v) for v in data.get("validators", [])]
        config.holders = [HolderSeed(**h) for h in data.get("holders", [])]

        return config

    @classmethod
    def load(cls, path: str) -> "SimulationConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls.from_dict(data)
        logger.info(f"Configuration loaded from {path}")
        return config

    @classmethod
    def default(cls) -> "SimulationConfig":
        """Three validators with one delegating holder each."""
        return cls(
            validators=[
                ValidatorSeed("Validator1", 100),
                ValidatorSeed("Validator2", 200),
                ValidatorSeed("Validator3", 150),
            ],
            holders=[
                HolderSeed("Holder1", 50, "Validator1"),
                HolderSeed("Holder2", 80, "Validator2"),
                HolderSeed("Holder3", 70, "Validator3"),
            ],
        )

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "rounds": self.rounds,
            "engine": asdict(self.engine),
            "clock": asdict(self.clock),
            "storage": asdict(self.storage),
            "log": asdict(self.log),
            "validators": [asdict(v) for v in self.validators],
            "holders": [asdict(h) for h in self.holders],
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
