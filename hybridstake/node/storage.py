"""
HybridStake Chain Storage

SQLite snapshot of the engine state: blocks in chain order, validators,
token holders and the period counter.

Columns keep the field order of the in-memory records so that stored
blocks hash identically when reloaded.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

import aiosqlite

from hybridstake.core.block import Block
from hybridstake.core.registry import Validator, TokenHolder
from hybridstake.consensus.engine import ConsensusEngine

if TYPE_CHECKING:
    from hybridstake.node.clock import Clock
    from hybridstake.node.config import EngineConfig

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS blocks (
    id INTEGER PRIMARY KEY,
    timestamp INTEGER NOT NULL,
    payload TEXT NOT NULL,
    validator_id TEXT NOT NULL,
    previous_hash TEXT NOT NULL,
    hash TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS validators (
    position INTEGER PRIMARY KEY,
    id TEXT NOT NULL UNIQUE,
    stake INTEGER NOT NULL,
    delegated_stake INTEGER NOT NULL,
    rotation_period INTEGER NOT NULL,
    last_block_validated INTEGER NOT NULL,
    reputation REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS token_holders (
    position INTEGER PRIMARY KEY,
    id TEXT NOT NULL UNIQUE,
    stake INTEGER NOT NULL,
    delegated_to TEXT
);

CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value INTEGER NOT NULL
);
"""


class ChainStore:
    """
    Async SQLite store for engine snapshots.

    Usage:
        async with ChainStore(path) as store:
            await store.save_engine(engine)
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None

    async def open(self) -> None:
        if self._db is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.execute(
            "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
            (SCHEMA_VERSION,)
        )
        await self._db.commit()
        logger.debug(f"Opened chain store at {self.db_path}")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "ChainStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("ChainStore is not open")
        return self._db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_engine(self, engine: ConsensusEngine) -> None:
        """
        Write a full snapshot of the engine.

        Every table is replaced in one transaction, so the stored chain
        always belongs to the stored registries and period.
        """
        db = self.db

        try:
            await self._write_snapshot(db, engine)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Saved snapshot: {len(engine.chain)} blocks, "
            f"{len(engine.validators)} validators, period {engine.current_period}"
        )

    async def _write_snapshot(self, db: aiosqlite.Connection, engine: ConsensusEngine) -> None:
        await db.execute("DELETE FROM blocks")
        await db.executemany(
            "INSERT INTO blocks "
            "(id, timestamp, payload, validator_id, previous_hash, hash) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                (b.id, b.timestamp, b.payload, b.validator_id, b.previous_hash, b.hash)
                for b in engine.chain
            ]
        )

        await db.execute("DELETE FROM validators")
        await db.executemany(
            "INSERT INTO validators "
            "(position, id, stake, delegated_stake, rotation_period, last_block_validated, reputation) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (i, v.id, v.stake, v.delegated_stake, v.rotation_period,
                 v.last_block_validated, v.reputation)
                for i, v in enumerate(engine.validators)
            ]
        )

        await db.execute("DELETE FROM token_holders")
        await db.executemany(
            "INSERT INTO token_holders (position, id, stake, delegated_to) VALUES (?, ?, ?, ?)",
            [
                (i, h.id, h.stake, h.delegated_to)
                for i, h in enumerate(engine.token_holders)
            ]
        )

        await db.execute(
            "INSERT OR REPLACE INTO meta (key, value) VALUES ('current_period', ?)",
            (engine.current_period,)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_blocks(self) -> List[Block]:
        async with self.db.execute(
            "SELECT id, timestamp, payload, validator_id, previous_hash, hash "
            "FROM blocks ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [Block.from_dict(dict(row)) for row in rows]

    async def load_validators(self) -> List[Validator]:
        async with self.db.execute(
            "SELECT id, stake, delegated_stake, rotation_period, last_block_validated, reputation "
            "FROM validators ORDER BY position"
        ) as cursor:
            rows = await cursor.fetchall()
        return [Validator.from_dict(dict(row)) for row in rows]

    async def load_token_holders(self) -> List[TokenHolder]:
        async with self.db.execute(
            "SELECT id, stake, delegated_to FROM token_holders ORDER BY position"
        ) as cursor:
            rows = await cursor.fetchall()
        return [TokenHolder.from_dict(dict(row)) for row in rows]

    async def load_period(self) -> int:
        async with self.db.execute(
            "SELECT value FROM meta WHERE key = 'current_period'"
        ) as cursor:
            row = await cursor.fetchone()
        return row["value"] if row else 0

    async def restore_engine(
        self,
        config: Optional["EngineConfig"] = None,
        clock: Optional["Clock"] = None,
    ) -> ConsensusEngine:
        """Build a new engine from the stored snapshot."""
        engine = (
            ConsensusEngine.from_config(config, clock=clock)
            if config is not None
            else ConsensusEngine(clock=clock)
        )
        engine.load_state(
            blocks=await self.load_blocks(),
            validators=await self.load_validators(),
            holders=await self.load_token_holders(),
            current_period=await self.load_period(),
        )
        return engine
