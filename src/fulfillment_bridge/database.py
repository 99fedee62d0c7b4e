from importlib.resources import files
from pathlib import Path

import aiosqlite

_SCHEMA = files("fulfillment_bridge").joinpath("schema.sql").read_text()


async def open_db(db_path: str) -> aiosqlite.Connection:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # autocommit: every statement is its own transaction
    conn = await aiosqlite.connect(db_path, isolation_level=None)
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA busy_timeout=5000")
    await conn.executescript(_SCHEMA)
    return conn
