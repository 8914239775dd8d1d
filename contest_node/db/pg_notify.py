"""PostgreSQL LISTEN/NOTIFY helpers for settlement triggers and results.

Usage:
    # request a settlement
    from contest_node.db.pg_notify import request_settlement, listen
    request_settlement("c1", 0)

    # subscribe (async)
    async for channel, payload in listen("round_results"):
        handle(channel, payload)
"""
from __future__ import annotations

import asyncio
import select as _select
from typing import Any, AsyncIterator

import psycopg2
from contest_node.db.session import database_url
from contest_node.schemas.payload_contracts import SettleRequestEnvelope

DEFAULT_CHANNEL = "round_results"


def notify(channel: str = DEFAULT_CHANNEL, payload: str = "", connection: Any = None) -> None:
    """Send a NOTIFY on the given channel with an optional payload string."""
    own_conn = connection is None
    if own_conn:
        connection = _raw_connection()
    try:
        connection.autocommit = True
        with connection.cursor() as cur:
            if payload:
                cur.execute("SELECT pg_notify(%s, %s)", (channel, payload))
            else:
                cur.execute(f"NOTIFY {channel}")
    finally:
        if own_conn:
            connection.close()


def request_settlement(
    contest_id: str, round_index: int, channel: str = DEFAULT_CHANNEL, connection: Any = None,
) -> None:
    """Ask a settle worker to settle one round."""
    payload = SettleRequestEnvelope(contest_id=contest_id, round_index=round_index).model_dump_json()
    notify(channel, payload, connection=connection)


async def listen(*channels: str, timeout: float | None = None) -> AsyncIterator[tuple[str, str]]:
    """Async generator yielding (channel, payload) tuples as notifications arrive.

    Runs until cancelled or closed. ``timeout`` bounds each poll cycle
    (default 30s) so cancellation is noticed between cycles.
    """
    if not channels:
        channels = (DEFAULT_CHANNEL,)

    conn = _raw_connection()
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            for ch in channels:
                cur.execute(f"LISTEN {ch}")

        loop = asyncio.get_running_loop()
        while True:
            notified = await loop.run_in_executor(
                None, _poll_notify, conn, timeout if timeout is not None else 30.0,
            )
            if notified:
                while conn.notifies:
                    n = conn.notifies.pop(0)
                    yield (n.channel, n.payload or "")
    finally:
        conn.close()


def _poll_notify(conn: Any, timeout: float) -> bool:
    """Synchronous poll, run in an executor thread."""
    if _select.select([conn], [], [], timeout) == ([], [], []):
        return False
    conn.poll()
    return bool(conn.notifies)


def _raw_connection():
    """Raw psycopg2 connection from the same DB URL."""
    dsn = database_url().replace("+psycopg2", "")
    return psycopg2.connect(dsn)
