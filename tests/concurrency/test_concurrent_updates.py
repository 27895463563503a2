from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from sqlsink import UpdateConfig, UpdateExecutor
from sqlsink.db.session import DbSession
from sqlsink.models import Message


pytestmark = pytest.mark.concurrency


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


THREADS = _env_int("SQLSINK_CONCURRENCY_THREADS", 4)
OPS_PER_THREAD = _env_int("SQLSINK_CONCURRENCY_OPS", 10)


def test_concurrent_inserts_return_their_own_keys(engine, foos_table: str, fetch_rows) -> None:
    """
    Each invocation's generated key points at the row holding its own payload.
    """
    table = foos_table
    executor = UpdateExecutor(
        engine,
        UpdateConfig(
            f"INSERT INTO {table} (MESSAGE_ID, PAYLOAD) VALUES (:headers[id], :payload)",
            keys_generated=True,
        ),
    )
    start = threading.Barrier(THREADS)

    def worker(worker_id: int) -> list[tuple[str, int]]:
        start.wait()
        out = []
        for i in range(OPS_PER_THREAD):
            payload = f"w{worker_id}-{i}"
            rows = executor.execute(Message(payload, headers={"id": payload}))
            assert len(rows) == 1
            out.append((payload, rows[0]["ID"]))
        return out

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        results = [item for chunk in pool.map(worker, range(THREADS)) for item in chunk]

    stored = {
        row["ID"]: (row["MESSAGE_ID"], row["PAYLOAD"])
        for row in fetch_rows(engine, f"SELECT ID, MESSAGE_ID, PAYLOAD FROM {table}")
    }

    assert len(stored) == THREADS * OPS_PER_THREAD
    for payload, key in results:
        assert stored[key] == (payload, payload)


def test_concurrent_updates_report_their_own_counts(engine, foos_table: str) -> None:
    table = foos_table
    with DbSession(engine) as session:
        for worker_id in range(THREADS):
            for _ in range(worker_id + 1):
                session.execute(
                    f"INSERT INTO {table} (MESSAGE_ID, PAYLOAD) VALUES (:mid, 'seed')",
                    {"mid": f"group-{worker_id}"},
                )

    executor = UpdateExecutor(
        engine,
        f"UPDATE {table} SET PAYLOAD = :payload WHERE MESSAGE_ID = :headers[group]",
    )

    def worker(worker_id: int) -> int:
        rows = executor.execute(Message(f"by-{worker_id}", headers={"group": f"group-{worker_id}"}))
        return rows[0]["UPDATED"]

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        counts = list(pool.map(worker, range(THREADS)))

    assert counts == [worker_id + 1 for worker_id in range(THREADS)]
