"""Bounded-concurrency task driver.

Every task runs in its own ``spawn`` worker process and reports back over
a one-way pipe. The supervisor waits for whichever comes first: a message,
the process exiting, or the deadline. A process still running at the
deadline is handed to a reaper thread that terminates (then kills) it,
while its slot goes straight to the next waiting task. Each task yields
exactly one :class:`TaskResult`, so failures never escape the batch.
"""

from __future__ import annotations

import asyncio
import multiprocessing
import os
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from multiprocessing.connection import Connection, wait
from typing import Any, Literal, Protocol

import structlog

from semchange.analysis.changes import SemanticChange
from semchange.core.errors import SemchangeError, TaskError
from semchange.core.logging import configure_worker_logging, current_level, get_run_id, set_run_id

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_MS = 120_000
# Grace period between terminate() and kill().
TERMINATE_GRACE_S = 2.0

TaskStatus = Literal["success", "error"]


class Task(Protocol):
    file_path: str


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Outcome of one task. ``error`` is set exactly when status is error."""

    file_path: str
    status: TaskStatus
    changes: list[SemanticChange] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, file_path: str, changes: list[SemanticChange]) -> TaskResult:
        return cls(file_path=file_path, status="success", changes=changes)

    @classmethod
    def failure(cls, file_path: str, error: str) -> TaskResult:
        return cls(file_path=file_path, status="error", error=error)


def _worker_main(
    worker: Callable[[Any], list[SemanticChange]],
    task: Any,
    conn: Connection,
    log_level: int,
    run_id: str | None,
) -> None:
    """Entry point inside the worker process."""
    configure_worker_logging(log_level)
    if run_id:
        set_run_id(run_id)
    try:
        changes = worker(task)
    except SemchangeError as exc:
        conn.send(("error", exc.message))
    except Exception as exc:
        conn.send(("error", f"{type(exc).__name__}: {exc}"))
    else:
        conn.send(("ok", changes))
    finally:
        conn.close()


def _await_outcome(process: Any, conn: Connection, timeout_s: float) -> tuple[str, Any]:
    """Block until the worker reports, exits, or the deadline passes.

    Runs on a supervisor thread so the event loop stays free.
    """
    ready = wait([conn, process.sentinel], timeout=timeout_s)
    if not ready:
        return "timeout", None
    if conn.poll():
        try:
            return conn.recv()
        except EOFError:
            pass
    process.join()
    return "crashed", process.exitcode


def _stop(process: Any) -> None:
    """Terminate, then kill, a worker. Blocks for up to the grace period."""
    if process.is_alive():
        process.terminate()
        process.join(TERMINATE_GRACE_S)
    if process.is_alive():
        process.kill()
        process.join()


async def run_all(
    tasks: Sequence[Task],
    worker: Callable[[Any], list[SemanticChange]],
    max_concurrency: int | None = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> list[TaskResult]:
    """Run ``worker(task)`` for every task in isolated processes.

    Args:
        tasks: Work items; each exposes ``file_path``. Tasks and the worker
            must be picklable (the worker a module-level function).
        worker: Function returning the change list for one task.
        max_concurrency: Processes in flight at once. Defaults to the CPU
            count. Waiting tasks start in submission order as slots free up.
        timeout_ms: Per-task wall-clock bound.

    Returns:
        One result per task, in completion order.
    """
    if not tasks:
        return []
    limit = max(1, max_concurrency or os.cpu_count() or 1)
    timeout_s = timeout_ms / 1000
    mp_context = multiprocessing.get_context("spawn")
    loop = asyncio.get_running_loop()
    slots = asyncio.Semaphore(limit)
    supervisor = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="semchange-supervisor")
    reaper = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="semchange-reaper")
    teardowns: list[asyncio.Future[None]] = []

    def reap(process: Any) -> None:
        if process.is_alive():
            teardowns.append(loop.run_in_executor(reaper, _stop, process))
        else:
            process.join()

    async def run_one(task: Task) -> TaskResult:
        async with slots:
            started = time.monotonic()
            try:
                result = await _run_in_process(
                    task, worker, mp_context, supervisor, loop, timeout_s, reap
                )
            except Exception as exc:
                result = TaskResult.failure(task.file_path, f"{type(exc).__name__}: {exc}")
            elapsed_ms = int((time.monotonic() - started) * 1000)
            if result.ok:
                log.debug(
                    "task_done",
                    path=task.file_path,
                    changes=len(result.changes),
                    elapsed_ms=elapsed_ms,
                )
            else:
                log.warning(
                    "task_failed", path=task.file_path, error=result.error, elapsed_ms=elapsed_ms
                )
            return result

    results: list[TaskResult] = []
    with supervisor, reaper:
        pending = [asyncio.create_task(run_one(task)) for task in tasks]
        for next_done in asyncio.as_completed(pending):
            results.append(await next_done)
        # Every worker is gone before the batch returns.
        for outcome in await asyncio.gather(*teardowns, return_exceptions=True):
            if isinstance(outcome, Exception):
                log.warning("worker_teardown_failed", error=str(outcome))
    return results


async def _run_in_process(
    task: Task,
    worker: Callable[[Any], list[SemanticChange]],
    mp_context: Any,
    executor: ThreadPoolExecutor,
    loop: asyncio.AbstractEventLoop,
    timeout_s: float,
    reap: Callable[[Any], None],
) -> TaskResult:
    recv_conn, send_conn = mp_context.Pipe(duplex=False)
    process = mp_context.Process(
        target=_worker_main,
        args=(worker, task, send_conn, current_level(), get_run_id()),
        daemon=True,
    )
    try:
        process.start()
        # The child holds the only write end; EOF then means it died.
        send_conn.close()
        status, payload = await loop.run_in_executor(
            executor, _await_outcome, process, recv_conn, timeout_s
        )
    finally:
        recv_conn.close()
        if process.pid is not None:
            reap(process)

    if status == "ok":
        return TaskResult.success(task.file_path, list(payload))
    if status == "timeout":
        err = TaskError.timeout(task.file_path, int(timeout_s * 1000))
    elif status == "crashed":
        err = TaskError.crashed(task.file_path, payload)
    else:
        err = TaskError.failed(task.file_path, str(payload))
    return TaskResult.failure(task.file_path, err.message)
