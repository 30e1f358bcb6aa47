"""Run independent cross-validation folds serially or across processes.

Folds only read shared inputs and write their own result, so they can be
mapped over a process pool without synchronisation.  Results always come
back in task order.  A failing fold aborts the whole run and its exception
reaches the caller unchanged; there is no per-fold isolation.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from tqdm import tqdm

LOGGER = logging.getLogger(__name__)

TaskT = TypeVar("TaskT")
ResultT = TypeVar("ResultT")


class ParallelFoldRunner:
    """Map a worker over fold tasks.

    Parameters
    ----------
    n_processes:
        Number of worker processes.  ``1`` (the default) runs in the calling
        process; ``None`` uses ``cpu_count() - 1`` while ensuring at least a
        single process.
    chunk_size:
        Number of tasks batched per chunk submitted to the pool.
    verbose:
        When ``True`` a progress bar is displayed while collecting results.
    """

    def __init__(self, n_processes: Optional[int] = 1, chunk_size: int = 1, verbose: bool = False) -> None:
        if n_processes is None:
            n_processes = max(1, mp.cpu_count() - 1)

        if n_processes < 1:
            raise ValueError("n_processes must be at least 1")

        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")

        self.n_processes = n_processes
        self.chunk_size = chunk_size
        self.verbose = verbose

    def map(self, worker: Callable[[TaskT], ResultT], tasks: Sequence[TaskT]) -> List[ResultT]:
        """Apply ``worker`` to every task; ``worker`` must be picklable when parallel."""

        if self.n_processes == 1 or len(tasks) <= 1:
            LOGGER.debug("Executing %d folds sequentially.", len(tasks))
            iterable: Iterable[ResultT] = (worker(task) for task in tasks)
            if self.verbose:
                iterable = tqdm(iterable, total=len(tasks), desc="Cross-validating")
            return list(iterable)

        LOGGER.debug("Executing %d folds across %d processes.", len(tasks), self.n_processes)
        context = mp.get_context("spawn") if mp.get_start_method(allow_none=True) != "spawn" else mp.get_context()
        with context.Pool(processes=self.n_processes) as pool:
            iterable = pool.imap(worker, tasks, chunksize=self.chunk_size)
            if self.verbose:
                iterable = tqdm(iterable, total=len(tasks), desc="Cross-validating")
            return list(iterable)


__all__ = ["ParallelFoldRunner"]
