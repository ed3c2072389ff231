import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from utils.logger import logger

T = TypeVar("T")

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 16


@dataclass(frozen=True)
class TaskFailure:
    """Error-tagged result standing in for a task that raised."""
    path: str
    error: Exception


def clamp_concurrency(limit: int) -> int:
    return max(MIN_CONCURRENCY, min(MAX_CONCURRENCY, int(limit)))


class ConcurrentDispatcher:
    """
    Runs a per-file coroutine over many paths with a bounded number in flight.

    Results come back in submission order. A task that raises does not cancel
    its siblings; its slot holds `on_error(path, exc)` or a TaskFailure.
    """

    async def process_all(
        self,
        paths: Sequence[str],
        task: Callable[[str], Awaitable[T]],
        concurrency_limit: int,
        on_error: Optional[Callable[[str, Exception], T]] = None,
    ) -> List[Union[T, TaskFailure]]:
        limit = clamp_concurrency(concurrency_limit)
        semaphore = asyncio.Semaphore(limit)
        logger.debug(f"Dispatching {len(paths)} tasks with concurrency {limit}")

        async def run_one(path: str) -> Union[T, TaskFailure]:
            async with semaphore:
                try:
                    return await task(path)
                except Exception as e:
                    logger.debug(f"Task for {path} failed: {type(e).__name__}: {e}")
                    if on_error is not None:
                        return on_error(path, e)
                    return TaskFailure(path=path, error=e)

        return list(await asyncio.gather(*(run_one(path) for path in paths)))
