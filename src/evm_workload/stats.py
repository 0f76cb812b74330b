import asyncio
from dataclasses import dataclass


@dataclass(frozen=True)
class RunStats:
    success: int = 0
    failure: int = 0

    @property
    def total(self) -> int:
        return self.success + self.failure

    def to_dict(self) -> dict:
        return {"success": self.success, "failure": self.failure, "total": self.total}


class StatsCounter:
    """Success/failure tally shared by concurrent submissions.

    Increments are the only mutation. The tally is final once the broadcast
    phase has joined every submission.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._success = 0
        self._failure = 0

    async def increment_success(self) -> RunStats:
        async with self._lock:
            self._success += 1
            return RunStats(self._success, self._failure)

    async def increment_failure(self) -> RunStats:
        async with self._lock:
            self._failure += 1
            return RunStats(self._success, self._failure)

    async def tally(self) -> RunStats:
        async with self._lock:
            return RunStats(self._success, self._failure)
