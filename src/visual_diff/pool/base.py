"""Abstract task pool interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Callable


class TaskPool(ABC):
    """Somewhere to run CPU-bound tasks.

    Implementations must provide exactly two operations: :meth:`submit`
    and :meth:`shutdown`.  ``size`` reports how many tasks can run at
    once; ``0`` means tasks run on the calling thread.
    """

    size: int = 0

    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Schedule ``fn(*args)`` and return a future for its result.

        Raises:
            RuntimeError: If the pool has been shut down.
        """
        ...

    @abstractmethod
    def shutdown(self) -> None:
        """Release all workers.  Pending tasks are cancelled."""
        ...
