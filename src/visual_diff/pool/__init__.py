"""Parallel execution: task pools and the chunked execution manager."""

from visual_diff.pool.base import TaskPool
from visual_diff.pool.executors import InlineTaskPool, ThreadTaskPool
from visual_diff.pool.manager import (
    ExecutionManager,
    PendingTask,
    default_pool_size,
    get_execution_manager,
    shutdown_execution_manager,
)

__all__ = [
    "ExecutionManager",
    "InlineTaskPool",
    "PendingTask",
    "TaskPool",
    "ThreadTaskPool",
    "default_pool_size",
    "get_execution_manager",
    "shutdown_execution_manager",
]
