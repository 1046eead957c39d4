"""
Branch Executors

Decide how the engine runs the successors of a node:
- SequentialBranchExecutor (default): one full subtree after the other, in edge order
- ConcurrentBranchExecutor: all successors at once with asyncio.gather

Both share the same context object, so with the sequential executor a
later sibling always sees what earlier siblings wrote.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

BRANCH_MODES = ("sequential", "concurrent")


class BranchExecutor(ABC):

    @abstractmethod
    async def run(self, branches: List[T], run_branch: Callable[[T], Awaitable[None]]) -> None:
        """Run run_branch(branch) for every branch; the first error propagates."""
        pass


class SequentialBranchExecutor(BranchExecutor):

    async def run(self, branches: List[T], run_branch: Callable[[T], Awaitable[None]]) -> None:
        for branch in branches:
            await run_branch(branch)


class ConcurrentBranchExecutor(BranchExecutor):
    """
    Fan-out with asyncio.gather.

    When a branch fails the other branches are cancelled and the first
    error is re-raised.
    """

    async def run(self, branches: List[T], run_branch: Callable[[T], Awaitable[None]]) -> None:
        if len(branches) <= 1:
            for branch in branches:
                await run_branch(branch)
            return

        tasks = [asyncio.ensure_future(run_branch(branch)) for branch in branches]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


def get_branch_executor(mode: Optional[str] = None) -> BranchExecutor:
    """
    Create the executor for FLOW_BRANCH_MODE (sequential | concurrent).

    Raises:
        ValueError: Unknown mode
    """
    mode = (mode or os.getenv("FLOW_BRANCH_MODE") or "sequential").lower()
    if mode == "sequential":
        return SequentialBranchExecutor()
    if mode == "concurrent":
        logger.info("Using concurrent branch execution")
        return ConcurrentBranchExecutor()
    raise ValueError(f"Unknown branch mode: '{mode}'. Supported: {list(BRANCH_MODES)}")
