"""
Tests for the branch executors
"""

import asyncio

import pytest

from nexus_flows.core.branching import (
    ConcurrentBranchExecutor,
    SequentialBranchExecutor,
    get_branch_executor,
)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sequential_runs_in_order():
    seen = []

    async def run_branch(branch):
        await asyncio.sleep(0.01 if branch == "a" else 0)
        seen.append(branch)

    await SequentialBranchExecutor().run(["a", "b", "c"], run_branch)

    assert seen == ["a", "b", "c"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sequential_stops_at_first_error():
    seen = []

    async def run_branch(branch):
        if branch == "b":
            raise RuntimeError("boom")
        seen.append(branch)

    with pytest.raises(RuntimeError):
        await SequentialBranchExecutor().run(["a", "b", "c"], run_branch)

    assert seen == ["a"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_runs_branches_together():
    started = []
    release = asyncio.Event()

    async def run_branch(branch):
        started.append(branch)
        if len(started) == 2:
            release.set()
        await asyncio.wait_for(release.wait(), timeout=1)

    await ConcurrentBranchExecutor().run(["a", "b"], run_branch)

    assert sorted(started) == ["a", "b"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_cancels_siblings_on_error():
    cancelled = []

    async def run_branch(branch):
        if branch == "fail":
            raise ValueError("boom")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(branch)
            raise

    with pytest.raises(ValueError):
        await ConcurrentBranchExecutor().run(["slow", "fail"], run_branch)

    assert cancelled == ["slow"]


@pytest.mark.unit
def test_get_branch_executor(monkeypatch):
    monkeypatch.delenv("FLOW_BRANCH_MODE", raising=False)
    assert isinstance(get_branch_executor(), SequentialBranchExecutor)
    assert isinstance(get_branch_executor("concurrent"), ConcurrentBranchExecutor)

    monkeypatch.setenv("FLOW_BRANCH_MODE", "CONCURRENT")
    assert isinstance(get_branch_executor(), ConcurrentBranchExecutor)

    with pytest.raises(ValueError, match="Unknown branch mode"):
        get_branch_executor("parallel")
