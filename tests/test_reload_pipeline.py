"""Tests for load_commits and the settling reload pipeline."""

import asyncio

from gitsave.core.reload import ReloadPipeline, load_commits, resolve_selection
from gitsave.core.store import StateStore
from gitsave.models.state import ViewState

from conftest import make_commit


def _store(**fields):
    return StateStore(ViewState(work_folder="/repo", **fields))


def test_load_commits_example(backend):
    """Test a plain reload: list in backend order and last comment stored."""
    store = _store()

    commits = asyncio.run(load_commits(store, backend))

    assert [c.uuid for c in store.get("commit_list")] == ["C003", "C002", "C001"]
    assert [c.position for c in commits] == [0, 1, 2]
    assert store.get("last_comment") == "third"
    assert backend.names() == ["get_commits", "last_comment"]
    assert backend.calls[0] == ("get_commits", 25, False, "/repo")
    assert store.get("busy") is False


def test_load_commits_respects_limit(backend):
    """Test that the list never exceeds the limit unless showing all."""
    backend.ignore_limit = True
    store = _store(limit=2)

    asyncio.run(load_commits(store, backend))
    assert len(store.get("commit_list")) == 2

    store.set("show_all", True)
    asyncio.run(load_commits(store, backend))
    assert len(store.get("commit_list")) == 3


def test_selection_is_resolved_by_uuid(backend):
    """Test that the selection follows its uuid into the new list."""
    store = _store()
    asyncio.run(load_commits(store, backend))
    store.set("selected_commit", store.get("commit_list")[1])

    backend.commits.insert(0, make_commit("C004", "fourth"))
    asyncio.run(load_commits(store, backend))

    selected = store.get("selected_commit")
    assert selected.uuid == "C002"
    assert selected in store.get("commit_list")

    backend.commits = backend.commits[:1]
    asyncio.run(load_commits(store, backend))
    assert store.get("selected_commit") is None


def test_resolve_selection_without_selection():
    assert resolve_selection(None, [make_commit("C1", "x")]) is None


def test_burst_triggers_single_reload(backend):
    """Test that rapid changes collapse into one reload with the final value."""
    store = _store()

    async def scenario():
        pipeline = ReloadPipeline(store, lambda: load_commits(store, backend), settle=0.05)
        pipeline.start()
        for limit in (5, 6, 7):
            store.set("limit", limit)
            await asyncio.sleep(0.01)
        store.set("show_all", True)
        store.set("show_all", False)
        await asyncio.sleep(0.2)
        await pipeline.idle()
        await pipeline.stop()
        return pipeline.runs

    assert asyncio.run(scenario()) == 1
    assert [c for c in backend.calls if c[0] == "get_commits"] == [("get_commits", 7, False, "/repo")]


def test_identical_settled_value_is_dropped(backend):
    """Test that settling back to the last value does not reload again."""
    store = _store()

    async def scenario():
        pipeline = ReloadPipeline(store, lambda: load_commits(store, backend), settle=0.03)
        pipeline.start()
        await asyncio.sleep(0.1)
        await pipeline.idle()
        store.set("limit", 30)
        store.set("limit", 25)
        await asyncio.sleep(0.1)
        await pipeline.idle()
        await pipeline.stop()
        return pipeline.runs

    assert asyncio.run(scenario()) == 1


def test_reloads_never_overlap(backend):
    """Test that a settled value waits for the running reload."""
    backend.delays["get_commits"] = 0.1
    store = _store()

    async def scenario():
        pipeline = ReloadPipeline(store, lambda: load_commits(store, backend), settle=0.02)
        pipeline.start()
        await asyncio.sleep(0.05)
        store.set("limit", 2)
        await asyncio.sleep(0.05)
        store.set("limit", 1)
        await asyncio.sleep(0.05)
        await pipeline.idle()
        await pipeline.stop()
        return pipeline.runs

    assert asyncio.run(scenario()) == 3
    assert backend.max_active["get_commits"] == 1
    # Each reload reads the limit when it starts, not when it was queued.
    limits = [c[1] for c in backend.calls if c[0] == "get_commits"]
    assert limits[0] == 25 and limits[-1] == 1
    assert len(store.get("commit_list")) == 1


def test_failed_reload_does_not_stop_pipeline(backend):
    """Test that a failing reload is reported and later reloads still run."""
    backend.failing.add("get_commits")
    store = _store()
    reported = []

    async def scenario():
        pipeline = ReloadPipeline(
            store, lambda: load_commits(store, backend), settle=0.02, on_error=reported.append
        )
        pipeline.start()
        await asyncio.sleep(0.06)
        await pipeline.idle()
        backend.failing.clear()
        store.set("limit", 10)
        await asyncio.sleep(0.06)
        await pipeline.idle()
        await pipeline.stop()

    asyncio.run(scenario())

    assert len(reported) == 1
    assert len(store.get("commit_list")) == 3
    assert store.get("busy") is False


def test_stop_is_idempotent(backend):
    store = _store()

    async def scenario():
        pipeline = ReloadPipeline(store, lambda: load_commits(store, backend))
        pipeline.start()
        assert pipeline.running
        await pipeline.stop()
        await pipeline.stop()
        return pipeline.running

    assert asyncio.run(scenario()) is False


def test_stop_discards_queued_reloads(backend):
    """Test that stopping with reloads queued leaves the pipeline idle."""
    backend.delays["get_commits"] = 0.2
    store = _store()

    async def scenario():
        pipeline = ReloadPipeline(store, lambda: load_commits(store, backend), settle=0.01)
        pipeline.start()
        await asyncio.sleep(0.05)
        store.set("limit", 2)
        await asyncio.sleep(0.05)
        await pipeline.stop()
        await asyncio.wait_for(pipeline.idle(), 0.5)
        return pipeline.runs

    assert asyncio.run(scenario()) == 1
    assert [c[0] for c in backend.calls] == ["get_commits"]
