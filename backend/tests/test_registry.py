"""
Tests for the Watch Registry.

Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

import pytest

from watcher.registry import WatchRegistry, WatchTier, is_stylesheet


class TestIsStylesheet:
    """Extension matching."""

    @pytest.mark.parametrize("name", ["a.css", "a.sass", "a.scss", "a.less", "a.styl", "x.min.css"])
    def test_recognized(self, name: str):
        assert is_stylesheet(Path("/site") / name)

    @pytest.mark.parametrize("name", ["a.js", "a.html", "README", "css", "a.css.map", "a.CSS"])
    def test_not_recognized(self, name: str):
        assert not is_stylesheet(Path("/site") / name)


class TestRegistration:
    """register_if_absent / unregister."""

    def test_register_new_stylesheet(self):
        registry = WatchRegistry()
        path = Path("/site/a.css")

        assert registry.register_if_absent(path) is True
        assert path in registry
        assert registry.tier_of(path) is WatchTier.NORMAL
        assert registry.get(path).snapshot is None

    def test_registration_is_idempotent(self):
        """Test that registering twice leaves a single entry."""
        registry = WatchRegistry()
        path = Path("/site/a.css")

        assert registry.register_if_absent(path) is True
        entry = registry.get(path)
        assert registry.register_if_absent(path) is False

        assert len(registry) == 1
        assert registry.get(path) is entry

    def test_other_extensions_are_ignored(self):
        registry = WatchRegistry()
        for _ in range(3):
            assert registry.register_if_absent(Path("/site/app.js")) is False
        assert len(registry) == 0

    def test_poller_factory_called_once(self):
        started: list[Path] = []
        registry = WatchRegistry(lambda p: started.append(p))
        path = Path("/site/a.css")

        registry.register_if_absent(path)
        registry.register_if_absent(path)

        assert started == [path]

    def test_unregister(self):
        registry = WatchRegistry()
        path = Path("/site/a.css")
        registry.register_if_absent(path)

        entry = registry.unregister(path)

        assert entry is not None
        assert entry.path == path
        assert path not in registry
        assert registry.tier_of(path) is None

    def test_unregister_unknown_path(self):
        assert WatchRegistry().unregister(Path("/site/none.css")) is None

    def test_reregistration_starts_normal(self):
        """Test that a path registered again after removal is a fresh entry."""
        registry = WatchRegistry()
        path = Path("/site/a.css")
        registry.register_if_absent(path)
        registry.set_tier(path, WatchTier.FAST)
        registry.unregister(path)

        assert registry.register_if_absent(path) is True
        assert registry.tier_of(path) is WatchTier.NORMAL

    def test_snapshot(self):
        registry = WatchRegistry()
        registry.register_if_absent(Path("/site/a.css"))
        registry.register_if_absent(Path("/site/b.less"))
        registry.set_tier(Path("/site/b.less"), WatchTier.FAST)

        assert registry.snapshot() == {
            Path("/site/a.css"): WatchTier.NORMAL,
            Path("/site/b.less"): WatchTier.FAST,
        }


class TestTiers:
    """Tier accessors."""

    def test_set_tier(self):
        registry = WatchRegistry()
        path = Path("/site/a.css")
        registry.register_if_absent(path)

        registry.set_tier(path, WatchTier.FAST)

        assert registry.tier_of(path) is WatchTier.FAST

    def test_no_downgrade(self):
        registry = WatchRegistry()
        path = Path("/site/a.css")
        registry.register_if_absent(path)
        registry.set_tier(path, WatchTier.FAST)

        with pytest.raises(ValueError):
            registry.set_tier(path, WatchTier.NORMAL)
        assert registry.tier_of(path) is WatchTier.FAST

    def test_set_tier_unknown_path(self):
        with pytest.raises(KeyError):
            WatchRegistry().set_tier(Path("/site/a.css"), WatchTier.FAST)


class TestPollingTasks:
    """Task handles are cancelled on removal."""

    async def test_unregister_cancels_task(self):
        registry = WatchRegistry(
            lambda p: asyncio.create_task(asyncio.sleep(3600)),
        )
        path = Path("/site/a.css")
        registry.register_if_absent(path)
        task = registry.get(path).task
        assert task is not None

        registry.unregister(path)
        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()

    async def test_clear_cancels_everything(self):
        registry = WatchRegistry(
            lambda p: asyncio.create_task(asyncio.sleep(3600)),
        )
        for name in ("a.css", "b.scss", "c.less"):
            registry.register_if_absent(Path("/site") / name)
        tasks = [registry.get(p).task for p in registry.paths()]

        registry.clear()
        await asyncio.gather(*tasks, return_exceptions=True)

        assert len(registry) == 0
        assert all(task.cancelled() for task in tasks)

    async def test_task_unregistering_itself_is_not_cancelled(self):
        registry = WatchRegistry()
        path = Path("/site/a.css")

        async def poller() -> str:
            registry.unregister(path)
            await asyncio.sleep(0)
            return "finished"

        registry.register_if_absent(path)
        task = asyncio.create_task(poller())
        registry.get(path).task = task

        assert await task == "finished"
        assert path not in registry
