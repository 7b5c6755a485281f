"""Unit tests for promptwall/watcher.py (config hot-reload loop)."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from promptwall.config import FirewallConfig
from promptwall.watcher import watch_config


def _fake_awatch(batches: list[set]):
    async def awatch(path, stop_event=None):
        for changes in batches:
            yield changes

    return awatch


@pytest.mark.asyncio
async def test_reload_called_per_change(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "promptwall.watcher.watchfiles.awatch",
        _fake_awatch([{("modified", "f.yaml")}, {("modified", "f.yaml")}]),
    )
    firewall = MagicMock()
    firewall.reload.return_value = FirewallConfig()

    await watch_config(firewall, "f.yaml")

    assert firewall.reload.call_count == 2


@pytest.mark.asyncio
async def test_handler_error_does_not_stop_watching(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "promptwall.watcher.watchfiles.awatch",
        _fake_awatch([{("modified", "f.yaml")}] * 3),
    )
    firewall = MagicMock()
    firewall.reload.side_effect = [RuntimeError("bad"), FirewallConfig(), FirewallConfig()]

    await watch_config(firewall, "f.yaml")

    assert firewall.reload.call_count == 3


@pytest.mark.asyncio
async def test_cancellation_propagates(monkeypatch: pytest.MonkeyPatch) -> None:
    async def forever(path, stop_event=None):
        await asyncio.Event().wait()
        yield set()

    monkeypatch.setattr("promptwall.watcher.watchfiles.awatch", forever)
    task = asyncio.create_task(watch_config(MagicMock(), "f.yaml"))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_real_file_change_reloads_firewall(tmp_path) -> None:
    from promptwall.firewall import PromptFirewall

    path = tmp_path / "filters.yaml"
    path.write_text("patterns:\n  - name: First\n    pattern: alpha\n")
    firewall = PromptFirewall(config_path=str(path))
    stop = asyncio.Event()

    task = asyncio.create_task(watch_config(firewall, str(path), stop_event=stop))
    await asyncio.sleep(0.3)
    path.write_text("patterns:\n  - name: Second\n    pattern: beta\n")

    for _ in range(100):
        if firewall.filter("beta").action == "block":
            break
        await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(task, timeout=5)

    assert [r.name for r in firewall.active_rules()] == ["Second"]
