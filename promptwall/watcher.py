"""Config hot-reload for PromptWall.

``watch_config()`` follows the active config file with ``watchfiles.awatch``
and calls ``PromptFirewall.reload()`` whenever it changes. It runs as an
asyncio.Task started by the app lifespan and is cancelled on shutdown.

A broken edit never takes the watcher down: ``load_config`` logs the error
and the firewall keeps serving (on the built-in defaults) until the file is
fixed and saved again.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import watchfiles

from promptwall.firewall import PromptFirewall
from promptwall.utils.logger import get_logger

logger = get_logger(__name__)


async def watch_config(
    firewall: PromptFirewall,
    path: str,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Reload ``firewall`` each time ``path`` changes.

    Args:
        firewall:   Firewall whose snapshot is swapped on change.
        path:       Config file to watch.
        stop_event: Optional event that ends the watch loop cleanly.
    """
    logger.info("Config file watcher started", path=path)
    try:
        async for changes in watchfiles.awatch(path, stop_event=stop_event):
            try:
                config = firewall.reload()
                logger.info(
                    "Config hot-reloaded",
                    path=path,
                    changes=len(changes),
                    patterns=len(config.patterns),
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Hot-reload handler error (non-fatal)",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    path=path,
                )
    except asyncio.CancelledError:
        logger.debug("Config file watcher cancelled", path=path)
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Config file watcher error (watcher stopped)",
            error=str(exc),
            path=path,
        )
