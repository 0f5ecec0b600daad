"""In-memory layout and section caches with periodic maintenance.

Not an LRU: once a map grows past ``max_size`` it is cleared wholesale.
Layout and section sets are small and cheap to regenerate, so a miss
only costs a filesystem check.

Every mutation is a single dict operation with no ``await`` in between,
so the maps are consistent under the cooperative scheduler without a
lock. The cleanup task may clear a map while a render is between two
suspension points; that render simply sees a miss.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("mantle.cache")


@dataclass(frozen=True, slots=True)
class LayoutEntry:
    """A layout file known to exist on disk.

    Attributes:
        name: Sanitized layout name.
        path: Absolute path of the layout file.
        synthesized: True if mantle wrote the default layout for it.
    """

    name: str
    path: Path
    synthesized: bool = False


class LayoutCache:
    """Bounded layout and section maps owned by one ``LayoutManager``."""

    __slots__ = ("_layouts", "_max_size", "_sections", "_task")

    def __init__(self, max_size: int) -> None:
        self._max_size = max_size
        self._layouts: dict[str, LayoutEntry] = {}
        self._sections: dict[str, tuple[str, ...]] = {}
        self._task: asyncio.Task[None] | None = None

    # -- Layouts --

    def get(self, name: str) -> LayoutEntry | None:
        return self._layouts.get(name)

    def put(self, entry: LayoutEntry) -> None:
        """Store *entry*; clear the whole map if it is now over the bound."""
        self._layouts[entry.name] = entry
        if len(self._layouts) > self._max_size:
            self._layouts.clear()
            logger.info("Layout cache cleared: size limit %d exceeded", self._max_size)

    def evict(self, name: str) -> None:
        self._layouts.pop(name, None)

    # -- Sections --

    def get_sections(self, key: str) -> tuple[str, ...] | None:
        return self._sections.get(key)

    def put_sections(self, key: str, names: tuple[str, ...]) -> None:
        self._sections[key] = names
        if len(self._sections) > self._max_size:
            self._sections.clear()
            logger.info("Section cache cleared: size limit %d exceeded", self._max_size)

    # -- Maintenance --

    @property
    def layout_count(self) -> int:
        return len(self._layouts)

    @property
    def section_count(self) -> int:
        return len(self._sections)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def clear(self) -> None:
        self._layouts.clear()
        self._sections.clear()

    def cleanup(self) -> None:
        """Clear whichever map has outgrown ``max_size``."""
        if len(self._layouts) > self._max_size:
            self._layouts.clear()
            logger.info("Layout cache cleared: size limit exceeded")
        if len(self._sections) > self._max_size:
            self._sections.clear()
            logger.info("Section cache cleared: size limit exceeded")

    def start(self, interval: float) -> None:
        """Run ``cleanup()`` now and then every *interval* seconds.

        Must be called from a running event loop. Calling it again while
        the task is alive is a no-op.
        """
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(interval), name="mantle-cache-cleanup"
        )

    async def _run(self, interval: float) -> None:
        while True:
            try:
                self.cleanup()
            except Exception:
                logger.exception("Cache cleanup failed")
            await asyncio.sleep(interval)

    def destroy(self) -> None:
        """Cancel the cleanup task and empty both maps. Safe to call twice."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self.clear()

    async def aclose(self) -> None:
        """``destroy()`` and wait for the cleanup task to finish cancelling."""
        task = self._task
        self.destroy()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
