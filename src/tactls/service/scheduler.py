"""Validation scheduling: debounce, per-document serialization, sweeps."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from lsprotocol import types as lsp

from tactls.compiler.diagnostics import failure_diagnostic
from tactls.models.contracts import Document

Validator = Callable[[Document], Awaitable[list[lsp.Diagnostic]]]
Publisher = Callable[[str, list[lsp.Diagnostic]], None]
OpenDocuments = Callable[[], Iterable[Document]]

logger = logging.getLogger(__name__)


class ValidationScheduler:
    """Decides when a document is validated and whether the result is published.

    Each URI has an ``asyncio.Lock`` so at most one pass per document runs at
    a time, and a generation counter bumped by every open/save/change/close.
    A pass remembers the generation it was scheduled under and publishes only
    if that generation is still current, so superseded results are dropped.
    Per-URI state of a closed document is released once its last scheduled
    pass has finished.
    """

    def __init__(
        self,
        validator: Validator,
        publish: Publisher,
        open_documents: OpenDocuments,
        *,
        live_check_enabled: bool = False,
        debounce_ms: int = 1500,
        validate_on_change: bool = False,
    ) -> None:
        self._validator = validator
        self._publish = publish
        self._open_documents = open_documents
        self.live_check_enabled = live_check_enabled
        self.debounce_ms = debounce_ms
        self.validate_on_change = validate_on_change

        self._locks: dict[str, asyncio.Lock] = {}
        self._generations: dict[str, int] = {}
        self._pending: dict[str, int] = {}
        self._closed: set[str] = set()
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._running_all = False

    # -- state ---------------------------------------------------------------

    @property
    def running_one(self) -> bool:
        """True while any single-document pass is compiling."""
        return bool(self._in_flight)

    @property
    def running_all(self) -> bool:
        """True while a sweep over all open documents is in progress."""
        return self._running_all

    def is_running(self, uri: str) -> bool:
        return uri in self._in_flight

    def generation(self, uri: str) -> int:
        return self._generations.get(uri, 0)

    def is_tracked(self, uri: str) -> bool:
        """True while the scheduler holds any state for *uri*."""
        return uri in self._generations or uri in self._locks

    # -- events --------------------------------------------------------------

    def on_open(self, document: Document) -> asyncio.Task[None] | None:
        """Validate right away: open-time feedback is not debounced."""
        return self._schedule(document, delay=0.0)

    def on_save(self, document: Document) -> asyncio.Task[None] | None:
        return self._schedule(document, delay=self.debounce_ms / 1000)

    def on_change(self, document: Document) -> asyncio.Task[None] | None:
        if not self.validate_on_change:
            return None
        return self._schedule(document, delay=self.debounce_ms / 1000)

    def on_close(self, uri: str) -> None:
        """Clear the document's markers; pending passes for it become stale."""
        self._bump(uri)
        self._publish(uri, [])
        self._closed.add(uri)
        self._release_if_idle(uri)

    def on_configuration_change(
        self,
        live_check_enabled: bool,
        debounce_ms: int,
        validate_on_change: bool | None = None,
    ) -> asyncio.Task[None] | None:
        """Apply new settings; with live checking on, sweep all open documents."""
        self.live_check_enabled = live_check_enabled
        self.debounce_ms = debounce_ms
        if validate_on_change is not None:
            self.validate_on_change = validate_on_change
        if not self.live_check_enabled:
            logger.debug("As-you-type compilation check is disabled")
            return None
        return self._track(self.validate_all())

    async def validate_all(self) -> None:
        """Validate every open document; a sweep already in progress wins."""
        if self._running_all:
            logger.debug("Validation sweep already running, skipping")
            return
        self._running_all = True
        try:
            tasks = [self._schedule(document, delay=0.0) for document in self._open_documents()]
            await asyncio.gather(*(t for t in tasks if t is not None))
        finally:
            self._running_all = False

    async def drain(self) -> None:
        """Wait until every scheduled pass has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -- internal ------------------------------------------------------------

    def _schedule(self, document: Document, delay: float) -> asyncio.Task[None] | None:
        if not self.live_check_enabled:
            return None
        uri = document.uri
        self._closed.discard(uri)
        generation = self._bump(uri)
        self._pending[uri] = self._pending.get(uri, 0) + 1
        task = self._track(self._run(document, generation, delay))
        task.add_done_callback(lambda _: self._finished(uri))
        return task

    def _track(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _bump(self, uri: str) -> int:
        self._generations[uri] = self._generations.get(uri, 0) + 1
        return self._generations[uri]

    def _finished(self, uri: str) -> None:
        self._pending[uri] -= 1
        if not self._pending[uri]:
            del self._pending[uri]
        self._release_if_idle(uri)

    def _release_if_idle(self, uri: str) -> None:
        # Generations must outlive every pass that captured one.
        if uri not in self._closed or uri in self._pending:
            return
        self._closed.discard(uri)
        self._generations.pop(uri, None)
        self._locks.pop(uri, None)

    def _is_current(self, uri: str, generation: int) -> bool:
        return self._generations.get(uri) == generation

    async def _run(self, document: Document, generation: int, delay: float) -> None:
        uri = document.uri
        if delay > 0:
            await asyncio.sleep(delay)
        if not self.live_check_enabled or not self._is_current(uri, generation):
            return

        lock = self._locks.setdefault(uri, asyncio.Lock())
        async with lock:
            if not self._is_current(uri, generation):
                return
            self._in_flight.add(uri)
            try:
                diagnostics = await self._validate(document)
            finally:
                self._in_flight.discard(uri)

        if not self._is_current(uri, generation):
            logger.debug("Discarding stale diagnostics for %s", uri)
            return
        self._publish(uri, diagnostics)

    async def _validate(self, document: Document) -> list[lsp.Diagnostic]:
        try:
            return await self._validator(document)
        except Exception as exc:
            logger.exception("Validation of %s failed", document.uri)
            return [failure_diagnostic(f"Validation failed: {exc}")]
