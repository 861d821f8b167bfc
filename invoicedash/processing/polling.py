"""Client-side polling for invoices whose backend extraction is still running.

The reconciler watches a collection of invoices, picks the ones classified as
``PROCESSING`` (the pending set) and re-fetches them on a timer until they
reach a terminal status. Everything runs on one asyncio event loop: the timer
is a task, each refresh cycle is a task, and fetches inside a cycle are awaited
one after the other so at most one request per cycle is in flight.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from invoicedash.core.models import Invoice, replace_invoice
from invoicedash.core.status import pending_invoices

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000

FetchInvoice = Callable[[int], Awaitable[Invoice]]

_UNSET = object()


@dataclass
class CycleResult:
    """Outcome of one refresh cycle."""

    refreshed: List[Invoice] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: bool = False

    @property
    def attempted(self) -> int:
        return len(self.refreshed) + len(self.failed)


class InvoicePoller:
    """Keep pending invoices fresh while backend processing is in flight.

    Nothing is scheduled until ``start()`` is called from inside a running
    event loop. ``update()`` re-evaluates the timer whenever the watched
    invoices, ``enabled`` or ``interval_ms`` change. ``stop()`` is idempotent
    and ``close()`` additionally cancels cycles that are still running.

    Cycles started by the timer and by ``refresh_now()`` may overlap unless
    ``exclusive`` is set, in which case a cycle that starts while another is
    running is skipped.
    """

    def __init__(
        self,
        fetch_invoice: FetchInvoice,
        invoices: Iterable[Invoice] = (),
        enabled: bool = True,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        fetch_timeout: Optional[float] = None,
        on_refresh: Optional[Callable[[Invoice], None]] = None,
        exclusive: bool = False,
    ) -> None:
        self._fetch_invoice = fetch_invoice
        self._invoices: List[Invoice] = list(invoices)
        self.enabled = enabled
        self.interval_ms = interval_ms
        self.fetch_timeout = fetch_timeout
        self.on_refresh = on_refresh
        self.exclusive = exclusive

        self._started = False
        self._closed = False
        self._timer: Optional[asyncio.Task] = None
        self._cycles: Set[asyncio.Task] = set()
        self._running = 0
        self._idle = asyncio.Event()
        self._sync_idle()

    # -- observable outputs -------------------------------------------------

    @property
    def invoices(self) -> List[Invoice]:
        return list(self._invoices)

    @property
    def pending(self) -> List[Invoice]:
        return pending_invoices(self._invoices)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def is_polling(self) -> bool:
        return self.enabled and self.pending_count > 0

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def schedulable(self) -> bool:
        """Whether ``interval_ms`` allows a timer at all."""

        return self.interval_ms is not None and self.interval_ms > 0

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("InvoicePoller is closed")
        self._started = True
        self._reschedule()

    def stop(self) -> None:
        """Cancel the timer; in-flight cycles finish on their own."""

        self._started = False
        self._cancel_timer()

    async def close(self) -> None:
        """Cancel the timer and any running cycle, then wait for them to unwind."""

        self._closed = True
        self.stop()
        cycles = list(self._cycles)
        for task in cycles:
            task.cancel()
        if cycles:
            await asyncio.gather(*cycles, return_exceptions=True)
        self._idle.set()

    async def __aenter__(self) -> "InvoicePoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def update(
        self,
        invoices=_UNSET,
        enabled: Optional[bool] = None,
        interval_ms: Optional[int] = None,
    ) -> None:
        """Apply new inputs, cancel the current timer, and start a fresh one if needed."""

        if invoices is not _UNSET:
            self._invoices = list(invoices)
        if enabled is not None:
            self.enabled = enabled
        if interval_ms is not None:
            self.interval_ms = interval_ms
        self._reschedule()

    # -- refresh cycles -----------------------------------------------------

    async def refresh_now(self) -> CycleResult:
        """Run one refresh cycle immediately, regardless of the timer phase."""

        return await self._run_cycle()

    async def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until nothing is left to poll; ``False`` if ``timeout`` expires first.

        Returns at once when the interval is not positive, since no timer will
        refresh the pending invoices. Check ``pending_count`` afterwards.
        """

        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run_cycle(self) -> CycleResult:
        result = CycleResult()
        if not self.enabled or self._closed:
            return result
        if self.exclusive and self._running:
            logger.debug("Skipping refresh cycle: another cycle is still running")
            result.skipped = True
            return result

        targets = [invoice.id for invoice in self.pending]
        if not targets:
            return result

        self._running += 1
        try:
            logger.debug("Refreshing %d processing invoice(s)", len(targets))
            for invoice_id in targets:
                if not self.enabled or self._closed:
                    break
                try:
                    invoice = await self._fetch(invoice_id)
                except Exception as exc:
                    logger.warning("Refreshing invoice %s failed: %s", invoice_id, exc)
                    result.failed.append(invoice_id)
                    continue
                result.refreshed.append(invoice)
                self._apply(invoice)
        finally:
            self._running -= 1
        return result

    async def _fetch(self, invoice_id: int) -> Invoice:
        if self.fetch_timeout is not None and self.fetch_timeout > 0:
            return await asyncio.wait_for(self._fetch_invoice(invoice_id), self.fetch_timeout)
        return await self._fetch_invoice(invoice_id)

    def _apply(self, invoice: Invoice) -> None:
        self._invoices = replace_invoice(self._invoices, invoice)
        if self.on_refresh:
            try:
                self.on_refresh(invoice)
            except Exception:
                logger.exception("on_refresh callback failed for invoice %s", invoice.id)
        if not self.is_polling:
            self._cancel_timer()
        elif self._started and not self.timer_active:
            self._start_timer()
        self._sync_idle()

    # -- timer --------------------------------------------------------------

    def _reschedule(self) -> None:
        self._cancel_timer()
        if self._started and self.is_polling:
            self._start_timer()
        self._sync_idle()

    def _start_timer(self) -> None:
        if not self.schedulable:
            logger.warning("Polling interval %r is not positive; timer not scheduled", self.interval_ms)
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._tick(self.interval_ms / 1000))
        logger.debug("Polling %d invoice(s) every %d ms", self.pending_count, self.interval_ms)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _tick(self, interval: float) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(interval)
            task = loop.create_task(self._run_cycle())
            self._cycles.add(task)
            task.add_done_callback(self._cycles.discard)

    def _sync_idle(self) -> None:
        # Without a timer nothing will ever drain the pending set on its own.
        if self.is_polling and self.schedulable and not self._closed:
            self._idle.clear()
        else:
            self._idle.set()
