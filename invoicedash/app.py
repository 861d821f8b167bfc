"""Wiring shared by the CLI and the dashboard: settings, services, stores."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from invoicedash.api.auth import AuthService
from invoicedash.api.credentials import SessionStore
from invoicedash.api.invoices import InvoiceService
from invoicedash.api.transport import HttpTransport
from invoicedash.core.config import Settings, load_settings
from invoicedash.processing.polling import InvoicePoller
from invoicedash.state.auth import AuthStore
from invoicedash.state.invoices import InvoiceStore

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Settings
    session: SessionStore
    invoices: InvoiceStore
    auth: AuthStore

    def poller(self, interval_ms: Optional[int] = None, fetch_timeout: Optional[float] = None) -> InvoicePoller:
        """Build a reconciler that refreshes through the invoice store."""

        return InvoicePoller(
            fetch_invoice=self.invoices.refresh_invoice,
            invoices=self.invoices.state.invoices,
            interval_ms=self.settings.poll_interval_ms if interval_ms is None else interval_ms,
            fetch_timeout=self.settings.request_timeout if fetch_timeout is None else fetch_timeout,
        )


def build_app(settings: Optional[Settings] = None, http_session: Optional[requests.Session] = None) -> App:
    settings = settings or load_settings()
    session_store = SessionStore(
        settings.session_file,
        cookie_name=settings.token_cookie,
        default_expiry_days=settings.default_expiry_days,
        remember_me_expiry_days=settings.remember_me_expiry_days,
    )
    transport = HttpTransport(settings, credentials=session_store, session=http_session)
    logger.debug("API endpoints: graphql=%s rest=%s", settings.graphql_url, settings.api_url)
    return App(
        settings=settings,
        session=session_store,
        invoices=InvoiceStore(InvoiceService(transport), persist_path=settings.state_file),
        auth=AuthStore(AuthService(transport), session_store),
    )


async def watch_invoices(app: App, timeout: Optional[float] = None, interval_ms: Optional[int] = None) -> bool:
    """Poll until no invoice is processing.

    Returns ``False`` when ``timeout`` elapses first, or when the interval is
    not positive and invoices are still processing.
    """

    poller = app.poller(interval_ms=interval_ms)
    unsubscribe = app.invoices.subscribe(lambda state: poller.update(invoices=state.invoices))
    logger.info("Watching %d processing invoice(s)", poller.pending_count)
    try:
        async with poller:
            idle = await poller.wait_until_idle(timeout)
            return idle and not poller.is_polling
    finally:
        unsubscribe()
