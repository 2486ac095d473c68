"""Wallet DID recognition - async lifecycle around :class:`AuthRouter`.

Presentation code wants three things from route resolution: the latest
verdict, whether a resolution is in flight, and an error message when one
failed. :class:`WalletDIDRecognition` owns that state.

Overlapping calls are ordered by a monotonically increasing sequence number.
A resolution is applied only if its number is higher than the last applied
one; anything older is discarded when it lands, whatever the timing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from personapass.identity.models import AuthRouteResult
from personapass.identity.router import AuthRouter

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to determine user route"


@dataclass(frozen=True)
class RecognitionState:
    """Snapshot of what presentation code renders from."""

    route_result: AuthRouteResult | None
    is_loading: bool
    error: str | None


Listener = Callable[[RecognitionState], None]


class WalletDIDRecognition:
    """Load-on-activate, refreshable route resolution with error capture.

    Usage::

        recognition = WalletDIDRecognition(AuthRouter(provider, cache))
        await recognition.activate()          # first resolution
        ...
        await recognition.refresh()           # after registration

    ``route_result`` keeps its previous value when a resolution fails, so
    "never resolved" is ``route_result is None and error is not None`` and
    "failed after succeeding once" is both fields set.

    With ``refresh_on_wallet_change=True`` the instance subscribes to the
    router's wallet provider and refreshes on every change event (account
    switch, reconnect, disconnect). Call :meth:`close` to stop listening.
    """

    def __init__(self, router: AuthRouter, refresh_on_wallet_change: bool = False) -> None:
        self.router = router
        self.route_result: AuthRouteResult | None = None
        self.error: str | None = None
        self._activated = False
        self._issued_seq = 0
        self._applied_seq = 0
        self._listeners: list[Listener] = []
        self._wallet_tasks: set[asyncio.Task] = set()
        self._unsubscribe_wallet: Callable[[], None] | None = None
        if refresh_on_wallet_change:
            self._unsubscribe_wallet = router.wallet_provider.subscribe(self._on_wallet_change)

    @property
    def is_loading(self) -> bool:
        return not self._activated or self._applied_seq < self._issued_seq

    def snapshot(self) -> RecognitionState:
        return RecognitionState(self.route_result, self.is_loading, self.error)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot on every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop following wallet change events and cancel refreshes they started."""
        if self._unsubscribe_wallet is not None:
            self._unsubscribe_wallet()
            self._unsubscribe_wallet = None
        for task in list(self._wallet_tasks):
            task.cancel()

    def _on_wallet_change(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Wallet changed outside an event loop; call refresh() to pick it up")
            return
        task = loop.create_task(self.refresh())
        self._wallet_tasks.add(task)
        task.add_done_callback(self._wallet_tasks.discard)

    async def activate(self) -> RecognitionState:
        """Run the initial resolution. Later calls are no-ops."""
        if self._activated:
            return self.snapshot()
        self._activated = True
        return await self.refresh()

    async def refresh(self) -> RecognitionState:
        """Resolve the route again. Never raises."""
        self._activated = True
        self._issued_seq += 1
        seq = self._issued_seq
        self._notify()

        try:
            result = await self.router.determine_user_route()
        except Exception as e:  # Intentionally broad: the UI must never see a raw failure
            logger.error("Wallet DID recognition failed: %s", e)
            self._apply(seq, error=str(e) or DEFAULT_ERROR_MESSAGE)
        else:
            if result.is_error:
                self._apply(seq, error=result.reason or DEFAULT_ERROR_MESSAGE)
            else:
                self._apply(seq, result=result)
        finally:
            # A cancelled resolution still settles its number; state is left as is.
            if seq > self._applied_seq:
                self._applied_seq = seq
                self._notify()
        return self.snapshot()

    def _apply(
        self,
        seq: int,
        result: AuthRouteResult | None = None,
        error: str | None = None,
    ) -> None:
        if seq <= self._applied_seq:
            logger.debug("Discarding stale route resolution #%d (applied #%d)", seq, self._applied_seq)
            return
        self._applied_seq = seq
        if error is not None:
            self.error = error
        else:
            self.route_result = result
            self.error = None
        self._notify()

    def _notify(self) -> None:
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # Intentionally broad: one bad listener must not starve the rest
                logger.exception("Recognition listener failed")
