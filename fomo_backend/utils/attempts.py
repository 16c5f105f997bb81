"""
Poignée d'une tentative asynchrone (tokenisation ou paiement).

- La tentative tourne dans sa propre asyncio.Task; outcome() l'attend sans lui
  propager l'annulation de l'appelant (asyncio.shield).
- cancel() suit la sémantique de concurrent.futures.Future.cancel(): renvoie False
  si la tentative est terminée ou déjà au point de validation (COMMITTING).
- Une tentative annulée via cancel() se résout en Outcome(Cancelled).
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from fomo_backend.errors import Cancelled
from fomo_backend.models.outcome import Outcome

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    INITIATED = "initiated"
    IN_FLIGHT = "in_flight"
    COMMITTING = "committing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"
    CANCELLED = "cancelled"


TERMINAL_STATES = {
    AttemptState.SUCCEEDED,
    AttemptState.FAILED,
    AttemptState.PENDING,
    AttemptState.CANCELLED,
}


class Attempt:
    def __init__(self, run: Callable[["Attempt"], Awaitable[Outcome]], *, name: str = "attempt"):
        self.name = name
        self.state = AttemptState.INITIATED
        self._cancel_requested = False
        self._task: "asyncio.Task[Outcome]" = asyncio.ensure_future(run(self))

    def mark(self, state: AttemptState) -> None:
        logger.debug("%s: %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    def add_done_callback(self, fn) -> None:
        self._task.add_done_callback(fn)

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def cancellable(self) -> bool:
        return not self._task.done() and self.state in (AttemptState.INITIATED, AttemptState.IN_FLIGHT)

    def cancel(self) -> bool:
        if not self.cancellable:
            return False
        self._cancel_requested = True
        return self._task.cancel()

    async def outcome(self) -> Outcome:
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._task.cancelled() and self._cancel_requested:
                if self.state not in TERMINAL_STATES:
                    self.mark(AttemptState.CANCELLED)
                return Outcome.failure(Cancelled(f"{self.name} annulée"))
            raise

    def __await__(self):
        return self.outcome().__await__()


async def run_attempt(attempt: Attempt) -> Outcome:
    """Attend une tentative; si l'appelant est annulé, la tentative l'est aussi (si encore possible)."""
    try:
        return await attempt.outcome()
    except asyncio.CancelledError:
        if not attempt.cancel():
            logger.info("%s: annulation refusée (état=%s)", attempt.name, attempt.state.value)
        raise

