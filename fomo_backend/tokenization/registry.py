"""
Registre des jetons émis: usage unique, expiration, jetons « brûlés ».

Un jeton se lie à la première référence (commande/forfait) débitée avec lui;
il peut être rejoué sur cette même référence (idempotence), jamais sur une autre.
"""
import logging
import time
from typing import Callable, Dict, Optional

from fomo_backend.errors import InvalidToken
from fomo_backend.models.cards import PaymentToken

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("token", "issued_at", "bound_to", "burned")

    def __init__(self, token: PaymentToken, issued_at: float):
        self.token = token
        self.issued_at = issued_at
        self.bound_to: Optional[str] = None
        self.burned = False


class TokenRegistry:
    def __init__(self, ttl_seconds: float = 900.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def register(self, token: PaymentToken) -> None:
        self._entries[token.id] = _Entry(token, self._clock())

    def get(self, token_id: str) -> Optional[PaymentToken]:
        entry = self._entries.get(token_id)
        return entry.token if entry else None

    def _live_entry(self, token_id: str) -> _Entry:
        entry = self._entries.get(token_id or "")
        if entry is None:
            raise InvalidToken("Jeton inconnu", reason="unknown_token")
        if entry.burned:
            raise InvalidToken("Jeton refusé précédemment", reason="token_declined")
        if self._clock() - entry.issued_at > self.ttl_seconds:
            raise InvalidToken("Jeton expiré", reason="token_expired")
        return entry

    def check(self, token_id: str, reference: Optional[str] = None) -> PaymentToken:
        """
        Vérifie qu'un jeton est utilisable (pour la référence donnée si fournie).
        Lève InvalidToken sinon.
        """
        entry = self._live_entry(token_id)
        if reference is not None and entry.bound_to not in (None, reference):
            raise InvalidToken("Jeton déjà utilisé pour une autre commande", reason="token_already_used")
        return entry.token

    def bind(self, token_id: str, reference: str) -> PaymentToken:
        entry = self._live_entry(token_id)
        if entry.bound_to not in (None, reference):
            raise InvalidToken("Jeton déjà utilisé pour une autre commande", reason="token_already_used")
        entry.bound_to = reference
        return entry.token

    def release(self, token_id: str, reference: str) -> None:
        """Annule la liaison après un échec transitoire ou une annulation."""
        entry = self._entries.get(token_id)
        if entry and entry.bound_to == reference:
            entry.bound_to = None

    def burn(self, token_id: str) -> None:
        entry = self._entries.get(token_id)
        if entry:
            entry.burned = True
            logger.info("tokens.burn token=%s", token_id)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.bound_to is None and now - e.issued_at > self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
