"""
Registre des résultats de paiement et des commandes gelées.

- Un PaymentResult par tentative, immuable, indexé par son id.
- Dernier résultat par référence (commande/forfait): base de l'idempotence.
- Les tentatives annulées ou en erreur réseau n'y laissent aucune trace.
"""
import logging
from typing import Callable, Dict, List, Optional

from fomo_backend.errors import CartConflict
from fomo_backend.models.payments import Order, PaymentResult, PaymentStatus

logger = logging.getLogger(__name__)

# statuts qui interdisent un nouveau débit sur la même référence
BLOCKING_STATUSES = {PaymentStatus.SUCCESS, PaymentStatus.PENDING}


class PaymentLedger:
    def __init__(self, mirror: Optional[Callable[[PaymentResult], object]] = None):
        self._results: Dict[str, PaymentResult] = {}
        self._by_reference: Dict[str, List[str]] = {}
        self._orders: Dict[str, Order] = {}
        self._mirror = mirror

    def record(self, result: PaymentResult) -> PaymentResult:
        if result.id in self._results:
            raise ValueError(f"PaymentResult déjà enregistré: {result.id}")
        self._results[result.id] = result
        self._by_reference.setdefault(result.reference, []).append(result.id)
        if self._mirror is not None:
            try:
                self._mirror(result)
            except Exception:
                logger.exception("payments.ledger mirror failed result=%s", result.id)
        return result

    def get(self, result_id: str) -> Optional[PaymentResult]:
        return self._results.get(result_id)

    def history(self, reference: str) -> List[PaymentResult]:
        return [self._results[i] for i in self._by_reference.get(reference, [])]

    def latest(self, reference: str) -> Optional[PaymentResult]:
        ids = self._by_reference.get(reference)
        return self._results[ids[-1]] if ids else None

    def settled(self, reference: str, token_id: Optional[str] = None) -> Optional[PaymentResult]:
        """
        Dernier résultat bloquant (success/pending) pour la référence, sinon None.
        Avec token_id, seuls les résultats de ce jeton comptent (forfait acheté par acheteur).
        """
        history = self.history(reference)
        if token_id is not None:
            history = [r for r in history if r.token_id == token_id]
        if history and history[-1].status in BLOCKING_STATUSES:
            return history[-1]
        return None

    def register_order(self, order: Order) -> Order:
        existing = self._orders.get(order.id)
        if existing is not None and existing.total != order.total:
            raise CartConflict(f"Commande {order.id} déjà enregistrée avec un autre total")
        self._orders[order.id] = order
        return order

    def order(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def __len__(self) -> int:
        return len(self._results)
