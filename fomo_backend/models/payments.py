"""
Commandes gelées et résultats de paiement (enregistrements terminaux).
"""
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union

from fomo_backend.models.catalog import Drink, PricingTier
from fomo_backend.models.money import Amount

Purchasable = Union[Drink, PricingTier]


class LineItem(NamedTuple):
    item: Purchasable
    quantity: int

    @property
    def subtotal(self) -> Amount:
        return self.item.price * self.quantity


class Order(NamedTuple):
    id: str
    items: Tuple[LineItem, ...]
    total: Amount
    created_at: datetime

    def to_dict(self):
        return {
            "orderId": self.id,
            "items": [
                {"id": li.item.id, "kind": li.item.kind, "quantity": li.quantity}
                for li in self.items
            ],
            "totalMinorUnits": self.total.minor_units,
            "currency": self.total.currency,
        }


class PaymentStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class PaymentResult(NamedTuple):
    id: str
    transaction_id: str
    token_id: str
    reference: str
    amount: Amount
    status: PaymentStatus
    timestamp: datetime
    reason: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self.status is PaymentStatus.SUCCESS

    def to_dict(self):
        body = {
            "resultId": self.id,
            "status": self.status.value,
            "transactionId": self.transaction_id,
            "orderId": self.reference,
            "amountMinorUnits": self.amount.minor_units,
            "currency": self.amount.currency,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.reason:
            body["reason"] = self.reason
        return body
