"""
Logique panier pure (pas de passerelle, pas de DB).

- Une ligne par article (identité = kind + id); ajouter un article présent cumule la quantité.
- Quantités toujours entières et strictement positives: décrémenter à 0 supprime la ligne.
- total() est recalculé à chaque appel (aucun cache).
- Devise uniforme: un article d'une autre devise est refusé dès add().
- Au plus un forfait distinct par panier (achat paywall).
- Une boisson indisponible (is_available=False) est refusée.
- submit() gèle le panier et produit une Order immuable.
Un panier n'est pas thread-safe: l'appelant sérialise l'accès.
"""
from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from fomo_backend import config
from fomo_backend.errors import CartConflict, CartFrozen, CurrencyMismatch, InvalidQuantity
from fomo_backend.models.money import Amount, normalize_currency
from fomo_backend.models.payments import LineItem, Order, Purchasable


# module fomo_backend.cart.cart
def _key(item: Purchasable) -> Tuple[str, str]:
    return (item.kind, item.id)


def _check_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity(f"Quantité invalide: {quantity!r}")
    return quantity


class Cart:
    def __init__(self, cart_id: Optional[str] = None, currency: Optional[str] = None):
        self.id = cart_id or f"ord_{uuid4().hex}"
        self._currency = normalize_currency(currency) if currency else None
        self._lines: "OrderedDict[Tuple[str, str], LineItem]" = OrderedDict()
        self._order: Optional[Order] = None

    @property
    def currency(self) -> str:
        return self._currency or config.DEFAULT_CURRENCY

    @property
    def frozen(self) -> bool:
        return self._order is not None

    @property
    def items(self) -> List[LineItem]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def _ensure_mutable(self) -> None:
        if self._order is not None:
            raise CartFrozen(f"Panier {self.id} déjà soumis au paiement")

    def quantity_of(self, item: Purchasable) -> int:
        line = self._lines.get(_key(item))
        return line.quantity if line else 0

    def add(self, item: Purchasable, quantity: int = 1) -> LineItem:
        self._ensure_mutable()
        _check_quantity(quantity)
        if not getattr(item, "is_available", True):
            raise CartConflict(f"Article indisponible: {item.id}", reason="unavailable")
        if self._currency and item.price.currency != self._currency:
            raise CurrencyMismatch(f"{item.price.currency} != {self._currency}")
        key = _key(item)
        if item.kind == "tier" and key not in self._lines:
            if any(k[0] == "tier" for k in self._lines):
                raise CartConflict("Un seul forfait par panier")
        current = self._lines.get(key)
        line = LineItem(item, (current.quantity if current else 0) + quantity)
        self._lines[key] = line
        self._currency = item.price.currency
        return line

    def remove(self, item: Purchasable) -> None:
        self._ensure_mutable()
        self._lines.pop(_key(item), None)

    def increment(self, item: Purchasable) -> LineItem:
        return self.add(item, 1)

    def decrement(self, item: Purchasable) -> Optional[LineItem]:
        """Retire une unité; la ligne disparaît à 0. No-op si l'article est absent."""
        self._ensure_mutable()
        key = _key(item)
        current = self._lines.get(key)
        if current is None:
            return None
        if current.quantity <= 1:
            del self._lines[key]
            return None
        line = LineItem(current.item, current.quantity - 1)
        self._lines[key] = line
        return line

    def total(self) -> Amount:
        total = Amount.zero(self.currency)
        for line in self._lines.values():
            total = total + line.subtotal
        return total

    def submit(self) -> Order:
        """Gèle le panier; un second appel renvoie la même Order."""
        if self._order is not None:
            return self._order
        if not self._lines:
            raise InvalidQuantity("Panier vide")
        self._order = Order(
            id=self.id,
            items=tuple(self._lines.values()),
            total=self.total(),
            created_at=datetime.now(timezone.utc),
        )
        return self._order

    def __len__(self) -> int:
        return len(self._lines)
