import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from fomo_backend.cart.cart import Cart
from fomo_backend.errors import TierNotFound
from fomo_backend.models.money import Amount
from fomo_backend.payments.processor import PaymentProcessor
from fomo_backend.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])

class ChargeRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    amount_minor_units: int = Field(alias="amountMinorUnits")
    currency: str = Field(min_length=3, max_length=3)
    order_id: str = Field(alias="orderId", min_length=1)

class OrderLine(BaseModel):
    id: str
    quantity: int = 1

class OrderRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")
    currency: Optional[str] = None
    items: List[OrderLine] = Field(min_length=1)

def get_processor(request: Request) -> PaymentProcessor:
    return request.app.state.processor

# module fomo_backend.payments.views
@router.post("/charge", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def charge(req: ChargeRequestBody, processor: PaymentProcessor = Depends(get_processor)):
    """
    Débite un jeton pour un forfait ou une commande.
    - Entrée JSON: { token, amountMinorUnits, currency, orderId }
    - Réponse: { resultId, status, reason?, transactionId, timestamp, replayed }
    - Rejouer la même requête après succès renvoie le même résultat (replayed=true), sans nouveau débit.
    - Erreurs: 402 payment_declined, 404 tier_not_found, 409 amount_mismatch / already_settled,
      400 invalid_token, 502 network_error
    """
    amount = Amount.from_minor_units(req.amount_minor_units, req.currency)
    outcome = await processor.charge(req.token, amount, req.order_id)
    result = outcome.unwrap()
    body = result.to_dict()
    body["replayed"] = outcome.replayed
    return body

@router.get("/charge/{order_id}")
def get_charge(order_id: str, processor: PaymentProcessor = Depends(get_processor)):
    """Dernier résultat enregistré pour la référence; 404 si aucun."""
    result = processor.result_for(order_id)
    if result is None:
        raise TierNotFound(f"Aucun paiement pour {order_id}", reason="no_result")
    return result.to_dict()

@router.post("/orders", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def create_order(req: OrderRequestBody, processor: PaymentProcessor = Depends(get_processor)):
    """
    Construit un panier (forfait et/ou boissons du catalogue), le gèle et le rend payable.
    - Entrée JSON: { orderId?, currency?, items: [ { id, quantity } ] }
    - Réponse: { orderId, items, totalMinorUnits, currency }
    - Erreurs: 404 article inconnu, 400 invalid_quantity / currency_mismatch, 409 cart_conflict
    """
    catalog = processor.catalog
    cart = Cart(req.order_id, currency=req.currency)
    for line in req.items:
        item = catalog.find_tier(line.id) or catalog.drink(line.id)
        if item is None:
            raise TierNotFound(f"Article introuvable: {line.id}")
        cart.add(item, line.quantity)
    order = processor.register_order(cart.submit())
    logger.info("orders.created order=%s total=%s lines=%s", order.id, order.total, len(order.items))
    return order.to_dict()
