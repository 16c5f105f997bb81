"""
Accès aux données pour la feature 'payments'.
Miroir best-effort des PaymentResult dans la table Supabase 'payments'
(la source de vérité de l'idempotence reste le ledger en mémoire).
"""
import logging
from typing import Optional

import fomo_backend.infra.supabase_client as supabase_client
from fomo_backend.models.payments import PaymentResult

logger = logging.getLogger(__name__)

# module fomo_backend.payments.repository
def result_to_row(result: PaymentResult) -> dict:
    return {
        "id": result.id,
        "transaction_id": result.transaction_id,
        "token_id": result.token_id,
        "order_id": result.reference,
        "amount_minor_units": result.amount.minor_units,
        "currency": result.amount.currency,
        "status": result.status.value,
        "reason": result.reason,
        "created_at": result.timestamp.isoformat(),
    }

def _insert_payment_service(result: PaymentResult) -> Optional[dict]:
    """
    Insert via service-role (bypass RLS), retourne la ligne créée ou None.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payments")
            .insert(result_to_row(result))
            .execute()
        )
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else {"status": "ok"}
    except Exception:
        logger.exception("payments.repository._insert_payment_service failed order_id=%s", result.reference)
        return None

def insert_payment(result: PaymentResult) -> Optional[dict]:
    """Wrapper public; no-op (None) si Supabase n'est pas configuré."""
    if not supabase_client.is_configured():
        return None
    return _insert_payment_service(result)
