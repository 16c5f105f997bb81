"""
Taxonomie des erreurs du checkout.

Chaque erreur porte un code stable (distinguable par l'appelant), un statut HTTP
et un message lisible. Les erreurs de validation locale sont levées de manière
synchrone; tokenize/charge les renvoient dans un Outcome (voir models.outcome).
"""
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    code = "checkout_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str = "", *, reason: Optional[str] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.reason:
            body["reason"] = self.reason
        return body


# Validation locale
class InvalidAmount(CheckoutError):
    code = "invalid_amount"


class CurrencyMismatch(CheckoutError):
    code = "currency_mismatch"


class InvalidQuantity(CheckoutError):
    code = "invalid_quantity"


class CartConflict(CheckoutError):
    code = "cart_conflict"
    status_code = 409


class CartFrozen(CheckoutError):
    code = "cart_frozen"
    status_code = 409


# Tokenisation
class InvalidCardNumber(CheckoutError):
    code = "invalid_card_number"


class ExpiredCard(CheckoutError):
    code = "expired_card"


class InvalidToken(CheckoutError):
    code = "invalid_token"


# Préconditions du charge
class TierNotFound(CheckoutError):
    code = "tier_not_found"
    status_code = 404


class AmountMismatch(CheckoutError):
    code = "amount_mismatch"
    status_code = 409


# Règlement
class PaymentDeclined(CheckoutError):
    code = "payment_declined"
    status_code = 402

    def __init__(self, reason: str, message: str = "", *, hard: bool = True, result=None):
        super().__init__(message or f"Paiement refusé ({reason})", reason=reason)
        self.hard = hard
        self.result = result

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.result is not None:
            body["resultId"] = self.result.id
        return body


class NetworkError(CheckoutError):
    code = "network_error"
    status_code = 502
    retryable = True


class Cancelled(CheckoutError):
    code = "cancelled"
    status_code = 499
    retryable = True


class AlreadySettled(CheckoutError):
    code = "already_settled"
    status_code = 409

    def __init__(self, result, message: str = ""):
        super().__init__(message or f"Référence déjà réglée ({result.reference})")
        self.result = result

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["transactionId"] = self.result.transaction_id
        return body
