"""
Accès aux données pour la feature 'pricing'.
Tables Supabase: pricing_tiers(id, name, price, currency, description, venue_id, features, duration_days)
                 drinks(id, name, price, currency, venue_id, category, description, is_available)
Repli sur le catalogue intégré si Supabase n'est pas configuré ou échoue.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import fomo_backend.infra.supabase_client as supabase_client
from fomo_backend import config
from fomo_backend.errors import InvalidAmount
from fomo_backend.models.catalog import Drink, PricingTier
from fomo_backend.models.money import Amount

logger = logging.getLogger(__name__)

# module fomo_backend.pricing.repository
def default_tiers(currency: str = "USD") -> List[PricingTier]:
    """Forfaits par défaut (paywall), identiques pour tous les établissements."""
    return [
        PricingTier("day-pass", "Day Pass", Amount("9.99", currency), "Accès pour la journée", duration_days=1),
        PricingTier("tier_standard", "Standard", Amount("19.99", currency), "Standard access",
                    features=("Standard Entry", "Digital Pass"), duration_days=7),
        PricingTier("tier_vip", "VIP", Amount("49.99", currency), "Premium experience with exclusive perks",
                    features=("Priority Entry", "VIP Lounge Access"), duration_days=30),
        PricingTier("tier_premium", "Premium", Amount("99.99", currency), "Ultimate luxury experience",
                    features=("Instant VIP Entry", "Private Table Service", "Personal Concierge"), duration_days=90),
    ]

def default_drinks(currency: str = "USD") -> List[Drink]:
    return [
        Drink("drink_mojito", "Classic Mojito", Amount("12.99", currency), category="Cocktails",
              description="Fresh mint, lime juice, sugar, white rum, and soda water"),
        Drink("drink_margarita", "Margarita", Amount("10.99", currency), category="Cocktails"),
        Drink("drink_beer", "Draft Beer", Amount("6.50", currency), category="Beer"),
    ]

def _price(row: Dict[str, Any]) -> Amount:
    currency = row.get("currency") or config.DEFAULT_CURRENCY
    if row.get("price_minor_units") is not None:
        return Amount.from_minor_units(int(row["price_minor_units"]), currency)
    # price stocké en numeric/text: on passe par str pour ne jamais créer de float
    return Amount(str(row.get("price")), currency)

def row_to_tier(row: Dict[str, Any]) -> Optional[PricingTier]:
    """
    Convertit une ligne 'pricing_tiers' en PricingTier.
    - Retourne None (ligne ignorée) si id vide ou prix invalide.
    """
    tier_id = str(row.get("id") or "").strip()
    if not tier_id:
        return None
    try:
        price = _price(row)
    except InvalidAmount:
        logger.warning("pricing.repository.row_to_tier invalid price id=%s", tier_id)
        return None
    return PricingTier(
        id=tier_id,
        name=row.get("name") or tier_id,
        price=price,
        description=row.get("description") or "",
        venue_id=row.get("venue_id") or None,
        features=tuple(row.get("features") or ()),
        duration_days=row.get("duration_days"),
    )

def row_to_drink(row: Dict[str, Any]) -> Optional[Drink]:
    drink_id = str(row.get("id") or "").strip()
    if not drink_id:
        return None
    try:
        price = _price(row)
    except InvalidAmount:
        logger.warning("pricing.repository.row_to_drink invalid price id=%s", drink_id)
        return None
    return Drink(
        id=drink_id,
        name=row.get("name") or drink_id,
        price=price,
        venue_id=row.get("venue_id") or None,
        category=row.get("category") or "",
        description=row.get("description") or "",
        is_available=bool(row.get("is_available", True)),
    )

def fetch_tier_rows() -> List[dict]:
    """Lignes brutes de 'pricing_tiers'; [] en cas d'erreur."""
    try:
        res = supabase_client.get_supabase().table("pricing_tiers").select("*").execute()
        return res.data or []
    except Exception:
        logger.exception("pricing.repository.fetch_tier_rows failed")
        return []

def fetch_drink_rows() -> List[dict]:
    try:
        res = supabase_client.get_supabase().table("drinks").select("*").execute()
        return res.data or []
    except Exception:
        logger.exception("pricing.repository.fetch_drink_rows failed")
        return []

def load_catalog_entries() -> Tuple[List[PricingTier], List[Drink]]:
    """
    Charge forfaits et boissons pour PricingCatalog.refresh().
    - Supabase non configuré ou aucune ligne exploitable: catalogue intégré.
    """
    currency = config.DEFAULT_CURRENCY
    if not supabase_client.is_configured():
        return default_tiers(currency), default_drinks(currency)
    tiers = [t for t in (row_to_tier(r) for r in fetch_tier_rows()) if t]
    drinks = [d for d in (row_to_drink(r) for r in fetch_drink_rows()) if d]
    if not tiers:
        logger.warning("pricing.repository: aucun forfait en base, catalogue intégré utilisé")
        tiers = default_tiers(currency)
    if not drinks:
        drinks = default_drinks(currency)
    return tiers, drinks
