from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from fomo_backend.pricing.catalog import PricingCatalog

router = APIRouter(prefix="/pricing", tags=["Pricing"])

def get_catalog(request: Request) -> PricingCatalog:
    return request.app.state.catalog

@router.get("/{venue_id}")
def list_venue_tiers(venue_id: str, catalog: PricingCatalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    """Forfaits disponibles pour l'établissement: [{id, name, priceMinorUnits, currency, description}]."""
    return [t.to_dict() for t in catalog.tiers_for_venue(venue_id)]

@router.get("/{venue_id}/drinks")
def list_venue_drinks(venue_id: str, catalog: PricingCatalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return [d.to_dict() for d in catalog.drinks_for_venue(venue_id)]
