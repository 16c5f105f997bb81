from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from fomo_backend.health.service import health_supabase_info
from fomo_backend.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    state = request.app.state
    gateway = getattr(state, "gateway", None)
    catalog = getattr(state, "catalog", None)
    return {
        "ok": True,
        "gateway": getattr(gateway, "name", None),
        "tiers": len(catalog) if catalog is not None else 0,
    }

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return JSONResponse(rate_limit_health_info(request))

@router.get("/supabase")
def health_supabase():
    return JSONResponse(health_supabase_info())
