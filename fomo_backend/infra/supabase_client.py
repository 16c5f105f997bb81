from typing import Optional
from supabase import create_client, Client
from fomo_backend.config import SUPABASE_URL, SUPABASE_KEY, SUPABASE_SERVICE_KEY

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def is_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_KEY)

def get_supabase() -> Client:
    global _supabase
    if not is_configured():
        raise RuntimeError("SUPABASE_URL/SUPABASE_KEY manquants pour get_supabase()")
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_KEY)
    return _supabase

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS): écriture du miroir des paiements côté serveur.
    """
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase
