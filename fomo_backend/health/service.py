from urllib.parse import urlparse
import socket
from fomo_backend.config import SUPABASE_URL
import fomo_backend.infra.supabase_client as supabase_client

TABLES = ("pricing_tiers", "drinks", "payments")

def _check_table(client, name: str):
    try:
        res = client.table(name).select("*").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    info = {
        "configured": supabase_client.is_configured(),
        "hostname": hostname,
        "dns_ok": None,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    if not info["configured"]:
        info["error"] = "SUPABASE_URL/SUPABASE_KEY manquants"
        return info
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            info["dns_ok"] = True
        except OSError as e:
            info["dns_ok"] = False
            info["error"] = str(e)
            return info
    try:
        client = supabase_client.get_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info
