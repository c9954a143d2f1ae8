"""
Diagnostics de disponibilité: configuration présente et accès aux tables Supabase.
"""
from typing import Any, Dict
from datetime import datetime, timezone
from urllib.parse import urlparse
import socket

from petmarket import config

CHECKED_TABLES = ("listings", "cart", "orders")

def health_info() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": config.APP_NAME,
        "version": config.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "stripe": bool(config.STRIPE_SECRET_KEY),
        "supabase": bool(config.SUPABASE_URL and config.SUPABASE_SERVICE_KEY),
        "missing": config.required_settings_missing(),
    }

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("*").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def _check_dns(hostname: str | None) -> Dict[str, Any]:
    if not hostname:
        return {"dns_ok": None, "dns_error": None}
    try:
        socket.getaddrinfo(hostname, 443)
        return {"dns_ok": True, "dns_error": None}
    except Exception as e:
        return {"dns_ok": False, "dns_error": str(e)}

def health_supabase_info(client, check_dns: bool = True) -> Dict[str, Any]:
    """Sonde les tables utilisées par le tunnel d'achat (listings, cart, orders, payment_events)."""
    parsed = urlparse(config.SUPABASE_URL) if config.SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    info: Dict[str, Any] = {
        "supabase_url": config.SUPABASE_URL,
        "hostname": hostname,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    info.update(_check_dns(hostname) if check_dns else {"dns_ok": None, "dns_error": None})
    try:
        for t in CHECKED_TABLES + (config.PAYMENT_EVENTS_TABLE,):
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info
