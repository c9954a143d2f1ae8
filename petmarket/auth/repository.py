from typing import Optional, Dict, Any
import logging
import petmarket.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l’utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_service_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}

def get_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """Profil applicatif (table profiles): prénom, nom, rôle. None si introuvable/erreur."""
    if not user_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("profiles")
            .select("id, first_name, last_name, email, role")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.warning("auth.repository.get_profile failed user_id=%s", user_id)
        return None
