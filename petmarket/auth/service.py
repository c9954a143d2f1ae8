from typing import Dict, Any
from .repository import get_user_from_access_token as _repo_get_user_from_token, get_profile

def determine_role(metadata: Dict[str, Any] | None, profile: Dict[str, Any] | None = None) -> str:
    role_lower = str((profile or {}).get("role") or (metadata or {}).get("role") or "").lower()
    if role_lower in ("admin", "seller"):
        return role_lower
    return "buyer"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, metadata, role, first_name, last_name, token}
    - Le profil (table profiles) est lu en best-effort pour le rôle et le nom affiché
    """
    raw = _repo_get_user_from_token(access_token)
    uid = raw.get("id")
    metadata = raw.get("user_metadata") or {}
    profile = get_profile(uid) if uid else None
    return {
        "id": uid,
        "email": raw.get("email"),
        "metadata": metadata,
        "role": determine_role(metadata, profile),
        "first_name": (profile or {}).get("first_name"),
        "last_name": (profile or {}).get("last_name"),
        "token": access_token,
    }
