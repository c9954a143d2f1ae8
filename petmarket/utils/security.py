from fastapi import Request, HTTPException, Depends
from typing import Dict, Any
from petmarket.utils.errors import NotAuthenticated

def get_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return ""

def get_current_user(request: Request) -> Dict[str, Any]:
    # Le front parle au serveur uniquement en Bearer (jeton Supabase de la session)
    token = get_bearer_token(request)
    if not token:
        raise NotAuthenticated("Authentification requise: fournissez un jeton Bearer valide")

    try:
        from petmarket.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
        if not user.get("id"):
            raise NotAuthenticated("Session expirée ou invalide")
        return user
    except HTTPException:
        raise
    except Exception:
        raise NotAuthenticated("Session expirée ou invalide")

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
