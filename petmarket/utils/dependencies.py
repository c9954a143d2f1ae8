"""
Dépendances FastAPI fournissant le client Supabase adapté à chaque requête.
- get_user_client: client RLS au nom de l'utilisateur authentifié (panier, commandes, confirmation)
- get_service_client: client service-role (PaymentIntent, webhook)
Les tests remplacent ces dépendances par un faux client via app.dependency_overrides.
"""
from typing import Any, Dict
from fastapi import Depends
import petmarket.infra.supabase_client as supabase_client
from petmarket.utils.security import require_user

def get_user_client(user: Dict[str, Any] = Depends(require_user)):
    return supabase_client.get_user_supabase(user.get("token") or "")

def get_service_client():
    return supabase_client.get_service_supabase()
