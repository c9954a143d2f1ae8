"""
Taxonomie des erreurs métier.
Chaque erreur est une HTTPException avec un statut fixe et un code stable (clé "error" de la réponse JSON),
ce qui permet aux services de lever directement et aux vues de laisser remonter.
"""
from typing import Optional
from fastapi import HTTPException


class MarketplaceError(HTTPException):
    status_code = 500
    code = "internal_error"
    default_detail = "Erreur interne"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail, headers=headers)


class NotAuthenticated(MarketplaceError):
    status_code = 401
    code = "not_authenticated"
    default_detail = "Authentification requise"


class Unauthorized(MarketplaceError):
    status_code = 403
    code = "unauthorized"
    default_detail = "Accès interdit"


class NotFound(MarketplaceError):
    status_code = 404
    code = "not_found"
    default_detail = "Ressource introuvable"


class EmptyCart(MarketplaceError):
    status_code = 400
    code = "empty_cart"
    default_detail = "Panier vide"


class InvalidOrders(MarketplaceError):
    # Message unique: ne révèle jamais quel contrôle a échoué (id inconnu, propriétaire, statut)
    status_code = 400
    code = "invalid_orders"
    default_detail = "Certaines commandes sont introuvables, ne vous appartiennent pas ou sont déjà payées"


class InvalidAmount(MarketplaceError):
    status_code = 400
    code = "invalid_amount"
    default_detail = "Le montant total doit être supérieur à zéro"


class InvalidSignature(MarketplaceError):
    status_code = 400
    code = "invalid_signature"
    default_detail = "Signature webhook invalide"


class UnavailableItems(MarketplaceError):
    status_code = 409
    code = "unavailable_items"
    default_detail = "Aucun article du panier n'est disponible à l'achat"


class InvalidTransition(MarketplaceError):
    status_code = 409
    code = "invalid_transition"
    default_detail = "Changement de statut non autorisé"


class UpstreamFailure(MarketplaceError):
    status_code = 500
    code = "upstream_failure"
    default_detail = "Service externe indisponible"
