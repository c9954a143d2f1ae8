"""
Registre central des routers (API uniquement).
- Panier: /api/cart
- Commandes: /api/orders
- Paiements Stripe: /api/stripe
- Health: /api/health
"""
from fastapi import FastAPI
from petmarket.cart import views as cart_views
from petmarket.orders import views as orders_views
from petmarket.payments import views as payments_views
from petmarket.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(cart_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
