"""
Registre central des routers.
- API v1: cart, checkout, confirm (réconciliation), subscriptions, orders
- Health
"""
from fastapi import FastAPI
from storefront.cart import views as cart_views
from storefront.checkout import views as checkout_views
from storefront.orders import views as orders_views
from storefront.reconciliation import views as reconciliation_views
from storefront.subscriptions import views as subscriptions_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(cart_views.router)
    # confirm avant checkout: /api/v1/checkout/confirm ne doit pas être masqué
    app.include_router(reconciliation_views.router)
    app.include_router(checkout_views.router)
    app.include_router(subscriptions_views.router)
    app.include_router(orders_views.router)
    # Health & monitoring
    app.include_router(health_router)
