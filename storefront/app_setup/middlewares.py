from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import CORS_ORIGINS

"""
Middlewares transverses.
- register_basic_middlewares: CORS pour le front (cookies de session et de panier inclus).
- register_no_cache_middleware: les réponses panier/checkout ne sont jamais mises en cache.
"""

_NO_CACHE_PREFIXES = ("/api/v1/cart", "/api/v1/checkout", "/api/v1/subscriptions", "/api/v1/orders")

def register_basic_middlewares(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_checkout(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(_NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
        return response
