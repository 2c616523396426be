"""
storefront: panier, checkout et orchestration des paiements (Stripe) d'une boutique solidaire.
"""
__version__ = "0.1.0"
