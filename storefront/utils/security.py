"""
Identification de l'acheteur (l'authentification elle-même reste externe: Supabase Auth).
- Jeton: en-tête Authorization: Bearer <token>, sinon cookie de session.
- require_user: 401 si absent/invalide; optional_user: None pour un invité.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from storefront.infra import supabase_client

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise l'utilisateur renvoyé par supabase.auth.get_user(access_token): {id, email, token}."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {"id": getattr(user, "id", None), "email": getattr(user, "email", None)}
    return {"id": user.get("id"), "email": user.get("email"), "token": access_token}

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user = get_user_from_token(token)
    except Exception:
        logger.warning("auth: token verification failed", exc_info=True)
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Acheteur connecté si un jeton valide est présent, None (invité) sinon."""
    if not _token_from_request(request):
        return None
    try:
        return get_current_user(request)
    except HTTPException:
        return None
