import jwt
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import create_client

from shared_ledger.config import JWT_ALGORITHM, JWT_SECRET, SUPABASE_KEY, SUPABASE_URL

_supabase = None


def get_supabase_client():
    """Shared anon-key client, created on first use."""
    global _supabase
    if _supabase is not None:
        return _supabase
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise HTTPException(status_code=500, detail="SUPABASE_URL and SUPABASE_KEY must be set in .env")
    _supabase = create_client(SUPABASE_URL, SUPABASE_KEY)
    return _supabase


# JWT auth dependency for this service
security = HTTPBearer()


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Decode the bearer JWT; the claims dict carries sub, email and user_metadata."""
    try:
        payload = dict(jwt.decode(credentials.credentials, JWT_SECRET, algorithms=[JWT_ALGORITHM]))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token: missing sub")
    return payload


def display_name_for(user: dict) -> str:
    """Name the expense forms store for the signed-in user."""
    meta = user.get("user_metadata") or {}
    email = user.get("email") or ""
    return meta.get("name") or (email.split("@")[0] if email else "") or "Usuario"
