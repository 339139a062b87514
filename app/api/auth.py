"""Dashboard authentication endpoints and utilities."""
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from app.core.config import settings

router = APIRouter()

SESSION_COOKIE = "session_token"
SESSION_TTL = timedelta(hours=24)

# In-memory session storage, one entry per signed-in browser
_sessions: dict[str, dict] = {}


class LoginRequest(BaseModel):
    """Login request model."""
    password: str
    account_id: str = "default"


class SessionInfo(BaseModel):
    """Session information response."""
    authenticated: bool
    account_id: Optional[str] = None
    expires_at: Optional[str] = None


def create_session_token() -> str:
    """Generate a secure session token."""
    return secrets.token_urlsafe(32)


def hash_password(password: str) -> str:
    """Hash password for comparison."""
    return hashlib.sha256(password.encode()).hexdigest()


def password_matches(candidate: str) -> bool:
    """Constant-time check against the configured dashboard password."""
    return hmac.compare_digest(
        hash_password(candidate), hash_password(settings.dashboard_password)
    )


def create_session(response: Response, account_id: str) -> str:
    """Create a new session for an account and set the cookie."""
    session_token = create_session_token()
    now = datetime.utcnow()

    _sessions[session_token] = {
        "authenticated": True,
        "account_id": account_id,
        "expires_at": now + SESSION_TTL,
        "created_at": now,
    }

    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        httponly=True,
        max_age=int(SESSION_TTL.total_seconds()),
        samesite="lax",
    )

    return session_token


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from cookie."""
    return request.cookies.get(SESSION_COOKIE)


def verify_session(session_token: Optional[str]) -> bool:
    """Verify if session token is valid and not expired."""
    if not session_token:
        return False

    session = _sessions.get(session_token)
    if not session:
        return False

    if datetime.utcnow() > session["expires_at"]:
        del _sessions[session_token]
        return False

    return session.get("authenticated", False)


async def require_auth(request: Request) -> bool:
    """Dependency to require authentication."""
    if not verify_session(get_session_token(request)):
        raise HTTPException(status_code=401, detail="Authentication required")
    return True


async def current_account_id(request: Request) -> str:
    """Dependency returning the signed-in account id."""
    session_token = get_session_token(request)
    if not verify_session(session_token):
        raise HTTPException(status_code=401, detail="Authentication required")
    return _sessions[session_token]["account_id"]


@router.post("/api/auth/login")
async def login(login_req: LoginRequest, response: Response):
    """Login endpoint."""
    if not password_matches(login_req.password):
        raise HTTPException(status_code=401, detail="Invalid password")

    session_token = create_session(response, login_req.account_id)

    return {
        "success": True,
        "message": "Login successful",
        "account_id": login_req.account_id,
        "expires_at": _sessions[session_token]["expires_at"].isoformat(),
    }


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Logout endpoint."""
    session_token = get_session_token(request)
    if session_token and session_token in _sessions:
        del _sessions[session_token]

    response.delete_cookie(SESSION_COOKIE)

    return {"success": True, "message": "Logged out"}


@router.get("/api/auth/session")
async def get_session_info(request: Request) -> SessionInfo:
    """Get current session information."""
    session_token = get_session_token(request)

    if verify_session(session_token):
        session = _sessions[session_token]
        return SessionInfo(
            authenticated=True,
            account_id=session["account_id"],
            expires_at=session["expires_at"].isoformat(),
        )

    return SessionInfo(authenticated=False)
