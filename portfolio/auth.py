"""
Service Portfolio
Authentication & Authorization Middleware.

Provides:
    - Bearer-token authentication for /api/v1/* (tokens issued by the
      spreadsheet auth API at login/register and remembered server-side)
    - Editor-only decorator for mutating endpoints
    - CSRF protection for state-changing requests (non-GET/HEAD/OPTIONS)

Security model:
    - All /api/v1/* endpoints require a valid token, except health checks and
      the login/register endpoints
    - Users whose role is "Leitor" are read-only; every other role may edit
    - API_AUTH_ENABLED=false disables auth (development and tests); requests
      then run as a local editor user
"""

import functools
import logging
import threading

from flask import current_app, g, request

from portfolio.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── Roles ────────────────────────────────────────────────────────────────────

READ_ONLY_ROLE = "Leitor"
EDITOR_ROLE = "Editor"

DEV_USER = {
    "name": "Desenvolvedor",
    "email": "dev@localhost",
    "role": EDITOR_ROLE,
    "readOnly": False,
}

PUBLIC_PATHS = ("/api/v1/auth/login", "/api/v1/auth/register")


def normalize_user(raw: dict) -> dict:
    """Keep the user fields the app relies on and derive ``readOnly``."""
    role = str(raw.get("role") or EDITOR_ROLE).strip()
    return {
        "name": str(raw.get("name") or "").strip(),
        "email": str(raw.get("email") or "").strip(),
        "role": role,
        "readOnly": role.casefold() == READ_ONLY_ROLE.casefold(),
    }


class TokenRegistry:
    """Opaque token → user map for the tokens this server handed out."""

    def __init__(self) -> None:
        self._tokens: dict[str, dict] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def remember(self, token: str, user: dict) -> dict:
        user = normalize_user(user)
        with self._lock:
            self._tokens[token] = user
        return user

    def lookup(self, token: str | None) -> dict | None:
        if not token:
            return None
        return self._tokens.get(token)

    def forget(self, token: str | None) -> bool:
        with self._lock:
            return self._tokens.pop(token, None) is not None


def _is_auth_enabled() -> bool:
    """Check whether authentication is enabled in the app config."""
    try:
        return str(current_app.config.get("API_AUTH_ENABLED", "true")).lower() not in ("false", "0", "no", "off")
    except RuntimeError:
        # Outside app context
        return True


def get_bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def current_user() -> dict:
    return getattr(g, "current_user", None) or DEV_USER


# ── Authorization decorator ──────────────────────────────────────────────────

def require_editor(f):
    """
    Decorator: reject read-only users with 403.

    Usage:
        @services_bp.route("/services", methods=["POST"])
        @require_editor
        def create_service(): ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        if user.get("readOnly"):
            logger.warning("Read-only user %s tried %s %s", user.get("email"), request.method, request.path)
            return api_error(E.FORBIDDEN, "Read-only users cannot modify data")
        return f(*args, **kwargs)
    return decorated


# ── CSRF protection for API ──────────────────────────────────────────────────

def _check_content_type():
    """
    For state-changing requests (POST/PUT/PATCH/DELETE), require
    Content-Type: application/json. HTML forms cannot send that content type.
    """
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length and request.content_length > 0:
            return api_error(
                E.VALIDATION_INVALID,
                "Content-Type must be application/json for state-changing requests",
                status=415,
            )
    return None


# ── App-level before_request hook installer ──────────────────────────────────

def init_auth(app, tokens: TokenRegistry):
    """
    Install authentication middleware on the Flask app.

    - Attaches a before_request hook for API routes
    - Skips health checks, login/register and pre-flight requests
    """
    @app.before_request
    def _before_request_auth():
        if not request.path.startswith("/api/v1/"):
            return None
        if request.path.startswith("/api/v1/health"):
            return None
        if request.method == "OPTIONS":
            return None

        csrf_error = _check_content_type()
        if csrf_error:
            return csrf_error

        if request.path in PUBLIC_PATHS:
            return None

        if not _is_auth_enabled():
            g.current_user = DEV_USER
            g.auth_token = None
            return None

        token = get_bearer_token()
        if not token:
            return api_error(E.UNAUTHORIZED, "Authentication required. Provide an Authorization: Bearer header.")

        user = tokens.lookup(token)
        if user is None:
            logger.warning("Unknown token attempt: %s...", token[:8])
            return api_error(E.UNAUTHORIZED, "Invalid or expired session. Please log in again.")

        g.current_user = user
        g.auth_token = token
        return None

    logger.info("Auth middleware installed (enabled=%s)", app.config.get("API_AUTH_ENABLED"))
