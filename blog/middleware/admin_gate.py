"""
Admin Gate Middleware

Guards the admin surface. Requests under the protected prefixes must carry a
session cookie whose session holds an allowed role claim.

API paths (/api/...) are answered with JSON errors; page paths are redirected
to the login page, or to the home page when the role is insufficient.
"""

import logging
from urllib.parse import quote

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from blog.constants.roles import ADMIN_ROLES
from blog.exception_handlers import error_response
from blog.exceptions import ErrorCode

logger = logging.getLogger(__name__)


class AdminGateMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        cookie_name: str,
        protected_prefixes: tuple[str, ...] = ("/admin", "/api/admin"),
        allowed_roles: tuple[str, ...] = ADMIN_ROLES,
        login_path: str = "/login",
    ):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.protected_prefixes = protected_prefixes
        self.allowed_roles = allowed_roles
        self.login_path = login_path

    def _is_protected(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix + "/") for prefix in self.protected_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        path = request.url.path
        if not self._is_protected(path):
            return await call_next(request)

        is_api = path.startswith("/api/")
        session_id = request.cookies.get(self.cookie_name)

        session = None
        if session_id:
            try:
                session = await request.app.state.sessions.get_session(session_id)
            except Exception as e:
                logger.error(f"Session store unavailable while gating {path}: {e}")
                if is_api:
                    return error_response(
                        request,
                        status.HTTP_503_SERVICE_UNAVAILABLE,
                        "Session service unavailable",
                        ErrorCode.SERVICE_UNAVAILABLE,
                    )
                return self._redirect_to_login(path)

        if not session:
            logger.info(f"Unauthenticated request to {path}")
            if is_api:
                return error_response(
                    request,
                    status.HTTP_401_UNAUTHORIZED,
                    "You must be signed in to do this",
                    ErrorCode.AUTH_FAILED,
                )
            return self._redirect_to_login(path)

        role = session.get("role")
        if role not in self.allowed_roles:
            logger.warning(f"Role '{role}' refused for {path} (user {session.get('user_id')})")
            if is_api:
                return error_response(
                    request,
                    status.HTTP_403_FORBIDDEN,
                    f"Role '{role}' not authorized for this resource",
                    ErrorCode.AUTH_PERMISSION_DENIED,
                )
            return RedirectResponse("/", status_code=status.HTTP_307_TEMPORARY_REDIRECT)

        return await call_next(request)

    def _redirect_to_login(self, path: str) -> RedirectResponse:
        return RedirectResponse(
            f"{self.login_path}?callbackUrl={quote(path, safe='')}",
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        )
