"""FastAPI dependencies for the security service and CSRF checks."""

from fastapi import HTTPException, Request

from foodlink.app.core.security import SecurityService
from foodlink.app.exceptions import CSRFValidationError


def get_security_service(request: Request) -> SecurityService:
    """Return the service the host stored on ``app.state.security``."""
    service = getattr(request.app.state, "security", None)
    if service is None:
        raise RuntimeError("app.state.security is not set; call create_security_service() at startup")
    return service


async def require_csrf_token(request: Request) -> str:
    """Validate the CSRF token header on a request.

    Usage:
        @app.post("/reviews", dependencies=[Depends(require_csrf_token)])

    Returns:
        The validated token

    Raises:
        HTTPException: 403 if the header is missing, malformed or expired
    """
    service = get_security_service(request)
    token = request.headers.get(service.settings.csrf_header_name, "").strip()

    try:
        service.require_csrf_token(token)
    except CSRFValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e

    return token
