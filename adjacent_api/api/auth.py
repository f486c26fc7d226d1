from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request

from ..config import Settings, get_settings
from ..core.auth import AuthBackend, authorize
from ..core.errors import AUTH_ERROR_MESSAGE, UpstreamError

logger = logging.getLogger(__name__)


def get_auth_backend(request: Request) -> AuthBackend | None:
    return getattr(request.app.state, "auth_backend", None)


async def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
    backend: AuthBackend | None = Depends(get_auth_backend),
) -> None:
    """Reject the request unless the X-API-Key header belongs to an allowed plan.

    Does nothing when ``REQUIRE_API_KEY`` is off.
    """

    if not settings.require_api_key:
        return
    if backend is None:
        raise HTTPException(status_code=500, detail="API key backend is not available")

    try:
        decision = await authorize(
            x_api_key,
            backend,
            required_plan=settings.api_key_required_plan,
        )
    except Exception as exc:
        logger.exception("API key lookup failed")
        raise UpstreamError(AUTH_ERROR_MESSAGE) from exc

    if not decision.allowed:
        logger.info("Rejected API request (status=%s, reason=%s)", decision.status_code, decision.reason)
        raise HTTPException(status_code=decision.status_code, detail=decision.reason)
