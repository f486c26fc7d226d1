from __future__ import annotations

from typing import Protocol

from .models import AuthDecision


class AuthBackend(Protocol):
    async def lookup_plan(self, api_key: str) -> str | None: ...


async def authorize(
    api_key: str | None,
    backend: AuthBackend,
    *,
    required_plan: str = "pro",
) -> AuthDecision:
    """Decide whether ``api_key`` may use the API.

    Only the backend lookup can raise; everything else is expressed in the
    returned decision.
    """

    if not api_key:
        return AuthDecision(allowed=False, reason="Missing API key", status_code=401)

    plan = await backend.lookup_plan(api_key)
    if plan is None:
        return AuthDecision(allowed=False, reason="Invalid API key", status_code=401)

    if plan != required_plan:
        return AuthDecision(
            allowed=False,
            reason=f"API key plan '{plan}' does not allow access",
            status_code=403,
        )

    return AuthDecision(allowed=True)
