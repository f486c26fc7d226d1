from __future__ import annotations

import asyncio

import httpx
import pytest

from adjacent_api.core.auth import authorize

from conftest import FakeAuthBackend


def test_missing_key_skips_lookup() -> None:
    backend = FakeAuthBackend({"k": "pro"})
    decision = asyncio.run(authorize(None, backend))
    assert decision.allowed is False
    assert decision.status_code == 401
    assert backend.calls == []


def test_unknown_key() -> None:
    decision = asyncio.run(authorize("nope", FakeAuthBackend({"k": "pro"})))
    assert (decision.allowed, decision.status_code, decision.reason) == (False, 401, "Invalid API key")


def test_wrong_plan() -> None:
    decision = asyncio.run(authorize("k", FakeAuthBackend({"k": "hobby"})))
    assert decision.allowed is False
    assert decision.status_code == 403


def test_required_plan_is_configurable() -> None:
    backend = FakeAuthBackend({"k": "enterprise"})
    assert asyncio.run(authorize("k", backend, required_plan="enterprise")).allowed is True
    assert asyncio.run(authorize("k", backend)).allowed is False


def test_pro_plan_allowed() -> None:
    decision = asyncio.run(authorize("k", FakeAuthBackend({"k": "pro"})))
    assert decision.allowed is True
    assert decision.reason is None


def test_backend_errors_propagate() -> None:
    with pytest.raises(httpx.ConnectError):
        asyncio.run(authorize("k", FakeAuthBackend(error=httpx.ConnectError("down"))))
