"""
Tests for Family Service Resolver

Requests are served by httpx.MockTransport; no network access.
"""

import json
from unittest.mock import patch
from uuid import uuid4

import httpx
import pytest

from rollcall.family import FamilyServiceError, FamilyServiceResolver

BASE_URL = "https://family.test/api/v1"


def _resolver(handler) -> FamilyServiceResolver:
    return FamilyServiceResolver(
        base_url=BASE_URL + "/", api_token="test_token", transport=httpx.MockTransport(handler)
    )


def _child(child_id, **overrides) -> dict:
    data = {
        "id": str(child_id),
        "first_name": "Kofi",
        "last_name": "Boateng",
        "allergies": "Dairy",
        "support_needs": None,
        "emergency_contact": "+233201111111",
        "has_consent": True,
    }
    data.update(overrides)
    return data


class TestFamilyServiceResolverInitialization:
    """Test resolver initialization."""

    def test_trailing_slash_is_stripped(self):
        resolver = FamilyServiceResolver(base_url=BASE_URL + "/")
        assert resolver.base_url == BASE_URL

    def test_initialization_from_settings(self):
        """Test resolver initializes from settings."""
        with patch("rollcall.family.resolver.settings") as mock_settings:
            mock_settings.FAMILY_SERVICE_URL = BASE_URL
            mock_settings.FAMILY_SERVICE_API_TOKEN = "settings_token"
            mock_settings.FAMILY_SERVICE_TIMEOUT_SECONDS = 3.0

            resolver = FamilyServiceResolver.from_settings()

            assert resolver.base_url == BASE_URL
            assert resolver.api_token == "settings_token"
            assert resolver.timeout == 3.0


class TestResolveChild:
    """Test single-child lookups."""

    @pytest.mark.asyncio
    async def test_resolve_child_name(self):
        child_id = uuid4()
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_child(child_id))

        name, not_found = await _resolver(handler).resolve_child_name(child_id)

        assert (name, not_found) == ("Kofi Boateng", False)
        assert seen[0].url == httpx.URL(f"{BASE_URL}/children/{child_id}")
        assert seen[0].headers["Authorization"] == "Bearer test_token"

    @pytest.mark.asyncio
    async def test_unknown_child_name(self):
        resolver = _resolver(lambda request: httpx.Response(404))

        assert await resolver.resolve_child_name(uuid4()) == ("Unknown Child", True)

    @pytest.mark.asyncio
    async def test_resolve_child_safety_info(self):
        child_id = uuid4()
        resolver = _resolver(lambda request: httpx.Response(200, json=_child(child_id)))

        info = await resolver.resolve_child_safety_info(child_id)

        assert info is not None
        assert info.allergies == "Dairy"
        assert info.emergency_contact == "+233201111111"

    @pytest.mark.asyncio
    async def test_safety_info_for_unknown_child_is_none(self):
        resolver = _resolver(lambda request: httpx.Response(404))

        assert await resolver.resolve_child_safety_info(uuid4()) is None


class TestResolveChildrenInfo:
    """Test the batch lookup."""

    @pytest.mark.asyncio
    async def test_batch_lookup_uses_single_request(self):
        known, unknown = uuid4(), uuid4()
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"children": [_child(known, has_consent=False)]})

        resolved = await _resolver(handler).resolve_children_info([known, unknown])

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert json.loads(requests[0].content) == {"ids": [str(known), str(unknown)]}
        assert list(resolved) == [known]
        assert resolved[known].full_name == "Kofi Boateng"
        assert resolved[known].has_consent is False

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await _resolver(handler).resolve_children_info([]) == {}

    @pytest.mark.asyncio
    async def test_malformed_child_raises(self):
        resolver = _resolver(
            lambda request: httpx.Response(200, json={"children": [{"first_name": "x"}]})
        )

        with pytest.raises(FamilyServiceError):
            await resolver.resolve_children_info([uuid4()])


class TestConsent:
    """Test consent lookups."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("response", "expected"),
        [
            (httpx.Response(200, json={"active": True}), True),
            (httpx.Response(200, json={"active": False}), False),
            (httpx.Response(404), False),
        ],
    )
    async def test_has_active_consent(self, response, expected):
        child_id = uuid4()
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return response

        assert await _resolver(handler).has_active_consent(child_id) is expected
        assert seen[0].url.path.endswith(
            f"/children/{child_id}/consents/provider_data_sharing"
        )


class TestErrors:
    """Test failure mapping."""

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        resolver = _resolver(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(FamilyServiceError, match="503"):
            await resolver.resolve_child_name(uuid4())

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FamilyServiceError, match="HTTP error"):
            await _resolver(handler).has_active_consent(uuid4())

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        resolver = _resolver(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(FamilyServiceError, match="invalid JSON"):
            await resolver.resolve_child_name(uuid4())
