"""
Family Service Resolver

Read-only client for the family/identity service: child display data,
safety fields and data-sharing consent. Implements both ChildInfoResolver
and ConsentResolver. No caching happens here or in the core.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

import httpx
import pydantic

from rollcall.config import settings
from rollcall.core.schemas import ChildInfoPayload
from rollcall.participation.ports import ChildInfo, ChildSafetyInfo

logger = logging.getLogger(__name__)

DATA_SHARING_CONSENT = "provider_data_sharing"
UNKNOWN_CHILD_NAME = "Unknown Child"


class FamilyServiceError(Exception):
    """Family service request failed."""

    pass


class FamilyServiceResolver:
    """httpx client for the family service."""

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str = "",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize resolver.

        Args:
            base_url: Family service API root (no trailing slash)
            api_token: Bearer token, omitted from requests when empty
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls) -> FamilyServiceResolver:
        """Create resolver from application settings."""
        return cls(
            base_url=settings.FAMILY_SERVICE_URL,
            api_token=settings.FAMILY_SERVICE_API_TOKEN,
            timeout=settings.FAMILY_SERVICE_TIMEOUT_SECONDS,
        )

    # ========================================================================
    # ChildInfoResolver
    # ========================================================================

    async def resolve_child_name(self, child_id: UUID) -> tuple[str, bool]:
        """Return (display name, not_found) for one child."""
        data = await self._get(f"/children/{child_id}")
        if data is None:
            return UNKNOWN_CHILD_NAME, True

        child = self._parse_child(data)
        return f"{child.first_name} {child.last_name}".strip(), False

    async def resolve_child_safety_info(self, child_id: UUID) -> ChildSafetyInfo | None:
        data = await self._get(f"/children/{child_id}")
        if data is None:
            return None

        child = self._parse_child(data)
        return ChildSafetyInfo(
            allergies=child.allergies,
            support_needs=child.support_needs,
            emergency_contact=child.emergency_contact,
        )

    async def resolve_children_info(self, child_ids: Sequence[UUID]) -> dict[UUID, ChildInfo]:
        """Resolve many children in one request; unknown ids are left out."""
        if not child_ids:
            return {}

        data = await self._post("/children/batch", {"ids": [str(cid) for cid in child_ids]})
        resolved: dict[UUID, ChildInfo] = {}
        for item in data.get("children", []):
            child = self._parse_child(item)
            resolved[child.id] = ChildInfo(
                first_name=child.first_name,
                last_name=child.last_name,
                allergies=child.allergies,
                support_needs=child.support_needs,
                emergency_contact=child.emergency_contact,
                has_consent=child.has_consent,
            )
        return resolved

    # ========================================================================
    # ConsentResolver
    # ========================================================================

    async def has_active_consent(self, child_id: UUID) -> bool:
        data = await self._get(f"/children/{child_id}/consents/{DATA_SHARING_CONSENT}")
        return bool(data and data.get("active"))

    # ========================================================================
    # HTTP
    # ========================================================================

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _get(self, path: str) -> dict[str, Any] | None:
        """GET a resource; None on 404."""
        response = await self._request("GET", path)
        if response.status_code == 404:
            return None
        return self._json(response)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", path, json=payload)
        return self._json(response)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling family service {method} {path}: {e}")
            raise FamilyServiceError(f"HTTP error: {e}") from e

        if response.status_code >= 400 and response.status_code != 404:
            logger.error(f"Family service error {response.status_code} for {method} {path}")
            raise FamilyServiceError(
                f"Family service returned {response.status_code} for {method} {path}"
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise FamilyServiceError("Family service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise FamilyServiceError("Family service returned an unexpected payload")
        return data

    @staticmethod
    def _parse_child(data: dict[str, Any]) -> ChildInfoPayload:
        try:
            return ChildInfoPayload.model_validate(data)
        except pydantic.ValidationError as e:
            raise FamilyServiceError(f"Malformed child payload: {e}") from e
