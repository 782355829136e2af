import logging
from typing import Optional, Tuple

import httpx

from eventadmin.config.settings import settings
from eventadmin.modules.auth.schemas import CheckPermissionsResponse, VerifiedToken
from eventadmin.modules.permissions.schemas import PermissionRecord, Role

logger = logging.getLogger(__name__)


class ResolvedPermissions(CheckPermissionsResponse):
    """Body of GET /auth/check-permissions as seen by a client."""


class PermissionsApiError(Exception):
    def __init__(self, status_code: Optional[int], detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"[{status_code}] {detail}" if status_code else detail)


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and payload.get("detail"):
        return str(payload["detail"])
    return response.reason_phrase


class PermissionsApi:
    """Async client for the claims resolver endpoint"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def check_permissions(self, id_token: str) -> ResolvedPermissions:
        async with self._client() as client:
            try:
                response = await client.get(
                    "/auth/check-permissions",
                    headers={"Authorization": f"Bearer {id_token}"}
                )
            except httpx.HTTPError as e:
                logger.warning(f"check-permissions request failed: {e}")
                raise PermissionsApiError(None, "Network error while resolving permissions") from e

        if not response.is_success:
            raise PermissionsApiError(response.status_code, _error_detail(response))
        return ResolvedPermissions.model_validate(response.json())

    async def resolve(self, principal: VerifiedToken) -> Tuple[Optional[Role], Optional[PermissionRecord]]:
        """Fetch function for PermissionsStateMachine"""
        result = await self.check_permissions(principal.token)
        return result.role, result.permissions
