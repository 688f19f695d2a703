"""Azure DevOps work tracking client.

Fetches work items and posts discussion comments over the REST API with a
personal access token. Every request goes through the resilient invocation
layer; HTTP 4xx responses surface as fatal WorkTrackerError.
"""

import base64
from typing import Any, Protocol

import httpx
import structlog

from workitem_codegen.core.config import Settings
from workitem_codegen.core.exceptions import ConfigurationError, WorkTrackerError
from workitem_codegen.resilience import RetryPolicy, invoke
from workitem_codegen.schemas.work_items import RawWorkItem

logger = structlog.get_logger(__name__)

COMMENTS_API_VERSION = "7.1-preview.4"


class WorkTracker(Protocol):
    async def get_work_item(self, work_item_id: int) -> RawWorkItem: ...

    async def add_comment(self, work_item_id: int, text: str) -> None: ...


class AzureDevOpsClient:
    """Client for the Azure DevOps work item tracking API."""

    def __init__(
        self,
        settings: Settings,
        policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Supplies organization URL, project, token and API version.
            policy: Retry policy for each request; built from settings when omitted.
            http_client: Shared client to reuse (tests pass one with a mock transport).
        """
        if not settings.azure_devops_org_url or not settings.azure_devops_project:
            raise ConfigurationError("Azure DevOps organization URL and project are required")
        self.base_url = f"{settings.azure_devops_org_url.rstrip('/')}/{settings.azure_devops_project}/_apis/wit"
        self.api_version = settings.azure_devops_api_version
        self.policy = policy or RetryPolicy.from_settings(settings)
        self._token = settings.azure_devops_token
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        encoded = base64.b64encode(f":{self._token}".encode()).decode()
        return {
            "Authorization": f"Basic {encoded}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, url: str, params: dict, body: dict | None) -> dict:
        if self._http_client is not None:
            response = await self._http_client.request(method, url, params=params, json=body, headers=self._headers())
        else:
            async with httpx.AsyncClient() as client:
                response = await client.request(method, url, params=params, json=body, headers=self._headers())

        if response.status_code >= 400:
            raise WorkTrackerError(
                f"Azure DevOps API error ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
        body: dict | None = None,
    ) -> dict:
        url = f"{self.base_url}{endpoint}"
        query = {"api-version": self.api_version, **(params or {})}
        return await invoke(lambda: self._send(method, url, query, body), self.policy, operation=operation)

    async def get_work_item(self, work_item_id: int) -> RawWorkItem:
        """Fetch a work item with all fields expanded.

        Raises:
            InvocationError: The request failed after all permitted attempts.
        """
        data = await self._request(
            "GET",
            f"/workitems/{work_item_id}",
            operation="get_work_item",
            params={"$expand": "all"},
        )
        logger.info("work_item_fetched", work_item_id=work_item_id, rev=data.get("rev"))
        return RawWorkItem.model_validate(data)

    async def add_comment(self, work_item_id: int, text: str) -> None:
        await self._request(
            "POST",
            f"/workItems/{work_item_id}/comments",
            operation="add_comment",
            params={"api-version": COMMENTS_API_VERSION},
            body={"text": text},
        )
        logger.info("work_item_comment_added", work_item_id=work_item_id)
