# SPDX-License-Identifier: MIT

"""Azure DevOps REST API client for work item queries and CompletedWork updates."""

import logging
import os
from typing import Any, Optional

import requests

from adotrack.model.organization import Organization
from adotrack.model.work_item import WorkItem

logger = logging.getLogger(__name__)

API_VERSION = "7.1"
COMPLETED_WORK_FIELD = "Microsoft.VSTS.Scheduling.CompletedWork"
REMAINING_WORK_FIELD = "Microsoft.VSTS.Scheduling.RemainingWork"
ORIGINAL_ESTIMATE_FIELD = "Microsoft.VSTS.Scheduling.OriginalEstimate"

WORK_ITEM_FIELDS = (
    "System.Id",
    "System.Title",
    "System.WorkItemType",
    "System.State",
    "System.AssignedTo",
    "System.AreaPath",
    "System.IterationPath",
    COMPLETED_WORK_FIELD,
    REMAINING_WORK_FIELD,
    ORIGINAL_ESTIMATE_FIELD,
)

# The work items endpoint accepts at most 200 ids per request
MAX_IDS_PER_REQUEST = 200


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        # A rejected PAT is answered with a sign-in page instead of a 401
        203: "Azure DevOps: Authentication failed (sign-in page returned). Check your PAT token!",
        401: "Azure DevOps: Authentication failed. Check your PAT token!",
        403: "Azure DevOps: Access denied. Check the PAT token scopes!",
        404: "Azure DevOps: Resource not found. Check the organization URL and project!",
        429: "Azure DevOps: Too many requests. Wait a moment and try again.",
        500: "Azure DevOps: Server error. The service may be temporarily unavailable.",
        502: "Azure DevOps: Bad gateway. The service may be temporarily unavailable.",
        503: "Azure DevOps: Service unavailable. Try again later.",
    }

    message = messages.get(status, f"Azure DevOps: HTTP {status} - {response.reason}")
    detail = response.text.strip()
    if detail and status not in (203, 401, 403):
        message = f"{message} ({detail[:300]})"
    return message


def _parse_json(response: requests.Response) -> dict[str, Any]:
    """Decode a JSON object body, turning anything else into an ApiError."""
    content_type = response.headers.get("Content-Type", "")
    if "json" not in content_type:
        raise ApiError(
            f"Azure DevOps: Expected JSON but got {content_type or 'no content type'}. "
            "Check the organization URL and your PAT token!",
            response.status_code,
        )
    try:
        body = response.json()
    except requests.exceptions.JSONDecodeError:
        raise ApiError("Azure DevOps: Response was not valid JSON.", response.status_code)
    if not isinstance(body, dict):
        raise ApiError("Azure DevOps: Unexpected response format.", response.status_code)
    return body


def resolve_pat(organization: Organization) -> str:
    token = os.environ.get(organization["pat_env_var"], "")
    if not token:
        raise ApiError(
            f"Missing PAT. Set {organization['pat_env_var']} in the environment "
            f"to reach {organization['name']}."
        )
    return token


class AzureDevOpsClient:
    """Client for the Azure DevOps work item tracking REST API."""

    def __init__(
        self,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _api_url(self, organization: Organization, path: str) -> str:
        base_url = organization["url"].rstrip("/")
        return f"{base_url}/{organization['project']}/_apis/{path}"

    def _request(
        self,
        organization: Organization,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> requests.Response:
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.session.request(
                method,
                url,
                auth=("", resolve_pat(organization)),
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout:
            raise ApiError(
                f"Azure DevOps: Request to {organization['url']} timed out after {self.timeout}s."
            )
        except requests.exceptions.ConnectionError:
            raise ApiError(
                f"Azure DevOps: Cannot connect to {organization['url']}. Check your network!"
            )
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Azure DevOps: {e}")

        logger.debug("%s %s -> %s", method, url, response.status_code)
        if not response.ok or response.status_code == 203:
            raise ApiError(_handle_api_error(response), response.status_code)
        return response

    def test_connection(self, organization: Organization) -> tuple[bool, str]:
        """Check that the organization URL and PAT are usable."""
        url = f"{organization['url'].rstrip('/')}/_apis/projects"
        try:
            self._request(
                organization, "GET", url, params={"api-version": API_VERSION}
            )
        except ApiError as e:
            return False, str(e)
        return True, "Connection successful!"

    def query_work_item_ids(
        self, organization: Organization, wiql: str, limit: int
    ) -> list[int]:
        """Run a WIQL query and return at most `limit` matching ids."""
        response = self._request(
            organization,
            "POST",
            self._api_url(organization, "wit/wiql"),
            params={"api-version": API_VERSION},
            json={"query": wiql},
        )
        work_items = _parse_json(response).get("workItems") or []
        return [work_item["id"] for work_item in work_items[:limit]]

    def get_work_items(
        self, organization: Organization, ids: list[int]
    ) -> list[WorkItem]:
        if len(ids) == 0:
            return []

        work_items: list[WorkItem] = []
        for offset in range(0, len(ids), MAX_IDS_PER_REQUEST):
            batch = ids[offset : offset + MAX_IDS_PER_REQUEST]
            response = self._request(
                organization,
                "GET",
                self._api_url(organization, "wit/workitems"),
                params={
                    "ids": ",".join(str(id) for id in batch),
                    "fields": ",".join(WORK_ITEM_FIELDS),
                    "errorPolicy": "omit",
                    "api-version": API_VERSION,
                },
            )
            for raw_work_item in _parse_json(response).get("value") or []:
                # errorPolicy=omit returns null for ids that do not exist
                if raw_work_item is not None:
                    work_items.append(self._map_work_item(raw_work_item, organization))
        return work_items

    def get_work_item(
        self, organization: Organization, id: int
    ) -> Optional[WorkItem]:
        work_items = self.get_work_items(organization, [id])
        return work_items[0] if work_items else None

    def update_completed_work(
        self, organization: Organization, work_item_id: int, completed_work: float
    ) -> None:
        """Set CompletedWork (hours) on a work item."""
        patch_document = [
            {
                "op": "add",
                "path": f"/fields/{COMPLETED_WORK_FIELD}",
                "value": completed_work,
            }
        ]
        self._request(
            organization,
            "PATCH",
            self._api_url(organization, f"wit/workitems/{work_item_id}"),
            params={"api-version": API_VERSION},
            headers={"Content-Type": "application/json-patch+json"},
            json=patch_document,
        )
        logger.info(
            "set CompletedWork of #%s to %s in %s",
            work_item_id,
            completed_work,
            organization["name"],
        )

    def _map_work_item(
        self, raw_work_item: dict[str, Any], organization: Organization
    ) -> WorkItem:
        fields = raw_work_item.get("fields", {})
        assigned_to = fields.get("System.AssignedTo")
        links = raw_work_item.get("_links") or {}
        return {
            "id": int(raw_work_item["id"]),
            "title": fields.get("System.Title", ""),
            "type": fields.get("System.WorkItemType", ""),
            "state": fields.get("System.State", ""),
            "organization_id": organization["id"] or "",
            "project_name": organization["project"],
            "assigned_to": (
                assigned_to.get("displayName")
                if isinstance(assigned_to, dict)
                else assigned_to
            ),
            "completed_work": fields.get(COMPLETED_WORK_FIELD),
            "remaining_work": fields.get(REMAINING_WORK_FIELD),
            "original_estimate": fields.get(ORIGINAL_ESTIMATE_FIELD),
            "area_path": fields.get("System.AreaPath"),
            "iteration_path": fields.get("System.IterationPath"),
            "url": (links.get("html") or {}).get("href") or raw_work_item.get("url", ""),
        }
