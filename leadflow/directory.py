"""
Sales Navigator lead directory client.

Wraps the three lead list operations the automation needs:
- Paged search of a lead list
- Connection request (contact action)
- Removal of a lead from a list

Session cookies and CSRF headers come from the operator (see
leadflow.config); this client only replays them.
"""

import json
import logging
import os
from typing import Optional
from urllib.parse import quote

import requests

from leadflow import config
from leadflow.models import Candidate, Page

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    400: "Bad request - Invalid member ID or message",
    401: "Unauthorized - Invalid or expired LinkedIn session",
    403: "Forbidden - Cannot send connection request to this user",
    429: "Rate limited - Too many connection requests sent",
}


class DirectoryError(Exception):
    """A directory call failed in transport or upstream."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    def describe(self) -> str:
        """Human-readable message, preferring the known status meanings."""
        if self.status_code in STATUS_MESSAGES:
            return STATUS_MESSAGES[self.status_code]
        return str(self) or "Unknown error"


def load_headers(path: str) -> dict:
    """
    Load exported request headers from a JSON file.

    Returns an empty dict if the file doesn't exist.
    """
    if not path or not os.path.exists(path):
        logger.debug("No headers file at %s", path)
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Could not load headers file %s: %s", path, e)
        return {}


def _lead_list_urn(lead_list_id: str) -> str:
    return quote(f"urn:li:fs_salesList:{lead_list_id}", safe="")


class SalesNavigatorDirectory:
    """
    Lead directory backed by the Sales Navigator API.

    Usage:
        directory = SalesNavigatorDirectory()
        page = directory.search(0, 25, "7371658687360155648")
        directory.contact(page.candidates[0].contact_ref, "Hi there")
    """

    def __init__(
        self,
        base_url: str = config.LEAD_DIRECTORY_BASE_URL,
        headers: Optional[dict] = None,
        timeout: int = config.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

        if headers is None:
            headers = load_headers(config.LEAD_DIRECTORY_HEADERS_FILE)
        self.headers = headers

        self.cookie = headers.get('cookie') or config.LEAD_DIRECTORY_COOKIE
        self.csrf_token = config.LEAD_DIRECTORY_CSRF_TOKEN

    def _headers_for(self, section: str) -> dict:
        merged = dict(config.REQUEST_HEADERS)
        merged.update(self.headers.get('common', {}))
        merged.update(self.headers.get(section, {}))
        if self.cookie:
            merged['Cookie'] = self.cookie
        if self.csrf_token and 'csrf-token' not in merged:
            merged['csrf-token'] = self.csrf_token
        return merged

    def _request(self, method: str, path: str, section: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                headers=self._headers_for(section),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("Directory request failed for %s: %s", path, exc)
            raise DirectoryError(str(exc)) from exc

        if resp.status_code >= 400:
            detail = ""
            try:
                body = resp.json()
                if isinstance(body, dict):
                    detail = body.get('message', '') or ''
            except ValueError:
                detail = resp.text[:200]
            logger.error(
                "Directory API error: %s %s for %s",
                resp.status_code, resp.reason, path
            )
            raise DirectoryError(
                detail or f"{resp.status_code} {resp.reason}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise DirectoryError(f"Invalid JSON from directory: {exc}", resp.status_code) from exc

    def search(self, offset: int, size: int, lead_list_id: str) -> Page:
        """Fetch one page of a lead list, newest entries first."""
        list_urn = _lead_list_urn(lead_list_id)
        query = (
            "q=peopleSearchQuery&query=(spotlightParam:(selectedType:ALL),"
            "doFetchSpotlights:true,doFetchHits:true,doFetchFilters:false,"
            "pivotParam:(com.linkedin.sales.search.LeadListPivotRequest:"
            f"(list:{list_urn},sortCriteria:CREATED_TIME,sortOrder:DESCENDING)),"
            "list:(scope:LEAD,includeAll:false,excludeAll:false,"
            f"includedValues:List((id:{lead_list_id}))))"
            f"&start={offset}&count={size}"
        )
        data = self._request("GET", f"/salesApiPeopleSearch?{query}", "search")

        elements = data.get('elements') or []
        paging = data.get('paging') or {}
        candidates = [Candidate.from_element(e) for e in elements]

        logger.debug(
            "Search start=%d count=%d returned %d elements (total %s)",
            offset, size, len(candidates), paging.get('total')
        )
        return Page(candidates=candidates, start=offset, total=paging.get('total'))

    def contact(self, candidate_ref: str, message: str) -> dict:
        """Send a connection request with a note."""
        return self._request(
            "POST",
            "/salesApiConnection?action=connectV2",
            "connect",
            json={'member': candidate_ref, 'message': message},
        )

    def remove(self, lead_list_id: str, candidate_ref: str) -> dict:
        """Remove a lead (by entity URN) from a lead list."""
        list_urn = _lead_list_urn(lead_list_id)
        entity = quote(candidate_ref, safe="")
        path = f"/salesApiListEntities/(list:{list_urn},entity:{entity})?unsaveEntity=false"
        return self._request("DELETE", path, "remove")
