"""
Hypermedia Client Module

Navigates the Tardis Bank API the way its links describe it. A client only
knows the entry point; every other request follows a link taken from a
resource it already holds.
"""

import httpx
import logging
from typing import Any, Dict, List, Optional

from .hypermedia import Link, Rel, find_link

logger = logging.getLogger("tardis_bank.client")


class ApiError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class HypermediaResource:
    """A response body together with its parsed links"""

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.links: List[Link] = [Link.from_dict(item) for item in data.get("links", [])]

    def link(self, rel) -> Link:
        return find_link(self.links, Rel(rel))

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __repr__(self) -> str:
        return f"HypermediaResource({self.data!r})"


class BankClient:
    """Link-following client over an ``httpx.Client``"""

    def __init__(self, http: httpx.Client, token: Optional[str] = None, entry_point: str = "/"):
        self.http = http
        self.token = token
        self.entry_point = entry_point

    def with_token(self, token: str) -> 'BankClient':
        return BankClient(self.http, token=token, entry_point=self.entry_point)

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, href: str, body: Optional[Dict[str, Any]] = None) -> HypermediaResource:
        response = self.http.request(method, href, json=body, headers=self._headers())
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {href} returned {response.status_code}: {detail}")
            raise ApiError(response.status_code, detail)
        return HypermediaResource(response.json())

    def get_home(self) -> HypermediaResource:
        return self._request("GET", self.entry_point)

    def get(self, link: Link) -> HypermediaResource:
        return self._request("GET", link.href)

    def post(self, link: Link, body: Dict[str, Any]) -> HypermediaResource:
        return self._request("POST", link.href, body)

    def put(self, link: Link, body: Dict[str, Any]) -> HypermediaResource:
        return self._request("PUT", link.href, body)

    def delete(self, link: Link) -> HypermediaResource:
        return self._request("DELETE", link.href)
