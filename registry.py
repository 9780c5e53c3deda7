# file: registry.py
import asyncio
import base64
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from config import CH_API_BASE
from errors import InvalidRequest, UpstreamError

logger = logging.getLogger(__name__)

# Company numbers are alphanumeric: 00445790, SC123456.
COMPANY_NUMBER = re.compile(r"[A-Za-z0-9]+")

# Profile fields copied verbatim into the stored record.
EXTENDED_FIELDS = [
    "company_status_detail",
    "confirmation_statement",
    "date_of_cessation",
    "date_of_creation",
    "foreign_company_details",
    "company_type",
    "business_activity",
    "originating_registry",
    "registration_number",
    "registered_office_address",
    "sic_codes",
    "service_address",
    "governed_by",
    "jurisdiction",
    "accounts",
    "annual_return",
    "branch_company_details",
]


def company_path(number: str, suffix: str = "") -> str:
    if not COMPANY_NUMBER.fullmatch(number or ""):
        raise InvalidRequest(f"Invalid company number {number!r}")
    return f"/company/{number}{suffix}"


def auth_header(api_key: str) -> Dict[str, str]:
    token = base64.b64encode(f"{api_key}:".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def to_summary(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Narrow search-result shape of an upstream company profile."""
    office = profile.get("registered_office_address")
    if not isinstance(office, dict):
        office = {}
    return _compact({
        "name": profile.get("company_name"),
        "number": profile.get("company_number"),
        "address": _compact({
            "street": office.get("address_line_1"),
            "locality": office.get("locality"),
            "region": office.get("region"),
            "postalCode": office.get("postal_code"),
        }),
        "status": profile.get("company_status"),
        "type": profile.get("type"),
    })


def to_record(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Extended record persisted by the company lookup."""
    record = {
        "name": profile.get("company_name"),
        "number": profile.get("company_number"),
        "status": profile.get("company_status"),
        "type": profile.get("type"),
    }
    for field in EXTENDED_FIELDS:
        record[field] = profile.get(field)
    return _compact(record)


class RegistryClient:
    """
    Async client for the Companies House public data API.
    Every failure (transport error, non-2xx, body that is not a JSON object)
    surfaces as UpstreamError.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = CH_API_BASE,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=auth_header(self.api_key),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _get(self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("GET %s params=%s", path, params)
        try:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"{path} returned {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{path} failed: {e.__class__.__name__}") from e
        except ValueError as e:
            raise UpstreamError(f"{path} returned a body that is not JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError(f"{path} returned {type(data).__name__}, expected an object")
        return data

    async def search(self, client: httpx.AsyncClient, term: str) -> List[str]:
        data = await self._get(client, "/search/companies", params={"q": term})
        items = data.get("items") or []
        return [item["company_number"] for item in items if isinstance(item, dict) and item.get("company_number")]

    async def profile(self, client: httpx.AsyncClient, number: str) -> Dict[str, Any]:
        return await self._get(client, company_path(number))

    async def search_companies(self, term: str) -> List[Dict[str, Any]]:
        """
        Search, then fetch every hit's profile concurrently.
        Returns summaries in search order; [] when the search matched nothing.
        A single failed profile fetch fails the whole call.
        """
        async with self._client() as client:
            numbers = await self.search(client, term)
            if not numbers:
                return []
            results = await asyncio.gather(
                *(self.profile(client, n) for n in numbers), return_exceptions=True
            )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        profiles: List[Dict[str, Any]] = results  # type: ignore[assignment]
        return [to_summary(p) for p in profiles]

    async def get_company(self, number: str) -> Dict[str, Any]:
        async with self._client() as client:
            return to_record(await self.profile(client, number))

    async def get_officers(self, number: str) -> Dict[str, Any]:
        async with self._client() as client:
            return await self._get(client, company_path(number, "/officers"))

    async def get_filing_history(self, number: str) -> Dict[str, Any]:
        async with self._client() as client:
            return await self._get(client, company_path(number, "/filing-history"))
