import copy
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import httpx
import pytest


def pytest_configure():
    # Ensure project root is on sys.path for the flat top-level modules
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


_TESCO = {
    "company_name": "TESCO PLC",
    "company_number": "00445790",
    "company_status": "active",
    "type": "plc",
    "registered_office_address": {"address_line_1": "Tesco House", "postal_code": "WD17 1AB"},
}


class FakeRegistry:
    """Canned Companies House responses keyed by URL path; records every request."""

    def __init__(self):
        self.routes: Dict[str, Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, body: Any, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path not in self.routes:
            return httpx.Response(404, json={"errors": [{"error": "company-profile-not-found"}]})
        status, body = self.routes[request.url.path]
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def tesco():
    return copy.deepcopy(_TESCO)


@pytest.fixture
def fake():
    return FakeRegistry()


@pytest.fixture
def settings(tmp_path):
    from config import Settings

    return Settings(
        companies_house_api_key="test-key",
        companies_house_base_url="https://ch.test",
        db_path=str(tmp_path / "companies.db"),
    )


@pytest.fixture
def store(settings):
    from store import CompanyStore

    return CompanyStore(settings.db_path)


@pytest.fixture
def client(settings, store, fake):
    from app import create_app

    app = create_app(settings, store=store, transport=fake.transport())
    app.config["TESTING"] = True
    return app.test_client()
