# file: ch_mcp.py
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from config import get_settings
from errors import RelayError
from registry import RegistryClient

logger = logging.getLogger(__name__)

mcp = FastMCP("ch-relay")


def _registry() -> Optional[RegistryClient]:
    settings = get_settings()
    if not settings.companies_house_api_key:
        return None
    return RegistryClient(
        settings.companies_house_api_key,
        base_url=settings.companies_house_base_url,
        timeout=settings.upstream_timeout_seconds,
    )


async def _call(method: str, arg: str, what: str) -> Dict[str, Any]:
    arg = str(arg or "").strip()
    if not arg:
        return {"ok": False, "error": f"{what} is required"}
    client = _registry()
    if client is None:
        return {"ok": False, "error": "COMPANIES_HOUSE_API_KEY is not set"}
    try:
        data = await getattr(client, method)(arg)
    except RelayError as e:
        out: Dict[str, Any] = {"ok": False, "error": str(e)}
        status = getattr(e, "status", 0)
        if status:
            out["status"] = status
        return out
    except Exception as e:
        logger.exception("%s(%r) failed", method, arg)
        return {"ok": False, "error": f"unexpected {e.__class__.__name__}"}
    return {"ok": True, "data": data}


@mcp.tool()
async def ch_search(search_term: str) -> Dict[str, Any]:
    """
    Search Companies House by name and return a summary of every match
    (name, number, address, status, type), in search order.
    """
    return await _call("search_companies", search_term, "search_term")


@mcp.tool()
async def ch_company(company_number: str) -> Dict[str, Any]:
    """
    Full profile of one company: status detail, dates, SIC codes, accounts,
    registered office and the rest of the extended record. Not persisted.
    """
    return await _call("get_company", company_number, "company_number")


@mcp.tool()
async def ch_officers(company_number: str) -> Dict[str, Any]:
    """Officers list for a company, exactly as Companies House returns it."""
    return await _call("get_officers", company_number, "company_number")


@mcp.tool()
async def ch_filing_history(company_number: str) -> Dict[str, Any]:
    """Filing history for a company, exactly as Companies House returns it."""
    return await _call("get_filing_history", company_number, "company_number")


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--http", action="store_true", help="Run MCP over streamable HTTP.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    if args.http:
        mcp.settings.host = args.host
        mcp.settings.port = args.port
        mcp.run(transport="streamable-http")
    else:
        mcp.run()


if __name__ == "__main__":
    main()
