import asyncio
import logging
from typing import Optional

import httpx
from flask import Flask, jsonify, request
from flask_cors import CORS

from config import Settings, get_settings
from errors import ConfigurationError, InvalidRequest, NotFound, RelayError
from logging_setup import init_logging
from registry import COMPANY_NUMBER, RegistryClient
from store import CompanyStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CompanyStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Flask:
    settings = settings or get_settings()
    store = store or CompanyStore(settings.db_path)

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.config["STORE"] = store
    CORS(app, send_wildcard=True)

    def registry() -> RegistryClient:
        if not settings.companies_house_api_key:
            raise ConfigurationError("Missing API key")
        return RegistryClient(
            settings.companies_house_api_key,
            base_url=settings.companies_house_base_url,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        )

    def company_number(number: str) -> str:
        if not number or not number.strip():
            raise InvalidRequest("Missing required company number")
        number = number.strip()
        if not COMPANY_NUMBER.fullmatch(number):
            raise InvalidRequest("Invalid company number")
        return number

    @app.errorhandler(RelayError)
    def relay_error(e: RelayError):
        return jsonify({"message": str(e)}), e.status_code

    @app.errorhandler(404)
    def route_not_found(e):
        return jsonify({"message": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"message": "Method not allowed"}), 405

    @app.route("/", methods=["GET"])
    def hello():
        return "Hello World!", 200, {"Content-Type": "text/plain; charset=utf-8"}

    @app.route("/companies", methods=["POST"])
    async def search_companies():
        body = request.get_json(silent=True)
        term = body.get("searchTerm") if isinstance(body, dict) else None
        if not isinstance(term, str) or not term.strip():
            raise InvalidRequest("Missing required search term")
        client = registry()

        try:
            companies = await client.search_companies(term.strip())
        except Exception:
            logger.exception("Search for %r failed", term)
            return jsonify({"message": "Error retrieving companies"}), 500
        if not companies:
            raise NotFound("No companies found")

        return jsonify({"message": "Companies retrieved successfully", "data": companies}), 200

    @app.route("/companies/<number>", methods=["GET"])
    async def get_company(number: str):
        number = company_number(number)
        client = registry()

        try:
            company = await client.get_company(number)
            await asyncio.to_thread(store.upsert, company)
        except Exception:
            logger.exception("Lookup of company %s failed", number)
            return jsonify({"message": "Error retrieving and saving company data"}), 500

        return jsonify({"message": "Company data retrieved and saved successfully", "data": company}), 200

    @app.route("/companies/<number>/officers", methods=["GET"])
    async def get_officers(number: str):
        number = company_number(number)
        client = registry()

        try:
            officers = await client.get_officers(number)
        except Exception:
            logger.exception("Officers lookup for %s failed", number)
            return jsonify({"message": "Error retrieving officers"}), 500

        return jsonify({"message": "Officers retrieved successfully", "data": officers}), 200

    # Same message texts as the officers endpoint.
    @app.route("/companies/<number>/filing-history", methods=["GET"])
    async def get_filing_history(number: str):
        number = company_number(number)
        client = registry()

        try:
            filings = await client.get_filing_history(number)
        except Exception:
            logger.exception("Filing history lookup for %s failed", number)
            return jsonify({"message": "Error retrieving officers"}), 500

        return jsonify({"message": "Officers retrieved successfully", "data": filings}), 200

    return app


def main() -> None:
    settings = get_settings()
    init_logging(settings.log_level)
    store = CompanyStore(settings.db_path)
    logger.info("%d companies saved in %s", store.count(), settings.db_path)
    app = create_app(settings, store=store)
    logger.info("Server running at http://%s:%s", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
