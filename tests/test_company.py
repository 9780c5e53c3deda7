def test_company_is_returned_and_saved(client, fake, tesco, store):
    tesco.update({"sic_codes": ["47110"], "jurisdiction": "england-wales", "date_of_creation": "1947-11-27"})
    fake.add("/company/00445790", tesco)

    resp = client.get("/companies/00445790")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Company data retrieved and saved successfully"
    assert body["data"] == {
        "name": "TESCO PLC",
        "number": "00445790",
        "status": "active",
        "type": "plc",
        "registered_office_address": {"address_line_1": "Tesco House", "postal_code": "WD17 1AB"},
        "sic_codes": ["47110"],
        "jurisdiction": "england-wales",
        "date_of_creation": "1947-11-27",
    }
    saved = store.get("00445790")
    assert saved["sic_codes"] == ["47110"]
    assert saved["createdAt"] == saved["updatedAt"]


def test_refetch_overwrites_previous_record(client, fake, tesco, store):
    tesco["accounts"] = {"overdue": False}
    fake.add("/company/00445790", tesco)
    assert client.get("/companies/00445790").status_code == 200
    first = store.get("00445790")

    second = dict(tesco, company_status="dissolved")
    del second["accounts"]
    fake.add("/company/00445790", second)
    assert client.get("/companies/00445790").status_code == 200

    saved = store.get("00445790")
    assert saved["status"] == "dissolved"
    assert "accounts" not in saved
    assert saved["createdAt"] == first["createdAt"]
    assert store.count() == 1


def test_upstream_404_is_500_and_nothing_is_written(client, fake, store):
    resp = client.get("/companies/00000000")

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Error retrieving and saving company data"}
    assert store.count() == 0


def test_non_json_upstream_body_is_500(client, fake, store):
    fake.add("/company/00445790", "<html>maintenance</html>")

    resp = client.get("/companies/00445790")

    assert resp.status_code == 500
    assert store.count() == 0


def test_storage_failure_is_500(client, fake, tesco, store, monkeypatch):
    from errors import StorageError

    def broken(record):
        raise StorageError("disk full")

    monkeypatch.setattr(store, "upsert", broken)
    fake.add("/company/00445790", tesco)

    resp = client.get("/companies/00445790")

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Error retrieving and saving company data"}


def test_profile_without_name_is_not_saved(client, fake, store):
    fake.add("/company/00445790", {"company_number": "00445790"})

    resp = client.get("/companies/00445790")

    assert resp.status_code == 500
    assert store.count() == 0


def test_blank_number_is_400(client, fake):
    resp = client.get("/companies/%20")

    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Missing required company number"}
    assert fake.requests == []


def test_upstream_timeout_is_500_and_nothing_is_written(settings, store):
    import httpx

    from app import create_app

    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    app = create_app(settings, store=store, transport=httpx.MockTransport(handler))
    resp = app.test_client().get("/companies/00445790")

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Error retrieving and saving company data"}
    assert store.count() == 0


def test_numbers_that_would_change_the_upstream_path_are_rejected(client, fake):
    for path in (
        "/companies/%2E%2E/officers",
        "/companies/%2E%2E/filing-history",
        "/companies/x%3Fq=1",
        "/companies/00445790%23frag",
    ):
        resp = client.get(path)
        assert resp.status_code == 400, path
        assert resp.get_json() == {"message": "Invalid company number"}
    assert fake.requests == []


def test_scottish_prefix_numbers_are_accepted(client, fake, tesco):
    tesco["company_number"] = "SC123456"
    fake.add("/company/SC123456", tesco)

    assert client.get("/companies/SC123456").status_code == 200
