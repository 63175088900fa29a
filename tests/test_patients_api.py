import asyncio
import json


API = "/api/v1"


def _post(client, patient):
    return client.post(f"{API}/patients", json=patient.to_json_dict())


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_patient_returns_camel_case_record(client, make_ipd_patient):
    resp = _post(client, make_ipd_patient(last_admission="2024-01-15"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"].startswith("P-")
    assert body["admissionCount"] == 1
    assert body["fiscalYear"] == "2024"
    assert body["isReadmission"] is False


def test_create_accepts_blank_form_fields(client, make_patient):
    payload = make_patient().to_json_dict()
    payload.update(lvef="", age="", lastAdmission="")

    resp = client.post(f"{API}/patients", json=payload)

    assert resp.status_code == 200
    assert resp.json()["lvef"] is None


def test_missing_required_fields_are_listed(client, make_ipd_patient):
    payload = make_ipd_patient(hn="", an="").to_json_dict()

    resp = client.post(f"{API}/patients", json=payload)

    assert resp.status_code == 422
    assert resp.json()["detail"]["missing_fields"] == ["hn", "an"]
    assert client.get(f"{API}/patients").json()["total"] == 0


def test_update_and_get_patient(client, make_patient):
    created = _post(client, make_patient()).json()
    created["notes"] = "แพ้ยา ACEI"

    resp = client.post(f"{API}/patients", json=created)

    assert resp.status_code == 200
    fetched = client.get(f"{API}/patients/{created['id']}").json()
    assert fetched["notes"] == "แพ้ยา ACEI"
    assert client.get(f"{API}/patients").json()["total"] == 1


def test_get_unknown_patient(client):
    assert client.get(f"{API}/patients/P-404").status_code == 404


def test_list_is_paginated_newest_first(client, make_patient):
    for i in range(3):
        _post(client, make_patient(hn=f"HN{i}"))

    body = client.get(f"{API}/patients", params={"page": 1, "pageSize": 2}).json()

    assert [p["hn"] for p in body["items"]] == ["HN2", "HN1"]
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert body["pageSize"] == 2


def test_list_uses_saved_filter_and_query_overrides(client, make_patient, make_ipd_patient):
    _post(client, make_patient(hn="HN-OPD"))
    _post(client, make_ipd_patient(hn="HN-IPD"))

    client.put(f"{API}/filters/status", json={"value": "IPD"})
    saved_view = client.get(f"{API}/patients").json()
    override_view = client.get(f"{API}/patients", params={"status": "OPD"}).json()

    assert [p["hn"] for p in saved_view["items"]] == ["HN-IPD"]
    assert [p["hn"] for p in override_view["items"]] == ["HN-OPD"]


def test_list_filters_on_camel_case_query_params(client, make_patient, make_ipd_patient):
    _post(client, make_patient(hn="HN-OPD", lvef=60))
    _post(client, make_ipd_patient(hn="HN-IPD", lvef=25))

    active = client.get(f"{API}/patients", params={"isActiveIpd": "true"}).json()
    reduced = client.get(f"{API}/patients", params={"lvefGroup": "20-30%"}).json()

    assert [p["hn"] for p in active["items"]] == ["HN-IPD"]
    assert active["total"] == 1
    assert [p["hn"] for p in reduced["items"]] == ["HN-IPD"]


def test_lookup_by_hn(client, make_patient):
    _post(client, make_patient(hn="HN42"))

    assert client.get(f"{API}/patients/lookup", params={"hn": "HN42"}).json()["hn"] == "HN42"
    assert client.get(f"{API}/patients/lookup", params={"hn": "HN43"}).status_code == 404


def test_delete_patient(client, make_patient):
    created = _post(client, make_patient()).json()

    assert client.delete(f"{API}/patients/{created['id']}").status_code == 204
    assert client.get(f"{API}/patients/{created['id']}").status_code == 404
    assert client.delete(f"{API}/patients/{created['id']}").status_code == 404


def test_store_failure_is_reported(client, store, make_patient):
    created = _post(client, make_patient()).json()
    store.fail = True

    assert _post(client, make_patient(hn="HN2")).status_code == 502
    assert client.delete(f"{API}/patients/{created['id']}").status_code == 502
    assert client.post(f"{API}/patients/reload").status_code == 502
    assert client.get(f"{API}/patients").json()["total"] == 1


def test_reload(client, store, registry, make_patient):
    asyncio.run(store.save(make_patient(id="P-EXT", hn="HN-EXT")))

    resp = client.post(f"{API}/patients/reload")

    assert resp.json() == {"total": 1}
    assert registry.get_patient("P-EXT") is not None


def test_filter_endpoints(client):
    assert client.get(f"{API}/filters").json()["lvefGroup"] is None

    resp = client.put(f"{API}/filters/lvefGroup", json={"value": "<20%"})
    assert resp.status_code == 200
    assert resp.json()["lvefGroup"] == "<20%"

    assert client.put(f"{API}/filters/bloodType", json={"value": "O"}).status_code == 404
    assert client.put(f"{API}/filters/ageGroup", json={"value": "20-30"}).status_code == 422

    cleared = client.delete(f"{API}/filters").json()
    assert all(v is None for v in cleared.values())


def test_export_csv_follows_filter(client, make_patient, make_ipd_patient):
    _post(client, make_patient(hn="HN-OPD"))
    _post(client, make_ipd_patient(hn="HN-IPD"))

    resp = client.get(f"{API}/patients/export/csv", params={"status": "IPD"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "hf_registry_export.csv" in resp.headers["content-disposition"]
    lines = resp.content.decode("utf-8-sig").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith('"HN-IPD"')


def test_backup_and_import_round_trip(client, make_patient, make_ipd_patient):
    _post(client, make_patient(hn="HN1"))
    _post(client, make_ipd_patient(hn="HN2"))

    backup = client.get(f"{API}/patients/export/backup")
    assert backup.status_code == 200
    assert "hf_registry_backup_" in backup.headers["content-disposition"]

    client.delete(f"{API}/filters")
    _post(client, make_patient(hn="HN3"))

    resp = client.post(f"{API}/patients/import", content=backup.content)

    assert resp.json() == {"total": 2}
    hns = {p["hn"] for p in client.get(f"{API}/patients").json()["items"]}
    assert hns == {"HN1", "HN2"}


def test_import_rejects_non_array(client, make_patient):
    _post(client, make_patient())

    resp = client.post(f"{API}/patients/import", content=json.dumps({"a": 1}).encode())

    assert resp.status_code == 400
    assert "Expected an array" in resp.json()["detail"]
    assert client.get(f"{API}/patients").json()["total"] == 1


def test_import_rejects_repeated_ids(client, make_patient):
    _post(client, make_patient())
    backup = [
        make_patient(id="P-A", hn="HN-A").to_json_dict(),
        make_patient(id="P-A", hn="HN-B").to_json_dict(),
    ]

    resp = client.post(f"{API}/patients/import", content=json.dumps(backup).encode())

    assert resp.status_code == 400
    assert "P-A" in resp.json()["detail"]
    assert client.get(f"{API}/patients").json()["total"] == 1


def test_import_rejects_non_utf8(client):
    resp = client.post(f"{API}/patients/import", content=b"\xff\xfe\x00")

    assert resp.status_code == 400
