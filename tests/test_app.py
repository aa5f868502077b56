import json

import pytest

from app import app, form_from_quote, parse_form
from sharing import encode_quote


@pytest.fixture
def client(tmp_path):
    app.config.update(
        TESTING=True,
        STORE_PATH=str(tmp_path / "quotes.json"),
    )
    with app.test_client() as c:
        yield c


def test_form_round_trip(base_quote):
    assert parse_form(form_from_quote(base_quote)) == base_quote


def test_parse_form_reads_claimed_values(base_quote):
    form = form_from_quote(base_quote)
    form.update(q_residual="$23,440", q_monthly="")
    q = parse_form(form)
    assert q.quote_provided_values.residual_value == 23_440
    assert q.quote_provided_values.monthly_payment is None


def test_index_get(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Novated Lease Estimator" in resp.data
    assert b"Total net cost" not in resp.data


def test_index_post_form(client, base_quote):
    resp = client.post("/", data=form_from_quote(base_quote))
    assert resp.status_code == 200
    assert b"Total net cost" in resp.data
    assert b"data:image/png;base64," in resp.data
    assert b"?quote=" in resp.data


def test_index_post_bad_number(client, base_quote):
    form = form_from_quote(base_quote)
    form["price"] = "fifty grand"
    resp = client.post("/", data=form)
    assert resp.status_code == 400
    assert b"class=\"error\"" in resp.data


def test_index_post_pasted_json(client, quote_json):
    resp = client.post("/", data={"quote_json": json.dumps(quote_json)})
    assert resp.status_code == 200
    assert b"Quote Check" in resp.data
    assert b"Balloon payment due at end" in resp.data


def test_index_post_pasted_json_missing_group(client, quote_json):
    del quote_json["leaseTerms"]
    resp = client.post("/", data={"quote_json": json.dumps(quote_json)})
    assert resp.status_code == 400
    assert b"Missing required fields in JSON: leaseTerms" in resp.data


def test_shared_link(client, help_quote):
    resp = client.get("/", query_string={"quote": encode_quote(help_quote)})
    assert resp.status_code == 200
    assert b"Model Y" in resp.data


def test_broken_shared_link(client):
    resp = client.get("/?quote=definitely-not-a-quote")
    assert resp.status_code == 400
    assert b"share link" in resp.data


def test_api_analyse(client, quote_json):
    resp = client.post("/api/analyse", json=quote_json)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["costBreakdown"]["vehiclePrice"] == 48_000
    assert body["quoteValidation"]["discrepancies"][0]["field"] == "residualValue"
    assert body["shareToken"]


def test_api_analyse_rejects_bad_input(client):
    resp = client.post("/api/analyse", json={"vehicle": {"purchasePrice": 1}})
    assert resp.status_code == 400
    assert "Missing required fields" in resp.get_json()["error"]

    resp = client.post("/api/analyse", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_save_compare_delete(client, base_quote, help_quote):
    for name, q in [("Toyota", base_quote), ("Tesla", help_quote)]:
        resp = client.post("/quotes/save", data={"quote_json": json.dumps(q.to_dict()), "name": name})
        assert resp.status_code == 200

    saved = client.get("/quotes").get_json()
    assert [s["name"] for s in saved] == ["Toyota", "Tesla"]
    ids = [s["id"] for s in saved]

    resp = client.get("/quotes/compare", query_string=[("id", i) for i in ids])
    assert resp.status_code == 200
    assert b"Comparison" in resp.data

    resp = client.get(f"/quotes/{ids[0]}")
    assert resp.status_code == 302
    assert "quote=" in resp.headers["Location"]

    resp = client.post(f"/quotes/{ids[0]}/delete")
    assert resp.status_code == 302
    assert [s["id"] for s in client.get("/quotes").get_json()] == [ids[1]]


def test_compare_too_many(client, base_quote):
    for i in range(4):
        client.post("/quotes/save", data={"quote_json": json.dumps(base_quote.to_dict()), "name": f"q{i}"})
    ids = [s["id"] for s in client.get("/quotes").get_json()]
    resp = client.get("/quotes/compare", query_string=[("id", i) for i in ids])
    assert resp.status_code == 400


def test_unknown_saved_quote(client):
    assert client.get("/quotes/quote_0_missing").status_code == 404


def test_download_pdf(client, base_quote):
    assert client.get("/download-pdf").status_code == 404
    assert client.get("/download-pdf?quote=garbage").status_code == 404

    page = client.post("/", data=form_from_quote(base_quote))
    assert b"/download-pdf?quote=" in page.data

    resp = client.get("/download-pdf", query_string={"quote": encode_quote(base_quote)})
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")


def test_rendering_writes_no_report_file(client, base_quote, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    client.get("/", query_string={"quote": encode_quote(base_quote)})
    client.post("/", data=form_from_quote(base_quote))
    assert list(tmp_path.glob("*.pdf")) == []


def _huge_price(quote_json):
    return json.dumps(quote_json).replace('"purchasePrice": 48000', '"purchasePrice": 1' + "0" * 400)


def test_api_analyse_huge_number(client, quote_json):
    resp = client.post("/api/analyse", data=_huge_price(quote_json), content_type="application/json")
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_index_post_pasted_huge_number(client, quote_json):
    resp = client.post("/", data={"quote_json": _huge_price(quote_json)})
    assert resp.status_code == 400


def test_index_post_lease_term_too_long(client, base_quote):
    form = form_from_quote(base_quote)
    form["years"] = "1000"
    form["interest_rate"] = "100"
    resp = client.post("/", data=form)
    assert resp.status_code == 400
    assert b"at most" in resp.data
