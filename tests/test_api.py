"""
End-to-end tests through the FastAPI app: auth, reserve, pickup, documents
and the error payload contract.
"""

import pytest

from medistock.core.config import get_settings
from tests.demo_data import ACET, DISP_AV27, DISP_CANAVERAL, METF, PASSWORD

API = "/api/v1"


def _reserve(client, headers, *pairs, dispenser_id=DISP_AV27):
    return client.post(
        f"{API}/reservations",
        json={
            "dispenser_id": dispenser_id,
            "items": [{"medicine_id": mid, "units": units} for mid, units in pairs],
        },
        headers=headers,
    )


def _error(response):
    return response.json()["detail"]


# =============================================================================
# Health / auth
# =============================================================================

class TestHealthAndAuth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "db": True}

    def test_login_and_me(self, client):
        response = client.post(f"{API}/auth/login", json={"email": "ana@medistock.co", "password": PASSWORD})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200
        assert me.json()["cc"] == "100000001"

    def test_wrong_password(self, client):
        response = client.post(f"{API}/auth/login", json={"email": "ana@medistock.co", "password": "nope"})

        assert response.status_code == 401

    def test_terminal_login_by_document(self, client):
        response = client.post(f"{API}/auth/terminal-login", json={"cc": "100000001", "password": PASSWORD})

        assert response.status_code == 200
        assert response.json()["patient"]["name"] == "Ana Paciente"

    def test_patient_routes_require_token(self, client):
        assert client.get(f"{API}/prescriptions").status_code == 401
        assert client.get(f"{API}/prescriptions", headers={"Authorization": "Bearer junk"}).status_code == 401


# =============================================================================
# Reserve and pickup
# =============================================================================

class TestReservationFlow:
    def test_reserve_then_pickup_twice(self, client, ana_headers):
        created = _reserve(client, ana_headers, (ACET, 10))
        assert created.status_code == 201
        body = created.json()
        code = body["code"]
        assert body["items"] == [{"medicine_id": ACET, "units": 10, "label": None}]

        stock = client.get(f"{API}/dispensers", params={"dispenser_id": DISP_AV27}, headers=ana_headers).json()
        assert ACET not in [row["medicine_id"] for row in stock]

        pickup = client.post(f"{API}/pickup", json={"code": code})
        assert pickup.status_code == 200
        assert pickup.json()["ok"] is True
        assert pickup.json()["delivered_count"] == 1
        assert pickup.json()["total_units"] == 10
        assert pickup.json()["reservation_id"] == body["reservation_id"]

        again = client.post(f"{API}/pickup", json={"code": code})
        assert again.status_code == 409
        assert _error(again)["kind"] == "ReservationAlreadyFulfilled"
        assert _error(again)["retryable"] is False

        balances = client.get(f"{API}/prescriptions", headers=ana_headers).json()
        acet = next(b for b in balances if b["medicine_id"] == ACET)
        assert (acet["used_units"], acet["pending"]) == (10, 20)

        history = client.get(f"{API}/deliveries", headers=ana_headers).json()
        assert [(h["med_code"], h["units"]) for h in history] == [("ACET500TAB", 10)]

    def test_timestamps_are_utc(self, client, ana_headers):
        created = _reserve(client, ana_headers, (ACET, 1)).json()
        details = client.get(f"{API}/reservations/{created['code']}", headers=ana_headers).json()
        client.post(f"{API}/pickup", json={"code": created["code"]})
        history = client.get(f"{API}/deliveries", headers=ana_headers).json()

        stamps = [created["expires_at"], details["created_at"], details["expires_at"], history[0]["delivered_at"]]
        assert all(s.endswith(("Z", "+00:00")) for s in stamps)

    def test_reservation_details_and_list(self, client, ana_headers):
        code = _reserve(client, ana_headers, (ACET, 2), (METF, 1)).json()["code"]

        details = client.get(f"{API}/reservations/{code}", headers=ana_headers)
        assert details.status_code == 200
        assert details.json()["status"] == "PENDING"
        assert details.json()["total_units"] == 3
        assert details.json()["dispenser_name"] == "Disp. Av. 27"

        listing = client.get(f"{API}/reservations", headers=ana_headers).json()
        assert [r["code"] for r in listing] == [code]

    def test_other_patient_cannot_read_reservation(self, client, ana_headers, carlos_headers):
        code = _reserve(client, ana_headers, (ACET, 2)).json()["code"]

        response = client.get(f"{API}/reservations/{code}", headers=carlos_headers)

        assert response.status_code == 404
        assert _error(response)["kind"] == "NotFound"

    def test_unknown_pickup_code(self, client):
        response = client.post(f"{API}/pickup", json={"code": "ZZZZZZ"})

        assert response.status_code == 404
        assert _error(response)["kind"] == "NotFound"

    def test_terminal_key_enforced_when_configured(self, client, ana_headers, monkeypatch):
        monkeypatch.setattr(get_settings(), "terminal_api_key", "kiosk-secret")
        code = _reserve(client, ana_headers, (ACET, 1)).json()["code"]

        assert client.post(f"{API}/pickup", json={"code": code}).status_code == 401
        ok = client.post(f"{API}/pickup", json={"code": code}, headers={"X-Terminal-Key": "kiosk-secret"})
        assert ok.status_code == 200


# =============================================================================
# Error payloads
# =============================================================================

class TestReservationErrors:
    @pytest.mark.parametrize(
        "pairs, dispenser_id, status_code, kind",
        [
            (((ACET, 0),), DISP_AV27, 400, "InvalidQuantity"),
            (((ACET, -2),), DISP_AV27, 400, "InvalidQuantity"),
            (((ACET, 31),), DISP_CANAVERAL, 409, "InsufficientPendingBalance"),
            (((METF, 6),), DISP_AV27, 409, "InsufficientStock"),
            (((ACET, 1),), 404, 404, "NotFound"),
        ],
    )
    def test_error_kinds(self, client, ana_headers, pairs, dispenser_id, status_code, kind):
        response = _reserve(client, ana_headers, *pairs, dispenser_id=dispenser_id)

        assert response.status_code == status_code
        assert _error(response)["kind"] == kind
        assert _error(response)["message"]

    @pytest.mark.parametrize("units", [1.5, True, "2"])
    def test_non_integer_units_are_invalid_quantity(self, client, ana_headers, units):
        response = client.post(
            f"{API}/reservations",
            json={"dispenser_id": DISP_AV27, "items": [{"medicine_id": ACET, "units": units}]},
            headers=ana_headers,
        )

        assert response.status_code == 400
        assert _error(response)["kind"] == "InvalidQuantity"
        assert _error(response)["retryable"] is False
        stock = client.get(f"{API}/dispensers", params={"dispenser_id": DISP_AV27}, headers=ana_headers).json()
        assert {row["medicine_id"]: row["stock"] for row in stock}[ACET] == 10

    def test_malformed_body_has_validation_kind(self, client, ana_headers):
        response = client.post(
            f"{API}/reservations",
            json={"dispenser_id": "av27", "items": [{"medicine_id": ACET, "units": 1}]},
            headers=ana_headers,
        )

        assert response.status_code == 422
        assert _error(response)["kind"] == "ValidationError"
        assert "dispenser_id" in _error(response)["message"]
        assert _error(response)["retryable"] is False

    def test_rejected_request_leaves_stock(self, client, ana_headers):
        _reserve(client, ana_headers, (ACET, 2), (METF, 6))

        stock = client.get(f"{API}/dispensers", params={"dispenser_id": DISP_AV27}, headers=ana_headers).json()

        assert {row["medicine_id"]: row["stock"] for row in stock} == {ACET: 10, METF: 5}

    def test_unknown_dispenser_stock(self, client, ana_headers):
        response = client.get(f"{API}/dispensers", params={"dispenser_id": 404}, headers=ana_headers)

        assert response.status_code == 404


# =============================================================================
# Read side and documents
# =============================================================================

class TestReadSideAndDocuments:
    def test_suggestions_sorted_by_stock(self, client, ana_headers):
        rows = client.get(f"{API}/dispensers/suggestions", headers=ana_headers).json()

        assert [(r["dispenser_id"], r["medicine_id"], r["stock"]) for r in rows] == [
            (DISP_CANAVERAL, ACET, 20),
            (DISP_AV27, ACET, 10),
            (DISP_AV27, METF, 5),
        ]

    def test_reconcile_without_body(self, client, ana_headers):
        response = client.post(f"{API}/prescriptions/reconcile", headers=ana_headers)

        assert response.status_code == 200
        assert [b["used_units"] for b in response.json()] == [0, 0]

    def test_reservation_pdf_and_qr(self, client, ana_headers):
        code = _reserve(client, ana_headers, (ACET, 2)).json()["code"]

        pdf = client.get(f"{API}/reservations/{code}/pdf", headers=ana_headers)
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")

        qr = client.get(f"{API}/reservations/{code}/qr", headers=ana_headers)
        assert qr.status_code == 200
        assert qr.headers["content-type"].startswith("image/svg+xml")
        assert "<svg" in qr.text

    def test_delivery_pdf(self, client, ana_headers):
        created = _reserve(client, ana_headers, (ACET, 2)).json()
        client.post(f"{API}/pickup", json={"code": created["code"]})

        pdf = client.get(f"{API}/deliveries/{created['reservation_id']}/pdf", headers=ana_headers)

        assert pdf.status_code == 200
        assert pdf.content.startswith(b"%PDF")

    def test_delivery_pdf_before_pickup_is_not_found(self, client, ana_headers):
        created = _reserve(client, ana_headers, (ACET, 2)).json()

        response = client.get(f"{API}/deliveries/{created['reservation_id']}/pdf", headers=ana_headers)

        assert response.status_code == 404
