"""
Portbook Backend - Destination API Tests
==========================================

What:  End-to-end tests for /api/destinations through the real app.
How:   HTTPX AsyncClient over ASGITransport; the database is the in-memory
       SQLite set up in conftest.py.

What we test:
    ✅ Every route requires a valid bearer token (401 before validation)
    ✅ Malformed ids and bodies produce 400 with per-field errors
    ✅ Status codes and messages of the success envelopes
    ✅ Soft delete, bulk all-or-nothing, idempotent line removal
"""

from uuid import uuid4

import pytest

from app.security import create_access_token

BASE = "/api/destinations"


async def create(client, headers, body):
    response = await client.post(BASE, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAuthentication:
    """The whole router sits behind the bearer-token dependency."""

    @pytest.mark.asyncio
    async def test_missing_header(self, test_client):
        response = await test_client.get(BASE)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "unauthorized"
        assert body["message"] == "No authorization header, access denied"
        assert body["requestId"]

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, test_client, auth_token):
        response = await test_client.get(BASE, headers={"Authorization": f"Token {auth_token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token format, use 'Bearer <token>'"

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client):
        token = create_access_token("user-1", expires_minutes=-5)

        response = await test_client.get(BASE, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_auth_checked_before_body_validation(self, test_client):
        response = await test_client.post(BASE, json={"destinationName": ""})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_health_is_public(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestDestinationEndpoints:
    """Create, read, update and soft-delete destinations."""

    @pytest.mark.asyncio
    async def test_create_returns_201_and_message(
        self, test_client, auth_headers, sample_destination_payload
    ):
        response = await test_client.post(
            BASE, json=sample_destination_payload, headers=auth_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Destination created successfully with 2 shipping lines"
        data = body["data"]
        assert data["destinationName"] == "Port of Hamburg"
        assert data["isActive"] is True
        assert data["activeShippingLinesCount"] == 1
        assert [line["lineName"] for line in data["shippingLines"]] == [
            "Hapag-Lloyd",
            "Maersk Line",
        ]
        assert "createdAt" in data and "updatedAt" in data
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_create_validation_errors(self, test_client, auth_headers):
        response = await test_client.post(
            BASE,
            json={"destinationName": "A", "shippingLines": [{"lineName": "Maersk", "isActive": "yes"}]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Validation errors"
        assert {"field": "destinationName",
                "message": "Destination name must be between 2 and 100 characters"} in body["errors"]
        assert {"field": "shippingLines.0.isActive",
                "message": "isActive must be a boolean value"} in body["errors"]

    @pytest.mark.asyncio
    async def test_create_duplicate_line_names(self, test_client, auth_headers):
        response = await test_client.post(
            BASE,
            json={
                "destinationName": "Port of Oakland",
                "shippingLines": [{"lineName": "ONE"}, {"lineName": "one"}],
            },
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Duplicate shipping line names are not allowed"

    @pytest.mark.asyncio
    async def test_create_duplicate_destination(
        self, test_client, auth_headers, sample_destination_payload
    ):
        await create(test_client, auth_headers, sample_destination_payload)

        response = await test_client.post(
            BASE, json=sample_destination_payload, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "conflict",
            "message": "Destination with this name already exists",
            "requestId": response.headers["X-Request-ID"],
        }

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client, auth_headers):
        response = await test_client.post(
            BASE,
            content=b'{"destinationName": ',
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "body", "message": "Malformed JSON body"}]

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, test_client, auth_headers):
        response = await test_client.get(f"{BASE}/not-a-uuid", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "destination_id", "message": "Invalid destination ID format"}
        ]

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, test_client, auth_headers):
        response = await test_client.get(f"{BASE}/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Destination not found"

    @pytest.mark.asyncio
    async def test_list_and_soft_delete(self, test_client, auth_headers):
        hamburg = await create(test_client, auth_headers, {"destinationName": "Port of Hamburg"})
        await create(test_client, auth_headers, {"destinationName": "Port of Antwerp"})

        delete_response = await test_client.delete(f"{BASE}/{hamburg['id']}", headers=auth_headers)
        list_response = await test_client.get(BASE, headers=auth_headers)
        get_response = await test_client.get(f"{BASE}/{hamburg['id']}", headers=auth_headers)

        assert delete_response.status_code == 200
        assert delete_response.json() == {
            "success": True,
            "message": "Destination deleted successfully",
        }
        body = list_response.json()
        assert body["count"] == 1
        assert [d["destinationName"] for d in body["data"]] == ["Port of Antwerp"]
        assert get_response.json()["data"]["isActive"] is False

    @pytest.mark.asyncio
    async def test_list_filtered_by_shipping_line(self, test_client, auth_headers):
        await create(
            test_client,
            auth_headers,
            {"destinationName": "Port of Hamburg", "shippingLines": [{"lineName": "Hapag-Lloyd"}]},
        )
        await create(
            test_client,
            auth_headers,
            {"destinationName": "Port of Oakland", "shippingLines": [{"lineName": "Matson"}]},
        )

        response = await test_client.get(
            BASE, params={"shippingLine": "HAPAG"}, headers=auth_headers
        )

        assert response.json()["count"] == 1
        assert response.json()["data"][0]["destinationName"] == "Port of Hamburg"

    @pytest.mark.asyncio
    async def test_update_name_only_keeps_lines(
        self, test_client, auth_headers, sample_destination_payload
    ):
        created = await create(test_client, auth_headers, sample_destination_payload)

        response = await test_client.put(
            f"{BASE}/{created['id']}",
            json={"destinationName": "Hamburg Port Authority"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Destination updated successfully"
        assert body["data"]["destinationName"] == "Hamburg Port Authority"
        assert [line["id"] for line in body["data"]["shippingLines"]] == [
            line["id"] for line in created["shippingLines"]
        ]

    @pytest.mark.asyncio
    async def test_rename_onto_existing_destination(self, test_client, auth_headers):
        port_a = await create(test_client, auth_headers, {"destinationName": "Port A"})
        await create(test_client, auth_headers, {"destinationName": "Port B"})

        response = await test_client.put(
            f"{BASE}/{port_a['id']}", json={"destinationName": "Port B"}, headers=auth_headers
        )
        current = await test_client.get(f"{BASE}/{port_a['id']}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "Destination with this name already exists"
        assert current.json()["data"]["destinationName"] == "Port A"

    @pytest.mark.asyncio
    async def test_rename_differing_only_in_case(self, test_client, auth_headers):
        port_a = await create(test_client, auth_headers, {"destinationName": "Port A"})
        await create(test_client, auth_headers, {"destinationName": "Port B"})

        response = await test_client.put(
            f"{BASE}/{port_a['id']}", json={"destinationName": "port b"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["destinationName"] == "port b"

    @pytest.mark.asyncio
    async def test_timestamps_are_utc(self, test_client, auth_headers, sample_destination_payload):
        created = await create(test_client, auth_headers, sample_destination_payload)

        response = await test_client.get(f"{BASE}/{created['id']}", headers=auth_headers)

        data = response.json()["data"]
        stamps = [data["createdAt"], data["updatedAt"]]
        for line in data["shippingLines"]:
            stamps += [line["createdAt"], line["updatedAt"]]
        assert all(stamp.endswith("Z") or stamp.endswith("+00:00") for stamp in stamps)

    @pytest.mark.asyncio
    async def test_update_null_lines_rejected(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Hamburg"})

        response = await test_client.put(
            f"{BASE}/{created['id']}", json={"shippingLines": None}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "shippingLines", "message": "Shipping lines must be an array"}
        ]


class TestShippingLineEndpoints:
    """Line-level routes nested under a destination."""

    @pytest.mark.asyncio
    async def test_add_line(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Hamburg"})

        response = await test_client.post(
            f"{BASE}/{created['id']}/shipping-lines",
            json={"lineName": "Hapag-Lloyd"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Shipping line added successfully"
        assert body["data"]["shippingLines"][0]["lineName"] == "Hapag-Lloyd"
        assert body["data"]["shippingLines"][0]["isActive"] is True

    @pytest.mark.asyncio
    async def test_add_line_to_unknown_destination(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/{uuid4()}/shipping-lines",
            json={"lineName": "Hapag-Lloyd"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bulk_add_conflict_changes_nothing(self, test_client, auth_headers):
        created = await create(
            test_client,
            auth_headers,
            {"destinationName": "Port of Singapore", "shippingLines": [{"lineName": "COSCO Shipping"}]},
        )

        response = await test_client.post(
            f"{BASE}/{created['id']}/shipping-lines/bulk",
            json={"shippingLines": [{"lineName": "Ocean Network Express"}, {"lineName": "Cosco Shipping"}]},
            headers=auth_headers,
        )
        current = await test_client.get(f"{BASE}/{created['id']}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Shipping lines already exist: Cosco Shipping"
        assert [line["lineName"] for line in current.json()["data"]["shippingLines"]] == [
            "COSCO Shipping"
        ]

    @pytest.mark.asyncio
    async def test_bulk_add_success_message(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Singapore"})

        response = await test_client.post(
            f"{BASE}/{created['id']}/shipping-lines/bulk",
            json={"shippingLines": [{"lineName": "Ocean Network Express"}, {"lineName": "PIL"}]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "2 shipping lines added successfully"

    @pytest.mark.asyncio
    async def test_bulk_add_empty_array(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Singapore"})

        response = await test_client.post(
            f"{BASE}/{created['id']}/shipping-lines/bulk",
            json={"shippingLines": []},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "shippingLines must be a non-empty array"

    @pytest.mark.asyncio
    async def test_patch_line_partial(self, test_client, auth_headers, sample_destination_payload):
        created = await create(test_client, auth_headers, sample_destination_payload)
        line = created["shippingLines"][1]

        response = await test_client.put(
            f"{BASE}/{created['id']}/shipping-lines/{line['id']}",
            json={"isActive": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        updated = response.json()["data"]["shippingLines"][1]
        assert updated["id"] == line["id"]
        assert updated["lineName"] == "Maersk Line"
        assert updated["isActive"] is True
        assert response.json()["data"]["activeShippingLinesCount"] == 2

    @pytest.mark.asyncio
    async def test_patch_line_malformed_line_id(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Hamburg"})

        response = await test_client.put(
            f"{BASE}/{created['id']}/shipping-lines/123",
            json={"isActive": True},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "line_id", "message": "Invalid shipping line ID format"}
        ]

    @pytest.mark.asyncio
    async def test_patch_unknown_line(self, test_client, auth_headers):
        created = await create(test_client, auth_headers, {"destinationName": "Port of Hamburg"})

        response = await test_client.put(
            f"{BASE}/{created['id']}/shipping-lines/{uuid4()}",
            json={"isActive": True},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Shipping line not found"

    @pytest.mark.asyncio
    async def test_remove_line_twice(self, test_client, auth_headers, sample_destination_payload):
        created = await create(test_client, auth_headers, sample_destination_payload)
        url = f"{BASE}/{created['id']}/shipping-lines/{created['shippingLines'][0]['id']}"

        first = await test_client.delete(url, headers=auth_headers)
        second = await test_client.delete(url, headers=auth_headers)

        assert first.status_code == 200
        assert first.json()["message"] == "Shipping line deleted successfully"
        assert second.status_code == 200
        assert [line["lineName"] for line in second.json()["data"]["shippingLines"]] == [
            "Maersk Line"
        ]
