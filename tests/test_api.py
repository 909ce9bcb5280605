"""
HTTP API tests.

Runs the app against the in-memory test database through httpx.
"""

import pytest

from src.utils.password import hash_password, needs_rehash, verify_password


def test_password_hashing():
    """Test password hashing utility."""
    hashed = hash_password("test_password_123")

    assert hashed != "test_password_123"
    assert verify_password("test_password_123", hashed)
    assert not verify_password("wrong_password", hashed)


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_live(self, client):
        response = await client.get("/api/health/live")
        assert response.json() == {"status": "alive"}

    async def test_ready_with_settings(self, client, world):
        response = await client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_not_ready_without_settings(self, client, db_engine):
        response = await client.get("/api/health/ready")
        assert response.status_code == 503
        assert response.json()["settings"] == "missing"


class TestAuth:
    async def test_login_sets_cookie(self, client, world):
        response = await client.post(
            "/api/auth/login",
            json={"username": "operator", "password": "password123"},
        )
        assert response.status_code == 200
        assert response.json()["role"] == "operator"
        assert "access_token" in response.cookies

    async def test_login_token_works_as_bearer(self, client, world):
        response = await client.post(
            "/api/auth/login",
            json={"username": "connector", "password": "password123"},
        )
        body = response.json()
        assert body["user_id"] == world.connector.id
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0

        client.cookies.clear()
        me = await client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json()["username"] == "connector"

    async def test_wrong_password(self, client, world):
        response = await client.post(
            "/api/auth/login",
            json={"username": "operator", "password": "nope"},
        )
        assert response.status_code == 401

    async def test_me(self, client, world, auth_headers):
        response = await client.get("/api/auth/me", headers=auth_headers(world.connector))
        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "connector"
        assert body["agency_id"] == world.agency.id

    async def test_me_requires_token(self, client, world):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_garbage_token(self, client, world):
        response = await client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401


class TestReferral:
    async def test_submit(self, client, world):
        response = await client.post(
            "/api/referral/deals",
            json={
                "connector_id": world.connector.id,
                "product_id": world.signage.id,
                "customer_company_name": "Sakura Cafe",
                "customer_name": "Tanaka",
                "customer_email": "tanaka@example.com",
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["id"] is not None

    async def test_unknown_connector(self, client, world):
        response = await client.post(
            "/api/referral/deals",
            json={
                "connector_id": 9999,
                "product_id": world.signage.id,
                "customer_company_name": "Sakura Cafe",
                "customer_name": "Tanaka",
                "customer_email": "tanaka@example.com",
            },
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestAccessControl:
    @pytest.mark.parametrize(
        "path",
        [
            "/admin/settings/rates",
            "/admin/transactions",
            "/admin/payouts",
            "/admin/partners",
            "/admin/audit/list",
            "/admin/dashboard/summary",
        ],
    )
    async def test_admin_requires_operator(self, client, world, auth_headers, path):
        response = await client.get(path, headers=auth_headers(world.agency))
        assert response.status_code == 403

    async def test_panel_rewards_requires_partner(self, client, world, auth_headers):
        response = await client.get("/panel/rewards", headers=auth_headers(world.operator))
        assert response.status_code == 403


class TestRatesApi:
    async def test_get_rates(self, client, world, auth_headers):
        response = await client.get("/admin/settings/rates", headers=auth_headers(world.operator))
        assert response.status_code == 200
        body = response.json()
        assert float(body["overall_rate"]) == 0.15
        assert float(body["agency_rate"]) == 0.10
        assert body["min_payout_jpy"] == 5000

    async def test_invalid_rates_rejected(self, client, world, auth_headers):
        response = await client.put(
            "/admin/settings/rates",
            json={"overall_rate": "0.05", "connector_rate": "0.10"},
            headers=auth_headers(world.operator),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_rate_configuration"

    async def test_rate_with_five_places_rejected(self, client, world, auth_headers):
        operator = auth_headers(world.operator)
        response = await client.put(
            "/admin/settings/rates",
            json={"overall_rate": "0.12345", "connector_rate": "0.05"},
            headers=operator,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_rate_configuration"

        response = await client.get("/admin/settings/rates", headers=operator)
        assert float(response.json()["overall_rate"]) == 0.15

    async def test_update_rates(self, client, world, auth_headers):
        response = await client.put(
            "/admin/settings/rates",
            json={"overall_rate": "0.20", "connector_rate": "0.05", "min_payout_jpy": 1000},
            headers=auth_headers(world.operator),
        )
        assert response.status_code == 200
        assert response.json()["ok"] is True

        response = await client.get("/admin/settings/rates", headers=auth_headers(world.operator))
        assert response.json()["min_payout_jpy"] == 1000


class TestPartnersApi:
    async def test_create_and_list(self, client, world, auth_headers):
        response = await client.post(
            "/admin/partners",
            json={
                "username": "newconnector",
                "password": "secret123",
                "display_name": "New Connector",
                "role": "connector",
                "agency_id": world.agency.id,
            },
            headers=auth_headers(world.operator),
        )
        assert response.status_code == 200
        assert response.json()["ok"] is True

        response = await client.get(
            "/admin/partners", params={"role": "connector"}, headers=auth_headers(world.operator)
        )
        usernames = {p["username"] for p in response.json()}
        assert "newconnector" in usernames

    async def test_duplicate_username(self, client, world, auth_headers):
        response = await client.post(
            "/admin/partners",
            json={
                "username": "agency",
                "password": "secret123",
                "display_name": "Dup",
                "role": "agency",
            },
            headers=auth_headers(world.operator),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "username_taken"

    async def test_assign_agency(self, client, world, auth_headers):
        response = await client.put(
            f"/admin/partners/{world.orphan.id}/agency",
            json={"agency_id": world.agency.id},
            headers=auth_headers(world.operator),
        )
        assert response.status_code == 200
        assert response.json()["id"] == world.orphan.id


class TestDealToPayoutFlow:
    async def test_full_flow(self, client, world, auth_headers):
        connector = auth_headers(world.connector)
        agency = auth_headers(world.agency)
        operator = auth_headers(world.operator)

        # Connector enters a signage deal
        response = await client.post(
            "/panel/deals",
            json={
                "product_id": world.signage.id,
                "customer_company_name": "Sakura Cafe",
                "customer_name": "Tanaka",
                "customer_email": "tanaka@example.com",
            },
            headers=connector,
        )
        assert response.status_code == 200
        deal_id = response.json()["id"]

        # Wrong status for the product type
        response = await client.post(
            f"/panel/deals/{deal_id}/status", json={"status": "applied"}, headers=connector
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status"

        response = await client.post(
            f"/panel/deals/{deal_id}/status", json={"status": "contracted"}, headers=agency
        )
        assert response.status_code == 200

        # Bad date leaves the deal open
        response = await client.post(
            f"/panel/deals/{deal_id}/finalize",
            json={"final_sale_amount_jpy": 100000, "closing_date": "2026/03/31"},
            headers=connector,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_date"

        response = await client.post(
            f"/panel/deals/{deal_id}/finalize",
            json={"final_sale_amount_jpy": 100000, "closing_date": "2026-03-31"},
            headers=connector,
        )
        assert response.status_code == 200
        transaction_id = response.json()["id"]

        response = await client.post(
            f"/panel/deals/{deal_id}/finalize",
            json={"final_sale_amount_jpy": 100000, "closing_date": "2026-03-31"},
            headers=connector,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "deal_locked"

        response = await client.get("/panel/deals", headers=agency)
        deal = response.json()["items"][0]
        assert deal["status"] == "installed"
        assert deal["locked"] is True
        assert deal["product_type"] == "signage"

        # Nothing payable until the operator confirms
        response = await client.get("/panel/rewards", headers=agency)
        assert response.json()["unconfirmed"] == 10000
        assert response.json()["can_request_payout"] is False

        response = await client.post("/panel/payouts", headers=agency)
        assert response.status_code == 400
        assert response.json()["error"] == "below_minimum"

        response = await client.post(
            f"/admin/transactions/{transaction_id}/confirm", headers=operator
        )
        assert response.status_code == 200
        assert response.json()["message"] == "2 reward(s) confirmed"

        response = await client.get(f"/admin/transactions/{transaction_id}", headers=operator)
        body = response.json()
        assert body["platform_share_jpy"] == 85000
        assert len(body["allocations"]) == 3

        response = await client.post("/panel/payouts", headers=agency)
        assert response.status_code == 200
        payout_id = response.json()["id"]

        response = await client.get("/panel/payouts", headers=agency)
        assert response.json()[0]["amount_jpy"] == 10000

        response = await client.get(
            "/admin/payouts", params={"status": "requested"}, headers=operator
        )
        assert response.json()["total"] == 1

        response = await client.post(f"/admin/payouts/{payout_id}/pay", headers=operator)
        assert response.status_code == 200

        response = await client.post(f"/admin/payouts/{payout_id}/pay", headers=operator)
        assert response.status_code == 409
        assert response.json()["error"] == "already_paid"

        response = await client.get("/panel/rewards/allocations", headers=agency)
        allocations = response.json()
        assert [a["status"] for a in allocations] == ["paid"]

        response = await client.get("/admin/dashboard/summary", headers=operator)
        summary = response.json()
        assert summary["total_sales"] == 100000
        assert summary["total_platform"] == 85000
        assert summary["open_payout_requests"] == 0
        assert summary["by_product_type"]["signage"]["count"] == 1

        response = await client.get(
            "/admin/audit/list", params={"action": "finalize_deal"}, headers=operator
        )
        logs = response.json()
        assert logs["total"] == 1
        assert logs["items"][0]["target_id"] == transaction_id

    async def test_other_connector_cannot_see_or_touch_deal(self, client, world, auth_headers):
        response = await client.post(
            "/panel/deals",
            json={
                "product_id": world.hotel.id,
                "customer_company_name": "Sakura Cafe",
                "customer_name": "Tanaka",
                "customer_email": "tanaka@example.com",
            },
            headers=auth_headers(world.connector),
        )
        deal_id = response.json()["id"]

        other = auth_headers(world.other_connector)
        response = await client.get("/panel/deals", headers=other)
        assert response.json()["total"] == 0

        response = await client.post(
            f"/panel/deals/{deal_id}/finalize",
            json={"final_sale_amount_jpy": 1000, "closing_date": "2026-03-31"},
            headers=other,
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"


async def _finalize_hotel_deal(client, world, auth_headers, amount=100000):
    connector = auth_headers(world.connector)
    response = await client.post(
        "/panel/deals",
        json={
            "product_id": world.hotel.id,
            "customer_company_name": "Hotel Kyoto",
            "customer_name": "Suzuki",
            "customer_email": "suzuki@example.com",
        },
        headers=connector,
    )
    deal_id = response.json()["id"]
    response = await client.post(
        f"/panel/deals/{deal_id}/finalize",
        json={"final_sale_amount_jpy": amount, "closing_date": "2026-04-01"},
        headers=connector,
    )
    assert response.status_code == 200
    return response.json()["id"]


class TestTransactionsApi:
    async def test_detail_includes_all_allocations(self, client, world, auth_headers):
        transaction_id = await _finalize_hotel_deal(client, world, auth_headers)

        response = await client.get(
            f"/admin/transactions/{transaction_id}", headers=auth_headers(world.operator)
        )
        assert response.status_code == 200
        allocations = response.json()["allocations"]
        assert [a["recipient_type"] for a in allocations] == [
            "user_reward",
            "user_reward",
            "platform_share",
        ]
        agency, connector, platform = allocations
        assert agency["user_id"] == world.agency.id
        assert agency["user_role"] == "agency"
        assert agency["status"] == "confirmed"
        assert agency["amount_jpy"] == 10000
        assert connector["user_id"] == world.connector.id
        assert connector["base_amount_jpy"] == 100000
        assert platform["user_id"] is None
        assert platform["status"] is None
        assert platform["amount_jpy"] == 85000

    async def test_list_includes_all_allocations(self, client, world, auth_headers):
        await _finalize_hotel_deal(client, world, auth_headers)
        await _finalize_hotel_deal(client, world, auth_headers, amount=333)

        response = await client.get("/admin/transactions", headers=auth_headers(world.operator))
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        for item in body["items"]:
            assert len(item["allocations"]) == 3
            assert item["allocations"][0]["user_id"] == world.agency.id
        assert [a["amount_jpy"] for a in body["items"][0]["allocations"]] == [33, 16, 284]

    async def test_detail_unknown_transaction(self, client, world, auth_headers):
        response = await client.get("/admin/transactions/999", headers=auth_headers(world.operator))
        assert response.status_code == 404


def test_malformed_hash_is_a_mismatch():
    assert not verify_password("anything", "not-a-bcrypt-hash")
    assert not needs_rehash("not-a-bcrypt-hash")


def test_low_cost_hash_needs_rehash():
    from passlib.hash import bcrypt

    weak = bcrypt.using(rounds=4).hash("password123")
    assert needs_rehash(weak)
    assert not needs_rehash(hash_password("password123"))
