import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.main import app
from app.db.session import get_db
from app.core.config import settings


class TestQuoteCalc:

    async def test_calc_returns_breakdown(self, test_client, valid_quote_data):
        response = await test_client.post("/quotes/calc", json=valid_quote_data)
        assert response.status_code == 200
        data = response.json()

        assert data["total"] == 9188
        assert data["pages_cost"] == 400
        assert data["features_cost"] == 1000
        assert data["design_adjustment"] == 2450
        assert data["timeline_adjustment"] == 1838
        assert data["location_adjustment"] == 0
        assert data["min"] == 8729
        assert data["max"] == 9647
        assert data["estimated_timeline"] == "2-3 weeks"

    async def test_calc_accepts_camel_case(self, test_client):
        response = await test_client.post("/quotes/calc", json={
            "siteType": "landing",
            "pageCount": 1,
            "features": ["seo"],
            "designLevel": "template",
            "timeline": "standard",
            "location": "international",
        })
        assert response.status_code == 200
        data = response.json()
        # (1500 + 500) * 1.1
        assert data["total"] == 2200
        assert data["location_adjustment"] == 200

    async def test_calc_rejects_unknown_site_type(self, test_client, valid_quote_data):
        response = await test_client.post("/quotes/calc", json={**valid_quote_data, "site_type": "blog"})
        assert response.status_code == 422

    @pytest.mark.parametrize("page_count", [0, -5, 1.5, True, 10**27])
    async def test_calc_rejects_bad_page_count(self, test_client, valid_quote_data, page_count):
        response = await test_client.post("/quotes/calc", json={**valid_quote_data, "page_count": page_count})
        assert response.status_code == 422

    async def test_calc_rejects_engine_level_page_count(self, test_client, valid_quote_data, monkeypatch):
        from app.api import quotes
        from app.schemas.quote import QuoteRequest

        real_calculate = quotes.calculate_quote

        def oversized(req, table=None):
            return real_calculate(QuoteRequest.model_construct(**{**dict(req), "page_count": 10**27}), table)

        monkeypatch.setattr(quotes, "calculate_quote", oversized)
        response = await test_client.post("/quotes/calc", json=valid_quote_data)
        assert response.status_code == 422

    async def test_calc_does_not_touch_database(self, valid_quote_data, crm_task):
        from httpx import AsyncClient, ASGITransport

        async def broken_db():
            raise AssertionError("calc must not open a session")
            yield  # pragma: no cover

        app.dependency_overrides[get_db] = broken_db
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post("/quotes/calc", json=valid_quote_data)
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 200


class TestQuoteSubmission:

    async def test_submit_persists_and_enqueues_crm_sync(
        self, test_client, valid_submission_data, crm_task, admin_token
    ):
        response = await test_client.post("/quotes/", json=valid_submission_data)
        assert response.status_code == 200
        data = response.json()

        assert data["saved"] is True
        assert isinstance(data["id"], int)
        assert data["created_at"]
        assert data["quote"]["total"] == 9188
        assert crm_task.calls == [(data["id"],)]

        stored = await test_client.get(
            f"/quotes/{data['id']}",
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        assert stored.status_code == 200
        body = stored.json()
        assert body["contact_name"] == "Jane Doe"
        assert body["email"] == "jane@example.com"
        assert body["project_notes"] == "Need it before the spring sale"
        assert body["features"] == ["payments", "seo"]
        assert body["quote"] == data["quote"]
        assert body["crm_synced"] is False

    async def test_client_supplied_total_is_ignored(self, test_client, valid_submission_data):
        response = await test_client.post("/quotes/", json={**valid_submission_data, "total": 1})
        assert response.status_code == 200
        assert response.json()["quote"]["total"] == 9188

    async def test_submit_requires_contact(self, test_client, valid_quote_data):
        response = await test_client.post("/quotes/", json=valid_quote_data)
        assert response.status_code == 422

    @pytest.mark.parametrize("email", ["not-an-email", "a@.", "a@b.", "a b@c.d", "x@@y.z"])
    async def test_submit_rejects_bad_email(self, test_client, valid_submission_data, crm_task, email):
        response = await test_client.post("/quotes/", json={**valid_submission_data, "email": email})
        assert response.status_code == 422

    async def test_persistence_failure_still_returns_estimate(self, valid_submission_data, crm_task):
        from httpx import AsyncClient, ASGITransport

        class BrokenSession:
            def add(self, obj):
                pass

            async def commit(self):
                raise SQLAlchemyError("database is down")

            async def rollback(self):
                pass

        async def broken_db():
            yield BrokenSession()

        app.dependency_overrides[get_db] = broken_db
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post("/quotes/", json=valid_submission_data)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        data = response.json()
        assert data["saved"] is False
        assert data["id"] is None
        assert data["quote"]["total"] == 9188
        assert crm_task.calls == []

    async def test_enqueue_failure_does_not_block(self, test_client, valid_submission_data, monkeypatch):
        class BrokerDown:
            def delay(self, *args):
                raise ConnectionError("broker unreachable")

        monkeypatch.setattr("app.api.quotes.sync_quote_to_crm", BrokerDown())
        response = await test_client.post("/quotes/", json=valid_submission_data)

        assert response.status_code == 200
        assert response.json()["saved"] is True

    @pytest.mark.idempotency
    async def test_idempotent_submission(self, test_client, valid_submission_data, crm_task, fake_redis):
        headers = {"Idempotency-Key": "quote-key-1"}

        first = await test_client.post("/quotes/", json=valid_submission_data, headers=headers)
        second = await test_client.post("/quotes/", json=valid_submission_data, headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert len(crm_task.calls) == 1

    @pytest.mark.rate_limit
    async def test_rate_limited_submission(self, test_client, valid_submission_data, fake_redis):
        fake_redis.store["rl:127.0.0.1"] = str(settings.RATE_LIMIT).encode()
        response = await test_client.post("/quotes/", json=valid_submission_data)
        assert response.status_code == 429


class TestSavedQuotesAdmin:

    async def test_list_requires_token(self, test_client):
        response = await test_client.get("/quotes/")
        assert response.status_code == 401

    async def test_list_requires_admin(self, test_client, agent_token):
        response = await test_client.get("/quotes/", headers={"Authorization": f"Bearer {agent_token}"})
        assert response.status_code == 403

    async def test_list_newest_first_and_filter(self, test_client, admin_token, create_saved_quote):
        from app.core.enums import SiteType

        first = await create_saved_quote()
        second = await create_saved_quote(site_type=SiteType.LANDING, contact_name="Lee Landing")
        headers = {"Authorization": f"Bearer {admin_token}"}

        response = await test_client.get("/quotes/", headers=headers)
        assert response.status_code == 200
        ids = [q["id"] for q in response.json()]
        assert ids == [second.id, first.id]

        filtered = await test_client.get("/quotes/?site_type=landing", headers=headers)
        assert [q["contact_name"] for q in filtered.json()] == ["Lee Landing"]

    async def test_get_missing_quote(self, test_client, admin_token):
        response = await test_client.get("/quotes/999", headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == 404


class TestProposals:

    async def test_proposal_for_submission(self, test_client, valid_submission_data):
        response = await test_client.post("/quotes/proposal", json=valid_submission_data)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "attachment" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    async def test_proposal_rejects_invalid_request(self, test_client, valid_submission_data):
        response = await test_client.post(
            "/quotes/proposal", json={**valid_submission_data, "timeline": "yesterday"}
        )
        assert response.status_code == 422

    async def test_proposal_for_saved_quote(self, test_client, admin_token, create_saved_quote):
        quote = await create_saved_quote()
        response = await test_client.get(
            f"/quotes/{quote.id}/proposal",
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
        assert f"{quote.id:05d}" in response.headers["content-disposition"]


class TestMonitoring:

    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["price_table_version"]

    async def test_metrics_count_calculations(self, test_client, valid_quote_data):
        await test_client.post("/quotes/calc", json=valid_quote_data)
        response = await test_client.get("/metrics")
        assert response.status_code == 200
        assert 'quotes_calculated_total{site_type="ecommerce"}' in response.text
