from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.services.catalog import PhoneCatalog


@pytest.fixture
def llm():
    return Mock()


@pytest.fixture
def http(cfg, phones_csv, llm):
    return TestClient(create_app(cfg, catalog=PhoneCatalog(phones_csv), client=llm))


class TestCatalogEndpoints:
    """Test read-only endpoints"""

    def test_health(self, http):
        resp = http.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "models": ["model-a", "model-b"]}

    def test_phones(self, http):
        body = http.get("/phones").json()
        assert body["count"] == 3
        assert body["phones"][0]["id"] == "p1"

    def test_phones_by_price_range(self, http):
        body = http.get("/phones", params={"price_range": "budget"}).json()
        assert [p["id"] for p in body["phones"]] == ["p3"]


class TestCompareEndpoint:
    """Test POST /compare"""

    def test_compare_success(self, http, llm, valid_json):
        llm.generate.return_value = valid_json

        resp = http.post("/compare", json={"budget": 30000, "priorities": ["battery", "camera"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["error"] is None
        assert body["comparison"]["selected_phone"]["phone_id"] == "p2"
        assert body["comparison"]["runner_up"]["phone_id"] == "p1"
        assert len(body["phones"]) == 3
        assert body["processing_time_ms"] >= 0
        assert llm.generate.call_count == 1

    def test_compare_error_is_returned_verbatim(self, http, llm):
        llm.generate.return_value = "I think the Beta Max is best!"

        body = http.post("/compare", json={"priorities": ["battery"]}).json()

        assert body["comparison"] is None
        assert body["error"].startswith("All candidate models failed. Last error:")
        assert llm.generate.call_count == 2

    def test_compare_requires_priorities(self, http, llm):
        body = http.post("/compare", json={"budget": 30000, "priorities": []}).json()

        assert body["error"] == "Please select at least one priority (battery, camera, performance, etc.)"
        llm.generate.assert_not_called()

    def test_compare_rejects_negative_budget(self, http):
        resp = http.post("/compare", json={"budget": -5, "priorities": ["battery"]})
        assert resp.status_code == 422
