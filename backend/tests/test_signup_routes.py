"""
Signup API: products, form descriptor, token storage, submit and submission
tracking. MongoDB is a MagicMock patched in through database.get_db; the relay
is an httpx MockTransport.
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from config import ClmSettings, get_settings
from conftest import make_db
from routes.signup import get_relay_client
from server import app
from services.clm_relay_client import ClmRelayClient

GET_DB = "services.clm_settings_store.database.get_db"

SAMPLE_CONFIGURATION = {
    "workflow_name": "Agent Addendum",
    "fields": [
        {"name": "Agent_Name", "label": "Agent Name", "type": "text", "sample_value": "Jane", "required": True},
        {"name": "Electronic_invoice", "label": "Electronic Invoice", "type": "select",
         "options": ["Yes", "No"], "sample_value": "Yes", "required": True},
    ],
    "root_element": "TemplateFieldData",
}


def _settings_lookup(token=None, configuration=None):
    async def find_one(query, projection=None):
        if query.get("key") == "api_token" and token:
            return {"key": "api_token", "value": token}
        if query.get("key") == "workflow_configuration" and configuration:
            return {"key": "workflow_configuration", "value": configuration}
        return None
    return find_one


class RelayCalls(list):
    """Captured relay requests plus the response the mock relay returns."""


@pytest.fixture
def relay_calls():
    calls = RelayCalls()
    state = {"response": httpx.Response(201, json={"Id": "wf-100"})}

    def handler(request):
        calls.append(request)
        return state["response"]

    app.dependency_overrides[get_relay_client] = lambda: ClmRelayClient(
        "http://relay.test", transport=httpx.MockTransport(handler)
    )
    app.dependency_overrides[get_settings] = lambda: ClmSettings(
        account_id="acct-1", legacy_workflow_name="Signup Flow"
    )
    calls.state = state
    return calls


def test_products_lists_all_categories(client):
    response = client.get("/api/signup/products")
    assert response.status_code == 200
    categories = response.json()["categories"]
    assert set(categories) == {"mobile", "broadband", "business", "iot"}
    assert all(len(products) == 4 for products in categories.values())


def test_form_is_legacy_without_configuration(client):
    db = make_db()
    with patch(GET_DB, return_value=db):
        response = client.get("/api/signup/form")
    assert response.status_code == 200
    assert response.json() == {"mode": "legacy", "workflow_name": None, "fields": []}


def test_form_is_dynamic_with_configuration(client):
    db = make_db()
    db.clm_settings.find_one = AsyncMock(side_effect=_settings_lookup(configuration=SAMPLE_CONFIGURATION))
    with patch(GET_DB, return_value=db):
        response = client.get("/api/signup/form")
    data = response.json()
    assert data["mode"] == "dynamic"
    assert [f["field_key"] for f in data["fields"]] == ["Agent_Name", "Electronic_invoice"]


# ============================================================================
# TOKEN
# ============================================================================

def test_save_token_rejects_blank(client):
    db = make_db()
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/token", json={"token": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a token"
    db.clm_settings.replace_one.assert_not_awaited()


def test_save_and_clear_token(client):
    db = make_db()
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/token", json={"token": " abc "})
        assert response.status_code == 200
        assert response.json()["configured"] is True
        args, kwargs = db.clm_settings.replace_one.call_args
        assert args[0] == {"key": "api_token"}
        assert args[1]["value"] == "abc"
        assert kwargs["upsert"] is True

        response = client.delete("/api/signup/token")
        assert response.json()["configured"] is False
        db.clm_settings.delete_one.assert_awaited_once_with({"key": "api_token"})


def test_token_status(client):
    db = make_db()
    db.clm_settings.find_one = AsyncMock(side_effect=_settings_lookup(token="abc"))
    with patch(GET_DB, return_value=db):
        assert client.get("/api/signup/token/status").json() == {"configured": True}


# ============================================================================
# SUBMIT
# ============================================================================

def test_submit_without_token_is_configuration_error(client, relay_calls):
    db = make_db()
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/submit", json={
            "values": {"email": "a@b.co", "phone": "1", "productCategory": "mobile"},
        })
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error_kind"] == "configuration"
    assert relay_calls == []


def test_submit_validation_error(client, relay_calls):
    db = make_db()
    db.clm_settings.find_one = AsyncMock(side_effect=_settings_lookup(token="tok"))
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/submit", json={"values": {"email": "a@b.co"}})
    assert response.status_code == 422
    assert response.json()["error_kind"] == "validation"
    assert relay_calls == []


def test_submit_dynamic_success_records_submission(client, relay_calls):
    db = make_db()
    db.clm_settings.find_one = AsyncMock(
        side_effect=_settings_lookup(token="tok", configuration=SAMPLE_CONFIGURATION)
    )
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/submit", json={
            "values": {"Agent_Name": "Jane <Co>", "Electronic_invoice": "Yes"},
        })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["workflow_id"] == "wf-100"

    body = json.loads(relay_calls[0].content)
    assert body["token"] == "tok"
    assert body["accountId"] == "acct-1"
    assert body["payload"]["Name"] == "Agent Addendum"
    assert body["payload"]["Params"] == (
        "<TemplateFieldData><Agent_Name>Jane &lt;Co&gt;</Agent_Name>"
        "<Electronic_invoice>Yes</Electronic_invoice></TemplateFieldData>"
    )
    inserted = db.workflow_submissions.insert_one.call_args[0][0]
    assert inserted["id"] == "wf-100"
    assert inserted["status"] == "submitted"


def test_submit_upstream_failure_is_502(client, relay_calls):
    relay_calls.state["response"] = httpx.Response(401, text="expired")
    db = make_db()
    db.clm_settings.find_one = AsyncMock(side_effect=_settings_lookup(token="tok"))
    with patch(GET_DB, return_value=db):
        response = client.post("/api/signup/submit", json={
            "values": {"email": "a@b.co", "phone": "1", "productCategory": "mobile"},
        })
    assert response.status_code == 502
    data = response.json()
    assert data["error_kind"] == "upstream"
    assert data["status_code"] == 401
    assert data["error"].startswith("Authentication failed (401)")
    db.workflow_submissions.insert_one.assert_not_awaited()


# ============================================================================
# SUBMISSIONS
# ============================================================================

def test_list_submissions_total_counts_whole_log(client):
    db = make_db()
    cursor = db.workflow_submissions.find.return_value
    cursor.to_list = AsyncMock(return_value=[
        {"id": "wf-1", "submitted_at": "2025-01-01T10:00:00+00:00", "status": "submitted",
         "metadata": {"agentName": "Jane"}},
    ])
    db.workflow_submissions.count_documents = AsyncMock(return_value=2500)
    with patch(GET_DB, return_value=db):
        response = client.get("/api/signup/submissions?skip=2000&limit=50")
    data = response.json()
    assert data["total"] == 2500
    assert data["skip"] == 2000
    assert data["limit"] == 50
    assert data["submissions"][0]["id"] == "wf-1"
    cursor.skip.assert_called_once_with(2000)
    cursor.limit.assert_called_once_with(50)


def test_list_submissions_rejects_oversized_page(client):
    with patch(GET_DB, return_value=make_db()):
        response = client.get("/api/signup/submissions?limit=5000")
    assert response.status_code == 422


def test_get_unknown_submission_is_404(client):
    with patch(GET_DB, return_value=make_db()):
        response = client.get("/api/signup/submissions/missing")
    assert response.status_code == 404


def test_update_status(client):
    db = make_db()
    db.workflow_submissions.find_one = AsyncMock(return_value={
        "id": "wf-1", "submitted_at": "2025-01-01T10:00:00+00:00", "status": "completed", "metadata": {},
    })
    with patch(GET_DB, return_value=db):
        response = client.patch("/api/signup/submissions/wf-1/status", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    query, update = db.workflow_submissions.update_one.call_args[0]
    assert query == {"id": "wf-1"}
    assert update["$set"]["status"] == "completed"
    assert "updated_at" in update["$set"]


def test_update_status_unknown_is_404(client):
    db = make_db()
    db.workflow_submissions.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
    with patch(GET_DB, return_value=db):
        response = client.patch("/api/signup/submissions/nope/status", json={"status": "completed"})
    assert response.status_code == 404
