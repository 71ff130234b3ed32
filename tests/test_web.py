"""HTTP endpoints through FastAPI's TestClient with the full app wired."""

from __future__ import annotations

import pytest
from conftest import FakeCommerce, ScriptedAIClient, text_response, tool_call, tool_response
from fastapi.testclient import TestClient

from momboss_agent.app import MomBossAgentApp
from momboss_agent.config import TwilioConfig
from momboss_agent.messenger.twilio import DEV_MODE_SID, EMPTY_TWIML, TwilioSender
from momboss_agent.web.server import create_app


@pytest.fixture
def ai() -> ScriptedAIClient:
    return ScriptedAIClient()


@pytest.fixture
def agent_app(app_config, ai) -> MomBossAgentApp:
    return MomBossAgentApp(app_config, ai_client=ai, commerce=FakeCommerce(), sender=TwilioSender(TwilioConfig()))


@pytest.fixture
def http(agent_app):
    with TestClient(create_app(agent_app)) as client:
        yield client


def test_whatsapp_webhook_replies_with_twiml(http, ai):
    ai.responses = [text_response("Karibu <Wanjiku>!")]

    response = http.post(
        "/api/whatsapp",
        data={"From": "whatsapp:+254711000111", "Body": "Hi", "ProfileName": "Wanjiku", "MessageSid": "SM1"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert response.text == "<Response><Message>Karibu &lt;Wanjiku&gt;!</Message></Response>"


def test_whatsapp_webhook_ignores_empty_body(http, ai):
    response = http.post("/api/whatsapp", data={"From": "whatsapp:+254711000111", "Body": ""})

    assert response.status_code == 200
    assert response.text == EMPTY_TWIML
    assert ai.requests == []


def test_whatsapp_status(http):
    body = http.get("/api/whatsapp").json()

    assert body["status"] == "ok"
    assert body["webhook"] == "/api/whatsapp"
    assert body["services"][0]["name"] == "maintenance"
    assert body["services"][0]["healthy"] is True


def test_test_chat_returns_reply_and_tool_calls(http, ai):
    ai.responses = [tool_response(tool_call("get_help", {"topic": "events"})), text_response("Here's how events work.")]

    response = http.post("/api/test-chat", json={"message": "How do events work?", "from": "whatsapp:+254700000001"})

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "Here's how events work."
    assert body["toolCalls"][0]["name"] == "get_help"
    assert body["tokensUsed"] == 30
    assert body["conversationId"]
    assert body["duration"] >= 0


def test_test_chat_requires_message(http):
    assert http.post("/api/test-chat", json={"from": "+254700000001"}).status_code == 400
    assert http.post("/api/test-chat", content=b"not json").status_code == 400


def test_test_chat_disabled_in_production(app_config, ai):
    app_config.environment = "production"
    agent_app = MomBossAgentApp(app_config, ai_client=ai, commerce=FakeCommerce(), sender=TwilioSender(TwilioConfig()))

    with TestClient(create_app(agent_app)) as client:
        response = client.post("/api/test-chat", json={"message": "hi"})

    assert response.status_code == 403


def test_health(http):
    response = http.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == {"connected": True}
    assert body["twilio"] == {"dev_mode": True}


def test_woocommerce_ping(http):
    response = http.post(
        "/api/webhooks/woocommerce",
        content=b"webhook_id=12",
        headers={"content-type": "application/x-www-form-urlencoded"},
    )

    assert response.json() == {"received": True, "topic": ""}


def test_woocommerce_order_created(http):
    order = {
        "id": 100,
        "number": "100",
        "total": "1500.00",
        "billing": {"first_name": "Achieng", "phone": "+254722333444"},
        "line_items": [{"name": "Cake", "quantity": 1, "total": "1500.00", "vendor_id": 42}],
    }

    response = http.post("/api/webhooks/woocommerce", json=order, headers={"x-wc-webhook-topic": "order.created"})

    assert response.status_code == 200
    assert response.json() == {
        "received": True,
        "topic": "order.created",
        "handled": True,
        "vendors_notified": 0,
        "customer_notified": True,
    }


def test_n8n_info(http):
    body = http.get("/api/webhooks/n8n").json()

    assert body["service"] == "MomBoss n8n Webhook Bridge"
    assert len(body["actions"]) == 6
    assert "x-n8n-secret" in body["auth"]


def test_n8n_health_check_without_secret(http):
    response = http.post("/api/webhooks/n8n", json={"action": "health_check"})

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_n8n_request_errors(http):
    unknown = http.post("/api/webhooks/n8n", json={"action": "reboot"})
    assert unknown.status_code == 400
    assert unknown.json() == {"error": "Unknown action: reboot"}

    missing = http.post("/api/webhooks/n8n", json={"action": "notify_vendor", "vendor_id": 999, "message": "hi"})
    assert missing.status_code == 404

    assert http.post("/api/webhooks/n8n", content=b"not json").status_code == 400


def test_n8n_run_agent(http, ai):
    ai.responses = [text_response("Habari! Your store is doing well.")]

    response = http.post(
        "/api/webhooks/n8n",
        json={"action": "run_agent", "whatsapp_number": "+254711000111", "message": "How is my store?"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "Habari! Your store is doing well."
    assert body["delivery"] == {"success": True, "messageSids": [DEV_MODE_SID]}


def test_n8n_requires_matching_secret(app_config, ai):
    app_config.n8n.webhook_secret = "s3cret"
    agent_app = MomBossAgentApp(app_config, ai_client=ai, commerce=FakeCommerce(), sender=TwilioSender(TwilioConfig()))

    with TestClient(create_app(agent_app)) as client:
        denied = client.post("/api/webhooks/n8n", json={"action": "health_check"}, headers={"x-n8n-secret": "nope"})
        allowed = client.post("/api/webhooks/n8n", json={"action": "health_check"}, headers={"x-n8n-secret": "s3cret"})

    assert denied.status_code == 401
    assert denied.json() == {"error": "Unauthorized"}
    assert allowed.status_code == 200
