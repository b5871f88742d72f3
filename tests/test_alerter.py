import json

import httpx

from billing_panel.core.config import Settings
from billing_panel.core.constants import DeliveryChannel
from billing_panel.utils.alerter import ExternalNotifier


def _email_settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path),
        resend_api_key="re_test_key",
        alert_email="owner@example.com",
    )


def test_email_delivery_via_resend(tmp_path):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = ExternalNotifier(_email_settings(tmp_path), http_client=client)

    result = notifier.deliver("⚠️ Cliente vencido: Ana", "Ana is overdue.")

    assert result.ok
    assert result.channel == DeliveryChannel.EMAIL
    assert result.detail == "email id=email_123"
    assert captured["auth"] == "Bearer re_test_key"
    assert captured["body"]["to"] == "owner@example.com"
    assert captured["body"]["subject"] == "⚠️ Cliente vencido: Ana"


def test_email_failure_is_reported_not_raised(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "unavailable"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = ExternalNotifier(_email_settings(tmp_path), http_client=client)

    result = notifier.deliver("subject", "body")

    assert not result.ok
    assert result.channel == DeliveryChannel.EMAIL
    assert "503" in result.detail


def test_connection_error_is_reported_not_raised(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = ExternalNotifier(_email_settings(tmp_path), http_client=client)

    result = notifier.deliver("subject", "body")
    assert not result.ok


def test_sms_outbox_without_email(tmp_path):
    settings = Settings(data_dir=str(tmp_path), resend_api_key=None, alert_email=None)
    notifier = ExternalNotifier(settings)

    assert not notifier.email_enabled
    result = notifier.deliver("subject", "Ana marked as paid. Next due: 2024-03-01")

    assert result.ok
    assert result.channel == DeliveryChannel.SMS_LOG
    lines = (tmp_path / "sms.log").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("\tAna marked as paid. Next due: 2024-03-01")
