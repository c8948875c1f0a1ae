# Overview: Pytest coverage for messaging providers and UPI payment codes.

import base64
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from ironpress.services import messaging
from ironpress.services.payment_code_service import build_upi_uri, qr_svg_data_uri


class TwilioLog(list):
    status = 201


TWILIO_SETTINGS = {
    "sms.twilio_account_sid": "AC123",
    "sms.twilio_auth_token": "token-abc",
    "sms.from_number": "+15550001111",
    "whatsapp.from_number": "+15550002222",
}


@pytest.fixture
def twilio_requests(monkeypatch):
    """Route httpx through a MockTransport and record each Twilio request."""
    recorded = TwilioLog()
    real_client = httpx.Client

    def handler(request):
        recorded.append(request)
        return httpx.Response(recorded.status, json={"sid": "SM1"})

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(messaging.httpx, "Client", client_factory)
    return recorded


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.sent.append(msg)


class TestTwilio:
    def test_sms_posts_form_to_messages_endpoint(self, app, twilio_requests):
        assert messaging.send_sms("+919876543210", "Bill ready", TWILIO_SETTINGS) is True

        request = twilio_requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        form = parse_qs(request.content.decode())
        assert form == {"To": ["+919876543210"], "From": ["+15550001111"], "Body": ["Bill ready"]}
        expected_auth = base64.b64encode(b"AC123:token-abc").decode()
        assert request.headers["Authorization"] == f"Basic {expected_auth}"

    def test_whatsapp_addresses_are_prefixed(self, app, twilio_requests):
        assert messaging.send_whatsapp("+919876543210", "Hi", TWILIO_SETTINGS) is True

        form = parse_qs(twilio_requests[0].content.decode())
        assert form["To"] == ["whatsapp:+919876543210"]
        assert form["From"] == ["whatsapp:+15550002222"]

    def test_error_response_reports_failure(self, app, twilio_requests):
        twilio_requests.status = 400
        assert messaging.send_sms("+919876543210", "Bill ready", TWILIO_SETTINGS) is False

    def test_unconfigured_provider_does_not_call_out(self, app, twilio_requests, monkeypatch):
        monkeypatch.setitem(app.config, "TWILIO_ACCOUNT_SID", "")
        monkeypatch.setitem(app.config, "TWILIO_AUTH_TOKEN", "")

        assert messaging.send_sms("+919876543210", "Bill ready", {}) is False
        assert twilio_requests == []

    def test_store_settings_override_app_config(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "TWILIO_ACCOUNT_SID", "ACglobal")
        monkeypatch.setitem(app.config, "TWILIO_AUTH_TOKEN", "global-token")
        monkeypatch.setitem(app.config, "TWILIO_PHONE_NUMBER", "+15559990000")

        provider = messaging.resolve_provider("sms", {"sms.from_number": "+15551112222"})

        assert isinstance(provider, messaging.TwilioMessagingProvider)
        assert provider.account_sid == "ACglobal"
        assert provider.from_number == "+15551112222"

    def test_unknown_channel(self, app):
        with pytest.raises(messaging.ProviderError):
            messaging.resolve_provider("FAX", {})


class TestSmtp:
    @pytest.fixture(autouse=True)
    def fake_smtp(self, monkeypatch):
        RecordingSMTP.instances = []
        monkeypatch.setattr(messaging.smtplib, "SMTP", RecordingSMTP)

    def test_email_sent_with_html_alternative(self, app):
        settings = {
            "email.smtp_host": "smtp.sparkle.test",
            "email.smtp_port": 2525,
            "email.smtp_user": "mailer",
            "email.smtp_password": "pw",
            "email.from_address": "Sparkle <bills@sparkle.test>",
        }

        assert messaging.send_email("ravi@example.test", "Bill Ready #1", "<p>Hello</p>", settings) is True

        smtp = RecordingSMTP.instances[0]
        assert (smtp.host, smtp.port) == ("smtp.sparkle.test", 2525)
        assert smtp.calls == ["starttls", ("login", "mailer", "pw")]
        msg = smtp.sent[0]
        assert msg["To"] == "ravi@example.test"
        assert msg["Subject"] == "Bill Ready #1"
        assert msg["From"] == "Sparkle <bills@sparkle.test>"
        assert "<p>Hello</p>" in msg.get_body(preferencelist=("html",)).get_content()

    def test_missing_credentials_report_failure(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "SMTP_USER", "")
        monkeypatch.setitem(app.config, "SMTP_PASS", "")

        assert messaging.send_email("ravi@example.test", "Subject", "<p>x</p>", {}) is False
        assert RecordingSMTP.instances == []


class TestUpiCodes:
    def test_upi_uri(self):
        uri = build_upi_uri(
            upi_id="sparkle@upi",
            payee_name="Sparkle Laundry",
            amount=Decimal("45"),
            currency="INR",
            note="Bill BILL-20261019-001",
        )

        assert uri == (
            "upi://pay?pa=sparkle%40upi&pn=Sparkle%20Laundry&am=45.00&cu=INR&tn=Bill%20BILL-20261019-001"
        )

    def test_qr_is_svg_data_uri(self):
        data_uri = qr_svg_data_uri("upi://pay?pa=sparkle%40upi")

        prefix = "data:image/svg+xml;base64,"
        assert data_uri.startswith(prefix)
        svg = base64.b64decode(data_uri[len(prefix):]).decode()
        assert "<svg" in svg
