"""Unit tests for the low-depth alert email"""

import asyncio
import smtplib

import pytest

from tire_inspection_service.core import notifier as notifier_module
from tire_inspection_service.core.inspection_manager import InspectionManager
from tire_inspection_service.core.notifier import LowDepthNotifier, flagged_tires
from tire_inspection_service.models.inspection import TireInspection

IMG = "https://tire-images.s3.us-east-1.amazonaws.com/tires/ABC123"


def _records():
    return [
        TireInspection(submission_id="s", plate="ABC123", position="front-left", tire_index=1,
                       depths=[4.0, 6.0], images=[f"{IMG}/1-1-a.jpg", f"{IMG}/1-2-b.jpg", f"{IMG}/1-3-c.jpg"]),
        TireInspection(submission_id="s", plate="ABC123", position="front-right", tire_index=2,
                       depths=[7.0, 8.0], images=[f"{IMG}/1-4-d.jpg"]),
    ]


class FakeSMTP:
    instances = []
    fail_on_send = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        if FakeSMTP.fail_on_send:
            raise smtplib.SMTPServerDisconnected("connection closed")
        self.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_on_send = False
    monkeypatch.setattr(notifier_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _notifier(**kwargs):
    options = dict(
        email_user="alerts@tires.example",
        email_pass="secret",
        recipient="fleet@tires.example",
        smtp_host="smtp.example",
        smtp_port=587,
        threshold=5.0,
    )
    options.update(kwargs)
    return LowDepthNotifier(**options)


@pytest.mark.unit
class TestLowDepthNotifier:

    def test_only_flagged_tires_are_reported(self):
        assert [t.tire_index for t in flagged_tires(_records(), 5.0)] == [1]

    def test_sends_alert(self, fake_smtp):
        sent = asyncio.run(_notifier().notify("ABC123", _records()))

        assert sent is True
        (smtp,) = fake_smtp.instances
        assert (smtp.host, smtp.port) == ("smtp.example", 587)
        assert smtp.calls == ["starttls", ("login", "alerts@tires.example", "secret")]
        (msg,) = smtp.sent
        assert msg["To"] == "fleet@tires.example"
        assert "alerts@tires.example" in msg["From"]
        assert "1 tire(s)" in msg["Subject"]
        assert "ABC123" in msg["Subject"]

    def test_message_lists_position_depths_and_slot_links(self):
        msg = _notifier().build_message("ABC123", flagged_tires(_records(), 5.0))

        text = msg.get_body(preferencelist=("plain",)).get_content()
        html = msg.get_body(preferencelist=("html",)).get_content()

        assert "Tire 1 - front-left: 4 mm, 6 mm" in text
        assert "front-right" not in text
        assert f'href="{IMG}/1-1-a.jpg"' in html
        assert ">Interior</a>" in html
        assert ">Center</a>" in html
        assert ">Exterior</a>" in html

    def test_links_are_labelled_by_slot_not_position(self):
        center_only = TireInspection(
            submission_id="s", plate="ABC123", position="rear-left", tire_index=3, depths=[2.0],
            images=[f"{IMG}/1700000000000-1-tire-3-2-1700000000000-center.jpg"]
        )

        msg = _notifier().build_message("ABC123", [center_only])

        html = msg.get_body(preferencelist=("html",)).get_content()
        text = msg.get_body(preferencelist=("plain",)).get_content()
        assert ">Center</a>" in html
        assert ">Interior</a>" not in html
        assert "  Center: " in text

    def test_skips_when_credentials_missing(self, fake_smtp):
        sent = asyncio.run(_notifier(email_user="", email_pass="").notify("ABC123", _records()))

        assert sent is False
        assert fake_smtp.instances == []

    def test_skips_when_nothing_is_low(self, fake_smtp):
        sent = asyncio.run(_notifier().notify("ABC123", _records()[1:]))

        assert sent is False
        assert fake_smtp.instances == []

    def test_dispatch_failure_is_swallowed(self, fake_smtp):
        fake_smtp.fail_on_send = True

        sent = asyncio.run(_notifier().notify("ABC123", _records()))

        assert sent is False

    def test_connection_failure_is_swallowed(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("no smtp here")

        monkeypatch.setattr(notifier_module.smtplib, "SMTP", refuse)

        assert asyncio.run(_notifier().notify("ABC123", _records())) is False


@pytest.mark.unit
class TestDispatchLowDepthAlert:

    def test_unexpected_notifier_error_never_escapes(self):
        class ExplodingNotifier(LowDepthNotifier):
            async def notify(self, plate, records):
                raise RuntimeError("template bug")

        manager = InspectionManager(notifier=ExplodingNotifier(threshold=5.0))

        asyncio.run(manager.dispatch_low_depth_alert("ABC123", _records()))
