"""
Tests for webhook signature verification and event parsing.
"""

import hashlib
import hmac
import json
from unittest.mock import patch

import pytest

SECRET = "sk_test_secret"


class TestVerifySignature:
    def test_matches_hmac_sha512_hex(self):
        from shared.signature import compute_signature

        body = b'{"event":"charge.success"}'
        expected = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

        assert compute_signature(SECRET, body) == expected
        assert len(expected) == 128

    def test_accepts_valid_signature(self):
        from shared.signature import compute_signature, verify_signature

        body = b'{"event":"charge.success"}'
        assert verify_signature(SECRET, body, compute_signature(SECRET, body)) is True

    def test_accepts_uppercase_hex(self):
        from shared.signature import compute_signature, verify_signature

        body = b"{}"
        assert verify_signature(SECRET, body, compute_signature(SECRET, body).upper()) is True

    @pytest.mark.parametrize("signature", [None, "", "abc", "0" * 128])
    def test_rejects_missing_or_wrong_signature(self, signature):
        from shared.signature import verify_signature

        assert verify_signature(SECRET, b"{}", signature) is False

    def test_reserialized_body_does_not_verify(self):
        from shared.signature import compute_signature, verify_signature

        raw = b'{"event": "charge.success",  "data": {}}'
        signature = compute_signature(SECRET, raw)
        reserialized = json.dumps(json.loads(raw), separators=(",", ":")).encode()

        assert verify_signature(SECRET, reserialized, signature) is False

    def test_uses_constant_time_comparison(self):
        from shared import signature as module

        with patch.object(module.hmac, "compare_digest", wraps=hmac.compare_digest) as compare:
            module.verify_signature(SECRET, b"{}", "deadbeef")

        compare.assert_called_once()


class TestParseWebhookEvent:
    def test_parses_event_and_data(self):
        from shared.webhook_events import parse_webhook_event

        raw = json.dumps({"event": "charge.success", "data": {"reference": "r1"}}).encode()
        event = parse_webhook_event(raw)

        assert event.event_type == "charge.success"
        assert event.data == {"reference": "r1"}
        assert event.raw_body == raw

    @pytest.mark.parametrize("raw", [b"", b"not json", b"[]", b'{"data": {}}', b'{"event": 5}'])
    def test_rejects_malformed_bodies(self, raw):
        from shared.errors import ValidationError
        from shared.webhook_events import parse_webhook_event

        with pytest.raises(ValidationError):
            parse_webhook_event(raw)

    def test_missing_data_becomes_empty(self):
        from shared.webhook_events import parse_webhook_event

        assert parse_webhook_event(b'{"event": "ping"}').data == {}


class TestExtractChargeDetails:
    def test_extracts_fields(self):
        from shared.webhook_events import WebhookEvent, extract_charge_details

        event = WebhookEvent(
            event_type="charge.success",
            data={
                "status": "success",
                "reference": "ref_9",
                "amount": 250000,
                "customer": {"email": "ada@example.com"},
            },
        )
        charge = extract_charge_details(event)

        assert charge.customer_email == "ada@example.com"
        assert charge.reference == "ref_9"
        assert charge.status == "success"
        assert charge.amount == 250000

    @pytest.mark.parametrize(
        "data",
        [
            {"reference": "r1"},
            {"reference": "r1", "customer": {}},
            {"reference": "r1", "customer": "ada@example.com"},
            {"customer": {"email": "ada@example.com"}},
        ],
    )
    def test_rejects_incomplete_charge(self, data):
        from shared.errors import ValidationError
        from shared.webhook_events import WebhookEvent, extract_charge_details

        with pytest.raises(ValidationError):
            extract_charge_details(WebhookEvent(event_type="charge.success", data=data))
