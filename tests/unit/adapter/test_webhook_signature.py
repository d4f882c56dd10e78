"""Unit tests for gateway webhook signature verification"""

import hashlib
import hmac

from src.adapter.services.webhook_signature import compute_signature, verify_signature

SECRET = "whsec_test"
BODY = b'{"event":"payment_successful","invoice_number":"INV-20240131-1A2B"}'


class TestVerifySignature:

    def test_valid_signature(self):
        signature = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()

        assert verify_signature(SECRET, BODY, signature)

    def test_prefixed_signature(self):
        assert verify_signature(SECRET, BODY, "sha256=" + compute_signature(SECRET, BODY))

    def test_tampered_body(self):
        signature = compute_signature(SECRET, BODY)

        assert not verify_signature(SECRET, BODY.replace(b"INV", b"XXX"), signature)

    def test_missing_signature(self):
        assert not verify_signature(SECRET, BODY, None)

    def test_no_secret_skips_verification(self):
        assert verify_signature("", BODY, None)
        assert verify_signature(None, BODY, "anything")

    def test_str_payload_matches_bytes(self):
        assert compute_signature(SECRET, BODY.decode()) == compute_signature(SECRET, BODY)
