"""
Tests for Paystack helpers.

Tests: payment reference format, webhook signature (fail closed),
amount/currency matching.
"""
import re

import pytest

from services.paystack import (
    compute_signature,
    escrow_account_details,
    generate_payment_reference,
    validate_payment_amount,
    validate_payment_currency,
    verify_webhook_signature,
)

SECRET = "sk_test_webhook"
BODY = b'{"event":"charge.success","data":{"reference":"GIG_X"}}'


class TestPaymentReference:

    @pytest.mark.unit
    def test_format(self):
        ref = generate_payment_reference("ord-42", prefix="gig")
        assert re.fullmatch(r"GIG_ORD-42_\d{13}_[0-9A-Z]{13}", ref)

    @pytest.mark.unit
    def test_default_prefix(self):
        assert generate_payment_reference("abc").startswith("GIG_ABC_")

    @pytest.mark.unit
    def test_references_differ(self):
        refs = {generate_payment_reference("same-order") for _ in range(50)}
        assert len(refs) == 50


class TestWebhookSignature:

    @pytest.mark.unit
    def test_valid_signature(self):
        assert verify_webhook_signature(BODY, compute_signature(BODY, SECRET), SECRET) is True

    @pytest.mark.unit
    def test_signature_is_case_insensitive_hex(self):
        assert verify_webhook_signature(BODY, compute_signature(BODY, SECRET).upper(), SECRET) is True

    @pytest.mark.unit
    def test_tampered_body_rejected(self):
        signature = compute_signature(BODY, SECRET)
        assert verify_webhook_signature(BODY + b" ", signature, SECRET) is False

    @pytest.mark.unit
    def test_missing_header_rejected(self):
        assert verify_webhook_signature(BODY, None, SECRET) is False
        assert verify_webhook_signature(BODY, "", SECRET) is False

    @pytest.mark.unit
    def test_missing_secret_fails_closed(self):
        signature = compute_signature(BODY, "anything")
        assert verify_webhook_signature(BODY, signature, "") is False

    @pytest.mark.unit
    def test_sha512_hex_length(self):
        assert len(compute_signature(BODY, SECRET)) == 128


class TestAmountMatching:

    @pytest.mark.unit
    def test_exact_match(self):
        assert validate_payment_amount(5_000_000, 5_000_000) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("received", [4_999_999, 5_000_001, 0, -5_000_000])
    def test_any_difference_rejected(self, received):
        assert validate_payment_amount(5_000_000, received) is False

    @pytest.mark.unit
    @pytest.mark.parametrize("received", ["5000000", 5_000_000.0, None, True])
    def test_non_integer_amounts_rejected(self, received):
        assert validate_payment_amount(5_000_000, received) is False

    @pytest.mark.unit
    def test_currency(self):
        assert validate_payment_currency("NGN", "ngn") is True
        assert validate_payment_currency("NGN", None) is True
        assert validate_payment_currency("NGN", "USD") is False


class TestEscrowAccount:

    @pytest.mark.unit
    def test_has_transfer_instructions(self):
        account = escrow_account_details()
        assert set(account) == {"bank_name", "account_number", "account_name", "instructions"}
        assert "reference" in account["instructions"]
