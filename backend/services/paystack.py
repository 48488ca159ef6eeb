"""
Paystack integration helpers.

Handles:
    1. Payment reference generation (GIG_<orderId>_<ms>_<random>)
    2. Escrow account details shown to the payer
    3. Webhook signature verification (HMAC-SHA512 over the raw body)
    4. Amount matching (exact, minor units)

The webhook verifier FAILS CLOSED when the secret is not configured.
"""
import hashlib
import hmac
import logging
import secrets
import string
import time
from typing import Optional

from config import settings

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
RANDOM_TOKEN_LENGTH = 13


def _random_token(length: int = RANDOM_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_payment_reference(order_id: str, prefix: Optional[str] = None) -> str:
    """
    Build a payment reference for an order.

    Format: `{PREFIX}_{ORDER_ID}_{TIMESTAMP_MS}_{RANDOM}`, upper-cased.
    Uniqueness is probabilistic (timestamp + random token).
    """
    prefix = prefix or settings.payment_reference_prefix
    timestamp_ms = int(time.time() * 1000)
    return f"{prefix}_{order_id}_{timestamp_ms}_{_random_token()}".upper()


def escrow_account_details() -> dict:
    """Bank details the client pays into."""
    return {
        "bank_name": "Paystack",
        "account_number": settings.paystack_account_number or "N/A",
        "account_name": settings.paystack_account_name or "GigConnect Escrow",
        "instructions": "Please include your order reference in the transfer description",
    }


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: Optional[str] = None) -> bool:
    """
    Verify the `x-paystack-signature` header against the raw request body.

    FAILS CLOSED: a missing secret or header is a rejection.
    """
    secret = settings.paystack_webhook_secret if secret is None else secret
    if not secret:
        logger.error(
            "PAYSTACK_WEBHOOK_SECRET not configured - rejecting webhook. "
            "Set PAYSTACK_WEBHOOK_SECRET in .env to accept Paystack webhooks."
        )
        return False

    if not signature:
        logger.warning("Webhook received without signature header")
        return False

    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


def validate_payment_amount(expected_cents: int, received_cents) -> bool:
    """Exact integer equality in the currency's minor unit. No conversion."""
    if isinstance(received_cents, bool) or not isinstance(received_cents, int):
        return False
    return int(expected_cents) == received_cents


def validate_payment_currency(expected: str, received: Optional[str]) -> bool:
    """Currency must match when the gateway reports one."""
    if not received:
        return True
    return expected.upper() == str(received).upper()
