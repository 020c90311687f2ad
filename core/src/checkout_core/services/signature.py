"""Webhook signature verification.

Stripe signs every webhook with the endpoint's signing secret and sends the
result in the Stripe-Signature header:

    Stripe-Signature: t=1704067200,v1=5257a869e7...,v0=6ffbb59b2...

Header parsing happens here so a malformed header gets its own error code;
the HMAC check itself is stripe's WebhookSignature. Verification never logs
and never puts the secret or signature values into error messages.
"""

import time
from dataclasses import dataclass

import stripe

from checkout_core.models.errors import ErrorCode, SignatureError

SIGNATURE_HEADER = "Stripe-Signature"
SIGNATURE_SCHEME = "v1"
DEFAULT_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed Stripe-Signature header."""

    timestamp: int
    signatures: tuple[str, ...]

    def canonical(self) -> str:
        """Header rebuilt from the parsed fields, without spaces or other schemes."""
        items = [f"t={self.timestamp}"]
        items.extend(f"{SIGNATURE_SCHEME}={value}" for value in self.signatures)
        return ",".join(items)


def parse_signature_header(header: str | None) -> SignatureHeader:
    """Split a Stripe-Signature header into its timestamp and v1 signatures.

    Args:
        header: Raw header value

    Returns:
        Parsed header

    Raises:
        SignatureError: SIGNATURE_MALFORMED if the header has no usable fields.
    """
    if not header or not header.strip():
        raise SignatureError(ErrorCode.SIGNATURE_MALFORMED)

    timestamp: str | None = None
    signatures: list[str] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep or not key:
            raise SignatureError(ErrorCode.SIGNATURE_MALFORMED)
        if key == "t":
            timestamp = value
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    if timestamp is None or not signatures:
        raise SignatureError(ErrorCode.SIGNATURE_MALFORMED)

    try:
        parsed_timestamp = int(timestamp)
    except ValueError:
        raise SignatureError(ErrorCode.SIGNATURE_MALFORMED) from None

    return SignatureHeader(timestamp=parsed_timestamp, signatures=tuple(signatures))


def verify(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    *,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: int | None = None,
) -> None:
    """Verify a webhook payload against its Stripe-Signature header.

    The HMAC comparison is delegated to stripe.WebhookSignature; the
    timestamp age is checked here afterwards so a correctly signed but
    stale payload is reported as expired rather than mismatched.

    Args:
        payload: Raw request body, exactly as received
        signature_header: Stripe-Signature header value
        secret: Webhook signing secret
        tolerance: Maximum age of the t= timestamp in seconds; 0 disables the check
        now: Current Unix time (defaults to time.time())

    Raises:
        SignatureError: SIGNATURE_MALFORMED, SIGNATURE_MISMATCH or SIGNATURE_EXPIRED.
    """
    header = parse_signature_header(signature_header)

    try:
        # stripe signs the decoded body, as Webhook.construct_event does
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(body, header.canonical(), secret, tolerance=None)
    except (UnicodeDecodeError, stripe.SignatureVerificationError):
        raise SignatureError(ErrorCode.SIGNATURE_MISMATCH) from None

    current = int(time.time()) if now is None else now
    if tolerance > 0 and current - header.timestamp > tolerance:
        raise SignatureError(ErrorCode.SIGNATURE_EXPIRED)
