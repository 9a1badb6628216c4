"""HMAC-SHA256 request signing for the Volcengine visual API.

The canonical request, string to sign and signing-key chain follow the
SigV4 layout. The server recomputes the signature from the bytes it
receives, so any deviation in the canonical strings shows up only as an
HTTP 401.
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping
from urllib.parse import quote

ALGORITHM = "HMAC-SHA256"
CONTENT_TYPE = "application/json"
SIGNED_HEADERS = "content-type;host;x-content-sha256;x-date"

# Characters left unescaped, matching JavaScript's encodeURIComponent
_URI_SAFE = "-_.!~*'()"


def sha256_hex(message: str) -> str:
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def hex_encode(data: bytes) -> str:
    return data.hex()


def derive_signing_key(secret_key: str, short_date: str, region: str, service: str) -> bytes:
    k_date = hmac_sha256(secret_key.encode("utf-8"), short_date)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, "request")


def canonical_query_string(params: Mapping[str, str]) -> str:
    return "&".join(
        f"{quote(str(key), safe=_URI_SAFE)}={quote(str(value), safe=_URI_SAFE)}"
        for key, value in sorted(params.items())
    )


@dataclass
class SignedRequest:
    """Headers to attach plus the intermediate strings (useful when debugging a 401)."""

    headers: dict[str, str]
    canonical_request: str
    string_to_sign: str
    query_string: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sign_request(
    access_key_id: str,
    secret_access_key: str,
    host: str,
    path: str,
    query_params: Mapping[str, str],
    body: str = "",
    *,
    region: str,
    service: str,
    method: str = "POST",
    clock: Callable[[], datetime] = _utcnow,
) -> SignedRequest:
    """Build the Authorization, X-Date and X-Content-Sha256 headers for one request."""
    now = clock().astimezone(timezone.utc)
    timestamp = now.strftime("%Y%m%dT%H%M%SZ")
    short_date = now.strftime("%Y%m%d")

    query_string = canonical_query_string(query_params)
    content_sha256 = sha256_hex(body)

    canonical_headers = (
        f"content-type:{CONTENT_TYPE}\n"
        f"host:{host}\n"
        f"x-content-sha256:{content_sha256}\n"
        f"x-date:{timestamp}\n"
    )

    canonical_request = "\n".join(
        [method, path, query_string, canonical_headers, SIGNED_HEADERS, content_sha256]
    )

    credential_scope = f"{short_date}/{region}/{service}/request"
    string_to_sign = "\n".join(
        [ALGORITHM, timestamp, credential_scope, sha256_hex(canonical_request)]
    )

    signing_key = derive_signing_key(secret_access_key, short_date, region, service)
    signature = hex_encode(hmac_sha256(signing_key, string_to_sign))

    authorization = (
        f"{ALGORITHM} Credential={access_key_id}/{credential_scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )

    return SignedRequest(
        headers={
            "Authorization": authorization,
            "X-Date": timestamp,
            "X-Content-Sha256": content_sha256,
        },
        canonical_request=canonical_request,
        string_to_sign=string_to_sign,
        query_string=query_string,
    )
