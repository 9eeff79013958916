# -*- coding: utf-8 -*-
# objsign, request signing for S3 compatible object storage,
# (C) 2015-2026 objsign authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
objsign.signer
~~~~~~~~~~~~~~

This module implements AWS Signature version '4' for whole requests and
for the chunks of a streaming (``aws-chunked``) payload.

A :class:`SigningContext` describes one request. It derives the signing
key once; the seed signature of the request and every chunk signature of
its payload are computed with that same key. A :class:`ChunkSigner`
obtained from the context chains chunk signatures, each one over the
previous signature, starting from the seed signature.

:license: Apache 2.0, see LICENSE for more details.

"""

from __future__ import absolute_import, annotations

import urllib.parse
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from urllib.parse import SplitResult

from . import time
from .credentials import Credentials
from .headers import canonical_headers, header_pairs, signed_header_names
from .helpers import (UNSIGNED_PAYLOAD, ZERO_SHA256_HASH, HeadersType,
                      hmac_sha256, hmac_sha256_hex, queryencode, quote,
                      sha256_hash)

SIGN_V4_ALGORITHM = "AWS4-HMAC-SHA256"
SIGN_V4_PAYLOAD_ALGORITHM = "AWS4-HMAC-SHA256-PAYLOAD"


def _parse_url(url: str | SplitResult) -> SplitResult:
    """Parse absolute URL; raise ValueError if it is not one."""
    parsed = (
        url if isinstance(url, SplitResult) else urllib.parse.urlsplit(url)
    )
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(
            f"URL {urllib.parse.urlunsplit(parsed)} is not absolute",
        )
    _ = parsed.port  # raises ValueError on invalid port
    return parsed


def _get_canonical_query_string(query: str) -> str:
    """Get canonical query string."""

    return "&".join(
        f"{key}={value}" for key, value in sorted(
            (queryencode(key), queryencode(value))
            for key, value in urllib.parse.parse_qsl(
                query or "", keep_blank_values=True,
            )
        )
    )


def _get_canonical_uri(path: str) -> str:
    """Get canonical URI; existing percent escapes are kept."""
    return quote(path or "/", safe="/%")


def _get_scope(date: datetime, region: str, service_name: str) -> str:
    """Get scope string."""
    return f"{time.to_signer_date(date)}/{region}/{service_name}/aws4_request"


def _get_signing_key(
        secret_key: str,
        date: datetime,
        region: str,
        service_name: str,
) -> bytes:
    """Get signing key."""

    date_key = hmac_sha256(
        ("AWS4" + secret_key).encode(), time.to_signer_date(date),
    )
    date_region_key = hmac_sha256(date_key, region)
    date_region_service_key = hmac_sha256(date_region_key, service_name)
    return hmac_sha256(date_region_service_key, "aws4_request")


@dataclass(frozen=True)
class ChunkSigner:
    """
    Signs payload chunks of a streaming upload with the signing key of its
    request.
    """

    signing_key: bytes = field(repr=False)
    amz_date: str
    scope: str

    def string_to_sign(self, prev_signature: str, data: bytes) -> str:
        """Get string-to-sign of a chunk."""
        return (
            f"{SIGN_V4_PAYLOAD_ALGORITHM}\n{self.amz_date}\n{self.scope}\n"
            f"{prev_signature}\n{ZERO_SHA256_HASH}\n{sha256_hash(data)}"
        )

    def sign(self, prev_signature: str, data: bytes) -> str:
        """Get signature of a chunk chained to previous signature."""
        return hmac_sha256_hex(
            self.signing_key, self.string_to_sign(prev_signature, data),
        )


@dataclass(frozen=True)
class SigningContext:  # pylint: disable=too-many-instance-attributes
    """
    Immutable description of one request to be signed by SignatureV4.

    ``url`` must be absolute and ``date`` is truncated to seconds in UTC.
    ``headers`` are snapshotted at construction and every one of them is
    signed. ``content_sha256`` is either :data:`UNSIGNED_PAYLOAD`,
    :data:`STREAMING_PAYLOAD` or hex encoded SHA-256 of the payload.
    """

    method: str
    url: SplitResult
    region: str
    credentials: Credentials
    date: datetime
    headers: tuple[tuple[str, str], ...] = ()
    content_sha256: str = UNSIGNED_PAYLOAD
    service_name: str = "s3"

    def __post_init__(self):
        if not isinstance(self.credentials, Credentials):
            raise TypeError(
                "credentials must be Credentials type, "
                f"got {type(self.credentials).__name__}",
            )
        if not self.method:
            raise ValueError("HTTP method must not be empty")
        if not self.region:
            raise ValueError("region must not be empty")
        if not self.service_name:
            raise ValueError("service name must not be empty")
        if not self.content_sha256:
            raise ValueError("content SHA-256 must not be empty")
        object.__setattr__(self, "url", _parse_url(self.url))
        object.__setattr__(self, "date", time.normalize(self.date))
        object.__setattr__(
            self, "headers", tuple(header_pairs(self.headers)),
        )

    def signed_header_names(self) -> str:
        """Get signed header names."""
        return signed_header_names(self.headers)

    def canonical_request(self) -> str:
        """Get canonical request."""

        # CanonicalRequest =
        #   HTTPRequestMethod + '\n' +
        #   CanonicalURI + '\n' +
        #   CanonicalQueryString + '\n' +
        #   CanonicalHeaders + '\n' +
        #   SignedHeaders + '\n' +
        #   HexEncode(Hash(RequestPayload))
        # where every CanonicalHeaders entry ends with '\n'.
        return "\n".join([
            self.method,
            _get_canonical_uri(self.url.path),
            _get_canonical_query_string(self.url.query),
            canonical_headers(self.headers, trim=True),
            self.signed_header_names(),
            self.content_sha256,
        ])

    def scope(self) -> str:
        """Get credential scope."""
        return _get_scope(self.date, self.region, self.service_name)

    def string_to_sign(self) -> str:
        """Get string-to-sign."""
        return (
            f"{SIGN_V4_ALGORITHM}\n{time.to_amz_date(self.date)}\n"
            f"{self.scope()}\n{sha256_hash(self.canonical_request())}"
        )

    @cached_property
    def _signing_key(self) -> bytes:
        return _get_signing_key(
            self.credentials.secret_key,
            self.date,
            self.region,
            self.service_name,
        )

    def signing_key(self) -> bytes:
        """Get signing key; it is derived once per context."""
        return self._signing_key

    def seed_signature(self) -> str:
        """Get signature of the request."""
        return hmac_sha256_hex(self._signing_key, self.string_to_sign())

    def authorization_header(self) -> str:
        """Get value of Authorization header."""
        return (
            f"{SIGN_V4_ALGORITHM} "
            f"Credential={self.credentials.access_key}/{self.scope()},"
            f"SignedHeaders={self.signed_header_names()},"
            f"Signature={self.seed_signature()}"
        )

    def chunk_signer(self) -> ChunkSigner:
        """Get chunk signer sharing signing key of this context."""
        return ChunkSigner(
            self._signing_key, time.to_amz_date(self.date), self.scope(),
        )


def sign_v4(
        service_name: str,
        method: str,
        url: str | SplitResult,
        region: str,
        headers: HeadersType,
        credentials: Credentials,
        content_sha256: str,
        date: datetime,
) -> dict[str, str]:
    """
    Do signature V4 of given request for given service name. Returned
    headers are a copy of given headers with Authorization header set.
    """

    pairs = [
        (key, value) for key, value in header_pairs(headers)
        if key.lower() != "authorization"
    ]
    context = SigningContext(
        method=method,
        url=url,
        region=region,
        credentials=credentials,
        date=date,
        headers=tuple(pairs),
        content_sha256=content_sha256,
        service_name=service_name,
    )
    signed = dict(pairs)
    signed["Authorization"] = context.authorization_header()
    return signed


def sign_v4_s3(
        method: str,
        url: str | SplitResult,
        region: str,
        headers: HeadersType,
        credentials: Credentials,
        content_sha256: str,
        date: datetime,
) -> dict[str, str]:
    """Do signature V4 of given request for S3 service."""
    return sign_v4(
        "s3",
        method,
        url,
        region,
        headers,
        credentials,
        content_sha256,
        date,
    )
