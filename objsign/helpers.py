# -*- coding: utf-8 -*-
# objsign, request signing for S3 compatible object storage, (C)
# 2015-2026 objsign authors.
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

"""Helper functions."""

from __future__ import absolute_import, annotations

import base64
import hashlib
import hmac
import re
import urllib.parse
from typing import Iterable, Mapping, Union

from typing_extensions import Protocol

UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
STREAMING_PAYLOAD = "STREAMING-AWS4-HMAC-SHA256-PAYLOAD"
ZERO_SHA256_HASH = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)

_SIGNATURE_REGEX = re.compile(r"Signature=([0-9a-f]+)")
_CREDENTIAL_REGEX = re.compile(r"Credential=([^/]+)")
_OSS_AUTH_REGEX = re.compile(r"^OSS ([^:]+):(.+)$")

HeadersType = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class Readable(Protocol):
    """typing stub for a byte producing payload stream."""

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes; empty result means end of stream."""


def quote(
        resource: str,
        safe: str = "/",
        encoding: str | None = None,
        errors: str | None = None,
) -> str:
    """
    Wrapper to urllib.parse.quote() leaving only RFC 3986 unreserved
    characters and given safe characters unescaped.
    """
    return urllib.parse.quote(
        resource,
        safe=safe,
        encoding=encoding,
        errors=errors,
    ).replace("%7E", "~")


def queryencode(
        query: str,
        safe: str = "",
        encoding: str | None = None,
        errors: str | None = None,
) -> str:
    """Encode query parameter key or value."""
    return quote(query, safe, encoding, errors)


def sha256_hash(data: str | bytes | None) -> str:
    """Compute SHA-256 of data and return hash as hex encoded value."""
    data = data or b""
    hasher = hashlib.sha256()
    hasher.update(data.encode() if isinstance(data, str) else data)
    return hasher.hexdigest()


def md5sum_hash(data: str | bytes | None) -> str | None:
    """Compute MD5 of data and return hash as Base64 encoded value."""
    if data is None:
        return None

    hasher = hashlib.md5()
    hasher.update(data.encode() if isinstance(data, str) else data)
    md5sum = base64.b64encode(hasher.digest())
    return md5sum.decode() if isinstance(md5sum, bytes) else md5sum


def hmac_sha256(key: bytes, data: str | bytes) -> bytes:
    """Return HMAC-SHA256 digest of given key and data."""
    return hmac.new(
        key, data.encode() if isinstance(data, str) else data, hashlib.sha256,
    ).digest()


def hmac_sha256_hex(key: bytes, data: str | bytes) -> str:
    """Return lowercase hex encoded HMAC-SHA256 of given key and data."""
    return hmac.new(
        key, data.encode() if isinstance(data, str) else data, hashlib.sha256,
    ).hexdigest()


def hmac_sha1_base64(key: str | bytes, data: str | bytes) -> str:
    """Return Base64 encoded HMAC-SHA1 of given key and data."""
    digest = hmac.new(
        key.encode() if isinstance(key, str) else key,
        data.encode() if isinstance(data, str) else data,
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode()


def _redact(value: str) -> str:
    """Hide signature and access key from Authorization header value."""
    value = _SIGNATURE_REGEX.sub("Signature=*REDACTED*", value)
    value = _CREDENTIAL_REGEX.sub("Credential=*REDACTED*", value)
    return _OSS_AUTH_REGEX.sub("OSS *REDACTED*", value)


def headers_to_strings(
        headers: Mapping[str, str | list[str] | tuple[str]],
        titled_key: bool = False,
) -> str:
    """Convert HTTP headers to multi-line string for tracing."""
    values = []
    for key, value in headers.items():
        redact = key.lower() in ("authorization", "x-amz-security-token")
        key = key.title() if titled_key else key
        for item in value if isinstance(value, (list, tuple)) else [value]:
            if redact:
                item = (
                    _redact(item) if key.lower() == "authorization"
                    else "*REDACTED*"
                )
            values.append(f"{key}: {item}")
    return "\n".join(values)
