# -*- coding: utf-8 -*-
# objsign, request signing for S3 compatible object storage, (C)
# 2026 objsign authors.
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
objsign.oss
~~~~~~~~~~~

Aliyun OSS header signature (HMAC-SHA1), see
https://help.aliyun.com/document_detail/100669.html

    >>> request = OssRequest(
    ...     verb="PUT",
    ...     bucket="examplebucket",
    ...     key="nelson",
    ...     content_type="text/plain",
    ...     date="Wed, 28 Dec 2022 10:27:41 GMT",
    ... )
    >>> request.authorization(Credentials("AccessKeyId", "AccessKeySecret"))

:license: Apache 2.0, see LICENSE for more details.

"""

from __future__ import absolute_import, annotations

from dataclasses import dataclass, field
from typing import Optional

from . import time
from .credentials import Credentials
from .headers import canonical_headers, header_pairs
from .helpers import HeadersType, hmac_sha1_base64, md5sum_hash

_OSS_HEADER_PREFIX = "x-oss-"


def sign_base64(secret: str | bytes, data: str | bytes) -> str:
    """Sign data by HMAC-SHA1 and return Base64 encoded signature."""
    return hmac_sha1_base64(secret, data)


def content_md5(data: str | bytes) -> str:
    """Get Content-MD5 header value of given payload."""
    return md5sum_hash(data) or ""


@dataclass(frozen=True)
class OssRequest:  # pylint: disable=too-many-instance-attributes
    """
    Request to Aliyun OSS. ``date`` defaults to current time in HTTP header
    format; the same value must be sent as ``Date`` header. Only
    ``x-oss-`` prefixed entries of ``oss_headers`` are signed.
    """

    verb: str
    bucket: str
    key: str
    content_md5: str = ""
    content_type: str = ""
    date: Optional[str] = None
    oss_headers: tuple[tuple[str, str], ...] = field(default=())

    def __post_init__(self):
        if not self.verb:
            raise ValueError("HTTP verb must not be empty")
        object.__setattr__(
            self, "date", self.date or time.to_http_header(time.utcnow()),
        )
        object.__setattr__(
            self, "oss_headers", tuple(header_pairs(self.oss_headers)),
        )

    def canonicalized_oss_headers(self) -> str:
        """Get canonical form of x-oss- headers."""
        return canonical_headers(
            (key, value) for key, value in self.oss_headers
            if key.lower().startswith(_OSS_HEADER_PREFIX)
        )

    def canonicalized_resource(self) -> str:
        """Get canonical resource."""
        return f"/{self.bucket}/{self.key}"

    def string_to_sign(self) -> str:
        """Get string-to-sign."""
        return (
            f"{self.verb}\n{self.content_md5}\n{self.content_type}\n"
            f"{self.date}\n{self.canonicalized_oss_headers()}"
            f"{self.canonicalized_resource()}"
        )

    def signature(self, credentials: Credentials) -> str:
        """Get Base64 encoded signature."""
        return sign_base64(credentials.secret_key, self.string_to_sign())

    def authorization(self, credentials: Credentials) -> str:
        """Get value of Authorization header."""
        return f"OSS {credentials.access_key}:{self.signature(credentials)}"

    def headers(self, credentials: Credentials) -> dict[str, str]:
        """Get headers to send including Date and Authorization."""
        headers = dict(self.oss_headers)
        if self.content_md5:
            headers["Content-MD5"] = self.content_md5
        if self.content_type:
            headers["Content-Type"] = self.content_type
        headers["Date"] = str(self.date)
        headers["Authorization"] = self.authorization(credentials)
        return headers


def sign_oss(
        verb: str,
        bucket: str,
        key: str,
        credentials: Credentials,
        content_md5: str = "",
        content_type: str = "",
        date: Optional[str] = None,
        oss_headers: Optional[HeadersType] = None,
) -> str:
    """Get Aliyun OSS Authorization header value of given request."""
    return OssRequest(
        verb=verb,
        bucket=bucket,
        key=key,
        content_md5=content_md5,
        content_type=content_type,
        date=date,
        oss_headers=tuple(header_pairs(oss_headers)),
    ).authorization(credentials)
