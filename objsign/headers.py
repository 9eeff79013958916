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
objsign.headers
~~~~~~~~~~~~~~~

Canonical form of HTTP headers shared by SignatureV4 and Aliyun OSS
signing. Any mapping (including multi-valued ``HTTPHeaderDict``) or any
iterable of ``(name, value)`` pairs is accepted.

:license: Apache 2.0, see LICENSE for more details.

"""

from __future__ import absolute_import, annotations

from collections.abc import Mapping

from .helpers import HeadersType


def header_pairs(headers: HeadersType | None) -> list[tuple[str, str]]:
    """Return headers as list of (name, value) pairs."""
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return [(str(key), str(value)) for key, value in headers.items()]
    pairs = []
    for pair in headers:
        key, value = pair
        pairs.append((str(key), str(value)))
    return pairs


def _sorted_pairs(
        headers: HeadersType | None,
        trim: bool,
) -> list[tuple[str, str]]:
    """Lowercase names, optionally trim values and sort."""
    return sorted(
        (key.lower(), value.strip() if trim else value)
        for key, value in header_pairs(headers)
    )


def canonical_headers(headers: HeadersType | None, trim: bool = False) -> str:
    """
    Get canonical headers as ``name:value\\n`` lines sorted by lowercased
    name. Empty headers give empty string.
    """
    return "".join(
        f"{key}:{value}\n" for key, value in _sorted_pairs(headers, trim)
    )


def signed_header_names(headers: HeadersType | None) -> str:
    """Get sorted lowercased header names joined by ';'."""
    return ";".join(
        sorted({key.lower() for key, _ in header_pairs(headers)}),
    )
