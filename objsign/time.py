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

"""Time formatters for request signing."""

from __future__ import absolute_import, annotations

from datetime import datetime, timezone

_WEEK_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct",
           "Nov", "Dec"]
_AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"


def _to_utc(value: datetime) -> datetime:
    """Convert to naive UTC time; naive values are taken as UTC already."""
    return (
        value.astimezone(timezone.utc).replace(tzinfo=None)
        if value.tzinfo else value
    )


def normalize(value: datetime) -> datetime:
    """Return timezone-aware UTC datetime truncated to second precision."""
    return _to_utc(value).replace(microsecond=0, tzinfo=timezone.utc)


def to_amz_date(value: datetime) -> str:
    """Format datetime into AMZ date formatted string."""
    return _to_utc(value).strftime(_AMZ_DATE_FORMAT)


def from_amz_date(value: str) -> datetime:
    """Parse AMZ date formatted string to datetime."""
    return datetime.strptime(value, _AMZ_DATE_FORMAT).replace(
        tzinfo=timezone.utc,
    )


def to_signer_date(value: datetime) -> str:
    """Format datetime into SignatureV4 date formatted string."""
    return _to_utc(value).strftime("%Y%m%d")


def to_http_header(value: datetime) -> str:
    """
    Format datetime into HTTP header date formatted string. Names of week
    days and months are not taken from the current locale.
    """
    value = _to_utc(value)
    weekday = _WEEK_DAYS[value.weekday()]
    day = value.strftime(" %d ")
    month = _MONTHS[value.month - 1]
    suffix = value.strftime(" %Y %H:%M:%S GMT")
    return f"{weekday},{day}{month}{suffix}"


def utcnow() -> datetime:
    """Current time as timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
