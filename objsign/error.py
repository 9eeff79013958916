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

"""
objsign.error
~~~~~~~~~~~~~

This module provides custom exception classes for signing and upload
errors. Precondition violations such as empty credentials or malformed
URLs are reported with the builtin :class:`ValueError` and
:class:`TypeError` instead.

:license: Apache 2.0, see LICENSE for more details.

"""

from __future__ import absolute_import, annotations

from typing import Optional


class SignerException(Exception):
    """Base objsign exception."""


class StreamReadError(SignerException):
    """
    Raised when the payload stream fails while chunks are being signed.

    The chunk signature chain is aborted: no terminal chunk is produced, so
    a partially read payload can never be finalized as a complete upload.
    """

    def __init__(self, offset: int, message: str):
        self._offset = offset
        self._message = message
        super().__init__(
            f"payload stream read failed after {offset} bytes; {message}",
        )

    @property
    def offset(self) -> int:
        """Number of payload bytes successfully read before the failure."""
        return self._offset

    def __reduce__(self):
        return type(self), (self._offset, self._message)


class ServerError(SignerException):
    """Raised to indicate that server returned non-success HTTP status."""

    def __init__(
            self,
            status_code: int,
            content_type: Optional[str],
            body: Optional[str],
    ):
        self._status_code = status_code
        self._content_type = content_type
        self._body = body
        super().__init__(
            f"server failed with HTTP status code {status_code}; "
            f"Content-Type: {content_type}, Body: {body}"
        )

    @property
    def status_code(self) -> int:
        """Get HTTP status code."""
        return self._status_code

    @property
    def content_type(self) -> Optional[str]:
        """Get Content-Type of the response."""
        return self._content_type

    @property
    def body(self) -> Optional[str]:
        """Get response body."""
        return self._body

    def __reduce__(self):
        return type(self), (self._status_code, self._content_type, self._body)
