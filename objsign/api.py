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

# pylint: disable=too-many-arguments,too-many-positional-arguments

"""
Simple client to upload objects to S3 compatible services with signature
V4, either as a single signed request or as a streaming upload whose
payload is signed chunk by chunk.
"""

from __future__ import absolute_import, annotations

import os
import platform
from datetime import datetime, timedelta
from typing import Optional, TextIO, cast
from urllib.parse import SplitResult, urlunsplit

import certifi
import urllib3
from urllib3 import Retry
from urllib3._collections import HTTPHeaderDict
from urllib3.response import BaseHTTPResponse
from urllib3.util import Timeout

from . import __title__, __version__, time
from .chunk import (DEFAULT_CHUNK_SIZE, MIN_CHUNK_SIZE, ChunkProducer,
                    ChunkReader, streaming_headers)
from .credentials import Credentials
from .error import ServerError
from .headers import header_pairs
from .helpers import (UNSIGNED_PAYLOAD, HeadersType, Readable,
                      headers_to_strings, md5sum_hash, quote, sha256_hash)
from .signer import SigningContext

_DEFAULT_USER_AGENT = (
    f"objsign ({platform.system()}; {platform.machine()}) "
    f"{__title__}/{__version__}"
)


class S3Client:
    """
    Simple Storage Service (aka S3) client to upload objects.

    :param endpoint: Hostname of a S3 service.
    :param access_key: Access key (aka user ID) of your account in S3 service.
    :param secret_key: Secret Key (aka password) of your account in S3 service.
    :param session_token: Session token of your account in S3 service.
    :param secure: Flag to indicate to use secure (TLS) connection to S3
        service or not.
    :param region: Region name of buckets in S3 service.
    :param http_client: Customized HTTP client.
    :param cert_check: Flag to check on server certificate for HTTPS
        connection.

    Example::
        client = S3Client(
            "s3.amazonaws.com",
            access_key="ACCESS-KEY",
            secret_key="SECRET-KEY",
        )
        with open("my-testfile", "rb") as stream:
            client.put_object_stream(
                "my-bucket", "my-object", stream,
                os.stat("my-testfile").st_size,
            )
    """

    def __init__(
            self,
            endpoint: str,
            access_key: Optional[str] = None,
            secret_key: Optional[str] = None,
            session_token: Optional[str] = None,
            secure: bool = True,
            region: str = "us-east-1",
            http_client: Optional[urllib3.PoolManager] = None,
            cert_check: bool = True,
    ):
        # Validate http client has correct base class.
        if http_client and not isinstance(http_client, urllib3.PoolManager):
            raise TypeError(
                "HTTP client should be urllib3.PoolManager like object, "
                f"got {type(http_client).__name__}",
            )
        if not endpoint:
            raise ValueError("endpoint must not be empty")
        if "/" in endpoint:
            raise ValueError(
                f"endpoint {endpoint} must be host or host:port only",
            )

        self._secure = secure
        self._endpoint = endpoint
        self._region = region
        self._user_agent = _DEFAULT_USER_AGENT
        self._trace_stream: Optional[TextIO] = None
        self._credentials = (
            Credentials(access_key, secret_key or "", session_token)
            if access_key else None
        )

        # Load CA certificates from SSL_CERT_FILE file if set
        timeout = timedelta(minutes=5).seconds
        self._http = http_client or urllib3.PoolManager(
            timeout=Timeout(connect=timeout, read=timeout),
            maxsize=10,
            cert_reqs='CERT_REQUIRED' if cert_check else 'CERT_NONE',
            ca_certs=os.environ.get('SSL_CERT_FILE') or certifi.where(),
            retries=Retry(
                total=5,
                backoff_factor=0.2,
                status_forcelist=[500, 502, 503, 504]
            )
        )

    def __del__(self):
        if hasattr(self, "_http"):  # Only required for unit test run
            self._http.clear()

    def trace_on(self, stream: TextIO):
        """
        Enable http trace.

        :param stream: Stream for writing HTTP call tracing.
        """
        if not stream:
            raise ValueError('Input stream for trace output is invalid.')
        # Save new output stream.
        self._trace_stream = stream

    def trace_off(self):
        """Disable HTTP trace."""
        self._trace_stream = None

    def _build_url(self, bucket_name: str, object_name: str) -> SplitResult:
        """Build path-style URL of the object."""
        if not bucket_name:
            raise ValueError("bucket name must not be empty")
        if not isinstance(object_name, str):
            raise TypeError(
                "object name must be str type, "
                f"got {type(object_name).__name__}",
            )
        if not object_name.strip():
            raise ValueError("object name must not be empty")
        return SplitResult(
            "https" if self._secure else "http",
            self._endpoint,
            f"/{bucket_name}/{quote(object_name)}",
            "",
            "",
        )

    def _trace_request(
            self,
            method: str,
            url: SplitResult,
            headers: HTTPHeaderDict,
    ):
        """Write request to trace stream."""
        if not self._trace_stream:
            return
        self._trace_stream.write("---------START-HTTP---------\n")
        query = ("?" + url.query) if url.query else ""
        self._trace_stream.write(f"{method} {url.path}{query} HTTP/1.1\n")
        self._trace_stream.write(headers_to_strings(headers, titled_key=True))
        self._trace_stream.write("\n\n")

    def _url_open(
            self,
            method: str,
            url: SplitResult,
            headers: HTTPHeaderDict,
            body: Optional[bytes | ChunkReader] = None,
            retries: Optional[Retry | bool] = None,
    ) -> BaseHTTPResponse:
        """Execute HTTP request and raise ServerError on failure."""
        headers["User-Agent"] = self._user_agent
        self._trace_request(method, url, headers)

        response = self._http.urlopen(
            method,
            urlunsplit(url),
            body=body,
            headers=headers,
            preload_content=True,
            retries=retries,
        )

        if self._trace_stream:
            self._trace_stream.write(f"HTTP/1.1 {response.status}\n")
            self._trace_stream.write(headers_to_strings(response.headers))
            self._trace_stream.write("\n")

        if response.status in [200, 204, 206]:
            if self._trace_stream:
                self._trace_stream.write("----------END-HTTP----------\n")
            return response

        body_text = response.data.decode() if response.data else None
        if self._trace_stream:
            if body_text:
                self._trace_stream.write(body_text)
                self._trace_stream.write("\n")
            self._trace_stream.write("----------END-HTTP----------\n")
        raise ServerError(
            response.status,
            response.headers.get("content-type"),
            body_text,
        )

    def _base_headers(
            self,
            url: SplitResult,
            content_type: str,
            headers: Optional[HeadersType],
    ) -> HTTPHeaderDict:
        """
        Build headers common to all uploads. Repeated header names are
        rejected as servers merge them before verifying the signature.
        """
        result = HTTPHeaderDict()
        for key, value in header_pairs(headers):
            if key in result:
                raise ValueError(f"duplicate header {key}")
            result[key] = value
        result["Host"] = url.netloc
        if not result.get("Content-Type"):
            result["Content-Type"] = content_type
        if self._credentials and self._credentials.session_token:
            result["X-Amz-Security-Token"] = self._credentials.session_token
        return result

    def _sign(
            self,
            method: str,
            url: SplitResult,
            headers: HTTPHeaderDict,
            content_sha256: str,
            date: datetime,
    ) -> Optional[SigningContext]:
        """Set Authorization header and return signing context."""
        if self._credentials is None:
            return None
        context = SigningContext(
            method=method,
            url=url,
            region=self._region,
            credentials=self._credentials,
            date=date,
            headers=tuple(headers.items()),
            content_sha256=content_sha256,
        )
        headers["Authorization"] = context.authorization_header()
        return context

    def put_object(
            self,
            bucket_name: str,
            object_name: str,
            data: bytes,
            content_type: str = "application/octet-stream",
            headers: Optional[HeadersType] = None,
    ) -> BaseHTTPResponse:
        """
        Upload data to an object in a bucket by single signed request.

        :param bucket_name: Name of the bucket.
        :param object_name: Object name in the bucket.
        :param data: Object data as bytes.
        :param content_type: Content type of the object.
        :param headers: Additional headers to send and sign.
        :return: HTTP response.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(
                f"data must be bytes type, got {type(data).__name__}",
            )
        data = bytes(data)
        url = self._build_url(bucket_name, object_name)
        request_headers = self._base_headers(url, content_type, headers)
        content_sha256 = (
            UNSIGNED_PAYLOAD if self._secure else sha256_hash(data)
        )
        date = time.utcnow()
        request_headers["Content-Length"] = str(len(data))
        request_headers["Content-MD5"] = md5sum_hash(data) or ""
        request_headers["x-amz-content-sha256"] = content_sha256
        request_headers["x-amz-date"] = time.to_amz_date(date)
        self._sign("PUT", url, request_headers, content_sha256, date)
        return self._url_open("PUT", url, request_headers, body=data)

    def put_object_stream(
            self,
            bucket_name: str,
            object_name: str,
            stream: Readable,
            length: int,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            content_type: str = "application/octet-stream",
            headers: Optional[HeadersType] = None,
    ) -> BaseHTTPResponse:
        """
        Upload data from a stream to an object in a bucket by streaming
        signature V4. The stream is read ``chunk_size`` bytes at a time and
        each chunk is signed as it is sent, so data of any size is uploaded
        with bounded memory. The request is not retried as the stream cannot
        be replayed.

        :param bucket_name: Name of the bucket.
        :param object_name: Object name in the bucket.
        :param stream: An object having callable read() returning bytes.
        :param length: Exact number of bytes the stream provides.
        :param chunk_size: Payload bytes per signed chunk; at least 8KiB.
        :param content_type: Content type of the object.
        :param headers: Additional headers to send and sign.
        :return: HTTP response.
        """
        if self._credentials is None:
            raise ValueError("streaming upload requires credentials")
        if not callable(getattr(stream, "read", None)):
            raise ValueError("input stream must have callable read()")
        if not isinstance(length, int) or length < 0:
            raise ValueError(f"invalid stream length {length}")
        if chunk_size < MIN_CHUNK_SIZE:
            raise ValueError(
                f"chunk size {chunk_size} is not supported; "
                f"minimum allowed 8KiB"
            )

        url = self._build_url(bucket_name, object_name)
        request_headers = self._base_headers(url, content_type, headers)
        date = time.utcnow()
        request_headers.update(
            streaming_headers(length, date, chunk_size=chunk_size),
        )
        context = cast(SigningContext, self._sign(
            "PUT",
            url,
            request_headers,
            request_headers["x-amz-content-sha256"],
            date,
        ))
        body = ChunkReader(ChunkProducer(stream, context, chunk_size))
        try:
            return self._url_open(
                "PUT", url, request_headers, body=body, retries=False,
            )
        finally:
            body.close()
