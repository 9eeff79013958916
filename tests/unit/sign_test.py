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

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from unittest import TestCase
from urllib.parse import urlsplit

from objsign.credentials import Credentials
from objsign.helpers import (STREAMING_PAYLOAD, UNSIGNED_PAYLOAD,
                             ZERO_SHA256_HASH, queryencode, quote, sha256_hash)
from objsign.signer import SigningContext, _get_signing_key, sign_v4_s3

from .helpers import (EXAMPLE_ACCESS_KEY, EXAMPLE_SECRET_KEY,
                      EXAMPLE_SEED_SIGNATURE, example_context)

dt = datetime(2015, 6, 20, 1, 2, 3, 0, timezone.utc)
credentials = Credentials("minio", "minio123")


def context(url="http://localhost:9000/hello", headers=None, **kwargs):
    if headers is None:
        headers = {
            "x-amz-date": "dateString",
            "x-amz-content-sha256": ZERO_SHA256_HASH,
        }
    return SigningContext(
        method=kwargs.get("method", "PUT"),
        url=url,
        region=kwargs.get("region", "us-east-1"),
        credentials=kwargs.get("credentials", credentials),
        date=kwargs.get("date", dt),
        headers=headers,
        content_sha256=kwargs.get("content_sha256", ZERO_SHA256_HASH),
        service_name=kwargs.get("service_name", "s3"),
    )


class CanonicalRequestTest(TestCase):
    def test_simple_request(self):
        expected_request_array = ['PUT', '/hello', '',
                                  'x-amz-content-sha256:' + ZERO_SHA256_HASH,
                                  'x-amz-date:dateString',
                                  '', 'x-amz-content-sha256;x-amz-date',
                                  ZERO_SHA256_HASH]
        self.assertEqual(
            context().canonical_request(),
            '\n'.join(expected_request_array),
        )

    def test_request_with_query(self):
        request = context(
            url='http://localhost:9000/hello?c=d&e=f&a=b',
        ).canonical_request()
        self.assertEqual(request.split('\n')[2], 'a=b&c=d&e=f')

    def test_query_is_encoded_and_sorted_by_key(self):
        request = context(
            url='http://localhost:9000/hello?prefix=a b&uploads&a-b=2&a=1'
                '&key=%2Fx~y%2Bz',
        ).canonical_request()
        self.assertEqual(
            request.split('\n')[2],
            'a=1&a-b=2&key=%2Fx~y%2Bz&prefix=a%20b&uploads=',
        )

    def test_empty_path(self):
        request = context(url='http://localhost:9000').canonical_request()
        self.assertEqual(request.split('\n')[1], '/')

    def test_path_is_encoded(self):
        request = context(
            url='https://s3.amazonaws.com/bucket/my file+ü.txt',
        ).canonical_request()
        self.assertEqual(request.split('\n')[1],
                         '/bucket/my%20file%2B%C3%BC.txt')

    def test_encoded_path_is_kept(self):
        request = context(
            url='http://localhost:9000/bucket/my%20file%2B%C3%BC.txt',
        ).canonical_request()
        self.assertEqual(request.split('\n')[1],
                         '/bucket/my%20file%2B%C3%BC.txt')

    def test_header_values_are_trimmed(self):
        request = context(headers={'X-Amz-Meta-Name': '  value  '})
        self.assertIn('\nx-amz-meta-name:value\n', request.canonical_request())

    def test_no_headers(self):
        self.assertEqual(
            context(headers={}).canonical_request(),
            '\n'.join(['PUT', '/hello', '', '', '', ZERO_SHA256_HASH]),
        )

    def test_signed_header_names_are_shared(self):
        ctx = context(headers={
            'X-Amz-Date': '20150620T010203Z',
            'Host': 'localhost:9000',
            'x-amz-content-sha256': ZERO_SHA256_HASH,
        })
        names = 'host;x-amz-content-sha256;x-amz-date'
        self.assertEqual(ctx.signed_header_names(), names)
        self.assertEqual(ctx.canonical_request().split('\n')[-2], names)
        self.assertIn(
            f',SignedHeaders={names},', ctx.authorization_header(),
        )

    def test_invalid_url(self):
        for url in ['/hello', 'localhost:9000/hello', 'http://[::1/hello',
                    'http://localhost:abc/hello']:
            with self.subTest(url=url):
                with self.assertRaises(ValueError):
                    context(url=url)

    def test_invalid_arguments(self):
        with self.assertRaises(TypeError):
            context(credentials=("minio", "minio123"))
        with self.assertRaises(ValueError):
            context(method="")
        with self.assertRaises(ValueError):
            context(region="")


class StringToSignTest(TestCase):
    def test_string_to_sign(self):
        ctx = context(region='us-east-1')
        expected = '\n'.join([
            'AWS4-HMAC-SHA256', '20150620T010203Z',
            '20150620/us-east-1/s3/aws4_request',
            sha256_hash(ctx.canonical_request()),
        ])
        self.assertEqual(ctx.string_to_sign(), expected)

    def test_date_is_normalized_to_utc_seconds(self):
        local = timezone(timedelta(hours=5, minutes=30))
        ctx = context(date=datetime(2015, 6, 20, 6, 32, 3, 999999, local))
        self.assertEqual(ctx.date, dt)
        self.assertEqual(ctx.string_to_sign().split('\n')[1],
                         '20150620T010203Z')

    def test_naive_date_is_utc(self):
        ctx = context(date=datetime(2015, 6, 20, 1, 2, 3))
        self.assertEqual(ctx.date, dt)


class SigningKeyTest(TestCase):
    def test_generate_signing_key(self):
        key1_string = 'AWS4' + 'S3CR3T'
        key1 = key1_string.encode('utf-8')
        key2 = hmac.new(key1, '20150620'.encode(
            'utf-8'), hashlib.sha256).digest()
        key3 = hmac.new(key2, 'region'.encode(
            'utf-8'), hashlib.sha256).digest()
        key4 = hmac.new(key3, 's3'.encode('utf-8'), hashlib.sha256).digest()
        expected_result = hmac.new(key4, 'aws4_request'.encode(
            'utf-8'), hashlib.sha256).digest()

        actual_result = _get_signing_key('S3CR3T', dt, 'region', "s3")
        self.assertEqual(expected_result, actual_result)
        self.assertEqual(len(actual_result), 32)

    def test_signing_key_is_deterministic(self):
        ctx = context(credentials=Credentials("minio", "S3CR3T"),
                      region="region")
        self.assertEqual(
            ctx.signing_key(),
            _get_signing_key('S3CR3T', dt, 'region', "s3"),
        )
        self.assertEqual(ctx.signing_key(), ctx.signing_key())

    def test_signing_key_changes_with_each_input(self):
        key = _get_signing_key('S3CR3T', dt, 'us-east-1', 's3')
        for other in [
                _get_signing_key('S3CR3U', dt, 'us-east-1', 's3'),
                _get_signing_key('S3CR3T', dt + timedelta(days=1),
                                 'us-east-1', 's3'),
                _get_signing_key('S3CR3T', dt, 'us-east-2', 's3'),
                _get_signing_key('S3CR3T', dt, 'us-east-1', 'sts'),
        ]:
            self.assertNotEqual(key, other)

    def test_signing_key_ignores_time_of_day(self):
        self.assertEqual(
            _get_signing_key('S3CR3T', dt, 'us-east-1', 's3'),
            _get_signing_key('S3CR3T', dt + timedelta(hours=20),
                             'us-east-1', 's3'),
        )


class AuthorizationHeaderTest(TestCase):
    def test_generate_authorization_header(self):
        ctx = context(region='region', headers={
            'host': 'localhost:9000',
            'X-Amz-Content-Sha256': ZERO_SHA256_HASH,
            'X-Amz-Date': '20150620T010203Z',
        })
        self.assertEqual(
            ctx.authorization_header(),
            'AWS4-HMAC-SHA256 Credential='
            'minio/20150620/region/s3/aws4_request,'
            'SignedHeaders=host;x-amz-content-sha256;x-amz-date,'
            f'Signature={ctx.seed_signature()}',
        )

    def test_seed_signature(self):
        ctx = context()
        expected = hmac.new(
            ctx.signing_key(), ctx.string_to_sign().encode(), hashlib.sha256,
        ).hexdigest()
        self.assertEqual(ctx.seed_signature(), expected)


class StreamingExampleTest(TestCase):
    def test_canonical_request(self):
        self.assertEqual(
            example_context().canonical_request(),
            '\n'.join([
                'PUT',
                '/examplebucket/chunkObject.txt',
                '',
                'content-encoding:aws-chunked',
                'content-length:66824',
                'host:s3.amazonaws.com',
                'x-amz-content-sha256:' + STREAMING_PAYLOAD,
                'x-amz-date:20130524T000000Z',
                'x-amz-decoded-content-length:66560',
                'x-amz-storage-class:REDUCED_REDUNDANCY',
                '',
                'content-encoding;content-length;host;x-amz-content-sha256;'
                'x-amz-date;x-amz-decoded-content-length;x-amz-storage-class',
                STREAMING_PAYLOAD,
            ]),
        )

    def test_seed_signature(self):
        self.assertEqual(
            example_context().seed_signature(), EXAMPLE_SEED_SIGNATURE,
        )

    def test_authorization_header(self):
        self.assertEqual(
            example_context().authorization_header(),
            'AWS4-HMAC-SHA256 '
            f'Credential={EXAMPLE_ACCESS_KEY}/20130524/us-east-1/s3/'
            'aws4_request,'
            'SignedHeaders=content-encoding;content-length;host;'
            'x-amz-content-sha256;x-amz-date;x-amz-decoded-content-length;'
            'x-amz-storage-class,'
            f'Signature={EXAMPLE_SEED_SIGNATURE}',
        )

    def test_header_order_does_not_matter(self):
        ctx = example_context()
        reordered = SigningContext(
            method=ctx.method,
            url=ctx.url,
            region=ctx.region,
            credentials=Credentials(EXAMPLE_ACCESS_KEY, EXAMPLE_SECRET_KEY),
            date=ctx.date,
            headers=tuple(reversed(ctx.headers)),
            content_sha256=STREAMING_PAYLOAD,
        )
        self.assertEqual(reordered.seed_signature(), EXAMPLE_SEED_SIGNATURE)


class SignV4Test(TestCase):
    def test_signv4(self):
        headers = {
            'Host': 'localhost:9000',
            'x-amz-content-sha256':
            'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855',
            'x-amz-date': '20150620T010203Z',
        }
        signed = sign_v4_s3(
            "PUT",
            urlsplit("http://localhost:9000/testbucket/~testobject"
                     "?partID=1&uploadID=~abcd"),
            "us-east-1",
            headers,
            credentials,
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
            dt,
        )
        self.assertEqual(
            signed['Authorization'],
            'AWS4-HMAC-SHA256 Credential='
            'minio/20150620/us-east-1/s3/aws4_request,'
            'SignedHeaders=host;x-amz-content-sha256;x-amz-date,'
            'Signature='
            'a2f4546f647981732bd90dfa5a7599c44dca92f44bea48ecc7565df06032c25b')
        self.assertNotIn('Authorization', headers)

    def test_resign_replaces_authorization(self):
        headers = {'Host': 'localhost:9000', 'x-amz-date': '20150620T010203Z'}
        signed = sign_v4_s3("GET", "http://localhost:9000/bucket", "us-east-1",
                            headers, credentials, UNSIGNED_PAYLOAD, dt)
        resigned = sign_v4_s3("GET", "http://localhost:9000/bucket",
                              "us-east-1", signed, credentials,
                              UNSIGNED_PAYLOAD, dt)
        self.assertEqual(signed, resigned)


class UnicodeEncodeTest(TestCase):
    def test_unicode_quote(self):
        self.assertEqual(quote('/test/123/汉字'),
                         '/test/123/%E6%B1%89%E5%AD%97')

    def test_unicode_queryencode(self):
        self.assertEqual(queryencode('/test/123/汉字'),
                         '%2Ftest%2F123%2F%E6%B1%89%E5%AD%97')

    def test_unreserved_characters(self):
        self.assertEqual(queryencode('aZ09-_.~ +=&'), 'aZ09-_.~%20%2B%3D%26')

    def test_unicode_query_is_canonical(self):
        request = context(
            url='http://localhost:9000/hello?name=汉字',
        ).canonical_request()
        self.assertEqual(request.split('\n')[2], 'name=%E6%B1%89%E5%AD%97')
