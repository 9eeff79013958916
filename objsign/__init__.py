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
objsign - request signing for S3 compatible object storage

    >>> from objsign import ChunkProducer, Credentials, SigningContext
    >>> context = SigningContext(
    ...     method="PUT",
    ...     url="https://s3.amazonaws.com/examplebucket/chunkObject.txt",
    ...     region="us-east-1",
    ...     credentials=Credentials("ACCESS-KEY", "SECRET-KEY"),
    ...     date=date,
    ...     headers=headers,
    ...     content_sha256=STREAMING_PAYLOAD,
    ... )
    >>> headers["Authorization"] = context.authorization_header()
    >>> for block in ChunkProducer(stream, context, 64 * 1024):
    ...     send(block)

:license: Apache 2.0, see LICENSE for more details.
"""

__title__ = "objsign"
__author__ = "objsign authors"
__version__ = "0.3.0"
__license__ = "Apache 2.0"

# pylint: disable=unused-import,useless-import-alias,wrong-import-position
from .api import S3Client as S3Client
from .chunk import Chunk as Chunk
from .chunk import ChunkProducer as ChunkProducer
from .chunk import ChunkReader as ChunkReader
from .chunk import StreamState as StreamState
from .credentials import Credentials as Credentials
from .error import ServerError as ServerError
from .error import SignerException as SignerException
from .error import StreamReadError as StreamReadError
from .helpers import STREAMING_PAYLOAD as STREAMING_PAYLOAD
from .helpers import UNSIGNED_PAYLOAD as UNSIGNED_PAYLOAD
from .oss import OssRequest as OssRequest
from .signer import ChunkSigner as ChunkSigner
from .signer import SigningContext as SigningContext
