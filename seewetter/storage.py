from __future__ import annotations

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from seewetter.errors import CacheMiss, MalformedCacheObject, UpstreamError
from seewetter.models import BulletinPayload

logger = logging.getLogger(__name__)

CACHE_DIR = Path(os.environ.get("SEEWETTER_CACHE_DIR", "./data/cache")).resolve()

S3_BUCKET = os.environ.get("SEEWETTER_S3_BUCKET")  # if set, store bulletins in S3
CACHE_PREFIX = os.environ.get("SEEWETTER_CACHE_PREFIX", "seewetter/")
S3_REGION = os.environ.get("SEEWETTER_S3_REGION")
S3_ENDPOINT_URL = os.environ.get("SEEWETTER_S3_ENDPOINT_URL")  # optional for R2/MinIO

CONTENT_TYPE = "application/json; charset=utf-8"

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _s3():
    if not S3_BUCKET:
        return None
    return boto3.client("s3", region_name=S3_REGION, endpoint_url=S3_ENDPOINT_URL)


def cache_key(lang: str) -> str:
    return f"{CACHE_PREFIX}{lang}.json"


def _local_path(lang: str) -> Path:
    return CACHE_DIR / cache_key(lang)


def put_payload(lang: str, payload: BulletinPayload | Dict[str, Any]) -> Dict[str, Any]:
    """Overwrite the single cached object for ``lang``."""
    if isinstance(payload, BulletinPayload):
        payload = payload.to_json_dict()
    data = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
    key = cache_key(lang)

    if S3_BUCKET:
        s3 = _s3()
        assert s3 is not None
        try:
            s3.put_object(
                Bucket=S3_BUCKET,
                Key=key,
                Body=data,
                ContentType=CONTENT_TYPE,
                CacheControl="no-cache",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"cache write failed for {key}: {e}") from e
        logger.info("Stored %s (%d bytes) in s3://%s", key, len(data), S3_BUCKET)
        return {"backend": "s3", "bucket": S3_BUCKET, "key": key, "content_type": CONTENT_TYPE}

    out_path = _local_path(lang)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    # Write beside the target and swap it in, so the previous object survives a failed write.
    tmp = tempfile.NamedTemporaryFile(dir=out_path.parent, prefix=f".{lang}.", suffix=".tmp", delete=False)
    try:
        with tmp:
            tmp.write(data)
        os.replace(tmp.name, out_path)
    except OSError:
        Path(tmp.name).unlink(missing_ok=True)
        raise
    logger.info("Stored %s (%d bytes) in %s", key, len(data), out_path)
    return {"backend": "local", "path": str(out_path), "content_type": CONTENT_TYPE}


def _read_bytes(lang: str) -> Optional[bytes]:
    key = cache_key(lang)
    if S3_BUCKET:
        s3 = _s3()
        assert s3 is not None
        try:
            s3.head_object(Bucket=S3_BUCKET, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return None
            raise UpstreamError(f"cache lookup failed for {key}: {code}") from e
        except BotoCoreError as e:
            raise UpstreamError(f"cache lookup failed for {key}: {e}") from e
        try:
            obj = s3.get_object(Bucket=S3_BUCKET, Key=key)
            return obj["Body"].read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return None
            raise UpstreamError(f"cache read failed for {key}: {code}") from e
        except BotoCoreError as e:
            raise UpstreamError(f"cache read failed for {key}: {e}") from e

    path = _local_path(lang)
    if not path.exists():
        return None
    return path.read_bytes()


def get_payload(lang: str) -> Dict[str, Any]:
    data = _read_bytes(lang)
    if data is None:
        raise CacheMiss(lang)
    try:
        raw = json.loads(data.decode("utf-8"))
        return BulletinPayload.model_validate(raw).to_json_dict()
    except (UnicodeDecodeError, ValueError, ValidationError) as e:
        raise MalformedCacheObject(lang, str(e).splitlines()[0]) from e
