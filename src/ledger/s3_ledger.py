from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional, Tuple
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError
from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .errors import ConflictError, LedgerCorruptError
from .memory import MemoryLedger, Transaction
from .models import LedgerSnapshot


logger = logging.getLogger(__name__)

def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


def _dump_snapshot_json(snapshot: LedgerSnapshot) -> bytes:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(
        snapshot.model_dump(mode="json"), separators=(",", ":"), sort_keys=True
    ).encode("utf-8")


def _load_snapshot_json(data: bytes) -> LedgerSnapshot:
    raw = json.loads(data.decode("utf-8"))
    return LedgerSnapshot.model_validate(raw)


@dataclass
class S3ObjectRef:
    bucket: str
    key: str


class S3Ledger:
    """
    S3-backed ledger: the full version store is one Fernet-encrypted JSON object.

    Usage
    - `transaction()` loads the snapshot and its ETag, yields a ledger
      `Transaction`, and on normal exit writes the new snapshot back with an
      ETag precondition. A concurrent writer makes the write fail with
      `ConflictError`; nothing is persisted in that case.
    - If the object does not exist yet, the ledger starts empty and the first
      commit creates it; a racing first commit fails with `ConflictError`.
    - Transactions that buffered no writes (read-only) skip the write entirely.
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        key: str,
        fernet_key: str | bytes,
        region_name: Optional[str] = None,
    ) -> None:
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._obj = S3ObjectRef(bucket=bucket, key=key)
        self._fernet = _to_fernet(fernet_key)

    # -------- Snapshot I/O --------
    def read(self) -> Tuple[LedgerSnapshot, Optional[str]]:
        """Read and decrypt the ledger snapshot.

        Returns: (snapshot, etag); `(LedgerSnapshot.empty(), None)` if the object is missing.
        Raises `LedgerCorruptError` on decryption or parse failures.
        """
        try:
            resp = self._s3.get_object(Bucket=self._obj.bucket, Key=self._obj.key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return (LedgerSnapshot.empty(), None)
            raise

        body = resp["Body"].read()
        etag = resp.get("ETag")
        try:
            decrypted = self._fernet.decrypt(body)
        except InvalidToken as ex:
            raise LedgerCorruptError("Failed to decrypt ledger: invalid Fernet token") from ex

        try:
            snapshot = _load_snapshot_json(decrypted)
        except (ValueError, ValidationError) as ex:
            raise LedgerCorruptError("Failed to parse decrypted ledger JSON") from ex

        return (snapshot, etag)

    def _raise_if_precondition_failed(self, e: ClientError) -> None:
        code = e.response.get("Error", {}).get("Code")
        if code in ("PreconditionFailed", "412"):
            logger.warning("Precondition failed writing s3://%s/%s", self._obj.bucket, self._obj.key)
            raise ConflictError(
                f"Concurrent write to s3://{self._obj.bucket}/{self._obj.key}"
            ) from e

    def write(
        self,
        snapshot: LedgerSnapshot,
        *,
        if_match: Optional[str] = None,
        create_only: bool = False,
    ) -> str:
        """Encrypt and write the snapshot; returns the new ETag.

        - `if_match`: the write succeeds only if the current object ETag still
          matches (copy-based conditional update).
        - `create_only`: the write succeeds only if the object does not exist
          yet (`If-None-Match: *`).
        A failed precondition raises `ConflictError`.
        """
        ciphertext = self._fernet.encrypt(_dump_snapshot_json(snapshot))

        if if_match is None:
            extra = {"IfNoneMatch": "*"} if create_only else {}
            try:
                resp = self._s3.put_object(
                    Bucket=self._obj.bucket,
                    Key=self._obj.key,
                    Body=ciphertext,
                    ContentType="application/octet-stream",
                    **extra,
                )
            except ClientError as e:
                self._raise_if_precondition_failed(e)
                raise
            return str(resp.get("ETag"))

        # S3 PutObject does not support If-Match: upload to a temporary key, then
        # COPY over the destination with an If-Match precondition.
        temp_key = f"{self._obj.key}.tmp-{uuid4().hex}"
        self._s3.put_object(
            Bucket=self._obj.bucket,
            Key=temp_key,
            Body=ciphertext,
            ContentType="application/octet-stream",
        )
        try:
            resp = self._s3.copy_object(
                Bucket=self._obj.bucket,
                Key=self._obj.key,
                CopySource={"Bucket": self._obj.bucket, "Key": temp_key},
                IfMatch=if_match,
                MetadataDirective="COPY",
            )
        except ClientError as e:
            self._raise_if_precondition_failed(e)
            raise
        finally:
            self._s3.delete_object(Bucket=self._obj.bucket, Key=temp_key)

        return str(resp.get("ETag"))

    # -------- Transactions --------
    @contextmanager
    def transaction(
        self, tx_id: Optional[str] = None, timestamp: Optional[datetime] = None
    ) -> Iterator[Transaction]:
        snapshot, etag = self.read()
        ledger = MemoryLedger.from_snapshot(snapshot)
        with ledger.transaction(tx_id, timestamp) as txn:
            yield txn
            has_writes = bool(txn.write_set)
        if not has_writes:
            return
        # No ETag yet: only the first committer may create the object
        self.write(ledger.to_snapshot(), if_match=etag, create_only=etag is None)
        logger.info("Committed tx %s to s3://%s/%s", txn.tx_id, self._obj.bucket, self._obj.key)


__all__ = ["S3Ledger", "S3ObjectRef"]
