from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel

from ledger.s3_ledger import S3Ledger
from store.context import TxContext
from store.errors import StoreError
from store.manager import StoreManager


logger = logging.getLogger(__name__)

# Environment variable names expected by the deployment
ENV_STATE_BUCKET = "STATE_BUCKET"
ENV_STATE_KEY = "STATE_KEY"  # optional; defaults to "ledger.json"
ENV_PARAM_PREFIX = "PARAM_PREFIX"
ENV_LOG_LEVEL = "LOG_LEVEL"

FALLBACK_ENV_STATE_BUCKET = "LEDGER_STATE_BUCKET"
FALLBACK_ENV_STATE_KEY = "LEDGER_STATE_KEY"
FALLBACK_ENV_PARAM_PREFIX = "LEDGER_PARAM_PREFIX"

# Public function name -> (StoreManager method, number of string arguments)
OPERATIONS: Dict[str, Tuple[str, int]] = {
    "storeExists": ("store_exists", 1),
    "createStore": ("create_store", 2),
    "readStore": ("read_store", 1),
    "updateStore": ("update_store", 2),
    "deleteStore": ("delete_store", 1),
    "getHistoryForKey": ("get_history_for_key", 1),
    "getHistoryTransactionForKey": ("get_history_transaction_for_key", 2),
}
_BY_METHOD: Dict[str, Tuple[str, int]] = {m: (m, n) for m, n in OPERATIONS.values()}


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


def _load_ssm_params(prefix: str, names: Iterable[str]) -> Dict[str, Optional[str]]:
    ssm = boto3.client("ssm")
    out: Dict[str, Optional[str]] = {k: None for k in names}
    for name in names:
        full = f"{prefix}{name}"
        try:
            resp = ssm.get_parameter(Name=full, WithDecryption=True)
        except ClientError as e:
            # Leave as None if parameter missing or access denied
            code = e.response.get("Error", {}).get("Code")
            if code in ("ParameterNotFound", "AccessDeniedException"):
                continue
            raise
        val = resp.get("Parameter", {}).get("Value")
        out[name] = val if isinstance(val, str) and val != "" else None
    return out


def _configure_logging() -> None:
    level = (_getenv(ENV_LOG_LEVEL, "INFO") or "INFO").upper()
    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)


def build_ledger() -> S3Ledger:
    """Resolve bucket/key from env and the Fernet key from SSM."""
    bucket = _getenv(ENV_STATE_BUCKET) or _getenv(FALLBACK_ENV_STATE_BUCKET)
    key = _getenv(ENV_STATE_KEY) or _getenv(FALLBACK_ENV_STATE_KEY, "ledger.json")
    prefix = _getenv(ENV_PARAM_PREFIX) or _getenv(FALLBACK_ENV_PARAM_PREFIX)

    bucket = _require(bucket, ENV_STATE_BUCKET)
    prefix = _require(prefix, ENV_PARAM_PREFIX)

    params = _load_ssm_params(prefix, ["fernet_key"])
    fernet_key = _require(params.get("fernet_key"), f"{prefix}fernet_key")
    return S3Ledger(bucket=bucket, key=key, fernet_key=fernet_key)


def _bad_request(message: str) -> Dict[str, Any]:
    return {"ok": False, "error": {"kind": "bad_request", "message": message}}


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [_to_jsonable(r) for r in result]
    return result


def _parse_call(event: Any) -> Tuple[Optional[str], List[str], Optional[str]]:
    """Return (method, args, error) for an invocation event."""
    if not isinstance(event, dict):
        return (None, [], "event must be an object")
    fn = event.get("fn")
    entry = (OPERATIONS.get(fn) or _BY_METHOD.get(fn)) if isinstance(fn, str) else None
    if entry is None:
        return (None, [], f"Unknown function: {fn!r}")
    method, arity = entry
    args = event.get("args", [])
    if not isinstance(args, list) or len(args) != arity:
        return (None, [], f"{fn} expects {arity} argument(s)")
    if not all(isinstance(a, str) for a in args):
        return (None, [], f"{fn} arguments must be strings")
    return (method, args, None)


def run_once(event: Any, *, ledger: Any, manager: Optional[StoreManager] = None) -> Dict[str, Any]:
    """
    Execute one store operation inside one ledger transaction.

    - Store failures roll the transaction back and come back as
      {"ok": False, "tx_id": ..., "error": {"kind": ..., "message": ...}}.
    - Ledger failures (conflicts, corrupt state) propagate to the caller.

    Returns: {"ok": True, "tx_id": str, "result": <JSON-ready value>} on success.
    """
    method, args, err = _parse_call(event)
    if err is not None:
        logger.info("Rejected invocation: %s", err)
        return _bad_request(err)

    mgr = manager or StoreManager()
    tx_id: Optional[str] = None
    try:
        with ledger.transaction() as txn:
            tx_id = txn.tx_id
            result = getattr(mgr, method)(TxContext(txn), *args)
    except StoreError as e:
        logger.info("%s failed in tx %s: %s", method, tx_id, e.kind.value)
        return {"ok": False, "tx_id": tx_id, "error": e.to_dict()}

    return {"ok": True, "tx_id": tx_id, "result": _to_jsonable(result)}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry for store operations.

    Event: {"fn": "createStore", "args": ["store-1", "hello"]}

    Environment:
    - STATE_BUCKET, STATE_KEY (default: ledger.json), PARAM_PREFIX, LOG_LEVEL
    - Fallbacks: LEDGER_STATE_BUCKET, LEDGER_STATE_KEY, LEDGER_PARAM_PREFIX
    - SSM under PARAM_PREFIX must provide: fernet_key
    """
    _configure_logging()
    return run_once(event, ledger=build_ledger())
