"""
Privacy Ledger - signed record of where each answer was produced.

One line per processed query. The query text itself is never written,
only a SHA-256 prefix. Lets a caregiver check afterwards which answers
left the device and confirm nobody edited the log.

Chain formula:
  record_bytes = json.dumps(record, sort_keys=True).encode()
  chain_hash   = SHA256(record_bytes + prev_hash.encode()).hexdigest()
  signature    = Ed25519.sign(chain_hash.encode()) → base64

Layout under the ledger directory (default ~/.gentlecare):
  keys/private.pem, keys/public.pem
  logs/privacy_chain.json
  logs/privacy.jsonl
"""

from __future__ import annotations
import base64
import hashlib
import json
import logging
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from ..errors import LedgerError
from .schemas import AIMode, AssistantResponse, Provider

logger = logging.getLogger(__name__)


GENTLECARE_DIR = Path.home() / ".gentlecare"
GENESIS = "GENESIS"


@dataclass
class VerifyResult:
    valid: bool
    records_checked: int
    error: Optional[str] = None
    broken_at: Optional[int] = None
    signature_failures: int = 0


def query_hash(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def chain_hash_for(record: dict, prev_hash: str) -> str:
    record_bytes = json.dumps(record, sort_keys=True).encode()
    return hashlib.sha256(record_bytes + prev_hash.encode()).hexdigest()


def build_record(query: str, mode: AIMode, response: AssistantResponse) -> dict:
    return {
        "ts": int(time.time()),
        "query_hash": query_hash(query),
        "mode": mode.value,
        "decided": response.decision.provider.value,
        "reason": response.decision.reason.value,
        "provider": response.provider.value,
        "private": response.was_privacy_preserving,
        "fell_back": response.fell_back,
        "latency_ms": round(response.processing_time * 1000, 1),
    }


class PrivacyLedger:
    """Ed25519 signing + SHA-256 chain over the privacy log."""

    def __init__(self, base_dir: Optional[Path] = None):
        base = Path(base_dir) if base_dir is not None else GENTLECARE_DIR
        self.keys_dir = base / "keys"
        self.private_key_file = self.keys_dir / "private.pem"
        self.public_key_file = self.keys_dir / "public.pem"
        self.chain_state = base / "logs" / "privacy_chain.json"
        self.log_path = base / "logs" / "privacy.jsonl"
        self._private_key: Optional[Ed25519PrivateKey] = None

    @property
    def private_key(self) -> Ed25519PrivateKey:
        if self._private_key is None:
            self._private_key = self._load_or_generate_key()
        return self._private_key

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self.private_key.public_key()

    @property
    def has_keys(self) -> bool:
        return self.private_key_file.exists()

    def _load_or_generate_key(self) -> Ed25519PrivateKey:
        if self.private_key_file.exists():
            pem = self.private_key_file.read_bytes()
            try:
                key = serialization.load_pem_private_key(pem, password=None)
            except (ValueError, TypeError) as e:
                raise LedgerError(f"{self.private_key_file}: unreadable signing key: {e}") from e
            if not isinstance(key, Ed25519PrivateKey):
                raise LedgerError(f"{self.private_key_file}: not an Ed25519 key")
            return key

        self.keys_dir.mkdir(parents=True, exist_ok=True)
        private_key = Ed25519PrivateKey.generate()

        self.private_key_file.write_bytes(private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ))
        self.private_key_file.chmod(0o600)

        self.public_key_file.write_bytes(private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ))
        self.public_key_file.chmod(0o644)
        return private_key

    def get_prev_hash(self) -> str:
        if not self.chain_state.exists():
            return GENESIS
        try:
            state = json.loads(self.chain_state.read_text())
        except json.JSONDecodeError:
            logger.warning("Unreadable chain state at %s, restarting chain", self.chain_state)
            return GENESIS
        return state.get("last_hash", GENESIS)

    def _save_chain_state(self, chain_hash: str):
        self.chain_state.parent.mkdir(parents=True, exist_ok=True)
        self.chain_state.write_text(json.dumps({
            "last_hash": chain_hash,
            "updated": datetime.now(timezone.utc).isoformat(),
        }))

    def append(self, record: dict) -> dict:
        """Sign a record, chain it and append it to the log. Returns the log entry."""
        prev_hash = self.get_prev_hash()
        chain_hash = chain_hash_for(record, prev_hash)
        signature = base64.b64encode(self.private_key.sign(chain_hash.encode())).decode()

        entry = dict(record)
        entry["chain_hash"] = chain_hash
        entry["prev_hash"] = prev_hash
        entry["signature"] = signature

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a") as f:
            f.write(json.dumps(entry) + "\n")
        self._save_chain_state(chain_hash)
        return entry

    def record(self, query: str, mode: AIMode, response: AssistantResponse) -> dict:
        return self.append(build_record(query, mode, response))

    def entries(self) -> list[dict]:
        if not self.log_path.exists():
            return []
        with open(self.log_path) as f:
            return [json.loads(line) for line in f if line.strip()]

    def verify_chain(self) -> VerifyResult:
        """Recompute every hash, check every link and every signature."""
        if not self.log_path.exists():
            return VerifyResult(valid=True, records_checked=0)

        prev_hash = GENESIS
        checked = 0
        signature_failures = 0

        with open(self.log_path) as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    return VerifyResult(
                        valid=False,
                        records_checked=checked,
                        error=f"Invalid JSON at line {line_num}",
                        broken_at=line_num,
                    )

                stored_hash = entry.pop("chain_hash", None)
                stored_prev = entry.pop("prev_hash", None)
                stored_sig = entry.pop("signature", None)

                if stored_prev != prev_hash:
                    return VerifyResult(
                        valid=False,
                        records_checked=checked,
                        error=f"Chain broken at line {line_num}",
                        broken_at=line_num,
                        signature_failures=signature_failures,
                    )

                if chain_hash_for(entry, prev_hash) != stored_hash:
                    return VerifyResult(
                        valid=False,
                        records_checked=checked,
                        error=f"Hash mismatch at line {line_num}",
                        broken_at=line_num,
                        signature_failures=signature_failures,
                    )

                try:
                    self.public_key.verify(base64.b64decode(stored_sig or ""), stored_hash.encode())
                except (InvalidSignature, ValueError):
                    signature_failures += 1

                prev_hash = stored_hash
                checked += 1

        return VerifyResult(
            valid=signature_failures == 0,
            records_checked=checked,
            error="Signature verification failed" if signature_failures else None,
            signature_failures=signature_failures,
        )

    def summary(self) -> dict:
        """How many answers stayed on the device and how many left it."""
        entries = self.entries()
        providers = Counter(e.get("provider") for e in entries)
        return {
            "records": len(entries),
            "on_device": providers.get(Provider.ON_DEVICE.value, 0),
            "left_device": sum(
                n for p, n in providers.items() if p != Provider.ON_DEVICE.value
            ),
            "fallbacks": sum(1 for e in entries if e.get("fell_back")),
            "last_hash": self.get_prev_hash()[:16],
            "log_path": str(self.log_path),
        }
