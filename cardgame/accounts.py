# cardgame/accounts.py
"""
Player accounts.

An Account is an identity with:
- Username for humans
- RSA key pair for signing contract calls
- account_id: SHA-3-256 of the DER public key, the identity the registry stores
"""

import hashlib
import json
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import filelock
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

KEY_SIZE = 2048


def account_id_for(public_key_pem: bytes) -> str:
    """Derive the account id from a PEM public key."""
    public_key = serialization.load_pem_public_key(public_key_pem)
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha3_256(der).hexdigest()


@dataclass
class Account:
    """
    A player identity.

    Attributes:
        username: Unique local username (e.g., "alice")
        public_key: PEM-encoded public key
        private_key: PEM-encoded PKCS8 private key (kept secret)
        created_at: Timestamp of creation
    """
    username: str
    public_key: bytes
    private_key: bytes
    created_at: float = field(default_factory=time.time)

    @property
    def account_id(self) -> str:
        return account_id_for(self.public_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "public_key": self.public_key.decode("utf-8"),
            "private_key": self.private_key.decode("utf-8"),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            username=data["username"],
            public_key=data["public_key"].encode("utf-8"),
            private_key=data["private_key"].encode("utf-8"),
            created_at=data.get("created_at", time.time()),
        )

    @classmethod
    def create(cls, username: str) -> "Account":
        """Create a new account with a fresh RSA key."""
        key = rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)
        return cls(
            username=username,
            public_key=key.public_key().public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            ),
            private_key=key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            ),
        )


class AccountStore:
    """
    Accounts shared by every process using the same directory.

    Structure:
        store_dir/
            accounts.json       # {"version": "1.0", "accounts": {username: {...}}}
            accounts.json.lock  # held while reading or rewriting the index

    Accounts are indexed by username and by account id. Writes happen under
    the file lock after re-reading the index, so concurrent creates from
    separate processes never drop each other's accounts.
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.store_dir / "accounts.json"
        self._lock = filelock.FileLock(str(self.index_path) + ".lock")
        self._by_name: Dict[str, Account] = {}
        self._by_id: Dict[str, Account] = {}
        with self._lock:
            self._refresh()

    def _refresh(self) -> None:
        if not self.index_path.exists():
            return
        with open(self.index_path) as f:
            entries = json.load(f).get("accounts", {})
        self._by_name = {name: Account.from_dict(entry) for name, entry in entries.items()}
        self._by_id = {account.account_id: account for account in self._by_name.values()}

    def _write(self) -> None:
        payload = {
            "version": "1.0",
            "accounts": {name: account.to_dict() for name, account in self._by_name.items()},
        }
        fd, tmp_name = tempfile.mkstemp(dir=self.store_dir, prefix=".accounts-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.index_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def create(self, username: str) -> Account:
        """Generate keys for username and add it. Raises ValueError if taken."""
        account = Account.create(username)
        with self._lock:
            self._refresh()
            if username in self._by_name:
                raise ValueError(f"Account {username} already exists")
            self._by_name[username] = account
            self._by_id[account.account_id] = account
            self._write()
        return account

    def get(self, username: str) -> Optional[Account]:
        return self._by_name.get(username)

    def get_by_id(self, account_id: str) -> Optional[Account]:
        return self._by_id.get(account_id)

    def list(self) -> list[Account]:
        return sorted(self._by_name.values(), key=lambda a: a.username)

    def __contains__(self, username: str) -> bool:
        return username in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
