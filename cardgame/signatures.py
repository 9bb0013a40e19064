# cardgame/signatures.py
"""
Signed contract calls.

A Call names a registry method, its arguments and the calling account.
The caller signs it with RSA-SHA256 over the canonical JSON form, and
the contract verifies it before trusting the caller field.
"""

import base64
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .accounts import Account


def _canonicalize(data: Dict[str, Any]) -> bytes:
    """Sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _generate_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Call:
    """
    A message addressed to the contract.

    Attributes:
        method: Registry method name (mint, transfer, get_card, owner_of, play)
        args: Keyword arguments for the method (JSON-compatible)
        caller: Account id of the sender
        call_id: Unique id, used to reject replays
        created: ISO timestamp
        signature: Base64 RSA signature (added after signing)
    """
    method: str
    args: Dict[str, Any]
    caller: str
    call_id: str = field(default_factory=_generate_id)
    created: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
    signature: Optional[str] = None

    def signing_payload(self) -> bytes:
        return _canonicalize({
            "method": self.method,
            "args": self.args,
            "caller": self.caller,
            "call_id": self.call_id,
            "created": self.created,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "args": self.args,
            "caller": self.caller,
            "call_id": self.call_id,
            "created": self.created,
            "signature": self.signature,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Call":
        return cls(
            method=data["method"],
            args=data.get("args", {}),
            caller=data["caller"],
            call_id=data["call_id"],
            created=data.get("created", ""),
            signature=data.get("signature"),
        )


def sign_call(call: Call, account: Account) -> Call:
    """
    Sign a call with the account's private key.

    Args:
        call: The call to sign (its caller must be the account's id)
        account: The account whose key signs the call

    Returns:
        Call with signature attached
    """
    if call.caller != account.account_id:
        raise ValueError(f"Call caller {call.caller} does not match account {account.username}")

    private_key = serialization.load_pem_private_key(
        account.private_key,
        password=None,
    )
    signature_bytes = private_key.sign(
        call.signing_payload(),
        padding.PKCS1v15(),
        hashes.SHA256(),
    )
    call.signature = base64.b64encode(signature_bytes).decode("utf-8")
    return call


def verify_call(call: Call, public_key_pem: bytes) -> bool:
    """
    Verify a call's signature.

    Returns:
        True if signature is valid
    """
    if not call.signature:
        return False

    try:
        public_key = serialization.load_pem_public_key(public_key_pem)
        signature_bytes = base64.b64decode(call.signature)
        public_key.verify(
            signature_bytes,
            call.signing_payload(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True

    except (InvalidSignature, KeyError, ValueError):
        return False
