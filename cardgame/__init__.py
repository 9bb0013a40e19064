# cardgame - Ownership registry for collectible cards
#
# A small registry where an admin mints cards, owners transfer them, and
# any two cards can be played against each other by power.
#
# Core concepts:
# - Card: Immutable name/attack/defense value
# - CardRegistry: Holds cards, owners and the token counter
# - Account: Signing identity; its account_id is what the registry stores
# - Contract: Verifies signed calls and dispatches them to the registry

from .card import Card, U32_MAX
from .errors import (
    ErrorKind,
    RegistryError,
    NotOwner,
    TokenNotFound,
    NotApproved,
    TokenAlreadyExists,
)
from .storage import KeyValueStore, MemoryStore
from .registry import CardRegistry, ensure_admin
from .persistence import save_registry, load_registry
from .accounts import Account, AccountStore
from .signatures import Call, sign_call, verify_call
from .contract import Contract, ContractError, UnknownAccount, InvalidCallSignature, ReplayedCall

__all__ = [
    # Core
    "Card",
    "U32_MAX",
    "CardRegistry",
    "ensure_admin",
    "KeyValueStore",
    "MemoryStore",
    "save_registry",
    "load_registry",
    # Errors
    "ErrorKind",
    "RegistryError",
    "NotOwner",
    "TokenNotFound",
    "NotApproved",
    "TokenAlreadyExists",
    # Accounts and signed calls
    "Account",
    "AccountStore",
    "Call",
    "sign_call",
    "verify_call",
    "Contract",
    "ContractError",
    "UnknownAccount",
    "InvalidCallSignature",
    "ReplayedCall",
]

__version__ = "0.1.0"
