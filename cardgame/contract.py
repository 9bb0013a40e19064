# cardgame/contract.py
"""
Contract facade over a CardRegistry.

The registry takes the caller identity as a plain argument. The contract
is where that identity comes from: it only accepts calls signed by a
known account, and passes the verified account id on as the caller.
"""

import logging
from typing import Any, Dict, Set

from .accounts import Account, AccountStore
from .registry import CardRegistry
from .signatures import Call, sign_call, verify_call

logger = logging.getLogger(__name__)

# method -> accepted argument names, and whether the caller is forwarded
METHODS: Dict[str, tuple[tuple[str, ...], bool]] = {
    "mint": (("name", "attack", "defense"), True),
    "transfer": (("to", "token_id"), True),
    "get_card": (("token_id",), False),
    "owner_of": (("token_id",), False),
    "play": (("token_id_a", "token_id_b"), False),
}


class ContractError(Exception):
    """A call rejected before it reached the registry."""


class UnknownAccount(ContractError):
    pass


class InvalidCallSignature(ContractError):
    pass


class ReplayedCall(ContractError):
    pass


class Contract:
    """
    Accepts signed calls and dispatches them to the registry.

    Usage:
        accounts = AccountStore(state_dir / "accounts")
        alice = accounts.create("alice")
        contract = Contract.deploy(alice, accounts)
        token_id = contract.call(alice, "mint", name="Dragon", attack=100, defense=50)

    Executed call ids are remembered only for the lifetime of this object,
    one entry per accepted call. A long-lived contract grows by one id per
    call; a new Contract over the same registry starts with an empty set.
    """

    def __init__(self, registry: CardRegistry, accounts: AccountStore):
        self.registry = registry
        self.accounts = accounts
        self._seen_calls: Set[str] = set()

    @classmethod
    def deploy(cls, account: Account, accounts: AccountStore) -> "Contract":
        """Create a fresh registry whose admin is the deploying account."""
        registry = CardRegistry(admin=account.account_id)
        logger.info(f"Deployed registry with admin {account.username} ({account.account_id[:16]}...)")
        return cls(registry, accounts)

    def submit(self, call: Call) -> Any:
        """
        Verify and execute a signed call.

        Raises:
            UnknownAccount: caller id is not a registered account
            InvalidCallSignature: signature missing or does not verify
            ReplayedCall: call_id was already executed
            ValueError: unknown method or wrong arguments
            RegistryError: the registry rejected the call
        """
        account = self.accounts.get_by_id(call.caller)
        if account is None:
            raise UnknownAccount(f"Unknown account: {call.caller}")
        if not verify_call(call, account.public_key):
            raise InvalidCallSignature(f"Bad signature on call {call.call_id} from {account.username}")
        if call.call_id in self._seen_calls:
            raise ReplayedCall(f"Call {call.call_id} already executed")

        if call.method not in METHODS:
            raise ValueError(f"Unknown method: {call.method}")
        arg_names, needs_caller = METHODS[call.method]
        if set(call.args) != set(arg_names):
            raise ValueError(
                f"{call.method} expects arguments {list(arg_names)}, got {sorted(call.args)}"
            )

        self._seen_calls.add(call.call_id)
        kwargs = dict(call.args)
        if needs_caller:
            kwargs["caller"] = call.caller

        logger.debug(f"Dispatching {call.method} from {account.username}")
        return getattr(self.registry, call.method)(**kwargs)

    def call(self, account: Account, method: str, **args) -> Any:
        """Build, sign and submit a call as the given account."""
        call = sign_call(Call(method=method, args=args, caller=account.account_id), account)
        return self.submit(call)
