#!/usr/bin/env python3
"""
cardgame CLI

Command-line interface to a card registry kept in a state directory:
  cardgame account create <username>
  cardgame account list
  cardgame deploy --as <username>
  cardgame mint <name> <attack> <defense> --as <username>
  cardgame card <token_id>
  cardgame owner <token_id>
  cardgame transfer <to> <token_id> --as <username>
  cardgame play <token_id_a> <token_id_b>

The state directory defaults to $CARDGAME_STATE_DIR, else ./cardgame_state.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import filelock

from .accounts import Account, AccountStore
from .contract import Contract, ContractError
from .errors import RegistryError
from .persistence import load_registry, save_registry

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = "./cardgame_state"


class CliError(Exception):
    """Usage problem reported to the user."""


def _state_dir(args) -> Path:
    return Path(args.state_dir or os.environ.get("CARDGAME_STATE_DIR") or DEFAULT_STATE_DIR)


def _registry_path(args) -> Path:
    return _state_dir(args) / "registry.json"


def _registry_lock(args) -> filelock.FileLock:
    """Held across load -> call -> save so concurrent commands serialize."""
    state_dir = _state_dir(args)
    state_dir.mkdir(parents=True, exist_ok=True)
    return filelock.FileLock(str(state_dir / "registry.lock"))


def _accounts(args) -> AccountStore:
    return AccountStore(_state_dir(args) / "accounts")


def _account(accounts: AccountStore, username: str) -> Account:
    account = accounts.get(username)
    if account is None:
        raise CliError(f"No such account: {username}")
    return account


def _contract(args, accounts: AccountStore) -> Contract:
    path = _registry_path(args)
    if not path.exists():
        raise CliError(f"No registry deployed in {_state_dir(args)} (run: cardgame deploy --as <user>)")
    return Contract(load_registry(path), accounts)


def _label(accounts: AccountStore, account_id: str) -> str:
    account = accounts.get_by_id(account_id)
    return f"{account.username} ({account_id[:16]}...)" if account else account_id


def cmd_account(args):
    """Create or list accounts."""
    accounts = _accounts(args)
    if args.account_command == "create":
        try:
            account = accounts.create(args.username)
        except ValueError as e:
            raise CliError(str(e))
        print(f"Created account {account.username}")
        print(f"Account id: {account.account_id}")
    else:
        for account in accounts.list():
            print(f"{account.username}\t{account.account_id}")


def cmd_deploy(args):
    """Create a new registry administered by --as."""
    path = _registry_path(args)
    accounts = _accounts(args)
    admin = _account(accounts, args.as_user)
    with _registry_lock(args):
        if path.exists():
            raise CliError(f"Registry already deployed at {path}")
        contract = Contract.deploy(admin, accounts)
        save_registry(contract.registry, path)
    print(f"Registry deployed, admin: {args.as_user}")


def cmd_mint(args):
    accounts = _accounts(args)
    caller = _account(accounts, args.as_user)
    with _registry_lock(args):
        contract = _contract(args, accounts)
        token_id = contract.call(
            caller, "mint",
            name=args.name, attack=args.attack, defense=args.defense,
        )
        save_registry(contract.registry, _registry_path(args))
    print(f"Minted token {token_id}")


def cmd_card(args):
    accounts = _accounts(args)
    card = _contract(args, accounts).registry.get_card(args.token_id)
    if card is None:
        print(f"Token {args.token_id}: not found")
        return
    print(f"Token {args.token_id}: {card.name}")
    print(f"  Attack:  {card.attack}")
    print(f"  Defense: {card.defense}")
    print(f"  Power:   {card.power}")


def cmd_owner(args):
    accounts = _accounts(args)
    owner = _contract(args, accounts).registry.owner_of(args.token_id)
    if owner is None:
        print(f"Token {args.token_id}: not found")
        return
    print(f"Token {args.token_id} owner: {_label(accounts, owner)}")


def cmd_transfer(args):
    accounts = _accounts(args)
    caller = _account(accounts, args.as_user)
    recipient = accounts.get(args.to)
    to = recipient.account_id if recipient else args.to
    with _registry_lock(args):
        contract = _contract(args, accounts)
        contract.call(caller, "transfer", to=to, token_id=args.token_id)
        save_registry(contract.registry, _registry_path(args))
    print(f"Transferred token {args.token_id} to {_label(accounts, to)}")


def cmd_play(args):
    accounts = _accounts(args)
    winner = _contract(args, accounts).registry.play(args.token_id_a, args.token_id_b)
    if winner is None:
        print("Result: tie / no result")
    else:
        print(f"Winner: token {winner}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardgame",
        description="cardgame - mint, transfer and play collectible cards",
    )
    parser.add_argument("--state-dir", help="State directory (default: $CARDGAME_STATE_DIR or ./cardgame_state)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # account command
    account_parser = subparsers.add_parser("account", help="Manage accounts")
    account_sub = account_parser.add_subparsers(dest="account_command", required=True)
    create_parser = account_sub.add_parser("create", help="Create an account with a new key pair")
    create_parser.add_argument("username")
    account_sub.add_parser("list", help="List accounts")

    # deploy command
    deploy_parser = subparsers.add_parser("deploy", help="Create a registry")
    deploy_parser.add_argument("--as", dest="as_user", required=True, help="Admin account")

    # mint command
    mint_parser = subparsers.add_parser("mint", help="Mint a card (admin only)")
    mint_parser.add_argument("name")
    mint_parser.add_argument("attack", type=int)
    mint_parser.add_argument("defense", type=int)
    mint_parser.add_argument("--as", dest="as_user", required=True, help="Calling account")

    # card / owner commands
    card_parser = subparsers.add_parser("card", help="Show a card")
    card_parser.add_argument("token_id", type=int)
    owner_parser = subparsers.add_parser("owner", help="Show a card's owner")
    owner_parser.add_argument("token_id", type=int)

    # transfer command
    transfer_parser = subparsers.add_parser("transfer", help="Transfer a card you own")
    transfer_parser.add_argument("to", help="Recipient username or account id")
    transfer_parser.add_argument("token_id", type=int)
    transfer_parser.add_argument("--as", dest="as_user", required=True, help="Calling account")

    # play command
    play_parser = subparsers.add_parser("play", help="Compare two cards by power")
    play_parser.add_argument("token_id_a", type=int)
    play_parser.add_argument("token_id_b", type=int)

    return parser


COMMANDS = {
    "account": cmd_account,
    "deploy": cmd_deploy,
    "mint": cmd_mint,
    "card": cmd_card,
    "owner": cmd_owner,
    "transfer": cmd_transfer,
    "play": cmd_play,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    logger.debug(f"Running {args.command} in {_state_dir(args)}")
    try:
        handler(args)
    except RegistryError as e:
        logger.debug(f"{args.command} rejected: {e.kind.value}")
        print(f"Error: {e.kind.value}: {e}", file=sys.stderr)
        return 1
    except (CliError, ContractError, ValueError, OverflowError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
