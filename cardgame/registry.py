# cardgame/registry.py
"""
Card ownership registry.

The registry holds all state:
- admin: the single identity allowed to mint, fixed at construction
- cards: token_id -> Card, written once by mint
- owners: token_id -> identity, written by mint and transfer
- next_token_id: starts at 1, grows by exactly 1 per successful mint

Every operation runs under one lock, so a mutation is never partially
visible. Failed calls leave all state untouched.
"""

import logging
import threading
from typing import Hashable, List, Optional, Tuple

from .card import Card, U32_MAX, check_u32
from .errors import NotApproved, NotOwner, TokenNotFound
from .storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

Identity = Hashable


def ensure_admin(admin: Identity, caller: Identity) -> None:
    """Raise NotOwner unless caller is the admin."""
    if caller != admin:
        logger.info(f"Rejected privileged call from non-admin {caller!r}")
        raise NotOwner(f"{caller!r} is not the registry admin")


class CardRegistry:
    """
    Mint, look up, transfer and play cards.

    Usage:
        registry = CardRegistry(admin="alice")
        token_id = registry.mint("Dragon", 100, 50, caller="alice")
        registry.transfer("bob", token_id, caller="alice")
    """

    def __init__(
        self,
        admin: Identity,
        cards: KeyValueStore = None,
        owners: KeyValueStore = None,
        next_token_id: int = 1,
    ):
        """
        Initialize the registry.

        Args:
            admin: Identity of whoever constructs the registry
            cards: Backing store for token_id -> Card (in-memory by default)
            owners: Backing store for token_id -> owner identity
            next_token_id: Counter value, only set when restoring saved state
        """
        if next_token_id < 1:
            raise ValueError(f"next_token_id must be >= 1, got {next_token_id}")
        self._admin = admin
        self._cards = cards if cards is not None else MemoryStore()
        self._owners = owners if owners is not None else MemoryStore()
        self._next_token_id = next_token_id
        self._lock = threading.Lock()

    @property
    def admin(self) -> Identity:
        return self._admin

    @property
    def next_token_id(self) -> int:
        with self._lock:
            return self._next_token_id

    def mint(self, name: str, attack: int, defense: int, caller: Identity) -> int:
        """
        Create a new card owned by the admin.

        Returns:
            The newly assigned token id

        Raises:
            NotOwner: caller is not the admin
            ValueError: attack or defense is not a uint32
            OverflowError: the token id space is exhausted
        """
        with self._lock:
            ensure_admin(self._admin, caller)
            card = Card(
                name=name,
                attack=check_u32(attack, "attack"),
                defense=check_u32(defense, "defense"),
            )
            token_id = self._next_token_id
            if token_id > U32_MAX:
                raise OverflowError("token id space exhausted")

            self._cards.set(token_id, card)
            # Initial owner is always the admin, not the caller.
            self._owners.set(token_id, self._admin)
            self._next_token_id = token_id + 1

        logger.debug(f"Minted token {token_id}: {card.name} ({card.attack}/{card.defense})")
        return token_id

    def get_card(self, token_id: int) -> Optional[Card]:
        """Get a card by token id, or None if it was never minted."""
        check_u32(token_id, "token_id")
        with self._lock:
            return self._cards.get(token_id)

    def owner_of(self, token_id: int) -> Optional[Identity]:
        """Get the current owner of a token, or None if it was never minted."""
        check_u32(token_id, "token_id")
        with self._lock:
            return self._owners.get(token_id)

    def transfer(self, to: Identity, token_id: int, caller: Identity) -> None:
        """
        Hand a token to a new owner.

        Raises:
            TokenNotFound: token_id was never minted
            NotApproved: caller is not the current owner
            ValueError: token_id is not a uint32
        """
        check_u32(token_id, "token_id")
        with self._lock:
            if token_id not in self._owners:
                raise TokenNotFound(f"Token {token_id} not found")
            owner = self._owners.get(token_id)
            if owner != caller:
                logger.info(f"Rejected transfer of token {token_id} by non-owner {caller!r}")
                raise NotApproved(f"{caller!r} does not own token {token_id}")
            self._owners.set(token_id, to)

        logger.debug(f"Transferred token {token_id}: {owner!r} -> {to!r}")

    def play(self, token_id_a: int, token_id_b: int) -> Optional[int]:
        """
        Compare two cards by power.

        Returns the token id of the stronger card, or None on a tie or
        when either card does not exist. Ownership is not checked.
        """
        check_u32(token_id_a, "token_id_a")
        check_u32(token_id_b, "token_id_b")
        with self._lock:
            card_a = self._cards.get(token_id_a)
            card_b = self._cards.get(token_id_b)

        if card_a is None or card_b is None:
            return None
        if card_a.power > card_b.power:
            return token_id_a
        if card_b.power > card_a.power:
            return token_id_b
        return None

    def snapshot(self) -> Tuple[Identity, int, List[Tuple[int, Card]], List[Tuple[int, Identity]]]:
        """Consistent copy of (admin, next_token_id, cards, owners)."""
        with self._lock:
            return (
                self._admin,
                self._next_token_id,
                sorted(self._cards.items()),
                sorted(self._owners.items()),
            )

    def __contains__(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._cards

    def __len__(self) -> int:
        with self._lock:
            return len(self._cards)
