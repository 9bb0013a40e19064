# cardgame/persistence.py
"""
JSON state file for a CardRegistry.

Structure:
    registry.json
        {"version": "1.0", "admin": ..., "next_token_id": N,
         "cards": {"<token_id>": {...}}, "owners": {"<token_id>": ...}}
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from .card import Card
from .registry import CardRegistry
from .storage import MemoryStore

logger = logging.getLogger(__name__)

STATE_VERSION = "1.0"


def save_registry(registry: CardRegistry, path: Path | str) -> None:
    """Write registry state, replacing the target file in one step."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    admin, next_token_id, cards, owners = registry.snapshot()
    data = {
        "version": STATE_VERSION,
        "admin": admin,
        "next_token_id": next_token_id,
        "cards": {str(token_id): card.to_dict() for token_id, card in cards},
        "owners": {str(token_id): owner for token_id, owner in owners},
    }

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".registry-", suffix=".json")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Saved registry to {path} ({len(cards)} cards)")


def load_registry(path: Path | str) -> CardRegistry:
    """Rebuild a registry from its state file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
        cards = {int(token_id): Card.from_dict(c) for token_id, c in data["cards"].items()}
        owners = {int(token_id): owner for token_id, owner in data["owners"].items()}
        admin = data["admin"]
        next_token_id = int(data["next_token_id"])
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Failed to load registry {path}: {e}")
        raise ValueError(f"Invalid registry state file: {path}") from e

    if set(cards) != set(owners):
        raise ValueError(f"Registry state file {path} has cards without owners")
    if cards and max(cards) >= next_token_id:
        raise ValueError(f"Registry state file {path} has next_token_id {next_token_id} "
                         f"not above minted ids")

    return CardRegistry(
        admin=admin,
        cards=MemoryStore(cards),
        owners=MemoryStore(owners),
        next_token_id=next_token_id,
    )
