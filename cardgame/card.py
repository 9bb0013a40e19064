# cardgame/card.py
"""
Card value type.

A card is immutable once minted. Its power (attack + defense) is the
only metric used when two cards are played against each other.
"""

from dataclasses import dataclass
from typing import Any, Dict

U32_MAX = 2**32 - 1


def check_u32(value: Any, field_name: str) -> int:
    """Reject anything that is not an unsigned 32-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > U32_MAX:
        raise ValueError(f"{field_name} out of uint32 range: {value}")
    return value


@dataclass(frozen=True)
class Card:
    """
    A minted card.

    Attributes:
        name: Display name (no uniqueness requirement)
        attack: Unsigned 32-bit attack value
        defense: Unsigned 32-bit defense value
    """
    name: str
    attack: int
    defense: int

    @property
    def power(self) -> int:
        """Attack plus defense, saturated at the uint32 maximum."""
        return min(self.attack + self.defense, U32_MAX)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "attack": self.attack,
            "defense": self.defense,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        return cls(
            name=data["name"],
            attack=check_u32(data["attack"], "attack"),
            defense=check_u32(data["defense"], "defense"),
        )
