"""
Variant identity

A variant combination is a set of attribute-name -> option-value pairs.
Clients send it as a JSON object whose key order is insignificant, so
matching goes through VariantKey, which keeps the pairs sorted by name.
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel


def _combination_of(source: Any) -> Optional[Mapping]:
    # Accepts a bare combination mapping, a variant dict/model carrying
    # one under "combination", or None.
    if source is None:
        return None
    if isinstance(source, BaseModel):
        source = source.model_dump()
    if isinstance(source, Mapping) and "combination" in source:
        source = source.get("combination")
    if source is None:
        return None
    if not isinstance(source, Mapping):
        raise TypeError(f"Variant combination must be a mapping, got {type(source).__name__}")
    return source


@dataclass(frozen=True)
class VariantKey:
    """Canonical, order-independent identity of a variant combination."""

    pairs: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "pairs", tuple(sorted((str(k), str(v)) for k, v in self.pairs)))

    @classmethod
    def from_combination(cls, source: Any) -> "VariantKey":
        combination = _combination_of(source)
        if not combination:
            return cls()
        return cls(tuple(combination.items()))

    def __bool__(self):
        return bool(self.pairs)

    def as_dict(self) -> dict:
        return dict(self.pairs)

    def serialize(self) -> str:
        if not self.pairs:
            return ""
        return json.dumps(dict(self.pairs), separators=(",", ":"))


def normalize_variant_key(source: Any) -> str:
    """Deterministic string for a combination; empty or missing gives ""."""
    return VariantKey.from_combination(source).serialize()


def combination_matches(selected: Any, candidate: Any) -> bool:
    """True when selected names exactly the candidate's combination.

    A partial selection never matches, so a stored line always carries the
    same VariantKey the client selected it with.
    """
    wanted = VariantKey.from_combination(selected)
    if not wanted:
        return False
    return wanted == VariantKey.from_combination(candidate)


def line_key(item: Mapping) -> Tuple[str, VariantKey]:
    """Matching key for a cart or order line: product id plus variant identity."""
    return str(item.get("product")), VariantKey.from_combination(item.get("variant"))
