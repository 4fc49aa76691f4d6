"""Asset selection as a tagged variant.

Exactly one way of selecting assets applies to a command: by owner, by
creator addresses, or by an explicit mint list. The kind is carried as an
enum alongside its values instead of three optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from platyplex.core.errors import ValidationError


class SelectorKind(Enum):
    OWNER = "owner"
    CREATORS = "creators"
    MINT_LIST = "mint_list"


@dataclass(frozen=True)
class TargetSelector:
    """Which assets an operation applies to."""
    kind: SelectorKind
    values: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise ValidationError(f"Selector '{self.kind.value}' needs at least one value")
        if self.kind == SelectorKind.OWNER and len(self.values) != 1:
            raise ValidationError("Owner selector takes exactly one address")

    @classmethod
    def by_owner(cls, owner: str) -> "TargetSelector":
        return cls(SelectorKind.OWNER, (owner,))

    @classmethod
    def by_creators(cls, creators: Sequence[str]) -> "TargetSelector":
        return cls(SelectorKind.CREATORS, tuple(creators))

    @classmethod
    def by_mint_list(cls, mints: Sequence[str]) -> "TargetSelector":
        return cls(SelectorKind.MINT_LIST, tuple(mints))

    @classmethod
    def from_options(
        cls,
        owner: Optional[str] = None,
        creators: Optional[Sequence[str]] = None,
        mint_list: Optional[Sequence[str]] = None,
    ) -> "TargetSelector":
        """Build a selector from CLI options; exactly one must be provided."""
        given = [
            name for name, value in (("owner", owner), ("creators", creators), ("mint_list", mint_list))
            if value
        ]
        if len(given) != 1:
            raise ValidationError(
                "Exactly one of --owner, --creators or --mint-list must be provided"
                + (f" (got: {', '.join(given)})" if given else "")
            )
        if owner:
            return cls.by_owner(owner)
        if creators:
            return cls.by_creators(creators)
        return cls.by_mint_list(mint_list or ())

    def describe(self) -> str:
        return f"{self.kind.value}={','.join(self.values)}"
