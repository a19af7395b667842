"""Map zframe combo identifiers to per-combo values and back.

A combo identifier packs one value per dynamic combo as a mixed-radix
number: the first declared combo is the least significant digit and each
digit's radix is that combo's value count.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

from .combos import Combo
from .exceptions import IdentifierDecodeOverflow, StructuralMismatch

__all__ = ["ComboIndexDecoder", "IDENTIFIER_BITS"]

IDENTIFIER_BITS = 64


class ComboIndexDecoder:
    """Immutable mixed-radix codec built from the dynamic combo table."""

    def __init__(self, combos: Sequence[Combo], *, identifier_bits: int = IDENTIFIER_BITS) -> None:
        radices = []
        minimums = []
        for combo in combos:
            if combo.value_count < 1:
                raise StructuralMismatch(
                    f"combo {combo.name!r} declares an empty value range "
                    f"[{combo.range_min}, {combo.range_max}]",
                    stage="dynamic combos",
                    value=combo.value_count,
                )
            radices.append(combo.value_count)
            minimums.append(combo.range_min)

        space = 1
        for radix in radices:
            space *= radix
        if space > 1 << identifier_bits:
            raise IdentifierDecodeOverflow(
                f"dynamic combo space does not fit in {identifier_bits}-bit identifiers",
                stage="dynamic combos",
                value=space,
            )

        self._radices: Tuple[int, ...] = tuple(radices)
        self._minimums: Tuple[int, ...] = tuple(minimums)
        self._names: Tuple[str, ...] = tuple(combo.name for combo in combos)
        self._space = space

    @property
    def radices(self) -> Tuple[int, ...]:
        return self._radices

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def combination_count(self) -> int:
        return self._space

    def decode(self, identifier: int) -> Tuple[int, ...]:
        """Return one value per dynamic combo, each within its declared range."""

        if identifier < 0:
            raise IdentifierDecodeOverflow("negative combo identifier", value=identifier)
        remainder = identifier
        state = []
        for radix, minimum in zip(self._radices, self._minimums):
            remainder, digit = divmod(remainder, radix)
            state.append(minimum + digit)
        if remainder:
            raise IdentifierDecodeOverflow(
                f"combo identifier exceeds the {self._space} dynamic combinations",
                value=identifier,
            )
        return tuple(state)

    def encode(self, state: Sequence[int]) -> int:
        """Pack per-combo values back into a combo identifier."""

        if len(state) != len(self._radices):
            raise ValueError(f"expected {len(self._radices)} values, got {len(state)}")
        identifier = 0
        for value, radix, minimum, name in reversed(
            list(zip(state, self._radices, self._minimums, self._names))
        ):
            digit = value - minimum
            if not 0 <= digit < radix:
                raise ValueError(
                    f"value {value} outside combo {name!r} range [{minimum}, {minimum + radix - 1}]"
                )
            identifier = identifier * radix + digit
        return identifier

    def iter_identifiers(self) -> Iterator[int]:
        return iter(range(self._space))
