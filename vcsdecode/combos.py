"""Static/dynamic combo definitions and the rules constraining them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from .exceptions import StructuralMismatch, UnexpectedMagic
from .reader import ByteCursor

__all__ = [
    "COMBO_RECORD_SIZE",
    "RULE_RECORD_SIZE",
    "Combo",
    "ComboRule",
    "ConditionalRule",
    "ConditionalType",
]

COMBO_RECORD_SIZE = 152
RULE_RECORD_SIZE = 472

_NAME_FIELD = 64
_OPERAND_SLOTS = 16
_DESCRIPTION_FIELD = 256


class ConditionalType(IntEnum):
    FEATURE = 1
    STATIC = 2
    DYNAMIC = 3


class ConditionalRule(IntEnum):
    REQUIRES = 1
    EXCLUDES = 2
    ALLOWS = 3


@dataclass(frozen=True)
class Combo:
    """One compile-time switch and its legal value range."""

    index: int
    name: str
    alias: str
    combo_type: int
    range_min: int
    range_max: int
    source: int
    feature_index: int
    calc_flags: int

    @property
    def value_count(self) -> int:
        return self.range_max - self.range_min + 1

    @classmethod
    def read(cls, cursor: ByteCursor, index: int) -> "Combo":
        name = cursor.read_fixed_string(_NAME_FIELD)
        alias = cursor.read_fixed_string(_NAME_FIELD)
        combo_type, range_min, range_max, source, feature_index, calc_flags = (
            cursor.read_int32_array(6)
        )
        return cls(
            index=index,
            name=name,
            alias=alias,
            combo_type=combo_type,
            range_min=range_min,
            range_max=range_max,
            source=source,
            feature_index=feature_index,
            calc_flags=calc_flags,
        )


def _until_terminator(values: Sequence[int]) -> Tuple[int, ...]:
    out = []
    for value in values:
        if value == -1:
            break
        out.append(value)
    return tuple(out)


@dataclass(frozen=True)
class ComboRule:
    """A validity constraint between combos, kept verbatim.

    ``indices`` are combo ordinals; ``operand_types`` gives the table each
    operand refers to.  The rule is not evaluated during decode.
    """

    index: int
    kind: ConditionalType
    rule: ConditionalRule
    block_type: int
    operand_types: Tuple[ConditionalType, ...]
    indices: Tuple[int, ...]
    values: Tuple[int, ...]
    ranges: Tuple[int, ...]
    description: str

    @classmethod
    def read(cls, cursor: ByteCursor, index: int, kind: ConditionalType) -> "ComboRule":
        raw_rule = cursor.read_int32()
        try:
            rule = ConditionalRule(raw_rule)
        except ValueError:
            raise UnexpectedMagic(
                f"undefined conditional rule in rule {index}", stage=cursor.stage, value=raw_rule
            ) from None
        block_type = cursor.read_int32()
        type_codes = cursor.read_bytes(_OPERAND_SLOTS)
        indices = _until_terminator(cursor.read_int32_array(_OPERAND_SLOTS))
        values = _until_terminator(cursor.read_int32_array(_OPERAND_SLOTS))
        ranges = _until_terminator(cursor.read_int32_array(_OPERAND_SLOTS))
        description = cursor.read_fixed_string(_DESCRIPTION_FIELD)

        operand_types = []
        for code in type_codes[: len(indices)]:
            if code == 0:
                operand_types.append(kind)
                continue
            try:
                operand_types.append(ConditionalType(code))
            except ValueError:
                raise UnexpectedMagic(
                    f"undefined operand type in rule {index}", stage=cursor.stage, value=code
                ) from None

        return cls(
            index=index,
            kind=kind,
            rule=rule,
            block_type=block_type,
            operand_types=tuple(operand_types),
            indices=indices,
            values=values,
            ranges=ranges,
            description=description,
        )

    def is_external(self, operand_type: ConditionalType) -> bool:
        """True for feature operands of a static or dynamic rule.

        Those index the combo table of the companion features file, which is
        not part of this container.
        """

        return operand_type is ConditionalType.FEATURE and self.kind is not ConditionalType.FEATURE

    def resolve(
        self, static_combos: Sequence[Combo], dynamic_combos: Sequence[Combo]
    ) -> Tuple[Optional[Combo], ...]:
        """Return the combos this rule references.

        External feature operands resolve to ``None``.  Raises
        :class:`StructuralMismatch` for an operand that names a combo missing
        from its table.
        """

        resolved: List[Optional[Combo]] = []
        for operand_type, combo_index in zip(self.operand_types, self.indices):
            if self.is_external(operand_type):
                resolved.append(None)
                continue
            table = dynamic_combos if operand_type is ConditionalType.DYNAMIC else static_combos
            if not 0 <= combo_index < len(table):
                raise StructuralMismatch(
                    f"{self.kind.name.lower()} rule {self.index} references undefined "
                    f"{operand_type.name.lower()} combo",
                    stage="combo rules",
                    value=combo_index,
                )
            resolved.append(table[combo_index])
        return tuple(resolved)

    def describe(self, static_combos: Sequence[Combo], dynamic_combos: Sequence[Combo]) -> str:
        names = [
            f"feature[{combo_index}]" if combo is None else combo.name
            for combo, combo_index in zip(self.resolve(static_combos, dynamic_combos), self.indices)
        ]
        if not names:
            return self.rule.name.lower()
        head, *rest = names
        if not rest:
            return f"{self.rule.name.lower()} {head}"
        return f"{head} {self.rule.name.lower()} {', '.join(rest)}"
