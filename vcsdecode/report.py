"""Structured summary of a decoded container."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from .exceptions import StructuralMismatch
from .program import ProgramData


@dataclass
class ComboSummary:
    name: str
    range_min: int
    range_max: int


@dataclass
class ProgramSummary:
    """Everything a maintainer usually wants to know about one file."""

    filename: str
    shader_name: str
    program_type: str
    platform: str
    shader_model: str
    version: int
    additional_files: str
    file_hash: str
    editor_ids: List[Dict[str, Any]] = field(default_factory=list)
    static_combos: List[ComboSummary] = field(default_factory=list)
    dynamic_combos: List[ComboSummary] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    variable_count: int = 0
    channel_processor_count: int = 0
    constant_buffers: List[str] = field(default_factory=list)
    vs_input_count: int = 0
    dynamic_combination_count: int = 1
    zframe_count: int = 0
    zframe_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_program(cls, program: ProgramData) -> "ProgramSummary":
        rules = []
        for rule in (*program.static_combo_rules, *program.dynamic_combo_rules):
            try:
                text = rule.describe(program.static_combos, program.dynamic_combos)
            except StructuralMismatch as exc:
                text = f"unresolved rule {rule.index} ({exc.message}, value={exc.value})"
            rules.append(f"{rule.kind.name.lower()}: {text}")
        return cls(
            filename=program.filename,
            shader_name=program.shader_name,
            program_type=program.program_type.name.lower(),
            platform=program.platform.value,
            shader_model=program.shader_model.value,
            version=program.version,
            additional_files=program.additional_files.name.lower(),
            file_hash=str(program.file_hash),
            editor_ids=[
                {"id": str(editor_id), "program": None if kind is None else kind.suffix}
                for editor_id, kind in program.editor_ids
            ],
            static_combos=[
                ComboSummary(combo.name, combo.range_min, combo.range_max)
                for combo in program.static_combos
            ],
            dynamic_combos=[
                ComboSummary(combo.name, combo.range_min, combo.range_max)
                for combo in program.dynamic_combos
            ],
            rules=rules,
            variable_count=len(program.variable_descriptions),
            channel_processor_count=len(program.texture_channel_processors),
            constant_buffers=[buffer.name for buffer in program.constant_buffers],
            vs_input_count=len(program.vs_input_signatures),
            dynamic_combination_count=program.config_decoder.combination_count,
            zframe_count=program.zframe_count,
            zframe_ids=list(program.zframes.ids),
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_text(self) -> str:
        lines: List[str] = []
        lines.append(f"File: {self.filename}")
        lines.append(
            f"Shader: {self.shader_name} ({self.program_type}, {self.platform}, "
            f"model {self.shader_model})"
        )
        lines.append(f"VCS version: {self.version}, additional files: {self.additional_files}")
        lines.append(f"File hash: {self.file_hash}")
        for entry in self.editor_ids:
            suffix = f" [{entry['program']}]" if entry["program"] else ""
            lines.append(f"  editor id {entry['id']}{suffix}")
        for label, combos in (("Static", self.static_combos), ("Dynamic", self.dynamic_combos)):
            lines.append(f"{label} combos: {len(combos)}")
            for combo in combos:
                lines.append(f"  {combo.name} [{combo.range_min}..{combo.range_max}]")
        if self.rules:
            lines.append(f"Rules: {len(self.rules)}")
            lines.extend(f"  {rule}" for rule in self.rules)
        lines.append(
            f"Variables: {self.variable_count}, channel processors: "
            f"{self.channel_processor_count}, vertex inputs: {self.vs_input_count}"
        )
        if self.constant_buffers:
            lines.append("Constant buffers: " + ", ".join(self.constant_buffers))
        lines.append(
            f"ZFrames: {self.zframe_count} of {self.dynamic_combination_count} dynamic combinations"
        )
        return "\n".join(lines)


__all__ = ["ComboSummary", "ProgramSummary"]
