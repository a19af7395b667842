from vcsdecode.report import ProgramSummary
from vcs_builder import VcsBuilder, combo_record, frame, rule_record


def test_summary_from_features_program(open_built):
    builder = VcsBuilder(
        program="features",
        additional_files=1,
        static_combos=[combo_record("F_FOG"), combo_record("F_SHADOWS", 0, 2)],
        static_rules=[rule_record(2, [0, 1])],
        dynamic_combos=[combo_record("D_BAKED", 0, 1)],
        zframes=[(1, frame(b"x"))],
    )
    summary = ProgramSummary.from_program(open_built(builder))

    assert summary.program_type == "features"
    assert summary.platform == "pcgl"
    assert summary.shader_model == "50"
    assert summary.additional_files == "psrs"
    assert len(summary.editor_ids) == 8
    assert summary.editor_ids[-1]["program"] == "psrs"
    assert summary.rules == ["feature: F_FOG excludes F_SHADOWS"]
    assert summary.dynamic_combination_count == 2
    assert summary.zframe_ids == [1]


def test_summary_text_lists_sections(open_built):
    builder = VcsBuilder(static_combos=[combo_record("S_MODE", 0, 3)])
    rendered = ProgramSummary.from_program(open_built(builder)).to_text()

    lines = rendered.splitlines()
    assert lines[0].startswith("File: ") and lines[0].endswith(builder.filename)
    assert "Shader: test_shader (pixel_shader, pcgl, model 50)" in lines
    assert "VCS version: 66, additional files: none" in lines
    assert "  S_MODE [0..3]" in lines
    assert "Dynamic combos: 0" in lines
    assert lines[-1] == "ZFrames: 0 of 1 dynamic combinations"


def test_summary_survives_an_unresolvable_rule(open_built):
    builder = VcsBuilder(
        static_combos=[combo_record("S_A")],
        static_rules=[rule_record(1, [0, 2], operand_types=[2, 1])],
        dynamic_combos=[combo_record("D_A")],
        dynamic_rules=[
            rule_record(1, [0, 5], operand_types=[3, 3]),
            rule_record(2, [0], operand_types=[3]),
        ],
    )
    summary = ProgramSummary.from_program(open_built(builder))

    assert summary.rules[0] == "static: S_A requires feature[2]"
    assert summary.rules[1].startswith("dynamic: unresolved rule 0 (")
    assert "value=5" in summary.rules[1]
    assert summary.rules[2] == "dynamic: excludes D_A"
