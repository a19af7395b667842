import json
from pathlib import Path

from vcsdecode.cli import main
from vcs_builder import VcsBuilder, combo_record, frame, rule_record, u32


def _write_sample(tmp_path: Path, **overrides) -> Path:
    builder = VcsBuilder(
        dynamic_combos=[combo_record("D_A", 0, 1), combo_record("D_B", 0, 2)],
        zframes=[(0, frame(b"first")), (5, frame(b"second" * 4, tag=2))],
        **overrides,
    )
    return builder.write(tmp_path / "input")


def test_summary_prints_and_writes_json(tmp_path, capsys):
    path = _write_sample(tmp_path)
    json_path = tmp_path / "reports" / "summary.json"

    assert main(["summary", str(path), "--json", str(json_path)]) == 0

    out = capsys.readouterr().out
    assert "File: " in out
    assert "Dynamic combos: 2" in out
    assert "ZFrames: 2 of 6 dynamic combinations" in out
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data["zframe_ids"] == [0, 5]
    assert data["dynamic_combos"][1] == {"name": "D_B", "range_min": 0, "range_max": 2}


def test_extract_writes_every_frame(tmp_path, capsys):
    path = _write_sample(tmp_path)
    out_dir = tmp_path / "frames"

    assert main(["extract", str(path), "--out", str(out_dir)]) == 0

    assert (out_dir / "test_shader_ps_zframe_00000000.bin").read_bytes() == b"first"
    assert (out_dir / "test_shader_ps_zframe_00000005.bin").read_bytes() == b"second" * 4
    assert "zframe_00000005.bin (24 bytes)" in capsys.readouterr().out


def test_extract_selected_ids_and_reports_failures(tmp_path):
    path = _write_sample(tmp_path)
    out_dir = tmp_path / "frames"

    assert main(["extract", str(path), "--out", str(out_dir), "--id", "0x5", "--id", "3"]) == 1
    assert sorted(p.name for p in out_dir.iterdir()) == ["test_shader_ps_zframe_00000005.bin"]


def test_config_prints_combo_values(tmp_path, capsys):
    path = _write_sample(tmp_path)

    assert main(["config", str(path), "5"]) == 0
    assert capsys.readouterr().out.splitlines() == ["D_A = 1", "D_B = 2"]

    assert main(["config", str(path), "6"]) == 1
    assert "error:" in capsys.readouterr().err


def test_decode_error_returns_one(tmp_path, capsys):
    path = tmp_path / "broken_pcgl_50_ps.vcs"
    path.write_bytes(u32(0x12345678) + b"\x00" * 32)

    assert main(["summary", str(path)]) == 1
    assert "not a vcs2 container" in capsys.readouterr().err


def test_debug_log_captures_decoder_trace(tmp_path):
    path = _write_sample(tmp_path)
    log_path = tmp_path / "logs" / "trace.log"

    assert main(["--debug-log", str(log_path), "summary", str(path)]) == 0

    trace = log_path.read_text(encoding="utf-8")
    assert "static combos: 0 records" in trace
    assert "decoded" in trace


def test_summary_of_file_with_feature_rule_operands(tmp_path, capsys):
    path = VcsBuilder(
        static_combos=[combo_record("S_A")],
        static_rules=[rule_record(1, [0, 4], operand_types=[2, 1])],
    ).write(tmp_path / "input")

    assert main(["summary", str(path)]) == 0
    assert "static: S_A requires feature[4]" in capsys.readouterr().out
