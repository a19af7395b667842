"""Command line entry point for inspecting VCS containers."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import io_utils
from .exceptions import VcsDecodeError
from .logging_config import close_debug_logger, configure_debug_file_logger
from .program import ProgramData, open_program
from .report import ProgramSummary
from .versions import TargetRuntime

LOG = logging.getLogger(__name__)


def _parse_id(text: str) -> int:
    return int(text, 0)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vcsdecode", description="Valve compiled shader (VCS) reader")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("--debug-log", type=Path, default=None, help="write a debug trace here")
    parser.add_argument("--sbox", action="store_true", help="file was produced by s&box")
    sub = parser.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print the decoded header and tables")
    summary.add_argument("file", type=Path)
    summary.add_argument("--json", type=Path, default=None, help="also write the summary as JSON")

    extract = sub.add_parser("extract", help="Write decompressed zframes to a directory")
    extract.add_argument("file", type=Path)
    extract.add_argument("--out", type=Path, default=Path("out"))
    extract.add_argument("--id", dest="ids", type=_parse_id, action="append", default=None)

    config = sub.add_parser("config", help="Decode a zframe id into dynamic combo values")
    config.add_argument("file", type=Path)
    config.add_argument("zframe_id", type=_parse_id)

    return parser


def _summary(program: ProgramData, args: argparse.Namespace) -> int:
    summary = ProgramSummary.from_program(program)
    print(summary.to_text())
    if args.json is not None:
        io_utils.write_json(args.json, summary.as_dict())
        LOG.info("wrote summary to %s", args.json)
    return 0


def _extract(program: ProgramData, args: argparse.Namespace) -> int:
    out_dir = Path(io_utils.ensure_dir(args.out))
    ids = args.ids if args.ids else list(program.zframes.ids)
    failures = 0
    for zframe_id in ids:
        target = out_dir / f"{program.shader_name}_{program.program_type.suffix}_zframe_{zframe_id:08x}.bin"
        try:
            data = program.decompress_zframe(zframe_id)
        except VcsDecodeError as exc:
            LOG.error("zframe 0x%08x: %s", zframe_id, exc)
            failures += 1
            continue
        io_utils.write_bytes(target, data)
        print(f"{target} ({len(data)} bytes)")
    return 1 if failures else 0


def _config(program: ProgramData, args: argparse.Namespace) -> int:
    state = program.get_config_state(args.zframe_id)
    for combo, value in zip(program.dynamic_combos, state):
        print(f"{combo.name} = {value}")
    return 0


_COMMANDS = {
    "summary": _summary,
    "extract": _extract,
    "config": _config,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    package_logger = logging.getLogger("vcsdecode")
    if args.debug_log is not None:
        configure_debug_file_logger("vcsdecode", args.debug_log)

    runtime = TargetRuntime.SBOX if args.sbox else TargetRuntime.SOURCE2
    try:
        with open_program(args.file, runtime=runtime) as program:
            return _COMMANDS[args.command](program, args)
    except VcsDecodeError as exc:
        LOG.error("%s: %s", args.file, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        close_debug_logger(package_logger)


if __name__ == "__main__":  # pragma: no cover - CLI wrapper
    raise SystemExit(main())
