"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator, List

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

for entry in (str(ROOT), str(TESTS)):
    if entry in sys.path:
        sys.path.remove(entry)
sys.path.insert(0, str(ROOT))
sys.path.insert(1, str(TESTS))

from vcs_builder import VcsBuilder  # noqa: E402
from vcsdecode import ProgramData, open_program  # noqa: E402


@pytest.fixture
def open_built(tmp_path: Path) -> Iterator[Callable[..., ProgramData]]:
    """Write a :class:`VcsBuilder` to disk and decode it; closes on teardown."""

    opened: List[ProgramData] = []

    def _open(builder: VcsBuilder, **kwargs) -> ProgramData:
        directory = tmp_path / f"case{len(opened)}"
        program = open_program(builder.write(directory), **kwargs)
        opened.append(program)
        return program

    yield _open
    for program in opened:
        program.close()
