from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["8"]


@dataclass
class Expected:
    path: Path


@dataclass
class Example:
    name: str
    pattern: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        output = self.expected[0].path
        return ["python", "distrx.py", str(output), *BASE_ARGS, self.pattern, *self.args]


def _example(name: str, filename: str, pattern: str, *args: str) -> Example:
    path = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        pattern=pattern,
        args=list(args),
        expected=[Expected(path)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _example("default", "diagonal.png", "2*3?(4+1)+"),
    _example("start", "navy-start.png", ".?2*1.3", "--start", "navy"),
    _example("end", "sunrise.png", ".?2*1.3", "--start", "143,143,236", "--end", "#ffdc00"),
    _example("format", "bottom-right.bmp", ".*4$", "--format", "bmp"),
    _example("chunk-size", "small-chunks.png", "1[23]+4", "--chunk-size", "512"),
    _example("block-size", "small-blocks.png", "(12|34)+", "--block-size", "256"),
    _example("max-cells", "ceiling.png", "^4", "--max-cells", "65536"),
    _example("device", "cpu.png", "3.*3", "--device", "/CPU:0"),
    _example("verbose", "diagnostic.png", "1", "--verbose"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
