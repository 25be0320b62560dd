"""Walk a codebase and derive line signatures from its text files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Sequence

from pathspec import PathSpec

from cor_matrix.core.logging import get_logger
from cor_matrix.utils.hashing import code_signature
from cor_matrix.utils.text import split_lines

logger = get_logger(__name__)

IGNORE_FILES = (".gitignore", ".npmignore")
IGNORE_DIRS = (".git",)
BINARY_SNIFF_BYTES = 8192

Rule = tuple[Path, PathSpec]


@dataclass(slots=True)
class ScanResult:
    signatures: list[str] = field(default_factory=list)
    total_files: int = 0

    @property
    def total_lines(self) -> int:
        return len(self.signatures)


def load_ignore_patterns(directory: Path) -> list[str]:
    """Read the ignore files that live directly in ``directory``."""
    patterns: list[str] = []
    for name in IGNORE_FILES:
        ignore_file = directory / name
        if not ignore_file.is_file():
            continue
        for raw in ignore_file.read_text(encoding="utf-8", errors="replace").splitlines():
            line = raw.strip()
            if line and not line.startswith("#"):
                patterns.append(line)
    return patterns


def _matches_rules(path: Path, is_dir: bool, rules: Sequence[Rule]) -> bool:
    """Apply gitignore semantics: the last matching pattern decides.

    Each spec is matched relative to the directory holding its ignore file,
    and deeper files are visited last so they override their parents.
    """
    ignored = False
    for base, spec in rules:
        relative = path.relative_to(base).as_posix()
        if is_dir:
            relative += "/"
        for pattern in spec.patterns:
            if pattern.include is not None and pattern.match_file(relative) is not None:
                ignored = pattern.include
    return ignored


def iter_candidate_files(root: Path) -> Iterator[Path]:
    """Yield files under ``root`` honouring ``.gitignore``/``.npmignore``.

    ``.git`` directories, the ignore files themselves and symlinks are
    skipped. Entries are visited in name order so scans are reproducible.
    """
    yield from _walk(root, [])


def _walk(directory: Path, inherited: Sequence[Rule]) -> Iterator[Path]:
    rules = list(inherited)
    patterns = load_ignore_patterns(directory)
    if patterns:
        rules.append((directory, PathSpec.from_lines("gitwildmatch", patterns)))
    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", directory, exc)
        return
    for entry in entries:
        if entry.is_symlink():
            continue
        is_dir = entry.is_dir()
        if is_dir and entry.name in IGNORE_DIRS:
            continue
        if not is_dir and entry.name in IGNORE_FILES:
            continue
        if _matches_rules(entry, is_dir, rules):
            continue
        if is_dir:
            yield from _walk(entry, rules)
        elif entry.is_file():
            yield entry


def is_binary_file(path: Path) -> bool:
    """Treat files with a NUL byte in their first block as binary.

    Unreadable files count as binary so they are left out of the scan.
    """
    try:
        with path.open("rb") as fh:
            chunk = fh.read(BINARY_SNIFF_BYTES)
    except OSError:
        return True
    return b"\x00" in chunk


def file_signatures(path: Path) -> list[str]:
    """One signature per line, splitting on ``\\n`` exactly as the client does."""
    text = path.read_bytes().decode("utf-8", errors="replace")
    return [code_signature(line) for line in split_lines(text)]


def scan_codebase(root: Path) -> ScanResult:
    result = ScanResult()
    for path in iter_candidate_files(root):
        if is_binary_file(path):
            continue
        try:
            signatures = file_signatures(path)
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            continue
        result.signatures.extend(signatures)
        result.total_files += 1
    logger.debug("Scanned %s files (%s lines) under %s", result.total_files, result.total_lines, root)
    return result


__all__ = [
    "ScanResult",
    "file_signatures",
    "is_binary_file",
    "iter_candidate_files",
    "load_ignore_patterns",
    "scan_codebase",
]
