from __future__ import annotations
import glob
import io
import sys
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, TextIO

from .errors import InputError

STDIN = "-"


def expand_inputs(inputs: Iterable[str]) -> List[str]:
	"""Expand input globs into an ordered list of paths.

	Argument order is kept; matches of one glob are sorted. ``-`` stands
	for standard input and an empty input list reads standard input only.
	"""
	paths: List[str] = []
	for arg in inputs:
		if arg == STDIN:
			paths.append(STDIN)
			continue
		matches = sorted(p for p in glob.glob(arg, recursive=True) if not Path(p).is_dir())
		if not matches:
			raise InputError(f"{arg} did not return any files")
		paths.extend(matches)
	return paths or [STDIN]


def _strip_eol(line: str) -> str:
	if line.endswith("\n"):
		line = line[:-1]
		if line.endswith("\r"):
			line = line[:-1]
	return line


def _system_stdin() -> TextIO:
	# Same decoding policy as files: UTF-8, undecodable bytes replaced.
	if isinstance(sys.stdin, io.TextIOWrapper):
		sys.stdin.reconfigure(encoding="utf-8", errors="replace")
	return sys.stdin


def iter_lines(paths: Iterable[str], stdin: Optional[TextIO] = None) -> Iterator[str]:
	"""Yield lines from each path in turn, one file open at a time."""
	for p in paths:
		if p == STDIN:
			for line in (stdin if stdin is not None else _system_stdin()):
				yield _strip_eol(line)
			continue
		try:
			f = open(p, "r", encoding="utf-8", errors="replace", newline="")
		except OSError as e:
			raise InputError(f"Unable to read input {p}: {e}") from e
		with f:
			try:
				for line in f:
					yield _strip_eol(line)
			except OSError as e:
				raise InputError(f"Unable to read input {p}: {e}") from e
