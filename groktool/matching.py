"""Apply a compiled pattern to single lines.

A line either matches (all or nothing) and yields an ordered record of
named captures, or it does not and is carried along verbatim so it can be
reported. Neither case is an error.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Union

from .patterns import CompiledPattern

Record = Dict[str, str]


@dataclass(frozen=True)
class Matched:
	record: Record


@dataclass(frozen=True)
class NoMatch:
	line: str


MatchOutcome = Union[Matched, NoMatch]


def match(matcher: CompiledPattern, line: str) -> MatchOutcome:
	captures = matcher.search(line)
	if captures is None:
		return NoMatch(line)
	# Field order follows the order the names appear in the pattern.
	record: Record = {}
	for name, value in captures.items():
		record[name] = "" if value is None else str(value)
	return Matched(record)
