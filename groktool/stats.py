from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from .matching import Matched, MatchOutcome


@dataclass
class RunStats:
	parsed: int = 0
	failed: int = 0

	def observe(self, outcome: MatchOutcome) -> None:
		if isinstance(outcome, Matched):
			self.parsed += 1
		else:
			self.failed += 1

	@property
	def total(self) -> int:
		return self.parsed + self.failed

	def as_dict(self) -> Dict[str, int]:
		return {"parsed": self.parsed, "failed": self.failed}
