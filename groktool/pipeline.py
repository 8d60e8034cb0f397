from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from .exporting import begin
from .matching import Matched, match
from .patterns import compile_pattern
from .sources import expand_inputs, iter_lines
from .stats import RunStats


@dataclass
class RunConfig:
	pattern: str
	patterns_dir: Optional[Path] = None
	no_patterns: bool = False
	rules: List[Path] = field(default_factory=list)
	inputs: List[str] = field(default_factory=list)
	output: Optional[Path] = None
	output_format: str = "json"
	stats: bool = False
	overwrite: bool = False


def run(config: RunConfig, on_event: Optional[Callable[[str], None]] = None, stdin: Optional[TextIO] = None) -> RunStats:
	"""Match every input line against the pattern and stream the results.

	Setup errors (inputs, pattern) are raised before the sink is opened.
	Lines that do not match are reported in the output and counted; they
	never stop the run.
	"""
	def notify(msg: str) -> None:
		if on_event:
			on_event(msg)

	paths = expand_inputs(config.inputs)
	notify(f"Inputs: {', '.join('<stdin>' if p == '-' else p for p in paths)}")
	matcher = compile_pattern(
		config.pattern,
		patterns_dir=config.patterns_dir,
		no_patterns=config.no_patterns,
		rules=config.rules,
	)
	notify(f"Compiled pattern: {matcher.text}")

	stats = RunStats()
	with begin(config.output_format, config.output, overwrite=config.overwrite) as encoder:
		for line in iter_lines(paths, stdin=stdin):
			outcome = match(matcher, line)
			if isinstance(outcome, Matched):
				encoder.emit_matched(outcome.record)
			else:
				encoder.emit_nomatch(outcome.line)
			stats.observe(outcome)
		if config.stats:
			encoder.emit_stats(stats)
	notify(f"Parsed: {stats.parsed}  Failed: {stats.failed}")
	return stats
