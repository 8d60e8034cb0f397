from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import regex
import yaml
from pygrok import Grok

from .errors import CompileError


_ALIAS_SPLIT = re.compile(r"\s+")
_REFERENCE = re.compile(r"%{(\w+)(?::\w+){0,2}}")


@dataclass
class CompiledPattern:
	"""A pattern compiled once and reused for every line of a run."""
	text: str
	grok: Grok

	def search(self, line: str) -> Optional[Dict[str, Any]]:
		return self.grok.match(line)


def read_aliases(patterns_dir: Path) -> Dict[str, str]:
	"""Read ``NAME sub-pattern`` definitions from every file in a directory.

	Files are read in name order so that a later file can override a
	definition from an earlier one. Blank lines and ``#`` comments are
	skipped.

	Raises:
		CompileError: if the directory is missing or a line is malformed.
	"""
	patterns_dir = Path(patterns_dir)
	if not patterns_dir.is_dir():
		raise CompileError(f"{patterns_dir} patterns directory does not exist.")
	aliases: Dict[str, str] = {}
	for p in sorted(patterns_dir.iterdir()):
		if not p.is_file():
			continue
		try:
			text = p.read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as e:
			raise CompileError(f"Unable to read pattern file {p}: {e}") from e
		for lineno, line in enumerate(text.splitlines(), start=1):
			line = line.strip()
			if not line or line.startswith("#"):
				continue
			parts = _ALIAS_SPLIT.split(line, maxsplit=1)
			if len(parts) != 2:
				raise CompileError(f"{p}:{lineno}: expected 'NAME pattern', got {line!r}")
			aliases[parts[0]] = parts[1]
	return aliases


def load_rules(path: Path) -> Dict[str, str]:
	"""Load named sub-patterns from an afrs rules file (YAML).

	Accepted shapes::

		NAME: pattern                  # plain mapping
		- {name: NAME, pattern: ...}   # list of rules
		rules: <either of the above>
	"""
	path = Path(path)
	try:
		data = yaml.safe_load(path.read_text(encoding="utf-8"))
	except OSError as e:
		raise CompileError(f"Unable to read rules file {path}: {e}") from e
	except yaml.YAMLError as e:
		raise CompileError(f"Invalid rules file {path}: {e}") from e
	if isinstance(data, dict) and "rules" in data:
		data = data["rules"]
	if data is None:
		return {}
	if isinstance(data, dict):
		return {str(k): _rule_pattern(path, k, v) for k, v in data.items()}
	if isinstance(data, list):
		rules: Dict[str, str] = {}
		for item in data:
			if not isinstance(item, dict) or "name" not in item or "pattern" not in item:
				raise CompileError(f"{path}: each rule needs 'name' and 'pattern', got {item!r}")
			rules[str(item["name"])] = _rule_pattern(path, item["name"], item["pattern"])
		return rules
	raise CompileError(f"{path}: expected a mapping or a list of rules")


def _rule_pattern(path: Path, name: Any, value: Any) -> str:
	if not isinstance(value, str) or not value:
		raise CompileError(f"{path}: rule {name!r} must map to a non-empty pattern string")
	return value


def compile_pattern(
	pattern: str,
	patterns_dir: Optional[Path] = None,
	no_patterns: bool = False,
	rules: Iterable[Path] = (),
) -> CompiledPattern:
	"""Compile ``pattern`` against built-in and custom sub-patterns.

	Custom definitions come from ``patterns_dir`` then from each rules file,
	later sources overriding earlier ones. ``no_patterns`` rejects any
	reference to the built-in definitions shipped with pygrok. Matching is
	an unanchored search.
	"""
	if not pattern:
		raise CompileError("Pattern must not be empty")
	custom: Dict[str, str] = {}
	if patterns_dir is not None:
		custom.update(read_aliases(Path(patterns_dir)))
	for r in rules:
		custom.update(load_rules(Path(r)))
	if no_patterns:
		_check_resolvable(pattern, custom)
	try:
		grok = Grok(pattern, custom_patterns=custom)
	except KeyError as e:
		raise CompileError(f"Unknown pattern name {e.args[0]!r} in {pattern!r}") from e
	except (re.error, regex.error) as e:
		raise CompileError(f"Invalid pattern {pattern!r}: {e}") from e
	# Captures stay as matched text; ":int"/":float" suffixes are not converted.
	grok.type_mapper = {}
	return CompiledPattern(text=pattern, grok=grok)


def _check_resolvable(pattern: str, custom: Dict[str, str]) -> None:
	"""Fail unless every name ``pattern`` references, directly or through
	other definitions, is one of the ``custom`` definitions.

	Custom definitions override built-ins of the same name, so a pattern
	that passes compiles without touching any built-in.
	"""
	pending = [pattern]
	seen = set()
	while pending:
		for name in _REFERENCE.findall(pending.pop()):
			if name in seen:
				continue
			if name not in custom:
				raise CompileError(f"Unknown pattern name {name!r} in {pattern!r} (built-in patterns disabled)")
			seen.add(name)
			pending.append(custom[name])
