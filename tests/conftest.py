"""Shared fixtures for groktool tests.

Provides the access-log sample used throughout, a custom pattern
directory defining TEST, and input files written to temporary dirs.
"""

from pathlib import Path

import pytest

from groktool.patterns import compile_pattern


@pytest.fixture
def sample_lines() -> list[str]:
	"""Five request lines, the third with an invalid address."""
	return [
		"0.0.0.0 GET",
		"0.0.0.1 GET",
		"0.0.q1.0 POST",
		"0.1.0.0 GET",
		"1.0.0.0 DELETE",
	]


@pytest.fixture
def patterns_dir(tmp_path: Path) -> Path:
	"""Custom pattern directory with a TEST request-method pattern."""
	d = tmp_path / "patterns"
	d.mkdir()
	(d / "custom").write_text("# methods\nTEST (?:GET|POST|DELETE)\n\n", encoding="utf-8")
	return d


@pytest.fixture
def input_file(tmp_path: Path, sample_lines: list[str]) -> Path:
	"""Sample lines written as a newline-terminated file."""
	p = tmp_path / "access.log"
	p.write_text("\n".join(sample_lines) + "\n", encoding="utf-8")
	return p


@pytest.fixture
def access_matcher(patterns_dir: Path):
	"""Compiled ``%{IP:ip} %{TEST:req}`` pattern."""
	return compile_pattern("%{IP:ip} %{TEST:req}", patterns_dir=patterns_dir)
