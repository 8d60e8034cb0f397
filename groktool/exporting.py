from __future__ import annotations
import json
import sys
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Dict, Iterator, List, Optional, TextIO, Type

from .errors import SinkError
from .matching import Record
from .stats import RunStats


def nomatch_message(line: str) -> str:
	return f'No matches against data: "{line}"'


class Encoder:
	"""Writes one output unit per line to an open sink.

	Subclasses own the format specific framing. NoMatch diagnostics are
	plain text in every format.
	"""
	name = ""

	def __init__(self, sink: TextIO) -> None:
		self.sink = sink
		self.closed = False

	def _write(self, unit: str) -> None:
		if self.closed:
			raise RuntimeError(f"{self.name} encoder is closed")
		try:
			self.sink.write(unit + "\n")
			self.sink.flush()
		except OSError as e:
			raise SinkError(f"Unable to write output: {e}") from e

	def emit_matched(self, record: Record) -> None:
		raise NotImplementedError

	def emit_nomatch(self, line: str) -> None:
		self._write(nomatch_message(line))

	def emit_stats(self, stats: RunStats) -> None:
		raise NotImplementedError

	def close(self) -> None:
		self.closed = True


class JsonEncoder(Encoder):
	name = "json"

	@staticmethod
	def _dumps(data: Dict) -> str:
		return json.dumps(data, ensure_ascii=False, separators=(",", ":"))

	def emit_matched(self, record: Record) -> None:
		self._write(self._dumps(record))

	def emit_stats(self, stats: RunStats) -> None:
		self._write(self._dumps(stats.as_dict()))


def _quote(value: str) -> str:
	return '"' + value.replace('"', '""') + '"'


def csv_row(values: List[str]) -> str:
	return ", ".join(_quote(v) for v in values)


class CsvEncoder(Encoder):
	"""Quoted CSV rows; the first matched record fixes the header.

	Later records are written in header order: fields missing from a
	record are left empty and fields not in the header are dropped.
	"""
	name = "csv"

	def __init__(self, sink: TextIO) -> None:
		super().__init__(sink)
		self.header: Optional[List[str]] = None

	def emit_matched(self, record: Record) -> None:
		if self.header is None:
			self.header = list(record.keys())
			self._write(csv_row(self.header))
		self._write(csv_row([record.get(k, "") for k in self.header]))

	def emit_stats(self, stats: RunStats) -> None:
		data = stats.as_dict()
		self._write(csv_row(list(data.keys())))
		self._write(csv_row([str(v) for v in data.values()]))


ENCODERS: Dict[str, Type[Encoder]] = {
	JsonEncoder.name: JsonEncoder,
	CsvEncoder.name: CsvEncoder,
}


def encoder_class(fmt: str) -> Type[Encoder]:
	try:
		return ENCODERS[fmt.lower()]
	except KeyError:
		raise ValueError(f"Unsupported output format: {fmt}") from None


def get_encoder(fmt: str, sink: TextIO) -> Encoder:
	return encoder_class(fmt)(sink)


@contextmanager
def open_sink(path: Optional[Path] = None, overwrite: bool = False) -> Iterator[TextIO]:
	"""Yield the output stream: standard output, or a file at ``path``.

	An existing file is only replaced when ``overwrite`` is set.
	"""
	if path is None:
		try:
			yield sys.stdout
		finally:
			sys.stdout.flush()
		return
	path = Path(path)
	try:
		f = path.open("w" if overwrite else "x", encoding="utf-8", newline="")
	except FileExistsError:
		raise SinkError(f"Could not write to {path}, file already exists") from None
	except OSError as e:
		raise SinkError(f"Could not write to {path}: {e}") from e
	try:
		yield f
	except BaseException:
		# The error already in flight wins over a failing close.
		with suppress(OSError):
			f.close()
		raise
	try:
		f.close()
	except OSError as e:
		raise SinkError(f"Could not write to {path}: {e}") from e


@contextmanager
def begin(fmt: str, path: Optional[Path] = None, overwrite: bool = False) -> Iterator[Encoder]:
	"""Open the sink and an encoder for it; both are released on exit."""
	cls = encoder_class(fmt)
	with open_sink(path, overwrite=overwrite) as sink:
		encoder = cls(sink)
		try:
			yield encoder
		finally:
			encoder.close()
