"""Tests for output encoders and sinks."""

import io
import json
from pathlib import Path

import pytest

from groktool.errors import InputError, SinkError
from groktool.exporting import CsvEncoder, JsonEncoder, begin, get_encoder, open_sink
from groktool.stats import RunStats


def test_json_one_compact_object_per_line():
	out = io.StringIO()
	enc = JsonEncoder(out)
	enc.emit_matched({"ip": "0.0.0.0", "req": "GET"})
	enc.emit_matched({"b": "2", "a": "1"})
	lines = out.getvalue().splitlines()
	assert lines == ['{"ip":"0.0.0.0","req":"GET"}', '{"b":"2","a":"1"}']
	assert list(json.loads(lines[1])) == ["b", "a"]


def test_json_keeps_non_ascii():
	out = io.StringIO()
	JsonEncoder(out).emit_matched({"user": "zoë"})
	assert out.getvalue() == '{"user":"zoë"}\n'


def test_json_stats():
	out = io.StringIO()
	JsonEncoder(out).emit_stats(RunStats(parsed=4, failed=1))
	assert out.getvalue() == '{"parsed":4,"failed":1}\n'


def test_nomatch_is_plain_text_in_every_format():
	for cls in (JsonEncoder, CsvEncoder):
		out = io.StringIO()
		cls(out).emit_nomatch("0.0.q1.0 POST")
		assert out.getvalue() == 'No matches against data: "0.0.q1.0 POST"\n'


def test_csv_header_written_once():
	out = io.StringIO()
	enc = CsvEncoder(out)
	enc.emit_matched({"ip": "0.0.0.0", "req": "GET"})
	enc.emit_matched({"ip": "0.0.0.1", "req": "GET"})
	assert out.getvalue().splitlines() == [
		'"ip", "req"',
		'"0.0.0.0", "GET"',
		'"0.0.0.1", "GET"',
	]


def test_csv_nomatch_before_first_record_does_not_emit_header():
	out = io.StringIO()
	enc = CsvEncoder(out)
	enc.emit_nomatch("junk")
	assert enc.header is None
	enc.emit_matched({"a": "1"})
	assert out.getvalue().splitlines() == ['No matches against data: "junk"', '"a"', '"1"']


def test_csv_divergent_fields_follow_first_header():
	out = io.StringIO()
	enc = CsvEncoder(out)
	enc.emit_matched({"a": "1", "b": "2"})
	enc.emit_matched({"b": "3", "c": "4"})
	assert out.getvalue().splitlines() == ['"a", "b"', '"1", "2"', '"", "3"']


def test_csv_escapes_quotes():
	out = io.StringIO()
	enc = CsvEncoder(out)
	enc.emit_matched({"msg": 'say "hi"'})
	assert out.getvalue().splitlines()[1] == '"say ""hi"""'


def test_csv_stats():
	out = io.StringIO()
	CsvEncoder(out).emit_stats(RunStats(parsed=4, failed=1))
	assert out.getvalue().splitlines() == ['"parsed", "failed"', '"4", "1"']


def test_get_encoder_is_case_insensitive():
	assert isinstance(get_encoder("CSV", io.StringIO()), CsvEncoder)
	assert isinstance(get_encoder("Json", io.StringIO()), JsonEncoder)
	with pytest.raises(ValueError):
		get_encoder("xml", io.StringIO())


def test_emit_after_close_is_rejected():
	enc = JsonEncoder(io.StringIO())
	enc.close()
	with pytest.raises(RuntimeError):
		enc.emit_matched({"a": "1"})


class FailingClose(io.StringIO):
	"""Buffer whose first close fails like a full disk would."""

	def close(self):
		if not getattr(self, "failed_once", False):
			self.failed_once = True
			raise OSError("close failed")
		super().close()


class TestSinks:
	def test_file_sink_refuses_existing_file(self, tmp_path: Path):
		p = tmp_path / "out.json"
		p.write_text("keep", encoding="utf-8")
		with pytest.raises(SinkError, match="already exists"):
			with open_sink(p):
				pass
		assert p.read_text(encoding="utf-8") == "keep"

	def test_file_sink_overwrite(self, tmp_path: Path):
		p = tmp_path / "out.json"
		p.write_text("old", encoding="utf-8")
		with open_sink(p, overwrite=True) as f:
			f.write("new\n")
		assert p.read_text(encoding="utf-8") == "new\n"

	def test_unwritable_destination(self, tmp_path: Path):
		with pytest.raises(SinkError):
			with open_sink(tmp_path / "missing" / "out.json"):
				pass

	def test_begin_closes_encoder_on_error(self, tmp_path: Path):
		p = tmp_path / "out.csv"
		with pytest.raises(KeyError):
			with begin("csv", p) as enc:
				enc.emit_matched({"a": "1"})
				raise KeyError("boom")
		assert enc.closed
		assert p.read_text(encoding="utf-8") == '"a"\n"1"\n'

	def test_begin_rejects_unknown_format_before_creating_file(self, tmp_path: Path):
		p = tmp_path / "out.xml"
		with pytest.raises(ValueError):
			with begin("xml", p):
				pass
		assert not p.exists()

	def test_write_failure_becomes_sink_error(self):
		class BrokenSink(io.StringIO):
			def write(self, s):
				raise OSError("disk full")

		with pytest.raises(SinkError, match="disk full"):
			JsonEncoder(BrokenSink()).emit_matched({"a": "1"})

	def test_close_failure_does_not_mask_error_in_flight(self, tmp_path: Path, monkeypatch):
		monkeypatch.setattr(Path, "open", lambda self, *a, **kw: FailingClose())
		with pytest.raises(InputError, match="gone.log"):
			with open_sink(tmp_path / "out.json"):
				raise InputError("Unable to read input gone.log")

	def test_close_failure_alone_is_sink_error(self, tmp_path: Path, monkeypatch):
		monkeypatch.setattr(Path, "open", lambda self, *a, **kw: FailingClose())
		with pytest.raises(SinkError, match="close failed"):
			with open_sink(tmp_path / "out.json") as f:
				f.write("x\n")
