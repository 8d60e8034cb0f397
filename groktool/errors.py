"""Errors raised by the grok record pipeline."""


class GrokToolError(Exception):
	"""Base error for this package. Always fatal to a run."""


class CompileError(GrokToolError):
	"""Raised when a pattern or its sub-pattern definitions cannot be compiled."""


class InputError(GrokToolError):
	"""Raised when an input path cannot be resolved or read."""


class SinkError(GrokToolError):
	"""Raised when the output destination cannot be opened or written."""
