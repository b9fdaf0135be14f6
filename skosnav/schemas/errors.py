"""
Error types for SPARQL query execution and discovery runs.

Transport and parse failures propagate as exceptions. Missing capabilities or
empty results never do: they are data, not errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
	"""Error codes surfaced to callers so they can tell failure kinds apart."""

	NETWORK_ERROR = "NETWORK_ERROR"
	TIMEOUT = "TIMEOUT"
	INVALID_RESPONSE = "INVALID_RESPONSE"
	AUTH_REQUIRED = "AUTH_REQUIRED"
	AUTH_FAILED = "AUTH_FAILED"
	NOT_FOUND = "NOT_FOUND"
	SERVER_ERROR = "SERVER_ERROR"
	QUERY_ERROR = "QUERY_ERROR"
	PARSE_ERROR = "PARSE_ERROR"
	UNKNOWN = "UNKNOWN"


class SparqlError(Exception):
	"""
	Raised when a SPARQL request cannot produce a usable result.

	Attributes:
		code: ErrorCode describing the failure class
		details: Additional error details (HTTP status, content type, ...)
	"""

	def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN, details: dict | None = None):
		"""
		Initialize SPARQL error.

		Args:
			message: Error message
			code: Error code
			details: Additional error details
		"""
		super().__init__(message)
		self.message = message
		self.code = code
		self.details = details or {}

	def __str__(self) -> str:
		return f"[{self.code.value}] {self.message}"


class SparqlTransportError(SparqlError):
	"""Network or HTTP level failure."""


class QueryTimeoutError(SparqlError):
	"""The per-call timeout elapsed before the endpoint answered."""

	def __init__(self, message: str = "Request timed out", details: dict | None = None):
		super().__init__(message, ErrorCode.TIMEOUT, details)


class MalformedResultError(SparqlError):
	"""The endpoint answered, but the body could not be parsed as query results."""

	def __init__(self, message: str, details: dict | None = None):
		super().__init__(message, ErrorCode.PARSE_ERROR, details)


class DiscoveryAborted(Exception):
	"""Raised inside a discovery run once its scope has been invalidated."""

	def __init__(self, run_id: str, stage_id: str | None = None):
		super().__init__(f"Discovery run {run_id} aborted" + (f" during stage {stage_id}" if stage_id else ""))
		self.run_id = run_id
		self.stage_id = stage_id
