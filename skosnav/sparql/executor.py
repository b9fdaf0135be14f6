"""
SPARQL Query Executor

Executes SPARQL SELECT and ASK queries over the SPARQL 1.1 protocol.
Supports authenticated endpoints and both JSON and XML result serializations.
"""

import asyncio
import logging
from typing import Protocol

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from skosnav.schemas.domain import AuthType, EndpointAuth, SparqlEndpoint
from skosnav.schemas.errors import (
	ErrorCode,
	MalformedResultError,
	QueryTimeoutError,
	SparqlError,
	SparqlTransportError,
)
from skosnav.sparql.results import ResultShape, Row, parse_json_results, parse_xml_results
from skosnav.sparql.vocabulary import ResultFormat, with_prefixes

logger = logging.getLogger(__name__)

JSON_RESULTS = 'application/sparql-results+json'
XML_RESULTS = 'application/sparql-results+xml'

_STATUS_CODES = {
	400: ErrorCode.QUERY_ERROR,
	401: ErrorCode.AUTH_REQUIRED,
	403: ErrorCode.AUTH_FAILED,
	404: ErrorCode.NOT_FOUND,
	408: ErrorCode.TIMEOUT,
}

_RETRYABLE_CODES = {ErrorCode.NETWORK_ERROR, ErrorCode.SERVER_ERROR, ErrorCode.TIMEOUT}


class QueryExecutor(Protocol):
	"""Anything that can answer SELECT and ASK queries."""

	async def select(self, query: str, *, timeout: float | None = None) -> list[Row]:
		...

	async def ask(self, query: str, *, timeout: float | None = None) -> bool:
		...


def error_code_for_status(status: int) -> ErrorCode:
	"""Map an HTTP status to an error code."""
	if status in _STATUS_CODES:
		return _STATUS_CODES[status]
	if status >= 500:
		return ErrorCode.SERVER_ERROR
	return ErrorCode.UNKNOWN


def auth_headers(auth: EndpointAuth | None) -> dict[str, str]:
	"""Build request headers for endpoint credentials."""
	if auth is None or auth.type == AuthType.NONE:
		return {}
	if auth.type == AuthType.BASIC and auth.username:
		return {'Authorization': aiohttp.BasicAuth(auth.username, auth.password or '').encode()}
	if auth.type == AuthType.BEARER and auth.token:
		return {'Authorization': f'Bearer {auth.token}'}
	if auth.type == AuthType.APIKEY and auth.api_key:
		return {auth.header_name: auth.api_key}
	logger.warning(f"⚠️  Auth type {auth.type.value} configured without credentials, sending anonymous request")
	return {}


def _is_retryable(exception: BaseException) -> bool:
	return isinstance(exception, SparqlError) and exception.code in _RETRYABLE_CODES


class SparqlExecutor:
	"""
	Executes queries against one SPARQL endpoint.

	Features:
	- Form-encoded POST per the SPARQL protocol
	- Basic, bearer and API key authentication
	- XML results fallback for endpoints that do not serve JSON
	- Optional retries with exponential backoff (never for auth errors)
	"""

	def __init__(
		self,
		endpoint: SparqlEndpoint | str,
		timeout_seconds: float = 60.0,
		retries: int = 0,
		xml_fallback: bool = True,
		session: aiohttp.ClientSession | None = None,
	):
		"""
		Initialize executor.

		Args:
			endpoint: Endpoint configuration or bare query URL
			timeout_seconds: Default per-call timeout
			retries: Extra attempts for network, server and timeout errors
			xml_fallback: Accept and parse XML results when JSON is not served
			session: Shared aiohttp session (a session per call is used if None)
		"""
		if isinstance(endpoint, str):
			endpoint = SparqlEndpoint(url=endpoint)
		self.endpoint = endpoint
		self.timeout_seconds = timeout_seconds
		self.retries = max(0, retries)
		self.xml_fallback = xml_fallback
		self._session = session

	async def select(self, query: str, *, timeout: float | None = None) -> list[Row]:
		"""
		Run a SELECT query.

		Returns:
			Result rows (variable name -> term)

		Raises:
			SparqlError: On transport, HTTP or parse failure
		"""
		return await self._execute(query, ResultShape.BINDINGS, timeout)

	async def ask(self, query: str, *, timeout: float | None = None) -> bool:
		"""Run an ASK query."""
		return await self._execute(query, ResultShape.BOOLEAN, timeout)

	async def supports_format(self, result_format: ResultFormat, *, timeout: float | None = None) -> bool:
		"""
		Check whether the endpoint answers a trivial ASK in the given serialization.

		Returns False on any failure; never raises for SPARQL errors.
		"""
		accept = JSON_RESULTS if result_format == ResultFormat.JSON else XML_RESULTS
		parser = parse_json_results if result_format == ResultFormat.JSON else parse_xml_results
		try:
			status, _, body = await self._send(
				with_prefixes("ASK { ?s ?p ?o }"),
				{"Accept": accept, **auth_headers(self.endpoint.auth)},
				timeout if timeout is not None else self.timeout_seconds,
			)
			if status != 200:
				return False
			parser(body, ResultShape.BOOLEAN)
			return True
		except SparqlError as e:
			logger.debug(f"{result_format.value} results not supported by {self.endpoint.url}: {e}")
			return False

	async def _execute(self, query: str, shape: ResultShape, timeout: float | None):
		full_query = with_prefixes(query)
		effective_timeout = timeout if timeout is not None else self.timeout_seconds
		logger.debug(f"SPARQL {shape.value} query ({effective_timeout}s timeout):\n{full_query}")

		if self.retries == 0:
			return await self._request(full_query, shape, effective_timeout)

		async for attempt in AsyncRetrying(
			stop=stop_after_attempt(self.retries + 1),
			wait=wait_exponential(multiplier=1, min=1, max=10),
			retry=retry_if_exception(_is_retryable),
			reraise=True,
		):
			with attempt:
				if attempt.retry_state.attempt_number > 1:
					logger.warning(f"⚠️  Retrying SPARQL request (attempt {attempt.retry_state.attempt_number})")
				return await self._request(full_query, shape, effective_timeout)

	async def _request(self, query: str, shape: ResultShape, timeout: float):
		headers = {
			'Accept': f'{JSON_RESULTS}, {XML_RESULTS};q=0.9' if self.xml_fallback else JSON_RESULTS,
			**auth_headers(self.endpoint.auth),
		}
		status, content_type, body = await self._send(query, headers, timeout)

		if status != 200:
			code = error_code_for_status(status)
			snippet = body[:500].decode('utf-8', errors='replace')
			raise SparqlTransportError(
				message=f"SPARQL endpoint returned HTTP {status}",
				code=code,
				details={'http_status': status, 'body': snippet},
			)

		return self._parse(body, content_type, shape)

	async def _send(self, query: str, headers: dict[str, str], timeout: float) -> tuple[int, str, bytes]:
		"""
		POST the query and read the whole response.

		Raises:
			QueryTimeoutError: If the timeout elapses
			SparqlTransportError: On connection level failures
		"""
		client_timeout = aiohttp.ClientTimeout(total=timeout)
		try:
			if self._session is not None:
				return await self._post(self._session, query, headers, client_timeout)
			async with aiohttp.ClientSession() as session:
				return await self._post(session, query, headers, client_timeout)
		except asyncio.TimeoutError as e:
			raise QueryTimeoutError(details={'url': self.endpoint.url, 'timeout': timeout}) from e
		except aiohttp.ClientError as e:
			raise SparqlTransportError(
				message=f"Request to {self.endpoint.url} failed: {e}",
				code=ErrorCode.NETWORK_ERROR,
				details={'url': self.endpoint.url, 'error': str(e)},
			) from e

	async def _post(
		self,
		session: aiohttp.ClientSession,
		query: str,
		headers: dict[str, str],
		timeout: aiohttp.ClientTimeout,
	) -> tuple[int, str, bytes]:
		async with session.post(self.endpoint.url, data={'query': query}, headers=headers, timeout=timeout) as response:
			body = await response.read()
			return response.status, response.headers.get('Content-Type', ''), body

	def _parse(self, body: bytes, content_type: str, shape: ResultShape):
		if 'xml' in content_type and self.xml_fallback:
			return parse_xml_results(body, shape)

		try:
			return parse_json_results(body, shape)
		except MalformedResultError:
			if not self.xml_fallback or not body.lstrip().startswith(b'<'):
				raise
			logger.debug(f"Response was not JSON ({content_type or 'no content type'}), parsing as XML results")
			return parse_xml_results(body, shape)
