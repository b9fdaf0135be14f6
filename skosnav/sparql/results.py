"""
SPARQL result parsing.

Turns SPARQL 1.1 Query Results (JSON or XML serialization) into rows of
RdfTerm values keyed by variable name, or into a boolean for ASK queries.
"""

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any

from skosnav.schemas.errors import MalformedResultError

logger = logging.getLogger(__name__)

SPARQL_RESULTS_NS = '{http://www.w3.org/2005/sparql-results#}'
XML_LANG = '{http://www.w3.org/XML/1998/namespace}lang'


class ResultShape(str, Enum):
	"""Expected shape of a query result."""

	BINDINGS = 'bindings'
	BOOLEAN = 'boolean'


@dataclass(frozen=True)
class RdfTerm:
	"""A single bound value in a result row."""

	type: str  # 'uri', 'literal' or 'bnode'
	value: str
	lang: str | None = None
	datatype: str | None = None


Row = dict[str, RdfTerm]


def parse_bool(value: str | None) -> bool:
	"""Parse an EXISTS/ASK literal. Some endpoints answer "1"/"0" instead of "true"/"false"."""
	if not value:
		return False
	return value.strip().lower() in ('true', '1')


def row_value(row: Row, var: str) -> str | None:
	"""Return the lexical value bound to var, or None."""
	term = row.get(var)
	return term.value if term else None


def row_bool(row: Row, var: str) -> bool:
	"""Return the boolean bound to var (unbound counts as False)."""
	return parse_bool(row_value(row, var))


def parse_json_results(body: str | bytes, shape: ResultShape) -> list[Row] | bool:
	"""
	Parse application/sparql-results+json.

	Args:
		body: Raw response body
		shape: Expected result shape

	Returns:
		List of rows for SELECT, bool for ASK

	Raises:
		MalformedResultError: If the body is not a valid JSON results document
	"""
	try:
		data = json.loads(body)
	except (ValueError, TypeError) as e:
		raise MalformedResultError('Response body is not valid JSON', {'error': str(e)}) from e

	if not isinstance(data, dict):
		raise MalformedResultError('JSON results must be an object')

	if shape == ResultShape.BOOLEAN:
		if 'boolean' not in data:
			raise MalformedResultError('ASK result without "boolean" member')
		value = data['boolean']
		return value if isinstance(value, bool) else parse_bool(str(value))

	try:
		bindings = data['results']['bindings']
	except (KeyError, TypeError) as e:
		raise MalformedResultError('SELECT result without results.bindings', {'error': str(e)}) from e
	if not isinstance(bindings, list):
		raise MalformedResultError('results.bindings must be an array', {'type': type(bindings).__name__})

	return [_json_row(binding) for binding in bindings]


def _json_row(binding: dict[str, Any]) -> Row:
	row: Row = {}
	if not isinstance(binding, dict):
		raise MalformedResultError('Binding must be an object', {'binding': repr(binding)})
	for var, term in binding.items():
		if not isinstance(term, dict):
			raise MalformedResultError(f'Term for ?{var} must be an object', {'term': repr(term)})
		term_type = term.get('type', 'literal')
		# SPARQL 1.0 endpoints still emit "typed-literal"
		if term_type == 'typed-literal':
			term_type = 'literal'
		row[var] = RdfTerm(
			type=term_type,
			value=str(term.get('value', '')),
			lang=term.get('xml:lang'),
			datatype=term.get('datatype'),
		)
	return row


def parse_xml_results(body: str | bytes, shape: ResultShape) -> list[Row] | bool:
	"""
	Parse application/sparql-results+xml.

	Raises:
		MalformedResultError: If the body is not a valid XML results document
	"""
	try:
		root = ET.fromstring(body)
	except ET.ParseError as e:
		raise MalformedResultError('Response body is not valid XML', {'error': str(e)}) from e

	if root.tag != f'{SPARQL_RESULTS_NS}sparql':
		raise MalformedResultError('XML document is not a SPARQL results document', {'root': root.tag})

	if shape == ResultShape.BOOLEAN:
		boolean = root.find(f'{SPARQL_RESULTS_NS}boolean')
		if boolean is None:
			raise MalformedResultError('ASK result without <boolean> element')
		return parse_bool(boolean.text)

	results = root.find(f'{SPARQL_RESULTS_NS}results')
	if results is None:
		raise MalformedResultError('SELECT result without <results> element')

	rows: list[Row] = []
	for result in results.findall(f'{SPARQL_RESULTS_NS}result'):
		row: Row = {}
		for binding in result.findall(f'{SPARQL_RESULTS_NS}binding'):
			var = binding.get('name')
			term = _xml_term(binding)
			if var and term:
				row[var] = term
		rows.append(row)
	return rows


def _xml_term(binding: ET.Element) -> RdfTerm | None:
	for child in binding:
		tag = child.tag.replace(SPARQL_RESULTS_NS, '')
		if tag == 'uri':
			return RdfTerm(type='uri', value=child.text or '')
		if tag == 'bnode':
			return RdfTerm(type='bnode', value=child.text or '')
		if tag == 'literal':
			return RdfTerm(
				type='literal',
				value=child.text or '',
				lang=child.get(XML_LANG),
				datatype=child.get('datatype'),
			)
	return None
