"""
Tests for SPARQL results parsing.
"""

import json

import pytest

from skosnav.schemas.errors import MalformedResultError
from skosnav.sparql.results import ResultShape, parse_bool, parse_json_results, parse_xml_results, row_bool


def test_typed_literals_are_plain_literals():
	body = json.dumps({
		'results': {'bindings': [{'count': {'type': 'typed-literal', 'value': '42', 'datatype': 'http://www.w3.org/2001/XMLSchema#integer'}}]},
	})

	rows = parse_json_results(body, ResultShape.BINDINGS)

	assert rows[0]['count'].type == 'literal'
	assert rows[0]['count'].value == '42'
	assert rows[0]['count'].datatype.endswith('#integer')


@pytest.mark.parametrize('value, expected', [('true', True), ('1', True), ('TRUE', True), ('false', False), ('0', False), (None, False)])
def test_parse_bool(value, expected):
	assert parse_bool(value) is expected


def test_unbound_variable_is_false():
	assert row_bool({}, 'hasNarrower') is False


def test_select_without_bindings_is_malformed():
	with pytest.raises(MalformedResultError):
		parse_json_results('{"head": {}}', ResultShape.BINDINGS)


@pytest.mark.parametrize('body', [
	'{"results": {"bindings": {"s": 1}}}',
	'{"results": {"bindings": "none"}}',
	'{"results": {"bindings": [1]}}',
	'{"results": {"bindings": [{"s": "http://example.org/a"}]}}',
])
def test_wrongly_shaped_bindings_are_malformed(body):
	with pytest.raises(MalformedResultError):
		parse_json_results(body, ResultShape.BINDINGS)


def test_ask_without_boolean_is_malformed():
	with pytest.raises(MalformedResultError):
		parse_json_results('{"head": {}, "results": {"bindings": []}}', ResultShape.BOOLEAN)


def test_xml_literal_language_and_bnode():
	body = """<sparql xmlns="http://www.w3.org/2005/sparql-results#">
  <results>
    <result>
      <binding name="label"><literal xml:lang="fr">Chien</literal></binding>
      <binding name="node"><bnode>b0</bnode></binding>
    </result>
  </results>
</sparql>"""

	rows = parse_xml_results(body, ResultShape.BINDINGS)

	assert rows[0]['label'].lang == 'fr'
	assert rows[0]['node'].type == 'bnode'


def test_non_sparql_xml_is_malformed():
	with pytest.raises(MalformedResultError):
		parse_xml_results('<html><body>Error</body></html>', ResultShape.BINDINGS)
