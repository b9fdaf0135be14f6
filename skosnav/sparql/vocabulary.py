"""
SKOS vocabulary constants and SPARQL prefix handling.

Label types are the values bound to ?labelType in label queries; they are
also the keys of the label capability maps.
"""

from enum import Enum


class NS:
	"""Namespace URIs."""

	RDF = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'
	RDFS = 'http://www.w3.org/2000/01/rdf-schema#'
	SKOS = 'http://www.w3.org/2004/02/skos/core#'
	SKOSXL = 'http://www.w3.org/2008/05/skos-xl#'
	DCT = 'http://purl.org/dc/terms/'
	DC = 'http://purl.org/dc/elements/1.1/'
	OWL = 'http://www.w3.org/2002/07/owl#'


SPARQL_PREFIXES = '\n'.join([
	f'PREFIX skos: <{NS.SKOS}>',
	f'PREFIX skosxl: <{NS.SKOSXL}>',
	f'PREFIX dct: <{NS.DCT}>',
	f'PREFIX dc: <{NS.DC}>',
	f'PREFIX rdfs: <{NS.RDFS}>',
	f'PREFIX rdf: <{NS.RDF}>',
	f'PREFIX owl: <{NS.OWL}>',
])


class ResourceKind(str, Enum):
	"""Kinds of resources in a browsed SKOS vocabulary."""

	CONCEPT = 'concept'
	SCHEME = 'scheme'
	COLLECTION = 'collection'

	@property
	def rdf_type(self) -> str:
		"""Prefixed rdf:type used for kind guards."""
		return {
			ResourceKind.CONCEPT: 'skos:Concept',
			ResourceKind.SCHEME: 'skos:ConceptScheme',
			ResourceKind.COLLECTION: 'skos:Collection',
		}[self]


class LabelType(str, Enum):
	"""Label-bearing predicates, by the name bound into ?labelType."""

	PREF_LABEL = 'prefLabel'
	XL_PREF_LABEL = 'xlPrefLabel'
	DCT_TITLE = 'dctTitle'
	DC_TITLE = 'dcTitle'
	RDFS_LABEL = 'rdfsLabel'

	@property
	def path(self) -> str:
		"""SPARQL predicate (or path) yielding the literal."""
		return LABEL_PATHS[self]


LABEL_PATHS: dict[LabelType, str] = {
	LabelType.PREF_LABEL: 'skos:prefLabel',
	LabelType.XL_PREF_LABEL: 'skosxl:prefLabel/skosxl:literalForm',
	LabelType.DCT_TITLE: 'dct:title',
	LabelType.DC_TITLE: 'dc:title',
	LabelType.RDFS_LABEL: 'rdfs:label',
}

# Concepts never fall back to title predicates
CONCEPT_LABEL_PRIORITY: tuple[LabelType, ...] = (
	LabelType.PREF_LABEL,
	LabelType.XL_PREF_LABEL,
	LabelType.RDFS_LABEL,
)

SCHEME_LABEL_PRIORITY: tuple[LabelType, ...] = (
	LabelType.PREF_LABEL,
	LabelType.XL_PREF_LABEL,
	LabelType.DCT_TITLE,
	LabelType.DC_TITLE,
	LabelType.RDFS_LABEL,
)

COLLECTION_LABEL_PRIORITY: tuple[LabelType, ...] = SCHEME_LABEL_PRIORITY


def label_priority_for(kind: ResourceKind) -> tuple[LabelType, ...]:
	"""Return the label priority table for a resource kind."""
	if kind == ResourceKind.CONCEPT:
		return CONCEPT_LABEL_PRIORITY
	if kind == ResourceKind.SCHEME:
		return SCHEME_LABEL_PRIORITY
	return COLLECTION_LABEL_PRIORITY


class Relationship(str, Enum):
	"""Relationship capabilities, named as in the persisted analysis record."""

	IN_SCHEME = 'hasInScheme'
	TOP_CONCEPT_OF = 'hasTopConceptOf'
	HAS_TOP_CONCEPT = 'hasHasTopConcept'
	BROADER = 'hasBroader'
	NARROWER = 'hasNarrower'
	BROADER_TRANSITIVE = 'hasBroaderTransitive'
	NARROWER_TRANSITIVE = 'hasNarrowerTransitive'


class ResultFormat(str, Enum):
	"""Query result serializations the executor can consume."""

	JSON = 'json'
	XML = 'xml'


def with_prefixes(query: str) -> str:
	"""Add the standard prefixes unless the query already declares some."""
	if query.strip().upper().startswith('PREFIX'):
		return query
	return f'{SPARQL_PREFIXES}\n\n{query.strip()}\n'


def iri(uri: str) -> str:
	"""Render a URI as a SPARQL IRI reference. Variables, IRIs and blank nodes pass through."""
	if uri.startswith(('?', '<', '[', '_:')):
		return uri
	return f'<{uri}>'


def values_clause(var: str, uris: list[str]) -> str:
	"""Build a VALUES block binding var to each URI."""
	return f'VALUES {var} {{ {" ".join(iri(u) for u in uris)} }}'
