"""
Shared test support: an rdflib-backed query executor and a small SKOS vocabulary.
"""

import asyncio

from rdflib import BNode, Graph, Literal, URIRef

from skosnav.schemas.errors import ErrorCode, SparqlTransportError
from skosnav.sparql.results import RdfTerm, Row
from skosnav.sparql.vocabulary import with_prefixes

EX = 'http://example.org/'

VOCABULARY_TTL = """
@prefix ex: <http://example.org/> .
@prefix skos: <http://www.w3.org/2004/02/skos/core#> .
@prefix skosxl: <http://www.w3.org/2008/05/skos-xl#> .
@prefix dct: <http://purl.org/dc/terms/> .
@prefix dc: <http://purl.org/dc/elements/1.1/> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .

ex:scheme a skos:ConceptScheme ;
	skos:prefLabel "Animals"@en ;
	dct:title "Animal kingdom"@en ;
	skos:hasTopConcept ex:birds .

ex:mammals a skos:Concept ;
	skos:inScheme ex:scheme ;
	skos:topConceptOf ex:scheme ;
	skos:notation "2" ;
	skos:prefLabel "Mammals"@en, "Mammifères"@fr .

ex:birds a skos:Concept ;
	skos:inScheme ex:scheme ;
	skos:notation "1" ;
	skosxl:prefLabel [ skosxl:literalForm "Birds"@en ] ;
	rdfs:label "Bird group"@en .

ex:fish a skos:Concept ;
	skos:inScheme ex:scheme ;
	skos:prefLabel "Fish"@en .

ex:dog a skos:Concept ;
	skos:inScheme ex:scheme ;
	skos:broader ex:mammals ;
	skos:prefLabel "Dog"@en, "Chien"@fr .

ex:cat a skos:Concept ;
	skos:inScheme ex:scheme ;
	rdfs:label "Cat" .

ex:mammals skos:narrower ex:cat .

ex:wolf a skos:Concept ;
	skos:broader ex:mammals ;
	skos:narrower ex:cub ;
	skos:prefLabel "Wolf"@en .

ex:cub a skos:Concept ;
	skos:prefLabel "Cub"@en .

ex:puppy a skos:Concept ;
	skos:broader ex:dog ;
	skos:prefLabel "Puppy"@en .

ex:sparrow a skos:Concept ;
	skos:broader ex:birds ;
	skos:prefLabel "Sparrow"@en .

ex:orphan1 a skos:Concept ;
	skos:prefLabel "Lost"@en .

ex:orphan2 a skos:Concept ;
	skos:broader ex:orphan1 .

ex:pets a skos:Collection ;
	skos:prefLabel "Pets"@en ;
	skos:member ex:dog, ex:cat, ex:petsNested .

ex:petsNested a skos:Collection ;
	dc:title "Young pets"@en ;
	skos:member ex:puppy .

ex:flyers a skos:Collection ;
	dct:title "Flyers"@en ;
	skos:member ex:sparrow .

ex:lonely a skos:Collection ;
	skos:member ex:orphan1 .

ex:empty a skos:Collection .

ex:scheme2 a skos:ConceptScheme .

ex:a a skos:Concept ;
	skos:inScheme ex:scheme2 ;
	skos:topConceptOf ex:scheme2 .

ex:b a skos:Concept ;
	skos:topConceptOf ex:scheme2 ;
	skos:broader ex:a .

ex:scheme3 a skos:ConceptScheme .

ex:x a skos:Concept ;
	skos:inScheme ex:scheme3 .

ex:y a skos:Concept ;
	skos:inScheme ex:scheme3 ;
	skos:broader ex:x .
"""


def ex(name: str) -> str:
	return EX + name


def to_term(value) -> RdfTerm:
	if isinstance(value, URIRef):
		return RdfTerm(type='uri', value=str(value))
	if isinstance(value, BNode):
		return RdfTerm(type='bnode', value=str(value))
	if isinstance(value, Literal):
		return RdfTerm(
			type='literal',
			value=str(value),
			lang=value.language,
			datatype=str(value.datatype) if value.datatype else None,
		)
	return RdfTerm(type='literal', value=str(value))


class GraphExecutor:
	"""QueryExecutor answering from an rdflib graph, recording every query."""

	def __init__(self, graph: Graph):
		self.graph = graph
		self.queries: list[str] = []

	async def select(self, query: str, *, timeout: float | None = None) -> list[Row]:
		self.queries.append(query)
		result = self.graph.query(with_prefixes(query))
		return [{name: to_term(value) for name, value in row.asdict().items()} for row in result]

	async def ask(self, query: str, *, timeout: float | None = None) -> bool:
		self.queries.append(query)
		return bool(self.graph.query(with_prefixes(query)).askAnswer)


class FailingExecutor(GraphExecutor):
	"""Fails every query containing one of the given fragments."""

	def __init__(self, graph: Graph, *fragments: str):
		super().__init__(graph)
		self.fragments = fragments
		self.failures = 0

	async def select(self, query: str, *, timeout: float | None = None) -> list[Row]:
		if any(fragment in query for fragment in self.fragments):
			self.queries.append(query)
			self.failures += 1
			raise SparqlTransportError("Endpoint returned HTTP 500", ErrorCode.SERVER_ERROR, {'status': 500})
		return await super().select(query, timeout=timeout)


class SlowExecutor(GraphExecutor):
	"""Delays every query, so tests can act while a run is in flight."""

	def __init__(self, graph: Graph, delay: float = 0.05):
		super().__init__(graph)
		self.delay = delay

	async def select(self, query: str, *, timeout: float | None = None) -> list[Row]:
		await asyncio.sleep(self.delay)
		return await super().select(query, timeout=timeout)

