"""
Pytest configuration and shared fixtures for all tests.

The GraphExecutor fixture answers queries from an in-memory rdflib graph, so
generated SPARQL is evaluated by a real engine without a network endpoint.
"""

import pytest
from rdflib import Graph

from skosnav.config.features import reload_feature_flags
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import LabelType, Relationship, ResourceKind

from tests.support import VOCABULARY_TTL, GraphExecutor


@pytest.fixture
def vocabulary_graph() -> Graph:
	graph = Graph()
	graph.parse(data=VOCABULARY_TTL, format='turtle')
	return graph


@pytest.fixture
def graph_executor(vocabulary_graph) -> GraphExecutor:
	return GraphExecutor(vocabulary_graph)


@pytest.fixture
def transitive_capabilities() -> EndpointCapabilities:
	"""Capabilities of an endpoint with materialized transitive closure."""
	return EndpointCapabilities(
		relationships={
			Relationship.IN_SCHEME: True,
			Relationship.TOP_CONCEPT_OF: True,
			Relationship.HAS_TOP_CONCEPT: True,
			Relationship.BROADER: True,
			Relationship.NARROWER: True,
			Relationship.BROADER_TRANSITIVE: True,
			Relationship.NARROWER_TRANSITIVE: False,
		},
	)


@pytest.fixture
def broader_only_capabilities() -> EndpointCapabilities:
	"""Capabilities of an endpoint that seems to use skos:broader only."""
	return EndpointCapabilities(
		relationships={
			Relationship.IN_SCHEME: True,
			Relationship.TOP_CONCEPT_OF: True,
			Relationship.HAS_TOP_CONCEPT: False,
			Relationship.BROADER: True,
			Relationship.NARROWER: False,
			Relationship.BROADER_TRANSITIVE: False,
			Relationship.NARROWER_TRANSITIVE: False,
		},
		label_predicates={
			ResourceKind.CONCEPT: {
				LabelType.PREF_LABEL: True,
				LabelType.XL_PREF_LABEL: False,
				LabelType.RDFS_LABEL: False,
			},
		},
	)


@pytest.fixture
def feature_flags(monkeypatch):
	"""Reload feature flags after the test sets FEATURE_* variables."""
	def load(**flags: bool):
		for name, value in flags.items():
			monkeypatch.setenv(f'FEATURE_{name.upper()}', 'true' if value else 'false')
		return reload_feature_flags()

	yield load
	monkeypatch.undo()
	reload_feature_flags()


@pytest.fixture
def no_relationship_capabilities() -> EndpointCapabilities:
	"""Capabilities where every relationship check came back negative."""
	return EndpointCapabilities(relationships={relationship: False for relationship in Relationship})
