"""
skosnav - capability-aware SKOS navigation

Probes SPARQL endpoints for the SKOS predicates they actually use, plans
queries around them, resolves display labels and runs staged discovery of
orphan resources and scheme collections.
"""

from skosnav.capabilities import CapabilityProber, EndpointAnalyzer, capabilities_from_analysis
from skosnav.discovery import CancellationToken, CollectionDiscovery, OrphanDetector, OrphanStrategy
from skosnav.labels import LabelLoader, select_label
from skosnav.schemas import EndpointCapabilities, ResourceRef, SparqlEndpoint, TreePage
from skosnav.session import DiscoverySession, ScopeChanged
from skosnav.sparql.executor import SparqlExecutor
from skosnav.tree import TreePaginator

__all__ = [
	'CancellationToken',
	'CapabilityProber',
	'CollectionDiscovery',
	'DiscoverySession',
	'EndpointAnalyzer',
	'EndpointCapabilities',
	'LabelLoader',
	'OrphanDetector',
	'OrphanStrategy',
	'ResourceRef',
	'ScopeChanged',
	'SparqlEndpoint',
	'SparqlExecutor',
	'TreePage',
	'TreePaginator',
	'capabilities_from_analysis',
	'select_label',
]
