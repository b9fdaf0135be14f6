"""
Tests for orphan detection.

Validates:
- Single and multi strategies agree
- Auto strategy falls back to multi when the single query fails
- Orphan collections
- Property-path stage skipped with transitive capabilities
"""

import pytest

from skosnav.discovery.engine import CancellationToken
from skosnav.discovery.orphans import OrphanDetector, OrphanStrategy
from skosnav.discovery.progress import CollectingProgressObserver, DiscoveryState
from skosnav.schemas.errors import DiscoveryAborted
from skosnav.sparql.vocabulary import ResourceKind

from tests.support import FailingExecutor, GraphExecutor, ex

ORPHAN_CONCEPTS = [ex('orphan1'), ex('orphan2')]
ORPHAN_COLLECTIONS = [ex('empty'), ex('lonely')]


@pytest.mark.asyncio
@pytest.mark.parametrize('kind, expected', [
	(ResourceKind.CONCEPT, ORPHAN_CONCEPTS),
	(ResourceKind.COLLECTION, ORPHAN_COLLECTIONS),
])
async def test_single_and_multi_strategies_agree(vocabulary_graph, kind, expected):
	single = await OrphanDetector(GraphExecutor(vocabulary_graph)).detect(kind, OrphanStrategy.SINGLE)
	multi = await OrphanDetector(GraphExecutor(vocabulary_graph)).detect(kind, OrphanStrategy.MULTI)

	assert single.uris == expected
	assert multi.uris == expected
	assert single.state == multi.state == DiscoveryState.DONE


@pytest.mark.asyncio
@pytest.mark.parametrize('strategy', [OrphanStrategy.SINGLE, OrphanStrategy.MULTI])
async def test_scheme_membership_used_when_no_relationship_is_present(vocabulary_graph, no_relationship_capabilities, strategy):
	executor = GraphExecutor(vocabulary_graph)
	detector = OrphanDetector(executor, capabilities=no_relationship_capabilities)

	result = await detector.detect(ResourceKind.CONCEPT, strategy)

	assert result.uris == ORPHAN_CONCEPTS
	assert any('skos:inScheme' in query for query in executor.queries)


@pytest.mark.asyncio
async def test_multi_strategy_reports_totals(graph_executor):
	result = await OrphanDetector(graph_executor).detect(ResourceKind.CONCEPT, 'multi')

	assert result.strategy == OrphanStrategy.MULTI
	assert result.total == 15
	assert result.placed == 13


@pytest.mark.asyncio
async def test_multi_strategy_pages_every_query(graph_executor):
	result = await OrphanDetector(graph_executor, page_size=4).detect(ResourceKind.CONCEPT, OrphanStrategy.MULTI)

	assert result.uris == ORPHAN_CONCEPTS
	assert any('OFFSET 12' in query for query in graph_executor.queries)


@pytest.mark.asyncio
async def test_auto_falls_back_to_multi_when_single_fails(vocabulary_graph):
	executor = FailingExecutor(vocabulary_graph, 'FILTER NOT EXISTS')

	result = await OrphanDetector(executor).detect(ResourceKind.CONCEPT, OrphanStrategy.AUTO)

	assert executor.failures == 1
	assert result.strategy == OrphanStrategy.MULTI
	assert result.uris == ORPHAN_CONCEPTS


@pytest.mark.asyncio
async def test_single_strategy_reports_failure_without_fallback(vocabulary_graph):
	executor = FailingExecutor(vocabulary_graph, 'FILTER NOT EXISTS')

	result = await OrphanDetector(executor).detect(ResourceKind.CONCEPT, OrphanStrategy.SINGLE)

	assert result.failed
	assert result.uris == []
	assert 'SERVER_ERROR' in result.error


@pytest.mark.asyncio
async def test_multi_strategy_failure_while_listing(vocabulary_graph):
	executor = FailingExecutor(vocabulary_graph, 'SELECT DISTINCT ?resource\nWHERE {\n  ?resource a skos:Concept .\n}')

	result = await OrphanDetector(executor).detect(ResourceKind.CONCEPT, OrphanStrategy.MULTI)

	assert result.failed
	assert result.total is None


@pytest.mark.asyncio
async def test_property_path_skipped_with_transitive_capabilities(graph_executor, transitive_capabilities):
	observer = CollectingProgressObserver()
	detector = OrphanDetector(graph_executor, capabilities=transitive_capabilities, observer=observer)

	result = await detector.detect(ResourceKind.CONCEPT, OrphanStrategy.MULTI)

	assert not any(')+' in query for query in graph_executor.queries)
	assert observer.stages_started == ['placed-direct', 'placed-transitive']
	# Without materialized closure in the data, concepts placed only through
	# hierarchy links look orphaned
	assert ex('sparrow') in result.uris


@pytest.mark.asyncio
async def test_placed_stages_follow_cost_order(graph_executor):
	stages = OrphanDetector(graph_executor).placed_stages(ResourceKind.CONCEPT)
	assert [stage.id for stage in stages] == ['placed-direct', 'placed-transitive', 'placed-property-path']


@pytest.mark.asyncio
async def test_cancelled_detection_raises(graph_executor):
	token = CancellationToken()
	token.cancel()

	with pytest.raises(DiscoveryAborted):
		await OrphanDetector(graph_executor).detect(ResourceKind.CONCEPT, OrphanStrategy.SINGLE, token=token)

	assert graph_executor.queries == []


def test_scheme_kind_is_rejected(graph_executor):
	with pytest.raises(ValueError):
		OrphanDetector(graph_executor).placed_stages(ResourceKind.SCHEME)
