"""
Tests for progressive label loading against the sample vocabulary.
"""

import pytest

from skosnav.labels.loader import LabelLoader, build_labels_query
from skosnav.sparql.vocabulary import LabelType, ResourceKind

from tests.support import FailingExecutor, ex

FRENCH_FILTER = 'FILTER(?labelLang = "fr")'


@pytest.mark.asyncio
async def test_language_pass_then_full_pass(graph_executor):
	loader = LabelLoader(graph_executor, preferred='fr', threshold=0)

	labels = await loader.load([ex('mammals'), ex('dog'), ex('cat'), ex('birds')], ResourceKind.CONCEPT)

	assert labels[ex('mammals')].text == 'Mammifères'
	assert labels[ex('dog')].text == 'Chien'
	assert labels[ex('cat')].text == 'Cat'
	assert labels[ex('cat')].language == ''
	assert labels[ex('birds')].text == 'Birds'
	assert labels[ex('birds')].predicate_type == LabelType.XL_PREF_LABEL

	assert len(graph_executor.queries) == 2
	assert FRENCH_FILTER in graph_executor.queries[0]
	# Only the URIs the French pass left unresolved reach the full pass
	assert ex('dog') not in graph_executor.queries[1]
	assert ex('cat') in graph_executor.queries[1]


@pytest.mark.asyncio
async def test_few_uris_go_straight_to_full_pass(graph_executor):
	loader = LabelLoader(graph_executor, preferred='fr')

	labels = await loader.load([ex('dog'), ex('wolf')], ResourceKind.CONCEPT)

	assert len(graph_executor.queries) == 1
	assert 'FILTER' not in graph_executor.queries[0]
	assert labels[ex('dog')].text == 'Chien'
	assert labels[ex('wolf')].text == 'Wolf'


@pytest.mark.asyncio
async def test_failing_language_pass_continues(vocabulary_graph):
	executor = FailingExecutor(vocabulary_graph, FRENCH_FILTER)
	loader = LabelLoader(executor, preferred='fr', threshold=0)

	labels = await loader.load([ex('mammals'), ex('dog')], ResourceKind.CONCEPT)

	assert executor.failures == 1
	assert labels[ex('mammals')].text == 'Mammifères'
	assert labels[ex('dog')].text == 'Chien'


@pytest.mark.asyncio
async def test_failed_pass_sends_its_uris_to_the_full_pass(vocabulary_graph):
	executor = FailingExecutor(vocabulary_graph, FRENCH_FILTER)
	loader = LabelLoader(executor, preferred='fr', priorities=['en'], threshold=0)

	labels = await loader.load([ex('mammals'), ex('dog')], ResourceKind.CONCEPT)

	assert labels[ex('mammals')].text == 'Mammifères'
	assert labels[ex('dog')].text == 'Chien'
	assert not any('"en"' in query for query in executor.queries)
	assert len(executor.queries) == 2


@pytest.mark.asyncio
async def test_unlabelled_resources_are_omitted(graph_executor):
	labels = await LabelLoader(graph_executor).load([ex('orphan2'), ex('fish')], ResourceKind.CONCEPT)

	assert set(labels) == {ex('fish')}


@pytest.mark.asyncio
async def test_empty_input_issues_no_query(graph_executor):
	assert await LabelLoader(graph_executor).load([], ResourceKind.CONCEPT) == {}
	assert graph_executor.queries == []


@pytest.mark.asyncio
async def test_collection_and_scheme_titles(graph_executor):
	loader = LabelLoader(graph_executor, preferred='en')

	collections = await loader.load([ex('petsNested'), ex('flyers')], ResourceKind.COLLECTION)
	schemes = await loader.load([ex('scheme')], ResourceKind.SCHEME)

	assert collections[ex('petsNested')].text == 'Young pets'
	assert collections[ex('petsNested')].predicate_type == LabelType.DC_TITLE
	assert collections[ex('flyers')].text == 'Flyers'
	assert schemes[ex('scheme')].text == 'Animals'


@pytest.mark.asyncio
async def test_capabilities_narrow_label_predicates(graph_executor, broader_only_capabilities):
	loader = LabelLoader(graph_executor, capabilities=broader_only_capabilities)

	labels = await loader.load([ex('birds'), ex('fish')], ResourceKind.CONCEPT)

	assert 'skosxl' not in graph_executor.queries[0]
	assert set(labels) == {ex('fish')}


def test_language_passes_deduplicate_and_cap(graph_executor):
	loader = LabelLoader(graph_executor, preferred='de', priorities=['en', 'de', 'fr', 'it'], max_languages=3)
	assert loader.language_passes() == ['de', 'en', 'fr']


def test_concept_label_query_never_uses_titles():
	query = build_labels_query([ex('dog')], ResourceKind.CONCEPT, None)

	assert 'skos:prefLabel' in query
	assert 'dct:title' not in query
	assert 'dc:title' not in query
