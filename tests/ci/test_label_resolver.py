"""
Tests for label resolution.

Validates:
- Result independence from candidate order
- Predicate priority tables per resource kind
- Language preference chain with fallbacks
- Display ordering of label lists
"""

import itertools

from skosnav.labels.resolver import candidates_from_rows, default_language_priorities, select_label, sort_labels
from skosnav.schemas.domain import DetectedLanguage, LabelCandidate
from skosnav.sparql.results import RdfTerm
from skosnav.sparql.vocabulary import (
	CONCEPT_LABEL_PRIORITY,
	SCHEME_LABEL_PRIORITY,
	LabelType,
)


def candidate(value: str, language: str = '', predicate_type: LabelType = LabelType.PREF_LABEL) -> LabelCandidate:
	return LabelCandidate(value=value, language=language, predicate_type=predicate_type)


# =============================================================================
# Determinism
# =============================================================================

def test_selection_is_independent_of_candidate_order():
	candidates = [
		candidate('Zebra', 'en', LabelType.RDFS_LABEL),
		candidate('Alpha', 'en', LabelType.PREF_LABEL),
		candidate('Beta', 'en', LabelType.PREF_LABEL),
		candidate('Gamma', 'de', LabelType.PREF_LABEL),
		candidate('Delta', '', LabelType.XL_PREF_LABEL),
	]

	results = {
		select_label(permutation, CONCEPT_LABEL_PRIORITY, preferred='en')
		for permutation in itertools.permutations(candidates)
	}

	assert len(results) == 1
	assert results.pop().text == 'Alpha'


def test_untagged_tie_breaks_on_text_then_language():
	candidates = [candidate('b', 'fr'), candidate('a', 'it'), candidate('a', 'de')]

	for permutation in itertools.permutations(candidates):
		label = select_label(permutation, CONCEPT_LABEL_PRIORITY)
		assert (label.text, label.language) == ('a', 'de')


def test_no_candidates_yields_none():
	assert select_label([], CONCEPT_LABEL_PRIORITY, preferred='en') is None


# =============================================================================
# Priority tables
# =============================================================================

def test_pref_label_beats_rdfs_label():
	label = select_label(
		[candidate('X', 'en', LabelType.RDFS_LABEL), candidate('Y', 'en', LabelType.PREF_LABEL)],
		CONCEPT_LABEL_PRIORITY,
		preferred='en',
	)
	assert label.text == 'Y'
	assert label.predicate_type == LabelType.PREF_LABEL


def test_scheme_titles_rank_between_xl_and_rdfs():
	candidates = [
		candidate('rdfs', 'en', LabelType.RDFS_LABEL),
		candidate('dc', 'en', LabelType.DC_TITLE),
		candidate('dct', 'en', LabelType.DCT_TITLE),
	]
	assert select_label(candidates, SCHEME_LABEL_PRIORITY, 'en').text == 'dct'
	assert select_label(candidates[:2], SCHEME_LABEL_PRIORITY, 'en').text == 'dc'


def test_scheme_pref_label_beats_xl_and_title():
	candidates = [
		candidate('title', 'en', LabelType.DCT_TITLE),
		candidate('xl', 'en', LabelType.XL_PREF_LABEL),
		candidate('pref', 'en', LabelType.PREF_LABEL),
	]

	label = select_label(candidates, SCHEME_LABEL_PRIORITY, 'en')
	assert label.predicate_type == LabelType.PREF_LABEL
	assert label.text == 'pref'

	label = select_label(candidates[:2], SCHEME_LABEL_PRIORITY, 'en')
	assert label.predicate_type == LabelType.XL_PREF_LABEL


def test_unknown_predicate_types_rank_last():
	label = select_label(
		[candidate('custom', 'en', 'customLabel'), candidate('rdfs', 'en', LabelType.RDFS_LABEL)],
		CONCEPT_LABEL_PRIORITY,
	)
	assert label.text == 'rdfs'


# =============================================================================
# Language chain
# =============================================================================

def test_preferred_language_wins_over_predicate_rank():
	label = select_label(
		[candidate('Pref EN', 'en', LabelType.PREF_LABEL), candidate('Label FR', 'fr', LabelType.RDFS_LABEL)],
		CONCEPT_LABEL_PRIORITY,
		preferred='fr',
	)
	assert label.text == 'Label FR'


def test_missing_preferred_language_falls_back_to_endpoint_priorities():
	label = select_label(
		[candidate('X', 'fr'), candidate('Y', 'de')],
		CONCEPT_LABEL_PRIORITY,
		preferred='en',
		priorities=['de', 'fr'],
	)
	assert (label.text, label.language) == ('Y', 'de')


def test_untagged_used_before_arbitrary_languages():
	label = select_label(
		[candidate('tagged', 'ja'), candidate('plain', '')],
		CONCEPT_LABEL_PRIORITY,
		preferred='en',
		priorities=['fr'],
	)
	assert label.text == 'plain'
	assert label.language == ''


def test_any_language_as_last_resort():
	label = select_label([candidate('Nihongo', 'ja')], CONCEPT_LABEL_PRIORITY, preferred='en', priorities=['fr'])
	assert label.text == 'Nihongo'


# =============================================================================
# Helpers
# =============================================================================

def test_sort_labels_orders_untagged_preferred_priorities_rest():
	labels = sort_labels(
		[
			candidate('zz', 'ru'),
			candidate('d', 'de'),
			candidate('f', 'fr'),
			candidate('plain', ''),
			candidate('e', 'en'),
			candidate('e', 'en'),
			candidate('aa', 'ar'),
		],
		preferred='en',
		priorities=['fr', 'de'],
	)
	assert [(c.value, c.language) for c in labels] == [
		('plain', ''),
		('e', 'en'),
		('f', 'fr'),
		('d', 'de'),
		('aa', 'ar'),
		('zz', 'ru'),
	]


def test_default_language_priorities_put_english_first():
	detected = [DetectedLanguage(lang='fr', count=10), DetectedLanguage(lang='en', count=1), DetectedLanguage(lang='de', count=5)]
	assert default_language_priorities(detected) == ['en', 'de', 'fr']
	assert default_language_priorities(['nl', '', 'it']) == ['it', 'nl']


def test_candidates_from_rows_groups_per_subject():
	rows = [
		{
			'resource': RdfTerm('uri', 'http://example.org/a'),
			'label': RdfTerm('literal', 'A', lang='en'),
			'labelLang': RdfTerm('literal', 'en'),
			'labelType': RdfTerm('literal', 'prefLabel'),
		},
		{
			'resource': RdfTerm('uri', 'http://example.org/a'),
			'label': RdfTerm('literal', 'A label'),
			'labelLang': RdfTerm('literal', ''),
			'labelType': RdfTerm('literal', 'rdfsLabel'),
		},
		{'resource': RdfTerm('uri', 'http://example.org/b')},
	]

	grouped = candidates_from_rows(rows, 'resource')

	assert list(grouped) == ['http://example.org/a']
	assert grouped['http://example.org/a'] == [
		LabelCandidate(value='A', language='en', predicate_type=LabelType.PREF_LABEL),
		LabelCandidate(value='A label', language='', predicate_type=LabelType.RDFS_LABEL),
	]
