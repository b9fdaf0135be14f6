"""
Label resolution.

Picks one display label for a resource out of every candidate literal the
label queries returned, using a language preference chain and a
kind-specific predicate priority table. The outcome depends only on the
candidate multiset, never on row order.
"""

import logging
from collections.abc import Iterable, Sequence

from skosnav.schemas.domain import DetectedLanguage, LabelCandidate, ResolvedLabel
from skosnav.sparql.results import Row, row_value
from skosnav.sparql.vocabulary import LabelType

logger = logging.getLogger(__name__)


def _filter_by_language(
	candidates: list[LabelCandidate],
	preferred: str | None,
	priorities: Sequence[str],
) -> list[LabelCandidate]:
	"""Narrow candidates to the best available language tier."""
	if preferred:
		matching = [c for c in candidates if c.language == preferred]
		if matching:
			return matching

	present = {c.language for c in candidates}
	for lang in priorities:
		if lang and lang in present:
			return [c for c in candidates if c.language == lang]

	untagged = [c for c in candidates if not c.language]
	if untagged:
		return untagged

	return candidates


def select_label(
	candidates: Iterable[LabelCandidate],
	priority_table: Sequence[LabelType | str],
	preferred: str | None = None,
	priorities: Sequence[str] = (),
) -> ResolvedLabel | None:
	"""
	Select the display label among candidates.

	Language tiers, first non-empty wins:
	1. preferred language
	2. earliest endpoint priority language present
	3. untagged literals
	4. every candidate

	Inside the surviving tier the predicate rank in priority_table decides,
	then the literal text, then the language tag.

	Args:
		candidates: Label candidates for one resource
		priority_table: Label types, most preferred first
		preferred: The user's preferred language
		priorities: Endpoint language priorities, most preferred first

	Returns:
		The resolved label, or None if there are no candidates
	"""
	candidates = list(candidates)
	if not candidates:
		return None

	ranks = {str(getattr(t, 'value', t)): i for i, t in enumerate(priority_table)}

	def sort_key(candidate: LabelCandidate) -> tuple[int, str, str]:
		predicate = str(getattr(candidate.predicate_type, 'value', candidate.predicate_type))
		return (ranks.get(predicate, len(ranks)), candidate.value, candidate.language)

	best = min(_filter_by_language(candidates, preferred, priorities), key=sort_key)
	return ResolvedLabel(text=best.value, language=best.language, predicate_type=best.predicate_type)


def sort_labels(
	candidates: Iterable[LabelCandidate],
	preferred: str | None = None,
	priorities: Sequence[str] = (),
) -> list[LabelCandidate]:
	"""
	Deduplicate by value and language, then order for display.

	Untagged first, then the preferred language, then endpoint priorities in
	order, then remaining languages alphabetically.
	"""
	seen: set[tuple[str, str]] = set()
	unique: list[LabelCandidate] = []
	for candidate in candidates:
		key = (candidate.value, candidate.language)
		if key not in seen:
			seen.add(key)
			unique.append(candidate)

	priority_index = {lang: i for i, lang in enumerate(priorities)}

	def sort_key(candidate: LabelCandidate) -> tuple:
		lang = candidate.language
		if not lang:
			tier = 0
		elif lang == preferred:
			tier = 1
		elif lang in priority_index:
			tier = 2
		else:
			tier = 3
		return (tier, priority_index.get(lang, 0), lang, candidate.value)

	return sorted(unique, key=sort_key)


def default_language_priorities(languages: Iterable[DetectedLanguage | str]) -> list[str]:
	"""Detected languages alphabetically, with 'en' always first."""
	codes = {lang.lang if isinstance(lang, DetectedLanguage) else lang for lang in languages}
	codes.discard('')
	return sorted(codes, key=lambda code: (code != 'en', code))


def candidates_from_rows(
	rows: Iterable[Row],
	subject_var: str,
	label_var: str = 'label',
	lang_var: str = 'labelLang',
	type_var: str = 'labelType',
) -> dict[str, list[LabelCandidate]]:
	"""Group label rows into candidates per subject URI. Rows without a label are skipped."""
	grouped: dict[str, list[LabelCandidate]] = {}
	for row in rows:
		uri = row_value(row, subject_var)
		value = row_value(row, label_var)
		if uri is None or value is None:
			continue
		label_term = row.get(label_var)
		language = row_value(row, lang_var) or (label_term.lang if label_term else None) or ''
		predicate_type = row_value(row, type_var) or LabelType.PREF_LABEL.value
		try:
			predicate_type = LabelType(predicate_type)
		except ValueError:
			logger.debug(f"Unknown label type {predicate_type!r} for {uri}")
		grouped.setdefault(uri, []).append(
			LabelCandidate(value=value, language=language, predicate_type=predicate_type)
		)
	return grouped
