"""
Progressive label loading.

Labels are fetched for a batch of URIs one language at a time, following the
preference chain, so the common case (most resources labelled in the
preferred language) needs one small query. Once few URIs remain, or the
language list is exhausted, a single query without a language filter
resolves the rest.
"""

import logging
from collections.abc import Sequence

from skosnav.labels.resolver import candidates_from_rows, select_label
from skosnav.queries.builder import LABEL_LANG_VAR, build_label_clause
from skosnav.schemas.domain import EndpointCapabilities, ResolvedLabel
from skosnav.schemas.errors import SparqlError
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.vocabulary import ResourceKind, label_priority_for, values_clause

logger = logging.getLogger(__name__)

SUBJECT_VAR = '?resource'


def build_labels_query(
	uris: Sequence[str],
	kind: ResourceKind,
	capabilities: EndpointCapabilities | None,
	language: str | None = None,
) -> str:
	"""Label candidates for uris, optionally restricted to one language."""
	label_clause = build_label_clause(SUBJECT_VAR, capabilities, kind)
	language_filter = f'\n  FILTER({LABEL_LANG_VAR} = "{language}")' if language else ''
	return f"""SELECT ?resource ?label ?labelLang ?labelType
WHERE {{
  {values_clause(SUBJECT_VAR, list(uris))}
  {label_clause}{language_filter}
}}"""


class LabelLoader:
	"""
	Loads and resolves labels for batches of resources.

	Features:
	- Per-language passes following the preference chain
	- Full pass for whatever the language passes left unresolved
	- Kind-specific label predicates and priority tables
	"""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		preferred: str | None = None,
		priorities: Sequence[str] = (),
		progressive: bool = True,
		threshold: int = 5,
		max_languages: int = 5,
		batch_size: int = 200,
		timeout: float | None = None,
	):
		"""
		Initialize label loader.

		Args:
			executor: Query executor
			capabilities: Endpoint capabilities (None for the full predicate set)
			preferred: The user's preferred language
			priorities: Endpoint language priorities
			progressive: Run per-language passes before the full pass
			threshold: Switch to the full pass once this few URIs remain
			max_languages: Maximum number of per-language passes
			batch_size: Maximum URIs per VALUES block
			timeout: Per-query timeout
		"""
		self.executor = executor
		self.capabilities = capabilities
		self.preferred = preferred
		self.priorities = list(priorities)
		self.progressive = progressive
		self.threshold = threshold
		self.max_languages = max_languages
		self.batch_size = batch_size
		self.timeout = timeout

	def language_passes(self) -> list[str]:
		"""Languages to try one by one: preferred first, then endpoint priorities."""
		ordered: list[str] = []
		for lang in [self.preferred, *self.priorities]:
			if lang and lang not in ordered:
				ordered.append(lang)
		return ordered[:self.max_languages]

	async def load(self, uris: Sequence[str], kind: ResourceKind) -> dict[str, ResolvedLabel]:
		"""
		Resolve display labels for uris.

		Returns:
			URI -> resolved label, for every URI that has any label

		Raises:
			SparqlError: If the full pass fails
		"""
		remaining = list(dict.fromkeys(uris))
		resolved: dict[str, ResolvedLabel] = {}
		if not remaining:
			return resolved

		if self.progressive:
			for language in self.language_passes():
				if len(remaining) <= self.threshold:
					break
				try:
					found = await self._resolve(remaining, kind, language)
				except SparqlError as e:
					# Later languages could pick a label this pass would have beaten
					logger.warning(f"⚠️  Label pass for language {language!r} failed, resolving the rest in the full pass: {e}")
					break
				resolved.update(found)
				remaining = [uri for uri in remaining if uri not in found]
				logger.debug(f"Label pass {language!r}: {len(found)} resolved, {len(remaining)} remaining")
				if not remaining:
					return resolved

		resolved.update(await self._resolve(remaining, kind, None))
		logger.debug(f"Labels resolved for {len(resolved)}/{len(uris)} {kind.value} resources")
		return resolved

	async def _resolve(self, uris: list[str], kind: ResourceKind, language: str | None) -> dict[str, ResolvedLabel]:
		priority_table = label_priority_for(kind)
		resolved: dict[str, ResolvedLabel] = {}
		for start in range(0, len(uris), self.batch_size):
			batch = uris[start:start + self.batch_size]
			query = build_labels_query(batch, kind, self.capabilities, language)
			rows = await self.executor.select(query, timeout=self.timeout)
			for uri, candidates in candidates_from_rows(rows, SUBJECT_VAR[1:]).items():
				label = select_label(candidates, priority_table, self.preferred, self.priorities)
				if label is not None:
					resolved[uri] = label
		return resolved
