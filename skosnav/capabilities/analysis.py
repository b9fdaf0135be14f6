"""
Endpoint analysis.

Runs the capability probes plus a handful of summary statistics and produces
the EndpointAnalysis record that is persisted between runs. Loading a
missing, unreadable or stale record degrades to unknown capabilities.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from skosnav.capabilities.prober import CapabilityProber
from skosnav.labels.resolver import default_language_priorities
from skosnav.schemas.domain import DetectedLanguage, EndpointAnalysis, EndpointCapabilities
from skosnav.schemas.errors import SparqlError
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.results import row_value

logger = logging.getLogger(__name__)

MAX_SKOS_GRAPHS = 500
MAX_SCHEMES = 200

SKOS_CONTENT_QUERY = 'ASK { { ?s a skos:Concept } UNION { ?s a skos:ConceptScheme } }'

NAMED_GRAPHS_QUERY = 'ASK { GRAPH ?g { ?s ?p ?o } }'

SKOS_GRAPHS_QUERY = f"""SELECT DISTINCT ?graph
WHERE {{
  GRAPH ?graph {{
    {{ ?resource a skos:Concept . }} UNION {{ ?resource a skos:ConceptScheme . }}
  }}
}}
LIMIT {MAX_SKOS_GRAPHS + 1}"""

LANGUAGES_QUERY = """SELECT ?lang (COUNT(?label) AS ?count)
WHERE {
  ?concept a skos:Concept .
  ?concept skos:prefLabel ?label .
  BIND(LANG(?label) AS ?lang)
  FILTER(?lang != "")
}
GROUP BY ?lang
ORDER BY DESC(?count)"""

CONCEPT_COUNT_QUERY = """SELECT (COUNT(DISTINCT ?concept) AS ?count)
WHERE {
  ?concept a skos:Concept .
}"""

SCHEMES_QUERY = f"""SELECT DISTINCT ?scheme
WHERE {{
  ?scheme a skos:ConceptScheme .
}}
ORDER BY ?scheme
LIMIT {MAX_SCHEMES + 1}"""


class EndpointAnalyzer:
	"""
	Builds the persisted analysis record for one endpoint.

	Statistics are best effort: a failing statistics query leaves its field
	unset and the analysis continues. Capability probes never fail.
	"""

	def __init__(self, executor: QueryExecutor, prober: CapabilityProber | None = None, timeout: float | None = None):
		self.executor = executor
		self.prober = prober or CapabilityProber()
		self.timeout = timeout

	async def analyze(self) -> EndpointAnalysis:
		"""Run every analysis step in order."""
		logger.info("🔍 Analyzing endpoint")

		has_skos_content = await self._skos_content()
		supports_named_graphs = await self._named_graphs()
		graph_count, graph_uris = (None, None)
		if supports_named_graphs:
			graph_count, graph_uris = await self._skos_graphs()

		languages = await self._languages()
		total_concepts = await self._total_concepts()
		scheme_uris, schemes_limited = await self._schemes()
		capabilities = await self.prober.probe(self.executor)

		analysis = EndpointAnalysis(
			has_skos_content=has_skos_content,
			supports_named_graphs=supports_named_graphs,
			skos_graph_count=graph_count,
			skos_graph_uris=graph_uris,
			languages=languages,
			total_concepts=total_concepts,
			relationships=dict(capabilities.relationships),
			scheme_uris=scheme_uris,
			scheme_count=len(scheme_uris),
			schemes_limited=schemes_limited,
			label_predicates={kind: dict(by_type) for kind, by_type in capabilities.label_predicates.items()},
			result_formats=dict(capabilities.result_formats),
		)
		logger.info(
			f"✅ Analysis complete: {total_concepts} concepts, {len(scheme_uris)} schemes, "
			f"{len(languages)} languages"
		)
		return analysis

	async def _skos_content(self) -> bool | None:
		try:
			return await self.executor.ask(SKOS_CONTENT_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  SKOS content check failed: {e}")
			return None

	async def _named_graphs(self) -> bool | None:
		try:
			return await self.executor.ask(NAMED_GRAPHS_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  Named graph check failed: {e}")
			return None

	async def _skos_graphs(self) -> tuple[int | None, list[str] | None]:
		try:
			rows = await self.executor.select(SKOS_GRAPHS_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  SKOS graph detection failed: {e}")
			return None, None
		uris = [uri for uri in (row_value(row, 'graph') for row in rows) if uri]
		if len(uris) > MAX_SKOS_GRAPHS:
			# Count is a lower bound; the URI list is not kept
			return len(uris), None
		return len(uris), sorted(uris)

	async def _languages(self) -> list[DetectedLanguage]:
		try:
			rows = await self.executor.select(LANGUAGES_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  Language detection failed: {e}")
			return []
		languages = []
		for row in rows:
			lang = row_value(row, 'lang')
			count = row_value(row, 'count')
			if lang and count is not None:
				languages.append(DetectedLanguage(lang=lang, count=int(count)))
		return sorted(languages, key=lambda detected: (-detected.count, detected.lang))

	async def _total_concepts(self) -> int | None:
		try:
			rows = await self.executor.select(CONCEPT_COUNT_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  Concept count failed: {e}")
			return None
		count = row_value(rows[0], 'count') if rows else None
		return int(count) if count is not None else None

	async def _schemes(self) -> tuple[list[str], bool]:
		try:
			rows = await self.executor.select(SCHEMES_QUERY, timeout=self.timeout)
		except SparqlError as e:
			logger.warning(f"⚠️  Scheme detection failed: {e}")
			return [], False
		uris = [uri for uri in (row_value(row, 'scheme') for row in rows) if uri]
		return uris[:MAX_SCHEMES], len(uris) > MAX_SCHEMES


def save_analysis(analysis: EndpointAnalysis, path: Path | str) -> Path:
	"""Write an analysis record as camelCase JSON."""
	path = Path(path)
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(analysis.model_dump_json(by_alias=True, indent=2), encoding='utf-8')
	logger.debug(f"Analysis written to {path}")
	return path


def load_analysis(path: Path | str) -> EndpointAnalysis | None:
	"""Read an analysis record. Missing or unreadable files yield None."""
	path = Path(path)
	if not path.exists():
		logger.info(f"No analysis at {path}, capabilities are unknown")
		return None
	try:
		return EndpointAnalysis.model_validate_json(path.read_text(encoding='utf-8'))
	except (OSError, ValueError, ValidationError) as e:
		logger.warning(f"⚠️  Ignoring unreadable analysis {path}: {e}")
		return None


def is_stale(analysis: EndpointAnalysis, max_age_days: int, now: datetime | None = None) -> bool:
	"""True when the record is older than max_age_days (0 never expires)."""
	if max_age_days <= 0:
		return False
	now = now or datetime.now(timezone.utc)
	analyzed_at = analysis.analyzed_at
	if analyzed_at.tzinfo is None:
		analyzed_at = analyzed_at.replace(tzinfo=timezone.utc)
	return now - analyzed_at > timedelta(days=max_age_days)


def capabilities_from_analysis(
	analysis: EndpointAnalysis | None,
	max_age_days: int = 0,
	now: datetime | None = None,
) -> EndpointCapabilities:
	"""Capabilities to plan with, given an optional stored analysis."""
	if analysis is None:
		return EndpointCapabilities.unknown()
	if is_stale(analysis, max_age_days, now):
		logger.warning(f"⚠️  Analysis from {analysis.analyzed_at.isoformat()} is stale, capabilities are unknown")
		return EndpointCapabilities.unknown()
	return analysis.capabilities()


def language_priorities_from_analysis(analysis: EndpointAnalysis | None) -> list[str]:
	"""Default language priorities from the detected languages."""
	if analysis is None:
		return []
	return default_language_priorities(analysis.languages)
