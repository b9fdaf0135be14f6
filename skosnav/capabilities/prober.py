"""
Capability probing.

One minimal ASK per capability, run concurrently with a short timeout. A probe
that fails or times out reports the capability as absent: a slow endpoint is a
planning signal, not an error worth retrying.
"""

import asyncio
import logging

from skosnav.schemas.domain import EndpointCapabilities
from skosnav.schemas.errors import SparqlError
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.vocabulary import LabelType, Relationship, ResourceKind, ResultFormat

logger = logging.getLogger(__name__)

RELATIONSHIP_PROBES: dict[Relationship, str] = {
	Relationship.IN_SCHEME: 'ASK { ?s skos:inScheme ?o }',
	Relationship.TOP_CONCEPT_OF: 'ASK { ?s skos:topConceptOf ?o }',
	Relationship.HAS_TOP_CONCEPT: 'ASK { ?s skos:hasTopConcept ?o }',
	Relationship.BROADER: 'ASK { ?s skos:broader ?o }',
	Relationship.NARROWER: 'ASK { ?s skos:narrower ?o }',
	Relationship.BROADER_TRANSITIVE: 'ASK { ?s skos:broaderTransitive ?o }',
	Relationship.NARROWER_TRANSITIVE: 'ASK { ?s skos:narrowerTransitive ?o }',
}


def label_probe(kind: ResourceKind, label_type: LabelType) -> str:
	"""ASK whether any resource of kind carries label_type."""
	return f'ASK {{ ?r a {kind.rdf_type} . ?r {label_type.path} ?label . }}'


class CapabilityProber:
	"""
	Stateless capability prober.

	Re-calling probe() against the same endpoint issues the same probes and,
	for an unchanged dataset, yields an equal record.
	"""

	def __init__(self, probe_timeout: float = 10.0, concurrency: int = 4):
		"""
		Initialize prober.

		Args:
			probe_timeout: Per-probe timeout in seconds
			concurrency: Maximum probes in flight
		"""
		self.probe_timeout = probe_timeout
		self.concurrency = max(1, concurrency)

	async def probe(self, executor: QueryExecutor) -> EndpointCapabilities:
		"""
		Probe every capability and wait for all probes.

		Never raises for an individual probe failure.
		"""
		semaphore = asyncio.Semaphore(self.concurrency)

		async def run(name: str, query: str) -> bool:
			async with semaphore:
				return await self._ask(executor, name, query)

		relationship_items = list(RELATIONSHIP_PROBES.items())
		label_items = [
			(kind, label_type)
			for kind in ResourceKind
			for label_type in LabelType
		]

		relationship_results, label_results, format_results = await asyncio.gather(
			asyncio.gather(*(run(rel.value, query) for rel, query in relationship_items)),
			asyncio.gather(*(
				run(f'{kind.value}.{label_type.value}', label_probe(kind, label_type))
				for kind, label_type in label_items
			)),
			self._probe_formats(executor, semaphore),
		)

		label_predicates: dict[ResourceKind, dict[LabelType, bool | None]] = {}
		for (kind, label_type), present in zip(label_items, label_results):
			label_predicates.setdefault(kind, {})[label_type] = present

		capabilities = EndpointCapabilities(
			relationships={rel: present for (rel, _), present in zip(relationship_items, relationship_results)},
			label_predicates=label_predicates,
			result_formats=format_results,
		)
		present = sorted(rel.value for rel in capabilities.present_relationships() or ())
		logger.info(f"Probed capabilities: relationships={present}")
		return capabilities

	async def _ask(self, executor: QueryExecutor, name: str, query: str) -> bool:
		try:
			return await asyncio.wait_for(executor.ask(query, timeout=self.probe_timeout), self.probe_timeout)
		except asyncio.TimeoutError:
			logger.warning(f"⚠️  Probe {name} timed out after {self.probe_timeout}s, treating as absent")
			return False
		except SparqlError as e:
			logger.warning(f"⚠️  Probe {name} failed, treating as absent: {e}")
			return False

	async def _probe_formats(
		self,
		executor: QueryExecutor,
		semaphore: asyncio.Semaphore,
	) -> dict[ResultFormat, bool | None]:
		"""Result format probes, for executors that can test serializations."""
		supports_format = getattr(executor, 'supports_format', None)
		if supports_format is None:
			return {result_format: None for result_format in ResultFormat}

		async def run(result_format: ResultFormat) -> bool:
			async with semaphore:
				return await supports_format(result_format, timeout=self.probe_timeout)

		formats = list(ResultFormat)
		results = await asyncio.gather(*(run(result_format) for result_format in formats))
		return dict(zip(formats, results))

