"""
Orphan detection.

Finds resources of a kind (concepts or collections) that no placement
pattern ties to any concept scheme. Two interchangeable strategies:

- single: one FILTER NOT EXISTS query over the union of placement patterns
- multi: fetch every resource, then subtract what each placement stage finds

Both use the same placement patterns and return the same sorted URI list.
The auto strategy runs single first and falls back to multi when it fails.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum

from skosnav.discovery.engine import CancellationToken, DiscoveryStage, StagedDiscoveryEngine
from skosnav.discovery.progress import DiscoveryState, ProgressObserver
from skosnav.queries.orphans import build_all_resources_query, build_placed_query, build_single_orphan_query
from skosnav.queries.placement import ORPHAN_PLACEMENT_STAGES, CostClass, PlacementStage
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.schemas.errors import SparqlError
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.results import row_value
from skosnav.sparql.vocabulary import ResourceKind

logger = logging.getLogger(__name__)


class OrphanStrategy(str, Enum):
	"""How orphan detection queries the endpoint."""

	AUTO = "auto"
	SINGLE = "single"
	MULTI = "multi"


@dataclass
class OrphanResult:
	"""Outcome of one orphan detection run."""
	kind: ResourceKind
	strategy: OrphanStrategy
	state: DiscoveryState
	uris: list[str] = field(default_factory=list)
	total: int | None = None
	placed: int | None = None
	error: str | None = None

	@property
	def failed(self) -> bool:
		return self.state == DiscoveryState.FAILED


class OrphanDetector:
	"""Orphan detection for one endpoint."""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		page_size: int = 5000,
		timeout: float | None = None,
		observer: ProgressObserver | None = None,
		paranoid: bool = False,
	):
		self.capabilities = capabilities
		self.paranoid = paranoid
		self.engine = StagedDiscoveryEngine(
			executor,
			capabilities=capabilities,
			page_size=page_size,
			timeout=timeout,
			observer=observer,
		)

	async def detect(
		self,
		kind: ResourceKind = ResourceKind.CONCEPT,
		strategy: OrphanStrategy | str = OrphanStrategy.AUTO,
		token: CancellationToken | None = None,
		run_id: str | None = None,
	) -> OrphanResult:
		"""
		Find orphans of kind.

		Raises:
			DiscoveryAborted: If the token is cancelled mid-run
		"""
		strategy = OrphanStrategy(strategy)
		run_id = run_id or uuid.uuid4().hex[:8]
		logger.info(f"[{run_id}] 🔍 Detecting orphan {kind.value}s ({strategy.value})")

		if strategy == OrphanStrategy.MULTI:
			return await self.detect_multi(kind, token, run_id)

		result = await self.detect_single(kind, token, run_id)
		if result.failed and strategy == OrphanStrategy.AUTO:
			logger.warning(f"⚠️  [{run_id}] Single orphan query failed ({result.error}), falling back to multi-query")
			return await self.detect_multi(kind, token, run_id)
		return result

	async def detect_single(self, kind: ResourceKind, token: CancellationToken | None = None, run_id: str | None = None) -> OrphanResult:
		"""One negated-existence query, paged."""
		stage = DiscoveryStage(
			id='orphans-single',
			cost_class=CostClass.EXPENSIVE,
			query=build_single_orphan_query(kind, self.capabilities, self.paranoid),
		)
		snapshot = await self.engine.run([stage], run_id=run_id, token=token)
		return OrphanResult(
			kind=kind,
			strategy=OrphanStrategy.SINGLE,
			state=snapshot.state,
			uris=sorted(snapshot.uris),
			error=snapshot.error,
		)

	async def detect_multi(self, kind: ResourceKind, token: CancellationToken | None = None, run_id: str | None = None) -> OrphanResult:
		"""Every resource of kind minus every placed resource."""
		run_id = run_id or uuid.uuid4().hex[:8]
		try:
			rows = await self.engine.fetch_all(build_all_resources_query(kind), token, run_id, 'all-resources')
		except SparqlError as e:
			logger.error(f"[{run_id}] Listing {kind.value}s failed: {e}", exc_info=True)
			return OrphanResult(kind=kind, strategy=OrphanStrategy.MULTI, state=DiscoveryState.FAILED, error=str(e))

		universe = {uri for uri in (row_value(row, 'resource') for row in rows) if uri}
		logger.debug(f"[{run_id}] {len(universe)} {kind.value}s to check")

		snapshot = await self.engine.run(self.placed_stages(kind), run_id=run_id, token=token)
		placed = set(snapshot.uris)
		return OrphanResult(
			kind=kind,
			strategy=OrphanStrategy.MULTI,
			state=snapshot.state,
			uris=sorted(universe - placed),
			total=len(universe),
			placed=len(placed & universe),
			error=snapshot.error,
		)

	def placed_stages(self, kind: ResourceKind) -> list[DiscoveryStage]:
		"""One discovery stage per placement stage, in cost order."""
		return [self._placed_stage(kind, placement) for placement in ORPHAN_PLACEMENT_STAGES]

	def _placed_stage(self, kind: ResourceKind, placement: PlacementStage) -> DiscoveryStage:
		paranoid = self.paranoid
		return DiscoveryStage(
			id=f'placed-{placement.id}',
			cost_class=placement.cost_class,
			query=build_placed_query(kind, placement, self.capabilities),
			applies_when=lambda capabilities: placement.applies(capabilities, paranoid),
		)
