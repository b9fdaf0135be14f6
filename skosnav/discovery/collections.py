"""
Collection discovery.

Finds the collections of a concept scheme through their members, cheapest
evidence first:

1. a member is skos:inScheme the scheme
2. a member is a top concept of the scheme
3. a member sits below a top concept through a transitive predicate
4. a member sits below a top concept through a property path (only without
   transitive predicates, or in paranoid mode)

Nested collections stay in the result set with their nested flag; only
top_level() views hide them.
"""

import logging

from skosnav.discovery.engine import CancellationToken, DiscoveryStage, StagedDiscoveryEngine
from skosnav.discovery.progress import DiscoverySnapshot, ProgressObserver
from skosnav.labels.loader import LabelLoader
from skosnav.queries.collections import (
	build_child_collection_flags_query,
	build_child_collections_query,
	build_collection_stage_query,
)
from skosnav.queries.placement import COLLECTION_PLACEMENT_STAGES, PlacementStage
from skosnav.schemas.domain import EndpointCapabilities, ResourceRef
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.results import row_bool, row_value
from skosnav.sparql.vocabulary import ResourceKind
from skosnav.tree.bindings import apply_labels, refs_from_rows, sort_nodes

logger = logging.getLogger(__name__)

FLAG_BATCH_SIZE = 200


class CollectionDiscovery:
	"""Staged collection discovery for one endpoint."""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		page_size: int = 5000,
		timeout: float | None = None,
		observer: ProgressObserver | None = None,
		paranoid: bool = False,
		label_loader: LabelLoader | None = None,
	):
		self.executor = executor
		self.capabilities = capabilities
		self.timeout = timeout
		self.paranoid = paranoid
		self.label_loader = label_loader
		self.engine = StagedDiscoveryEngine(
			executor,
			capabilities=capabilities,
			page_size=page_size,
			timeout=timeout,
			observer=observer,
		)

	def stages(self, scheme: str) -> list[DiscoveryStage]:
		"""Discovery stages for scheme, cheapest first."""
		return [self._stage(scheme, placement) for placement in COLLECTION_PLACEMENT_STAGES]

	def _stage(self, scheme: str, placement: PlacementStage) -> DiscoveryStage:
		paranoid = self.paranoid
		return DiscoveryStage(
			id=f'collections-{placement.id}',
			cost_class=placement.cost_class,
			query=build_collection_stage_query(scheme, placement, self.capabilities),
			applies_when=lambda capabilities: placement.applies(capabilities, paranoid),
			uri_var='collection',
			nested_var='hasParentCollection',
		)

	async def discover(
		self,
		scheme: str,
		token: CancellationToken | None = None,
		run_id: str | None = None,
	) -> DiscoverySnapshot:
		"""
		Run every applicable stage for scheme.

		Raises:
			DiscoveryAborted: If the token is cancelled mid-run
		"""
		logger.info(f"🔍 Discovering collections of {scheme}")
		return await self.engine.run(self.stages(scheme), run_id=run_id, token=token)

	async def to_refs(self, snapshot: DiscoverySnapshot, include_nested: bool = False) -> list[ResourceRef]:
		"""
		Resource references for a discovery result, labelled and sorted.

		Nested collections are left out unless include_nested is set.
		"""
		uris = list(snapshot.uris) if include_nested else snapshot.top_level()
		if not uris:
			return []
		with_children = await self._child_flags(uris)
		refs = [
			ResourceRef(
				uri=uri,
				kind=ResourceKind.COLLECTION,
				has_children=uri in with_children,
				nested=snapshot.nested.get(uri, False),
			)
			for uri in uris
		]
		return await self._labelled(refs)

	async def load_child_collections(self, parent: str) -> list[ResourceRef]:
		"""Collections nested directly inside parent."""
		rows = await self.executor.select(build_child_collections_query(parent), timeout=self.timeout)
		refs = refs_from_rows(rows, ResourceKind.COLLECTION, uri_var='collection', has_children_var='hasChildCollections')
		for ref in refs:
			ref.nested = True
		return await self._labelled(refs)

	async def _child_flags(self, uris: list[str]) -> set[str]:
		with_children: set[str] = set()
		for start in range(0, len(uris), FLAG_BATCH_SIZE):
			batch = uris[start:start + FLAG_BATCH_SIZE]
			rows = await self.executor.select(build_child_collection_flags_query(batch), timeout=self.timeout)
			with_children.update(
				uri for uri in (row_value(row, 'collection') for row in rows if row_bool(row, 'hasChildCollections')) if uri
			)
		return with_children

	async def _labelled(self, refs: list[ResourceRef]) -> list[ResourceRef]:
		if self.label_loader and refs:
			labels = await self.label_loader.load([ref.uri for ref in refs], ResourceKind.COLLECTION)
			apply_labels(refs, labels)
		return sort_nodes(refs)
