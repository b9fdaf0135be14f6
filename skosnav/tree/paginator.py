"""
Tree Paginator

Pages the roots of a concept scheme and the children of a concept.

Roots come from two queries on the first page: explicit top concepts, and
fallback roots (concepts in the scheme with no parent in either hierarchy
direction). Which of them produced rows is recorded as the source mode and
carried by the continuation, so later pages replay only that listing:

- explicit: explicit roots query
- fallback: fallback roots query
- mixed: the UNION of both, ordered by URI, so a concept found by both is
  listed once across all pages

Every query orders concepts by URI and asks for one row more than the page
size to detect whether another page exists.
"""

import logging

from skosnav.labels.loader import LabelLoader
from skosnav.queries.tree import (
	build_children_check_query,
	build_children_query,
	build_combined_roots_query,
	build_explicit_roots_query,
	build_fallback_roots_query,
	build_scheme_membership_check_query,
)
from skosnav.schemas.domain import EndpointCapabilities, ResourceRef, SourceMode, TreeContinuation, TreePage
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.results import row_bool, row_value
from skosnav.sparql.vocabulary import ResourceKind
from skosnav.tree.bindings import apply_labels, refs_from_rows, sort_nodes

logger = logging.getLogger(__name__)

CHECK_BATCH_SIZE = 200


class TreePaginator:
	"""Root and children paging for one endpoint."""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		page_size: int = 200,
		fallback_roots: str = 'always',
		label_loader: LabelLoader | None = None,
		verify_leaves: bool = True,
		timeout: float | None = None,
	):
		"""
		Initialize paginator.

		Args:
			executor: Query executor
			capabilities: Endpoint capabilities (None when unknown)
			page_size: Nodes per page
			fallback_roots: 'always' runs the fallback roots query on every first
				page, 'when_needed' only when the explicit query found nothing
			label_loader: Attaches labels to every page (pages stay unlabelled without one)
			verify_leaves: Re-check leaves with every hierarchy predicate
			timeout: Per-query timeout
		"""
		if page_size < 1:
			raise ValueError("page_size must be positive")
		self.executor = executor
		self.capabilities = capabilities
		self.page_size = page_size
		self.fallback_roots = fallback_roots
		self.label_loader = label_loader
		self.verify_leaves = verify_leaves
		self.timeout = timeout
		self._seen: dict[str, set[str]] = {}

	def reset(self) -> None:
		"""Forget cross-page state, e.g. after the scope changed."""
		self._seen.clear()

	async def load_page(self, scheme: str, continuation: TreeContinuation | None = None) -> TreePage:
		"""
		Load one page of root concepts of scheme.

		Args:
			scheme: Concept scheme URI
			continuation: Token from the previous page, None for the first page
		"""
		if continuation is None:
			return await self._first_roots_page(scheme)

		mode = continuation.source_mode or SourceMode.EXPLICIT
		limit = self.page_size + 1
		if mode == SourceMode.EXPLICIT:
			query = build_explicit_roots_query(scheme, self.capabilities, limit, continuation.offset)
		elif mode == SourceMode.FALLBACK:
			query = build_fallback_roots_query(scheme, self.capabilities, limit, continuation.offset)
		else:
			query = build_combined_roots_query(scheme, self.capabilities, limit, continuation.offset)

		refs = await self._fetch(query)
		has_more = len(refs) > self.page_size
		refs = refs[:self.page_size]

		seen = self._seen.setdefault(scheme, set())
		refs = [ref for ref in refs if ref.uri not in seen]
		seen.update(ref.uri for ref in refs)

		next_continuation = TreeContinuation(offset=continuation.offset + self.page_size, source_mode=mode) if has_more else None
		logger.debug(f"Roots page of {scheme} at offset {continuation.offset} ({mode.value}): {len(refs)} nodes")
		return TreePage(items=await self._finish(refs), continuation=next_continuation, source_mode=mode)

	async def _first_roots_page(self, scheme: str) -> TreePage:
		limit = self.page_size + 1
		explicit = await self._fetch(build_explicit_roots_query(scheme, self.capabilities, limit, 0))

		fallback: list[ResourceRef] = []
		if self.fallback_roots == 'always' or not explicit:
			fallback = await self._fetch(build_fallback_roots_query(scheme, self.capabilities, limit, 0))

		mode = self._source_mode(explicit, fallback)
		merged: dict[str, ResourceRef] = {ref.uri: ref for ref in explicit}
		for ref in fallback:
			if ref.uri in merged:
				merged[ref.uri].has_children = merged[ref.uri].has_children or ref.has_children
			else:
				merged[ref.uri] = ref

		# Both listings are ordered by URI, so the first page of their union is
		# the first page of the combined listing.
		ordered = [merged[uri] for uri in sorted(merged)]
		has_more = len(ordered) > self.page_size
		refs = ordered[:self.page_size]
		self._seen[scheme] = {ref.uri for ref in refs}

		logger.info(
			f"🌳 Roots of {scheme}: {len(explicit)} explicit, {len(fallback)} fallback, "
			f"mode={mode.value if mode else 'N/A'}, more={has_more}"
		)
		continuation = TreeContinuation(offset=self.page_size, source_mode=mode) if has_more else None
		return TreePage(items=await self._finish(refs), continuation=continuation, source_mode=mode)

	def _source_mode(self, explicit: list[ResourceRef], fallback: list[ResourceRef]) -> SourceMode | None:
		if not explicit and not fallback:
			return None
		if not fallback:
			return SourceMode.EXPLICIT
		if not explicit:
			return SourceMode.FALLBACK
		# Fallback roots that are all explicit roots as well add nothing; this is
		# only known when the fallback listing fit into one page.
		explicit_uris = {ref.uri for ref in explicit}
		if len(fallback) <= self.page_size and all(ref.uri in explicit_uris for ref in fallback):
			return SourceMode.EXPLICIT
		return SourceMode.MIXED

	async def load_children(
		self,
		parent: str,
		continuation: TreeContinuation | None = None,
		scheme: str | None = None,
	) -> TreePage:
		"""
		Load one page of direct children of parent.

		Args:
			parent: Parent concept URI
			continuation: Token from the previous page, None for the first page
			scheme: When set, children outside this scheme get in_current_scope=False
		"""
		offset = continuation.offset if continuation else 0
		refs = await self._fetch(build_children_query(parent, self.capabilities, self.page_size + 1, offset))
		has_more = len(refs) > self.page_size
		refs = refs[:self.page_size]

		if scheme and refs:
			in_scope = await self._in_scheme(scheme, [ref.uri for ref in refs])
			for ref in refs:
				ref.in_current_scope = ref.uri in in_scope

		logger.debug(f"Children of {parent} at offset {offset}: {len(refs)} nodes, more={has_more}")
		next_continuation = TreeContinuation(offset=offset + self.page_size) if has_more else None
		return TreePage(items=await self._finish(refs), continuation=next_continuation)

	async def _fetch(self, query: str) -> list[ResourceRef]:
		rows = await self.executor.select(query, timeout=self.timeout)
		refs = refs_from_rows(rows, ResourceKind.CONCEPT)
		return sorted(refs, key=lambda ref: ref.uri)

	async def _in_scheme(self, scheme: str, uris: list[str]) -> set[str]:
		rows = await self.executor.select(
			build_scheme_membership_check_query(scheme, uris, self.capabilities),
			timeout=self.timeout,
		)
		return {uri for uri in (row_value(row, 'concept') for row in rows) if uri}

	async def _finish(self, refs: list[ResourceRef]) -> list[ResourceRef]:
		if self.verify_leaves:
			await self._verify_leaves(refs)
		if self.label_loader and refs:
			labels = await self.label_loader.load([ref.uri for ref in refs], ResourceKind.CONCEPT)
			apply_labels(refs, labels)
		return sort_nodes(refs)

	async def _verify_leaves(self, refs: list[ResourceRef]) -> None:
		leaves = [ref for ref in refs if not ref.has_children]
		if not leaves:
			return
		corrected = 0
		by_uri = {ref.uri: ref for ref in leaves}
		uris = list(by_uri)
		for start in range(0, len(uris), CHECK_BATCH_SIZE):
			batch = uris[start:start + CHECK_BATCH_SIZE]
			rows = await self.executor.select(build_children_check_query(batch), timeout=self.timeout)
			for row in rows:
				uri = row_value(row, 'concept')
				if uri in by_uri and row_bool(row, 'hasNarrower') and not by_uri[uri].has_children:
					by_uri[uri].has_children = True
					corrected += 1
		if corrected:
			logger.debug(f"Leaf verification corrected {corrected}/{len(leaves)} nodes")
