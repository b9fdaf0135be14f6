"""
Discovery Session

Shared navigation state for one endpoint, passed explicitly to whoever needs
it:
- endpoint capabilities and language settings
- the tree paginator and label loader built from them
- running discovery tasks with their cancellation tokens

Holders acquire and release the session; when the last holder releases it,
running tasks are cancelled. A ScopeChanged message cancels every running
discovery and resets paginator state.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from skosnav.config.features import FeatureFlags, get_feature_flags
from skosnav.config.settings import NavigatorSettings
from skosnav.discovery.collections import CollectionDiscovery
from skosnav.discovery.engine import CancellationToken
from skosnav.discovery.orphans import OrphanDetector, OrphanResult, OrphanStrategy
from skosnav.discovery.progress import DiscoverySnapshot, ProgressObserver
from skosnav.labels.loader import LabelLoader
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.vocabulary import ResourceKind
from skosnav.tree.paginator import TreePaginator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopeChanged:
	"""The navigation scope moved: another scheme, or refreshed capabilities."""
	scheme: str | None = None
	capabilities: EndpointCapabilities | None = None
	reason: str = ''


class DiscoverySession:
	"""Reference-counted navigation context for one endpoint."""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		settings: NavigatorSettings | None = None,
		flags: FeatureFlags | None = None,
		preferred_language: str | None = None,
		language_priorities: Sequence[str] = (),
		observer: ProgressObserver | None = None,
	):
		self.executor = executor
		self.capabilities = capabilities
		self.settings = settings or NavigatorSettings()
		self.flags = flags or get_feature_flags()
		self.preferred_language = preferred_language
		self.language_priorities = list(language_priorities)
		self.observer = observer
		self.scheme: str | None = None

		self._refs = 0
		self._runs: dict[asyncio.Task, CancellationToken] = {}
		self._paginator: TreePaginator | None = None
		self._label_loader: LabelLoader | None = None

	# =========================================================================
	# Lifecycle
	# =========================================================================

	def acquire(self) -> "DiscoverySession":
		self._refs += 1
		return self

	async def release(self) -> None:
		"""Drop one reference; the last one closes the session."""
		if self._refs == 0:
			logger.warning("⚠️  DiscoverySession released more often than acquired")
			return
		self._refs -= 1
		if self._refs == 0:
			await self.close()

	@property
	def ref_count(self) -> int:
		return self._refs

	async def __aenter__(self) -> "DiscoverySession":
		return self.acquire()

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.release()

	async def close(self) -> None:
		"""Cancel every running discovery task."""
		await self._cancel_runs()
		self._paginator = None
		self._label_loader = None
		logger.debug("DiscoverySession closed")

	# =========================================================================
	# Scope
	# =========================================================================

	async def change_scope(self, message: ScopeChanged) -> None:
		"""Cancel running discoveries and reset paging state for the new scope."""
		cancelled = await self._cancel_runs()
		logger.info(f"🔄 Scope changed ({message.reason or 'no reason given'}), cancelled {cancelled} discovery runs")
		self.scheme = message.scheme
		if message.capabilities is not None:
			self.capabilities = message.capabilities
			self._paginator = None
			self._label_loader = None
		if self._paginator:
			self._paginator.reset()

	async def _cancel_runs(self) -> int:
		runs = list(self._runs.items())
		for task, token in runs:
			token.cancel()
			task.cancel()
		if runs:
			await asyncio.gather(*(task for task, _ in runs), return_exceptions=True)
		self._runs.clear()
		return len(runs)

	@property
	def running(self) -> int:
		return sum(1 for task in self._runs if not task.done())

	# =========================================================================
	# Components
	# =========================================================================

	@property
	def label_loader(self) -> LabelLoader:
		if self._label_loader is None:
			self._label_loader = LabelLoader(
				self.executor,
				capabilities=self.capabilities,
				preferred=self.preferred_language,
				priorities=self.language_priorities,
				progressive=self.flags.progressive_labels_enabled,
				timeout=self.settings.query_timeout,
			)
		return self._label_loader

	@property
	def paginator(self) -> TreePaginator:
		if self._paginator is None:
			self._paginator = TreePaginator(
				self.executor,
				capabilities=self.capabilities,
				page_size=self.settings.tree_page_size,
				fallback_roots=self.settings.fallback_roots,
				label_loader=self.label_loader,
				verify_leaves=self.flags.leaf_verification_enabled,
				timeout=self.settings.query_timeout,
			)
		return self._paginator

	def orphan_detector(self) -> OrphanDetector:
		return OrphanDetector(
			self.executor,
			capabilities=self.capabilities,
			page_size=self.settings.discovery_page_size,
			timeout=self.settings.query_timeout,
			observer=self.observer,
			paranoid=self.flags.paranoid_discovery_enabled,
		)

	def collection_discovery(self) -> CollectionDiscovery:
		return CollectionDiscovery(
			self.executor,
			capabilities=self.capabilities,
			page_size=self.settings.discovery_page_size,
			timeout=self.settings.query_timeout,
			observer=self.observer,
			paranoid=self.flags.paranoid_discovery_enabled,
			label_loader=self.label_loader,
		)

	# =========================================================================
	# Discovery runs
	# =========================================================================

	def start_orphans(
		self,
		kind: ResourceKind = ResourceKind.CONCEPT,
		strategy: OrphanStrategy | str | None = None,
	) -> "asyncio.Task[OrphanResult]":
		"""Start orphan detection in the background. Cancelled by the next scope change."""
		token = CancellationToken()
		detector = self.orphan_detector()
		coro = detector.detect(kind, strategy or self.settings.orphan_strategy, token=token)
		return self._track(asyncio.create_task(coro, name=f'orphans-{kind.value}'), token)

	def start_collections(self, scheme: str | None = None) -> "asyncio.Task[DiscoverySnapshot]":
		"""Start collection discovery for scheme (default: the current scheme) in the background."""
		scheme = scheme or self.scheme
		if not scheme:
			raise ValueError("No scheme selected for collection discovery")
		token = CancellationToken()
		coro = self.collection_discovery().discover(scheme, token=token)
		return self._track(asyncio.create_task(coro, name='collections'), token)

	def _track(self, task: asyncio.Task, token: CancellationToken) -> asyncio.Task:
		self._runs[task] = token
		task.add_done_callback(lambda finished: self._runs.pop(finished, None))
		return task
