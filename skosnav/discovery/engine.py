"""
Staged Discovery Engine

Runs an ordered list of discovery stages against an endpoint, cheapest first,
merging each stage's results into an append-only, de-duplicated set and
emitting a snapshot after every stage.

Rules:
- stages run strictly in declared order, one at a time
- a stage runs if and only if its applicability rule holds
- a stage's rows are merged only once the stage has completed
- cancellation discards the running stage's rows; a later-stage failure keeps
  every stage merged before it
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from skosnav.discovery.progress import DiscoverySnapshot, DiscoveryState, ProgressObserver
from skosnav.queries.builder import paginate
from skosnav.queries.placement import CostClass
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.schemas.errors import DiscoveryAborted, SparqlError
from skosnav.sparql.executor import QueryExecutor
from skosnav.sparql.results import Row, row_bool, row_value

logger = logging.getLogger(__name__)


def _always(capabilities: EndpointCapabilities | None) -> bool:
	return True


@dataclass(frozen=True)
class DiscoveryStage:
	"""
	One stage of a discovery run.

	query is a complete, ordered SELECT without LIMIT/OFFSET; the engine pages it.
	"""
	id: str
	cost_class: CostClass
	query: str
	applies_when: Callable[[EndpointCapabilities | None], bool] = _always
	uri_var: str = 'resource'
	nested_var: str | None = None


class CancellationToken:
	"""Cooperative cancellation flag shared between a run and whoever owns its scope."""

	def __init__(self):
		self._cancelled = False

	def cancel(self) -> None:
		self._cancelled = True

	@property
	def cancelled(self) -> bool:
		return self._cancelled


class DiscoverySet:
	"""Insertion-ordered, de-duplicated URIs with a parallel nested flag. Never shrinks."""

	def __init__(self):
		self._nested: dict[str, bool] = {}

	def __len__(self) -> int:
		return len(self._nested)

	def __contains__(self, uri: str) -> bool:
		return uri in self._nested

	def __iter__(self):
		return iter(self._nested)

	def add(self, uri: str, nested: bool = False) -> bool:
		"""Add uri. Returns True if it was new. A nested flag, once set, stays set."""
		if uri in self._nested:
			self._nested[uri] = self._nested[uri] or nested
			return False
		self._nested[uri] = nested
		return True

	def merge(self, items: Iterable[tuple[str, bool]]) -> int:
		"""Add every (uri, nested) pair; returns how many URIs were new."""
		return sum(1 for uri, nested in items if self.add(uri, nested))

	@property
	def uris(self) -> tuple[str, ...]:
		return tuple(self._nested)

	@property
	def nested(self) -> dict[str, bool]:
		return dict(self._nested)


class StagedDiscoveryEngine:
	"""
	Generic staged discovery runner.

	One engine instance serves one scope (endpoint plus capabilities). Every
	call to run() starts from stage 0 with a fresh DiscoverySet.
	"""

	def __init__(
		self,
		executor: QueryExecutor,
		capabilities: EndpointCapabilities | None = None,
		page_size: int = 5000,
		timeout: float | None = None,
		observer: ProgressObserver | None = None,
	):
		"""
		Initialize engine.

		Args:
			executor: Query executor
			capabilities: Endpoint capabilities (None when unknown)
			page_size: Rows per page; each page request asks for one more to detect the end
			timeout: Per-query timeout
			observer: Receives stage starts, snapshots and errors
		"""
		self.executor = executor
		self.capabilities = capabilities
		self.page_size = page_size
		self.timeout = timeout
		self.observer = observer
		self.state = DiscoveryState.IDLE

	async def run(
		self,
		stages: list[DiscoveryStage],
		run_id: str | None = None,
		token: CancellationToken | None = None,
	) -> DiscoverySnapshot:
		"""
		Run stages in order.

		Returns:
			Final snapshot: DONE with the full set, or FAILED with the set as
			merged before the failing stage and the error

		Raises:
			DiscoveryAborted: If the token is cancelled mid-run
			asyncio.CancelledError: If the task running the discovery is cancelled
		"""
		run_id = run_id or uuid.uuid4().hex[:8]
		token = token or CancellationToken()
		found = DiscoverySet()
		applicable = [stage for stage in stages if stage.applies_when(self.capabilities)]
		skipped = [stage.id for stage in stages if stage not in applicable]
		if skipped:
			logger.debug(f"[{run_id}] Skipping stages: {', '.join(skipped)}")

		completed = 0
		stage: DiscoveryStage | None = None
		try:
			for index, stage in enumerate(applicable):
				self._check(token, run_id, stage.id)
				self.state = DiscoveryState.RUNNING_STAGE
				if self.observer:
					await self.observer.on_stage_started(run_id, stage.id, index, len(applicable))

				rows = await self.fetch_all(stage.query, token, run_id, stage.id)

				self._check(token, run_id, stage.id)
				self.state = DiscoveryState.MERGING
				added = found.merge(self._items(stage, rows))
				completed += 1
				logger.info(f"[{run_id}] Stage {stage.id}: {len(rows)} rows, {added} new, {len(found)} total")
				await self._emit(self._snapshot(run_id, DiscoveryState.RUNNING_STAGE, found, stage.id, completed, len(applicable)))

		except DiscoveryAborted:
			self.state = DiscoveryState.ABORTED
			logger.info(f"[{run_id}] Discovery aborted during stage {stage.id if stage else 'N/A'}")
			raise
		except asyncio.CancelledError:
			self.state = DiscoveryState.ABORTED
			logger.info(f"[{run_id}] Discovery task cancelled")
			raise
		except SparqlError as e:
			self.state = DiscoveryState.FAILED
			stage_id = stage.id if stage else None
			logger.error(f"[{run_id}] Stage {stage_id} failed, keeping {len(found)} results: {e}", exc_info=True)
			if self.observer:
				await self.observer.on_error(run_id, stage_id, str(e))
			snapshot = self._snapshot(run_id, DiscoveryState.FAILED, found, stage_id, completed, len(applicable), error=e)
			await self._emit(snapshot)
			return snapshot

		self.state = DiscoveryState.DONE
		snapshot = self._snapshot(run_id, DiscoveryState.DONE, found, stage.id if stage else None, completed, len(applicable))
		await self._emit(snapshot)
		return snapshot

	async def fetch_all(
		self,
		query: str,
		token: CancellationToken | None = None,
		run_id: str = '',
		stage_id: str | None = None,
	) -> list[Row]:
		"""Page through query until a page comes back without its extra row."""
		rows: list[Row] = []
		offset = 0
		while True:
			if token:
				self._check(token, run_id, stage_id)
			page = await self.executor.select(paginate(query, self.page_size + 1, offset), timeout=self.timeout)
			rows.extend(page[:self.page_size])
			if len(page) <= self.page_size:
				return rows
			offset += self.page_size
			logger.debug(f"[{run_id}] {stage_id or 'query'}: {len(rows)} rows so far, fetching offset {offset}")

	def _items(self, stage: DiscoveryStage, rows: list[Row]) -> list[tuple[str, bool]]:
		items = []
		for row in rows:
			uri = row_value(row, stage.uri_var)
			if uri:
				items.append((uri, row_bool(row, stage.nested_var) if stage.nested_var else False))
		return items

	def _check(self, token: CancellationToken, run_id: str, stage_id: str | None) -> None:
		if token.cancelled:
			raise DiscoveryAborted(run_id, stage_id)

	def _snapshot(
		self,
		run_id: str,
		state: DiscoveryState,
		found: DiscoverySet,
		stage_id: str | None,
		completed: int,
		total: int,
		error: SparqlError | None = None,
	) -> DiscoverySnapshot:
		return DiscoverySnapshot(
			run_id=run_id,
			state=state,
			uris=found.uris,
			nested=found.nested,
			stage_id=stage_id,
			stages_completed=completed,
			stages_total=total,
			error=str(error) if error else None,
			error_code=error.code.value if error else None,
		)

	async def _emit(self, snapshot: DiscoverySnapshot) -> None:
		if self.observer:
			await self.observer.on_snapshot(snapshot)
