"""
Progress observers for discovery runs.

A discovery run emits a snapshot of its result set after every completed
stage, so callers can render partial results before the run finishes.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class DiscoveryState(str, Enum):
	"""Lifecycle of one discovery run."""

	IDLE = "idle"
	RUNNING_STAGE = "running_stage"
	MERGING = "merging"
	DONE = "done"
	ABORTED = "aborted"
	FAILED = "failed"


@dataclass
class DiscoverySnapshot:
	"""View of a discovery run after a stage."""
	run_id: str
	state: DiscoveryState
	uris: tuple[str, ...] = ()
	nested: dict[str, bool] = field(default_factory=dict)
	stage_id: str | None = None
	stages_completed: int = 0
	stages_total: int = 0
	error: str | None = None
	error_code: str | None = None
	timestamp: str | None = None

	@property
	def size(self) -> int:
		return len(self.uris)

	def top_level(self) -> list[str]:
		"""URIs not flagged as nested."""
		return [uri for uri in self.uris if not self.nested.get(uri, False)]

	def to_dict(self) -> dict[str, Any]:
		"""Convert to dictionary."""
		data = asdict(self)
		data['state'] = self.state.value
		data['uris'] = list(self.uris)
		if not data.get('timestamp'):
			data['timestamp'] = datetime.now(timezone.utc).isoformat()
		return data


class ProgressObserver(ABC):
	"""Abstract base class for discovery progress observers."""

	@abstractmethod
	async def on_stage_started(self, run_id: str, stage_id: str, index: int, total: int) -> None:
		"""Handle the start of a stage."""
		pass

	@abstractmethod
	async def on_snapshot(self, snapshot: DiscoverySnapshot) -> None:
		"""Handle a snapshot emitted after a stage or at the end of a run."""
		pass

	@abstractmethod
	async def on_error(self, run_id: str, stage_id: str | None, error: str) -> None:
		"""Handle a failed stage."""
		pass


class LoggingProgressObserver(ProgressObserver):
	"""Simple logging-based progress observer."""

	async def on_stage_started(self, run_id: str, stage_id: str, index: int, total: int) -> None:
		"""Log stage start."""
		logger.debug(f"[{run_id}] Stage {index + 1}/{total}: {stage_id}")

	async def on_snapshot(self, snapshot: DiscoverySnapshot) -> None:
		"""Log snapshot."""
		logger.info(
			f"[{snapshot.run_id}] {snapshot.state.value} | "
			f"Stages: {snapshot.stages_completed}/{snapshot.stages_total} | "
			f"Found: {snapshot.size} | "
			f"Last stage: {snapshot.stage_id or 'N/A'}"
		)

	async def on_error(self, run_id: str, stage_id: str | None, error: str) -> None:
		"""Log error."""
		logger.error(f"[{run_id}] Stage {stage_id or 'N/A'} failed: {error}")


class CollectingProgressObserver(ProgressObserver):
	"""Keeps every snapshot in memory, in emission order."""

	def __init__(self):
		self.snapshots: list[DiscoverySnapshot] = []
		self.stages_started: list[str] = []
		self.errors: list[str] = []

	async def on_stage_started(self, run_id: str, stage_id: str, index: int, total: int) -> None:
		self.stages_started.append(stage_id)

	async def on_snapshot(self, snapshot: DiscoverySnapshot) -> None:
		self.snapshots.append(snapshot)

	async def on_error(self, run_id: str, stage_id: str | None, error: str) -> None:
		self.errors.append(error)


class CompositeProgressObserver(ProgressObserver):
	"""Composite observer that forwards to multiple observers."""

	def __init__(self, observers: list[ProgressObserver]):
		"""
		Initialize composite observer.

		Args:
			observers: List of progress observers
		"""
		self.observers = observers

	async def on_stage_started(self, run_id: str, stage_id: str, index: int, total: int) -> None:
		"""Forward to all observers."""
		await asyncio.gather(
			*[obs.on_stage_started(run_id, stage_id, index, total) for obs in self.observers],
			return_exceptions=True,
		)

	async def on_snapshot(self, snapshot: DiscoverySnapshot) -> None:
		"""Forward to all observers."""
		await asyncio.gather(
			*[obs.on_snapshot(snapshot) for obs in self.observers],
			return_exceptions=True,
		)

	async def on_error(self, run_id: str, stage_id: str | None, error: str) -> None:
		"""Forward to all observers."""
		await asyncio.gather(
			*[obs.on_error(run_id, stage_id, error) for obs in self.observers],
			return_exceptions=True,
		)
