"""
Navigator settings.

Provides centralized configuration for query timeouts, paging and discovery
strategies.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ORPHAN_STRATEGIES = ('auto', 'single', 'multi')
FALLBACK_ROOTS_POLICIES = ('always', 'when_needed')


@dataclass
class NavigatorSettings:
	"""Runtime configuration for one navigator instance."""

	# Per-call timeout for regular queries (seconds)
	query_timeout: float = 60.0

	# Per-call timeout for capability probes (seconds)
	probe_timeout: float = 10.0

	# Maximum number of probes in flight at once
	probe_concurrency: int = 4

	# Page sizes
	tree_page_size: int = 200
	discovery_page_size: int = 5000

	# Orphan detection strategy: auto, single or multi
	orphan_strategy: str = "auto"

	# Root fallback query policy: always or when_needed
	fallback_roots: str = "always"

	# Transport retries (0 disables retrying)
	retries: int = 0

	# Analysis records older than this are treated as missing (0 disables the check)
	analysis_max_age_days: int = 0

	def __post_init__(self):
		if self.orphan_strategy not in ORPHAN_STRATEGIES:
			raise ValueError(f"orphan_strategy must be one of {ORPHAN_STRATEGIES}, got {self.orphan_strategy!r}")
		if self.fallback_roots not in FALLBACK_ROOTS_POLICIES:
			raise ValueError(f"fallback_roots must be one of {FALLBACK_ROOTS_POLICIES}, got {self.fallback_roots!r}")
		if self.tree_page_size < 1 or self.discovery_page_size < 1:
			raise ValueError("page sizes must be positive")

	@classmethod
	def from_env(cls) -> "NavigatorSettings":
		"""
		Create configuration from environment variables.
		
		Environment variables:
		- SKOSNAV_QUERY_TIMEOUT: Query timeout in seconds (default: 60)
		- SKOSNAV_PROBE_TIMEOUT: Probe timeout in seconds (default: 10)
		- SKOSNAV_PROBE_CONCURRENCY: Concurrent probes (default: 4)
		- SKOSNAV_TREE_PAGE_SIZE: Tree page size (default: 200)
		- SKOSNAV_DISCOVERY_PAGE_SIZE: Discovery page size (default: 5000)
		- SKOSNAV_ORPHAN_STRATEGY: auto, single or multi (default: auto)
		- SKOSNAV_FALLBACK_ROOTS: always or when_needed (default: always)
		- SKOSNAV_RETRIES: Transport retries (default: 0)
		- SKOSNAV_ANALYSIS_MAX_AGE_DAYS: Analysis staleness limit (default: 0, disabled)
		"""
		return cls(
			query_timeout=float(os.getenv("SKOSNAV_QUERY_TIMEOUT", "60")),
			probe_timeout=float(os.getenv("SKOSNAV_PROBE_TIMEOUT", "10")),
			probe_concurrency=int(os.getenv("SKOSNAV_PROBE_CONCURRENCY", "4")),
			tree_page_size=int(os.getenv("SKOSNAV_TREE_PAGE_SIZE", "200")),
			discovery_page_size=int(os.getenv("SKOSNAV_DISCOVERY_PAGE_SIZE", "5000")),
			orphan_strategy=os.getenv("SKOSNAV_ORPHAN_STRATEGY", "auto").lower(),
			fallback_roots=os.getenv("SKOSNAV_FALLBACK_ROOTS", "always").lower(),
			retries=int(os.getenv("SKOSNAV_RETRIES", "0")),
			analysis_max_age_days=int(os.getenv("SKOSNAV_ANALYSIS_MAX_AGE_DAYS", "0")),
		)
