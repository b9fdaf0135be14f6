"""
Staged discovery.

A generic cost-ordered discovery engine and its two instantiations: orphan
detection and collection discovery.
"""

from skosnav.discovery.collections import CollectionDiscovery
from skosnav.discovery.engine import CancellationToken, DiscoverySet, DiscoveryStage, StagedDiscoveryEngine
from skosnav.discovery.orphans import OrphanDetector, OrphanResult, OrphanStrategy
from skosnav.discovery.progress import (
	CollectingProgressObserver,
	CompositeProgressObserver,
	DiscoverySnapshot,
	DiscoveryState,
	LoggingProgressObserver,
	ProgressObserver,
)

__all__ = [
	'CancellationToken',
	'CollectingProgressObserver',
	'CollectionDiscovery',
	'CompositeProgressObserver',
	'DiscoverySet',
	'DiscoverySnapshot',
	'DiscoveryStage',
	'DiscoveryState',
	'LoggingProgressObserver',
	'OrphanDetector',
	'OrphanResult',
	'OrphanStrategy',
	'ProgressObserver',
	'StagedDiscoveryEngine',
]
