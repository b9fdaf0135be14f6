"""Endpoint capability probing and analysis."""

from skosnav.capabilities.analysis import (
	EndpointAnalyzer,
	capabilities_from_analysis,
	load_analysis,
	save_analysis,
)
from skosnav.capabilities.prober import CapabilityProber

__all__ = [
	'CapabilityProber',
	'EndpointAnalyzer',
	'capabilities_from_analysis',
	'load_analysis',
	'save_analysis',
]
