"""
Schemas for skosnav.

Usage:
    from skosnav.schemas import EndpointCapabilities, ResourceRef
    from skosnav.schemas import SparqlError, ErrorCode
"""

from skosnav.schemas.domain import (
	AuthType,
	DetectedLanguage,
	EndpointAnalysis,
	EndpointAuth,
	EndpointCapabilities,
	LabelCandidate,
	ResolvedLabel,
	ResourceRef,
	SourceMode,
	SparqlEndpoint,
	TreeContinuation,
	TreePage,
)
from skosnav.schemas.errors import (
	DiscoveryAborted,
	ErrorCode,
	MalformedResultError,
	QueryTimeoutError,
	SparqlError,
	SparqlTransportError,
)

__all__ = [
	'AuthType',
	'DetectedLanguage',
	'DiscoveryAborted',
	'EndpointAnalysis',
	'EndpointAuth',
	'EndpointCapabilities',
	'ErrorCode',
	'LabelCandidate',
	'MalformedResultError',
	'QueryTimeoutError',
	'ResolvedLabel',
	'ResourceRef',
	'SourceMode',
	'SparqlEndpoint',
	'SparqlError',
	'SparqlTransportError',
	'TreeContinuation',
	'TreePage',
]
