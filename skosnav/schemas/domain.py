"""
Navigation data schemas.

This module defines Pydantic models for endpoint capabilities, the persisted
endpoint analysis record, label candidates and the resource references and
pages handed to the presentation layer.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from skosnav.sparql.vocabulary import LabelType, Relationship, ResourceKind, ResultFormat

logger = logging.getLogger(__name__)

Tristate = bool | None


# =============================================================================
# Capabilities
# =============================================================================

class EndpointCapabilities(BaseModel):
	"""
	Immutable capability record for one endpoint.

	Every value is tri-state: True (present), False (absent) or None (unknown).
	Callers treat False and None identically as "assume absent"; builders only
	use the distinction to decide between the capability-aware and the full
	fallback query shape.
	"""

	model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

	relationships: dict[Relationship, Tristate] = Field(default_factory=dict)
	label_predicates: dict[ResourceKind, dict[LabelType, Tristate]] = Field(default_factory=dict)
	result_formats: dict[ResultFormat, Tristate] = Field(default_factory=dict)

	@model_validator(mode='after')
	def _read_only_maps(self) -> "EndpointCapabilities":
		# Maps are read-only views; frozen=True alone leaves the dicts mutable
		object.__setattr__(self, 'relationships', MappingProxyType(dict(self.relationships)))
		object.__setattr__(self, 'label_predicates', MappingProxyType({
			kind: MappingProxyType(dict(by_type)) for kind, by_type in self.label_predicates.items()
		}))
		object.__setattr__(self, 'result_formats', MappingProxyType(dict(self.result_formats)))
		return self

	@field_serializer('relationships', 'label_predicates', 'result_formats')
	def _serialize_map(self, value: Mapping) -> dict:
		return {key: dict(item) if isinstance(item, Mapping) else item for key, item in value.items()}

	@classmethod
	def unknown(cls) -> "EndpointCapabilities":
		"""Capabilities of an endpoint nothing is known about."""
		return cls()

	@property
	def is_unknown(self) -> bool:
		values = list(self.relationships.values()) + list(self.result_formats.values())
		for by_type in self.label_predicates.values():
			values.extend(by_type.values())
		return all(v is None for v in values)

	def has(self, relationship: Relationship) -> bool:
		"""True only when the relationship is known to be present."""
		return self.relationships.get(relationship) is True

	def present_relationships(self) -> set[Relationship] | None:
		"""Relationships known to be present, or None when nothing is known about relationships."""
		if all(v is None for v in self.relationships.values()):
			return None
		return {rel for rel, value in self.relationships.items() if value is True}

	def present_label_types(self, kind: ResourceKind) -> set[LabelType] | None:
		"""Label types known to be present for a kind, or None when unknown."""
		by_type = self.label_predicates.get(kind, {})
		if all(v is None for v in by_type.values()):
			return None
		return {label_type for label_type, value in by_type.items() if value is True}

	@property
	def has_transitive(self) -> bool:
		return self.has(Relationship.BROADER_TRANSITIVE) or self.has(Relationship.NARROWER_TRANSITIVE)


# =============================================================================
# Persisted analysis record
# =============================================================================

class DetectedLanguage(BaseModel):
	"""A language tag found on labels, with its literal count."""

	model_config = ConfigDict(extra='ignore')

	lang: str
	count: int = Field(ge=0)


class EndpointAnalysis(BaseModel):
	"""
	Result of the offline analysis pass for one endpoint.

	Serialized with camelCase field names; the JSON layout is shared with
	previously written analysis files and must stay stable.
	"""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

	has_skos_content: bool | None = None
	supports_named_graphs: bool | None = None
	skos_graph_count: int | None = None
	skos_graph_uris: list[str] | None = None
	languages: list[DetectedLanguage] = Field(default_factory=list)
	total_concepts: int | None = None
	relationships: dict[Relationship, Tristate] = Field(default_factory=dict)
	scheme_uris: list[str] = Field(default_factory=list)
	scheme_count: int = 0
	schemes_limited: bool = False
	label_predicates: dict[ResourceKind, dict[LabelType, Tristate]] = Field(default_factory=dict)
	result_formats: dict[ResultFormat, Tristate] = Field(default_factory=dict)
	analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

	def capabilities(self) -> EndpointCapabilities:
		"""Capability view of this analysis."""
		return EndpointCapabilities(
			relationships=dict(self.relationships),
			label_predicates={kind: dict(by_type) for kind, by_type in self.label_predicates.items()},
			result_formats=dict(self.result_formats),
		)


# =============================================================================
# Endpoint configuration
# =============================================================================

class AuthType(str, Enum):
	"""Authentication schemes an endpoint may require."""

	NONE = "none"
	BASIC = "basic"
	APIKEY = "apikey"
	BEARER = "bearer"


class EndpointAuth(BaseModel):
	"""Credentials for an endpoint."""

	model_config = ConfigDict(extra='forbid')

	type: AuthType = AuthType.NONE
	username: str | None = None
	password: str | None = None
	token: str | None = None
	api_key: str | None = None
	header_name: str = Field(default="X-API-Key", description="Header carrying the API key")


class SparqlEndpoint(BaseModel):
	"""A configured SPARQL endpoint."""

	model_config = ConfigDict(extra='forbid')

	url: str = Field(description="SPARQL query URL")
	name: str | None = None
	auth: EndpointAuth | None = None
	language_priorities: list[str] = Field(default_factory=list)
	analysis: EndpointAnalysis | None = None

	@field_validator('url')
	@classmethod
	def validate_url(cls, v: str) -> str:
		"""Validate the endpoint URL is absolute http(s)."""
		parsed = urlparse(v)
		if parsed.scheme not in ('http', 'https') or not parsed.netloc:
			raise ValueError(f"Endpoint URL must be an absolute http(s) URL, got: {v}")
		return v


# =============================================================================
# Labels
# =============================================================================

class LabelCandidate(BaseModel):
	"""One label-bearing literal found for a resource."""

	model_config = ConfigDict(frozen=True)

	value: str
	language: str = ""
	predicate_type: LabelType | str


class ResolvedLabel(BaseModel):
	"""The display label picked for a resource."""

	model_config = ConfigDict(frozen=True)

	text: str
	language: str = ""
	predicate_type: LabelType | str


# =============================================================================
# Tree nodes and pages
# =============================================================================

class ResourceRef(BaseModel):
	"""
	A resource as shown in a tree or discovery list.

	Created when a result page is processed. Labels are attached in a second
	pass; has_children may still be corrected by the leaf verification query.
	"""

	model_config = ConfigDict(validate_assignment=True)

	uri: str
	kind: ResourceKind
	label: ResolvedLabel | None = None
	notation: str | None = None
	has_children: bool = False
	in_current_scope: bool = True
	nested: bool = False

	@property
	def display_text(self) -> str:
		"""Label text, else notation, else the URI."""
		if self.label:
			return self.label.text
		return self.notation or self.uri


class SourceMode(str, Enum):
	"""Which root queries contributed to a paginated result set."""

	EXPLICIT = "explicit"
	FALLBACK = "fallback"
	MIXED = "mixed"


class TreeContinuation(BaseModel):
	"""Opaque-to-callers token for the next page of a listing."""

	model_config = ConfigDict(frozen=True)

	offset: int = Field(ge=0)
	source_mode: SourceMode | None = None


class TreePage(BaseModel):
	"""One page of tree nodes."""

	items: list[ResourceRef] = Field(default_factory=list)
	continuation: TreeContinuation | None = None
	source_mode: SourceMode | None = None

	@property
	def has_more(self) -> bool:
		return self.continuation is not None
