"""
Orphan detection queries.

An orphan concept matches no placement pattern. An orphan collection has no
member that matches a placement pattern. Every query orders by ?resource so
pages are stable; LIMIT/OFFSET are appended by the caller.
"""

from skosnav.queries.builder import union
from skosnav.queries.placement import ORPHAN_PLACEMENT_STAGES, PlacementStage, placement_branches
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import ResourceKind

RESOURCE_VAR = '?resource'
MEMBER_VAR = '?member'
ANY_SCHEME = '?scheme'

ORPHAN_KINDS = (ResourceKind.CONCEPT, ResourceKind.COLLECTION)


def _check_kind(kind: ResourceKind) -> None:
	if kind not in ORPHAN_KINDS:
		raise ValueError(f"Orphan detection supports concepts and collections, not {kind.value}")


def _placed_subject(kind: ResourceKind) -> tuple[str, str]:
	"""Variable tested for placement, and the pattern linking it to ?resource."""
	if kind == ResourceKind.COLLECTION:
		return MEMBER_VAR, f'{RESOURCE_VAR} skos:member {MEMBER_VAR} .'
	return RESOURCE_VAR, ''


def build_all_resources_query(kind: ResourceKind) -> str:
	"""Every resource of kind."""
	_check_kind(kind)
	return f"""SELECT DISTINCT ?resource
WHERE {{
  ?resource a {kind.rdf_type} .
}}
ORDER BY ?resource"""


def build_single_orphan_query(
	kind: ResourceKind,
	capabilities: EndpointCapabilities | None,
	paranoid: bool = False,
) -> str:
	"""One negated-existence query over the union of every applicable placement pattern."""
	_check_kind(kind)
	subject, link = _placed_subject(kind)
	branches = placement_branches(subject, ANY_SCHEME, capabilities, ORPHAN_PLACEMENT_STAGES, paranoid)
	return f"""SELECT DISTINCT ?resource
WHERE {{
  ?resource a {kind.rdf_type} .
  FILTER NOT EXISTS {{
    {link}
    {union(branches)}
  }}
}}
ORDER BY ?resource"""


def build_placed_query(
	kind: ResourceKind,
	stage: PlacementStage,
	capabilities: EndpointCapabilities | None,
) -> str:
	"""Resources of kind placed by the patterns of one stage."""
	_check_kind(kind)
	subject, link = _placed_subject(kind)
	branches = stage.branches(subject, ANY_SCHEME, capabilities)
	return f"""SELECT DISTINCT ?resource
WHERE {{
  ?resource a {kind.rdf_type} .
  {link}
  {union(branches)}
}}
ORDER BY ?resource"""
