"""
Tree queries: root concepts of a scheme and children of a concept.

Each query pages distinct concepts in a sub-select ordered by URI, then joins
notation and a has-children existence flag onto the page.
"""

from skosnav.queries.builder import (
	build_children_exists,
	build_hierarchy_clause,
	build_membership_clause,
	build_no_parent_filter,
	build_top_concept_clause,
	membership_pattern,
)
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import Relationship, ResourceKind, values_clause

CONCEPT_VAR = '?concept'


def _paged(selection: str, capabilities: EndpointCapabilities | None, limit: int, offset: int) -> str:
	return f"""SELECT ?concept ?notation ?hasNarrower
WHERE {{
  {{
    SELECT DISTINCT ?concept
    WHERE {{
      {selection}
    }}
    ORDER BY ?concept
    LIMIT {limit}
    OFFSET {offset}
  }}
  OPTIONAL {{ ?concept skos:notation ?notation . }}
  {build_children_exists(CONCEPT_VAR, capabilities)}
}}"""


def explicit_roots_selection(scheme: str, capabilities: EndpointCapabilities | None) -> str:
	"""Concepts explicitly marked as top concepts of scheme."""
	return build_top_concept_clause(CONCEPT_VAR, scheme, capabilities)


def fallback_roots_selection(scheme: str, capabilities: EndpointCapabilities | None) -> str:
	"""Concepts in scheme with no parent in either hierarchy direction."""
	in_scheme = membership_pattern(CONCEPT_VAR, scheme, Relationship.IN_SCHEME, ResourceKind.CONCEPT)
	return f'{in_scheme}\n      {build_no_parent_filter(CONCEPT_VAR, capabilities)}'


def build_explicit_roots_query(scheme: str, capabilities: EndpointCapabilities | None, limit: int, offset: int) -> str:
	return _paged(explicit_roots_selection(scheme, capabilities), capabilities, limit, offset)


def build_fallback_roots_query(scheme: str, capabilities: EndpointCapabilities | None, limit: int, offset: int) -> str:
	return _paged(fallback_roots_selection(scheme, capabilities), capabilities, limit, offset)


def build_combined_roots_query(scheme: str, capabilities: EndpointCapabilities | None, limit: int, offset: int) -> str:
	"""Explicit and fallback roots in one ordered listing, used to continue mixed-mode pages."""
	selection = (
		f'{{ {explicit_roots_selection(scheme, capabilities)} }}\n'
		f'      UNION\n'
		f'      {{ {fallback_roots_selection(scheme, capabilities)} }}'
	)
	return _paged(selection, capabilities, limit, offset)


def build_children_query(parent: str, capabilities: EndpointCapabilities | None, limit: int, offset: int) -> str:
	"""Direct children of parent, found through either hierarchy direction."""
	return _paged(build_hierarchy_clause(CONCEPT_VAR, parent, capabilities), capabilities, limit, offset)


def build_children_check_query(uris: list[str]) -> str:
	"""
	Re-check which of uris have children using every hierarchy predicate.

	Runs without capabilities so a narrowed metadata query cannot leave a
	stale leaf behind.
	"""
	return f"""SELECT ?concept ?hasNarrower
WHERE {{
  {values_clause(CONCEPT_VAR, uris)}
  {build_children_exists(CONCEPT_VAR, None)}
}}"""


def build_scheme_membership_check_query(scheme: str, uris: list[str], capabilities: EndpointCapabilities | None) -> str:
	"""Which of uris belong to scheme directly."""
	return f"""SELECT DISTINCT ?concept
WHERE {{
  {values_clause(CONCEPT_VAR, uris)}
  {build_membership_clause(CONCEPT_VAR, scheme, capabilities, kind=None)}
}}"""
