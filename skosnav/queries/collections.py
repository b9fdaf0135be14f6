"""
Collection queries.

Collections of a scheme are found through their members' placement. Nested
collections are flagged with ?hasParentCollection but never filtered out here.
"""

from skosnav.queries.builder import union
from skosnav.queries.placement import PlacementStage
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import iri, values_clause

MEMBER_VAR = '?member'

HAS_PARENT_COLLECTION = """BIND(EXISTS {
    ?parentCollection skos:member ?collection .
  } AS ?hasParentCollection)"""

HAS_CHILD_COLLECTIONS = """BIND(EXISTS {
    ?collection skos:member ?childCollection .
    ?childCollection a skos:Collection .
  } AS ?hasChildCollections)"""


def build_collection_stage_query(
	scheme: str,
	stage: PlacementStage,
	capabilities: EndpointCapabilities | None,
) -> str:
	"""Collections with at least one member placed in scheme by the patterns of one stage."""
	branches = stage.branches(MEMBER_VAR, scheme, capabilities)
	return f"""SELECT DISTINCT ?collection ?hasParentCollection
WHERE {{
  ?collection skos:member ?member .
  {union(branches)}
  {HAS_PARENT_COLLECTION}
}}
ORDER BY ?collection"""


def build_child_collection_flags_query(uris: list[str]) -> str:
	"""Which of uris contain nested collections."""
	return f"""SELECT ?collection ?hasChildCollections
WHERE {{
  {values_clause("?collection", uris)}
  {HAS_CHILD_COLLECTIONS}
}}"""


def build_child_collections_query(parent: str) -> str:
	"""Collections that are members of parent."""
	return f"""SELECT DISTINCT ?collection ?hasChildCollections
WHERE {{
  {iri(parent)} skos:member ?collection .
  ?collection a skos:Collection .
  {HAS_CHILD_COLLECTIONS}
}}
ORDER BY ?collection"""
