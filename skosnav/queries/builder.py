"""
Capability-aware SPARQL clause builders.

Every builder takes the endpoint capabilities (or None) and decides once per
call between the capability-aware shape (only sub-clauses whose capability is
True) and the full fallback shape (every known predicate). A known record that
leaves zero sub-clauses also falls back to the full shape, never to an empty
always-false union.

Builders are pure: no I/O, and capabilities are only read.
"""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import LabelType, Relationship, ResourceKind, iri, label_priority_for

T = TypeVar('T')

LABEL_VAR = '?label'
LABEL_LANG_VAR = '?labelLang'
LABEL_TYPE_VAR = '?labelType'


def select_available(full: Sequence[T], present: Iterable[T] | None) -> tuple[T, ...]:
	"""
	Pick the members of full that are known to be present.

	Args:
		full: Every option for the purpose, in emission order
		present: Options known to be present, or None when nothing is known

	Returns:
		The capability-aware subset, or full when present is None or the subset is empty
	"""
	if present is None:
		return tuple(full)
	present = set(present)
	selected = tuple(item for item in full if item in present)
	return selected or tuple(full)


def union(branches: Sequence[str]) -> str:
	"""Join group graph patterns with UNION."""
	return '\n  UNION\n  '.join(f'{{ {branch} }}' for branch in branches)


# =============================================================================
# Labels
# =============================================================================

def label_types_for(kind: ResourceKind, capabilities: EndpointCapabilities | None) -> tuple[LabelType, ...]:
	"""Label types a label query for kind should cover."""
	present = capabilities.present_label_types(kind) if capabilities else None
	return select_available(label_priority_for(kind), present)


def build_label_clause(
	subject: str,
	capabilities: EndpointCapabilities | None,
	kind: ResourceKind,
	label_var: str = LABEL_VAR,
	lang_var: str = LABEL_LANG_VAR,
	type_var: str = LABEL_TYPE_VAR,
) -> str:
	"""
	Build a UNION binding label, language and label type for subject.

	Not wrapped in OPTIONAL; callers decide whether labels are required.
	"""
	subject = iri(subject)
	branches = [
		f'{subject} {label_type.path} {label_var} . BIND("{label_type.value}" AS {type_var})'
		for label_type in label_types_for(kind, capabilities)
	]
	return f'{union(branches)}\n  BIND(LANG({label_var}) AS {lang_var})'


# =============================================================================
# Scheme membership and hierarchy
# =============================================================================

MEMBERSHIP_RELATIONSHIPS = (
	Relationship.IN_SCHEME,
	Relationship.TOP_CONCEPT_OF,
	Relationship.HAS_TOP_CONCEPT,
)

TOP_CONCEPT_RELATIONSHIPS = (
	Relationship.TOP_CONCEPT_OF,
	Relationship.HAS_TOP_CONCEPT,
)

HIERARCHY_RELATIONSHIPS = (
	Relationship.BROADER,
	Relationship.NARROWER,
)


def relationships_for(
	full: Sequence[Relationship],
	capabilities: EndpointCapabilities | None,
) -> tuple[Relationship, ...]:
	"""Capability-aware subset of full relationship predicates."""
	present = capabilities.present_relationships() if capabilities else None
	return select_available(full, present)


def membership_pattern(subject: str, scheme: str, relationship: Relationship, kind: ResourceKind | None = None) -> str:
	"""
	One direct scheme membership pattern.

	skos:inScheme is shared by every kind, so it carries a type guard when a
	kind is given; the top concept predicates already imply a concept.
	"""
	subject, scheme = iri(subject), iri(scheme)
	if relationship == Relationship.IN_SCHEME:
		guard = f' {subject} a {kind.rdf_type} .' if kind else ''
		return f'{subject} skos:inScheme {scheme} .{guard}'
	if relationship == Relationship.TOP_CONCEPT_OF:
		return f'{subject} skos:topConceptOf {scheme} .'
	if relationship == Relationship.HAS_TOP_CONCEPT:
		return f'{scheme} skos:hasTopConcept {subject} .'
	raise ValueError(f"{relationship.value} is not a scheme membership relationship")


def build_membership_clause(
	subject: str,
	scheme: str,
	capabilities: EndpointCapabilities | None,
	kind: ResourceKind | None = ResourceKind.CONCEPT,
) -> str:
	"""Union of direct ways subject can belong to scheme."""
	branches = [
		membership_pattern(subject, scheme, relationship, kind)
		for relationship in relationships_for(MEMBERSHIP_RELATIONSHIPS, capabilities)
	]
	return union(branches)


def build_top_concept_clause(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> str:
	"""Union of the ways subject can be a top concept of scheme."""
	branches = [
		membership_pattern(subject, scheme, relationship)
		for relationship in relationships_for(TOP_CONCEPT_RELATIONSHIPS, capabilities)
	]
	return union(branches)


def hierarchy_pattern(child: str, parent: str, relationship: Relationship) -> str:
	child, parent = iri(child), iri(parent)
	if relationship == Relationship.BROADER:
		return f'{child} skos:broader {parent} .'
	if relationship == Relationship.NARROWER:
		return f'{parent} skos:narrower {child} .'
	raise ValueError(f"{relationship.value} is not a direct hierarchy relationship")


def build_hierarchy_clause(child: str, parent: str, capabilities: EndpointCapabilities | None) -> str:
	"""Union of the ways child can sit directly below parent."""
	branches = [
		hierarchy_pattern(child, parent, relationship)
		for relationship in relationships_for(HIERARCHY_RELATIONSHIPS, capabilities)
	]
	return union(branches)


def build_children_exists(
	subject: str,
	capabilities: EndpointCapabilities | None,
	var: str = '?hasNarrower',
) -> str:
	"""
	BIND an existence test for "subject has at least one child".

	Uses EXISTS so the engine can stop at the first match. Both directions are
	checked: a child pointing up with skos:broader, or subject pointing down
	with skos:narrower.
	"""
	return f'BIND(EXISTS {{ {build_hierarchy_clause("[]", subject, capabilities)} }} AS {var})'


def build_no_parent_filter(subject: str, capabilities: EndpointCapabilities | None) -> str:
	"""FILTER NOT EXISTS excluding subjects placed below any other concept."""
	return f'FILTER NOT EXISTS {{ {build_hierarchy_clause(subject, "[]", capabilities)} }}'


def paginate(query: str, limit: int, offset: int) -> str:
	"""Append LIMIT/OFFSET to a query."""
	return f'{query.rstrip()}\nLIMIT {limit}\nOFFSET {offset}'
