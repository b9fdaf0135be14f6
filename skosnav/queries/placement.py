"""
Placement patterns: graph patterns tying a resource to a concept scheme.

Orphan detection and collection discovery share these patterns so that every
strategy built on them agrees on what "placed in a scheme" means. Patterns are
grouped into stages of increasing cost:

- direct: skos:inScheme, skos:topConceptOf, skos:hasTopConcept
- transitive: below a top concept through materialized transitive closure
- path: below a top concept through a skos:broader / skos:narrower property path
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from skosnav.queries.builder import (
	HIERARCHY_RELATIONSHIPS,
	MEMBERSHIP_RELATIONSHIPS,
	TOP_CONCEPT_RELATIONSHIPS,
	build_top_concept_clause,
	membership_pattern,
	relationships_for,
)
from skosnav.schemas.domain import EndpointCapabilities
from skosnav.sparql.vocabulary import Relationship, iri

TOP_VAR = '?top'

TRANSITIVE_RELATIONSHIPS = (
	Relationship.BROADER_TRANSITIVE,
	Relationship.NARROWER_TRANSITIVE,
)


class CostClass(str, Enum):
	"""Relative cost of a discovery stage."""

	CHEAP = "cheap"
	MODERATE = "moderate"
	EXPENSIVE = "expensive"


def may_use(capabilities: EndpointCapabilities | None, *relationships: Relationship) -> bool:
	"""True when any of the relationships is present, or nothing is known about relationships."""
	present = capabilities.present_relationships() if capabilities else None
	return present is None or any(rel in present for rel in relationships)


def uses_membership(capabilities: EndpointCapabilities | None, *relationships: Relationship) -> bool:
	"""True when the membership clause for these capabilities includes any of the relationships."""
	selected = relationships_for(MEMBERSHIP_RELATIONSHIPS, capabilities)
	return any(rel in selected for rel in relationships)


# =============================================================================
# Branch builders (subject, scheme, capabilities) -> list of group patterns
# =============================================================================

def in_scheme_branches(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> list[str]:
	return [membership_pattern(subject, scheme, Relationship.IN_SCHEME)]


def top_concept_branches(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> list[str]:
	return [
		membership_pattern(subject, scheme, relationship)
		for relationship in relationships_for(TOP_CONCEPT_RELATIONSHIPS, capabilities)
	]


def direct_branches(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> list[str]:
	return [
		membership_pattern(subject, scheme, relationship)
		for relationship in relationships_for(MEMBERSHIP_RELATIONSHIPS, capabilities)
	]


def _anchored(step: str, subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> str:
	anchor = build_top_concept_clause(TOP_VAR, scheme, capabilities)
	return f'{iri(subject)} {step} {TOP_VAR} . {anchor}'


def transitive_step(capabilities: EndpointCapabilities | None) -> str:
	"""Path step walking up through materialized transitive closure, in both directions."""
	steps = []
	for relationship in relationships_for(TRANSITIVE_RELATIONSHIPS, capabilities):
		if relationship == Relationship.BROADER_TRANSITIVE:
			steps.append('skos:broaderTransitive')
		else:
			steps.append('^skos:narrowerTransitive')
	return steps[0] if len(steps) == 1 else f'({"|".join(steps)})'


def path_step(capabilities: EndpointCapabilities | None) -> str:
	"""Property path walking up any number of direct hierarchy links, either direction."""
	steps = []
	for relationship in relationships_for(HIERARCHY_RELATIONSHIPS, capabilities):
		if relationship == Relationship.BROADER:
			steps.append('skos:broader')
		else:
			steps.append('^skos:narrower')
	return f'({"|".join(steps)})+'


def transitive_branches(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> list[str]:
	return [_anchored(transitive_step(capabilities), subject, scheme, capabilities)]


def path_branches(subject: str, scheme: str, capabilities: EndpointCapabilities | None) -> list[str]:
	return [_anchored(path_step(capabilities), subject, scheme, capabilities)]


# =============================================================================
# Stages
# =============================================================================

BranchBuilder = Callable[[str, str, EndpointCapabilities | None], list[str]]
AppliesWhen = Callable[[EndpointCapabilities | None, bool], bool]


def _always(capabilities: EndpointCapabilities | None, paranoid: bool) -> bool:
	return True


def _in_scheme_applies(capabilities: EndpointCapabilities | None, paranoid: bool) -> bool:
	return uses_membership(capabilities, Relationship.IN_SCHEME)


def _top_concept_applies(capabilities: EndpointCapabilities | None, paranoid: bool) -> bool:
	return uses_membership(capabilities, *TOP_CONCEPT_RELATIONSHIPS)


def _transitive_applies(capabilities: EndpointCapabilities | None, paranoid: bool) -> bool:
	return may_use(capabilities, *TRANSITIVE_RELATIONSHIPS)


def _path_applies(capabilities: EndpointCapabilities | None, paranoid: bool) -> bool:
	"""A property-path scan is only worth it when no transitive predicate is materialized."""
	if paranoid:
		return True
	return not (capabilities and capabilities.has_transitive)


@dataclass(frozen=True)
class PlacementStage:
	"""A named group of placement patterns with a cost class and an applicability rule."""

	id: str
	cost_class: CostClass
	branches: BranchBuilder
	applies_when: AppliesWhen

	def applies(self, capabilities: EndpointCapabilities | None, paranoid: bool = False) -> bool:
		return self.applies_when(capabilities, paranoid)


DIRECT = PlacementStage('direct', CostClass.CHEAP, direct_branches, _always)
IN_SCHEME = PlacementStage('in-scheme', CostClass.CHEAP, in_scheme_branches, _in_scheme_applies)
TOP_CONCEPT = PlacementStage('top-concept', CostClass.CHEAP, top_concept_branches, _top_concept_applies)
TRANSITIVE = PlacementStage('transitive', CostClass.MODERATE, transitive_branches, _transitive_applies)
PROPERTY_PATH = PlacementStage('property-path', CostClass.EXPENSIVE, path_branches, _path_applies)

# Orphan detection tests placement in any scheme
ORPHAN_PLACEMENT_STAGES: tuple[PlacementStage, ...] = (DIRECT, TRANSITIVE, PROPERTY_PATH)

# Collection discovery separates the two cheap direct checks
COLLECTION_PLACEMENT_STAGES: tuple[PlacementStage, ...] = (IN_SCHEME, TOP_CONCEPT, TRANSITIVE, PROPERTY_PATH)


def applicable_stages(
	stages: tuple[PlacementStage, ...],
	capabilities: EndpointCapabilities | None,
	paranoid: bool = False,
) -> list[PlacementStage]:
	"""Stages whose applicability rule holds, in declared order."""
	return [stage for stage in stages if stage.applies(capabilities, paranoid)]


def placement_branches(
	subject: str,
	scheme: str,
	capabilities: EndpointCapabilities | None,
	stages: tuple[PlacementStage, ...] = ORPHAN_PLACEMENT_STAGES,
	paranoid: bool = False,
) -> list[str]:
	"""Every applicable placement pattern, flattened in stage order."""
	branches: list[str] = []
	for stage in applicable_stages(stages, capabilities, paranoid):
		branches.extend(stage.branches(subject, scheme, capabilities))
	return branches
