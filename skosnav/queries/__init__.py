"""
Query builders.

Pure functions producing SPARQL text from endpoint capabilities. Nothing in
this package performs I/O.
"""

from skosnav.queries.builder import (
	build_children_exists,
	build_hierarchy_clause,
	build_label_clause,
	build_membership_clause,
	paginate,
)
from skosnav.queries.placement import CostClass, PlacementStage

__all__ = [
	'CostClass',
	'PlacementStage',
	'build_children_exists',
	'build_hierarchy_clause',
	'build_label_clause',
	'build_membership_clause',
	'paginate',
]
