"""
Result rows to ResourceRef assembly.

Groups rows per resource (one resource can span several rows when it carries
several notations), picks a notation, and orders nodes for display.
"""

import re
from collections.abc import Iterable

from skosnav.schemas.domain import ResolvedLabel, ResourceRef
from skosnav.sparql.results import Row, row_bool, row_value
from skosnav.sparql.vocabulary import ResourceKind

_LEADING_NUMBER = re.compile(r'^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?')


def parse_number(text: str) -> float | None:
	"""Numeric value of a notation's leading number ("12.3b" -> 12.3), or None."""
	match = _LEADING_NUMBER.match(text)
	return float(match.group(0)) if match else None


def pick_best_notation(notations: Iterable[str]) -> str | None:
	"""Smallest numeric notation, else the first one alphabetically."""
	notations = list(dict.fromkeys(notations))
	if not notations:
		return None
	numeric = [(value, parse_number(value)) for value in notations]
	numeric = [(value, number) for value, number in numeric if number is not None]
	if numeric:
		return min(numeric, key=lambda pair: (pair[1], pair[0]))[0]
	return min(notations)


def node_sort_key(node: ResourceRef) -> tuple:
	"""
	Display order: nodes with a notation first (numeric ones by value, then
	the rest by notation text), then nodes without one by label or URI.
	"""
	if node.notation:
		number = parse_number(node.notation)
		if number is not None:
			return (0, 0, number, node.notation, node.uri)
		return (0, 1, 0.0, node.notation, node.uri)
	return (1, 0, 0.0, node.display_text.casefold(), node.uri)


def sort_nodes(nodes: Iterable[ResourceRef]) -> list[ResourceRef]:
	return sorted(nodes, key=node_sort_key)


def refs_from_rows(
	rows: Iterable[Row],
	kind: ResourceKind,
	uri_var: str = 'concept',
	has_children_var: str | None = 'hasNarrower',
	nested_var: str | None = None,
) -> list[ResourceRef]:
	"""One ResourceRef per distinct URI, in first-seen order."""
	grouped: dict[str, dict] = {}
	for row in rows:
		uri = row_value(row, uri_var)
		if not uri:
			continue
		entry = grouped.setdefault(uri, {'notations': [], 'has_children': False, 'nested': False})
		notation = row_value(row, 'notation')
		if notation:
			entry['notations'].append(notation)
		if has_children_var:
			entry['has_children'] = entry['has_children'] or row_bool(row, has_children_var)
		if nested_var:
			entry['nested'] = entry['nested'] or row_bool(row, nested_var)

	return [
		ResourceRef(
			uri=uri,
			kind=kind,
			notation=pick_best_notation(entry['notations']),
			has_children=entry['has_children'],
			nested=entry['nested'],
		)
		for uri, entry in grouped.items()
	]


def apply_labels(nodes: Iterable[ResourceRef], labels: dict[str, ResolvedLabel]) -> None:
	"""Attach resolved labels in place."""
	for node in nodes:
		label = labels.get(node.uri)
		if label is not None:
			node.label = label
