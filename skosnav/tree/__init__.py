"""Tree paging and node assembly."""

from skosnav.tree.bindings import pick_best_notation, refs_from_rows, sort_nodes
from skosnav.tree.paginator import TreePaginator

__all__ = ['TreePaginator', 'pick_best_notation', 'refs_from_rows', 'sort_nodes']
