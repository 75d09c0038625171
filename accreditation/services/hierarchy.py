"""
Hierarchy Builder: flat L1/L2/L3 records → nested tree.

Works for both trees (SectionNode and GroupNode): any dataclass with
``id``, ``parent_id``, ``level``, ``sort_order`` and ``children``.

Rules:
  - Only levels 1, 2 and 3 exist; anything else is dropped.
  - A child hangs under the node at ``level - 1`` whose id equals its
    ``parent_id``. A node whose parent is missing (e.g. just deleted) is
    left out of the tree; this is a normal partial-data state, not an error.
  - Children are ordered by ``sort_order`` (ties keep input order).
  - Input nodes are never mutated; the tree is built from copies.

One pass groups nodes by (level, parent_id), one pass attaches children.
"""

import logging
from collections import defaultdict
from dataclasses import replace

logger = logging.getLogger(__name__)

MAX_LEVEL = 3


def _sort_key(node):
    return node.sort_order if node.sort_order is not None else 0


def build_hierarchy(flat_nodes) -> list:
    """Return the ordered level-1 nodes with their L2/L3 descendants attached."""
    by_parent = defaultdict(list)   # (level, parent_id) -> [node, ...]
    roots = []
    for node in flat_nodes:
        if node.level not in (1, 2, 3):
            logger.debug("Dropping node %s with out-of-range level %r", node.id, node.level)
            continue
        copy = replace(node, children=[])
        if copy.level == 1:
            roots.append(copy)
        else:
            by_parent[(copy.level, copy.parent_id)].append(copy)

    attached = 0
    for level in (1, 2):
        parents = roots if level == 1 else [c for r in roots for c in r.children]
        for parent in parents:
            kids = sorted(by_parent.get((level + 1, parent.id), []), key=_sort_key)
            parent.children = kids
            attached += len(kids)

    orphans = sum(len(v) for v in by_parent.values()) - attached
    if orphans:
        logger.debug("build_hierarchy: %d node(s) unreachable from a level-1 root", orphans)

    return sorted(roots, key=_sort_key)


def iter_tree(roots):
    """Yield every node of the tree, pre-order, using an explicit stack."""
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(roots, node_id):
    """Return the node with ``node_id`` or None."""
    for node in iter_tree(roots):
        if node.id == node_id:
            return node
    return None


def flatten_ids(node) -> list:
    """Ids of ``node`` and all its descendants, pre-order."""
    return [n.id for n in iter_tree([node])]


def ancestor_chain(flat_nodes, node_id) -> list:
    """Ids from ``node_id`` up to its level-1 root (inclusive), using flat records.

    Stops early if a parent is missing. Bounded by MAX_LEVEL hops.
    """
    by_id = {n.id: n for n in flat_nodes}
    chain = []
    current = by_id.get(node_id)
    while current is not None and len(chain) < MAX_LEVEL:
        chain.append(current.id)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return chain
