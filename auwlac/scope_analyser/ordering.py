"""
Dependency ordering of the blocks of one scope.

Blocks are visited depth-first in their original order; before a block is
emitted, the blocks declaring the symbols it references are emitted. Only
symbols declared in the same scope count. Blocks that reference each other
(a strongly connected group) cannot be ordered, so the group is emitted in
its original relative order and reported.
"""

from typing import Dict, List, Set, Tuple

from ..data_structures import Diagnostic
from ..exceptions import ErrorCode, make_diagnostic
from ..parser.classes import CodeBlock


def _dependency_edges(blocks: List[CodeBlock]) -> List[List[int]]:
    owners: Dict[str, int] = {}
    for i, block in enumerate(blocks):
        for name in block.declared_symbols:
            owners.setdefault(name, i)

    edges: List[List[int]] = []
    for i, block in enumerate(blocks):
        targets = []
        for name in block.referenced_symbols:
            j = owners.get(name)
            if j is not None and j != i and j not in targets:
                targets.append(j)
        edges.append(targets)
    return edges


def _strongly_connected_groups(edges: List[List[int]]) -> List[int]:
    """Tarjan's algorithm. Returns, for every node, the id of its group."""
    index_of: Dict[int, int] = {}
    low: Dict[int, int] = {}
    stack: List[int] = []
    on_stack: Set[int] = set()
    group_of = [-1] * len(edges)
    counter = [0, 0]

    def connect(node: int):
        index_of[node] = low[node] = counter[0]
        counter[0] += 1
        stack.append(node)
        on_stack.add(node)
        for target in edges[node]:
            if target not in index_of:
                connect(target)
                low[node] = min(low[node], low[target])
            elif target in on_stack:
                low[node] = min(low[node], index_of[target])
        if low[node] == index_of[node]:
            while True:
                member = stack.pop()
                on_stack.discard(member)
                group_of[member] = counter[1]
                if member == node:
                    break
            counter[1] += 1

    for node in range(len(edges)):
        if node not in index_of:
            connect(node)
    return group_of


def order_blocks(blocks: List[CodeBlock]) -> Tuple[List[CodeBlock], List[Diagnostic]]:
    """Orders `blocks` so declarations precede their uses. Never fails."""
    edges = _dependency_edges(blocks)
    group_of = _strongly_connected_groups(edges)

    members: Dict[int, List[int]] = {}
    for i, group in enumerate(group_of):
        members.setdefault(group, []).append(i)

    ordered: List[CodeBlock] = []
    diagnostics: List[Diagnostic] = []
    emitted: Set[int] = set()

    def visit(group: int):
        if group in emitted:
            return
        emitted.add(group)
        for i in members[group]:
            for target in edges[i]:
                if group_of[target] != group:
                    visit(group_of[target])
        ordered.extend(blocks[i] for i in members[group])

    for i in range(len(blocks)):
        visit(group_of[i])

    for group, indices in members.items():
        if len(indices) > 1:
            names = [blocks[i].declared_symbol or blocks[i].source_text.split("\n", 1)[0] for i in indices]
            cycle = ", ".join(f"'{name}'" for name in names)
            diagnostics.append(make_diagnostic(ErrorCode.SCOPE_DEPENDENCY_CYCLE, span=blocks[indices[0]].span, cycle=cycle))

    return ordered, diagnostics
