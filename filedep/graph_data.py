"""Convert dependency mappings to renderer-ready node/link data; detect cycles."""

from __future__ import annotations

import os
from collections import deque

from filedep.models import GraphData, GraphLink, GraphNode


def build_graph_data(dependencies: dict[str, list[str]], root: str | None = None) -> GraphData:
    """Number every source file and link it to the targets that are also nodes."""
    data = GraphData()
    index: dict[str, int] = {}

    for file_path in sorted(dependencies):
        rel_dir = ""
        if root:
            rel_dir = os.path.dirname(os.path.relpath(file_path, root)).replace(os.sep, "/")
        node = GraphNode(
            id=len(data.nodes),
            name=os.path.basename(file_path),
            full_path=file_path,
            dir_path=rel_dir,
            extension=os.path.splitext(file_path)[1].lower(),
        )
        index[file_path] = node.id
        data.nodes.append(node)

    for file_path in sorted(dependencies):
        source = index[file_path]
        for target_path in sorted(dependencies[file_path]):
            target = index.get(target_path)
            if target is not None:
                data.links.append(GraphLink(source=source, target=target))

    return data


def find_cycles(dependencies: dict[str, list[str]]) -> list[list[str]]:
    """Back edges found by depth-first search, walked with an explicit stack.

    Each cycle is reported as the files on the current walk from the
    re-entered file onward, closed by repeating that file.
    """
    cycles: list[list[str]] = []
    done: set[str] = set()
    on_walk: dict[str, int] = {}  # file -> position in walk
    walk: list[str] = []

    for start in sorted(dependencies):
        if start in done:
            continue
        stack = [(start, iter(dependencies.get(start, [])))]
        on_walk[start] = 0
        walk.append(start)
        while stack:
            node, neighbors = stack[-1]
            for neighbor in neighbors:
                if neighbor in on_walk:
                    cycles.append(walk[on_walk[neighbor]:] + [neighbor])
                elif neighbor not in done:
                    on_walk[neighbor] = len(walk)
                    walk.append(neighbor)
                    stack.append((neighbor, iter(dependencies.get(neighbor, []))))
                    break
            else:
                stack.pop()
                walk.pop()
                del on_walk[node]
                done.add(node)

    return cycles


def transitive_dependencies(dependencies: dict[str, list[str]], start: str) -> set[str]:
    """BFS over the forward mapping; start itself is excluded."""
    seen: set[str] = set()
    queue = deque(dependencies.get(start, []))
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        queue.extend(dependencies.get(current, []))
    seen.discard(start)
    return seen
