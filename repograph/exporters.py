"""Text renderings of a dependency graph: JSON, D3, Mermaid and Graphviz DOT."""

import json

from .errors import ExportFormatError
from .models import DependencyGraphResult

FORMATS = ["json", "d3", "mermaid", "dot"]


def to_d3(result: DependencyGraphResult) -> dict:
    group = {}
    for index, cluster in enumerate(result.clusters):
        for member in cluster.files:
            group[member] = index

    paths = {node.id: node.file.path for node in result.nodes}
    return {
        "nodes": [
            {"id": node.file.path, "group": group.get(node.id, -1), "score": node.metrics.page_rank}
            for node in result.nodes
        ],
        "links": [
            {
                "source": paths.get(edge.source, edge.source),
                "target": paths.get(edge.target, edge.target),
                "value": edge.weight,
            }
            for edge in result.edges
        ],
    }


def to_mermaid(result: DependencyGraphResult, max_nodes: int = 50) -> str:
    lines = ["graph TD"]
    included = set(result.rankings.by_importance[:max_nodes])

    labels = {}
    for node in result.nodes:
        if node.id not in included:
            continue
        label = f"N{len(labels)}"
        labels[node.id] = label
        name = node.file.name.translate(str.maketrans("", "", '"[]'))
        lines.append(f'    {label}["{name}"]')

    for edge in result.edges:
        source, target = labels.get(edge.source), labels.get(edge.target)
        if source and target:
            arrow = "-.->" if edge.is_type_only else "-->"
            lines.append(f"    {source} {arrow} {target}")

    return "\n".join(lines)


def to_dot(result: DependencyGraphResult) -> str:
    lines = ["digraph Dependencies {", "    rankdir=LR;", "    node [shape=box];"]

    for node in result.nodes:
        name = node.file.name.replace('"', '\\"')
        color = "lightblue" if node.metrics.page_rank > 0.5 else "white"
        lines.append(f'    "{node.id}" [label="{name}" fillcolor="{color}" style="filled"];')

    for edge in result.edges:
        style = "dashed" if edge.is_type_only else "solid"
        lines.append(f'    "{edge.source}" -> "{edge.target}" [style="{style}"];')

    lines.append("}")
    return "\n".join(lines)


def render(result: DependencyGraphResult, format: str = "json") -> str:
    if format == "json":
        return json.dumps(result.to_dict(), indent=2)
    if format == "d3":
        return json.dumps(to_d3(result), indent=2)
    if format == "mermaid":
        return to_mermaid(result)
    if format == "dot":
        return to_dot(result)
    raise ExportFormatError(format, FORMATS)
