"""Tests for graph exports."""

import json

import pytest

from repograph.errors import ExportFormatError
from repograph.exporters import render, to_d3, to_dot, to_mermaid

FILES = {
    "src/app.ts": "import { a } from './a';\nimport type { T } from './b';\n",
    "src/a.ts": "",
    "src/b.ts": "",
    "tools/x.ts": "",
}


class TestD3:
    @pytest.mark.asyncio
    async def test_nodes_and_links(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        data = to_d3(result)
        groups = {n["id"]: n["group"] for n in data["nodes"]}

        assert groups["src/app.ts"] == 0
        assert groups["tools/x.ts"] == -1
        assert {(l["source"], l["target"], l["value"]) for l in data["links"]} == {
            ("src/app.ts", "src/a.ts", 1.0),
            ("src/app.ts", "src/b.ts", 0.5),
        }
        assert max(n["score"] for n in data["nodes"]) == pytest.approx(1.0)


class TestMermaid:
    @pytest.mark.asyncio
    async def test_diagram(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        lines = to_mermaid(result).splitlines()

        assert lines[0] == "graph TD"
        assert sum(1 for line in lines if '["' in line) == 4
        assert sum(1 for line in lines if " --> " in line) == 1
        assert sum(1 for line in lines if " -.-> " in line) == 1

    @pytest.mark.asyncio
    async def test_max_nodes_limits_edges(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        lines = to_mermaid(result, max_nodes=1).splitlines()

        assert len(lines) == 2
        assert lines[1] == '    N0["{}"]'.format(
            result.node_map()[result.rankings.by_importance[0]].file.name
        )


class TestDot:
    @pytest.mark.asyncio
    async def test_digraph(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        text = to_dot(result)
        lines = text.splitlines()

        assert lines[:3] == ["digraph Dependencies {", "    rankdir=LR;", "    node [shape=box];"]
        assert lines[-1] == "}"
        assert sum(1 for line in lines if 'style="dashed"' in line) == 1
        assert sum(1 for line in lines if 'style="solid"' in line) == 1
        assert 'fillcolor="lightblue"' in text


class TestRender:
    @pytest.mark.asyncio
    async def test_formats(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        data = json.loads(render(result, "json"))
        assert data["statistics"]["edge_count"] == 2
        assert set(json.loads(render(result, "d3"))) == {"nodes", "links"}
        assert render(result, "mermaid").startswith("graph TD")
        assert render(result, "dot").startswith("digraph")
        assert result.to_text("dot") == render(result, "dot")

    @pytest.mark.asyncio
    async def test_unknown_format(self, make_repo, build_graph):
        result = await build_graph(make_repo(FILES))

        with pytest.raises(ExportFormatError) as exc:
            render(result, "svg")
        assert exc.value.code == "INVALID_FORMAT"
