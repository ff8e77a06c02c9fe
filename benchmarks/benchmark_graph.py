import asyncio
import os
import sys
import tempfile
import time
from pathlib import Path

# Ensure we can import repograph
sys.path.insert(0, os.getcwd())

from repograph.analyzers.imports import extract_imports
from repograph.builder import RepositoryAnalyzer
from repograph.config import Settings


def make_repo(root: Path, modules: int = 400, fan_out: int = 4):
    """Synthetic repo: each module imports the next few in a ring."""
    for i in range(modules):
        package = root / "src" / f"pkg{i % 20}"
        package.mkdir(parents=True, exist_ok=True)
        lines = [
            f"import {{ helper{j} }} from '../pkg{(i + j) % 20}/mod{(i + j) % modules}';"
            for j in range(1, fan_out + 1)
        ]
        lines.append(f"export function mod{i}() {{ return {i}; }}")
        (package / f"mod{i}.ts").write_text("\n".join(lines) + "\n")


def benchmark_extraction():
    js_content = "import { a, b as c } from './x';\nconst d = require('y');\nexport const e = 1;\n" * 10000

    print(f"Benchmarking import extraction ({len(js_content)/1024/1024:.2f} MB)...")
    start = time.perf_counter()
    for _ in range(5):
        extract_imports(js_content, "module")
    end = time.perf_counter()
    print(f"Extraction Average: {(end - start) / 5:.4f}s")


def benchmark_pipeline():
    with tempfile.TemporaryDirectory() as tmp:
        make_repo(Path(tmp))
        analyzer = RepositoryAnalyzer(Settings(max_files=1000))

        print("Benchmarking full analysis (400 modules)...")
        start = time.perf_counter()
        result = asyncio.run(analyzer.analyze(tmp))
        end = time.perf_counter()
        stats = result.graph.statistics
        print(f"{stats.node_count} nodes, {stats.edge_count} edges, {stats.cycle_count} cycles")
        print(f"Pipeline: {end - start:.4f}s")


if __name__ == "__main__":
    benchmark_extraction()
    benchmark_pipeline()
