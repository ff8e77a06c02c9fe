"""
Import/export extraction with lightweight pattern matching.

Two language families are understood: the C-style module family
(JavaScript/TypeScript) and Python. Comments are blanked before matching so
commented-out imports are not reported; the blanking keeps every character
position, so line numbers stay exact. Quoted strings are skipped while
blanking, so comment markers inside them (`'/api/*'`) do not hide code.

Known limitations: re-exports through computed names, ``import X, * as Y``,
imports assembled from string concatenation and backslash-continued Python
imports are not recognized. JavaScript regex literals that contain a quote
or a comment marker can still be mistaken for strings or comments.
"""

import asyncio
import os
import re
import sys
from pathlib import Path

import aiofiles
from loguru import logger

from ..models import ExportFact, FileAnalysis, ImportFact

MODULE = "module"
PYTHON = "python"

LANGUAGE_FAMILIES = {
    ".ts": MODULE, ".tsx": MODULE, ".mts": MODULE, ".cts": MODULE,
    ".js": MODULE, ".jsx": MODULE, ".mjs": MODULE, ".cjs": MODULE,
    ".py": PYTHON, ".pyw": PYTHON, ".pyi": PYTHON,
}

RESOLVE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"]
PYTHON_RESOLVE_EXTENSIONS = [".py", ".pyi"]

_NODE_MODULES = [
    "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
    "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
    "events", "fs", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "perf_hooks", "process", "punycode", "querystring", "readline",
    "repl", "stream", "string_decoder", "timers", "tls", "trace_events", "tty",
    "url", "util", "v8", "vm", "wasi", "worker_threads", "zlib",
    "fs/promises", "stream/promises", "timers/promises", "util/types",
]
NODE_BUILTINS = frozenset(_NODE_MODULES + [f"node:{m}" for m in _NODE_MODULES])

PYTHON_BUILTINS = frozenset(sys.stdlib_module_names)

_QUOTED = r"'(?:\\.|[^'\\\n])*'|\"(?:\\.|[^\"\\\n])*\""
# Quoted spans come first so comment markers inside strings are left alone.
_JS_COMMENTS = re.compile(_QUOTED + r"|`(?:\\.|[^`\\])*`|/\*[\s\S]*?\*/|//[^\n]*")
_PY_COMMENTS = re.compile(r'"""[\s\S]*?"""|\'\'\'[\s\S]*?\'\'\'|' + _QUOTED + r"|#[^\n]*")

JS_IMPORT_PATTERNS = {
    "default": re.compile(r"\bimport\s+(\w+)\s+from\s+['\"]([^'\"]+)['\"]"),
    "mixed": re.compile(r"\bimport\s+(\w+)\s*,\s*\{([^}]+)\}\s*from\s+['\"]([^'\"]+)['\"]"),
    "named": re.compile(r"\bimport\s+\{([^}]+)\}\s*from\s+['\"]([^'\"]+)['\"]"),
    "namespace": re.compile(r"\bimport\s+\*\s+as\s+(\w+)\s+from\s+['\"]([^'\"]+)['\"]"),
    "side_effect": re.compile(r"\bimport\s+['\"]([^'\"]+)['\"]"),
    "type": re.compile(r"\bimport\s+type\s+(?:\{([^}]+)\}|(\w+))\s+from\s+['\"]([^'\"]+)['\"]"),
    "require": re.compile(
        r"\b(?:const|let|var)\s+(?:(\w+)|\{([^}]+)\})\s*=\s*require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"
    ),
    "dynamic": re.compile(r"\bimport\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"),
}

JS_EXPORT_PATTERNS = {
    "default": re.compile(r"\bexport\s+default\s+(?:async\s+)?(?:(class|function)\*?\s+(\w+)|(\w+))"),
    "named": re.compile(r"\bexport\s+(type\s+)?\{([^}]*)\}(?:\s*from\s+['\"]([^'\"]+)['\"])?"),
    "variable": re.compile(r"\bexport\s+(?:const|let|var)\s+(?!enum\b)(\w+)"),
    "function": re.compile(r"\bexport\s+(?:async\s+)?function\*?\s+(\w+)"),
    "class": re.compile(r"\bexport\s+(?:abstract\s+)?class\s+(\w+)"),
    "type": re.compile(r"\bexport\s+type\s+(\w+)"),
    "interface": re.compile(r"\bexport\s+interface\s+(\w+)"),
    "enum": re.compile(r"\bexport\s+(?:const\s+)?enum\s+(\w+)"),
    "all": re.compile(r"\bexport\s+\*\s+(?:as\s+(\w+)\s+)?from\s+['\"]([^'\"]+)['\"]"),
    "module_exports": re.compile(r"\bmodule\.exports\s*=\s*(\w+)"),
    "exports": re.compile(r"\bexports\.(\w+)\s*=(?!=)"),
}

PY_IMPORT_PATTERNS = {
    "import": re.compile(r"^[ \t]*import[ \t]+([^\n]+)$", re.MULTILINE),
    "from": re.compile(r"^[ \t]*from[ \t]+([.\w]+)[ \t]+import[ \t]+(\([^)]*\)|[^\n]+)", re.MULTILINE),
    "dynamic": re.compile(r"\b(?:importlib\.import_module|__import__)\(\s*['\"]([^'\"]+)['\"]"),
}

PY_EXPORT_PATTERNS = {
    "all": re.compile(r"^__all__\s*(?::[^=\n]+)?=\s*[\[(]([^\])]*)[\])]", re.MULTILINE),
    "class": re.compile(r"^class\s+(\w+)", re.MULTILINE),
    "function": re.compile(r"^(?:async\s+)?def\s+(\w+)", re.MULTILINE),
    "constant": re.compile(r"^([A-Z][A-Z0-9_]*)\s*(?::[^=\n]+)?=(?!=)", re.MULTILINE),
}

_PY_MODULE_NAME = re.compile(r"[\w.]+")


def language_family(file_path: str) -> str | None:
    return LANGUAGE_FAMILIES.get(Path(file_path).suffix.lower())


def is_relative_import(source: str) -> bool:
    return source.startswith((".", "/"))


def is_builtin_module(source: str, family: str = MODULE) -> bool:
    if family == PYTHON:
        return source.split(".")[0] in PYTHON_BUILTINS
    return source in NODE_BUILTINS or source.split("/")[0] in NODE_BUILTINS


def package_name(source: str, family: str = MODULE) -> str:
    if family == PYTHON:
        return source.split(".")[0]
    if source.startswith("@"):
        return "/".join(source.split("/")[:2])
    return source.split("/")[0]


def _blank(match: re.Match) -> str:
    text = match.group(0)
    if text[0] in "'\"`" and not text.startswith(("\"\"\"", "'''")):
        return text
    return re.sub(r"[^\n]", " ", text)


def strip_comments(content: str, family: str) -> str:
    pattern = _PY_COMMENTS if family == PYTHON else _JS_COMMENTS
    return pattern.sub(_blank, content)


def _line(content: str, position: int) -> int:
    return content.count("\n", 0, position) + 1


def parse_named_imports(names: str) -> list[str]:
    """Parse ``X, Y as Z, type W`` into local names."""
    result = []
    for part in names.split(","):
        name = part.strip()
        alias = re.match(r"(\w+)\s+as\s+(\w+)", name.removeprefix("type ").strip())
        if alias:
            name = alias.group(2)
        elif name.startswith("type "):
            name = name[5:].strip()
        if name and " " not in name:
            result.append(name)
    return result


def _import(source: str, family: str, line: int, names=(), **flags) -> ImportFact:
    relative = is_relative_import(source)
    builtin = not relative and is_builtin_module(source, family)
    return ImportFact(
        source=source,
        is_relative=relative,
        is_package=not relative and not builtin,
        is_builtin=builtin,
        imported_names=tuple(names),
        line=line,
        **flags,
    )


def _extract_js_imports(content: str) -> list[ImportFact]:
    p = JS_IMPORT_PATTERNS
    imports = []

    for m in p["default"].finditer(content):
        imports.append(_import(m.group(2), MODULE, _line(content, m.start()), [m.group(1)], has_default=True))
    for m in p["mixed"].finditer(content):
        names = [m.group(1), *parse_named_imports(m.group(2))]
        imports.append(_import(m.group(3), MODULE, _line(content, m.start()), names, has_default=True))
    for m in p["named"].finditer(content):
        imports.append(_import(m.group(2), MODULE, _line(content, m.start()), parse_named_imports(m.group(1))))
    for m in p["namespace"].finditer(content):
        imports.append(_import(m.group(2), MODULE, _line(content, m.start()), [m.group(1)], has_namespace=True))
    for m in p["side_effect"].finditer(content):
        imports.append(_import(m.group(1), MODULE, _line(content, m.start())))
    for m in p["type"].finditer(content):
        names = parse_named_imports(m.group(1)) if m.group(1) else [m.group(2)]
        imports.append(
            _import(
                m.group(3), MODULE, _line(content, m.start()), names,
                has_default=bool(m.group(2)), is_type_only=True,
            )
        )
    for m in p["require"].finditer(content):
        names = [m.group(1)] if m.group(1) else parse_named_imports(m.group(2))
        imports.append(
            _import(m.group(3), MODULE, _line(content, m.start()), names, has_default=bool(m.group(1)))
        )
    for m in p["dynamic"].finditer(content):
        imports.append(_import(m.group(1), MODULE, _line(content, m.start()), is_dynamic=True))

    return imports


def _extract_js_exports(content: str) -> list[ExportFact]:
    p = JS_EXPORT_PATTERNS
    exports = []

    for m in p["default"].finditer(content):
        kind, name = m.group(1), m.group(2) or m.group(3)
        if name in ("class", "function"):
            kind, name = name, "default"
        exports.append(ExportFact(name=name, is_default=True, kind=kind or "unknown", line=_line(content, m.start())))
    for m in p["named"].finditer(content):
        source = m.group(3)
        for name in parse_named_imports(m.group(2)):
            exports.append(
                ExportFact(
                    name=name,
                    is_type=bool(m.group(1)),
                    is_re_export=source is not None,
                    re_export_source=source,
                    line=_line(content, m.start()),
                )
            )
    for key, kind, is_type in (
        ("variable", "variable", False),
        ("function", "function", False),
        ("class", "class", False),
        ("type", "type", True),
        ("interface", "interface", True),
        ("enum", "enum", False),
    ):
        for m in p[key].finditer(content):
            exports.append(ExportFact(name=m.group(1), is_type=is_type, kind=kind, line=_line(content, m.start())))
    for m in p["all"].finditer(content):
        exports.append(
            ExportFact(
                name=m.group(1) or "*",
                is_re_export=True,
                re_export_source=m.group(2),
                line=_line(content, m.start()),
            )
        )
    for m in p["module_exports"].finditer(content):
        exports.append(ExportFact(name=m.group(1), is_default=True, line=_line(content, m.start())))
    for m in p["exports"].finditer(content):
        exports.append(ExportFact(name=m.group(1), line=_line(content, m.start())))

    return exports


def _extract_python_imports(content: str) -> list[ImportFact]:
    p = PY_IMPORT_PATTERNS
    imports = []

    for m in p["import"].finditer(content):
        line = _line(content, m.start())
        for module in m.group(1).rstrip(";").split(","):
            module = module.strip()
            source, _, alias = module.partition(" as ")
            source = source.strip()
            if not _PY_MODULE_NAME.fullmatch(source):
                continue
            name = alias.strip() or source.split(".")[-1]
            imports.append(_import(source, PYTHON, line, [name], has_namespace=True))

    for m in p["from"].finditer(content):
        source = m.group(1)
        line = _line(content, m.start())
        names_part = m.group(2).strip().strip("()").rstrip(";")
        if names_part.strip() == "*":
            imports.append(_import(source, PYTHON, line, ["*"], has_namespace=True))
            continue
        names = []
        for part in re.split(r"[,\n]", names_part):
            name = part.strip()
            if not name:
                continue
            original, _, alias = name.partition(" as ")
            names.append(alias.strip() or original.strip())
        imports.append(_import(source, PYTHON, line, names))

    for m in p["dynamic"].finditer(content):
        imports.append(_import(m.group(1), PYTHON, _line(content, m.start()), is_dynamic=True))

    return imports


def _extract_python_exports(content: str) -> list[ExportFact]:
    p = PY_EXPORT_PATTERNS
    exports = []

    for m in p["all"].finditer(content):
        line = _line(content, m.start())
        for name in re.findall(r"['\"](\w+)['\"]", m.group(1)):
            exports.append(ExportFact(name=name, line=line))
    for m in p["class"].finditer(content):
        exports.append(ExportFact(name=m.group(1), kind="class", line=_line(content, m.start())))
    for m in p["function"].finditer(content):
        if not m.group(1).startswith("_"):
            exports.append(ExportFact(name=m.group(1), kind="function", line=_line(content, m.start())))
    for m in p["constant"].finditer(content):
        exports.append(ExportFact(name=m.group(1), kind="variable", line=_line(content, m.start())))

    return exports


def extract_imports(content: str, family: str | None) -> list[ImportFact]:
    if family == MODULE:
        imports = _extract_js_imports(strip_comments(content, family))
    elif family == PYTHON:
        imports = _extract_python_imports(strip_comments(content, family))
    else:
        return []
    return sorted(imports, key=lambda i: i.line)


def extract_exports(content: str, family: str | None) -> list[ExportFact]:
    if family == MODULE:
        exports = _extract_js_exports(strip_comments(content, family))
    elif family == PYTHON:
        exports = _extract_python_exports(strip_comments(content, family))
    else:
        return []
    return sorted(exports, key=lambda e: e.line)


def resolve_import(source: str, from_file: str, extensions: list[str] | None = None) -> str | None:
    """Resolve a relative import to an existing file, or None."""
    if not is_relative_import(source):
        return None

    from_dir = os.path.dirname(from_file)
    if language_family(from_file) == PYTHON and "/" not in source:
        return _resolve_python(source, from_dir)

    exts = extensions if extensions is not None else RESOLVE_EXTENSIONS
    base = os.path.normpath(os.path.join(from_dir, source))

    for ext in ["", *exts]:
        candidate = base + ext
        if os.path.isfile(candidate):
            return candidate
    for ext in exts:
        candidate = os.path.join(base, f"index{ext}")
        if os.path.isfile(candidate):
            return candidate
    return None


def _resolve_python(source: str, from_dir: str) -> str | None:
    remainder = source.lstrip(".")
    base = from_dir
    for _ in range(len(source) - len(remainder) - 1):
        base = os.path.dirname(base)
    if remainder:
        base = os.path.join(base, *remainder.split("."))
        for ext in PYTHON_RESOLVE_EXTENSIONS:
            if os.path.isfile(base + ext):
                return os.path.normpath(base + ext)
    candidate = os.path.join(base, "__init__.py")
    if os.path.isfile(candidate):
        return os.path.normpath(candidate)
    return None


class ImportExportParser:
    """Parses files once per run; results are cached by absolute path."""

    def __init__(self):
        self._cache: dict[str, FileAnalysis] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def parse_file(self, file_path: str) -> FileAnalysis:
        cached = self._cache.get(file_path)
        if cached is not None:
            return cached

        analysis = FileAnalysis(file_path=file_path)
        family = language_family(file_path)

        if family is None:
            analysis.parse_errors.append(f"Unsupported file type: {Path(file_path).suffix}")
        else:
            try:
                async with aiofiles.open(file_path, "r", encoding="utf-8", errors="replace") as f:
                    content = await f.read()
            except OSError as e:
                logger.debug("Cannot parse {}: {}", file_path, e)
                analysis.parse_errors.append(f"Failed to read file: {e}")
            else:
                analysis.imports = extract_imports(content, family)
                analysis.exports = extract_exports(content, family)
                _categorize(analysis, family)

        # First writer wins; a concurrent duplicate parse is discarded.
        return self._cache.setdefault(file_path, analysis)

    async def parse_files(self, file_paths: list[str], concurrency: int = 10) -> dict[str, FileAnalysis]:
        semaphore = asyncio.Semaphore(concurrency)

        async def parse_with_limit(path: str) -> FileAnalysis:
            async with semaphore:
                return await self.parse_file(path)

        results = await asyncio.gather(*[parse_with_limit(p) for p in file_paths])
        return dict(zip(file_paths, results))


def _categorize(analysis: FileAnalysis, family: str) -> None:
    for imp in analysis.imports:
        if imp.is_relative:
            analysis.local_imports.append(imp.source)
        elif imp.is_package:
            name = package_name(imp.source, family)
            if name not in analysis.external_imports:
                analysis.external_imports.append(name)


async def parse_file(file_path: str) -> FileAnalysis:
    return await ImportExportParser().parse_file(file_path)
