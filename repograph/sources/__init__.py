from .base import Source
from .codebase import CodebaseSource, walk_directory
from .ignore import IgnoreRules

__all__ = ["Source", "CodebaseSource", "walk_directory", "IgnoreRules"]
