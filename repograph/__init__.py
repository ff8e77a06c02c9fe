"""repograph - static architecture mapping for source repositories."""

from loguru import logger

__version__ = "0.1.0"

# Silent when used as a library; configure_logging() turns output on.
logger.disable("repograph")

from .builder import AnalysisResult, RepositoryAnalyzer, analyze_repository  # noqa: E402
from .config import Settings, load_settings  # noqa: E402
from .errors import RepographError  # noqa: E402

__all__ = [
    "AnalysisResult",
    "RepositoryAnalyzer",
    "RepographError",
    "Settings",
    "analyze_repository",
    "load_settings",
]
