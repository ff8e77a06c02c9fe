"""Base source interface."""

from abc import ABC, abstractmethod

from ..models import WalkResult


class Source(ABC):
    @abstractmethod
    async def scan(self) -> WalkResult:
        """Walk the source and return metadata for every kept file."""
        ...
