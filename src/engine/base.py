from abc import ABC, abstractmethod

from tools.errors import ToolExecutionError


class UpstreamError(ToolExecutionError):
    """Raised when the reasoning API cannot produce an answer."""

    def __init__(self, message: str = "Failed to process thinking request"):
        super().__init__(message)


class BaseEngine(ABC):
    @abstractmethod
    async def think(self, query: str) -> str:
        pass

    async def close(self) -> None:
        pass
