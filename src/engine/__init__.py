from .base import BaseEngine, UpstreamError
from .factory import EngineFactory

__all__ = ["BaseEngine", "EngineFactory", "UpstreamError"]
