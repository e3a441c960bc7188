from typing import Dict, Any

from engine.base import BaseEngine


class EngineFactory:
    @staticmethod
    def create_engine(engine_type: str, config: Dict[str, Any]) -> BaseEngine:
        if engine_type.lower() == 'deepseek':
            from engine.implementations import DeepSeekEngine
            return DeepSeekEngine(config)
        else:
            raise ValueError(f"Unknown Engine type: {engine_type}")
