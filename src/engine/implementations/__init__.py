from .deepseek_engine import DeepSeekEngine


__all__ = ["DeepSeekEngine"]
