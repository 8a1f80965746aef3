from .gemini_adapter import GeminiCompletionAdapter

__all__ = ["GeminiCompletionAdapter"]
