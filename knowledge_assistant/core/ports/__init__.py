from .completion_port import CompletionPort
from .source_port import ContentLoaderPort, ContentSourceListerPort

__all__ = ["CompletionPort", "ContentLoaderPort", "ContentSourceListerPort"]
