"""Knowledge Assistant: keyword retrieval and grounded answers over a curated knowledge base."""

__version__ = "1.0.0"
