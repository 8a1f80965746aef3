"""Outbound adapters for content sources."""

from .content_loader import HttpContentLoader
from .csv_source_lister import CsvSourceLister

__all__ = ["CsvSourceLister", "HttpContentLoader"]
