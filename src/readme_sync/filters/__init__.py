"""Symmetric content filters applied before push and rolled back after fetch."""

from .base import Filter
from .footer import ContentMarker, FooterFilter
from .hosted_files import HostedFilesFilter
from .pipeline import FILTER_REGISTRY, FilterPipeline, create_pipeline

__all__ = [
    "ContentMarker",
    "FILTER_REGISTRY",
    "Filter",
    "FilterPipeline",
    "FooterFilter",
    "HostedFilesFilter",
    "create_pipeline",
]
