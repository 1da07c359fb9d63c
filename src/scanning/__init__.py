"""Test discovery inside dependency archives."""

from .coordinate_filter import filter_artifacts
from .dependency_scanner import DependencyScanner, ScanResult
from .test_filter import TestFilter, TestListResolver

__all__ = [
    "filter_artifacts",
    "DependencyScanner",
    "ScanResult",
    "TestFilter",
    "TestListResolver",
]
