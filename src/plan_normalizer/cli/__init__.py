"""Command-line interface package for the plan normalizer."""

from .app import build_parser, build_payload, create_service, main, render_table, run

__all__ = [
    "build_parser",
    "build_payload",
    "create_service",
    "main",
    "render_table",
    "run",
]
