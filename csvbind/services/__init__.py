"""Loading services: conversion, row parsing, relationships, cache, data manager."""

from .cache import TableCache
from .conversion import ConversionError, ConversionPipeline, default_for, default_pipeline
from .data_manager import DataManager
from .relationships import RelationshipContext, RelationshipResolver
from .row_parser import parse_row
from .summary import render_summary_line

__all__ = [
    "ConversionError",
    "ConversionPipeline",
    "DataManager",
    "RelationshipContext",
    "RelationshipResolver",
    "TableCache",
    "default_for",
    "default_pipeline",
    "parse_row",
    "render_summary_line",
]
