"""Reporting utilities for matnet."""

from .artifacts import write_manifest
from .metrics import CsvSink, EveryN, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary

__all__ = ["CsvSink", "EveryN", "JsonlSink", "PlotAdapter", "write_manifest", "write_summary"]
