"""Report rendering for the command line."""

from .renderer import FORMATS, JSON, TEXT, ReportRenderer, render_json

__all__ = ["FORMATS", "JSON", "TEXT", "ReportRenderer", "render_json"]
