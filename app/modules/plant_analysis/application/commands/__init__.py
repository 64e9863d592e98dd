"""Application commands for plant analysis."""

from .analyze_plant import AnalyzePlantCommand

__all__ = ["AnalyzePlantCommand"]
