# 📄 File: app/modules/plant_analysis/application/handlers/__init__.py
# 🧭 Purpose (Layman Explanation):
# Gathers the code that actually carries out a plant analysis request.
# 🧪 Purpose (Technical Summary):
# Application handlers for the plant_analysis module.
# 🔗 Dependencies:
# analysis_pipeline
# 🔄 Connected Modules / Calls From:
# Presentation layer dependency container and endpoints

from .analysis_pipeline import AnalysisPipeline

__all__ = ["AnalysisPipeline"]
