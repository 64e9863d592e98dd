# 📄 File: app/modules/plant_analysis/application/__init__.py
# 🧭 Purpose (Layman Explanation):
# The layer that turns a user's "analyse my plant" request into the right sequence of steps.
#
# 🧪 Purpose (Technical Summary):
# Application layer for plant analysis: commands describing requests and handlers
# orchestrating the domain services.
#
# 🔗 Dependencies:
# - app.modules.plant_analysis.domain
#
# 🔄 Connected Modules / Calls From:
# - app.modules.plant_analysis.presentation

from .commands import AnalyzePlantCommand
from .handlers import AnalysisPipeline

__all__ = ["AnalyzePlantCommand", "AnalysisPipeline"]
