"""AumOS Use-Case Portfolio service.

Scoring, classification and governance gating for a portfolio of candidate
AI initiatives. Converts lever assessments into impact/effort quadrants and
size tiers, gates activation behind three governance checkpoints, derives
lifecycle phases and estimates KPI value ranges.
"""

__version__ = "0.1.0"
