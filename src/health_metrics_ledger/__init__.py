"""
Health Metrics Ledger - Personal lab and fitness test history.

Ingests lab panels and body-composition / cardio-fitness reports into a
longitudinal store and computes period-over-period trends.
"""

__version__ = "0.1.0"
