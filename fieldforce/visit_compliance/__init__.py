# fieldforce/visit_compliance/__init__.py
"""
Visit Compliance Module

Components:
- evaluator: Return index entries, doctors needing a visit, team progress
- queries: Visit plans / visits loading and visit recording
- status_bird: Per-doctor UI marker backed by an injected store
- charts: Altair visualizations

Usage:
    from fieldforce.visit_compliance import (
        VisitComplianceEvaluator,
        VisitQueries,
        DoctorStatusBird,
        VisitComplianceCharts,
    )
"""

from .evaluator import VisitComplianceEvaluator, VisitPlan, ReturnIndexEntry
from .queries import VisitQueries, load_visit_data, clear_visit_caches
from .status_bird import DoctorStatusBird
from .charts import VisitComplianceCharts

from .constants import (
    COMPLIANCE_LABELS,
    COMPLIANCE_COLORS,
    BIRD_CYCLE,
)

__all__ = [
    'VisitComplianceEvaluator',
    'VisitPlan',
    'ReturnIndexEntry',
    'VisitQueries',
    'load_visit_data',
    'clear_visit_caches',
    'DoctorStatusBird',
    'VisitComplianceCharts',
    'COMPLIANCE_LABELS',
    'COMPLIANCE_COLORS',
    'BIRD_CYCLE',
]
