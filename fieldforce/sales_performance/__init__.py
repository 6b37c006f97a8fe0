# fieldforce/sales_performance/__init__.py
"""
Sales Performance Module

Components:
- metrics: Sales rate, recruitment rhythm and team aggregates per sales plan
- queries: Sales plans joined to their yearly sales row
- charts: Altair visualizations and KPI cards
- export: Excel report generation

Usage:
    from fieldforce.sales_performance import (
        SalesPlanMetrics,
        SalesQueries,
        SalesCharts,
        FieldForceExport,
    )
"""

from .metrics import SalesPlanMetrics
from .queries import SalesQueries, load_sales_data, load_filter_options, parse_monthly_array
from .charts import SalesCharts
from .export import FieldForceExport

from .constants import (
    COLORS,
    RATE_TIER_COLORS,
    RATE_TIER_LABELS,
    PERFORMANCE_COLUMNS,
)

__all__ = [
    'SalesPlanMetrics',
    'SalesQueries',
    'load_sales_data',
    'load_filter_options',
    'parse_monthly_array',
    'SalesCharts',
    'FieldForceExport',
    'COLORS',
    'RATE_TIER_COLORS',
    'RATE_TIER_LABELS',
    'PERFORMANCE_COLUMNS',
]
