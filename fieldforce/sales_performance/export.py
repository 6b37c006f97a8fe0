# fieldforce/sales_performance/export.py
"""
Formatted Excel Export for the Field Force Dashboard

Creates Excel reports with:
- Cover sheet with the team KPI summary
- Sales performance per plan (rate tier fills)
- Monthly target vs achievement
- Return index per doctor (optional)

Undefined metrics are written as a dash, never as 0.
Uses openpyxl for formatting capabilities.
"""

import logging
from datetime import datetime
from io import BytesIO
from typing import Dict, List, Tuple

import pandas as pd

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from ..constants import NO_DATA
from ..metrics_engine import format_metric
from .constants import EXCEL_STYLES, EXCEL_TIER_FILLS

logger = logging.getLogger(__name__)

# (column, header, width)
ColumnSpec = List[Tuple[str, str, int]]

PERFORMANCE_SHEET_COLUMNS: ColumnSpec = [
    ('delegate_name', 'Delegate', 22),
    ('product_name', 'Product', 22),
    ('brick_name', 'Brick', 18),
    ('monthly_target', 'Monthly Target', 14),
    ('month_target', 'Month Target', 13),
    ('month_achievement', 'Month Achievement', 17),
    ('month_achievement_pct', 'Month %', 10),
    ('sales_rate', 'Sales Rate %', 12),
    ('recruitment_rhythm', 'Recruitment Rhythm %', 19),
    ('ytd_target', 'YTD Target', 12),
    ('ytd_achievement', 'YTD Achievement', 15),
]

MONTHLY_SHEET_COLUMNS: ColumnSpec = [
    ('month', 'Month', 10),
    ('target', 'Target', 14),
    ('achievement', 'Achievement', 14),
]

RETURN_INDEX_SHEET_COLUMNS: ColumnSpec = [
    ('doctor_name', 'Doctor', 25),
    ('specialty', 'Specialty', 18),
    ('brick_name', 'Brick', 18),
    ('delegate_name', 'Delegate', 22),
    ('visit_frequency', 'Frequency', 11),
    ('visits_completed', 'Visits YTD', 11),
    ('visits_expected', 'Expected', 10),
    ('return_index', 'Return Index %', 14),
    ('visits_this_month', 'This Month', 11),
    ('remaining_visits', 'Remaining', 11),
    ('status', 'Status', 10),
]

NUMBER_COLUMNS = {
    'monthly_target', 'month_target', 'month_achievement', 'ytd_target',
    'ytd_achievement', 'target', 'achievement',
}

PERCENT_COLUMNS = {
    'month_achievement_pct', 'sales_rate', 'recruitment_rhythm', 'return_index',
}


class FieldForceExport:
    """
    Excel report generator.

    Usage:
        exporter = FieldForceExport()
        excel_bytes = exporter.create_report(
            performance_df=performance_df,
            monthly_df=monthly_df,
            team_metrics=team_metrics,
            filters=filters
        )

        st.download_button(
            label="Download Report",
            data=excel_bytes,
            file_name="sales_performance.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right', vertical='center')

        self.tier_fills = {
            tier: PatternFill(start_color=color, end_color=color, fill_type='solid')
            for tier, color in EXCEL_TIER_FILLS.items()
        }

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_report(
        self,
        performance_df: pd.DataFrame,
        monthly_df: pd.DataFrame,
        team_metrics: Dict,
        filters: Dict,
        return_index_df: pd.DataFrame = None
    ) -> BytesIO:
        """
        Create formatted Excel report with multiple sheets.

        Args:
            performance_df: SalesPlanMetrics.build_performance_table()
            monthly_df: SalesPlanMetrics.prepare_monthly_summary()
            team_metrics: SalesPlanMetrics.aggregate_team_sales()
            filters: year, month and any filter labels shown on the cover
            return_index_df: Optional VisitComplianceEvaluator.build_return_index()

        Returns:
            BytesIO containing Excel file
        """
        self.wb = Workbook()

        self._create_cover_sheet(team_metrics, filters)
        self._create_table_sheet("Sales Performance", performance_df, PERFORMANCE_SHEET_COLUMNS)
        self._create_table_sheet("Monthly", monthly_df, MONTHLY_SHEET_COLUMNS)

        if return_index_df is not None and not return_index_df.empty:
            self._create_table_sheet("Return Index", return_index_df, RETURN_INDEX_SHEET_COLUMNS)

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info("Excel report created successfully")
        return output

    # =========================================================================
    # COVER SHEET
    # =========================================================================

    def _create_cover_sheet(self, team_metrics: Dict, filters: Dict):
        ws = self.wb.active
        ws.title = "Summary"

        row = 1
        ws.cell(row=row, column=1, value="Field Force Performance Report")
        ws.cell(row=row, column=1).font = self.title_font
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
        row += 2

        info_rows = [
            ("Year:", filters.get('year', '')),
            ("Month:", filters.get('month_label', filters.get('month', ''))),
            ("Generated:", datetime.now().strftime('%Y-%m-%d %H:%M')),
        ]
        for label, value in info_rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="Key Performance Indicators")
        ws.cell(row=row, column=1).font = self.subtitle_font
        row += 1

        kpi_rows = [
            ("Month achievement", format_metric(team_metrics.get('month_rate'))),
            ("YTD target", f"{team_metrics.get('ytd_target', 0):,.0f}"),
            ("YTD achievement", f"{team_metrics.get('ytd_achievement', 0):,.0f}"),
            ("YTD achievement %", format_metric(team_metrics.get('ytd_rate'))),
            ("Annual achievement %", format_metric(team_metrics.get('annual_rate'))),
            ("Team sales rate", format_metric(team_metrics.get('team_sales_rate'))),
            ("Active plans", f"{team_metrics.get('active_plans', 0)} / {team_metrics.get('total_plans', 0)}"),
        ]
        for label, value in kpi_rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            ws.cell(row=row, column=2).alignment = self.right_align
            row += 1

        ws.column_dimensions['A'].width = 25
        ws.column_dimensions['B'].width = 20

    # =========================================================================
    # TABLE SHEETS
    # =========================================================================

    def _create_table_sheet(self, title: str, df: pd.DataFrame, columns: ColumnSpec):
        """Header row, one row per record, frozen header."""
        if df is None or df.empty:
            return

        ws = self.wb.create_sheet(title)
        columns = [c for c in columns if c[0] in df.columns]

        for col_idx, (_, header, width) in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        has_tier = 'rate_tier' in df.columns

        for row_idx, record in enumerate(df.to_dict('records'), 2):
            for col_idx, (col_name, _, _) in enumerate(columns, 1):
                value = record.get(col_name)
                if value is None or (isinstance(value, float) and pd.isna(value)):
                    value = NO_DATA if col_name in PERCENT_COLUMNS else ''

                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border

                if col_name in NUMBER_COLUMNS:
                    cell.number_format = EXCEL_STYLES['number_format']
                    cell.alignment = self.right_align
                elif col_name in PERCENT_COLUMNS:
                    if value != NO_DATA:
                        cell.number_format = EXCEL_STYLES['percent_format']
                    cell.alignment = self.right_align

                if has_tier and col_name == 'sales_rate':
                    fill = self.tier_fills.get(record.get('rate_tier'))
                    if fill is not None:
                        cell.fill = fill

        ws.freeze_panes = 'A2'
