# fieldforce/visit_compliance/charts.py
"""
Altair Chart Builders for Visit Compliance

- Compliance status distribution
- Return index by doctor
"""

import logging
from typing import Dict

import altair as alt
import pandas as pd

from .constants import COMPLIANCE_COLORS, COMPLIANCE_LABELS, COMPLIANCE_ORDER, CHART_HEIGHT

logger = logging.getLogger(__name__)


class VisitComplianceCharts:
    """
    All methods are static.

    Usage:
        chart = VisitComplianceCharts.build_status_distribution_chart(counts)
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def build_status_distribution_chart(status_counts: Dict[str, int]) -> alt.Chart:
        """Horizontal bars: doctors per compliance status."""
        df = pd.DataFrame([
            {
                'status': status,
                'label': COMPLIANCE_LABELS[status],
                'doctors': int(status_counts.get(status, 0)),
            }
            for status in COMPLIANCE_ORDER
        ])

        color_scale = alt.Scale(
            domain=COMPLIANCE_ORDER,
            range=[COMPLIANCE_COLORS[s] for s in COMPLIANCE_ORDER]
        )

        bars = alt.Chart(df).mark_bar().encode(
            x=alt.X('doctors:Q', title='Doctors'),
            y=alt.Y('label:N', title=None, sort=[COMPLIANCE_LABELS[s] for s in COMPLIANCE_ORDER]),
            color=alt.Color('status:N', scale=color_scale, legend=None),
            tooltip=[alt.Tooltip('label:N', title='Status'), alt.Tooltip('doctors:Q', title='Doctors')]
        )

        text = bars.mark_text(align='left', dx=4).encode(text='doctors:Q')

        return (bars + text).properties(height=CHART_HEIGHT // 2)

    @staticmethod
    def build_return_index_chart(return_index_df: pd.DataFrame) -> alt.Chart:
        """Return index per doctor, colored by compliance status, with a 100% rule."""
        df = return_index_df[['doctor_name', 'return_index', 'status']].copy()

        color_scale = alt.Scale(
            domain=COMPLIANCE_ORDER,
            range=[COMPLIANCE_COLORS[s] for s in COMPLIANCE_ORDER]
        )

        bars = alt.Chart(df).mark_bar().encode(
            x=alt.X('doctor_name:N', sort='-y', title=None),
            y=alt.Y('return_index:Q', title='Return index (%)'),
            color=alt.Color('status:N', scale=color_scale, title='Status'),
            tooltip=['doctor_name', 'return_index', 'status']
        )

        rule = alt.Chart(pd.DataFrame({'y': [100]})).mark_rule(
            strokeDash=[4, 4], color='#333333'
        ).encode(y='y:Q')

        return (bars + rule).properties(height=CHART_HEIGHT)
