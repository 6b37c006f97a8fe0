# fieldforce/sales_performance/charts.py
"""
Altair Chart Builders for Sales Performance

- KPI summary cards (using st.metric)
- Monthly target vs achievement (bars + achievement line)
- Achievement rate by delegate
"""

import logging
from typing import Dict

import altair as alt
import pandas as pd
import streamlit as st

from ..constants import MONTH_ORDER
from ..metrics_engine import format_metric
from .constants import COLORS, CHART_WIDTH, CHART_HEIGHT, RATE_TIER_COLORS, RATE_TIER_LABELS

logger = logging.getLogger(__name__)


class SalesCharts:
    """
    Chart builders for the sales performance page.

    All methods are static - can be called without instantiation.

    Usage:
        SalesCharts.render_kpi_cards(team_metrics)
        chart = SalesCharts.build_monthly_target_chart(monthly_df)
        st.altair_chart(chart, use_container_width=True)
    """

    # =========================================================================
    # KPI CARDS
    # =========================================================================

    @staticmethod
    def render_kpi_cards(team_metrics: Dict):
        """Month, YTD and annual achievement plus the team sales rate."""
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns(4)

            with col1:
                st.metric(
                    label="Month achievement",
                    value=format_metric(team_metrics.get('month_rate')),
                    help="Σ achievements / Σ targets for the selected month"
                )
            with col2:
                st.metric(
                    label="YTD achievement",
                    value=format_metric(team_metrics.get('ytd_rate')),
                    delta=f"{team_metrics.get('ytd_achievement', 0):,.0f} / {team_metrics.get('ytd_target', 0):,.0f}",
                    delta_color="off"
                )
            with col3:
                st.metric(
                    label="Annual achievement",
                    value=format_metric(team_metrics.get('annual_rate')),
                    help="Σ achievements / Σ targets over the whole year"
                )
            with col4:
                tier = team_metrics.get('team_rate_tier', 'gray')
                st.metric(
                    label="Team sales rate",
                    value=format_metric(team_metrics.get('team_sales_rate')),
                    delta=RATE_TIER_LABELS.get(tier),
                    delta_color="off",
                    help="Average realization over the months before the selected month"
                )

            st.caption(
                f"{team_metrics.get('active_plans', 0)} active plans out of "
                f"{team_metrics.get('total_plans', 0)}"
            )

    # =========================================================================
    # MONTHLY CHART
    # =========================================================================

    @staticmethod
    def build_monthly_target_chart(
        monthly_df: pd.DataFrame,
        title: str = "📊 Monthly Target vs Achievement"
    ) -> alt.Chart:
        """
        Bars for target and achievement per month.

        Args:
            monthly_df: month, target, achievement (from prepare_monthly_summary)
        """
        if monthly_df.empty:
            return SalesCharts._empty_chart("No data available")

        bar_data = monthly_df.melt(
            id_vars=['month'],
            value_vars=['target', 'achievement'],
            var_name='Metric',
            value_name='Units'
        )
        bar_data['Metric'] = bar_data['Metric'].map({'target': 'Target', 'achievement': 'Achievement'})

        color_scale = alt.Scale(
            domain=['Target', 'Achievement'],
            range=[COLORS['target'], COLORS['achievement']]
        )

        bars = alt.Chart(bar_data).mark_bar().encode(
            x=alt.X('month:N', sort=MONTH_ORDER, title='Month'),
            y=alt.Y('Units:Q', title='Units', axis=alt.Axis(format='~s')),
            color=alt.Color('Metric:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Metric:N',
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('Metric:N', title='Metric'),
                alt.Tooltip('Units:Q', title='Units', format=',.0f')
            ]
        )

        bar_text = alt.Chart(bar_data).mark_text(
            align='center', baseline='bottom', dy=-5, fontSize=10
        ).encode(
            x=alt.X('month:N', sort=MONTH_ORDER),
            y=alt.Y('Units:Q'),
            text=alt.Text('Units:Q', format=',.0f'),
            xOffset='Metric:N',
            color=alt.value(COLORS['text_dark'])
        )

        return alt.layer(bars, bar_text).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=title
        )

    # =========================================================================
    # DELEGATE CHART
    # =========================================================================

    @staticmethod
    def build_delegate_rate_chart(performance_df: pd.DataFrame) -> alt.Chart:
        """Sales rate per plan, colored by tier; plans without a rate are skipped."""
        if performance_df.empty:
            return SalesCharts._empty_chart("No data available")

        df = performance_df[performance_df['sales_rate'].notna()].copy()
        if df.empty:
            return SalesCharts._empty_chart("No sales rate available yet")

        df['sales_rate'] = df['sales_rate'].astype(float)
        df['label'] = df['delegate_name'].astype(str) + ' · ' + df['product_name'].astype(str)

        tiers = list(RATE_TIER_COLORS.keys())
        bars = alt.Chart(df).mark_bar().encode(
            x=alt.X('sales_rate:Q', title='Sales rate (%)'),
            y=alt.Y('label:N', sort='-x', title=None),
            color=alt.Color(
                'rate_tier:N',
                scale=alt.Scale(domain=tiers, range=[RATE_TIER_COLORS[t] for t in tiers]),
                legend=None
            ),
            tooltip=['delegate_name', 'product_name', 'brick_name', 'sales_rate']
        )

        rule = alt.Chart(pd.DataFrame({'x': [100]})).mark_rule(
            strokeDash=[4, 4], color=COLORS['text_dark']
        ).encode(x='x:Q')

        return (bars + rule).properties(width=CHART_WIDTH)

    @staticmethod
    def _empty_chart(message: str) -> alt.Chart:
        return alt.Chart(pd.DataFrame({'text': [message]})).mark_text(
            size=14, color='gray'
        ).encode(text='text:N').properties(width=CHART_WIDTH, height=100)
