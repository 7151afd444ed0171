"""
Aggregation engine for the grain price dashboard.
It turns raw price observations into price trends, elevator rankings, delivery-month trends, and headline stats.
"""

from grain_dashboard.analytics.analytics_config import AnalyticsConfig, load_analytics_config
from grain_dashboard.analytics.composer import DashboardComposer
from grain_dashboard.analytics.repository import EntryRepository

__all__ = ["AnalyticsConfig", "DashboardComposer", "EntryRepository", "load_analytics_config"]
