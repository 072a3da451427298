"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.ga4_connector import AnalyticsReportClient, GA4ReportConnector, ReportRow
from app.connectors.news_api_connector import NewsAPIConnector

__all__ = [
    "AnalyticsReportClient",
    "BaseConnector",
    "ConnectorRequestError",
    "GA4ReportConnector",
    "NewsAPIConnector",
    "ReportRow",
]
