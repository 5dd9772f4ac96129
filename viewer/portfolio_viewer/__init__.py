"""Terminal viewer for the portfolio profile API."""

from .api_client import PortfolioAPIClient, PortfolioAPIError, SearchResults
from .render import render_viewer
from .state import ProfileViewer

__all__ = [
    "PortfolioAPIClient",
    "PortfolioAPIError",
    "ProfileViewer",
    "SearchResults",
    "render_viewer",
]
