"""Page objects for the Proof360 web app."""

from proof360.pages.base import BasePage
from proof360.pages.company import CompanyPage
from proof360.pages.dashboard import AlertFilter, AlertsDashboardPage
from proof360.pages.dispatch_reports import DispatchReportsPage, ReportRequest
from proof360.pages.login import LoginFlow, LoginPage
from proof360.pages.menu import MenuPage
from proof360.pages.resolution import ResolutionDialog
from proof360.pages.sites import SitesPage
from proof360.pages.sop import SopPage

__all__ = [
    "AlertFilter",
    "AlertsDashboardPage",
    "BasePage",
    "CompanyPage",
    "DispatchReportsPage",
    "LoginFlow",
    "LoginPage",
    "MenuPage",
    "ReportRequest",
    "ResolutionDialog",
    "SitesPage",
    "SopPage",
]
