"""
Dashboard tests. Each test starts authenticated through the cached session.
"""
import re

import pytest

from Portal_Conftest import PORTAL_CONFIGURED

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.portal,
    pytest.mark.skipif(not PORTAL_CONFIGURED, reason="BASE_URL is not configured for the portal"),
]


@pytest.fixture
def on_dashboard(logged_in, dashboard_page):
    dashboard_page.goto()
    return dashboard_page


def test_dashboard_is_loaded(on_dashboard):
    assert on_dashboard.verify_dashboard_loaded()
    assert on_dashboard.is_user_logged_in()


def test_navigate_to_menu_option(on_dashboard, page):
    on_dashboard.navigate_to_menu_option("Reports")
    page.wait_for_url(re.compile(r"reports"))
    assert "reports" in page.url


def test_search_for_item(on_dashboard, page):
    on_dashboard.search("test item")
    page.locator('[data-testid="search-results"]').wait_for(state="visible")


def test_dashboard_has_cards(on_dashboard):
    assert on_dashboard.get_dashboard_card_count() > 0
    assert on_dashboard.get_dashboard_card_text(0).strip()


def test_open_notifications(on_dashboard, page):
    on_dashboard.open_notifications()
    page.locator('[data-testid="notifications-panel"]').wait_for(state="visible")


def test_logout(on_dashboard, page):
    on_dashboard.logout()
    page.wait_for_url(re.compile(r"login|auth"))
    assert "login" in page.url
