"""
Login page tests using the page objects.

These run against the portal at BASE_URL and are skipped until BASE_URL
points at a real deployment.
"""
import re

import pytest

from Portal_Conftest import PORTAL_CONFIGURED, TEST_PASSWORD, TEST_USERNAME

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.portal,
    pytest.mark.skipif(not PORTAL_CONFIGURED, reason="BASE_URL is not configured for the portal"),
]


def test_login_with_valid_credentials(at_login_page, dashboard_page):
    at_login_page.login(TEST_USERNAME, TEST_PASSWORD)
    assert dashboard_page.verify_dashboard_loaded()


def test_login_with_invalid_credentials_shows_error(at_login_page):
    at_login_page.login("invalid@example.com", "wrongpassword")

    assert at_login_page.is_error_message_displayed()
    assert "Invalid credentials" in at_login_page.get_error_message()


def test_login_with_remember_me(at_login_page, dashboard_page):
    at_login_page.login_with_remember_me(TEST_USERNAME, TEST_PASSWORD)
    assert dashboard_page.verify_dashboard_loaded()


def test_forgot_password_link(at_login_page, page):
    at_login_page.click_forgot_password()
    page.wait_for_url(re.compile(r"forgot-password"))
    assert "forgot-password" in page.url


def test_login_page_is_displayed(at_login_page):
    assert at_login_page.verify_login_page_is_loaded()
