"""
Authentication setup: log in once and save the storage state to the default
snapshot file so later runs can restore it instead of logging in.
"""
import pytest

from Portal_Conftest import DEFAULT_STATE_PATH, PORTAL_CONFIGURED, TEST_PASSWORD, TEST_USERNAME
from utils.session_cache import SessionCache, SessionSnapshot

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.portal,
    pytest.mark.skipif(not PORTAL_CONFIGURED, reason="BASE_URL is not configured for the portal"),
]


def test_authentication(at_login_page, page):
    at_login_page.login(TEST_USERNAME, TEST_PASSWORD)

    result = SessionCache(page.context, page).persist(DEFAULT_STATE_PATH)

    assert result.written, f"Storage state was not saved: {result.error}"
    assert SessionSnapshot.load(DEFAULT_STATE_PATH).cookies
