"""Cookie consent banner handling shared by public-site tests."""
import logging

from playwright.sync_api import Error as PWError, Page

logger = logging.getLogger(__name__)


def handle_cookies(page: Page, accept_label: str = "Accept all", reject_label: str = "Reject all") -> str:
    """
    Dismiss the consent banner if one is showing.

    Prefers accepting, falls back to rejecting. Returns "accepted", "rejected",
    "absent" or "error"; never raises.
    """
    accept_button = page.get_by_role("button", name=accept_label)
    reject_button = page.get_by_role("button", name=reject_label)

    try:
        if _visible(accept_button):
            accept_button.click()
            logger.info("Cookies accepted.")
            return "accepted"
        if _visible(reject_button):
            reject_button.click()
            logger.info("Cookies denied.")
            return "rejected"
        logger.info("No cookie banner detected on the page.")
        return "absent"
    except PWError as e:
        logger.warning(f"Error while handling cookies: {e}")
        return "error"


def _visible(locator) -> bool:
    try:
        return locator.is_visible()
    except PWError:
        return False
