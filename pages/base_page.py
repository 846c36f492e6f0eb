"""
Base page object: navigation and element helpers shared by every page.
"""
import logging
import os

from playwright.sync_api import Error as PWError, Locator, Page

from utils.test_logger import log_keyword

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://example.com"


class BasePage:
    """All page objects extend this class"""

    def __init__(self, page: Page, base_url: str = None):
        self.page = page
        self.base_url = base_url or os.getenv("BASE_URL", DEFAULT_BASE_URL)

    @log_keyword("Navigate")
    def navigate(self, path: str = ""):
        url = self.base_url + path
        logger.info(f"Navigating to {url}")
        try:
            self.page.goto(url, wait_until="domcontentloaded")
        except PWError as e:
            # Slow pages can stall DOMContentLoaded; commit is enough to start interacting
            logger.warning(f"domcontentloaded navigation failed for {url}, retrying with commit: {e}")
            self.page.goto(url, wait_until="commit")

    def get_page_title(self) -> str:
        return self.page.title()

    def wait_for_element(self, locator: Locator, timeout: int = 10_000):
        locator.wait_for(state="visible", timeout=timeout)

    def fill_input(self, locator: Locator, text: str):
        locator.fill(text)

    def click_element(self, locator: Locator):
        locator.click()

    def get_element_text(self, locator: Locator) -> str:
        return locator.text_content() or ""

    def is_element_visible(self, locator: Locator) -> bool:
        try:
            return locator.is_visible()
        except PWError:
            return False
