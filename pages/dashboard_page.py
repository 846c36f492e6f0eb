"""
DashboardPage - locators and actions for the authenticated dashboard.
"""
import re

from playwright.sync_api import Page

from pages.base_page import BasePage
from utils.test_logger import log_keyword


class DashboardPage(BasePage):

    def __init__(self, page: Page, base_url: str = None):
        super().__init__(page, base_url)
        self.welcome_heading = page.get_by_role("heading", name=re.compile(r"welcome|dashboard", re.I))
        self.user_profile_button = page.get_by_role("button", name=re.compile(r"profile|user", re.I))
        self.logout_button = page.get_by_role("button", name=re.compile(r"logout|sign out", re.I))
        self.sidebar_navigation = page.locator('nav[aria-label="sidebar"]')
        self.dashboard_cards = page.locator('[data-testid="dashboard-card"]')
        self.search_input = page.get_by_placeholder(re.compile(r"search|find", re.I))
        self.notification_bell = page.get_by_role("button", name=re.compile(r"notifications|bell", re.I))

    def goto(self):
        self.navigate("/dashboard")

    def verify_dashboard_loaded(self) -> bool:
        return self.is_element_visible(self.welcome_heading)

    @log_keyword("Navigate To Menu Option")
    def navigate_to_menu_option(self, menu_name: str):
        self.click_element(self.sidebar_navigation.get_by_role("link", name=menu_name))

    @log_keyword("Logout")
    def logout(self):
        self.click_element(self.user_profile_button)
        self.click_element(self.logout_button)

    @log_keyword("Search")
    def search(self, search_term: str):
        self.fill_input(self.search_input, search_term)
        self.page.keyboard.press("Enter")

    def get_dashboard_card_count(self) -> int:
        return self.dashboard_cards.count()

    def click_dashboard_card(self, index: int):
        self.click_element(self.dashboard_cards.nth(index))

    def get_dashboard_card_text(self, index: int) -> str:
        return self.get_element_text(self.dashboard_cards.nth(index))

    def is_user_logged_in(self) -> bool:
        return self.verify_dashboard_loaded()

    def open_notifications(self):
        self.click_element(self.notification_bell)
