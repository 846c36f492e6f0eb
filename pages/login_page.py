"""
LoginPage - locators and actions for the portal login form.
"""
import re

from playwright.sync_api import Error as PWError, Page

from pages.base_page import BasePage
from utils.test_logger import log_keyword


class LoginPage(BasePage):

    def __init__(self, page: Page, base_url: str = None):
        super().__init__(page, base_url)
        self.email_input = page.get_by_placeholder("Email address")
        self.password_input = page.get_by_placeholder("Password")
        self.login_button = page.get_by_role("button", name=re.compile(r"sign in|login", re.I))
        self.error_message = page.get_by_role("alert")
        self.remember_me_checkbox = page.get_by_label("Remember me")
        self.forgot_password_link = page.get_by_role("link", name=re.compile(r"forgot password", re.I))

    def goto(self):
        self.navigate("/login")

    @log_keyword("Login", log_args=False)
    def login(self, email: str, password: str):
        self.fill_input(self.email_input, email)
        self.fill_input(self.password_input, password)
        self.click_element(self.login_button)
        self._wait_for_post_login()

    @log_keyword("Login With Remember Me", log_args=False)
    def login_with_remember_me(self, email: str, password: str):
        self.fill_input(self.email_input, email)
        self.fill_input(self.password_input, password)
        self.click_element(self.remember_me_checkbox)
        self.click_element(self.login_button)
        self._wait_for_post_login()

    def _wait_for_post_login(self):
        # A failed login stays on the form; callers assert on the outcome
        try:
            self.page.wait_for_load_state("load", timeout=10_000)
        except PWError:
            pass

    def get_error_message(self) -> str:
        return self.get_element_text(self.error_message)

    def is_error_message_displayed(self) -> bool:
        return self.is_element_visible(self.error_message)

    def click_forgot_password(self):
        self.click_element(self.forgot_password_link)

    def verify_login_page_is_loaded(self) -> bool:
        return self.is_element_visible(self.email_input)
