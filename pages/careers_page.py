"""
CareersPage - public careers site: open the page, reveal the job list and
collect open position titles.
"""
import logging
import os
from dataclasses import dataclass
from typing import List

from playwright.sync_api import Page, expect

from pages.base_page import BasePage
from utils.test_logger import get_test_logger, log_keyword

logger = logging.getLogger(__name__)

DEFAULT_CAREERS_URL = "https://careers.osapiens.com/"


@dataclass(frozen=True)
class JobOpening:
    title: str


def get_jobs_with_title(jobs: List[JobOpening], keyword: str = "quality") -> List[JobOpening]:
    """Jobs whose title contains ``keyword``, case-insensitively."""
    needle = keyword.lower()
    matches = [job for job in jobs if needle in job.title.lower()]
    if matches:
        logger.info(f'Job titles containing "{keyword}":')
        for index, job in enumerate(matches, start=1):
            logger.info(f"   {index}. {job.title}")
    else:
        logger.info(f'No jobs contain "{keyword}" in the title.')
    return matches


class CareersPage(BasePage):

    def __init__(self, page: Page, base_url: str = None):
        super().__init__(page, base_url or os.getenv("CAREERS_URL", DEFAULT_CAREERS_URL))
        self.careers_title_link = page.locator("a.careers-navigation-block__menu-item", has_text="View Jobs")
        self.view_jobs_button = page.locator('a.external-button[href="#js-careers-jobs-block"]')
        self.open_position_links = page.locator('xpath=//a[starts-with(@href, "/en/postings/") and text()]')

    def open_careers_page(self):
        with get_test_logger().log_step("Open Careers Page"):
            self.page.goto(self.base_url, wait_until="domcontentloaded", timeout=10_000)
            expect(self.careers_title_link).to_be_visible()
            logger.info("Careers page is loaded.")

    def click_view_jobs_button(self):
        with get_test_logger().log_step('Click "View Jobs" button'):
            self.wait_for_element(self.view_jobs_button)
            self.click_element(self.view_jobs_button)

    @log_keyword("Get All Job Openings")
    def get_all_job_openings_with_title(self) -> List[JobOpening]:
        self.open_position_links.first.wait_for(state="visible", timeout=15_000)
        jobs = []
        for index, title in enumerate(self.open_position_links.all_inner_texts(), start=1):
            trimmed = title.strip()
            logger.info(f"   {index}. {trimmed}")
            jobs.append(JobOpening(trimmed))

        if jobs:
            logger.info(f"There are currently {len(jobs)} open positions found.")
        else:
            logger.info("There are no open positions found.")
        return jobs

    def get_jobs_with_title(self, jobs: List[JobOpening], keyword: str = "quality") -> List[JobOpening]:
        with get_test_logger().log_step(f'Filter jobs containing "{keyword}"'):
            return get_jobs_with_title(jobs, keyword)
