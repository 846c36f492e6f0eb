"""
Careers site: open the job list and check that at least one open position
matches the expected keyword. The whole flow is retried because the public
site is occasionally slow to render the listing.
"""
import pytest
from playwright.sync_api import Page

from Careers_Conftest import CAREERS_JOB_KEYWORD, CAREERS_URL
from Portal_Conftest import check_network_connectivity
from utils.cookie_banner import handle_cookies
from utils.retry import run_with_retry
from utils.test_logger import get_test_logger

pytestmark = [pytest.mark.e2e, pytest.mark.careers]


def test_careers_page_lists_jobs_with_keyword(page: Page, careers_page, retry_attempts, start_runtime_measurement, end_runtime_measurement):
    start_runtime_measurement("Careers jobs with keyword")
    check_network_connectivity(CAREERS_URL)

    def scenario():
        careers_page.open_careers_page()
        handle_cookies(page)
        careers_page.click_view_jobs_button()
        all_jobs = careers_page.get_all_job_openings_with_title()
        matching = careers_page.get_jobs_with_title(all_jobs, CAREERS_JOB_KEYWORD)

        with get_test_logger().log_step(f'Validate jobs contain "{CAREERS_JOB_KEYWORD}" in title'):
            assert len(matching) >= 1, (
                f'There are {len(matching)} jobs with "{CAREERS_JOB_KEYWORD}" in the title.'
            )
        return matching

    matching = run_with_retry(scenario, retry_attempts)
    end_runtime_measurement("Careers jobs with keyword")
    assert all(CAREERS_JOB_KEYWORD.lower() in job.title.lower() for job in matching)
