"""
Pytest configuration and fixtures for the public careers site tests.
Browser, logging and reporting come from Portal_Conftest.
"""
import os

import pytest

from pages.careers_page import CareersPage, DEFAULT_CAREERS_URL

CAREERS_URL = os.getenv("CAREERS_URL", DEFAULT_CAREERS_URL)
# Keyword every run expects at least one open position title to contain
CAREERS_JOB_KEYWORD = os.getenv("CAREERS_JOB_KEYWORD", "quality")


def retry_attempts_from_env() -> int:
    """RETRY_ATTEMPTS, parsed when a test asks for it so a bad value fails that test only."""
    raw = os.getenv("RETRY_ATTEMPTS", "2").strip()
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"RETRY_ATTEMPTS must be a positive integer, got {raw!r}") from None


@pytest.fixture(scope="function")
def careers_page(page):
    return CareersPage(page, CAREERS_URL)


@pytest.fixture(scope="function")
def retry_attempts():
    return retry_attempts_from_env()
