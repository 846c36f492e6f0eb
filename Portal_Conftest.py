"""
Pytest configuration and fixtures for the portal (login/dashboard) E2E tests.

Holds the shared pieces every suite uses: logging setup, run configuration,
the Playwright browser/page fixtures, the authenticated-session fixture and
the reporting hooks.
"""
import pytest
import time
import logging
import os
import re
from datetime import datetime
from pathlib import Path

import requests
from dotenv import load_dotenv
from playwright.sync_api import sync_playwright, Error as PWError
from playwright.sync_api import Page as PWPage

PROJECT_ROOT = Path(__file__).parent.absolute()

_env_file = PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file)


def setup_logging():
    """File log at DEBUG with bare messages (test_logger formats them), console at INFO."""
    log_dir = PROJECT_ROOT / "logs"
    os.makedirs(log_dir, exist_ok=True)
    log_file = log_dir / "portal_e2e.log"

    file_formatter = logging.Formatter('%(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)8s] %(filename)s:%(lineno)d - %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    return str(log_file)


LOG_FILE = setup_logging()
logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Test Configuration Variables
DEFAULT_BASE_URL = "https://example.com"
BASE_URL = os.getenv("BASE_URL", DEFAULT_BASE_URL)
TEST_USERNAME = os.getenv("TEST_USERNAME", "")
TEST_PASSWORD = os.getenv("TEST_PASSWORD", "")

FAST_MODE = _env_flag("FAST_MODE", "0")
HEADLESS = _env_flag("HEADLESS", "1")
# Empty -> Playwright's bundled Chromium; "chrome"/"msedge" use the installed browser
BROWSER_CHANNEL = os.getenv("BROWSER_CHANNEL", "").strip() or None
DEFAULT_TIMEOUT_MS = int(os.getenv("DEFAULT_TIMEOUT_MS", "15000" if FAST_MODE else "30000"))

NET_CHECK_TIMEOUT = float(os.getenv("NET_CHECK_TIMEOUT", "5"))
NET_CHECK_CACHE_TTL = float(os.getenv("NET_CHECK_CACHE_TTL", "300"))
_NET_CHECK_CACHE: dict = {}

# Single source for snapshot locations, shared with SessionCache defaults
from utils.session_cache import AUTH_DIR, DEFAULT_STATE_PATH  # noqa: E402

PORTAL_CONFIGURED = BASE_URL != DEFAULT_BASE_URL

# Runtime monitoring
runtime_data = {
    'timings': {},
}


def portal_state_path() -> str:
    """Snapshot file for the configured portal user; AUTH_STATE_PATH pins it explicitly."""
    from utils.session_cache import snapshot_path_for
    return os.getenv("AUTH_STATE_PATH") or snapshot_path_for(BASE_URL, TEST_USERNAME, AUTH_DIR)


@pytest.fixture(scope="session")
def playwright_instance():
    pw = sync_playwright().start()
    yield pw
    pw.stop()


@pytest.fixture(scope="session")
def pw_browser(playwright_instance):
    """One browser for the whole session; browser tests skip when it cannot start."""
    logger.info(f"Launching Chromium (headless={HEADLESS}, channel={BROWSER_CHANNEL or 'bundled'})")
    try:
        browser = playwright_instance.chromium.launch(channel=BROWSER_CHANNEL, headless=HEADLESS)
    except PWError as e:
        pytest.skip(f"Browser could not be launched: {e}")
    yield browser
    try:
        logger.info("Closing browser instance")
        browser.close()
    except PWError as e:
        logger.warning(f"Error closing browser: {e}")


@pytest.fixture(scope="function")
def page(pw_browser):
    """
    Fresh Playwright page in its own context.

    Each test gets an isolated context so cookies and storage never leak
    between tests.
    """
    context = pw_browser.new_context(
        ignore_https_errors=True,
        viewport={"width": 1920, "height": 1080},
        locale="en-US",
    )
    context.set_default_timeout(DEFAULT_TIMEOUT_MS)
    page = context.new_page()

    yield page

    try:
        context.close()
    except PWError as e:
        logger.debug(f"Error closing context: {e}")


def check_network_connectivity(url: str = None, timeout: float = None) -> bool:
    """
    Check that the site under test is reachable.

    NET_CHECK_MODE decides what happens when it is not: "skip" (default) skips
    the test, "fail" returns False, "warn" returns True and lets the test try.
    Successful results are cached for NET_CHECK_CACHE_TTL seconds per target.
    """
    from utils.test_logger import get_test_logger
    test_logger = get_test_logger()

    target = url or os.getenv("NET_CHECK_URL") or BASE_URL
    timeout = float(timeout if timeout is not None else NET_CHECK_TIMEOUT)

    cached_ts = _NET_CHECK_CACHE.get(target)
    if cached_ts and time.time() - cached_ts <= NET_CHECK_CACHE_TTL:
        logger.debug(f"Network connectivity check: using cached PASS for {target}")
        return True

    test_logger.log_keyword_start("Check Network Connectivity", [target])
    last_err = None
    try:
        resp = requests.head(target, timeout=timeout, allow_redirects=True)
        # 401/403 still mean the host answered
        if resp.status_code < 500:
            logger.info(f"Network connectivity check: Connected (Target: {target}, Status: {resp.status_code})")
            _NET_CHECK_CACHE[target] = time.time()
            test_logger.log_keyword_end("Check Network Connectivity", "PASS")
            return True
        last_err = f"HTTP {resp.status_code}"
    except requests.RequestException as e:
        last_err = str(e)

    test_logger.log_keyword_end("Check Network Connectivity", "FAIL")
    msg = f"Network connectivity check failed for {target}. Last error: {last_err}"
    logger.error(msg)

    mode = (os.getenv("NET_CHECK_MODE") or "skip").strip().lower()
    if mode == "warn":
        return True
    if mode == "fail":
        return False
    pytest.skip(msg)


@pytest.fixture(scope="function")
def start_runtime_measurement():
    """Start runtime measurement for a test"""
    def _start(test_name: str):
        runtime_data['current_test'] = test_name
        runtime_data['start_time'] = time.time()
        logger.info(f"Started runtime measurement for: {test_name}")
    return _start


@pytest.fixture(scope="function")
def end_runtime_measurement():
    """End runtime measurement and return elapsed seconds"""
    def _end(operation_name: str = None):
        if 'start_time' not in runtime_data:
            logger.warning("No start time recorded. Call start_runtime_measurement first.")
            return 0.0
        elapsed = time.time() - runtime_data.pop('start_time')
        test_name = runtime_data.get('current_test', operation_name or "Unknown")
        runtime_data['timings'].setdefault(test_name, []).append({
            'operation': operation_name or 'total',
            'elapsed_seconds': elapsed,
            'timestamp': datetime.now().isoformat(),
        })
        logger.info(f"Runtime for '{test_name}': {elapsed:.2f} seconds")
        return elapsed
    return _end


@pytest.fixture(scope="function")
def login_page(page):
    from pages.login_page import LoginPage
    return LoginPage(page, BASE_URL)


@pytest.fixture(scope="function")
def dashboard_page(page):
    from pages.dashboard_page import DashboardPage
    return DashboardPage(page, BASE_URL)


@pytest.fixture(scope="function")
def at_login_page(login_page):
    """Open the login form before the test body runs."""
    check_network_connectivity(BASE_URL)
    login_page.goto()
    return login_page


@pytest.fixture(scope="function")
def logged_in(page, login_page):
    """
    Authenticated portal session.

    Restores the cached snapshot for the configured user when one exists,
    otherwise logs in through the login form and caches the result.
    Yields the RestoreResult, or None when a fresh login happened.
    """
    from utils.session_cache import Credentials, SessionCache

    check_network_connectivity(BASE_URL)

    def _login(username: str, password: str):
        login_page.goto()
        login_page.login(username, password)

    cache = SessionCache(page.context, page)
    state_path = portal_state_path()
    result = cache.ensure_logged_in(Credentials(TEST_USERNAME, TEST_PASSWORD), _login, state_path)
    logger.debug(f"logged_in fixture ready ({'restored' if result else 'fresh login'}, state: {state_path})")
    yield result


def _safe_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_.-]+", "_", name or "test")


def _capture_playwright_artifacts(page: PWPage, test_name: str):
    """Save screenshot + HTML + URL of the failing page under reports/failures."""
    reports_dir = PROJECT_ROOT / "reports" / "failures"
    os.makedirs(reports_dir, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = reports_dir / f"{_safe_filename(test_name)}_{ts}"
    screenshot_path = f"{base}.png"
    html_path = f"{base}.html"
    url_path = f"{base}.url.txt"

    current_url = page.url

    # Full page can hang on web fonts; fall back to the viewport
    try:
        page.screenshot(path=screenshot_path, full_page=True, timeout=8000)
    except PWError as e:
        logger.warning(f"Full page screenshot failed, trying viewport-only: {e}")
        try:
            page.screenshot(path=screenshot_path, full_page=False, timeout=5000)
        except PWError as e2:
            logger.error(f"Screenshot capture failed for {test_name}: {e2}")

    try:
        with open(html_path, "w", encoding="utf-8") as f:
            f.write(page.content() or "")
    except PWError as e:
        logger.debug(f"Could not save HTML: {e}")

    with open(url_path, "w", encoding="utf-8") as f:
        f.write(current_url or "")

    return screenshot_path, html_path, url_path, current_url


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Log each test outcome; capture page artifacts on failure"""
    from utils.test_logger import get_test_logger
    test_logger = get_test_logger()

    outcome = yield
    rep = outcome.get_result()
    test_name = item.name

    if rep.when == "setup" and rep.outcome == "failed":
        test_logger.log_test_end(test_name, "FAIL", message=str(rep.longrepr), elapsed=rep.duration)
    elif rep.when == "setup" and rep.outcome == "skipped":
        test_logger.log_test_end(test_name, "SKIP", message=str(rep.longrepr), elapsed=rep.duration)
    elif rep.when == "call":
        if rep.outcome == "passed":
            test_logger.log_test_end(test_name, "PASS", elapsed=rep.duration)
        elif rep.outcome == "skipped":
            test_logger.log_test_end(test_name, "SKIP", message=str(rep.longrepr), elapsed=rep.duration)
        else:
            test_logger.log_test_end(test_name, "FAIL", message=str(rep.longrepr), elapsed=rep.duration)
            pw_page = getattr(item, "funcargs", {}).get("page")
            if pw_page is not None and not pw_page.is_closed():
                try:
                    screenshot_path, html_path, url_path, current_url = _capture_playwright_artifacts(pw_page, test_name)
                    test_logger.log_info("Failure artifacts saved:")
                    test_logger.log_info(f"  URL: {current_url}")
                    test_logger.log_info(f"  Screenshot: {screenshot_path}")
                    test_logger.log_info(f"  HTML: {html_path}")
                except (PWError, OSError) as e:
                    logger.debug(f"Could not capture Playwright failure artifacts: {e}")

    for handler in logging.getLogger().handlers:
        handler.flush()


@pytest.fixture(autouse=True)
def log_test_start_end(request):
    """Log test start; the end is logged by pytest_runtest_makereport"""
    from utils.test_logger import get_test_logger
    get_test_logger().log_test_start(request.node.name, str(request.node.path))
    yield


def pytest_configure(config):
    from utils.test_logger import get_test_logger
    test_logger = get_test_logger()
    if not test_logger.get_statistics().get("start_time"):
        test_logger.log_suite_start("Portal E2E", str(config.rootpath))
    logger.info(f"Log file: {LOG_FILE}")
    logger.info(f"BASE_URL: {BASE_URL} (configured: {PORTAL_CONFIGURED})")


def pytest_sessionfinish(session, exitstatus):
    """Close the suite log and write reports/test_summary.txt"""
    from utils.test_logger import get_test_logger
    test_logger = get_test_logger()
    test_logger.log_suite_end("Portal E2E")

    stats = test_logger.get_statistics()
    summary_file = PROJECT_ROOT / "reports" / "test_summary.txt"
    os.makedirs(summary_file.parent, exist_ok=True)
    with open(summary_file, 'w', encoding='utf-8') as f:
        f.write("=" * 80 + "\n")
        f.write("PORTAL E2E TEST EXECUTION SUMMARY\n")
        f.write("=" * 80 + "\n")
        f.write(f"Session end: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"Exit status: {exitstatus}\n")
        f.write("\nTest Statistics:\n")
        f.write(f"  Total: {stats['total']}\n")
        f.write(f"  Passed: {stats['passed']}\n")
        f.write(f"  Failed: {stats['failed']}\n")
        f.write(f"  Skipped: {stats['skipped']}\n")
        if runtime_data['timings']:
            f.write("\nRuntime Summary:\n")
            f.write("-" * 80 + "\n")
            for test_name, timings in runtime_data['timings'].items():
                total_time = sum(t['elapsed_seconds'] for t in timings)
                f.write(f"  {test_name}: {total_time:.2f} seconds\n")
        f.write("=" * 80 + "\n")
    logger.info(f"Test summary written to: {summary_file}")
