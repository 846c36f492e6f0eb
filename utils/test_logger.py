"""
Structured run logger for the E2E suite.

Writes suite, test, step and keyword records with elapsed timings to the
``portal_e2e`` logger and keeps pass/fail/skip statistics for the summary.
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Dict, List, Optional


def _stamp(ts: Optional[float] = None) -> str:
    moment = datetime.fromtimestamp(ts) if ts is not None else datetime.now()
    return moment.strftime('%Y%m%d %H:%M:%S.%f')[:-3]


class TestLogger:
    """Suite/test/keyword logger with a statistics table at the end of the run"""

    # Not a test class, despite the name
    __test__ = False

    def __init__(self, logger_name: str = 'portal_e2e'):
        self.logger = logging.getLogger(logger_name)
        self.test_stats = {
            'tests': [],
            'total': 0,
            'passed': 0,
            'failed': 0,
            'skipped': 0,
            'start_time': None,
        }
        self.current_test = None
        self.keyword_stack = []

    def log_suite_start(self, suite_name: str, source: str = None):
        self.test_stats['start_time'] = time.time()
        self.logger.info("=" * 100)
        self.logger.info(f"SUITE {suite_name}")
        if source:
            self.logger.info(f"Source: {source}")
        self.logger.info(f"Start: {_stamp()}")
        self.logger.info("=" * 100)

    def log_suite_end(self, suite_name: str):
        end_time = time.time()
        start_time = self.test_stats.get('start_time') or end_time
        stats = self.test_stats

        self.logger.info("")
        self.logger.info("=" * 100)
        self.logger.info(f"SUITE {suite_name}")
        self.logger.info(f"Start / End / Elapsed: {_stamp(start_time)} / {_stamp(end_time)} / {self._format_elapsed(end_time - start_time)}")
        self.logger.info(f"Status: {stats['total']} tests total, {stats['passed']} passed, {stats['failed']} failed, {stats['skipped']} skipped")
        self.logger.info("=" * 100)
        self.log_test_statistics()

    def log_test_start(self, test_name: str, test_file: str = None):
        self.current_test = {
            'name': test_name,
            'file': test_file,
            'start_time': time.time(),
            'status': 'RUNNING',
            'keywords': [],
        }
        self.test_stats['total'] += 1

        self.logger.info("")
        self.logger.info("=" * 100)
        self.logger.info(f"TEST {test_name}")
        if test_file:
            self.logger.info(f"Source: {test_file}")
        self.logger.info(f"Start: {_stamp()}")
        self.logger.info("=" * 100)

    def log_test_end(self, test_name: str, status: str, message: str = None, elapsed: float = None):
        """Record the outcome of the current test. Ignored when no test is running."""
        if not self.current_test:
            return
        end_time = time.time()
        start_time = self.current_test['start_time']
        elapsed_time = elapsed if elapsed is not None else end_time - start_time
        status_upper = status.upper()

        self.logger.info("")
        self.logger.info(f"TEST {test_name}")
        self.logger.info(f"Start / End / Elapsed: {_stamp(start_time)} / {_stamp(end_time)} / {self._format_elapsed(elapsed_time)}")
        self.logger.info(f"Status: {status_upper}")
        if message:
            self.logger.info(f"Message: {message}")

        self.current_test['status'] = status_upper
        self.current_test['elapsed'] = elapsed_time
        if status_upper == 'PASS':
            self.test_stats['passed'] += 1
        elif status_upper == 'FAIL':
            self.test_stats['failed'] += 1
            self.current_test['error'] = message
        elif status_upper == 'SKIP':
            self.test_stats['skipped'] += 1

        self.test_stats['tests'].append(self.current_test)
        self.current_test = None

    def log_keyword(self, keyword_name: str, args: List = None, elapsed: float = 0.0, status: str = 'PASS'):
        args_str = (" " + ", ".join(str(a) for a in args)) if args else ""
        self.logger.info(f"{self._format_elapsed(elapsed)} KEYWORD {keyword_name}{args_str} [{status}]")
        if self.current_test:
            self.current_test['keywords'].append({
                'name': keyword_name,
                'args': args or [],
                'elapsed': elapsed,
                'status': status,
            })

    def log_keyword_start(self, keyword_name: str, args: List = None):
        self.keyword_stack.append({
            'name': keyword_name,
            'args': args,
            'start_time': time.time(),
        })

    def log_keyword_end(self, keyword_name: str, status: str = 'PASS', elapsed: float = None):
        if self.keyword_stack:
            kw = self.keyword_stack.pop()
            elapsed_time = elapsed if elapsed is not None else time.time() - kw['start_time']
            self.log_keyword(kw['name'], kw.get('args'), elapsed_time, status)
        else:
            self.log_keyword(keyword_name, [], elapsed or 0.0, status)

    @contextmanager
    def log_step(self, step_name: str):
        """Time a named block of a test as a keyword; a raised error marks it FAIL."""
        self.log_keyword_start(step_name)
        try:
            yield
        except BaseException:
            self.log_keyword_end(step_name, 'FAIL')
            raise
        self.log_keyword_end(step_name, 'PASS')

    def log_message(self, level: str, message: str):
        time_str = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        self.logger.log(getattr(logging, level.upper(), logging.INFO), f"{time_str}\t{level.upper()}\t{message}")

    def log_info(self, message: str):
        self.log_message('INFO', message)

    def log_warning(self, message: str):
        self.log_message('WARNING', message)

    def log_error(self, message: str):
        self.log_message('ERROR', message)

    def log_test_statistics(self):
        self.logger.info("")
        self.logger.info("Test Statistics")
        self.logger.info("-" * 100)
        self.logger.info(f"{'Test':<60} {'Status':<8} {'Elapsed':<15}")
        self.logger.info("-" * 100)
        for test in self.test_stats['tests']:
            self.logger.info(f"{test['name']:<60} {test['status']:<8} {self._format_elapsed(test.get('elapsed', 0)):<15}")
        total_elapsed = sum(t.get('elapsed', 0) for t in self.test_stats['tests'])
        self.logger.info("-" * 100)
        self.logger.info(
            f"{'All Tests':<60} {self.test_stats['passed']}/{self.test_stats['total']:<6} {self._format_elapsed(total_elapsed):<15}"
        )
        self.logger.info("-" * 100)

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        """Format elapsed time as HH:MM:SS.mmm"""
        seconds = seconds or 0.0
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours:02d}:{minutes:02d}:{secs:06.3f}"

    def get_statistics(self) -> Dict:
        return dict(self.test_stats)


_test_logger = None


def get_test_logger() -> TestLogger:
    """Get or create the process-wide test logger"""
    global _test_logger
    if _test_logger is None:
        _test_logger = TestLogger()
    return _test_logger


def log_keyword(keyword_name: str = None, log_args: bool = True):
    """Decorator that logs a page-object action as a keyword. Pass log_args=False for secrets."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            test_logger = get_test_logger()
            kw_name = keyword_name or func.__name__
            # Skip ``self`` for page-object methods
            shown = list(args[1:]) if args and hasattr(args[0], "page") else list(args)
            if not log_args:
                shown = []
            test_logger.log_keyword_start(kw_name, shown)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                test_logger.log_keyword_end(kw_name, 'FAIL')
                test_logger.log_error(f"{kw_name} failed: {e}")
                raise
            test_logger.log_keyword_end(kw_name, 'PASS')
            return result
        return wrapper
    return decorator
