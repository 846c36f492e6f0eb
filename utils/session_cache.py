"""
Session cache for authenticated browser contexts.

A snapshot is the JSON written by Playwright's ``context.storage_state()``:

    {"cookies": [{name, value, domain, path, expires, httpOnly, secure, sameSite}],
     "origins": [{"origin": ..., "localStorage": [{"name": ..., "value": ...}]}]}

``restore`` injects a snapshot into a live context, ``persist`` captures the
context back to disk and ``ensure_logged_in`` picks between the two so that a
test only logs in interactively when no usable snapshot exists.
"""
import hashlib
import json
import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from playwright.sync_api import BrowserContext, Error as PWError, Page

from utils.errors import (
    OriginRestoreError,
    PersistWriteError,
    SnapshotNotFoundError,
    SnapshotParseError,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
# Relative AUTH_DIR values are anchored at the project root, not the working directory
AUTH_DIR = str(PROJECT_ROOT / os.getenv("AUTH_DIR", os.path.join("playwright", ".auth")))
DEFAULT_STATE_PATH = os.path.join(AUTH_DIR, "user.json")

# Lock files older than this are left over from a crashed run
_LOCK_STALE_AFTER = 60.0
_LOCK_TIMEOUT = 30.0

_WRITE_LOCAL_STORAGE_JS = """
(entries) => {
    for (const [name, value] of entries) {
        window.localStorage.setItem(name, value);
    }
}
"""


@dataclass
class Credentials:
    username: str
    password: str

    @classmethod
    def from_env(cls) -> "Credentials":
        return cls(
            username=os.getenv("TEST_USERNAME", ""),
            password=os.getenv("TEST_PASSWORD", ""),
        )


@dataclass
class SessionSnapshot:
    """Captured authentication state: cookie records plus per-origin local storage."""

    cookies: List[Dict] = field(default_factory=list)
    origins: List[Dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data, path: str = "<memory>") -> "SessionSnapshot":
        """Validate a decoded storage state. Raises SnapshotParseError on any shape mismatch."""
        if not isinstance(data, dict):
            raise SnapshotParseError(path, "top-level value is not an object")

        cookies = data.get("cookies")
        origins = data.get("origins", [])
        if not isinstance(cookies, list):
            raise SnapshotParseError(path, "'cookies' is missing or not a list")
        if not isinstance(origins, list):
            raise SnapshotParseError(path, "'origins' is not a list")

        for i, cookie in enumerate(cookies):
            if not isinstance(cookie, dict):
                raise SnapshotParseError(path, f"cookie #{i} is not an object")
            if not isinstance(cookie.get("name"), str) or not isinstance(cookie.get("value"), str):
                raise SnapshotParseError(path, f"cookie #{i} needs string 'name' and 'value'")
            if not cookie.get("domain") and not cookie.get("url"):
                raise SnapshotParseError(path, f"cookie #{i} needs a 'domain' or 'url'")

        for i, entry in enumerate(origins):
            if not isinstance(entry, dict) or not isinstance(entry.get("origin"), str):
                raise SnapshotParseError(path, f"origin #{i} needs a string 'origin'")
            storage = entry.get("localStorage", [])
            if not isinstance(storage, list):
                raise SnapshotParseError(path, f"origin #{i} 'localStorage' is not a list")
            for item in storage:
                if (
                    not isinstance(item, dict)
                    or not isinstance(item.get("name"), str)
                    or not isinstance(item.get("value"), str)
                ):
                    raise SnapshotParseError(path, f"origin #{i} has a malformed localStorage entry")

        return cls(cookies=list(cookies), origins=list(origins))

    @classmethod
    def load(cls, path: str) -> "SessionSnapshot":
        if not os.path.isfile(path):
            raise SnapshotNotFoundError(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, UnicodeDecodeError) as e:
            raise SnapshotParseError(path, f"invalid JSON ({e})") from e
        return cls.from_dict(data, path)

    def to_dict(self) -> Dict:
        return {"cookies": self.cookies, "origins": self.origins}


@dataclass
class RestoreResult:
    cookies_applied: int = 0
    restored_origins: List[str] = field(default_factory=list)
    skipped_origins: List[OriginRestoreError] = field(default_factory=list)

    @property
    def fully_restored(self) -> bool:
        return not self.skipped_origins


@dataclass
class PersistResult:
    path: str
    written: bool
    error: Optional[PersistWriteError] = None


def snapshot_path_for(app_url: str, identity: str, auth_dir: str = AUTH_DIR) -> str:
    """
    Snapshot file for one application and one user.

    Keeping a file per (application, identity) stops suites that log in as
    different users, or against different hosts, from overwriting each other.
    """
    host = urlparse(app_url).netloc or app_url
    host = re.sub(r"[^a-zA-Z0-9_.-]+", "_", host).strip("_") or "app"
    who = hashlib.sha1((identity or "anonymous").encode("utf-8")).hexdigest()[:12]
    return os.path.join(auth_dir, f"{host}__{who}.json")


def _acquire_lock(lock_path: str, timeout: float = _LOCK_TIMEOUT) -> bool:
    """Create ``lock_path`` exclusively. Returns False if it stays held for ``timeout`` seconds."""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            try:
                age = time.time() - os.path.getmtime(lock_path)
                if age > _LOCK_STALE_AFTER:
                    logger.warning(f"Removing stale snapshot lock {lock_path} (age: {age:.1f}s)")
                    os.unlink(lock_path)
                    continue
            except FileNotFoundError:
                continue
            time.sleep(0.1)
            continue
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        return True
    return False


def _release_lock(lock_path: str):
    try:
        os.unlink(lock_path)
    except FileNotFoundError:
        pass


class SessionCache:
    """Restores or captures the storage state of one browser context."""

    def __init__(self, context: BrowserContext, page: Optional[Page] = None):
        self.context = context
        self._page = page

    @property
    def page(self) -> Page:
        if self._page is None:
            self._page = self.context.pages[0] if self.context.pages else self.context.new_page()
        return self._page

    def restore(self, snapshot_path: str = DEFAULT_STATE_PATH) -> RestoreResult:
        snapshot = SessionSnapshot.load(snapshot_path)
        result = RestoreResult()

        if snapshot.cookies:
            try:
                self.context.add_cookies(snapshot.cookies)
            except PWError as e:
                # The browser rejected the batch, so nothing was applied
                raise SnapshotParseError(snapshot_path, f"cookies rejected by browser ({e})") from e
        result.cookies_applied = len(snapshot.cookies)
        logger.debug(f"Applied {result.cookies_applied} cookie(s) from {snapshot_path}")

        ended_on_failure = False
        for entry in snapshot.origins:
            origin = entry["origin"]
            try:
                self._restore_origin(origin, entry.get("localStorage", []))
            except OriginRestoreError as e:
                logger.warning(f"Skipping origin during session restore: {e}")
                result.skipped_origins.append(e)
                ended_on_failure = True
                continue
            result.restored_origins.append(origin)
            ended_on_failure = False

        self._reload(result, ended_on_failure)
        logger.info(
            f"Session restored from {snapshot_path}: {result.cookies_applied} cookie(s), "
            f"{len(result.restored_origins)} origin(s) restored, {len(result.skipped_origins)} skipped"
        )
        return result

    def _reload(self, result: RestoreResult, ended_on_failure: bool):
        """
        Reload so the app picks up the injected state.

        A failed goto leaves the page on the dead origin, so reloading it would
        only repeat the failure. Move back to the last good origin first, or
        skip the reload when no origin could be restored.
        """
        if ended_on_failure and not result.restored_origins:
            logger.debug("No origin restored; skipping reload")
            return
        try:
            if ended_on_failure:
                self.page.goto(result.restored_origins[-1], wait_until="domcontentloaded")
            self.page.reload()
        except PWError as e:
            logger.warning(f"Reload after session restore failed: {e}")

    def _restore_origin(self, origin: str, storage: List[Dict]):
        entries = [[item["name"], item["value"]] for item in storage]
        try:
            self.page.goto(origin, wait_until="domcontentloaded")
            if entries:
                self.page.evaluate(_WRITE_LOCAL_STORAGE_JS, entries)
        except PWError as e:
            raise OriginRestoreError(origin, str(e)) from e

    def persist(self, snapshot_path: str = DEFAULT_STATE_PATH) -> PersistResult:
        state = self.context.storage_state()
        lock_path = f"{snapshot_path}.lock"
        tmp_path = f"{snapshot_path}.{os.getpid()}.tmp"
        try:
            os.makedirs(os.path.dirname(snapshot_path) or ".", exist_ok=True)
            if not _acquire_lock(lock_path):
                raise PersistWriteError(snapshot_path, "timed out waiting for snapshot lock")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(state, f, indent=2)
                os.replace(tmp_path, snapshot_path)
            finally:
                _release_lock(lock_path)
        except (OSError, PersistWriteError) as e:
            error = e if isinstance(e, PersistWriteError) else PersistWriteError(snapshot_path, str(e))
            logger.warning(f"Session snapshot not cached: {error}")
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            return PersistResult(path=snapshot_path, written=False, error=error)

        logger.info(f"Session snapshot saved to {snapshot_path}")
        return PersistResult(path=snapshot_path, written=True)

    def ensure_logged_in(
        self,
        credentials: Credentials,
        login: Callable[[str, str], None],
        snapshot_path: str = DEFAULT_STATE_PATH,
        verify: Optional[Callable[[], bool]] = None,
    ) -> Optional[RestoreResult]:
        """
        Make the context authenticated.

        Returns the RestoreResult when a cached snapshot was used, or None when
        a fresh login happened. A restored session is trusted as-is unless
        ``verify`` is given and returns a falsy value.
        """
        try:
            result = self.restore(snapshot_path)
        except SnapshotNotFoundError:
            logger.info(f"No cached session at {snapshot_path}; logging in")
        except SnapshotParseError as e:
            logger.warning(f"{e}; logging in")
        else:
            if verify is None or verify():
                return result
            logger.warning(f"Restored session from {snapshot_path} failed verification; logging in")

        login(credentials.username, credentials.password)
        self.persist(snapshot_path)
        return None
