import json
import logging
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from jsonschema import Draft7Validator

from mcp_skill.config import Settings, format_schema_error
from mcp_skill.constants import MCP_INDEX_FILENAME, SKILL_INDEX_FILENAME, USER_AGENT
from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import RegistryFetchError, RegistryUnavailableError
from mcp_skill.registry.models import SyncMeta
from mcp_skill.registry.schema import MCP_INDEX_VALIDATOR, SKILL_INDEX_VALIDATOR
from mcp_skill.utils import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

HttpGet = Callable[[str], bytes]


def http_get(url: str) -> bytes:
    request = Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urlopen(request) as response:
            status = getattr(response, "status", 200)
            body = response.read()
    except HTTPError as exc:
        detail = exc.read(8 * 1024).decode("utf-8", errors="replace").strip()
        raise RegistryFetchError(url, f"{exc.code} {exc.reason} {detail}".strip()) from exc
    except URLError as exc:
        raise RegistryFetchError(url, str(exc.reason)) from exc
    except OSError as exc:
        raise RegistryFetchError(url, str(exc)) from exc
    if status != 200:
        raise RegistryFetchError(url, f"HTTP {status}")
    return body


class IndexSyncService:
    """Keeps the two local registry indexes no older than the configured TTL."""

    def __init__(
        self,
        store: LocalStore,
        settings: Settings,
        fetch: HttpGet | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._fetch = fetch or http_get
        self._clock = clock or utc_now

    @property
    def index_paths(self) -> tuple[Path, Path]:
        return self._store.skill_index_path, self._store.mcp_index_path

    def has_indexes(self) -> bool:
        return all(path.is_file() for path in self.index_paths)

    def should_sync(self, meta: SyncMeta | None) -> bool:
        if meta is None or not meta.last_sync:
            return True
        if not self.has_indexes():
            return True
        if meta.repo != self._settings.registry_repo:
            return True
        if meta.branch != self._settings.registry_branch:
            return True
        last_sync = parse_timestamp(meta.last_sync)
        if last_sync is None:
            return True
        ttl = timedelta(seconds=self._settings.sync_ttl_seconds)
        return self._clock() - last_sync > ttl

    def ensure_indexes(self) -> bool:
        """Sync when stale. Returns whether a download happened.

        A failed download falls back to the existing indexes when both are
        present; otherwise :class:`RegistryUnavailableError` is raised.
        """
        if not self.should_sync(self._store.load_sync_meta()):
            logger.debug("Registry indexes are fresh")
            return False

        try:
            self.sync()
        except RegistryFetchError as exc:
            if self.has_indexes():
                logger.warning("Registry sync failed, using cached indexes: %s", exc)
                return False
            raise RegistryUnavailableError(f"registry sync failed: {exc}") from exc
        return True

    def sync(self) -> None:
        base = self._settings.raw_base_url()
        self._store.root.mkdir(parents=True, exist_ok=True)

        staged: list[tuple[Path, Path]] = []
        try:
            for filename, dest, validator in zip(
                (SKILL_INDEX_FILENAME, MCP_INDEX_FILENAME),
                self.index_paths,
                (SKILL_INDEX_VALIDATOR, MCP_INDEX_VALIDATOR),
            ):
                url = base + filename
                logger.debug("Downloading registry index: %s", url)
                staged.append((self._download(url, dest, validator), dest))

            for tmp_path, dest in staged:
                os.replace(tmp_path, dest)
        finally:
            for tmp_path, _ in staged:
                tmp_path.unlink(missing_ok=True)

        self._store.save_sync_meta(
            SyncMeta(
                repo=self._settings.registry_repo,
                branch=self._settings.registry_branch,
                last_sync=format_timestamp(self._clock()),
                skill_index=SKILL_INDEX_FILENAME,
                mcp_index=MCP_INDEX_FILENAME,
            )
        )
        logger.info("Synced registry indexes from %s", base)

    def _download(self, url: str, dest: Path, validator: Draft7Validator) -> Path:
        body = self._fetch(url)
        try:
            payload = json.loads(body.decode("utf-8"))
        except ValueError as exc:
            raise RegistryFetchError(url, f"invalid JSON ({exc})") from exc
        if not isinstance(payload, dict):
            raise RegistryFetchError(url, "invalid index (must be a JSON object)")
        schema_error = next(iter(validator.iter_errors(payload)), None)
        if schema_error is not None:
            raise RegistryFetchError(url, f"invalid index ({format_schema_error(schema_error)})")

        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
        with os.fdopen(fd, "wb") as handle:
            handle.write(body)
        return Path(tmp_name)
