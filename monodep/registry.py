"""Latest-version lookups against the npm registry for the outdated report."""

from __future__ import annotations

import json
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .logging import get_logger
from .models import OutdatedDependency
from .versions import is_local_range, range_includes

DEFAULT_REGISTRY = "https://registry.npmjs.org"
ENV_REGISTRY_KEYS = ("MONODEP_REGISTRY", "NPM_CONFIG_REGISTRY", "npm_config_registry")

LatestFetcher = Callable[[str], Optional[str]]

logger = get_logger("registry")


def _resolve_registry(registry: str | None) -> str:
    if registry:
        return registry.rstrip("/")
    for key in ENV_REGISTRY_KEYS:
        value = os.getenv(key)
        if value:
            return value.rstrip("/")
    return DEFAULT_REGISTRY


def make_http_fetcher(registry: str | None = None, timeout: float = 10.0) -> LatestFetcher:
    """Return a fetcher that reads ``<registry>/<name>/latest`` over HTTP."""
    base_url = _resolve_registry(registry)

    def _fetch(name: str) -> Optional[str]:
        endpoint = f"{base_url}/{quote(name, safe='@')}/latest"
        request = Request(endpoint, headers={"Accept": "application/json"})
        try:
            with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            logger.debug("Registry lookup for %s failed with status %s", name, exc.code)
            return None
        except (URLError, OSError) as exc:
            logger.debug("Registry lookup for %s failed: %s", name, exc)
            return None
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        version = payload.get("version") if isinstance(payload, dict) else None
        return version if isinstance(version, str) else None

    return _fetch


class VersionChecker:
    """Looks up latest versions once per dependency name and run."""

    def __init__(
        self,
        fetcher: LatestFetcher | None = None,
        *,
        max_concurrency: int = 8,
    ) -> None:
        self._fetcher = fetcher or make_http_fetcher()
        self.max_concurrency = max(1, max_concurrency)
        self._latest: Dict[str, Optional[str]] = {}

    @property
    def queried(self) -> Sequence[str]:
        return tuple(self._latest)

    def prefetch(self, names: Iterable[str]) -> None:
        """Fetch every distinct, not yet cached name with bounded concurrency."""
        pending: List[str] = []
        for name in names:
            if name not in self._latest and name not in pending:
                pending.append(name)
        if not pending:
            return
        logger.info("Checking %d unique dependencies for updates", len(pending))
        workers = min(self.max_concurrency, len(pending))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(self._safe_fetch, pending))
        for name, latest in zip(pending, results):
            self._latest[name] = latest

    def latest(self, name: str) -> Optional[str]:
        if name not in self._latest:
            self.prefetch([name])
        return self._latest.get(name)

    def check_versions(
        self, package: str, dependencies: Mapping[str, str]
    ) -> List[OutdatedDependency]:
        """Return dependencies whose declared range excludes the latest published version."""
        registry_deps = {
            name: version_range
            for name, version_range in dependencies.items()
            if not is_local_range(version_range)
        }
        self.prefetch(registry_deps)

        outdated: List[OutdatedDependency] = []
        for name, version_range in registry_deps.items():
            latest = self._latest.get(name)
            if not latest:
                continue
            if range_includes(version_range, latest):
                continue
            outdated.append(
                OutdatedDependency(
                    package=package, dependency=name, current=version_range, latest=latest
                )
            )
        return outdated

    def _safe_fetch(self, name: str) -> Optional[str]:
        try:
            return self._fetcher(name)
        except Exception as exc:  # pragma: no cover - injected fetchers may raise anything
            logger.debug("Registry lookup for %s raised %s", name, exc)
            return None


__all__ = ["DEFAULT_REGISTRY", "VersionChecker", "make_http_fetcher"]
