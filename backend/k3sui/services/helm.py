from __future__ import annotations

import json
import os
import tempfile
from typing import Any

import httpx
import structlog
import yaml

from k3sui.config import Settings, get_settings
from k3sui.exceptions import AppException, BadRequest, ExecutionFailure
from k3sui.services.executor import CommandRunner

logger = structlog.get_logger(__name__)


def _check_values(values_yaml: str) -> None:
    try:
        values = yaml.safe_load(values_yaml)
    except yaml.YAMLError as exc:
        raise BadRequest("Invalid values YAML", details=str(exc)) from exc
    if values is not None and not isinstance(values, dict):
        raise BadRequest("Values YAML must be a mapping")


def _reject_flag_like(field: str, value: str | None) -> None:
    # helm would parse a leading dash as one of its own flags
    if value and value.startswith("-"):
        raise BadRequest(f"Invalid {field}", details={field: value})


class HelmService:
    def __init__(
        self,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.runner = runner or CommandRunner(self.settings.helm_binary, self.settings.command_timeout_seconds)
        self._http_client = http_client

    async def search_charts(self, query: str | None) -> dict[str, Any]:
        """Search Artifact Hub for Helm charts (package kind 0)."""
        if not query or not query.strip():
            raise BadRequest("Search query is required")
        params = {"kind": 0, "ts_query": query.strip()}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self.settings.artifact_hub_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.settings.artifact_hub_timeout_seconds) as http:
                    response = await http.get(self.settings.artifact_hub_url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("helm.search_error", error=str(exc))
            raise AppException("Failed to search Helm charts", status_code=500, details=str(exc)) from exc

        if response.is_error:
            logger.warning("helm.search_upstream_error", status=response.status_code)
            raise AppException("Artifact Hub API failed", status_code=response.status_code, code="UPSTREAM_ERROR")
        return response.json()

    async def install(
        self,
        release: str,
        chart: str,
        namespace: str,
        repo: str | None = None,
        version: str | None = None,
        values_yaml: str | None = None,
    ) -> str:
        for field, value in (("release", release), ("chart", chart), ("repo", repo), ("version", version)):
            _reject_flag_like(field, value)
        args = ["install", release, chart]
        if repo:
            args += ["--repo", repo]
        if version:
            args += ["--version", version]
        args += ["--namespace", namespace]
        if values_yaml:
            _check_values(values_yaml)
        path = None
        try:
            if values_yaml:
                fd, path = tempfile.mkstemp(prefix="k3sui-helm-values-", suffix=".yaml")
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(values_yaml)
                args += ["--values", path]
            args.append("--create-namespace")
            logger.info("helm.install", release=release, chart=chart, namespace=namespace)
            try:
                return await self.runner.run(args)
            except ExecutionFailure as exc:
                raise ExecutionFailure("Failed to install Helm chart", details=exc.details) from exc
        finally:
            if path and os.path.exists(path):
                os.remove(path)

    async def list_releases(self, namespace: str | None = None) -> list[dict[str, Any]]:
        args = ["list", "-o", "json"]
        if namespace == "all":
            args.append("--all-namespaces")
        elif namespace:
            args += ["-n", namespace]
        output = await self.runner.run(args)
        data = json.loads(output or "[]")
        return data if isinstance(data, list) else []

    async def uninstall(self, release: str, namespace: str) -> str:
        logger.info("helm.uninstall", release=release, namespace=namespace)
        return await self.runner.run(["uninstall", release, "-n", namespace])
