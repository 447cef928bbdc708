from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import structlog

from k3sui.config import Settings, get_settings
from k3sui.exceptions import DockerUnavailable, ExecutionFailure, NotFound
from k3sui.services.executor import CommandRunner

logger = structlog.get_logger(__name__)

DOCKER_DOWN_MARKERS = ("Cannot connect to the Docker daemon", "docker daemon running")
DOCKER_DOWN_HINT = "k3d requires Docker to be running. Please start Docker Desktop or the Docker daemon."
NOT_INSTALLED_MARKERS = ("command not found", "no such file", "could not be started")


def _is_docker_down(text: str) -> bool:
    return any(marker in text for marker in DOCKER_DOWN_MARKERS)


def _as_int(value: Any, fallback: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return fallback
    return parsed or fallback


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def earliest_node_created(cluster: dict[str, Any], now: datetime | None = None) -> str:
    """Creation time of a cluster: its oldest node, or ``now`` without nodes."""
    oldest = now or datetime.now(tz=timezone.utc)
    for node in cluster.get("nodes") or []:
        created = _parse_timestamp(str(node.get("created", "")))
        if created is not None and created < oldest:
            oldest = created
    return oldest.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class K3dService:
    """Local cluster lifecycle through the ``k3d`` CLI."""

    def __init__(self, settings: Settings | None = None, runner: CommandRunner | None = None) -> None:
        self.settings = settings or get_settings()
        self.runner = runner or CommandRunner(self.settings.k3d_binary, self.settings.command_timeout_seconds)

    async def _run(self, args: list[str], failure: str) -> str:
        try:
            return await self.runner.run(args)
        except ExecutionFailure as exc:
            details = str(exc.details or exc.message)
            if _is_docker_down(details):
                raise DockerUnavailable("Docker daemon is not running", details=DOCKER_DOWN_HINT) from exc
            raise ExecutionFailure(failure, details=details) from exc

    async def list_clusters(self) -> list[dict[str, Any]]:
        output = await self._run(["cluster", "list", "--output", "json"], "Failed to list clusters")
        clusters = json.loads(output or "[]")
        return [{**cluster, "created": earliest_node_created(cluster)} for cluster in clusters]

    async def get_cluster(self, name: str) -> dict[str, Any]:
        output = await self._run(["cluster", "list", name, "--output", "json"], "Failed to get cluster info")
        for cluster in json.loads(output or "[]"):
            if cluster.get("name") == name:
                return cluster
        raise NotFound("Cluster not found", details={"name": name})

    async def create_cluster(self, name: str, options: dict[str, Any] | None = None) -> str:
        args = ["cluster", "create", name]
        options = options or {}
        if options.get("agents"):
            args += ["--agents", str(_as_int(options["agents"], 1))]
        if options.get("servers"):
            args += ["--servers", str(_as_int(options["servers"], 1))]
        if options.get("k3s_version"):
            args += ["--image", f"rancher/k3s:{options['k3s_version']}"]
        if options.get("port"):
            args += ["--port", str(_as_int(options["port"], 6443))]
        logger.info("k3d.create_cluster", name=name, args=args)
        return await self._run(args, "Failed to create cluster")

    async def delete_cluster(self, name: str) -> str:
        logger.info("k3d.delete_cluster", name=name)
        return await self._run(["cluster", "delete", name], "Failed to delete cluster")

    async def switch_context(self, name: str) -> str:
        return await self._run(["kubeconfig", "merge", name, "--kubeconfig-switch-context"], "Failed to switch context")

    async def status(self) -> dict[str, Any]:
        try:
            await self.runner.run(["cluster", "list", "--output", "json"])
        except ExecutionFailure as exc:
            details = str(exc.details or exc.message)
            if _is_docker_down(details):
                return {"installed": False, "error": "Docker daemon is not running"}
            lowered = f"{exc.message} {details}".lower()
            if any(marker in lowered for marker in NOT_INSTALLED_MARKERS):
                return {"installed": False, "error": "k3d is not installed"}
            return {"installed": False, "error": details}
        return {"installed": True, "version": "installed"}

    async def version_line(self) -> str:
        try:
            output = await self.runner.run(["version"])
        except ExecutionFailure:
            return "Not available"
        return output.splitlines()[0] if output else "Not available"
