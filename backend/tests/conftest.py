"""
Shared pytest fixtures for the k3s UI backend tests.

This module provides:
- Kubernetes manifest builders shaped like API JSON
- A CommandRunner double with canned responses
- A FastAPI TestClient wired to mocked services
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from k3sui.services.executor import CommandRunner


# =============================================================================
# Manifest builders
# =============================================================================


def make_ingress(name: str, *backends: str, namespace: str = "default", host: Optional[str] = None) -> Dict[str, Any]:
    """Ingress with one rule whose paths route to ``backends`` in order."""
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "rules": [
                {
                    "host": host,
                    "http": {
                        "paths": [
                            {
                                "path": f"/{backend}",
                                "backend": {"service": {"name": backend, "port": {"number": 80}}},
                            }
                            for backend in backends
                        ]
                    },
                }
            ]
        },
    }


def make_service(name: str, selector: Optional[Dict[str, str]] = None, namespace: str = "default") -> Dict[str, Any]:
    spec: Dict[str, Any] = {"ports": [{"port": 80}]}
    if selector is not None:
        spec["selector"] = selector
    return {"metadata": {"name": name, "namespace": namespace}, "spec": spec}


def make_deployment(name: str, labels: Optional[Dict[str, str]] = None, namespace: str = "default") -> Dict[str, Any]:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"template": {"metadata": {"labels": labels or {}}}},
    }


def make_pod(name: str, labels: Optional[Dict[str, str]] = None, namespace: str = "default") -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"name": name, "namespace": namespace}
    if labels is not None:
        metadata["labels"] = labels
    return {"metadata": metadata, "status": {"phase": "Running"}}


# =============================================================================
# Command runner double
# =============================================================================


class FakeRunner(CommandRunner):
    """CommandRunner that records argument lists instead of spawning."""

    def __init__(self, binary: str = "kubectl", responses: Optional[List[Any]] = None) -> None:
        super().__init__(binary)
        self.calls: List[Dict[str, Any]] = []
        self.responses = list(responses or [])

    async def run(self, args, stdin=None):
        self.calls.append({"args": list(args), "stdin": stdin})
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def mock_process():
    """Factory for an asyncio subprocess double."""

    def _make(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
        proc = MagicMock()
        proc.communicate = AsyncMock(return_value=(stdout, stderr))
        proc.wait = AsyncMock(return_value=returncode)
        proc.returncode = returncode
        return proc

    return _make
