"""Validation gate for commands typed into the dashboard terminal.

Every ``POST /api/kubectl`` request passes through :class:`CommandGatekeeper`
before anything is spawned. The gate checks the program prefix, extracts the
subcommand, enforces the subcommand whitelist, audits destructive deletes and
finally strips shell metacharacters. Stripping happens after the whitelist
check so a payload such as ``get;rm`` is judged on its real leading word.

Sanitization is a second line of defence only: the runner executes the result
as an argument array, never through a shell.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from k3sui.config import DEFAULT_KUBECTL_SUBCOMMANDS, Settings
from k3sui.exceptions import Forbidden, InvalidCommand

audit_logger = structlog.get_logger("k3sui.security")

SHELL_METACHARACTERS = frozenset(";&|`$(){}[]\\!#*?\"'<>\n\r")
USAGE_EXAMPLE = "kubectl get pods"

# A leading word may carry inner hyphens (port-forward, api-resources, ...)
_SUBCOMMAND_RE = re.compile(r"^(\w[\w-]*)", re.ASCII)
# --dry-run=none still deletes, so only client/server (or the bare flag) skip the audit
_DRY_RUN_RE = re.compile(r"(?:^|\s)--dry-run(?:=(?:client|server))?(?=\s|$)")


@dataclass(frozen=True)
class GatekeeperConfig:
    prefix: str = "kubectl "
    allowed_subcommands: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_KUBECTL_SUBCOMMANDS))
    metacharacters: frozenset[str] = SHELL_METACHARACTERS
    # Off by default: the literal character class also removed spaces,
    # which collapses "get pods -A" into "getpods-A".
    strip_spaces: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatekeeperConfig":
        return cls(
            allowed_subcommands=frozenset(settings.kubectl_allowed_subcommands),
            strip_spaces=settings.kubectl_strip_spaces,
        )


@dataclass(frozen=True)
class ValidatedCommand:
    """A terminal command that passed the whitelist and was sanitized."""

    subcommand: str
    text: str

    @property
    def argv(self) -> list[str]:
        return self.text.split()

    def __str__(self) -> str:
        return self.text


class CommandGatekeeper:
    def __init__(self, config: GatekeeperConfig | None = None) -> None:
        self.config = config or GatekeeperConfig()
        stripped = set(self.config.metacharacters)
        if self.config.strip_spaces:
            stripped.add(" ")
        self._strip_table = str.maketrans("", "", "".join(sorted(stripped)))

    def validate(self, raw: object) -> ValidatedCommand:
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidCommand("Command is required", details={"example": USAGE_EXAMPLE})

        command = raw.strip()
        if not command.startswith(self.config.prefix):
            program = self.config.prefix.strip()
            raise InvalidCommand(f'Command must start with "{program}"', details={"example": USAGE_EXAMPLE})

        body = command[len(self.config.prefix):].strip()
        subcommand = self.extract_subcommand(body)
        if subcommand is None:
            raise InvalidCommand("Invalid kubectl command", details={"example": USAGE_EXAMPLE})

        if subcommand not in self.config.allowed_subcommands:
            raise Forbidden(f"kubectl subcommand '{subcommand}' is not allowed", details={"subcommand": subcommand})

        if subcommand == "delete" and not _DRY_RUN_RE.search(body):
            audit_logger.warning("security.kubectl_delete", command=command)

        return ValidatedCommand(subcommand=subcommand, text=self.sanitize(body))

    @staticmethod
    def extract_subcommand(body: str) -> str | None:
        match = _SUBCOMMAND_RE.match(body)
        return match.group(1) if match else None

    def sanitize(self, text: str) -> str:
        return text.translate(self._strip_table).strip()
