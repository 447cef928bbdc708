"""
Tests for the terminal command gatekeeper.
"""

import pytest
from structlog.testing import capture_logs

from k3sui.config import DEFAULT_KUBECTL_SUBCOMMANDS, Settings
from k3sui.exceptions import Forbidden, InvalidCommand
from k3sui.services.gatekeeper import (
    SHELL_METACHARACTERS,
    CommandGatekeeper,
    GatekeeperConfig,
    ValidatedCommand,
)


@pytest.fixture
def gatekeeper():
    return CommandGatekeeper()


def _delete_audits(logs):
    return [entry for entry in logs if entry["event"] == "security.kubectl_delete"]


class TestPrefix:
    def test_missing_prefix_is_invalid(self, gatekeeper):
        with pytest.raises(InvalidCommand) as exc_info:
            gatekeeper.validate("get pods")

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"example": "kubectl get pods"}
        assert "kubectl" in exc_info.value.message

    def test_prefixed_command_passes(self, gatekeeper):
        result = gatekeeper.validate("kubectl get pods")

        assert isinstance(result, ValidatedCommand)
        assert result.subcommand == "get"

    def test_prefix_is_case_sensitive(self, gatekeeper):
        with pytest.raises(InvalidCommand):
            gatekeeper.validate("Kubectl get pods")

    def test_surrounding_whitespace_is_trimmed(self, gatekeeper):
        assert gatekeeper.validate("   kubectl get pods  \n").text == "get pods"

    @pytest.mark.parametrize("raw", [None, "", "   ", 42])
    def test_empty_or_non_string_input_is_invalid(self, gatekeeper, raw):
        with pytest.raises(InvalidCommand) as exc_info:
            gatekeeper.validate(raw)
        assert exc_info.value.message == "Command is required"

    @pytest.mark.parametrize("raw", ["kubectl   ", "kubectl --help", "kubectl ;ls"])
    def test_no_leading_word_is_invalid(self, gatekeeper, raw):
        with pytest.raises(InvalidCommand):
            gatekeeper.validate(raw)


class TestWhitelist:
    @pytest.mark.parametrize("subcommand", sorted(DEFAULT_KUBECTL_SUBCOMMANDS))
    def test_every_allowed_subcommand_passes(self, gatekeeper, subcommand):
        result = gatekeeper.validate(f"kubectl {subcommand} --dry-run=client")
        assert result.subcommand == subcommand

    @pytest.mark.parametrize("command", ["drain node1", "cordon node1", "proxy", "patch pod x", "run nginx"])
    def test_unlisted_subcommands_are_forbidden(self, gatekeeper, command):
        with pytest.raises(Forbidden) as exc_info:
            gatekeeper.validate(f"kubectl {command}")

        subcommand = command.split()[0]
        assert exc_info.value.status_code == 403
        assert subcommand in exc_info.value.message
        assert exc_info.value.details == {"subcommand": subcommand}

    def test_get_with_flags_passes(self, gatekeeper):
        result = gatekeeper.validate("kubectl get pods -A")
        assert result.argv == ["get", "pods", "-A"]

    def test_whitelist_judges_raw_leading_word(self, gatekeeper):
        # "drain;get" must not be laundered into an allowed word by sanitizing first
        with pytest.raises(Forbidden):
            gatekeeper.validate("kubectl drain;get pods")

    def test_leading_word_stops_at_metacharacter(self, gatekeeper):
        result = gatekeeper.validate("kubectl get;rm -rf /")

        assert result.subcommand == "get"
        assert ";" not in result.text

    def test_smaller_whitelist_from_config(self):
        gatekeeper = CommandGatekeeper(GatekeeperConfig(allowed_subcommands=frozenset({"get"})))

        assert gatekeeper.validate("kubectl get pods").subcommand == "get"
        with pytest.raises(Forbidden):
            gatekeeper.validate("kubectl describe pods")

    def test_config_from_settings(self):
        settings = Settings(kubectl_allowed_subcommands=["version"], kubectl_strip_spaces=True)
        config = GatekeeperConfig.from_settings(settings)

        assert config.allowed_subcommands == frozenset({"version"})
        assert config.strip_spaces is True


class TestSanitization:
    def test_metacharacters_are_removed(self, gatekeeper):
        result = gatekeeper.validate("kubectl get pods; rm -rf / && echo `id` $(whoami) | cat > /tmp/x")

        for char in SHELL_METACHARACTERS:
            assert char not in result.text
        assert result.text == "get pods rm -rf /  echo id whoami  cat  /tmp/x"

    def test_newlines_and_quotes_are_removed(self, gatekeeper):
        result = gatekeeper.validate("kubectl get pods\r\n-l 'app=web' \"x\"")
        assert result.text == "get pods-l app=web x"

    def test_sanitize_is_idempotent(self, gatekeeper):
        once = gatekeeper.sanitize("get pods -l app={web} ; echo $HOME")
        assert gatekeeper.sanitize(once) == once

    def test_sanitize_is_idempotent_with_space_stripping(self):
        gatekeeper = CommandGatekeeper(GatekeeperConfig(strip_spaces=True))
        once = gatekeeper.sanitize("get pods -A | grep x")
        assert gatekeeper.sanitize(once) == once


class TestSpaceStrippingDecision:
    """Plain spaces are kept by default; the literal class stripped them."""

    def test_spaces_are_kept_by_default(self, gatekeeper):
        assert gatekeeper.validate("kubectl get pods -A").text == "get pods -A"

    def test_literal_mode_collapses_tokens(self):
        gatekeeper = CommandGatekeeper(GatekeeperConfig(strip_spaces=True))
        result = gatekeeper.validate("kubectl get pods -A")

        assert result.subcommand == "get"
        assert result.text == "getpods-A"
        assert result.argv == ["getpods-A"]

    def test_tabs_are_never_stripped(self):
        gatekeeper = CommandGatekeeper(GatekeeperConfig(strip_spaces=True))
        assert gatekeeper.sanitize("get\tpods") == "get\tpods"


class TestHyphenatedSubcommands:
    @pytest.mark.parametrize("subcommand", ["port-forward", "api-resources", "api-versions", "cluster-info"])
    def test_hyphenated_subcommands_are_reachable(self, gatekeeper, subcommand):
        assert gatekeeper.validate(f"kubectl {subcommand}").subcommand == subcommand

    def test_extract_subcommand(self):
        assert CommandGatekeeper.extract_subcommand("port-forward svc/web 8080:80") == "port-forward"
        assert CommandGatekeeper.extract_subcommand("-n kube-system get pods") is None


class TestDeleteAudit:
    def test_delete_without_dry_run_is_audited(self, gatekeeper):
        with capture_logs() as logs:
            result = gatekeeper.validate("kubectl delete pod foo")

        audits = _delete_audits(logs)
        assert result.text == "delete pod foo"
        assert len(audits) == 1
        assert audits[0]["command"] == "kubectl delete pod foo"
        assert audits[0]["log_level"] == "warning"

    def test_delete_with_dry_run_is_not_audited(self, gatekeeper):
        with capture_logs() as logs:
            gatekeeper.validate("kubectl delete pod foo --dry-run=client")

        assert _delete_audits(logs) == []

    @pytest.mark.parametrize("flag", ["--dry-run", "--dry-run=server"])
    def test_other_dry_run_forms_are_not_audited(self, gatekeeper, flag):
        with capture_logs() as logs:
            gatekeeper.validate(f"kubectl delete pod foo {flag} -n apps")

        assert _delete_audits(logs) == []

    @pytest.mark.parametrize("flag", ["--dry-run=none", "--dry-run-x", "--dry-run=clientx"])
    def test_effective_deletes_are_audited(self, gatekeeper, flag):
        with capture_logs() as logs:
            gatekeeper.validate(f"kubectl delete pod foo {flag}")

        assert len(_delete_audits(logs)) == 1

    def test_other_subcommands_are_not_audited(self, gatekeeper):
        with capture_logs() as logs:
            gatekeeper.validate("kubectl get pods")

        assert _delete_audits(logs) == []

    def test_rejected_commands_are_not_audited(self, gatekeeper):
        with capture_logs() as logs:
            with pytest.raises(Forbidden):
                gatekeeper.validate("kubectl drain node1")

        assert _delete_audits(logs) == []


def test_validated_command_is_immutable(gatekeeper):
    result = gatekeeper.validate("kubectl get pods")
    with pytest.raises(AttributeError):
        result.text = "delete pods --all"  # type: ignore[misc]
    assert str(result) == "get pods"
