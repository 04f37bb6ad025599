"""
Tests for the config rewrite engine
"""

import os
import stat
from pathlib import Path

import pytest
from unittest.mock import patch

from conftest import (
    DISABLED_PROFILE,
    ENABLED_PROFILE,
    ETH_MAC,
    ETH_NAME,
    NAMING_RULE,
    READ_ONLY,
    WLAN_MAC,
    WLAN_NAME,
    write_artifact,
)
from kiss_netrole.artifacts import KeyfileDocument, read_bindings
from kiss_netrole.errors import (
    ArtifactConflictError,
    ArtifactMalformedError,
    ArtifactMissingError,
    PartialFailureError,
    PermissionDeniedError,
)
from kiss_netrole.rewriter import (
    STEP_DISABLED_PROFILE,
    STEP_ENABLED_PROFILE,
    STEP_NAMING_RULE,
    ApplyStatus,
    RewriteEngine,
    Substitution,
    owner_writable,
    pending_steps,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def _snapshot(directory: Path) -> dict[str, tuple[str, int]]:
    return {
        str(p.relative_to(directory)): (p.read_text(), _mode(p))
        for p in sorted(directory.rglob("*")) if p.is_file()
    }


class TestSubstitution:
    """Test token-bounded substitution"""

    def test_replaces_all_occurrences(self):
        text, count = Substitution("wlan0", "enp3s0").apply("id=wlan0\ninterface-name=wlan0\n")
        assert text == "id=enp3s0\ninterface-name=enp3s0\n"
        assert count == 2

    def test_does_not_match_inside_longer_name(self):
        text, count = Substitution("enp3s0", "wlan0").apply("interface-name=enp3s0f1\n")
        assert text == "interface-name=enp3s0f1\n"
        assert count == 0

    def test_keyword_matches_hyphenated(self):
        text, count = Substitution("ethernet", "wifi").apply("type=ethernet\n[ethernet]\nid=kiss-ethernet\n")
        assert text == "type=wifi\n[wifi]\nid=kiss-wifi\n"
        assert count == 3

    def test_hardware_address_keeps_case(self):
        sub = Substitution(WLAN_MAC, "de:ad:be:ef:00:01", hardware_address=True)
        text, count = sub.apply("mac-address=AA:BB:CC:DD:EE:FF\nrule=aa:bb:cc:dd:ee:ff\n")
        assert text == "mac-address=DE:AD:BE:EF:00:01\nrule=de:ad:be:ef:00:01\n"
        assert count == 2

    def test_hardware_address_uppercase_replacement(self):
        sub = Substitution("11:22:33:44:55:66", "aa:bb:cc:dd:ee:ff", hardware_address=True)
        text, _ = sub.apply("mac-address=11:22:33:44:55:66\ncloned=11:22:33:44:55:66:77\n")
        assert text == "mac-address=aa:bb:cc:dd:ee:ff\ncloned=11:22:33:44:55:66:77\n"

    def test_name_is_case_sensitive(self):
        _, count = Substitution("wlan0", "enp3s0").apply("WLAN0\n")
        assert count == 0


class TestOwnerWritable:
    """Test scoped owner-write acquisition"""

    def test_grants_and_restores(self, tmp_path):
        path = write_artifact(tmp_path / "file", "x")
        with owner_writable(path):
            assert _mode(path) & stat.S_IWUSR
        assert _mode(path) == READ_ONLY

    def test_restores_on_error(self, tmp_path):
        path = write_artifact(tmp_path / "file", "x")
        with pytest.raises(RuntimeError):
            with owner_writable(path):
                raise RuntimeError("mutation failed")
        assert _mode(path) == READ_ONLY

    def test_preserves_other_bits(self, tmp_path):
        path = write_artifact(tmp_path / "file", "x", mode=0o640)
        with owner_writable(path):
            assert _mode(path) == 0o640
        assert _mode(path) == 0o640

    def test_missing_file(self, tmp_path):
        with pytest.raises(PermissionDeniedError, match="owner-write"):
            with owner_writable(tmp_path / "missing"):
                pass

    def test_chmod_denied(self, tmp_path):
        path = write_artifact(tmp_path / "file", "x")
        with patch("kiss_netrole.rewriter.os.chmod", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionDeniedError):
                with owner_writable(path):
                    pass


class TestApply:
    """Test the full rewrite sequence"""

    def test_swap_rewrites_all_artifacts(self, wireless_primary_tree, swap_plan):
        paths = wireless_primary_tree
        result = RewriteEngine(paths).apply(swap_plan)

        assert result.status is ApplyStatus.APPLIED
        assert result.applied
        assert result.completed_steps == [STEP_NAMING_RULE, STEP_DISABLED_PROFILE, STEP_ENABLED_PROFILE]
        assert result.touched == [
            paths.naming_rule,
            paths.disable_profile(WLAN_NAME),
            paths.enable_profile,
        ]

        # naming rule now binds the wired adapter
        rule = paths.naming_rule.read_text()
        assert ETH_MAC in rule
        assert WLAN_MAC not in rule

        # enabled profile encodes the wired adapter under "ethernet"
        enabled = KeyfileDocument.parse(paths.enable_profile.read_text())
        assert enabled.get("connection", "type") == "ethernet"
        assert enabled.get("connection", "interface-name") == ETH_NAME
        assert enabled.get("ethernet", "mac-address") == ETH_MAC
        assert "wifi" not in paths.enable_profile.read_text()

        # disabled profile renamed to the demoted adapter and flipped to "wifi"
        assert not paths.disable_profile(ETH_NAME).exists()
        disabled_text = paths.disable_profile(WLAN_NAME).read_text()
        disabled = KeyfileDocument.parse(disabled_text)
        assert disabled.get("connection", "type") == "wifi"
        assert disabled.get("connection", "interface-name") == WLAN_NAME
        assert disabled.get("wifi", "mac-address") == WLAN_MAC
        assert ETH_NAME not in disabled_text
        assert ETH_MAC not in disabled_text

    def test_result_is_readable_role_state(self, wireless_primary_tree, swap_plan):
        """Test exactly one artifact set encodes the wired adapter as primary"""
        RewriteEngine(wireless_primary_tree).apply(swap_plan)

        state = read_bindings(wireless_primary_tree)
        assert state.primary.bound_name == ETH_NAME
        assert state.primary.bound_address == ETH_MAC
        assert list(state.secondaries) == [WLAN_NAME]
        assert state.secondary.bound_address == WLAN_MAC

    def test_permissions_restored_after_success(self, wireless_primary_tree, swap_plan):
        result = RewriteEngine(wireless_primary_tree).apply(swap_plan)
        for path in result.touched:
            assert _mode(path) == READ_ONLY

    def test_uppercase_profile_addresses(self, artifact_paths, swap_plan):
        write_artifact(artifact_paths.naming_rule, NAMING_RULE)
        write_artifact(artifact_paths.enable_profile, ENABLED_PROFILE.replace(WLAN_MAC, WLAN_MAC.upper()))
        write_artifact(artifact_paths.disable_profile(ETH_NAME), DISABLED_PROFILE)

        RewriteEngine(artifact_paths).apply(swap_plan)

        assert WLAN_MAC.upper() not in artifact_paths.enable_profile.read_text()
        state = read_bindings(artifact_paths)
        assert state.primary.bound_address == ETH_MAC
        assert state.secondary.bound_address == WLAN_MAC

    def test_missing_disabled_profile_skips_everything(self, tree_without_disabled_profile, swap_plan):
        paths = tree_without_disabled_profile
        before = _snapshot(paths.naming_rule.parents[3])

        result = RewriteEngine(paths).apply(swap_plan)

        assert result.status is ApplyStatus.SKIPPED
        assert result.completed_steps == []
        assert "no prior migration state" in result.reason
        assert _snapshot(paths.naming_rule.parents[3]) == before
        assert not paths.disable_profile(WLAN_NAME).exists()
        assert not paths.disable_profile(ETH_NAME).exists()

    def test_missing_naming_rule(self, artifact_paths, swap_plan):
        write_artifact(artifact_paths.enable_profile, ENABLED_PROFILE)
        write_artifact(artifact_paths.disable_profile(ETH_NAME), DISABLED_PROFILE)
        with pytest.raises(ArtifactMissingError):
            RewriteEngine(artifact_paths).apply(swap_plan)
        assert artifact_paths.disable_profile(ETH_NAME).exists()

    def test_rename_conflict(self, wireless_primary_tree, swap_plan):
        write_artifact(wireless_primary_tree.disable_profile(WLAN_NAME), "[connection]\n")
        before = _snapshot(wireless_primary_tree.connections_dir)

        with pytest.raises(ArtifactConflictError):
            RewriteEngine(wireless_primary_tree).apply(swap_plan)

        assert _snapshot(wireless_primary_tree.connections_dir) == before
        assert WLAN_MAC in wireless_primary_tree.naming_rule.read_text()

    def test_permission_denied_on_first_step_aborts(self, wireless_primary_tree, swap_plan):
        paths = wireless_primary_tree
        before = _snapshot(paths.connections_dir)

        with patch("kiss_netrole.rewriter.os.chmod", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionDeniedError):
                RewriteEngine(paths).apply(swap_plan)

        assert WLAN_MAC in paths.naming_rule.read_text()
        assert _snapshot(paths.connections_dir) == before

    def test_permission_denied_later_is_partial_failure(self, wireless_primary_tree, swap_plan):
        paths = wireless_primary_tree
        real_chmod = os.chmod

        def deny_enabled_profile(path, mode, *args, **kwargs):
            if Path(path) == paths.enable_profile:
                raise PermissionError("denied")
            return real_chmod(path, mode, *args, **kwargs)

        with patch("kiss_netrole.rewriter.os.chmod", side_effect=deny_enabled_profile):
            with pytest.raises(PartialFailureError) as exc_info:
                RewriteEngine(paths).apply(swap_plan)

        error = exc_info.value
        assert error.failed_step == STEP_ENABLED_PROFILE
        assert error.completed_steps == (STEP_NAMING_RULE, STEP_DISABLED_PROFILE)
        assert isinstance(error.cause, PermissionDeniedError)

        # rule and disabled profile moved, enabled profile did not
        assert ETH_MAC in paths.naming_rule.read_text()
        assert paths.disable_profile(WLAN_NAME).exists()
        assert WLAN_NAME in paths.enable_profile.read_text()

        for path in (paths.naming_rule, paths.disable_profile(WLAN_NAME), paths.enable_profile):
            assert _mode(path) == READ_ONLY

    def test_failed_mode_restore_after_write_is_partial_failure(self, wireless_primary_tree, swap_plan):
        """Test a rewritten naming rule is reported even when its mode cannot be restored"""
        paths = wireless_primary_tree
        real_chmod = os.chmod
        rule_calls = []

        def deny_rule_restore(path, mode, *args, **kwargs):
            if Path(path) == paths.naming_rule:
                rule_calls.append(mode)
                if len(rule_calls) == 2:
                    raise PermissionError("denied")
            return real_chmod(path, mode, *args, **kwargs)

        with patch("kiss_netrole.rewriter.os.chmod", side_effect=deny_rule_restore):
            with pytest.raises(PartialFailureError) as exc_info:
                RewriteEngine(paths).apply(swap_plan)

        error = exc_info.value
        assert error.failed_step == STEP_NAMING_RULE
        assert error.completed_steps == ()
        assert isinstance(error.cause, PermissionDeniedError)

        assert ETH_MAC in paths.naming_rule.read_text()
        assert _mode(paths.naming_rule) == READ_ONLY | stat.S_IWUSR
        assert paths.disable_profile(ETH_NAME).exists()
        assert WLAN_NAME in paths.enable_profile.read_text()

    def test_unmatched_enabled_profile_is_partial_failure(self, wireless_primary_tree, swap_plan):
        """Test a silently-skipped substitution is reported, not ignored"""
        paths = wireless_primary_tree
        paths.enable_profile.chmod(0o644)
        paths.enable_profile.write_text("[connection]\nid=unrelated\n")
        paths.enable_profile.chmod(READ_ONLY)

        with pytest.raises(PartialFailureError) as exc_info:
            RewriteEngine(paths).apply(swap_plan)

        assert isinstance(exc_info.value.cause, ArtifactMalformedError)
        assert _mode(paths.enable_profile) == READ_ONLY
        assert _mode(paths.naming_rule) == READ_ONLY

    def test_unmatched_naming_rule_fails_before_mutation(self, wireless_primary_tree, swap_plan):
        paths = wireless_primary_tree
        paths.naming_rule.chmod(0o644)
        paths.naming_rule.write_text(f'ATTR{{address}}=="{ETH_MAC}", NAME="master"\n')
        paths.naming_rule.chmod(READ_ONLY)
        before = _snapshot(paths.connections_dir)

        with pytest.raises(ArtifactMalformedError):
            RewriteEngine(paths).apply(swap_plan)

        assert _snapshot(paths.connections_dir) == before

    def test_dry_run_changes_nothing(self, wireless_primary_tree, swap_plan):
        root = wireless_primary_tree.naming_rule.parents[3]
        before = _snapshot(root)

        result = RewriteEngine(wireless_primary_tree, dry_run=True).apply(swap_plan)

        assert result.status is ApplyStatus.DRY_RUN
        assert len(result.completed_steps) == 3
        assert _snapshot(root) == before


class TestPendingSteps:
    """Test partial-failure reporting helper"""

    def test_pending_after_first_step(self):
        assert pending_steps([STEP_NAMING_RULE]) == [STEP_DISABLED_PROFILE, STEP_ENABLED_PROFILE]

    def test_pending_none_completed(self):
        assert pending_steps(None) == [STEP_NAMING_RULE, STEP_DISABLED_PROFILE, STEP_ENABLED_PROFILE]
