# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Unit tests for TestOrchestrator with an in-process runner."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from ceph_test_runner.core.errors import DiscoveryError, SuitesFailedError
from ceph_test_runner.core.types import DiscoveredTest, PassType, TestKind
from ceph_test_runner.orchestrator import TestOrchestrator
from ceph_test_runner.reporting import read_result_stream
from ceph_test_runner.rules.tables import RuleSet


def _discovery(tests: list[DiscoveredTest]) -> MagicMock:
    discovery = MagicMock()
    discovery.discover.return_value = tests
    return discovery


class TestOrchestratorRun:
    """Tests for TestOrchestrator.run()."""

    @pytest.fixture
    def rules(self, rule_set: Callable[..., RuleSet]) -> RuleSet:
        return rule_set(
            excluded={"unittest_bar.exe": "*", "unittest_mempool.exe": "mempool.a"},
            isolated={"unittest_throttle.exe": "*", "unittest_perf*": "Perf.a"},
            manual={"ceph_test_rados_*": "*"},
            slow={"unittest_bluefs.exe": "*"},
            standalone={"ceph_test_timers.exe": "-v"},
        )

    @pytest.fixture
    def tests(self, discovered: Callable[..., DiscoveredTest]) -> list[DiscoveredTest]:
        return [
            discovered("ceph_test_rados_api.exe"),
            discovered("ceph_test_timers.exe", kind=TestKind.STANDALONE, launch_args="-v"),
            discovered("unittest_bar.exe"),
            discovered("unittest_bluefs.exe"),
            discovered("unittest_foo.exe"),
            discovered("unittest_mempool.exe"),
            discovered("unittest_perf_counters.exe"),
            discovered("unittest_throttle.exe"),
        ]

    def _orchestrator(
        self,
        tmp_path: Path,
        rules: RuleSet,
        tests: list[DiscoveredTest],
        runner: Any,
        **kwargs: Any,
    ) -> TestOrchestrator:
        return TestOrchestrator(
            test_dir=tmp_path / "bin",
            output_dir=tmp_path / "out",
            rules=rules,
            timeout=5,
            workers=4,
            runner=runner,
            poll_interval=0.01,
            discovery=_discovery(tests),
            **kwargs,
        )

    def test_dispatch_per_pass(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        results = self._orchestrator(tmp_path, rules, tests, fake_runner).run()

        assert sorted(fake_runner.names(PassType.PARALLEL)) == [
            "ceph_test_timers.exe",
            "unittest_bluefs.exe",
            "unittest_foo.exe",
            "unittest_mempool.exe",
        ]
        assert fake_runner.names(PassType.ISOLATED) == [
            "unittest_perf_counters.exe",
            "unittest_throttle.exe",
        ]
        details = {(name, p): d for name, p, d in fake_runner.calls}
        assert details[("unittest_mempool.exe", PassType.PARALLEL)] == "-mempool.a"
        assert details[("ceph_test_timers.exe", PassType.PARALLEL)] == "-v"
        assert details[("unittest_perf_counters.exe", PassType.ISOLATED)] == "Perf.a"

        assert results.discovered == 8
        assert results.parallel is not None and results.parallel.skipped == 4
        assert results.isolated is not None and results.isolated.skipped == 6
        assert results.exit_code == 0

    def test_skip_slow(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        self._orchestrator(tmp_path, rules, tests, fake_runner, skip_slow=True).run()

        assert "unittest_bluefs.exe" not in fake_runner.names(PassType.PARALLEL)

    def test_isolated_pass_starts_after_parallel_pass(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        fake_runner.durations = {"unittest_foo.exe": 0.3}

        self._orchestrator(tmp_path, rules, tests, fake_runner).run()

        pass_types = [p for _, p, _ in fake_runner.calls]
        first_isolated = pass_types.index(PassType.ISOLATED)
        assert all(p == PassType.PARALLEL for p in pass_types[:first_isolated])
        assert all(p == PassType.ISOLATED for p in pass_types[first_isolated:])
        assert (
            fake_runner.start_times["isolated:unittest_perf_counters.exe"]
            >= fake_runner.start_times["parallel:unittest_foo.exe"] + 0.3
        )

    def test_merged_stream_orders_parallel_before_isolated(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        results = self._orchestrator(tmp_path, rules, tests, fake_runner).run()

        assert results.stream_path == tmp_path / "out" / "results.jsonl"
        records = list(read_result_stream(results.stream_path))
        assert [(r.binary, r.pass_type) for r in records] == [
            ("ceph_test_timers.exe", "parallel"),
            ("unittest_bluefs.exe", "parallel"),
            ("unittest_foo.exe", "parallel"),
            ("unittest_mempool.exe", "parallel"),
            ("unittest_perf_counters.exe", "isolated"),
            ("unittest_throttle.exe", "isolated"),
        ]
        assert list((tmp_path / "out").glob("_fragment_*")) == []
        assert (tmp_path / "out" / "xunit.xml").exists()

    def test_failure_in_either_pass_fails_run(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        fake_runner.failures = {"unittest_throttle.exe"}
        orchestrator = self._orchestrator(tmp_path, rules, tests, fake_runner)

        with pytest.raises(SuitesFailedError) as exc_info:
            orchestrator.run()

        assert exc_info.value.failure_count == 1
        # Every job still ran and the stream was still aggregated
        assert len(fake_runner.calls) == 6
        records = list(read_result_stream(orchestrator.stream_path))
        assert len(records) == 6

    def test_merge_failure_does_not_fail_run(
        self,
        tmp_path: Path,
        rules: RuleSet,
        tests: list[DiscoveredTest],
        fake_runner: Any,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with (
            patch(
                "ceph_test_runner.orchestrator.merge_result_fragments",
                side_effect=OSError("disk full"),
            ),
            patch("ceph_test_runner.orchestrator.log_stream_diagnostics") as diagnostics,
        ):
            results = self._orchestrator(tmp_path, rules, tests, fake_runner).run()

        assert results.stream_path is None
        assert results.exit_code == 0
        diagnostics.assert_called_once_with(tmp_path / "out" / "results.jsonl", tmp_path / "out")
        assert "Result stream not written" in capsys.readouterr().out

    def test_xunit_can_be_disabled(
        self, tmp_path: Path, rules: RuleSet, tests: list[DiscoveredTest], fake_runner: Any
    ) -> None:
        self._orchestrator(tmp_path, rules, tests, fake_runner, write_xunit=False).run()

        assert not (tmp_path / "out" / "xunit.xml").exists()

    def test_stale_fragments_removed_before_run(
        self, tmp_path: Path, rules: RuleSet, fake_runner: Any
    ) -> None:
        out = tmp_path / "out"
        out.mkdir()
        (out / "_fragment_1_parallel_00000_old.part").write_bytes(b"stale\n")

        self._orchestrator(tmp_path, rules, [], fake_runner).run()

        assert (out / "results.jsonl").read_bytes() == b""

    def test_discovery_error_propagates(self, tmp_path: Path, rules: RuleSet, fake_runner: Any) -> None:
        discovery = MagicMock()
        discovery.discover.side_effect = DiscoveryError("Test directory does not exist")
        orchestrator = TestOrchestrator(
            test_dir=tmp_path / "missing",
            output_dir=tmp_path / "out",
            rules=rules,
            runner=fake_runner,
            discovery=discovery,
        )

        with pytest.raises(DiscoveryError):
            orchestrator.run()

        assert fake_runner.calls == []
