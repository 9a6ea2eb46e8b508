"""Tests for convergence types."""

import dataclasses

import pytest

from settle.convergence.types import PollEvent, Verdict, WaitSpec
from settle.reliability.backoff import DEFAULT_POLL_BACKOFF


class TestWaitSpec:
    def test_labels_normalized_to_frozensets(self) -> None:
        spec = WaitSpec(pending=["CREATING", "MODIFYING"], target=("ACTIVE",), timeout=60)

        assert spec.pending == frozenset({"CREATING", "MODIFYING"})
        assert spec.target == frozenset({"ACTIVE"})

    def test_bare_string_is_one_label(self) -> None:
        spec = WaitSpec(pending="CREATING", target="ACTIVE", timeout=60)

        assert spec.pending == frozenset({"CREATING"})
        assert spec.target == frozenset({"ACTIVE"})

    def test_defaults(self) -> None:
        spec = WaitSpec(pending=(), target={"ACTIVE"}, timeout=60)

        assert spec.delay == 0.0
        assert spec.min_timeout == 0.0
        assert spec.poll_interval == 0.0
        assert spec.continuous_target_occurrence == 1
        assert spec.not_found_checks == 1
        assert spec.backoff is DEFAULT_POLL_BACKOFF

    def test_expects_absence(self) -> None:
        assert WaitSpec(pending={"DELETING"}, target=(), timeout=60).expects_absence is True
        assert WaitSpec(pending=(), target={"ACTIVE"}, timeout=60).expects_absence is False

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("timeout", 0, "timeout must be positive"),
            ("delay", -1, "delay must be >= 0"),
            ("min_timeout", -0.5, "min_timeout must be >= 0"),
            ("poll_interval", -1, "poll_interval must be >= 0"),
            ("continuous_target_occurrence", 0, "continuous_target_occurrence must be >= 1"),
            ("not_found_checks", 0, "not_found_checks must be >= 1"),
            ("timeout", float("nan"), "timeout must be a finite number"),
            ("timeout", float("inf"), "timeout must be a finite number"),
            ("delay", float("nan"), "delay must be a finite number"),
            ("min_timeout", float("nan"), "min_timeout must be a finite number"),
            ("poll_interval", float("nan"), "poll_interval must be a finite number"),
        ],
    )
    def test_rejects_invalid_values(self, field: str, value: float, message: str) -> None:
        values = {"pending": (), "target": {"ACTIVE"}, "timeout": 60}
        values[field] = value

        with pytest.raises(ValueError, match=message):
            WaitSpec(**values)

    def test_frozen(self) -> None:
        spec = WaitSpec(pending=(), target={"ACTIVE"}, timeout=60)

        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.timeout = 5  # type: ignore[misc]


class TestVerdict:
    def test_terminal_verdicts(self) -> None:
        terminal = {v for v in Verdict if v.is_terminal}
        assert terminal == {
            Verdict.SUCCEEDED,
            Verdict.UNEXPECTED_STATE,
            Verdict.UNEXPECTED_ABSENCE,
        }


class TestPollEvent:
    def test_found(self) -> None:
        present = PollEvent(attempt=1, state="ACTIVE", payload={}, verdict=Verdict.SUCCEEDED, elapsed=0.0)
        absent = PollEvent(attempt=2, state="", payload=None, verdict=Verdict.ABSENT_TOLERATED, elapsed=1.0)

        assert present.found is True
        assert absent.found is False
        assert present.next_interval is None
