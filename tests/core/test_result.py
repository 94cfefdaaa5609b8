"""
Tests for the Result[P] envelope and the Timer.

Validates:
    - Generic payloads and field access
    - Frozen immutability
    - warnings default and has_warning()
    - Timer sections accumulate and require start/stop
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pyfitting.core.result import Result
from pyfitting.core.compute.timing import Timer


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


def _result(**kwargs):
    defaults = dict(
        params=FakeParams(value=1.0),
        info={},
        timing=None,
        backend_name="cpu",
    )
    defaults.update(kwargs)
    return Result(**defaults)


# ═══════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════


class TestResultConstruction:

    def test_basic_creation(self):
        result = _result(
            params=FakeParams(value=42.0),
            info={"method": "ridge"},
            timing={"total_seconds": 0.01},
            backend_name="cpu_ridge",
        )
        assert result.params.value == 42.0
        assert result.info["method"] == "ridge"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "cpu_ridge"

    def test_warnings_default_empty(self):
        result = _result()
        assert result.warnings == ()
        assert isinstance(result.warnings, tuple)


class TestImmutability:

    def test_cannot_replace_params(self):
        result = _result()
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(value=2.0)

    def test_cannot_replace_warnings(self):
        result = _result()
        with pytest.raises(FrozenInstanceError):
            result.warnings = ("new",)


class TestHasWarning:

    def test_substring_match(self):
        result = _result(warnings=("X'X is ill-conditioned (condition number 1e12)",))
        assert result.has_warning("ill-conditioned")
        assert not result.has_warning("did not converge")

    def test_no_warnings(self):
        assert not _result().has_warning("anything")


# ═══════════════════════════════════════════════════════════════════════
# Timer
# ═══════════════════════════════════════════════════════════════════════


class TestTimer:

    def test_sections_recorded(self):
        timer = Timer()
        timer.start()
        with timer.section('solve'):
            sum(range(100))
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'solve'}
        assert result['solve'] >= 0.0
        assert result['total_seconds'] >= result['solve']

    def test_repeated_sections_accumulate(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('cycle'):
                pass
        timer.stop()
        assert list(timer.result()) == ['total_seconds', 'cycle']

    def test_section_recorded_on_exception(self):
        timer = Timer()
        timer.start()
        with pytest.raises(ValueError):
            with timer.section('failing'):
                raise ValueError("boom")
        timer.stop()
        assert 'failing' in timer.result()

    def test_result_before_stop_raises(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()

    def test_stop_before_start_raises(self):
        with pytest.raises(RuntimeError):
            Timer().stop()
