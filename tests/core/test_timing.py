"""Tests for the section timer."""

import pytest

from mixedml.core.compute.timing import Timer


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        with timer.section('optimization'):
            pass
        with timer.section('optimization'):
            pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'optimization'}
        assert result['optimization'] >= 0
        assert result['total_seconds'] >= result['optimization']

    def test_section_recorded_on_exception(self):
        timer = Timer()
        timer.start()
        with pytest.raises(ValueError):
            with timer.section('setup'):
                raise ValueError("boom")
        timer.stop()
        assert 'setup' in timer.result()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError, match="before start"):
            Timer().stop()
