"""Tests for estimator/stop_criteria.py: StopCriteria."""

import dataclasses

import pytest

from estimator import StopCriteria


class TestDefaults:

    def test_default_values(self):
        c = StopCriteria()
        assert c.max_epochs == 100
        assert c.max_steps == 10000
        assert c.max_seconds is None
        assert c.restart_counting is True
        assert c.abs_loss_change_tol == 1e-3
        assert c.rel_loss_change_tol == 1e-3
        assert c.max_step_below_tol == 10

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            StopCriteria().max_steps = 5


class TestConstructors:

    def test_none_is_unlimited(self):
        c = StopCriteria.none()
        assert c.is_unlimited
        assert not c.watches_loss

    def test_steps(self):
        c = StopCriteria.steps(7)
        assert c.max_steps == 7
        assert c.restart_counting is True
        assert c.max_epochs is None
        assert not c.watches_loss
        assert not c.is_unlimited

    def test_default_watches_loss(self):
        assert StopCriteria().watches_loss


class TestValidation:

    @pytest.mark.parametrize("field,value", [
        ("max_steps", -1),
        ("max_epochs", -1),
        ("max_seconds", -0.5),
        ("max_step_below_tol", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            StopCriteria(**{field: value})
