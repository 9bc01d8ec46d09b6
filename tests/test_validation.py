"""Tests for validation module."""
import math

import numpy as np
import pytest

from rocketsim import validation
from rocketsim.state import SimulationState


def test_check_number_accepts_valid():
    errors = []
    assert validation.check_number('x', 3, errors, minimum=0.0) == 3.0
    assert errors == []


@pytest.mark.parametrize('value', [None, 'abc', True, float('nan'), float('inf')])
def test_check_number_rejects_bad_values(value):
    errors = []
    assert validation.check_number('x', value, errors) is None
    assert len(errors) == 1
    assert errors[0].field == 'x'


def test_check_number_strict_and_inclusive_minimum():
    errors = []
    assert validation.check_number('a', 0.0, errors, minimum=0.0) is None
    assert validation.check_number('b', 0.0, errors, minimum=0.0, strict=False) == 0.0
    assert [e.field for e in errors] == ['a']


def test_check_range_bounds_inclusive():
    errors = []
    assert validation.check_range('angle', 30.0, (-30.0, 30.0), errors) == 30.0
    assert validation.check_range('angle', 30.5, (-30.0, 30.0), errors) is None
    assert len(errors) == 1


def test_design_validation_error_lists_all_fields():
    err = validation.DesignValidationError([
        validation.FieldError('weight', -1, "must be > 0"),
        validation.FieldError('fin_count', 5, "must be 3 or 4"),
    ])
    assert isinstance(err, validation.ValidationError)
    assert err.fields == ['weight', 'fin_count']
    assert 'weight' in str(err) and 'fin_count' in str(err)


def test_validate_state_ok():
    state = SimulationState(r=[1.0, 2.0], v=[3.0, 4.0])
    assert validation.validate_state(state) == (True, None)


def test_validate_state_non_finite_raises():
    state = SimulationState(r=[0.0, math.nan])
    with pytest.raises(validation.ValidationError):
        validation.validate_state(state)


def test_validate_state_no_abort_returns_message():
    state = SimulationState(v=np.array([200.0, 0.0]))
    ok, message = validation.validate_state(state, max_speed=100.0, abort_on_error=False)
    assert not ok
    assert 'exceeds' in message
