import numpy as np
import pytest

from glmconduit.optimize import LBFGS, bounds_arrays, project, validate_constraint_map


def test_validated_map_is_read_only():
    checked = validate_constraint_map({1: (0, 2)})
    assert checked[1] == (0.0, 2.0)
    with pytest.raises(TypeError):
        checked[2] = (0.0, 1.0)


def test_none_means_unconstrained():
    assert validate_constraint_map(None) is None
    lower, upper = bounds_arrays(None, 2)
    assert np.all(np.isneginf(lower)) and np.all(np.isposinf(upper))


@pytest.mark.parametrize(
    "constraint_map",
    [
        {0: (2.0, 1.0)},
        {-1: (0.0, 1.0)},
        {0.5: (0.0, 1.0)},
        {0: (np.nan, 1.0)},
        {0: (np.inf, np.inf)},
        {0: (-np.inf, -np.inf)},
    ],
)
def test_invalid_maps_are_rejected(constraint_map):
    with pytest.raises(ValueError):
        validate_constraint_map(constraint_map)


def test_one_sided_bounds_are_allowed():
    checked = validate_constraint_map({0: (-np.inf, 0.0), 1: (1.0, np.inf)})
    lower, upper = bounds_arrays(checked, 3)
    np.testing.assert_array_equal(lower, [-np.inf, 1.0, -np.inf])
    np.testing.assert_array_equal(upper, [0.0, np.inf, np.inf])


def test_index_beyond_dimension_is_rejected():
    with pytest.raises(ValueError, match="out of range"):
        bounds_arrays({3: (0.0, 1.0)}, 3)


def test_project_clips_into_box():
    lower, upper = bounds_arrays({0: (0.0, 1.0)}, 2)
    point = np.array([5.0, -5.0])
    projected = project(point, lower, upper)
    np.testing.assert_array_equal(projected, [1.0, -5.0])
    assert point[0] == 5.0


def test_optimizer_validates_constraint_map_on_assignment():
    optimizer = LBFGS()
    with pytest.raises(ValueError):
        optimizer.constraint_map = {0: (1.0, 0.0)}
    optimizer.constraint_map = {0: (0.0, 1.0)}
    assert optimizer.has_constraints
