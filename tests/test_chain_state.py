import numpy as np
import pytest

from planar_rbd import ChainState, DimensionError


def test_zeros():
    state = ChainState.zeros(3, time=1.0)
    assert state.n_dof == 3
    assert state.time == 1.0
    assert state.as_vector() == pytest.approx(np.zeros(6))


def test_packed_vectors():
    state = ChainState.from_vector(0.5, [1.0, 2.0, 3.0, 4.0])
    assert state.angle == pytest.approx([1.0, 2.0])
    assert state.speed == pytest.approx([3.0, 4.0])
    state = state.replace(accel=[5.0, 6.0])
    assert state.as_vector() == pytest.approx([1.0, 2.0, 3.0, 4.0])
    assert state.as_rate_vector() == pytest.approx([3.0, 4.0, 5.0, 6.0])


def test_copy_is_independent():
    angle = np.array([0.1, 0.2])
    state = ChainState(0.0, angle, np.zeros(2), np.zeros(2), np.zeros(2))
    angle[0] = 10.0
    assert state.angle[0] == pytest.approx(0.1)
    copy = state.copy()
    copy.angle[1] = 10.0
    assert state.angle[1] == pytest.approx(0.2)


def test_dimension_errors():
    with pytest.raises(DimensionError):
        ChainState.from_vector(0.0, [1.0, 2.0, 3.0])
    with pytest.raises(DimensionError):
        ChainState(0.0, np.zeros(2), np.zeros(3), np.zeros(2), np.zeros(2))
    with pytest.raises(DimensionError):
        ChainState(0.0, np.zeros((2, 2)), np.zeros(2), np.zeros(2), np.zeros(2))
