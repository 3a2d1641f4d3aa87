import numpy as np
import pytest

from algolab.bankers import check_safety, create_state, is_safe, release_resources, request_resources
from algolab.errors import Denial, ValidationError

MAX = [[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]]
ALLOCATION = [[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]]
AVAILABLE = [3, 3, 2]


def _classic():
    return create_state(MAX, ALLOCATION, AVAILABLE)


def test_need_matrix():
    assert _classic().need.tolist() == [[7, 4, 3], [1, 2, 2], [6, 0, 0], [0, 1, 1], [4, 3, 1]]


def test_classic_state_is_safe():
    result = is_safe(_classic())
    assert result.safe
    assert result.sequence == [1, 3, 4, 0, 2]
    assert result.steps[0].pid == 0
    assert not result.steps[0].finished
    assert result.steps[1].work == (5, 3, 2)


def test_granted_request_commits():
    state = _classic()
    outcome = request_resources(state, 1, [1, 0, 2])
    assert outcome.granted
    assert outcome.safety.sequence == [1, 3, 4, 0, 2]
    assert outcome.state.available.tolist() == [2, 3, 0]
    assert outcome.state.allocation[1].tolist() == [3, 0, 2]
    # The input state is untouched.
    assert state.available.tolist() == [3, 3, 2]


def test_request_above_need_is_denied():
    state = _classic()
    outcome = request_resources(state, 1, [2, 0, 0])
    assert not outcome.granted
    assert outcome.denial is Denial.CLAIMS_EXCEEDED
    assert outcome.state is state


def test_request_above_available_is_denied():
    state = request_resources(_classic(), 1, [1, 0, 2]).state
    outcome = request_resources(state, 4, [3, 3, 0])
    assert outcome.denial is Denial.RESOURCES_EXCEEDED
    assert outcome.state is state


def test_unsafe_request_is_rolled_back():
    state = request_resources(_classic(), 1, [1, 0, 2]).state
    outcome = request_resources(state, 0, [0, 2, 0])
    assert outcome.denial is Denial.UNSAFE_STATE
    assert not outcome.safety.safe
    assert outcome.state is state
    assert state.available.tolist() == [2, 3, 0]


def test_unsafe_state_has_no_sequence():
    result = check_safety([0], [[1], [1]], [[1], [1]])
    assert not result.safe
    assert result.sequence == []


def test_release_returns_resources():
    state = release_resources(_classic(), 1, [2, 0, 0])
    assert state.available.tolist() == [5, 3, 2]
    assert state.need[1].tolist() == [3, 2, 2]
    with pytest.raises(ValidationError):
        release_resources(state, 1, [1, 0, 0])


def test_invalid_states():
    with pytest.raises(ValidationError):
        create_state([[1, 1]], [[2, 0]], [0, 0])
    with pytest.raises(ValidationError):
        create_state([[1, 1]], [[0, 0], [0, 0]], [0, 0])
    with pytest.raises(ValidationError):
        create_state([[1, 1]], [[0, 0]], [0, 0, 0])
    with pytest.raises(ValidationError):
        create_state([[1, -1]], [[0, 0]], [0, 0])
    with pytest.raises(ValidationError):
        request_resources(_classic(), 7, [0, 0, 0])


def test_state_arrays_are_numpy():
    state = _classic()
    assert isinstance(state.allocation, np.ndarray)
    assert state.num_processes == 5
    assert state.num_resources == 3


def test_states_hold_read_only_copies():
    state = _classic()
    with pytest.raises(ValueError):
        state.available[0] = 99
    with pytest.raises(ValueError):
        state.max_demand[0, 0] = 99

    granted = request_resources(state, 1, [1, 0, 2]).state
    assert not granted.max_demand.flags.writeable
    assert not granted.allocation.flags.writeable

    released = release_resources(granted, 1, [1, 0, 2])
    assert not released.available.flags.writeable
    assert state.allocation[1].tolist() == [2, 0, 0]
