import pytest

from services import lifecycle
from services.errors import ValidationFailed


def test_open_states_allow_forward_moves_and_cancel():
    assert lifecycle.allowed_transitions('reported') == ('assigned', 'in_progress', 'resolved', 'cancelled')
    assert lifecycle.allowed_transitions('assigned') == ('in_progress', 'resolved', 'cancelled')
    assert lifecycle.allowed_transitions('in_progress') == ('resolved', 'cancelled')


@pytest.mark.parametrize('status', ['resolved', 'cancelled'])
def test_terminal_states_allow_nothing(status):
    assert lifecycle.is_terminal(status)
    assert lifecycle.allowed_transitions(status) == ()


@pytest.mark.parametrize('current,new', [
    ('assigned', 'reported'),
    ('in_progress', 'assigned'),
    ('assigned', 'assigned'),
    ('resolved', 'cancelled'),
    ('cancelled', 'in_progress'),
])
def test_rejected_transitions(current, new):
    with pytest.raises(ValidationFailed) as excinfo:
        lifecycle.check_transition(current, new)
    assert 'status' in excinfo.value.errors


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationFailed, match='Validation failed') as excinfo:
        lifecycle.check_transition('reported', 'closed')
    assert excinfo.value.errors['status'] == ['Unknown status: closed']


def test_terminal_message_names_current_state():
    with pytest.raises(ValidationFailed) as excinfo:
        lifecycle.check_transition('resolved', 'in_progress')
    assert 'already resolved' in excinfo.value.errors['status'][0]


def test_accepted_transitions_do_not_raise():
    lifecycle.check_transition('reported', 'resolved')
    lifecycle.check_transition('in_progress', 'cancelled')
