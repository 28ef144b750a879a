import pytest

from reading_companion.reader import FocusNavigator


def test_next_stops_at_last_line():
    seen = []
    nav = FocusNavigator(total_lines=5, on_line_change=seen.append)
    for _ in range(5):
        nav.next()
    assert nav.current_line == 5
    assert nav.next() is False
    assert nav.current_line == 5
    assert seen == [2, 3, 4, 5]


def test_previous_stops_at_first_line():
    seen = []
    nav = FocusNavigator(total_lines=3, initial_line=2, on_line_change=seen.append)
    assert nav.previous() is True
    assert nav.previous() is False
    assert nav.current_line == 1
    assert seen == [1]


def test_out_of_range_jumps_are_ignored():
    seen = []
    nav = FocusNavigator(total_lines=4, on_line_change=seen.append)
    assert nav.jump_to(0) is False
    assert nav.jump_to(5) is False
    assert nav.jump_to(-3) is False
    assert nav.current_line == 1
    assert nav.jump_to(4) is True
    assert nav.jump_to(4) is False
    assert seen == [4]


def test_toggle_keeps_line():
    nav = FocusNavigator(total_lines=4, initial_line=3)
    assert nav.enabled is False
    assert nav.toggle() is True
    assert nav.current_line == 3
    assert nav.state.enabled is True
    nav.toggle()
    assert nav.state.enabled is False and nav.state.current_line == 3


def test_needs_at_least_one_line():
    with pytest.raises(ValueError):
        FocusNavigator(total_lines=0)
