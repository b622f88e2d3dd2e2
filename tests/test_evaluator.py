from typing import List

import pytest
from hypothesis import given, strategies as st

from tttengine.evaluator import (
    DRAW,
    OPEN,
    grid_status,
    has_line,
    meta_status,
    sub_board_status,
    win_patterns,
    winner,
)
from tttengine.game_basics import O, X


def test_line_order_rows_cols_diagonals():
    pats = win_patterns(3)
    assert pats[:3] == ((0, 1, 2), (3, 4, 5), (6, 7, 8))
    assert pats[3:6] == ((0, 3, 6), (1, 4, 7), (2, 5, 8))
    assert pats[6:] == ((0, 4, 8), (2, 4, 6))
    assert len(win_patterns(5)) == 12


@pytest.mark.parametrize("pat", win_patterns(3))
def test_every_classic_line_wins(pat):
    cells = [0] * 9
    for i in pat:
        cells[i] = O
    assert has_line(cells, O)
    assert not has_line(cells, X)
    assert grid_status(cells) == O


@pytest.mark.parametrize("pat", win_patterns(5))
def test_five_in_a_row_needed_on_5x5(pat):
    cells = [0] * 25
    for i in pat[:4]:
        cells[i] = X
    assert not has_line(cells, X)
    cells[pat[4]] = X
    assert has_line(cells, X)
    assert winner(cells) == X


def test_full_board_without_line_is_draw():
    cells = [1, 1, 2, 2, 2, 1, 1, 2, 1]
    assert grid_status(cells) == DRAW


def test_open_board():
    assert grid_status([0] * 9) == OPEN
    assert grid_status([0] * 25) == OPEN


def test_sub_board_needs_nine_cells():
    with pytest.raises(ValueError):
        sub_board_status([0] * 25)


def test_meta_board_only_counts_wins():
    # a drawn sub-board blocks the top row for both sides
    statuses = [X, X, DRAW, 0, 0, 0, 0, 0, 0]
    assert meta_status(statuses) == OPEN
    assert meta_status([X, X, X, 0, O, O, 0, 0, 0]) == X
    assert meta_status([O, X, 0, X, O, 0, 0, 0, O]) == O


def test_meta_board_draw_when_all_decided():
    statuses = [X, O, X, X, O, O, O, X, DRAW]
    assert meta_status(statuses) == DRAW


@given(st.sampled_from([3, 5]).flatmap(
    lambda n: st.lists(st.integers(min_value=0, max_value=2), min_size=n * n, max_size=n * n)
))
def test_has_line_symmetric_under_player_swap(cells: List[int]):
    swapped = [{0: 0, 1: 2, 2: 1}[v] for v in cells]
    assert has_line(cells, X) == has_line(swapped, O)
    assert has_line(cells, O) == has_line(swapped, X)


@given(st.lists(st.integers(min_value=0, max_value=2), min_size=9, max_size=9))
def test_status_matches_line_and_fullness(cells: List[int]):
    s = grid_status(cells)
    if s == OPEN:
        assert 0 in cells and not has_line(cells, X) and not has_line(cells, O)
    elif s == DRAW:
        assert 0 not in cells
    else:
        assert has_line(cells, s)
