import numpy as np
import pytest

from tttengine.features import (
    POSITION_WEIGHTS,
    best_evaluated_cell,
    evaluate_board,
    evaluate_line,
    score_moves,
)
from tttengine.game_basics import O, X


@pytest.mark.parametrize("line, expected", [
    ([2, 2, 2, 2, 0], 100),
    ([2, 0, 2, 2, 0], 10),
    ([0, 2, 0, 2, 0], 5),
    ([0, 0, 2, 0, 0], 1),
    ([1, 1, 1, 1, 0], 90),
    ([1, 0, 1, 1, 0], 40),
    ([1, 1, 0, 0, 0], 0),
    ([2, 1, 0, 0, 0], 0),
    ([0, 0, 0, 0, 0], 0),
])
def test_line_scores(line, expected):
    assert evaluate_line(line, O, X) == expected


def test_position_weights():
    assert POSITION_WEIGHTS[2, 2] == 3
    assert POSITION_WEIGHTS[1, 1] == 2
    assert POSITION_WEIGHTS[3, 2] == 2
    assert POSITION_WEIGHTS[0, 0] == 1
    assert POSITION_WEIGHTS[4, 2] == 1


def test_empty_board_prefers_centre():
    scores = score_moves([0] * 25, O)
    assert scores[12] == 7
    assert scores[6] == 5
    assert scores[0] == 4
    assert best_evaluated_cell([0] * 25, O) == 12


def test_ties_go_to_first_cell_in_row_major_order():
    cells = [0] * 25
    cells[12] = O
    # (1,1), (1,3), (3,1) and (3,3) all score 15
    scores = score_moves(cells, O)
    assert scores[6] == scores[8] == scores[16] == scores[18] == 15
    assert best_evaluated_cell(cells, O) == 6


def test_occupied_cells_never_chosen():
    cells = [1, 2] * 12 + [0]
    scores = score_moves(cells, O)
    assert np.isneginf(scores[:24]).all()
    assert best_evaluated_cell(cells, O) == 24
    assert best_evaluated_cell([1, 2] * 12 + [1], O) is None


def test_board_score_includes_block_pressure():
    cells = [0] * 25
    cells[0:4] = [X, X, X, 0]
    base = evaluate_board(cells, O)
    cells[3] = X
    assert evaluate_board(cells, O) > base
