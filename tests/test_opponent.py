from typing import List

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from tttengine.features import best_evaluated_cell
from tttengine.game_basics import CLASSIC, DIFFICULTIES, EASY, FIVE, HARD, MEDIUM, O, ULTIMATE, VARIANTS, X, Move
from tttengine.opponent import EDGE_CELLS, NoLegalMove, Position, choose_move, send_to_decided, strategic_board
from tttengine.rules import apply_move, begin, is_legal, load_position, new_state

THREAT = [1, 1, 0, 0, 0, 0, 0, 0, 0]


def _ultimate(boards: dict, active=None, to_move=O):
    cells: List[int] = [0] * 81
    for b, sub in boards.items():
        cells[b * 9:(b + 1) * 9] = sub
    return load_position(ULTIMATE, cells, to_move=to_move, active_board=active)


def _choose(state, difficulty, seed=0):
    return choose_move(state, difficulty, O, np.random.default_rng(seed))


@pytest.mark.parametrize("seed", range(10))
def test_medium_5x5_completes_four_with_a_gap(seed: int):
    cells = [0] * 25
    for i in (0, 1, 3, 4):
        cells[i] = O
    for i in (5, 6, 11, 18):
        cells[i] = X
    state = load_position(FIVE, cells, to_move=O)
    assert _choose(state, MEDIUM, seed) == Move(2)


@pytest.mark.parametrize("difficulty", [MEDIUM, HARD])
def test_win_before_block(difficulty: str):
    state = load_position(CLASSIC, [1, 1, 0, 2, 2, 0, 0, 0, 1], to_move=O)
    assert _choose(state, difficulty) == Move(5)


@pytest.mark.parametrize("difficulty", [MEDIUM, HARD])
def test_block_when_no_win(difficulty: str):
    state = load_position(CLASSIC, [1, 1, 0, 0, 2, 0, 0, 0, 0], to_move=O)
    assert _choose(state, difficulty) == Move(2)


def test_hard_classic_centre_then_corner():
    state = load_position(CLASSIC, [1, 0, 0, 0, 0, 0, 0, 0, 0], to_move=O)
    assert _choose(state, HARD) == Move(4)
    state = load_position(CLASSIC, [0, 0, 0, 0, 1, 0, 0, 0, 0], to_move=O)
    assert _choose(state, HARD) == Move(0)


def test_hard_5x5_centre_corner_then_positional():
    state = load_position(FIVE, [0] * 25, to_move=O)
    assert _choose(state, HARD) == Move(12)
    cells = [0] * 25
    cells[12] = X
    assert _choose(load_position(FIVE, cells, to_move=O), HARD) == Move(0)
    for i, p in [(0, O), (4, X), (20, O), (24, X)]:
        cells[i] = p
    state = load_position(FIVE, cells, to_move=O)
    assert _choose(state, HARD) == Move(best_evaluated_cell(cells, O))


@given(
    st.sampled_from(VARIANTS),
    st.sampled_from(DIFFICULTIES),
    st.integers(min_value=0, max_value=2**16),
)
@settings(max_examples=40, deadline=None)
def test_selector_always_returns_a_legal_move(variant: str, difficulty: str, seed: int):
    rng = np.random.default_rng(seed)
    state = new_state(variant, X)
    begin(state)
    for _ in range(6):
        if state.phase != "in_progress":
            break
        player = state.current_player
        move = choose_move(state, difficulty if player == O else EASY, player, rng)
        assert is_legal(state, move, player)
        apply_move(state, move, player)


def test_same_seed_same_move():
    state = new_state(FIVE, X)
    begin(state)
    apply_move(state, Move(7), X)
    a = [_choose(state, EASY, s) for s in range(5)]
    b = [_choose(state, EASY, s) for s in range(5)]
    assert a == b


def test_no_move_outside_a_running_game():
    with pytest.raises(NoLegalMove):
        _choose(new_state(CLASSIC, O), HARD)
    finished = load_position(CLASSIC, [1, 1, 1, 2, 2, 0, 0, 0, 0], to_move=O)
    with pytest.raises(NoLegalMove):
        _choose(finished, HARD)
    state = load_position(CLASSIC, [0] * 9, to_move=X)
    with pytest.raises(NoLegalMove):
        _choose(state, HARD)


def test_unknown_difficulty():
    state = load_position(CLASSIC, [0] * 9, to_move=O)
    with pytest.raises(ValueError):
        _choose(state, "impossible")


# Ultimate

@pytest.mark.parametrize("seed", range(10))
def test_hard_ultimate_opens_on_a_centre_edge(seed: int):
    state = new_state(ULTIMATE, O)
    begin(state)
    move = _choose(state, HARD, seed)
    assert move.board == 4
    assert move.cell in EDGE_CELLS


def test_hard_ultimate_avoids_sending_into_threats():
    state = _ultimate({2: THREAT, 4: THREAT, 6: THREAT, 8: THREAT}, active=0)
    # only corner 0 keeps X out of a board it can win at once
    for seed in range(5):
        assert _choose(state, HARD, seed) == Move(0, 0)


def test_hard_ultimate_passes_over_an_unsafe_win():
    state = _ultimate({0: [2, 2, 0, 0, 0, 0, 0, 0, 0], 2: THREAT}, active=0)
    assert _choose(state, HARD) == Move(4, 0)
    state = _ultimate({0: [2, 2, 0, 0, 0, 0, 0, 0, 0]}, active=0)
    assert _choose(state, HARD) == Move(2, 0)


def test_hard_ultimate_falls_back_when_nothing_is_safe():
    boards = {b: THREAT for b in range(1, 9)}
    boards[0] = [0, 0, 0, 0, 1, 1, 0, 0, 0]
    state = _ultimate(boards, active=0)
    assert _choose(state, HARD) == Move(3, 0)


def test_hard_ultimate_free_choice_takes_first_safe_board():
    cells = [0] * 9
    cells[4] = X
    state = _ultimate({0: cells}, active=None)
    for seed in range(5):
        move = _choose(state, HARD, seed)
        assert move.board == 0
        assert move.cell != 4


def test_medium_ultimate_win_then_block():
    state = _ultimate({5: [2, 2, 0, 0, 0, 0, 0, 0, 0]}, active=5)
    assert _choose(state, MEDIUM) == Move(2, 5)
    state = _ultimate({5: [1, 1, 0, 2, 0, 0, 0, 0, 0]}, active=5)
    assert _choose(state, MEDIUM) == Move(2, 5)
    state = _ultimate({1: THREAT, 3: [0, 0, 0, 2, 2, 0, 0, 0, 0]}, active=None)
    assert _choose(state, MEDIUM) == Move(5, 3)


def test_easy_ultimate_respects_the_pointer():
    state = _ultimate({0: [1, 0, 0, 0, 0, 0, 0, 0, 0]}, active=7)
    for seed in range(10):
        assert _choose(state, EASY, seed).board == 7


def _no_safe_cell_anywhere():
    # every board holds an X threat, and O already sits on the cell that would
    # send X back into the same board
    boards = {}
    for b in range(9):
        sub = [0, 0, 0, 0, 0, 0, 1, 1, 0] if b < 3 else [1, 1, 0, 0, 0, 0, 0, 0, 0]
        sub[b] = O
        boards[b] = sub
    # board 5: O has out-played X there
    boards[5] = [1, 1, 0, 0, 0, 2, 2, 2, 0]
    return _ultimate(boards, active=None)


@pytest.mark.parametrize("seed", range(5))
def test_strategic_board_prefers_boards_where_o_leads(seed: int):
    state = _no_safe_cell_anywhere()
    pos = Position.from_state(state, O)
    assert [b for b in range(9) if pos.is_strategic_target(b)] == [5]
    move = strategic_board(pos, np.random.default_rng(seed))
    assert move.board == 5
    assert pos.my_counts[5] > pos.their_counts[5]
    assert is_legal(state, move, O)


def test_untouched_board_is_a_strategic_target():
    pos = Position.from_state(_ultimate({0: [1, 0, 0, 0, 2, 0, 0, 0, 0]}), O)
    assert pos.is_strategic_target(1)
    assert not pos.is_strategic_target(0)


def test_send_to_decided_takes_first_cell_in_board_order():
    state = _ultimate({3: [1, 1, 1, 2, 2, 0, 0, 0, 0]}, active=None)
    pos = Position.from_state(state, O)
    assert send_to_decided(pos, np.random.default_rng(0)) == Move(3, 0)
    # winning the board that the move points at also frees X's choice
    state = _ultimate({2: [2, 2, 0, 0, 0, 0, 0, 0, 0]}, active=None)
    pos = Position.from_state(state, O)
    assert send_to_decided(pos, np.random.default_rng(0)) == Move(2, 2)


def test_hard_ultimate_sends_to_a_decided_board_when_that_is_the_only_safe_cell():
    boards = {b: THREAT for b in range(1, 9)}
    boards[0] = [2, 0, 0, 0, 0, 0, 0, 0, 0]
    boards[3] = [1, 1, 1, 2, 2, 0, 0, 0, 0]
    state = _ultimate(boards, active=0)
    for seed in range(5):
        assert _choose(state, HARD, seed) == Move(3, 0)


def test_hard_ultimate_unsafe_fallback_goes_to_centre():
    # nothing is safe, nothing to win or block, no decided board to send to
    boards = {b: THREAT for b in range(1, 9)}
    boards[0] = [2, 0, 0, 0, 0, 0, 0, 0, 0]
    state = _ultimate(boards, active=0)
    assert _choose(state, HARD) == Move(4, 0)
