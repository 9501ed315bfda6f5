import threading
from concurrent.futures import Future

import pytest

from qataar.core import (
    BoardTopology,
    Layout,
    LayoutName,
    Move,
    MoveKind,
    Piece,
    Player,
    TurnPhase,
    custom_layout,
    get_layout,
)
from qataar.engine import TRANSITIONS, EngineEvent, GameEngine, GameMode
from qataar.search import AIResponse, AIScheduler, Difficulty


def make_layout(nodes, lines, pieces, promotion=None) -> Layout:
    topology = BoardTopology.from_mapping(
        {node_id: {"x": x, "y": y} for node_id, (x, y) in nodes.items()}, lines
    )
    return Layout(
        name=LayoutName.STANDARD,
        topology=topology,
        initial_pieces=tuple(pieces),
        promotion=promotion or {},
    )


def chain_layout(promotion=None) -> Layout:
    """Player 1 on 5 can capture twice down the column; a spare piece sits on 6."""
    nodes = {str(i): (0, i) for i in range(1, 6)}
    nodes.update({"6": (3, 5), "7": (3, 4)})
    pieces = [
        Piece("a", Player.ONE, "5"),
        Piece("b", Player.ONE, "6"),
        Piece("x", Player.TWO, "4"),
        Piece("y", Player.TWO, "2"),
    ]
    return make_layout(nodes, [["1", "2", "3", "4", "5"], ["6", "7"]], pieces, promotion)


def ai_chain_layout() -> Layout:
    """After player 1 walks 6 -> 7, player 2 on 1 must capture twice."""
    nodes = {str(i): (0, i) for i in range(1, 6)}
    nodes.update({"6": (3, 5), "7": (3, 4)})
    pieces = [
        Piece("b", Player.TWO, "1"),
        Piece("w1", Player.ONE, "2"),
        Piece("w2", Player.ONE, "4"),
        Piece("w3", Player.ONE, "6"),
    ]
    return make_layout(nodes, [["1", "2", "3", "4", "5"], ["6", "7"]], pieces)


class PendingExecutor:
    def __init__(self) -> None:
        self.futures = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.futures.append(future)
        return future

    def shutdown(self, wait=True):
        pass


class HoldFirstExecutor:
    """Holds the first submission; runs later ones inline."""

    def __init__(self) -> None:
        self.held = None

    def submit(self, fn, *args, **kwargs):
        future = Future()
        if self.held is None:
            self.held = future
        else:
            future.set_result(fn(*args, **kwargs))
        return future

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def scheduler():
    with AIScheduler() as worker:
        yield worker


def test_transition_table_has_no_exit_from_game_over():
    assert all(phase != TurnPhase.GAME_OVER for phase, _ in TRANSITIONS)
    assert (TurnPhase.CHAIN_JUMPING, EngineEvent.PASS) not in TRANSITIONS


def test_initial_state():
    engine = GameEngine(get_layout("standard"))
    view = engine.view()
    assert view.turn == Player.ONE
    assert view.phase == TurnPhase.AWAITING_SELECTION
    assert view.winner is None
    assert view.generation == 0
    assert len(view.pieces) == 18


def test_select_and_walk():
    engine = GameEngine(get_layout("standard"))

    assert engine.select("p1-1")
    assert engine.phase == TurnPhase.PIECE_SELECTED
    assert [move.target for move in engine.state.legal_moves] == ["19"]

    assert engine.move("19")
    assert engine.state.piece("p1-1").node == "19"
    assert engine.state.current_player == Player.TWO
    assert engine.phase == TurnPhase.AWAITING_SELECTION
    assert engine.state.selected_piece_id is None
    assert engine.state.generation == 1


def test_selection_rules():
    engine = GameEngine(get_layout("standard"), game_mode=GameMode.PVP)
    assert not engine.select("p2-7")  # not player 2's turn
    assert not engine.select("p1-7")  # boxed in
    assert not engine.select("nope")
    assert engine.select("p1-1")
    assert engine.select("p1-2")  # reselecting another piece is allowed
    assert engine.state.selected_piece_id == "p1-2"


def test_invalid_target_is_ignored():
    engine = GameEngine(get_layout("standard"))
    engine.select("p1-1")
    before = engine.state.copy()

    assert not engine.move("5")
    assert engine.state.pieces == before.pieces
    assert engine.phase == TurnPhase.PIECE_SELECTED


def test_move_without_selection_is_ignored():
    engine = GameEngine(get_layout("standard"))
    assert not engine.move("19")
    assert engine.state.ply_count == 0


def test_computer_side_rejects_human_input():
    engine = GameEngine(get_layout("standard"))
    engine.select("p1-1")
    engine.move("19")
    assert engine.ai_to_move
    assert not engine.select("p2-7")


def test_computer_side_rejects_complete_moves():
    engine = GameEngine(get_layout("standard"))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))

    assert engine.ai_to_move
    assert not engine.ai_pending
    assert not engine.play(engine.legal_moves()[0])
    assert engine.state.current_player == Player.TWO
    assert engine.state.ply_count == 1


def test_two_player_mode_lets_both_sides_move():
    engine = GameEngine(get_layout("standard"), game_mode=GameMode.PVP)
    engine.select("p1-1")
    engine.move("19")
    assert not engine.ai_to_move
    assert engine.select("p2-7")


def test_forced_capture_applies_to_selection():
    engine = GameEngine(chain_layout(), game_mode=GameMode.PVP)
    assert not engine.select("b")
    assert engine.select("a")


def test_chain_keeps_the_turn_until_it_ends():
    engine = GameEngine(chain_layout(), game_mode=GameMode.PVP)
    engine.select("a")

    assert engine.move("3")
    assert engine.phase == TurnPhase.CHAIN_JUMPING
    assert engine.state.current_player == Player.ONE
    assert engine.state.chain_piece_id == "a"
    assert engine.legal_moves() == [Move("1", MoveKind.JUMP, captured="y", piece_id="a")]
    assert engine.view().chain_jumping

    assert not engine.select("b")
    assert not engine.pass_turn()

    assert engine.move("1")
    assert engine.state.winner == Player.ONE
    assert engine.phase == TurnPhase.GAME_OVER
    assert engine.state.chain_piece_id is None
    assert engine.legal_moves() == []


def test_promotion_ends_the_chain():
    engine = GameEngine(
        chain_layout(promotion={Player.ONE: frozenset({"3"})}), game_mode=GameMode.PVP
    )
    engine.select("a")
    engine.move("3")

    assert engine.state.piece("a").is_king
    assert engine.state.current_player == Player.TWO
    assert engine.phase == TurnPhase.AWAITING_SELECTION
    assert engine.state.piece("y") is not None


def test_finished_game_rejects_input():
    engine = GameEngine(chain_layout(), game_mode=GameMode.PVP)
    engine.select("a")
    engine.move("3")
    engine.move("1")

    assert not engine.select("b")
    assert not engine.pass_turn()
    assert not engine.play(Move("7", MoveKind.WALK, piece_id="b"))


def test_play_rejects_illegal_moves():
    engine = GameEngine(get_layout("standard"))
    assert not engine.play(Move("19", MoveKind.WALK, piece_id="p1-7"))
    assert not engine.play(Move("19", MoveKind.WALK, piece_id="p2-7"))
    assert engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))
    assert engine.state.current_player == Player.TWO


def test_reset_restores_placement_and_bumps_generation():
    engine = GameEngine(get_layout("standard"))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-1"))

    engine.reset()

    assert engine.state.pieces == list(get_layout("standard").initial_pieces)
    assert engine.state.current_player == Player.ONE
    assert engine.state.generation == 2


def test_set_layout_and_mode_restart_the_game():
    engine = GameEngine(get_layout("standard"))
    engine.set_layout(get_layout("square"))
    assert len(engine.state.pieces) == 12

    engine.set_game_mode(GameMode.PVP)
    assert engine.game_mode == GameMode.PVP
    assert engine.state.ply_count == 0

    engine.set_difficulty(Difficulty.HARD)
    assert engine.difficulty == Difficulty.HARD


def test_winner_detected_on_load():
    layout = make_layout({"1": (0, 0), "2": (0, 1)}, [["1", "2"]], [Piece("a", Player.ONE, "1")])
    engine = GameEngine(layout)
    assert engine.state.winner == Player.ONE
    assert engine.phase == TurnPhase.GAME_OVER


def test_empty_custom_board_has_no_winner():
    engine = GameEngine(custom_layout({"nodes": {}}))
    assert engine.state.winner is None
    assert engine.legal_moves() == []


def test_computer_plays_its_turn(scheduler):
    engine = GameEngine(get_layout("standard"), scheduler=scheduler, seed=3)
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))

    assert engine.play_ai_turn(timeout=30)
    assert engine.state.current_player == Player.ONE
    assert engine.state.ply_count == 2
    assert not engine.ai_pending


def test_computer_finishes_its_capture_chain(scheduler):
    engine = GameEngine(ai_chain_layout(), scheduler=scheduler, difficulty=Difficulty.EASY)
    engine.play(Move("7", MoveKind.WALK, piece_id="w3"))

    assert engine.play_ai_turn(timeout=30)

    assert engine.state.piece("b").node == "5"
    assert {piece.id for piece in engine.state.pieces} == {"b", "w3"}
    assert engine.state.current_player == Player.ONE
    assert engine.phase == TurnPhase.AWAITING_SELECTION


def test_computer_without_moves_passes(scheduler):
    layout = make_layout(
        {"1": (0, 2), "2": (0, 1), "3": (4, 2), "4": (4, 1)},
        [["1", "2"], ["3", "4"]],
        [Piece("w", Player.ONE, "3"), Piece("b", Player.TWO, "1")],
    )
    engine = GameEngine(layout, scheduler=scheduler)
    engine.play(Move("4", MoveKind.WALK, piece_id="w"))

    generation = engine.state.generation
    assert engine.play_ai_turn(timeout=30)
    assert engine.state.current_player == Player.ONE
    assert engine.state.generation == generation + 1
    assert engine.state.piece("b").node == "1"


def test_pending_computation_blocks_input_until_resolved():
    executor = PendingExecutor()
    engine = GameEngine(get_layout("standard"), scheduler=AIScheduler(executor=executor))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))

    future = engine.request_ai_move()
    assert future is executor.futures[0]
    assert engine.ai_pending
    assert engine.request_ai_move() is None
    assert not engine.play(Move("19", MoveKind.WALK, piece_id="p2-7"))

    response = AIResponse(
        move=Move("8", MoveKind.WALK, piece_id="p1-5"),
        generation=engine.state.generation,
    )
    assert not engine.play(Move("8", MoveKind.WALK, piece_id="p1-5"))
    assert engine.resolve_ai_move(response)  # illegal proposal falls back to a pass
    assert not engine.ai_pending
    assert engine.state.current_player == Player.ONE


def test_stale_result_is_discarded():
    executor = PendingExecutor()
    engine = GameEngine(get_layout("standard"), scheduler=AIScheduler(executor=executor))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))
    request = engine.build_ai_request()
    engine.request_ai_move()

    engine.reset()
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-1"))
    stale = AIResponse(
        move=Move("19", MoveKind.WALK, piece_id="p2-7"), generation=request.generation
    )

    assert not engine.ai_pending
    # the abandoned computation still occupies the worker
    assert engine.request_ai_move() is None
    assert not engine.resolve_ai_move(stale)
    assert not engine.ai_pending
    assert engine.state.current_player == Player.TWO
    assert engine.state.piece("p2-7").node == "7"


def test_fresh_result_is_applied():
    executor = PendingExecutor()
    engine = GameEngine(get_layout("standard"), scheduler=AIScheduler(executor=executor))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-1"))
    engine.request_ai_move()

    # 19 is now taken, so player 2 is forced to capture
    jumps = engine.legal_moves()
    assert jumps and all(move.is_jump for move in jumps)
    response = AIResponse(move=jumps[0], generation=engine.state.generation)

    assert engine.resolve_ai_move(response)
    assert engine.state.piece("p1-1") is None


def test_abandoned_search_is_reported_until_the_worker_frees_up():
    executor = PendingExecutor()
    engine = GameEngine(get_layout("standard"), scheduler=AIScheduler(executor=executor))
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))
    engine.request_ai_move()
    abandoned = engine.state.generation

    engine.reset()
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-1"))

    assert engine.ai_blocked
    assert engine.view().ai_blocked
    assert engine.request_ai_move() is None

    executor.futures[0].set_result(AIResponse(move=None, generation=abandoned))
    assert not engine.ai_blocked
    assert engine.request_ai_move() is executor.futures[1]
    assert not engine.ai_blocked


def test_play_ai_turn_waits_for_an_abandoned_search():
    executor = HoldFirstExecutor()
    engine = GameEngine(
        get_layout("standard"),
        scheduler=AIScheduler(executor=executor),
        difficulty=Difficulty.EASY,
        seed=0,
    )
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))
    engine.request_ai_move()
    abandoned = engine.state.generation

    engine.reset()
    engine.play(Move("19", MoveKind.WALK, piece_id="p1-1"))
    release = threading.Timer(
        0.05, executor.held.set_result, [AIResponse(move=None, generation=abandoned)]
    )
    release.start()

    assert engine.play_ai_turn(timeout=10)
    release.join()
    assert engine.state.current_player == Player.ONE
    assert engine.state.ply_count == 2


def test_close_shuts_down_the_worker():
    with GameEngine(get_layout("standard")) as engine:
        engine.play(Move("19", MoveKind.WALK, piece_id="p1-2"))
        assert engine.play_ai_turn(timeout=30)

    with pytest.raises(RuntimeError):
        engine.scheduler.submit(engine.build_ai_request())
