import numpy as np
import pytest

from qataar import QataarEnv
from qataar.core import BoardTopology, Layout, LayoutName, Piece, Player, get_layout
from qataar.core.rules import encode_action
from qataar.env.gym_env import AUX_VECTOR_SIZE, BOARD_CHANNELS


def column_env(pieces, max_ply=200):
    nodes = {str(i): {"x": 0, "y": i} for i in range(1, 6)}
    topology = BoardTopology.from_mapping(nodes, [["1", "2", "3", "4", "5"]])
    layout = Layout(name=LayoutName.STANDARD, topology=topology, initial_pieces=tuple(pieces))
    return QataarEnv(layout=layout, max_ply=max_ply)


def test_reset_returns_valid_observation():
    env = QataarEnv()
    obs, info = env.reset()

    assert obs["board"].shape == (BOARD_CHANNELS, 19)
    assert obs["aux"].shape == (AUX_VECTOR_SIZE,)
    assert obs["board"].sum() == 18
    assert obs["aux"][0] == 1.0
    assert info["legal_action_mask"].shape == (19 * 19,)
    assert env.observation_space.contains(obs)


def test_opening_mask_lists_the_three_centre_walks():
    env = QataarEnv()
    env.reset()
    mask = env.legal_action_mask()
    topology = env.layout.topology
    expected = {encode_action(topology, origin, "19") for origin in ("10", "11", "12")}
    assert set(np.flatnonzero(mask)) == expected


def test_step_advances_state_and_returns_reward():
    env = QataarEnv()
    obs, info = env.reset()
    action = int(np.flatnonzero(info["legal_action_mask"])[0])

    next_obs, reward, terminated, truncated, next_info = env.step(action)

    assert reward == 0.0
    assert not terminated
    assert not truncated
    assert np.any(next_obs["board"] != obs["board"])
    assert next_obs["aux"][1] == 1.0
    assert env.state.current_player == Player.TWO


def test_illegal_and_out_of_range_actions_raise():
    env = QataarEnv()
    env.reset()
    with pytest.raises(ValueError):
        env.step(19 * 19)
    with pytest.raises(ValueError):
        env.step(0)


def test_chain_keeps_the_same_player_and_flags_aux():
    env = column_env(
        [
            Piece("a", Player.ONE, "5"),
            Piece("x", Player.TWO, "4"),
            Piece("y", Player.TWO, "2"),
        ]
    )
    env.reset()
    topology = env.layout.topology

    obs, reward, terminated, truncated, _ = env.step(encode_action(topology, "5", "3"))
    assert obs["aux"][0] == 1.0
    assert obs["aux"][2] == 1.0
    assert not terminated

    obs, reward, terminated, truncated, _ = env.step(encode_action(topology, "3", "1"))
    assert terminated
    assert reward == 1.0
    assert env.state.winner == Player.ONE


def test_blocked_side_passes_and_full_block_truncates():
    # player 2 on the top node has nowhere to go; player 1 walks once, then both are stuck
    env = column_env([Piece("a", Player.ONE, "2"), Piece("b", Player.TWO, "5")])
    env.reset()
    topology = env.layout.topology

    _, reward, terminated, truncated, info = env.step(encode_action(topology, "2", "1"))

    assert reward == 0.0
    assert not terminated
    assert truncated
    assert not info["legal_action_mask"].any()


def test_max_ply_truncates():
    env = QataarEnv(layout=get_layout("standard"), max_ply=1)
    _, info = env.reset()
    _, _, terminated, truncated, _ = env.step(int(np.flatnonzero(info["legal_action_mask"])[0]))
    assert not terminated
    assert truncated
