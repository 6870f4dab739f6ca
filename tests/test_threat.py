from zombidef.schemas import Coordinate
from zombidef.services.snapshot import Zombie
from zombidef.services.threat import step_of, threatens


def _zombie(x, y, direction):
    return Zombie(id="z", pos=Coordinate(x=x, y=y), attack=5, health=10, direction=direction)


def test_up_reaches_structure_above():
    z = _zombie(5, 5, "up")
    assert threatens(z, {Coordinate(x=5, y=2)})
    assert threatens(z, {Coordinate(x=5, y=2)}, horizon=3)
    assert not threatens(z, {Coordinate(x=5, y=2)}, horizon=2)


def test_moving_away_is_not_a_threat():
    z = _zombie(5, 5, "down")
    assert not threatens(z, {Coordinate(x=5, y=2)})


def test_other_column_is_not_a_threat():
    z = _zombie(5, 5, "left")
    assert not threatens(z, {Coordinate(x=5, y=2), Coordinate(x=0, y=4)})
    assert threatens(z, {Coordinate(x=0, y=5)})


def test_horizon_is_thirty_steps():
    z = _zombie(0, 0, "right")
    assert threatens(z, {Coordinate(x=30, y=0)})
    assert not threatens(z, {Coordinate(x=31, y=0)})


def test_unknown_direction_only_threatens_own_cell():
    z = _zombie(5, 5, "sideways")
    assert step_of("sideways") == Coordinate(x=0, y=0)
    assert not threatens(z, {Coordinate(x=5, y=4), Coordinate(x=6, y=5), Coordinate(x=5, y=2)})
    assert threatens(z, {Coordinate(x=5, y=5)})


def test_accepts_mapping_lookup():
    z = _zombie(3, 0, "left")
    occupied = {Coordinate(x=0, y=0): object()}
    assert threatens(z, occupied)
