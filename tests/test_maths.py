from __future__ import annotations

import math

import pytest

from core.components import WorldRotation
from core.maths import Quaternion, Vector3, rotate_offset, to_lat_lon


def test_quaternion_rotates_about_axis() -> None:
    q = Quaternion.from_axis_angle(Vector3(0.0, 0.0, 1.0), math.pi / 2.0)
    out = q.rotate(Vector3(1.0, 0.0, 0.0))

    assert out.x == pytest.approx(0.0, abs=1e-9)
    assert out.y == pytest.approx(1.0)
    assert out.z == pytest.approx(0.0, abs=1e-9)
    assert q.angle == pytest.approx(math.pi / 2.0)


def test_quaternion_product_applies_right_operand_first() -> None:
    about_z = Quaternion.from_axis_angle(Vector3(0.0, 0.0, 1.0), math.pi / 2.0)
    about_x = Quaternion.from_axis_angle(Vector3(1.0, 0.0, 0.0), math.pi / 2.0)

    combined = (about_x * about_z).rotate(Vector3(1.0, 0.0, 0.0))
    stepwise = about_x.rotate(about_z.rotate(Vector3(1.0, 0.0, 0.0)))

    assert (combined - stepwise).length() == pytest.approx(0.0, abs=1e-9)


def test_zero_axis_gives_identity() -> None:
    assert Quaternion.from_axis_angle(Vector3(0.0, 0.0, 0.0), 1.0) == Quaternion.identity()


def test_world_rotation_round_trips_between_frames() -> None:
    rotation = WorldRotation()
    rotation.rotate_by(Quaternion.from_axis_angle(Vector3(1.0, 0.0, 1.0), 0.7))
    point = Vector3(3.0, 81.0, -2.0)

    back = rotation.to_world_frame(rotation.to_planet_frame(point))

    assert (back - point).length() == pytest.approx(0.0, abs=1e-9)
    rotation.reset()
    assert rotation.quaternion == Quaternion.identity()


def test_lat_lon_of_axes() -> None:
    assert to_lat_lon(0.0, 5.0, 0.0) == pytest.approx((math.pi / 2.0, 0.0))
    assert to_lat_lon(1.0, 0.0, 0.0) == pytest.approx((0.0, 0.0))
    assert to_lat_lon(0.0, 0.0, 2.0) == pytest.approx((0.0, math.pi / 2.0))
    assert to_lat_lon(0.0, 0.0, 0.0) == (0.0, 0.0)


def test_rotate_offset_quarter_turn() -> None:
    x, z = rotate_offset(2.5, 2.0, math.pi / 2.0)
    assert x == pytest.approx(-2.0)
    assert z == pytest.approx(2.5)
