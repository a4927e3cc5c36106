import pytest

from histview.services.zoom_window import (
    MAX_ZOOM,
    MIN_ZOOM,
    ZoomWindow,
    max_offset_for,
    visible_points_for,
)


def test_initial_state_is_identity():
    z = ZoomWindow()
    assert z.factor == 1.0
    assert z.offset == 0
    assert z.is_identity


def test_zoom_in_saturates_at_max():
    z = ZoomWindow()
    for _ in range(20):
        z = z.zoom_in()
    assert z.factor == MAX_ZOOM == 5.0
    assert not z.can_zoom_in
    # still a defined transition at the ceiling
    assert z.zoom_in() == z


def test_zoom_out_saturates_at_min():
    z = ZoomWindow()
    for _ in range(20):
        z = z.zoom_out(total_points=200)
    assert z.factor == MIN_ZOOM == 0.5
    assert not z.can_zoom_out


def test_transitions_do_not_mutate_the_original():
    z = ZoomWindow()
    z.zoom_in()
    z.pan(10, total_points=100)
    assert z == ZoomWindow()


def test_zoom_in_pan_zoom_out_clamps_offset():
    """zoomIn x3, pan(+1000), zoomOut x1 on a 200-sample buffer."""
    z = ZoomWindow()
    for _ in range(3):
        z = z.zoom_in()
    assert z.factor == 2.5

    z = z.pan(1000, total_points=200)
    assert z.offset == max_offset_for(2.5, 200) == 120

    z = z.zoom_out(total_points=200)
    assert z.factor == 2.0
    assert z.offset <= max_offset_for(z.factor, 200)
    assert z.offset == 100


def test_pan_clamps_to_zero():
    z = ZoomWindow(factor=2.0).pan(30, total_points=100).pan(-500, total_points=100)
    assert z.offset == 0


def test_pan_at_identity_has_no_room():
    z = ZoomWindow().pan(50, total_points=100)
    assert z.offset == 0


def test_reset_returns_identity():
    z = ZoomWindow(factor=3.5, offset=42).reset()
    assert z == ZoomWindow(1.0, 0)


@pytest.mark.parametrize("factor,total,expected_visible,expected_max_offset", [
    (1.0, 200, 200, 0),
    (2.0, 200, 100, 100),
    (3.0, 100, 33, 67),
    (5.0, 7, 1, 6),
    (0.5, 200, 200, 0),
    (2.0, 0, 0, 0),
    (1.5, 1, 1, 0),
    (5.0, 4, 1, 3),
])
def test_visible_points_and_max_offset(factor, total, expected_visible, expected_max_offset):
    assert visible_points_for(factor, total) == expected_visible
    assert max_offset_for(factor, total) == expected_max_offset


def test_effective_offset_reclamps_after_buffer_shrinks():
    z = ZoomWindow(factor=2.0).pan(600, total_points=1000)
    assert z.offset == 500
    # new, smaller buffer swapped in underneath
    assert z.effective_offset(100) == 50


def test_pan_on_tiny_buffer_stays_inside_it():
    z = ZoomWindow(factor=1.5).pan(1, total_points=1)
    assert z.offset == 0

    z = ZoomWindow(factor=5.0).pan(1000, total_points=4)
    assert z.offset == 3
    assert z.visible_points(4) == 1
