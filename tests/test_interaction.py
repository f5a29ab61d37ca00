import random

import pytest

from core.board import (
    HANDLE_SIZE,
    EntityStore,
    GestureState,
    HitTarget,
    InteractionController,
    PointerBus,
    hit_test,
)
from core.board.interaction import remove_button_rect, resize_handle_rect
from core.models.domain import Picture, Viewport, Window

VIEWPORT = Viewport(1000, 800)


@pytest.fixture()
def board():
    store = EntityStore()
    store.add(Picture(id="p1", url="https://example.com/p1.png", prompt="p1", x=100, y=100))
    bus = PointerBus()
    controller = InteractionController(store, "p1", bus, lambda: VIEWPORT)
    return store, bus, controller


class TestHitTesting:
    def test_controls_take_precedence_over_frame(self):
        window = Window(id="w1", x=100, y=100)
        bx, by, bw, bh = remove_button_rect(window)
        hx, hy, hw, hh = resize_handle_rect(window)

        assert hit_test(window, bx + bw / 2, by + bh / 2, True) is HitTarget.REMOVE_BUTTON
        assert hit_test(window, hx + hw / 2, hy + hh / 2, True) is HitTarget.RESIZE_HANDLE
        assert hit_test(window, 150, 150, True) is HitTarget.FRAME
        assert hit_test(window, 10, 10, True) is HitTarget.NONE

    def test_hidden_controls_fall_through_to_frame(self):
        window = Window(id="w1", x=100, y=100)
        assert hit_test(window, 340, 340, False) is HitTarget.FRAME


class TestInteractionController:
    def test_idle_controller_holds_no_global_listener(self, board):
        _store, bus, controller = board
        assert controller.state is GestureState.IDLE
        assert bus.listener_count == 0

    def test_drag_follows_pointer_without_drift(self, board):
        store, bus, controller = board

        assert controller.pointer_down(130, 140) is HitTarget.FRAME
        assert controller.state is GestureState.DRAGGING
        assert bus.listener_count == 1

        bus.dispatch_move(230, 240)
        bus.dispatch_move(330, 340)
        bus.dispatch_move(230, 240)
        picture = store.get("p1")
        assert (picture.x, picture.y) == (200, 200)

        bus.dispatch_up(230, 240)
        assert controller.state is GestureState.IDLE
        assert bus.listener_count == 0

    def test_drag_is_clamped_to_viewport(self, board):
        store, bus, controller = board
        controller.pointer_down(110, 110)

        bus.dispatch_move(5000, -400)

        picture = store.get("p1")
        assert (picture.x, picture.y) == (750, 0)

    def test_resize_scenario_clamps_both_axes(self):
        store = EntityStore()
        store.add(Picture(id="p1", url="https://example.com/p1.png", prompt="p1", x=100, y=100, height=180))
        bus = PointerBus()
        controller = InteractionController(store, "p1", bus, lambda: VIEWPORT)
        controller.pointer_enter()

        assert controller.pointer_down(340, 270) is HitTarget.RESIZE_HANDLE
        assert controller.state is GestureState.RESIZING

        bus.dispatch_move(740, 220)

        picture = store.get("p1")
        assert (picture.width, picture.height) == (500, 150)
        assert (picture.x, picture.y) == (100, 100)

        bus.dispatch_up(740, 220)
        assert bus.listener_count == 0

    def test_random_extreme_gestures_stay_in_bounds(self, board):
        store, bus, controller = board
        rng = random.Random(7)
        controller.pointer_enter()

        for _ in range(200):
            entity = store.get("p1")
            if rng.random() < 0.5:
                hx, hy, hw, hh = resize_handle_rect(entity)
                px, py = hx + rng.uniform(0, hw), hy + rng.uniform(0, hh)
            else:
                px = entity.x + rng.uniform(0, entity.width - HANDLE_SIZE - 1)
                py = entity.y + rng.uniform(0, entity.height - HANDLE_SIZE - 1)
            target = controller.pointer_down(px, py)
            assert target in (HitTarget.FRAME, HitTarget.RESIZE_HANDLE)

            for _ in range(3):
                bus.dispatch_move(rng.uniform(-1e6, 1e6), rng.uniform(-1e6, 1e6))
                moved = store.get("p1")
                assert 150 <= moved.width <= 500
                assert 150 <= moved.height <= 500
                if target is HitTarget.FRAME:
                    assert 0 <= moved.x <= VIEWPORT.width - moved.width
                    assert 0 <= moved.y <= VIEWPORT.height - moved.height
                else:
                    assert (moved.x, moved.y) == (entity.x, entity.y)
            bus.dispatch_up(0, 0)
            assert bus.listener_count == 0

    def test_handle_without_hover_starts_drag(self, board):
        _store, _bus, controller = board
        assert controller.pointer_down(340, 340) is HitTarget.FRAME
        assert controller.state is GestureState.DRAGGING

    def test_remove_button_does_not_start_gesture(self, board):
        _store, bus, controller = board
        controller.pointer_enter()
        entity = controller.store.get("p1")
        bx, by, bw, bh = remove_button_rect(entity)

        assert controller.pointer_down(bx + bw / 2, by + bh / 2) is HitTarget.REMOVE_BUTTON
        assert controller.state is GestureState.IDLE
        assert bus.listener_count == 0

    def test_controls_stay_visible_while_gesturing(self, board):
        _store, bus, controller = board
        controller.pointer_enter()
        controller.pointer_down(340, 340)
        controller.pointer_leave()

        assert controller.controls_visible
        bus.dispatch_up(0, 0)
        assert not controller.controls_visible

    def test_entity_removed_mid_gesture_ends_it(self, board):
        store, bus, controller = board
        controller.pointer_down(150, 150)
        store.remove("p1")

        bus.dispatch_move(300, 300)

        assert controller.state is GestureState.IDLE
        assert bus.listener_count == 0
        assert "p1" not in store

    def test_cancel_releases_listener(self, board):
        _store, bus, controller = board
        controller.pointer_down(150, 150)
        controller.cancel()
        controller.cancel()
        assert bus.listener_count == 0

    def test_press_outside_entity_is_ignored(self, board):
        _store, bus, controller = board
        assert controller.pointer_down(5, 5) is HitTarget.NONE
        assert bus.listener_count == 0


class TestPointerBus:
    def test_subscription_release_is_idempotent(self):
        bus = PointerBus()

        class _Listener:
            def __init__(self):
                self.moves = []

            def on_pointer_move(self, x, y):
                self.moves.append((x, y))

            def on_pointer_up(self, x, y):
                pass

        listener = _Listener()
        with bus.subscribe(listener) as subscription:
            bus.dispatch_move(1, 2)
            assert bus.listener_count == 1
        subscription.release()
        bus.dispatch_move(3, 4)

        assert listener.moves == [(1, 2)]
        assert bus.listener_count == 0
