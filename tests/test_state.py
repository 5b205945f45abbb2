"""Tests for the state container and render debouncing."""

from __future__ import annotations

import asyncio

import pytest

from toolbench.ui.state import StateContainer, create_state_container, debounce


class TestStateContainer:
    def test_initial_state_is_deep_copied(self) -> None:
        initial = {"items": [1]}
        mutate, get, _ = create_state_container(initial, lambda s: None)
        mutate(lambda s: s["items"].append(2))
        assert initial == {"items": [1]}
        assert get() == {"items": [1, 2]}

    def test_two_containers_share_nothing(self) -> None:
        initial = {"items": []}
        a = StateContainer(initial, lambda s: None)
        b = StateContainer(initial, lambda s: None)
        a.mutate(lambda s: s["items"].append(1))
        assert b.get() == {"items": []}

    def test_mutate_notifies_synchronously(self) -> None:
        seen: list[int] = []
        mutate, _, _ = create_state_container({"count": 0}, lambda s: seen.append(s["count"]))
        mutate(lambda s: s.update(count=1))
        mutate(lambda s: s.update(count=2))
        assert seen == [1, 2]

    def test_unsubscribed_mutates_without_notifying(self) -> None:
        seen: list[int] = []
        mutate, get, set_unsubscribed = create_state_container({"count": 0}, lambda s: seen.append(s["count"]))
        set_unsubscribed(True)
        mutate(lambda s: s.update(count=5))
        assert seen == []
        assert get()["count"] == 5

        set_unsubscribed(False)
        mutate(lambda s: s.update(count=6))
        assert seen == [6]


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_in_one_tick_fires_once_with_latest(self) -> None:
        seen: list[int] = []
        mutate, _, _ = create_state_container({"count": 0}, debounce(lambda s: seen.append(s["count"])))

        def bump(s: dict) -> None:
            s["count"] += 1

        mutate(bump)
        mutate(bump)
        mutate(bump)
        assert seen == []

        await asyncio.sleep(0)
        assert seen == [3]

    @pytest.mark.asyncio
    async def test_last_argument_wins(self) -> None:
        seen: list[str] = []
        fn = debounce(seen.append)
        fn("a")
        fn("b")
        await asyncio.sleep(0)
        assert seen == ["b"]

    @pytest.mark.asyncio
    async def test_separate_ticks_fire_separately(self) -> None:
        seen: list[str] = []
        fn = debounce(seen.append)
        fn("a")
        await asyncio.sleep(0)
        fn("b")
        await asyncio.sleep(0)
        assert seen == ["a", "b"]

    def test_without_running_loop_calls_through(self) -> None:
        seen: list[str] = []
        fn = debounce(seen.append)
        fn("a")
        fn("b")
        assert seen == ["a", "b"]
