"""Tests for loading dates into the local store."""

import asyncio
from datetime import date

from macro_tracker.services.reconciliation import (
    SOURCE_EMPTY,
    SOURCE_ERROR,
    SOURCE_PENDING,
    SOURCE_REMOTE,
    SOURCE_STALE,
)
from tests.conftest import TODAY, InMemoryRemoteStore, build_harness, make_entry

OTHER_DAY = date(2026, 10, 12)


def test_missing_record_loads_an_empty_day() -> None:
    async def scenario() -> None:
        harness = build_harness()
        harness.store.replace_all(TODAY, [make_entry("stale")])

        result = await harness.loader.load(OTHER_DAY)

        assert result.source == SOURCE_EMPTY
        assert harness.store.day == OTHER_DAY
        assert harness.store.entries == []
        assert harness.tracker.totals.calories == 0

    asyncio.run(scenario())


def test_remote_record_replaces_local_entries() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(
            days={OTHER_DAY: [make_entry("r1", 300), make_entry("r2", 200)]}
        )
        harness = build_harness(remote=remote)
        harness.store.replace_all(TODAY, [make_entry("local")])

        result = await harness.tracker.select_day(OTHER_DAY)

        assert result.source == SOURCE_REMOTE
        assert [entry.id for entry in harness.store.entries] == ["r1", "r2"]
        assert harness.tracker.totals.calories == 500

    asyncio.run(scenario())


def test_recorded_empty_day_is_distinct_from_missing() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(days={OTHER_DAY: []})
        harness = build_harness(remote=remote)

        result = await harness.loader.load(OTHER_DAY)

        assert result.source == SOURCE_REMOTE
        assert result.entries == []

    asyncio.run(scenario())


def test_read_failure_shows_empty_day_and_notifies() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(fail_reads=True)
        harness = build_harness(remote=remote)
        harness.store.replace_all(TODAY, [make_entry("local")])

        result = await harness.loader.load(OTHER_DAY)

        assert result.source == SOURCE_ERROR
        assert harness.store.day == OTHER_DAY
        assert harness.store.entries == []
        assert len(harness.notifications.list_active()) == 1

    asyncio.run(scenario())


def test_loading_never_writes() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(days={TODAY: [make_entry("r1")]})
        harness = build_harness(remote=remote)

        await harness.tracker.select_day(TODAY)
        await harness.tracker.select_day(OTHER_DAY)
        await harness.tracker.select_day(TODAY)
        await harness.dispatcher.drain()

        assert remote.day_writes == []

    asyncio.run(scenario())


def test_unacknowledged_delete_survives_reload() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(
            days={TODAY: [make_entry("e1"), make_entry("e2")]},
            write_delays=[0.05],
        )
        harness = build_harness(remote=remote)
        await harness.tracker.select_day(TODAY)

        harness.tracker.delete_entry("e1")
        await harness.tracker.select_day(OTHER_DAY)
        result = await harness.tracker.select_day(TODAY)

        assert result.source == SOURCE_PENDING
        assert [entry.id for entry in harness.store.entries] == ["e2"]
        await harness.dispatcher.drain()
        assert [entry.id for entry in remote.days[TODAY]] == ["e2"]

        reloaded = await harness.tracker.select_day(TODAY)
        assert reloaded.source == SOURCE_REMOTE
        assert [entry.id for entry in reloaded.entries] == ["e2"]

    asyncio.run(scenario())


def test_debounced_add_survives_navigation_round_trip() -> None:
    async def scenario() -> None:
        harness = build_harness(debounce_seconds=0.05)
        await harness.tracker.select_day(TODAY)
        harness.store.add(make_entry("new"))

        await harness.tracker.select_day(OTHER_DAY)
        result = await harness.tracker.select_day(TODAY)

        assert result.source == SOURCE_PENDING
        assert [entry.id for entry in harness.store.entries] == ["new"]
        await harness.dispatcher.drain()

    asyncio.run(scenario())


def test_result_for_abandoned_date_is_ignored() -> None:
    async def scenario() -> None:
        remote = InMemoryRemoteStore(
            days={OTHER_DAY: [make_entry("old")], TODAY: [make_entry("now")]}
        )
        harness = build_harness(remote=remote)
        real_load = remote.load_day

        async def slow_load(day: date):
            if day == OTHER_DAY:
                await asyncio.sleep(0.05)
            return await real_load(day)

        remote.load_day = slow_load

        slow = asyncio.create_task(harness.loader.load(OTHER_DAY))
        await asyncio.sleep(0.001)
        await harness.loader.load(TODAY)
        abandoned = await slow

        assert abandoned.source == SOURCE_STALE
        assert harness.store.day == TODAY
        assert [entry.id for entry in harness.store.entries] == ["now"]

    asyncio.run(scenario())
