"""
Tests for the per-device controllers.

Devices are wired together by hand: blobs a controller broadcasts are
collected and delivered to the other controllers explicitly.
"""

import asyncio

import orjson

from quickory_engine import errors
from quickory_engine.constants import GameStatus
from quickory_engine.controller import GameController, HostController
from quickory_engine.rules import create_config

FAST = create_config(
    letters=["B"],
    categories=["Colors"],
    results_delay_seconds=0,
    next_round_delay_seconds=0,
    tick_seconds=0.01,
)


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def outbox(controller):
    blobs = []
    controller.on_broadcast(blobs.append)
    return blobs


async def wait_for(condition, attempts=200):
    for _ in range(attempts):
        if condition():
            return True
        await asyncio.sleep(0.01)
    return condition()


async def host_and_guest(clock, total_rounds=1):
    host = HostController(config=FAST, clock=clock)
    guest = GameController(config=FAST, clock=clock)
    host_out, guest_out = outbox(host), outbox(guest)

    await host.create_session("Hana", "😀", total_rounds, 1)
    await guest.receive_remote_update(host_out[-1])
    await guest.join("Gus", "🦊")
    await host.receive_remote_update(guest_out[-1])
    return host, guest, host_out, guest_out


def test_full_game_between_two_devices():
    async def scenario():
        clock = Clock()
        host, guest, host_out, guest_out = await host_and_guest(clock)
        assert len(host.session.players) == 2
        assert host.is_host and not guest.is_host

        result = await host.start_game()
        assert result.success
        await guest.receive_remote_update(host_out[-1])
        assert guest.session.status == GameStatus.ROUND_IN_PROGRESS

        clock.now = 1005.0
        await host.submit({"Colors": "blue"})
        await guest.receive_remote_update(host_out[-1])

        clock.now = 1010.0
        await guest.submit({"Colors": "brown"})
        assert guest.session.status == GameStatus.ROUND_ENDED
        await host.receive_remote_update(guest_out[-1])

        await host.wait_for_results()
        final = host.session
        await guest.receive_remote_update(host_out[-1])

        await host.close()
        await guest.close()
        return final, guest.session

    final, guest_view = asyncio.run(scenario())
    assert final.status == GameStatus.GAME_COMPLETED
    assert final.players[0].score == 6
    assert final.players[1].score == 1
    assert final.winner.name == "Hana"
    assert guest_view == final


def test_state_listeners_see_every_change():
    async def scenario():
        host = HostController(config=FAST, clock=Clock())
        seen = []
        unsubscribe = host.on_state_changed(lambda state: seen.append(state.version))

        await host.create_session("Hana", "", 1, 1)
        await host.start_game()
        unsubscribe()
        await host.submit({"Colors": "blue"})
        await host.close()
        return seen

    seen = asyncio.run(scenario())
    assert len(seen) == 2
    assert seen == sorted(seen)


def test_rejected_action_does_not_notify():
    async def scenario():
        host = HostController(config=FAST, clock=Clock())
        blobs = outbox(host)
        await host.create_session("Hana", "", 1, 1)
        before = len(blobs)
        result = await host.submit({"Colors": "blue"})
        await host.close()
        return result, len(blobs) - before

    result, new_blobs = asyncio.run(scenario())
    assert result.error_code == errors.ROUND_NOT_ACTIVE
    assert new_blobs == 0


def test_countdown_timeout_advances_rounds():
    async def scenario():
        clock = Clock()
        host = HostController(config=FAST, clock=clock)
        await host.create_session("Hana", "", 2, 1)
        await host.start_game()
        assert host.session.current_round == 1

        clock.now += 121
        advanced = await wait_for(lambda: host.session.current_round == 2)
        state = host.session
        await host.close()
        return advanced, state

    advanced, state = asyncio.run(scenario())
    assert advanced
    assert state.status == GameStatus.ROUND_IN_PROGRESS
    assert len(state.round_history) == 1
    assert state.round_history[0]["totals"] == {}


def test_timeout_on_last_round_completes_game():
    async def scenario():
        clock = Clock()
        host = HostController(config=FAST, clock=clock)
        await host.create_session("Hana", "", 1, 1)
        await host.start_game()
        clock.now += 500
        done = await wait_for(lambda: host.session.is_game_complete)
        await host.close()
        return done

    assert asyncio.run(scenario())


def test_guest_countdown_uses_round_start():
    async def scenario():
        clock = Clock()
        host, guest, host_out, _ = await host_and_guest(clock)
        ticks = []
        guest.on_tick(ticks.append)

        await host.start_game()
        clock.now = 1030.0
        await guest.receive_remote_update(host_out[-1])
        await wait_for(lambda: ticks)

        await host.close()
        await guest.close()
        return ticks

    ticks = asyncio.run(scenario())
    assert ticks[0] == 90


def test_guest_does_not_end_round_on_timeout():
    async def scenario():
        clock = Clock()
        host, guest, host_out, _ = await host_and_guest(clock)
        await host.start_game()
        await guest.receive_remote_update(host_out[-1])

        ticks = []
        guest.on_tick(ticks.append)
        clock.now += 500
        await wait_for(lambda: 0 in ticks)
        status = guest.session.status

        await guest.close()
        await host.close()
        return status, guest.time_remaining

    status, remaining = asyncio.run(scenario())
    assert status == GameStatus.ROUND_IN_PROGRESS
    assert remaining == 0


def test_undecodable_update_is_discarded():
    async def scenario():
        guest = GameController(config=FAST)
        changes = []
        guest.on_state_changed(changes.append)
        result = await guest.receive_remote_update(b"\x00garbage")
        return result, guest.session, changes

    result, session, changes = asyncio.run(scenario())
    assert not result.success
    assert result.error_code == errors.DECODE_FAILED
    assert session is None
    assert changes == []


def test_stale_update_is_discarded():
    async def scenario():
        clock = Clock()
        host, guest, host_out, _ = await host_and_guest(clock)
        lobby_blob = host_out[0]
        await host.start_game()
        await guest.receive_remote_update(host_out[-1])

        result = await guest.receive_remote_update(lobby_blob)
        status = guest.session.status
        await host.close()
        await guest.close()
        return result, status

    result, status = asyncio.run(scenario())
    assert result.error_code == errors.STALE_UPDATE
    assert status == GameStatus.ROUND_IN_PROGRESS


def test_host_merges_concurrent_submissions():
    async def scenario():
        clock = Clock()
        host = HostController(config=FAST, clock=clock)
        ann = GameController(config=FAST, clock=clock)
        ben = GameController(config=FAST, clock=clock)
        host_out, ann_out, ben_out = outbox(host), outbox(ann), outbox(ben)

        await host.create_session("Hana", "", 1, 1)
        for guest, out, name in ((ann, ann_out, "Ann"), (ben, ben_out, "Ben")):
            await guest.receive_remote_update(host_out[-1])
            await guest.join(name, "")
            await host.receive_remote_update(out[-1])

        await host.start_game()
        for guest in (ann, ben):
            await guest.receive_remote_update(host_out[-1])

        clock.now = 1003.0
        await ann.submit({"Colors": "blue"})
        await ben.submit({"Colors": "brown"})
        first = await host.receive_remote_update(ann_out[-1])
        second = await host.receive_remote_update(ben_out[-1])
        submitted = set(host.session.submissions)
        names = {host.session.get_player(pid).name for pid in submitted}

        for controller in (host, ann, ben):
            await controller.close()
        return first, second, names

    first, second, names = asyncio.run(scenario())
    assert first.success
    assert second.success
    assert names == {"Ann", "Ben"}


def test_join_with_taken_name_adopts_player():
    async def scenario():
        host = HostController(config=FAST, clock=Clock())
        guest = GameController(config=FAST)
        host_out = outbox(host)
        await host.create_session("Hana", "", 1, 1)
        await guest.receive_remote_update(host_out[-1])
        result = await guest.join("Hana", "")
        return result, guest.local_player_id, host.local_player_id

    result, guest_id, host_id = asyncio.run(scenario())
    assert result.success
    assert guest_id == host_id


def test_host_merges_concurrent_joins():
    async def scenario():
        host = HostController(config=FAST, clock=Clock())
        guests = [GameController(config=FAST), GameController(config=FAST)]
        host_out = outbox(host)
        await host.create_session("Hana", "", 1, 1)
        lobby_blob = host_out[-1]

        # Both guests join from the same lobby version
        blobs = []
        for guest, name in zip(guests, ("Ann", "Ben")):
            guest.on_broadcast(blobs.append)
            await guest.receive_remote_update(lobby_blob)
            await guest.join(name, "")
        results = [await host.receive_remote_update(blob) for blob in blobs]
        names = [p.name for p in host.session.players]
        await host.close()
        return results, names, len(host_out)

    results, names, broadcasts = asyncio.run(scenario())
    assert all(r.success for r in results)
    assert names == ["Hana", "Ann", "Ben"]
    # Only the merged state is re-broadcast by the host
    assert broadcasts == 2


def test_host_discards_malformed_history():
    async def scenario():
        host = HostController(config=FAST, clock=Clock())
        state = await host.create_session("Hana", "", 1, 1)
        blob = orjson.dumps({
            "id": state.id,
            "host_player_id": state.host_player_id,
            "version": 99,
            "status": "roundEnded",
            "round_history": [1],
        })
        result = await host.receive_remote_update(blob)
        session = host.session
        await host.close()
        return result, session, state

    result, session, before = asyncio.run(scenario())
    assert result.error_code == errors.DECODE_FAILED
    assert session == before


def test_controller_reads_config_from_env(monkeypatch):
    monkeypatch.setenv("QUICKORY_ROUND_DURATION_SECONDS", "45")
    controller = GameController()
    assert controller.config.round_duration_seconds == 45
    assert GameController(config=FAST).config is FAST
