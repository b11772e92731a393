from conftest import play


def test_clock_starts_when_game_starts(controller, started):
    assert started.status == 'in_progress'
    assert controller.clock.is_running('ABC1')


def test_ticks_only_decrement_side_on_move(controller, transport, started):
    controller.scheduler.advance(5)
    assert (started.white_remaining, started.black_remaining) == (595, 600)

    play(controller, 'w', 'e2e4')
    controller.scheduler.advance(3)
    assert (started.white_remaining, started.black_remaining) == (595, 597)

    ticks = transport.events('w', 'timerTick')
    assert len(ticks) == 8
    assert ticks[-1][1] == {'whiteRemaining': 595, 'blackRemaining': 597, 'turn': 'black'}


def test_total_time_drops_by_one_per_tick(controller, started):
    total = started.white_remaining + started.black_remaining
    for n, uci in enumerate(['e2e4', 'e7e5', 'g1f3', 'b8c6'], start=1):
        controller.scheduler.advance(2)
        play(controller, 'w' if n % 2 else 'b', uci)
    assert started.white_remaining + started.black_remaining == total - 8
    assert (started.white_remaining, started.black_remaining) == (596, 596)


def test_move_does_not_touch_clock_until_next_tick(controller, started):
    play(controller, 'w', 'e2e4')
    assert (started.white_remaining, started.black_remaining) == (600, 600)


def test_timeout_ends_game_for_opponent(make_controller, transport):
    controller = make_controller(INITIAL_CLOCK_SECONDS=3)
    controller.handle('joinGame', 'w', {'code': 'T1'})
    controller.handle('joinGame', 'b', {'code': 'T1'})
    controller.scheduler.advance(3)

    session = controller.registry.get('T1')
    assert session.status == 'finished'
    assert session.white_remaining == 0
    assert session.result.to_dict() == {'winner': 'black', 'reason': 'timeout'}
    assert not controller.clock.is_running('T1')

    ended = transport.last('b', 'gameEnded')
    assert ended['result'] == {'winner': 'black', 'reason': 'timeout'}
    # Two ticks broadcast before the one that ran out
    assert len(transport.events('b', 'timerTick')) == 2

    play(controller, 'w', 'e2e4')
    assert transport.last('w', 'moveRejected')['reason'] == 'game_not_active'


def test_start_supersedes_previous_timer(controller, started):
    controller.clock.start('ABC1', 1000)
    controller.clock.start('ABC1', 1000)
    controller.scheduler.advance(1)
    assert started.white_remaining == 599


def test_stop_is_idempotent(controller, started):
    controller.clock.stop('ABC1')
    controller.clock.stop('ABC1')
    controller.scheduler.advance(10)
    assert started.white_remaining == 600
    assert not controller.clock.is_running('ABC1')


def test_tick_stops_silently_once_game_is_over(controller, transport, started):
    started.finish('draw', 'draw')
    controller.scheduler.advance(5)
    assert transport.events('w', 'timerTick') == []
    assert started.white_remaining == 600
    assert not controller.clock.is_running('ABC1')
