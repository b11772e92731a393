from conftest import play


def test_disconnect_in_progress_starts_grace_period(controller, transport, started):
    controller.handle('disconnect', 'b')
    assert started.black is None
    assert started.status == 'in_progress'
    assert transport.last('w', 'playerDisconnected') == {'color': 'black', 'reconnectTimeoutSeconds': 30}
    assert controller.supervisor.is_pending('ABC1', 'black')


def test_grace_expiry_forfeits_to_remaining_player(controller, transport, started):
    controller.handle('disconnect', 'b')
    controller.scheduler.advance(29)
    assert started.status == 'in_progress'
    controller.scheduler.advance(1)
    assert started.result.to_dict() == {'winner': 'white', 'reason': 'disconnect'}
    assert transport.last('w', 'gameEnded')['result'] == {'winner': 'white', 'reason': 'disconnect'}
    assert not controller.clock.is_running('ABC1')


def test_reconnect_restores_seat_with_snapshot(controller, transport, started):
    play(controller, 'w', 'e2e4')
    controller.handle('chatMessage', 'b', {'msg': 'brb'})
    controller.handle('disconnect', 'b')
    controller.scheduler.advance(10)

    controller.handle('reconnect', 'b2', {'gameCode': 'abc1'})
    joined = transport.last('b2', 'gameJoined')
    assert joined['color'] == 'black'
    assert joined['reconnected'] is True
    state = joined['gameState']
    assert state['fen'] == started.position.fen()
    assert state['blackRemaining'] == 590
    assert state['chat'][0]['message'] == 'brb'
    assert state['status'] == 'in_progress'
    assert transport.last('w', 'playerReconnected') == {'color': 'black'}

    assert started.black == 'b2'
    assert not controller.supervisor.is_pending('ABC1', 'black')
    controller.scheduler.advance(60)
    assert started.status == 'in_progress'

    play(controller, 'b2', 'e7e5')
    assert transport.last('w', 'moveExecuted')['move']['san'] == 'e5'


def test_old_connection_cannot_move_after_disconnect(controller, transport, started):
    controller.handle('disconnect', 'w')
    play(controller, 'w', 'e2e4')
    assert transport.last('w', 'error')['code'] == 'NOT_IN_GAME'


def test_second_reconnect_is_rejected(controller, transport, started):
    controller.handle('disconnect', 'b')
    controller.handle('reconnect', 'b2', {'gameCode': 'ABC1'})
    controller.handle('reconnect', 'b3', {'gameCode': 'ABC1'})
    controller.handle('reconnect', 'b2', {'gameCode': 'ABC1'})
    assert transport.last('b3', 'error')['code'] == 'GAME_NOT_FOUND'
    assert transport.last('b2', 'error')['code'] == 'INVALID_REQUEST'
    assert started.black == 'b2'


def test_reconnect_to_unknown_or_inactive_game(controller, transport):
    controller.handle('reconnect', 'x', {'gameCode': 'nope'})
    controller.handle('joinGame', 'w', {'code': 'lobby'})
    controller.handle('reconnect', 'y', {'gameCode': 'lobby'})
    controller.handle('reconnect', 'z', {})
    assert transport.last('x', 'error')['code'] == 'GAME_NOT_FOUND'
    assert transport.last('y', 'error')['code'] == 'GAME_NOT_FOUND'
    assert transport.last('z', 'error')['code'] == 'INVALID_REQUEST'


def test_reconnect_after_expiry_is_rejected(controller, transport, started):
    controller.handle('disconnect', 'b')
    controller.scheduler.advance(30)
    controller.handle('reconnect', 'b2', {'gameCode': 'ABC1'})
    assert transport.last('b2', 'error')['code'] == 'GAME_NOT_FOUND'


def test_both_players_drop_first_to_leave_reclaims_first(controller, transport, started):
    controller.handle('disconnect', 'w')
    controller.scheduler.advance(5)
    controller.handle('disconnect', 'b')
    assert controller.registry.get('ABC1') is not None

    controller.handle('reconnect', 'w2', {'gameCode': 'ABC1'})
    assert transport.last('w2', 'gameJoined')['color'] == 'white'

    controller.scheduler.advance(30)
    assert started.result.to_dict() == {'winner': 'white', 'reason': 'disconnect'}


def test_nobody_returns_first_expiry_decides(controller, transport, started):
    controller.handle('disconnect', 'w')
    controller.scheduler.advance(5)
    controller.handle('disconnect', 'b')
    controller.scheduler.advance(25)
    # White's window closed first, both seats empty: session is destroyed
    assert controller.registry.get('ABC1') is None
    assert not controller.supervisor.is_pending('ABC1', 'black')
