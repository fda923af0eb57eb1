def _payload(pkt):
    # The test client keeps the bare payload for 'message' and 'json' events
    args = pkt['args']
    if not isinstance(args, list):
        return args
    return args[0] if args else None


def _named(received, name):
    return [_payload(pkt) for pkt in received if pkt['name'] == name]


def test_socket_connect_and_list_rooms(sio_client):
    assert sio_client.is_connected()
    sio_client.get_received()

    sio_client.emit('get-available-rooms')
    received = sio_client.get_received()
    assert _named(received, 'availableRooms') == [[]]


def test_create_room_broadcasts_and_rejects_duplicates(make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('createRoom', {'name': 'lobby'})
    assert _named(bob.get_received(), 'availableRooms') == [['lobby']]
    alice.get_received()

    # Bare string payload, as the web client sends it
    alice.emit('createRoom', 'lobby')
    errors = _named(alice.get_received(), 'error')
    assert errors == [{'code': 'AlreadyExists', 'message': "Room 'lobby' already exists", 'event': 'createRoom'}]
    assert bob.get_received() == []


def test_join_room_sends_history_and_state(make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    received = alice.get_received()
    assert _named(received, 'messageHistory') == [[]]
    state = _named(received, 'gameStateUpdated')[-1]
    assert state['status'] == 'waiting_for_players'
    assert [p['name'] for p in state['players']] == ['Alice']

    bob.emit('join-room', {'room': 'lobby', 'username': 'Bob'})
    seen_by_alice = alice.get_received()
    assert _named(seen_by_alice, 'user_joined') == ['Bob joined the room']
    assert _named(seen_by_alice, 'gameStateUpdated')[-1]['status'] == 'in_progress'
    assert _named(seen_by_alice, 'current-turn') == ["It's Alice's turn"]
    assert _named(bob.get_received(), 'user_joined') == []


def test_messages_reach_the_rest_of_the_room_in_order(make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    bob.emit('join-room', {'room': 'lobby', 'playerName': 'Bob'})
    alice.get_received()
    bob.get_received()

    alice.emit('message', {'room': 'lobby', 'message': 'hi', 'sender': 'Alice'})
    alice.emit('message', {'room': 'lobby', 'message': 'ready?', 'sender': 'Alice'})
    assert [m['message'] for m in _named(bob.get_received(), 'message')] == ['hi', 'ready?']
    assert _named(alice.get_received(), 'message') == []

    carol = make_sio_client()
    carol.emit('join-room', {'room': 'lobby', 'playerName': 'Carol'})
    history = _named(carol.get_received(), 'messageHistory')[0]
    assert [(m['sender'], m['message']) for m in history] == [('Alice', 'hi'), ('Alice', 'ready?')]


def test_player_turn_resolves_server_side(make_sio_client, dice):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    bob.emit('join-room', {'room': 'lobby', 'playerName': 'Bob'})
    alice.get_received()
    bob.get_received()

    dice.push('LC.')
    alice.emit('playerTurn', {'room': 'lobby', 'playerName': 'Alice', 'rollResults': ['.', '.', '.']})
    state = _named(bob.get_received(), 'gameStateUpdated')[-1]
    assert state['lastRoll']['dice'] == ['L', 'C', '.']
    assert [p['chips'] for p in state['players']] == [1, 4]
    assert state['pot'] == 1
    assert state['currentPlayerName'] == 'Bob'


def test_out_of_turn_roll_reports_error_to_sender_only(make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    bob.emit('join-room', {'room': 'lobby', 'playerName': 'Bob'})
    alice.get_received()
    bob.get_received()

    bob.emit('playerTurn', {'room': 'lobby', 'playerName': 'Bob'})
    errors = _named(bob.get_received(), 'error')
    assert len(errors) == 1
    assert errors[0]['code'] == 'OutOfTurn'
    assert errors[0]['event'] == 'playerTurn'
    assert alice.get_received() == []


def test_game_over_is_announced(make_sio_client, dice):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    bob.emit('join-room', {'room': 'lobby', 'playerName': 'Bob'})
    bob.get_received()

    dice.push('CCC')
    alice.emit('playerTurn', {'room': 'lobby', 'playerName': 'Alice'})
    over = _named(bob.get_received(), 'gameOver')
    assert over[0]['winnerName'] == 'Bob'
    assert over[0]['pot'] == 3

    alice.get_received()
    bob.emit('playerTurn', {'room': 'lobby', 'playerName': 'Bob'})
    assert _named(bob.get_received(), 'error')[0]['code'] == 'InvalidState'

    alice.emit('restartGame', {'room': 'lobby'})
    state = _named(bob.get_received(), 'gameStateUpdated')[-1]
    assert state['status'] == 'in_progress'
    assert [p['chips'] for p in state['players']] == [3, 3]


def test_leave_and_disconnect_release_seats(flask_app, make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    bob.emit('join-room', {'room': 'lobby', 'playerName': 'Bob'})
    alice.get_received()

    bob.emit('leave-room', {'room': 'lobby', 'playerName': 'Bob'})
    received = alice.get_received()
    assert _named(received, 'user_left') == ['Bob left the room']
    assert _named(received, 'gameStateUpdated')[-1]['status'] == 'waiting_for_players'

    bob.emit('get-users-in-room', {'room': 'lobby'})
    assert _named(bob.get_received(), 'users-in-room')[-1] == ['Alice']

    alice.disconnect()
    controller = flask_app.extensions['flexdice']
    assert controller.members('lobby') == []


def test_remove_room_notifies_members(make_sio_client):
    alice, bob = make_sio_client(), make_sio_client()
    alice.emit('join-room', {'room': 'lobby', 'playerName': 'Alice'})
    alice.get_received()
    bob.get_received()

    bob.emit('removeRoom', {'name': 'lobby'})
    received = alice.get_received()
    assert _named(received, 'roomRemoved') == [{'room': 'lobby'}]
    assert _named(received, 'availableRooms') == [[]]

    bob.emit('removeRoom', 'lobby')
    assert _named(bob.get_received(), 'error')[0]['code'] == 'NotFound'


def test_join_without_room_is_rejected(sio_client):
    sio_client.get_received()
    sio_client.emit('join-room', {'playerName': 'Alice'})
    errors = _named(sio_client.get_received(), 'error')
    assert errors[0]['code'] == 'InvalidRequest'
