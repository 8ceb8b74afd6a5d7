def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    # Flush any initial events
    try:
        sio_client.get_received('/ws')
    except Exception:
        pass

    # Join a battle room and expect a joined ack
    sio_client.emit('join_battle', {'profile_id': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'joined' and pkt['args'][0]['room'] == 'battle:1' for pkt in received)


def test_join_requires_profile_id(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_battle', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_battle_events_reach_room(flask_app, sio_client, client):
    pid = client.post('/api/profiles', json={'name': 'Alice'}).get_json()['id']
    sio_client.emit('join_battle', {'profile_id': pid}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post('/api/battles/start', json={'profile_id': pid, 'difficulty': 'easy'})
    client.post('/api/battles/begin', json={'profile_id': pid})
    flask_app.extensions['battle_scheduler'].advance(2)

    events = sio_client.get_received('/ws')
    ticks = [e['args'][0]['remaining'] for e in events if e['name'] == 'timer_tick']
    assert ticks == [599, 598]

    client.post('/api/battles/quit', json={'profile_id': pid})
    flask_app.extensions['battle_scheduler'].advance(30)
    events = sio_client.get_received('/ws')
    names = [e['name'] for e in events]
    assert names.count('battle_end') == 1
    # nothing after the end event
    assert names[-1] == 'battle_end'
    end = next(e for e in events if e['name'] == 'battle_end')
    assert end['args'][0]['result'] == 'lose'


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)
