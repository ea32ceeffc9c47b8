# linkcamp/api/realtime/test_realtime_events.py
import pytest

from linkcamp.core.socket_server import socketio

TEACHER = 'teacher@campus.edu'
STUDENT = 'student@campus.edu'
READER_ALL = 'all@campus.edu'
READER_TEACHER = 'teacherfeed@campus.edu'
READER_ADMIN = 'adminfeed@campus.edu'


@pytest.fixture(autouse=True)
def users(seed_user):
    seed_user(TEACHER, name='Teacher Lee', role='teacher')
    seed_user(STUDENT, name='Student Kim')
    for email in (READER_ALL, READER_TEACHER, READER_ADMIN):
        seed_user(email)


def _events(sio_client, name):
    return [packet['args'][0] for packet in sio_client.get_received() if packet['name'] == name]


def _subscribed(socket_client, email, *feeds):
    sio_client = socket_client(email)
    assert sio_client.is_connected()
    for feed in feeds:
        sio_client.emit('feed:subscribe', feed)
    sio_client.get_received()
    return sio_client


def test_connection_without_credential_is_refused(app):
    sio_client = socketio.test_client(app)
    assert not sio_client.is_connected()


def test_connection_with_bad_token_is_refused(app):
    sio_client = socketio.test_client(app, auth={'token': 'not-a-jwt'})
    assert not sio_client.is_connected()


def test_teacher_announcement_reaches_teacher_and_all_rooms_only(client, auth_headers, socket_client):
    all_feed = _subscribed(socket_client, READER_ALL, 'all')
    teacher_feed = _subscribed(socket_client, READER_TEACHER, 'teacher')
    admin_feed = _subscribed(socket_client, READER_ADMIN, 'admin')

    res = client.post('/teacher/announcement', data={'content': 'midterm room changed'},
                      headers=auth_headers(TEACHER), content_type='multipart/form-data')
    assert res.status_code == 201
    post_id = res.get_json()['postId']

    for sio_client in (all_feed, teacher_feed):
        events = _events(sio_client, 'post:created')
        assert len(events) == 1
        assert events[0]['post']['_id'] == post_id
        assert events[0]['post']['postType'] == 'teacher'
        assert events[0]['post']['user']['name'] == 'Teacher Lee'

    assert _events(admin_feed, 'post:created') == []


def test_socket_in_several_target_rooms_gets_one_copy(client, auth_headers, socket_client):
    both = _subscribed(socket_client, READER_ALL, 'all', 'teacher')

    client.post('/teacher/announcement', data={'content': 'once'},
                headers=auth_headers(TEACHER), content_type='multipart/form-data')
    assert len(_events(both, 'post:created')) == 1


def test_author_private_room_receives_own_post(client, auth_headers, socket_client):
    author_socket = _subscribed(socket_client, STUDENT)

    client.post('/user/post', data={'content': 'mine'}, headers=auth_headers(STUDENT),
                content_type='multipart/form-data')
    assert len(_events(author_socket, 'post:created')) == 1


def test_unsubscribe_stops_delivery(client, auth_headers, socket_client):
    sio_client = _subscribed(socket_client, READER_ALL, 'all')
    sio_client.emit('feed:unsubscribe', 'all')

    client.post('/user/post', data={'content': 'quiet'}, headers=auth_headers(STUDENT),
                content_type='multipart/form-data')
    assert _events(sio_client, 'post:created') == []


def test_unknown_feed_is_ignored(client, auth_headers, socket_client):
    sio_client = _subscribed(socket_client, READER_ALL, 'everything')

    client.post('/user/post', data={'content': 'x'}, headers=auth_headers(STUDENT),
                content_type='multipart/form-data')
    assert _events(sio_client, 'post:created') == []


def test_repost_emits_repost_created_with_root(client, auth_headers, socket_client, seed_post):
    root_id = seed_post(TEACHER, 'root')
    repost_of_root = seed_post(STUDENT, None, repost_of=root_id)
    sio_client = _subscribed(socket_client, READER_ALL, 'all')

    res = client.post('/user/post', data={'repostOf': repost_of_root}, headers=auth_headers(STUDENT),
                      content_type='multipart/form-data')
    events = _events(sio_client, 'repost:created')
    assert len(events) == 1
    assert events[0]['postId'] == root_id
    assert events[0]['repostId'] == res.get_json()['postId']


def test_vote_changed_payload(client, auth_headers, socket_client, seed_post):
    post_id = seed_post(TEACHER, 'vote me', partition='announcements')
    sio_client = _subscribed(socket_client, READER_TEACHER, 'teacher')

    client.post('/votes', json={'postId': post_id, 'voteType': 'upvote', 'originSocketId': 'abc123'},
                headers=auth_headers(STUDENT))
    client.post('/votes', json={'postId': post_id, 'voteType': 'downvote'}, headers=auth_headers(STUDENT))

    events = _events(sio_client, 'vote:changed')
    assert events[0] == {
        'postId': post_id,
        'userEmail': STUDENT,
        'previousVote': None,
        'voteType': 'upvote',
        'originSocketId': 'abc123',
    }
    assert events[1]['previousVote'] == 'upvote'
    assert events[1]['voteType'] == 'downvote'


def test_comment_events_only_reach_item_room(client, auth_headers, socket_client, seed_post):
    post_id = seed_post(TEACHER, 'discuss')
    viewer = _subscribed(socket_client, READER_ALL, 'all')
    viewer.emit('post:join', post_id)
    feed_only = _subscribed(socket_client, READER_ADMIN, 'all')

    res = client.post('/comments', json={'postId': post_id, 'content': 'hello'}, headers=auth_headers(STUDENT))
    comment_id = res.get_json()['commentId']
    client.delete(f'/comments/{comment_id}', headers=auth_headers(STUDENT))

    received = viewer.get_received()
    created = [p['args'][0] for p in received if p['name'] == 'comment:created']
    deleted = [p['args'][0] for p in received if p['name'] == 'comment:deleted']
    assert created[0]['delta'] == 1
    assert created[0]['comment']['content'] == 'hello'
    assert deleted == [{'postId': post_id, 'commentId': comment_id, 'delta': -1}]

    assert [p for p in feed_only.get_received() if p['name'].startswith('comment:')] == []

    viewer.emit('post:leave', post_id)
    client.post('/comments', json={'postId': post_id, 'content': 'again'}, headers=auth_headers(STUDENT))
    assert _events(viewer, 'comment:created') == []


def test_post_deleted_event(client, auth_headers, socket_client, seed_post):
    post_id = seed_post(STUDENT, 'gone')
    sio_client = _subscribed(socket_client, READER_ALL, 'all')

    client.delete(f'/posts/{post_id}', headers=auth_headers(STUDENT))
    assert _events(sio_client, 'post:deleted') == [{'postId': post_id, 'postType': 'general', 'email': STUDENT}]


def test_user_updated_reaches_feed_rooms(client, auth_headers, socket_client):
    sio_client = _subscribed(socket_client, READER_ADMIN, 'admin')

    client.patch('/user/name', json={'name': 'Kim Student'}, headers=auth_headers(STUDENT))
    events = _events(sio_client, 'user:updated')
    assert events == [{'email': STUDENT, 'name': 'Kim Student', 'photo': None, 'userType': 'member'}]


def test_disabled_realtime_publishes_nothing(app, client, auth_headers, socket_client):
    app.services['realtime'].enabled = False
    sio_client = _subscribed(socket_client, READER_ALL, 'all')

    client.post('/user/post', data={'content': 'silent'}, headers=auth_headers(STUDENT),
                content_type='multipart/form-data')
    assert _events(sio_client, 'post:created') == []
