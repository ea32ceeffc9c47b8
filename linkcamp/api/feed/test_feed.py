# linkcamp/api/feed/test_feed.py
from datetime import datetime, timedelta, timezone

import pytest

from linkcamp.utils.datetime_utils import DateTimeUtils

READER = 'reader@campus.edu'
STUDENT = 'student@campus.edu'
TEACHER = 'teacher@campus.edu'
ADMIN = 'admin@campus.edu'

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes):
    return BASE + timedelta(minutes=minutes)


@pytest.fixture(autouse=True)
def users(seed_user):
    seed_user(READER)
    seed_user(STUDENT, name='Student Kim')
    seed_user(TEACHER, name='Teacher Lee', role='teacher')
    seed_user(ADMIN, name='Admin Park', role='admin')


@pytest.fixture
def mixed_feed(seed_post):
    """세 파티션에 걸친 7개 항목 (시간 역순 id 목록을 반환)."""
    ids = {
        seed_post(STUDENT, 'g1', created_at=at(1)): at(1),
        seed_post(TEACHER, 'a1', partition='announcements', created_at=at(2)): at(2),
        seed_post(ADMIN, 'n1', partition='notices', created_at=at(3)): at(3),
        seed_post(TEACHER, 'typed teacher', post_type='teacher', created_at=at(4)): at(4),
        seed_post(STUDENT, 'g2', created_at=at(5)): at(5),
        seed_post(ADMIN, 'typed admin', post_type='admin', created_at=at(6)): at(6),
        seed_post(TEACHER, 'a2', partition='announcements', created_at=at(7)): at(7),
    }
    return [post_id for post_id, _ in sorted(ids.items(), key=lambda kv: kv[1], reverse=True)]


def test_unpaginated_feed_is_a_full_array(client, auth_headers, mixed_feed):
    res = client.get('/posts', headers=auth_headers(READER))
    assert res.status_code == 200
    body = res.get_json()
    assert isinstance(body, list)
    assert [item['_id'] for item in body] == mixed_feed


def test_cursor_pages_cover_every_item_once(client, auth_headers, mixed_feed):
    headers = auth_headers(READER)
    seen, times = [], []
    cursor = None
    for _ in range(10):
        params = {'limit': 3}
        if cursor:
            params['cursor'] = cursor
        body = client.get('/posts', query_string=params, headers=headers).get_json()
        seen += [item['_id'] for item in body['items']]
        times += [DateTimeUtils.parse_iso_datetime(item['createdAt']) for item in body['items']]
        cursor = body['nextCursor']
        if not cursor:
            break

    assert seen == mixed_feed
    assert len(set(seen)) == len(seen)
    assert all(earlier > later for earlier, later in zip(times, times[1:]))


def test_teacher_feed_merges_announcements_and_typed_posts(client, auth_headers, mixed_feed):
    body = client.get('/posts', query_string={'type': 'teacher'}, headers=auth_headers(READER)).get_json()
    contents = [item['content'] for item in body['items']]
    assert contents == ['a2', 'typed teacher', 'a1']
    assert {item['postType'] for item in body['items']} == {'teacher'}
    assert body['nextCursor'] is None


def test_teacher_feed_respects_limit_after_merge(client, auth_headers, mixed_feed):
    body = client.get('/posts', query_string={'type': 'teacher', 'limit': 2},
                      headers=auth_headers(READER)).get_json()
    assert [item['content'] for item in body['items']] == ['a2', 'typed teacher']
    assert body['nextCursor'] is not None

    body = client.get('/posts', query_string={'type': 'teacher', 'limit': 2, 'cursor': body['nextCursor']},
                      headers=auth_headers(READER)).get_json()
    assert [item['content'] for item in body['items']] == ['a1']


def test_general_and_admin_filters(client, auth_headers, mixed_feed):
    headers = auth_headers(READER)
    general = client.get('/posts', query_string={'type': 'general'}, headers=headers).get_json()
    assert [item['content'] for item in general['items']] == ['g2', 'g1']

    notices = client.get('/admin/notices', query_string={'limit': 10}, headers=headers).get_json()
    assert [item['content'] for item in notices['items']] == ['typed admin', 'n1']

    announcements = client.get('/teacher/announcements', headers=headers).get_json()
    assert [item['content'] for item in announcements] == ['a2', 'typed teacher', 'a1']


def test_unknown_type_and_bad_cursor_fall_back(client, auth_headers, mixed_feed):
    body = client.get('/posts', query_string={'type': 'weird', 'cursor': 'nope', 'limit': 50},
                      headers=auth_headers(READER)).get_json()
    assert [item['_id'] for item in body['items']] == mixed_feed


def test_items_carry_author_summary_and_original_post(client, auth_headers, seed_post):
    root_id = seed_post(TEACHER, 'root', partition='announcements', created_at=at(1))
    repost_id = seed_post(STUDENT, None, repost_of=root_id, created_at=at(2))

    body = client.get('/posts', query_string={'limit': 10}, headers=auth_headers(READER)).get_json()
    repost = next(item for item in body['items'] if item['_id'] == repost_id)

    assert repost['email'] == STUDENT
    assert repost['user'] == {'name': 'Student Kim', 'photo': None, 'userType': 'member'}
    assert repost['repostOf'] == root_id
    assert repost['originalPost']['_id'] == root_id
    assert repost['originalPost']['user']['name'] == 'Teacher Lee'
    assert repost['originalPost']['postType'] == 'teacher'


def test_get_single_post(client, auth_headers, seed_post):
    post_id = seed_post(STUDENT, 'single', partition='notices', post_type='admin')
    headers = auth_headers(READER)

    res = client.get(f'/posts/{post_id}', headers=headers)
    assert res.status_code == 200
    assert res.get_json()['content'] == 'single'

    assert client.get('/posts/00000000-0000-0000-0000-000000000000', headers=headers).status_code == 404
    assert client.get('/posts/not*valid', headers=headers).status_code == 400


def test_user_activity_spans_all_partitions(client, auth_headers, seed_post):
    seed_post(TEACHER, 'post', created_at=at(1))
    seed_post(TEACHER, 'announcement', partition='announcements', created_at=at(2))
    seed_post(STUDENT, 'not mine', created_at=at(3))

    body = client.get(f'/user/profile/{TEACHER}', headers=auth_headers(READER)).get_json()
    assert [item['content'] for item in body] == ['announcement', 'post']

    page = client.get(f'/user/profile/{TEACHER}', query_string={'limit': 1},
                      headers=auth_headers(READER)).get_json()
    assert [item['content'] for item in page['items']] == ['announcement']
    assert page['nextCursor'] is not None


def test_repost_counts(client, auth_headers, seed_post):
    root_id = seed_post(STUDENT, 'root')
    seed_post(READER, None, repost_of=root_id)
    seed_post(TEACHER, None, repost_of=root_id)
    seed_post(TEACHER, 'standalone')

    res = client.get(f'/repostCounts?ids={root_id}', headers=auth_headers(READER))
    assert res.get_json() == [{'_id': root_id, 'count': 2}]

    res = client.get('/repostCounts', headers=auth_headers(READER))
    assert res.get_json() == [{'_id': root_id, 'count': 2}]


def test_feed_requires_credential(client):
    res = client.get('/posts')
    assert res.status_code == 401
    assert res.get_json()['code'] == 'UNAUTHORIZED'
