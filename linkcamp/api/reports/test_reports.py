# linkcamp/api/reports/test_reports.py
from datetime import datetime, timedelta, timezone

import pytest

AUTHOR = 'author@campus.edu'
REPORTER = 'reporter@campus.edu'
SECOND = 'second@campus.edu'
ADMIN = 'admin@campus.edu'


@pytest.fixture(autouse=True)
def users(seed_user):
    seed_user(AUTHOR, name='Author Jung')
    seed_user(REPORTER)
    seed_user(SECOND)
    seed_user(ADMIN, role='admin')


def _report(client, headers, post_id, reason=None):
    payload = {'postId': post_id}
    if reason is not None:
        payload['reason'] = reason
    return client.post('/reports', json=payload, headers=headers)


def test_duplicate_report_is_rejected_and_counted_once(client, auth_headers, seed_post, fake_db):
    post_id = seed_post(AUTHOR)
    headers = auth_headers(REPORTER)

    assert _report(client, headers, post_id, 'spam').status_code == 201

    res = _report(client, headers, post_id, 'spam again')
    assert res.status_code == 400
    assert 'already reported' in res.get_json()['message']

    assert fake_db.docs('posts')[post_id]['report_count'] == 1
    assert len(fake_db.docs('reports')) == 1


def test_default_reason(client, auth_headers, seed_post, fake_db):
    post_id = seed_post(AUTHOR)
    _report(client, auth_headers(REPORTER), post_id)
    report = next(iter(fake_db.docs('reports').values()))
    assert report['reason'] == 'No reason provided'
    assert report['reported_by'] == REPORTER


def test_report_missing_post_is_404(client, auth_headers):
    res = _report(client, auth_headers(REPORTER), '00000000-0000-0000-0000-000000000000')
    assert res.status_code == 404


def test_reported_posts_queue_orders_by_latest_report(client, auth_headers, seed_post, fake_db):
    older = seed_post(AUTHOR, 'older')
    newer = seed_post(AUTHOR, 'newer', partition='announcements', post_type='teacher')
    _report(client, auth_headers(REPORTER), older)
    _report(client, auth_headers(SECOND), older)
    _report(client, auth_headers(REPORTER), newer)

    # 신고 시각을 고정하여 정렬 기준을 명확히 합니다.
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    for doc_id, report in fake_db.docs('reports').items():
        offset = 10 if report['post_id'] == newer else (1 if report['reported_by'] == REPORTER else 2)
        report['reported_at'] = base + timedelta(minutes=offset)

    res = client.get('/admin/reported-posts', headers=auth_headers(ADMIN))
    assert res.status_code == 200
    body = res.get_json()
    assert body['total'] == 2
    assert [item['_id'] for item in body['items']] == [newer, older]
    assert body['items'][1]['reportCount'] == 2
    assert body['items'][1]['user'] == {'name': 'Author Jung', 'photo': None, 'userType': 'member'}

    page = client.get('/admin/reported-posts', query_string={'page': 2, 'limit': 1},
                      headers=auth_headers(ADMIN)).get_json()
    assert page['total'] == 2
    assert [item['_id'] for item in page['items']] == [older]

    filtered = client.get('/admin/reported-posts', query_string={'postId': newer},
                          headers=auth_headers(ADMIN)).get_json()
    assert filtered['total'] == 1


def test_queue_requires_admin(client, auth_headers):
    res = client.get('/admin/reported-posts', headers=auth_headers(REPORTER))
    assert res.status_code == 403


def test_dismiss_resets_report_count(client, auth_headers, seed_post, fake_db):
    post_id = seed_post(AUTHOR)
    _report(client, auth_headers(REPORTER), post_id)
    _report(client, auth_headers(SECOND), post_id)
    assert fake_db.docs('posts')[post_id]['report_count'] == 2

    res = client.delete(f'/admin/reported-posts/{post_id}/dismiss', headers=auth_headers(ADMIN))
    assert res.status_code == 200
    assert fake_db.docs('reports') == {}
    assert fake_db.docs('posts')[post_id]['report_count'] == 0

    # 기각 후에는 다시 신고할 수 있습니다.
    assert _report(client, auth_headers(REPORTER), post_id).status_code == 201


def test_purge_deletes_post_and_reports(client, auth_headers, seed_post, fake_db):
    post_id = seed_post(AUTHOR)
    _report(client, auth_headers(REPORTER), post_id)

    res = client.delete(f'/admin/reported-posts/{post_id}', headers=auth_headers(ADMIN))
    assert res.status_code == 200
    assert post_id not in fake_db.docs('posts')
    assert fake_db.docs('reports') == {}

    res = client.delete(f'/admin/reported-posts/{post_id}', headers=auth_headers(ADMIN))
    assert res.status_code == 404


def test_comment_reports_queue_dismiss_and_purge(client, auth_headers, seed_post, fake_db):
    post_id = seed_post(AUTHOR, 'parent')
    comment = client.post('/comments', json={'postId': post_id, 'content': 'rude'}, headers=auth_headers(AUTHOR))
    comment_id = comment.get_json()['commentId']

    res = client.post('/comment-reports', json={'commentId': comment_id, 'reason': 'rude'},
                      headers=auth_headers(REPORTER))
    assert res.status_code == 201
    res = client.post('/comment-reports', json={'commentId': comment_id}, headers=auth_headers(REPORTER))
    assert res.status_code == 400

    body = client.get('/admin/reported-comments', headers=auth_headers(ADMIN)).get_json()
    assert body['total'] == 1
    item = body['items'][0]
    assert item['_id'] == comment_id
    assert item['reportCount'] == 1
    assert item['post']['_id'] == post_id
    assert item['user']['name'] == 'Author Jung'

    res = client.delete(f'/admin/reported-comments/{comment_id}/dismiss', headers=auth_headers(ADMIN))
    assert res.status_code == 200
    assert fake_db.docs('comment_reports') == {}
    assert comment_id in fake_db.docs('comments')

    client.post('/comment-reports', json={'commentId': comment_id}, headers=auth_headers(SECOND))
    res = client.delete(f'/admin/reported-comments/{comment_id}', headers=auth_headers(ADMIN))
    assert res.status_code == 200
    assert fake_db.docs('comments') == {}
    assert fake_db.docs('comment_reports') == {}


def test_report_missing_comment_is_404(client, auth_headers):
    res = client.post('/comment-reports', json={'commentId': '00000000-0000-0000-0000-000000000000'},
                      headers=auth_headers(REPORTER))
    assert res.status_code == 404
