from datetime import datetime

from fastapi.testclient import TestClient

from app.auth import Role
from app.models import HelpRequest
from app.main import app

client = TestClient(app)


def _help_request(id=None, **overrides):
    fields = dict(
        requester_email='cgaucho@ucsb.edu',
        team_id='s22-5pm-3',
        table_or_breakout_room='7',
        request_time=datetime(2022, 4, 20, 17, 35),
        explanation='Need help with Swagger-ui',
        solved=False,
    )
    fields.update(overrides)
    return HelpRequest(id=id, **fields)


def _as_json(hr):
    return {
        'id': hr.id,
        'requesterEmail': hr.requester_email,
        'teamId': hr.team_id,
        'tableOrBreakoutRoom': hr.table_or_breakout_room,
        'requestTime': hr.request_time.isoformat(),
        'explanation': hr.explanation,
        'solved': hr.solved,
    }


POST_PARAMS = {
    'requesterEmail': 'cgaucho@ucsb.edu',
    'teamId': 's22-5pm-3',
    'tableOrBreakoutRoom': '7',
    'explanation': 'Need help with Swagger-ui',
    'solved': 'false',
    'requestTime': '2022-04-20T17:35',
}


# GET /api/helprequests/all

def test_logged_out_users_cannot_get_all(help_request_repo):
    r = client.get('/api/helprequests/all')
    assert r.status_code == 403
    assert r.content == b''
    help_request_repo.find_all.assert_not_called()


def test_logged_in_user_can_get_all_helprequests(help_request_repo, with_roles):
    with_roles(Role.USER)
    first = _help_request(id=1)
    second = _help_request(
        id=2,
        requester_email='ldelplaya@ucsb.edu',
        team_id='s22-6pm-3',
        table_or_breakout_room='11',
        request_time=datetime(2022, 4, 20, 18, 31),
        explanation='Dokku problems',
    )
    help_request_repo.find_all.return_value = [first, second]
    r = client.get('/api/helprequests/all')
    assert r.status_code == 200
    assert r.json() == [_as_json(first), _as_json(second)]
    help_request_repo.find_all.assert_called_once_with()


def test_get_all_with_empty_store_returns_empty_list(help_request_repo, with_roles):
    with_roles(Role.USER)
    help_request_repo.find_all.return_value = []
    r = client.get('/api/helprequests/all')
    assert r.status_code == 200
    assert r.json() == []


# POST /api/helprequests/post

def test_logged_out_users_cannot_post(help_request_repo):
    r = client.post('/api/helprequests/post')
    assert r.status_code == 403
    help_request_repo.save.assert_not_called()


def test_logged_in_regular_users_cannot_post(help_request_repo, with_roles):
    with_roles(Role.USER)
    r = client.post('/api/helprequests/post', params=POST_PARAMS)
    assert r.status_code == 403
    help_request_repo.save.assert_not_called()


def test_an_admin_user_can_post_a_new_helprequest(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    help_request_repo.save.side_effect = lambda entity: entity
    r = client.post('/api/helprequests/post', params=POST_PARAMS)
    assert r.status_code == 200
    assert r.json() == _as_json(_help_request())
    assert r.json()['requestTime'] == '2022-04-20T17:35:00'

    help_request_repo.save.assert_called_once()
    saved = help_request_repo.save.call_args.args[0]
    assert saved.requester_email == 'cgaucho@ucsb.edu'
    assert saved.team_id == 's22-5pm-3'
    assert saved.table_or_breakout_room == '7'
    assert saved.explanation == 'Need help with Swagger-ui'
    assert saved.solved is False
    assert saved.request_time == datetime(2022, 4, 20, 17, 35)


def test_post_returns_the_stored_value_with_assigned_id(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    stored = _help_request(id=17, explanation='Merge conflict', solved=True)
    help_request_repo.save.return_value = stored
    params = dict(POST_PARAMS, explanation='Merge conflict', solved='true')
    r = client.post('/api/helprequests/post', params=params)
    assert r.status_code == 200
    assert r.json() == _as_json(stored)


def test_post_accepts_an_empty_table_or_breakout_room(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    help_request_repo.save.side_effect = lambda entity: entity
    r = client.post('/api/helprequests/post', params=dict(POST_PARAMS, tableOrBreakoutRoom=''))
    assert r.status_code == 200
    assert r.json()['tableOrBreakoutRoom'] == ''
    assert help_request_repo.save.call_args.args[0].table_or_breakout_room == ''


def test_post_rejects_unparseable_boolean(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    r = client.post('/api/helprequests/post', params=dict(POST_PARAMS, solved='maybe'))
    assert r.status_code == 400
    assert 'solved' in r.json()['detail']
    help_request_repo.save.assert_not_called()


def test_post_rejects_unparseable_request_time(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    r = client.post('/api/helprequests/post', params=dict(POST_PARAMS, requestTime='last tuesday'))
    assert r.status_code == 400
    help_request_repo.save.assert_not_called()


def test_post_requires_every_parameter(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    params = dict(POST_PARAMS)
    del params['teamId']
    r = client.post('/api/helprequests/post', params=params)
    assert r.status_code == 400
    assert 'teamId' in r.json()['detail']
    help_request_repo.save.assert_not_called()


# GET /api/helprequests?id=

def test_logged_out_users_cannot_get_by_id(help_request_repo):
    r = client.get('/api/helprequests', params={'id': 123})
    assert r.status_code == 403
    help_request_repo.find_by_id.assert_not_called()


def test_logged_in_user_can_get_by_id_when_the_id_exists(help_request_repo, with_roles):
    with_roles(Role.USER)
    hr = _help_request(id=123, request_time=datetime(2022, 1, 3), solved=True)
    help_request_repo.find_by_id.return_value = hr
    r = client.get('/api/helprequests', params={'id': 123})
    assert r.status_code == 200
    assert r.json() == _as_json(hr)
    help_request_repo.find_by_id.assert_called_once_with(123)


def test_logged_in_user_can_get_by_id_when_the_id_does_not_exist(help_request_repo, with_roles):
    with_roles(Role.USER)
    help_request_repo.find_by_id.return_value = None
    r = client.get('/api/helprequests', params={'id': 123})
    assert r.status_code == 404
    assert r.json() == {'type': 'EntityNotFoundException', 'message': 'HelpRequest with id 123 not found'}


def test_get_by_id_rejects_non_numeric_id(help_request_repo, with_roles):
    with_roles(Role.USER)
    r = client.get('/api/helprequests', params={'id': 'abc'})
    assert 400 <= r.status_code < 500
    help_request_repo.find_by_id.assert_not_called()


# PUT /api/helprequests?id=

EDITED_BODY = {
    'id': 999,
    'requesterEmail': 'ldelplaya@ucsb.edu',
    'teamId': 's22-6pm-3',
    'tableOrBreakoutRoom': '11',
    'requestTime': '2023-01-03T00:00:00',
    'explanation': 'Dokku problems',
    'solved': True,
}


def test_logged_out_users_cannot_edit(help_request_repo):
    r = client.put('/api/helprequests', params={'id': 123}, json=EDITED_BODY)
    assert r.status_code == 403
    assert r.content == b''
    help_request_repo.find_by_id.assert_not_called()
    help_request_repo.save.assert_not_called()


def test_logged_out_edit_with_malformed_json_never_reaches_the_store(help_request_repo):
    r = client.put('/api/helprequests', params={'id': 123}, content=b'{not json',
                   headers={'Content-Type': 'application/json'})
    assert r.status_code == 422
    help_request_repo.find_by_id.assert_not_called()
    help_request_repo.save.assert_not_called()


def test_regular_users_cannot_edit(help_request_repo, with_roles):
    with_roles(Role.USER)
    r = client.put('/api/helprequests', params={'id': 123}, json=EDITED_BODY)
    assert r.status_code == 403
    help_request_repo.find_by_id.assert_not_called()
    help_request_repo.save.assert_not_called()


def test_admin_can_edit_an_existing_helprequest(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    original = _help_request(id=123, request_time=datetime(2022, 1, 3))
    help_request_repo.find_by_id.return_value = original
    help_request_repo.save.side_effect = lambda entity: entity

    r = client.put('/api/helprequests', params={'id': 123}, json=EDITED_BODY)
    assert r.status_code == 200
    # the path id locates the record; the body's id is not copied
    assert r.json() == dict(EDITED_BODY, id=123)

    help_request_repo.find_by_id.assert_called_once_with(123)
    help_request_repo.save.assert_called_once_with(original)
    assert original.requester_email == 'ldelplaya@ucsb.edu'
    assert original.team_id == 's22-6pm-3'
    assert original.table_or_breakout_room == '11'
    assert original.request_time == datetime(2023, 1, 3)
    assert original.explanation == 'Dokku problems'
    assert original.solved is True


def test_admin_cannot_edit_helprequest_that_does_not_exist(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    help_request_repo.find_by_id.return_value = None
    r = client.put('/api/helprequests', params={'id': 123}, json=EDITED_BODY)
    assert r.status_code == 404
    assert r.json()['message'] == 'HelpRequest with id 123 not found'
    help_request_repo.save.assert_not_called()


# DELETE /api/helprequests?id=

def test_admin_can_delete_a_helprequest(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    hr = _help_request(id=15)
    help_request_repo.find_by_id.return_value = hr
    r = client.delete('/api/helprequests', params={'id': 15})
    assert r.status_code == 200
    assert r.json() == {'message': 'HelpRequest with id 15 deleted'}
    help_request_repo.delete.assert_called_once_with(hr)


def test_admin_tries_to_delete_non_existent_helprequest(help_request_repo, with_roles):
    with_roles(Role.ADMIN, Role.USER)
    help_request_repo.find_by_id.return_value = None
    r = client.delete('/api/helprequests', params={'id': 15})
    assert r.status_code == 404
    assert r.json()['message'] == 'HelpRequest with id 15 not found'
    help_request_repo.delete.assert_not_called()


def test_regular_users_cannot_delete(help_request_repo, with_roles):
    with_roles(Role.USER)
    r = client.delete('/api/helprequests', params={'id': 15})
    assert r.status_code == 403
    help_request_repo.delete.assert_not_called()
