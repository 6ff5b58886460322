from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from vidshare.api.v1.deps import get_app_token_manager, get_tiktok_client
from vidshare.core.errors import NoActiveCredentialError, RefreshFailedError, TikTokAPIError
from vidshare.db.init_db import init_db
from vidshare.db.session import engine
from vidshare.main import app
from vidshare.models.enums import UserRole
from vidshare.services.app_token_manager import AppTokenManager
from vidshare.services.auth_service import create_user
from vidshare.services.video_service import sync_tiktok_videos


def _remote_videos(count: int) -> list[dict]:
    return [
        {
            'id': f"remote-{index}",
            'title': f"remote clip {index}",
            'share_url': f"https://www.tiktok.com/@app/video/{index}",
            'create_time': 1717243200 - index * 60,
            'like_count': index,
        }
        for index in range(count)
    ]


def _login(client: TestClient, email: str, password: str = 'secret123') -> dict:
    response = client.post('/api/v1/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.json()['access_token']}"}


def _register(client: TestClient) -> tuple[str, dict]:
    email = f"{uuid4()}@example.com"
    assert client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'}).status_code == 201
    return email, _login(client, email)


def _admin_headers(client: TestClient) -> dict:
    email = f"admin-{uuid4()}@example.com"
    with Session(engine) as session:
        create_user(session, email, 'secret123', role=UserRole.ADMIN)
    return _login(client, email)


@pytest.fixture
def client(fake_tiktok, clock):
    init_db(drop_all=True)
    app.dependency_overrides[get_tiktok_client] = lambda: fake_tiktok
    app.dependency_overrides[get_app_token_manager] = lambda: AppTokenManager(client=fake_tiktok, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def _configure_app_token(client: TestClient, expires_in: int = 3600) -> None:
    response = client.post(
        '/api/v1/videos/tiktok/admin/credentials',
        json={'access_token': 'A', 'refresh_token': 'R', 'open_id': 'app-open-id', 'expires_in': expires_in},
        headers=_admin_headers(client),
    )
    assert response.status_code == 201


def test_guest_can_view_public_video_and_count_views(client):
    _, headers = _register(client)
    created = client.post(
        '/api/v1/videos',
        json={'title': 'hello', 'video_url': '/uploads/hello.mp4', 'tags': 'funny, music'},
        headers=headers,
    )
    assert created.status_code == 201
    video_id = created.json()['id']
    assert created.json()['tags'] == ['funny', 'music']

    guest = client.get(f"/api/v1/videos/{video_id}")
    assert guest.status_code == 200
    assert guest.json()['user']['id'] == created.json()['user_id']

    broken_token = client.get(f"/api/v1/videos/{video_id}", headers={'Authorization': 'Bearer not-a-jwt'})
    assert broken_token.status_code == 200

    views = client.post(f"/api/v1/videos/{video_id}/views")
    assert views.status_code == 200
    assert views.json()['message'] == 'Views incremented successfully'
    assert views.json()['video']['views'] == 1


def test_private_video_is_hidden_from_guests(client):
    _, owner = _register(client)
    created = client.post(
        '/api/v1/videos',
        json={'title': 'secret', 'video_url': '/uploads/secret.mp4', 'visibility': 'private'},
        headers=owner,
    )
    video_id = created.json()['id']

    assert client.get(f"/api/v1/videos/{video_id}").status_code == 404
    _, other = _register(client)
    assert client.get(f"/api/v1/videos/{video_id}", headers=other).status_code == 404
    assert client.get(f"/api/v1/videos/{video_id}", headers=owner).status_code == 200


def test_upload_requires_login(client):
    response = client.post('/api/v1/videos', json={'title': 'x', 'video_url': '/uploads/x.mp4'})
    assert response.status_code in (401, 403)


def test_guest_fetch_without_app_token_is_unavailable(client, fake_tiktok):
    response = client.post('/api/v1/videos/tiktok/guest/fetch', json={})
    assert response.status_code == 503
    assert response.json()['detail'] == str(NoActiveCredentialError())
    assert fake_tiktok.list_calls == []


def test_guest_fetch_uses_app_token(client, fake_tiktok):
    _configure_app_token(client)
    fake_tiktok.videos = _remote_videos(3)

    response = client.post('/api/v1/videos/tiktok/guest/fetch', json={'maxCount': 2})
    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['source'] == 'app_tiktok'
    assert len(body['data']['videos']) == 2
    assert fake_tiktok.list_calls == ['A']


def test_guest_fetch_refreshes_expired_app_token(client, fake_tiktok, clock):
    _configure_app_token(client, expires_in=60)
    clock.advance(61)

    response = client.post('/api/v1/videos/tiktok/guest/fetch')
    assert response.status_code == 200
    assert fake_tiktok.refresh_calls == ['R']
    assert fake_tiktok.list_calls == ['A2']


def test_guest_fetch_reports_upstream_failures(client, fake_tiktok, clock):
    _configure_app_token(client, expires_in=60)
    fake_tiktok.list_error = TikTokAPIError('API rate limit exceeded')
    response = client.post('/api/v1/videos/tiktok/guest/fetch')
    assert response.status_code == 502
    assert response.json()['detail']['reason'] == 'API rate limit exceeded'

    clock.advance(61)
    fake_tiktok.refresh_error = RefreshFailedError('Refresh token is invalid or expired.')
    response = client.post('/api/v1/videos/tiktok/guest/fetch')
    assert response.status_code == 502
    assert response.json()['detail']['reason'] == 'Refresh token is invalid or expired.'


def test_guest_sync_saves_or_skips(client, fake_tiktok):
    _configure_app_token(client)
    fake_tiktok.videos = _remote_videos(2)

    skipped = client.post('/api/v1/videos/tiktok/guest/sync', json={'saveToDb': False})
    assert skipped.status_code == 200
    assert skipped.json()['message'] == 'Videos fetched successfully (not saved)'
    assert skipped.json()['data']['saved_videos'] == 0

    saved = client.post('/api/v1/videos/tiktok/guest/sync', json={})
    assert saved.json()['message'] == 'Synced 2 videos to database'
    assert saved.json()['data']['saved_videos'] == 2

    again = client.post('/api/v1/videos/tiktok/guest/sync')
    assert again.json()['data']['saved_videos'] == 0


def test_guest_listing_paginates_stored_videos(client):
    with Session(engine) as session:
        sync_tiktok_videos(session, _remote_videos(50))

    response = client.get('/api/v1/videos/tiktok/guest/all', params={'page': 3, 'limit': 10})
    assert response.status_code == 200
    data = response.json()['data']
    assert data['pagination'] == {'page': 3, 'limit': 10, 'total': 50, 'pages': 5}
    assert len(data['videos']) == 10

    capped = client.get('/api/v1/videos/tiktok/guest/all', params={'limit': 500})
    assert capped.json()['data']['pagination']['limit'] == 100


def test_guest_trending_accepts_timeframe(client):
    response = client.get('/api/v1/videos/tiktok/guest/trending', params={'timeframe': 'month', 'limit': 5})
    assert response.status_code == 200
    assert response.json()['data'] == {'videos': [], 'timeframe': 'month', 'total': 0}
    assert client.get('/api/v1/videos/tiktok/guest/trending', params={'timeframe': 'year'}).status_code == 422


def test_admin_status_is_public(client):
    empty = client.get('/api/v1/videos/tiktok/admin/status')
    assert empty.status_code == 200
    assert empty.json()['configured'] is False
    assert empty.json()['has_active_token'] is False

    _configure_app_token(client)
    status = client.get('/api/v1/videos/tiktok/admin/status').json()
    assert status['has_active_token'] is True
    assert status['is_expired'] is False
    assert status['minutes_until_expiry'] == 60
    assert status['open_id'] == 'app-open-id'
    assert 'access_token' not in status


def test_admin_endpoints_require_admin(client):
    _, headers = _register(client)
    payload = {'access_token': 'A', 'refresh_token': 'R', 'open_id': 'O'}
    assert client.post('/api/v1/videos/tiktok/admin/credentials', json=payload, headers=headers).status_code == 403
    assert client.post('/api/v1/videos/tiktok/admin/refresh', headers=headers).status_code == 403
    response = client.post('/api/v1/videos/tiktok/admin/credentials', json=payload)
    assert response.status_code in (401, 403)


def test_admin_credentials_validation_and_refresh(client, fake_tiktok):
    headers = _admin_headers(client)
    blank = client.post(
        '/api/v1/videos/tiktok/admin/credentials',
        json={'access_token': ' ', 'refresh_token': 'R', 'open_id': 'O'},
        headers=headers,
    )
    assert blank.status_code == 400

    assert client.post('/api/v1/videos/tiktok/admin/refresh', headers=headers).status_code == 503

    _configure_app_token(client)
    refreshed = client.post('/api/v1/videos/tiktok/admin/refresh', headers=headers)
    assert refreshed.status_code == 200
    assert refreshed.json()['expires_in'] == 7200
    assert refreshed.json()['refresh_token_rotated'] is False
    assert fake_tiktok.refresh_calls == ['R']


def test_oauth_callback_rejects_state_mismatch(client):
    client.cookies.set('csrf_state', 'expected')
    response = client.get('/api/v1/tiktok/auth/callback', params={'code': 'c', 'state': 'forged'})
    assert response.status_code == 400
    assert response.json()['detail'] == 'Invalid state or missing code'


def test_oauth_callback_links_account_and_user_fetch(client, fake_tiktok):
    _, headers = _register(client)
    assert client.post('/api/v1/videos/tiktok/fetch', headers=headers).status_code == 503

    client.cookies.set('csrf_state', 'expected')
    callback = client.get(
        '/api/v1/tiktok/auth/callback',
        params={'code': 'c', 'state': 'expected'},
        headers=headers,
    )
    assert callback.status_code == 200
    assert callback.json() == {
        'open_id': 'user-open-id',
        'scope': 'user.info.basic,video.list',
        'expires_in': 86400,
        'linked': True,
    }

    fake_tiktok.videos = _remote_videos(1)
    response = client.post('/api/v1/videos/tiktok/fetch', headers=headers)
    assert response.status_code == 200
    assert response.json()['source'] == 'user_tiktok'
    assert fake_tiktok.list_calls == ['user-access']


def test_oauth_authorize_redirects_with_state_cookie(client):
    response = client.get('/api/v1/tiktok/auth', follow_redirects=False)
    assert response.status_code == 307
    assert response.headers['location'].startswith('https://www.tiktok.com/v2/auth/authorize/')
    assert 'csrf_state' in response.headers['set-cookie']
