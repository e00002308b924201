"""
HTTP client for the Pet Marketplace REST API.

Wraps a ``requests.Session``: attaches the bearer token, fetches and echoes
the double-submit CSRF token on state-changing requests, and unwraps the
``{success, data, ...}`` envelope. Any ``success: false`` answer raises
``APIError``.

Degraded mode: when ``degraded_mode=True``, a network failure or 5xx answer
on a public read endpoint returns bundled sample data instead of raising.
Such payloads carry ``degraded: True``. Writes always raise.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests import Session

from . import mock_data

logger = logging.getLogger(__name__)

UNSAFE_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')
CSRF_HEADER = 'X-CSRF-Token'
CSRF_RETRY_CODES = ('CSRF_TOKEN_EXPIRED', 'CSRF_TOKEN_INVALID', 'CSRF_TOKEN_MISMATCH', 'CSRF_COOKIE_MISSING')


class APIError(Exception):
    """An error answer from the API, or a transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, errors: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.errors = errors or {}


class MarketplaceAPI:
    """Client for the marketplace API.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api``
        token: Optional access token
        timeout: Per-request timeout in seconds
        degraded_mode: Serve sample data for public reads when the API is down

    Every method returns the response envelope as a dict (``data`` plus
    ``pagination`` / ``message`` where present) with a ``degraded`` flag.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 degraded_mode: bool = False):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.degraded_mode = degraded_mode
        self.session: Session = requests.Session()
        self.token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self._csrf_token: Optional[str] = None
        if token:
            self.set_token(token)

    # --- helpers ---
    def set_token(self, token: Optional[str]) -> None:
        self.token = token
        if token:
            self.session.headers.update({'Authorization': f'Bearer {token}'})
        else:
            self.session.headers.pop('Authorization', None)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def fetch_csrf_token(self) -> str:
        """Get a fresh CSRF token; the session keeps the matching cookie."""
        resp = self.session.get(self._url('/auth/csrf/'), timeout=self.timeout)
        body = self._unwrap(resp)
        self._csrf_token = body['data']['csrfToken']
        return self._csrf_token

    def _unwrap(self, resp: requests.Response) -> Dict[str, Any]:
        try:
            body = resp.json()
        except ValueError:
            raise APIError(f'Unexpected response ({resp.status_code})', status_code=resp.status_code)

        if not isinstance(body, dict) or not body.get('success', False):
            body = body if isinstance(body, dict) else {}
            raise APIError(
                body.get('message') or f'Request failed ({resp.status_code})',
                status_code=resp.status_code,
                code=body.get('code'),
                errors=body.get('errors'),
            )

        body.setdefault('data', None)
        body['degraded'] = False
        return body

    def _send(self, method: str, path: str, params=None, json_payload=None, files=None, data=None):
        headers = {}
        if method in UNSAFE_METHODS:
            headers[CSRF_HEADER] = self._csrf_token or self.fetch_csrf_token()

        return self.session.request(
            method,
            self._url(path),
            params=params,
            json=json_payload,
            files=files,
            data=data,
            headers=headers,
            timeout=self.timeout,
        )

    def _request(self, method: str, path: str, params=None, json_payload=None, files=None,
                 data=None, fallback=None) -> Dict[str, Any]:
        """
        Send a request and unwrap the envelope.

        Args:
            fallback: Callable producing a mock envelope; only given for
                public read endpoints and only used in degraded mode
        """
        try:
            resp = self._send(method, path, params, json_payload, files, data)

            if resp.status_code == 403 and method in UNSAFE_METHODS:
                code = self._error_code(resp)
                if code in CSRF_RETRY_CODES:
                    logger.info(f"Retrying {method} {path} with a fresh CSRF token ({code})")
                    self._csrf_token = None
                    resp = self._send(method, path, params, json_payload, files, data)

            if resp.status_code >= 500 and self._can_degrade(method, fallback):
                logger.warning(f"{method} {path} failed with {resp.status_code}; serving sample data")
                return self._degraded(fallback)

            return self._unwrap(resp)

        except requests.RequestException as exc:
            if self._can_degrade(method, fallback):
                logger.warning(f"{method} {path} unreachable ({exc}); serving sample data")
                return self._degraded(fallback)
            raise APIError(f'Network error: {exc}') from exc

    @staticmethod
    def _error_code(resp: requests.Response) -> Optional[str]:
        try:
            return resp.json().get('code')
        except (ValueError, AttributeError):
            return None

    def _can_degrade(self, method: str, fallback) -> bool:
        return self.degraded_mode and method == 'GET' and fallback is not None

    @staticmethod
    def _degraded(fallback) -> Dict[str, Any]:
        body = fallback()
        body.setdefault('success', True)
        body['degraded'] = True
        return body

    # --- auth ---
    def register(self, email: str, password: str, display_name: str, country: str = '', city: str = ''):
        body = self._request('POST', '/auth/register/', json_payload={
            'email': email,
            'password': password,
            'displayName': display_name,
            'country': country,
            'city': city,
        })
        self._store_tokens(body['data'])
        return body

    def login(self, email: str, password: str):
        body = self._request('POST', '/auth/login/', json_payload={'email': email, 'password': password})
        self._store_tokens(body['data'])
        return body

    def logout(self):
        body = self._request('POST', '/auth/logout/', json_payload={'refresh': self.refresh_token})
        self.set_token(None)
        self.refresh_token = None
        return body

    def refresh(self):
        body = self._request('POST', '/auth/token/refresh/', json_payload={'refresh': self.refresh_token})
        self._store_tokens(body['data'])
        return body

    def _store_tokens(self, data: Dict[str, Any]) -> None:
        self.set_token(data.get('token'))
        self.refresh_token = data.get('refresh') or self.refresh_token

    def me(self):
        return self._request('GET', '/auth/me/')

    def change_password(self, current_password: str, new_password: str):
        return self._request('PATCH', '/auth/change-password/', json_payload={
            'currentPassword': current_password,
            'newPassword': new_password,
        })

    # --- listings (public reads degrade) ---
    def list_animals(self, **filters):
        page, limit = filters.get('page', 1), filters.get('limit', 12)

        def fallback():
            items, pagination = mock_data.paginate(mock_data.MOCK_ANIMALS, page, limit)
            return {'data': items, 'pagination': pagination}

        return self._request('GET', '/animals/', params=filters, fallback=fallback)

    def latest_animals(self, limit: int = 8):
        return self._request(
            'GET', '/animals/latest/', params={'limit': limit},
            fallback=lambda: {'data': mock_data.MOCK_ANIMALS[:limit]},
        )

    def get_animal(self, animal_id: int):
        def fallback():
            match = [a for a in mock_data.MOCK_ANIMALS if a['id'] == animal_id]
            if not match:
                raise APIError('Listing not found', status_code=404)
            return {'data': match[0]}

        return self._request('GET', f'/animals/{animal_id}/', fallback=fallback)

    def get_animal_by_slug(self, slug: str):
        def fallback():
            match = [a for a in mock_data.MOCK_ANIMALS if a['slug'] == slug]
            if not match:
                raise APIError('Listing not found', status_code=404)
            return {'data': match[0]}

        return self._request('GET', f'/animals/slug/{slug}/', fallback=fallback)

    def my_animals(self, **filters):
        return self._request('GET', '/animals/mine/', params=filters)

    def create_animal(self, **fields):
        return self._request('POST', '/animals/', json_payload=fields)

    def update_animal(self, animal_id: int, **fields):
        return self._request('PATCH', f'/animals/{animal_id}/', json_payload=fields)

    def delete_animal(self, animal_id: int):
        return self._request('DELETE', f'/animals/{animal_id}/')

    def upload_images(self, animal_id: int, files):
        """Upload images; ``files`` is a list of (filename, fileobj, content_type)."""
        payload = [('images', f) for f in files]
        return self._request('POST', f'/animals/{animal_id}/images/', files=payload)

    def delete_image(self, animal_id: int, image_id: int):
        return self._request('DELETE', f'/animals/{animal_id}/images/{image_id}/')

    def record_view(self, animal_id: int):
        return self._request('POST', f'/animals/{animal_id}/view/')

    # --- favorites ---
    def favorites(self):
        return self._request('GET', '/favorites/')

    def add_favorite(self, animal_id: int):
        return self._request('POST', f'/favorites/{animal_id}/')

    def remove_favorite(self, animal_id: int):
        return self._request('DELETE', f'/favorites/{animal_id}/')

    def toggle_favorite(self, animal_id: int):
        return self._request('POST', f'/favorites/{animal_id}/toggle/')

    # --- messaging ---
    def conversations(self):
        return self._request('GET', '/messages/conversations/')

    def start_conversation(self, other_user_id: int, animal_id: Optional[int] = None):
        return self._request('POST', '/messages/conversations/', json_payload={
            'otherUserId': other_user_id,
            'animalId': animal_id,
        })

    def messages(self, conversation_id: int, limit: int = 50, before: Optional[int] = None):
        params = {'limit': limit}
        if before is not None:
            params['before'] = before
        return self._request('GET', f'/messages/conversations/{conversation_id}/messages/', params=params)

    def send_message(self, conversation_id: int, content: str):
        return self._request(
            'POST', f'/messages/conversations/{conversation_id}/messages/',
            json_payload={'content': content},
        )

    def unread_messages(self):
        return self._request('GET', '/messages/unread/')

    # --- notifications ---
    def notifications(self, limit: int = 20, include_read: bool = False):
        return self._request('GET', '/notifications/', params={
            'limit': limit,
            'includeRead': 'true' if include_read else 'false',
        })

    def mark_notification_read(self, notification_id: int):
        return self._request('POST', f'/notifications/{notification_id}/read/')

    def mark_all_notifications_read(self):
        return self._request('POST', '/notifications/mark-all-read/')

    # --- users, ratings, reports ---
    def profile(self, user_id: int):
        return self._request('GET', f'/users/{user_id}/profile/')

    def rate_user(self, user_id: int, rating: int, review: str = ''):
        return self._request('POST', f'/users/{user_id}/rate/', json_payload={'rating': rating, 'review': review})

    def report_animal(self, animal_id: int, reason: str):
        return self._request('POST', '/reports/', json_payload={'animalId': animal_id, 'reason': reason})

    # --- site content and stats (public reads degrade) ---
    def announcements(self):
        return self._request(
            'GET', '/announcements/public/',
            fallback=lambda: {'data': list(mock_data.MOCK_ANNOUNCEMENTS)},
        )

    def faq(self):
        return self._request('GET', '/faq/public/', fallback=lambda: {'data': list(mock_data.MOCK_FAQ)})

    def home_stats(self):
        return self._request('GET', '/stats/home/', fallback=lambda: {'data': dict(mock_data.MOCK_HOME_STATS)})

    def site_traffic(self):
        return self._request(
            'GET', '/stats/site-traffic/',
            fallback=lambda: {'data': dict(mock_data.MOCK_SITE_TRAFFIC)},
        )

    def heartbeat(self):
        """Presence ping; sent every couple of minutes by interactive clients."""
        return self._request('POST', '/stats/visit/')
