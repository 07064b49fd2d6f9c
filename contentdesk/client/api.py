"""
Admin API Client
================

Thin wrapper over requests.Session for the ContentDesk admin API.

    client = AdminClient('http://localhost:5000')
    client.login('admin@example.com', 'Secret123')
    posts = client.blogs.list(status='published', page=1)
"""

import json
import logging

import requests

from .cache import ResponseCache

logger = logging.getLogger(__name__)

# Responses that embed another resource go stale when it changes
DEPENDENT_RESOURCES = {
    'newsletter': ('analytics',),
    'messages': ('analytics',),
    'tags': ('blogs',),
    'categories': ('blogs',),
    'services': ('projects',),
}


class ApiError(Exception):
    """Request failed; carries the envelope message and HTTP status"""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class AuthenticationError(ApiError):
    pass


class Resource:
    """CRUD accessor for one /api/<path> collection"""

    def __init__(self, client, name, path):
        self.client = client
        self.name = name
        self.path = path

    def _url(self, suffix=''):
        return f"{self.path}{suffix}"

    def list(self, **params):
        return self.client.get(self.name, self._url(), params)

    def get(self, item_id):
        return self.client.get(self.name, self._url(f"/{item_id}"))

    def create(self, data):
        return self.client.mutate(self.name, 'POST', self._url(), json=data)

    def update(self, item_id, data):
        return self.client.mutate(self.name, 'PUT', self._url(f"/{item_id}"), json=data)

    def delete(self, item_id):
        return self.client.mutate(self.name, 'DELETE', self._url(f"/{item_id}"))


class BlogResource(Resource):

    def stats(self):
        return self.client.get(self.name, self._url('/stats/overview'))

    def toggle_publish(self, item_id):
        return self.client.mutate(self.name, 'PATCH', self._url(f"/{item_id}/toggle-publish"))


class ExportMixin:

    def stats(self):
        return self.client.get(self.name, self._url('/stats'))

    def export(self, format='csv', **params):
        """CSV text, or the JSON list when format='json'; never cached"""
        params['format'] = format
        response = self.client.request('GET', self._url('/export'), params=params)
        if format == 'csv':
            return response.text
        return response.json().get('data')


class NewsletterResource(ExportMixin, Resource):

    def bulk(self, action, emails, data=None):
        return self.client.mutate(self.name, 'POST', self._url('/bulk'), json={
            'action': action, 'emails': emails, 'data': data or {},
        })

    def send_campaign(self, subject, html_content=None, html_file=None,
                      selected_subscribers='all', selected_ids=None, status='active'):
        """Send a campaign; html_file is a (filename, bytes) pair uploaded as multipart"""
        form = {
            'subject': subject,
            'selected_subscribers': selected_subscribers,
            'status': status,
        }
        if html_content is not None:
            form['html_content'] = html_content
        if selected_ids is not None:
            form['selected_ids'] = selected_ids if isinstance(selected_ids, str) else json.dumps(list(selected_ids))
        files = None
        if html_file is not None:
            filename, content = html_file
            files = {'html_file': (filename, content, 'text/html')}
        return self.client.mutate(self.name, 'POST', self._url('/send-campaign'), data=form, files=files)


class MessagesResource(ExportMixin, Resource):

    def bulk(self, action, ids, data=None):
        return self.client.mutate(self.name, 'POST', self._url('/bulk'), json={
            'action': action, 'ids': ids, 'data': data or {},
        })


class AdminClient:
    """
    Session-backed client with a per-resource response cache.

    Reads are cached for cache_ttl seconds. A successful mutation drops the
    cached reads of that resource and of the resources that embed it.
    A 401 clears the token.
    """

    def __init__(self, base_url, token=None, cache_ttl=300, session=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cache = ResponseCache(ttl=cache_ttl)
        self.token = None
        self.set_token(token)

        self.blogs = BlogResource(self, 'blogs', '/blogposts')
        self.projects = Resource(self, 'projects', '/projects')
        self.services = Resource(self, 'services', '/services')
        self.tags = Resource(self, 'tags', '/tags')
        self.categories = Resource(self, 'categories', '/categories')
        self.newsletter = NewsletterResource(self, 'newsletter', '/newsletter')
        self.messages = MessagesResource(self, 'messages', '/messages')

    def set_token(self, token):
        self.token = token
        if token:
            self.session.headers['Authorization'] = f"Bearer {token}"
        else:
            self.session.headers.pop('Authorization', None)

    def login(self, email, password):
        data = self.request('POST', '/auth/login', json={'email': email, 'password': password}).json()
        self.set_token(data['data']['token'])
        self.cache.clear()
        return data['data']['user']

    def logout(self):
        self.set_token(None)
        self.cache.clear()

    def profile(self):
        return self.request('GET', '/auth/profile').json().get('data')

    def analytics_overview(self, time_range='30d'):
        return self.get('analytics', '/analytics/overview', {'time_range': time_range})

    def analytics_activity(self, time_range='30d'):
        return self.get('analytics', '/analytics/activity', {'time_range': time_range})

    def request(self, method, path, **kwargs):
        kwargs.setdefault('timeout', self.timeout)
        try:
            response = self.session.request(method, f"{self.base_url}/api{path}", **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e

        if response.status_code == 401:
            self.set_token(None)
            self.cache.clear()
            raise AuthenticationError(self._error_message(response), 401, self._payload(response))
        if not response.ok:
            raise ApiError(self._error_message(response), response.status_code, self._payload(response))
        return response

    def get(self, resource, path, params=None):
        key = ResponseCache.make_key(resource, path, params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        data = self.request('GET', path, params=params).json().get('data')
        self.cache.set(key, data)
        return data

    def mutate(self, resource, method, path, **kwargs):
        data = self.request(method, path, **kwargs).json()
        stale = (resource,) + DEPENDENT_RESOURCES.get(resource, ())
        self.cache.invalidate(*stale)
        logger.debug(f"{method} {path} -> invalidated cache for {', '.join(stale)}")
        return data.get('data', data)

    @staticmethod
    def _payload(response):
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def _error_message(self, response):
        payload = self._payload(response)
        return payload.get('message') or payload.get('error') or f"HTTP {response.status_code}"
