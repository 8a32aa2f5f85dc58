"""Pytest fixtures for girderpy tests."""
import base64
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from girderpy.core.api import APIConfig, RetryConfig

from tests.fakes import API_KEY, API_TOKEN, FakeGirderAPI


@pytest.fixture
def fake_api():
    """Scripted API with an empty server."""
    return FakeGirderAPI()


# In-process Girder server

def _doc(model_type: str, doc_id: str, name: str) -> Dict[str, str]:
    key = 'login' if model_type == 'user' else 'name'
    return {'_modelType': model_type, '_id': doc_id, key: name}


class GirderServerState:
    """Data and counters behind the test server."""

    def __init__(self):
        self.users = [_doc('user', 'u1', 'alice'), _doc('user', 'u2', 'bob')]
        self.collections = [_doc('collection', 'c1', 'Public')]
        self.folders = {
            'u1': [_doc('folder', 'f1', 'Private'), _doc('folder', 'f2', 'Documents')],
            'f2': [_doc('folder', 'f3', 'Reports')],
        }
        self.items = {
            'f2': [_doc('item', 'i1', 'notes.txt')],
            'f3': [_doc('item', 'i2', 'q1.csv')],
        }
        self.files = {
            'i1': [_doc('file', 'file1', 'notes.txt')],
            'i2': [_doc('file', 'file2', 'q1.csv')],
        }
        self.root_paths = {
            'f3': [
                {'type': 'user', 'object': _doc('user', 'u1', 'alice')},
                {'type': 'folder', 'object': _doc('folder', 'f2', 'Documents')},
            ],
        }
        self.contents = {'file1': b'some notes\n', 'file2': b'a,b\n1,2\n'}
        self.not_ready = {'file2': 2}
        self.download_attempts: Dict[str, int] = {}
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        self.tokens_seen: List[Optional[str]] = []
        self.token_durations: List[Optional[str]] = []


def _json(data: Any, status: int = 200) -> web.Response:
    return web.Response(text=json.dumps(data), status=status, content_type='application/json')


def _error(message: str, status: int) -> web.Response:
    return _json({'message': message, 'type': 'rest'}, status=status)


def build_girder_app(state: GirderServerState) -> web.Application:
    """Build an aiohttp application answering like a small Girder server."""
    routes = web.RouteTableDef()

    @web.middleware
    async def record(request, handler):
        state.requests.append((request.method, request.path, dict(request.query)))
        state.tokens_seen.append(request.headers.get('Girder-Token'))
        return await handler(request)

    @routes.get('/api/v1/folder')
    async def list_folders(request):
        parent_id = request.query.get('parentId', '')
        if parent_id == 'broken':
            return _error('Folder listing exploded.', 500)
        return _json(state.folders.get(parent_id, []))

    @routes.get('/api/v1/item')
    async def list_items(request):
        return _json(state.items.get(request.query.get('folderId', ''), []))

    @routes.get('/api/v1/item/{item_id}/files')
    async def list_files(request):
        return _json(state.files.get(request.match_info['item_id'], []))

    @routes.get('/api/v1/user')
    async def list_users(request):
        return _json(state.users)

    @routes.get('/api/v1/collection')
    async def list_collections(request):
        return _json(state.collections)

    @routes.get('/api/v1/user/me')
    async def current_user(request):
        if request.headers.get('Girder-Token') != API_TOKEN:
            return _json(None)
        return _json({'_id': 'u1', 'login': 'alice', 'email': 'alice@example.com'})

    @routes.get('/api/v1/{model}/{node_id}/rootpath')
    async def root_path(request):
        node_id = request.match_info['node_id']
        if node_id == 'malformed':
            return _json([{'type': 'user'}])
        return _json(state.root_paths.get(node_id, []))

    @routes.post('/api/v1/api_key/token')
    async def api_key_token(request):
        form = await request.post()
        state.token_durations.append(form.get('duration'))
        if form.get('key') != API_KEY:
            return _error('Invalid API key.', 401)
        response = _json({
            'user': {'_id': 'u1', 'login': 'alice'},
            'authToken': {'token': API_TOKEN, 'expires': '2030-01-01T00:00:00'},
        })
        response.set_cookie('girderToken', API_TOKEN)
        return response

    @routes.get('/api/v1/user/authentication')
    async def basic_auth(request):
        header = request.headers.get('Authorization', '')
        expected = 'Basic ' + base64.b64encode(b'alice:secret').decode()
        if header != expected:
            return _error('Login failed.', 401)
        return _json({
            'user': {'_id': 'u1', 'login': 'alice'},
            'authToken': {'token': API_TOKEN, 'expires': '2030-01-01T00:00:00'},
        })

    @routes.delete('/api/v1/user/authentication')
    async def logout(request):
        return _json({'message': 'Logged out.'})

    @routes.get('/api/v1/file/{file_id}/download')
    async def download(request):
        file_id = request.match_info['file_id']
        attempts = state.download_attempts.get(file_id, 0) + 1
        state.download_attempts[file_id] = attempts

        if file_id == 'moved':
            raise web.HTTPFound('/assetstore/moved')
        if file_id == 'loop':
            raise web.HTTPFound('/api/v1/file/loop/download')
        if attempts <= state.not_ready.get(file_id, 0):
            return _error('File is not ready.', 400)
        if file_id not in state.contents:
            return _error('Resource not found.', 404)
        return web.Response(body=state.contents[file_id])

    @routes.get('/assetstore/{file_id}')
    async def assetstore(request):
        if request.headers.get('Girder-Token'):
            return _error('Token leaked to assetstore.', 403)
        return web.Response(body=b'redirected content')

    app = web.Application(middlewares=[record])
    app.add_routes(routes)
    return app


@pytest.fixture
def server_state():
    return GirderServerState()


@pytest_asyncio.fixture
async def girder_server(server_state):
    """Running test server; yields its API URL."""
    server = test_utils.TestServer(build_girder_app(server_state))
    await server.start_server()
    yield str(server.make_url('/api/v1'))
    await server.close()


@pytest.fixture
def api_config(girder_server):
    """Configuration pointing at the test server with a valid token."""
    return APIConfig(
        api_url=girder_server,
        token=API_TOKEN,
        retry=RetryConfig(base_delay=0)
    )
