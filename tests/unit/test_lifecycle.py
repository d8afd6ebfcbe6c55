import pytest

from session_lib.backends import CookieSessionBackend, StoreSessionBackend
from session_lib.errors import SessionTooLargeError
from session_lib.helpers import flash_assoc, session_assoc, set_session
from session_lib.lifecycle import SESSION_COOKIE, RequestSession, SessionLifecycle, build_set_cookie
from session_lib.signing import CookieSigner
from session_lib.storage.memory_backend import MemoryStorage


class RecordingStoreBackend(StoreSessionBackend):
    def __init__(self):
        super().__init__(MemoryStorage())
        self.writes = []

    def write(self, session):
        self.writes.append(dict(session))
        super().write(session)


def _cookie_value(response):
    header = response['headers']['set-cookie'][-1]
    name, _, value = header.split(';')[0].partition('=')
    assert name == SESSION_COOKIE
    return value


def _existing(backend, session):
    backend.write(session)
    backend.writes.clear()
    return {SESSION_COOKIE: session['id']}


def test_no_cookie_creates_new_session():
    backend = RecordingStoreBackend()
    state = SessionLifecycle(backend).open({})
    assert state.new is True
    assert set(state.session) == {'id'}
    assert state.flash == {}
    assert backend.writes == []


def test_unknown_id_creates_new_session():
    state = SessionLifecycle(RecordingStoreBackend()).open({SESSION_COOKIE: 'stale'})
    assert state.new is True
    assert state.session['id'] != 'stale'


def test_tampered_cookie_creates_new_session():
    backend = CookieSessionBackend(CookieSigner(b'k'))
    value = backend.cookie_value(True, {'user': 'mallory'})
    state = SessionLifecycle(backend).open({SESSION_COOKIE: 'A' + value[1:]})
    assert state.new is True
    assert state.session == {}


def test_existing_session_has_flash_split_off():
    backend = RecordingStoreBackend()
    cookies = _existing(backend, {'id': 'abc', 'user': 'alice', 'flash': {'message': 'hi'}})
    state = SessionLifecycle(backend).open(cookies)
    assert state.new is False
    assert state.session == {'id': 'abc', 'user': 'alice'}
    assert state.flash == {'message': 'hi'}
    # the stored copy keeps its flash until the session is saved
    assert backend.read('abc')['flash'] == {'message': 'hi'}


def test_no_save_without_trigger():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open(_existing(backend, {'id': 'abc'}))
    assert lifecycle.finish(state) is None
    assert backend.writes == []


def test_save_when_response_carries_session():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open(_existing(backend, {'id': 'abc'}))
    lifecycle.finish(state, {'id': 'abc', 'user': 'bob'}, True)
    assert backend.writes == [{'id': 'abc', 'user': 'bob'}]


def test_save_when_session_is_new():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open({})
    value = lifecycle.finish(state)
    assert backend.writes == [state.session]
    assert value == state.session['id']


def test_save_when_incoming_flash_not_empty():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open(_existing(backend, {'id': 'abc', 'flash': {'a': 1}}))
    lifecycle.finish(state)
    assert backend.writes == [{'id': 'abc'}]


def test_should_save_disjuncts():
    lifecycle = SessionLifecycle(RecordingStoreBackend())
    quiet = RequestSession(session={'id': 'x'}, new=False)
    assert lifecycle.should_save(quiet, False) is False
    assert lifecycle.should_save(quiet, True) is True
    assert lifecycle.should_save(RequestSession(session={'id': 'x'}, new=True), False) is True
    assert lifecycle.should_save(RequestSession(session={'id': 'x'}, new=False, flash={'a': 1}), False) is True


def test_wrap_passes_through_unhandled_request():
    backend = RecordingStoreBackend()
    app = SessionLifecycle(backend).wrap(lambda request: None)
    assert app({}) is None
    assert backend.writes == []


def test_wrap_annotates_request():
    seen = {}

    def handler(request):
        seen.update(request)
        return {'status': 200}

    backend = RecordingStoreBackend()
    app = SessionLifecycle(backend).wrap(handler)
    app({'uri': '/'})
    assert seen['uri'] == '/'
    assert seen['new_session'] is True
    assert seen['flash'] == {}
    assert 'id' in seen['session']


def test_wrap_parses_cookie_header():
    backend = RecordingStoreBackend()
    _existing(backend, {'id': 'abc', 'user': 'alice'})
    seen = {}

    def handler(request):
        seen.update(request)
        return {'status': 200}

    SessionLifecycle(backend).wrap(handler)({'headers': {'cookie': f'other=1; {SESSION_COOKIE}=abc'}})
    assert seen['new_session'] is False
    assert seen['session'] == {'id': 'abc', 'user': 'alice'}
    assert seen['cookies']['other'] == '1'


def test_server_side_login_then_revisit():
    backend = RecordingStoreBackend()

    def login(request):
        return {'status': 200, **session_assoc(user='alice')(request)}

    response = SessionLifecycle(backend).wrap(login)({})
    sid = _cookie_value(response)
    assert 'Path=/' in response['headers']['set-cookie'][0]
    assert backend.read(sid) == {'id': sid, 'user': 'alice'}

    seen = {}

    def page(request):
        seen['user'] = request['session']['user']
        return {'status': 200, 'body': 'hello'}

    response = SessionLifecycle(backend).wrap(page)({'cookies': {SESSION_COOKIE: sid}})
    assert seen['user'] == 'alice'
    assert 'headers' not in response


def test_flash_lasts_one_request_with_cookie_backend():
    app = SessionLifecycle(CookieSessionBackend(CookieSigner(b'k'))).wrap(
        lambda request: {'status': 200, 'flash_seen': request['flash'],
                         **(flash_assoc(a=1)(request) if request.get('uri') == '/save' else {})})

    first = app({'uri': '/save'})
    second = app({'uri': '/', 'cookies': {SESSION_COOKIE: _cookie_value(first)}})
    third = app({'uri': '/', 'cookies': {SESSION_COOKIE: _cookie_value(second)}})

    assert first['flash_seen'] == {}
    assert second['flash_seen'] == {'a': 1}
    assert third['flash_seen'] == {}


def test_flash_lasts_one_request_with_store_backend():
    backend = RecordingStoreBackend()
    cookies = _existing(backend, {'id': 'abc'})
    app = SessionLifecycle(backend).wrap(
        lambda request: {'status': 200, 'flash_seen': request['flash'],
                         **(flash_assoc(a=1)(request) if request.get('uri') == '/save' else {})})

    app({'uri': '/save', 'cookies': cookies})
    assert app({'uri': '/', 'cookies': cookies})['flash_seen'] == {'a': 1}
    assert app({'uri': '/', 'cookies': cookies})['flash_seen'] == {}
    assert backend.read('abc') == {'id': 'abc'}


def test_wrap_keeps_existing_set_cookie_headers():
    app = SessionLifecycle(RecordingStoreBackend()).wrap(
        lambda request: {'status': 200, 'headers': {'set-cookie': 'theme=dark'}})
    response = app({})
    assert response['headers']['set-cookie'][0] == 'theme=dark'
    assert response['headers']['set-cookie'][1].startswith(f'{SESSION_COOKIE}=')


def test_wrap_surfaces_oversized_session():
    backend = CookieSessionBackend(CookieSigner(b'k'))
    app = SessionLifecycle(backend).wrap(lambda request: {'status': 200, 'session': {'blob': 'x' * 5000}})
    with pytest.raises(SessionTooLargeError):
        app({})


def test_destroy_removes_stored_session():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open(_existing(backend, {'id': 'abc'}))
    lifecycle.destroy(state.session)
    assert backend.read('abc') is None


def test_build_set_cookie_attributes():
    header = build_set_cookie('compojure-session', 'abc', max_age=0, secure=True)
    assert header.startswith('compojure-session=abc')
    assert 'Path=/' in header
    assert 'HttpOnly' in header
    assert 'Max-Age=0' in header
    assert 'Secure' in header


def test_replacement_session_without_id_keeps_new_id():
    backend = RecordingStoreBackend()
    app = SessionLifecycle(backend).wrap(lambda request: {'status': 200, **set_session({'user': 'alice'})})
    response = app({})
    sid = _cookie_value(response)
    assert backend.writes == [{'id': sid, 'user': 'alice'}]
    assert backend.read(sid) == {'id': sid, 'user': 'alice'}


def test_replacement_session_without_id_keeps_existing_id():
    backend = RecordingStoreBackend()
    lifecycle = SessionLifecycle(backend)
    state = lifecycle.open(_existing(backend, {'id': 'abc', 'user': 'alice'}))
    assert lifecycle.finish(state, {'user': 'bob'}, True) is None
    assert backend.read('abc') == {'id': 'abc', 'user': 'bob'}


def test_replacement_session_is_not_given_id_by_cookie_backend():
    backend = CookieSessionBackend(CookieSigner(b'k'))
    lifecycle = SessionLifecycle(backend)
    value = lifecycle.finish(lifecycle.open({}), {'user': 'alice'}, True)
    assert backend.read(value) == {'user': 'alice'}
