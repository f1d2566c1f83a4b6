# tests/test_auth.py

from app.auth import OFFICE_ID_KEY, SESSION_KEY, OfficeSession


def make_session(storage=None, password='secret'):
    return OfficeSession(storage if storage is not None else {}, password, 'office-1', '山田事務所')


def test_new_session_is_anonymous():
    session = make_session()
    assert not session.is_authenticated
    assert session.office_id is None


def test_login_with_the_right_password():
    storage = {}
    session = make_session(storage)
    assert session.login('secret') is True
    assert session.is_authenticated
    assert session.office_id == 'office-1'
    assert storage == {SESSION_KEY: True, OFFICE_ID_KEY: 'office-1'}


def test_wrong_or_empty_password_is_rejected():
    session = make_session()
    assert session.login('wrong') is False
    assert session.login('') is False
    assert session.login(None) is False
    assert not session.is_authenticated


def test_non_ascii_password():
    session = make_session(password='社労士パスワード')
    assert session.login('社労士') is False
    assert session.login('社労士パスワード') is True


def test_logout_clears_the_session():
    storage = {}
    session = make_session(storage)
    session.login('secret')
    session.logout()
    assert storage == {}
    assert not session.is_authenticated
    session.logout()


def test_state_survives_a_new_wrapper():
    storage = {}
    make_session(storage).login('secret')
    assert make_session(storage).office_id == 'office-1'


def test_from_app_reads_config():
    config = {'APP_PASSWORD': 'pw', 'OFFICE_ID': 'o-9', 'OFFICE_NAME': '事務所'}
    session = OfficeSession.from_app({}, config)
    assert session.office_name == '事務所'
    assert session.login('pw')
    assert session.office_id == 'o-9'
