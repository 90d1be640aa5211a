import pytest

from main import create_app
from env_manager import config
from env_manager.auth import check_fixed_credentials, login_required, SESSION_TOKEN_KEY

USERNAME = 'sqlite'
PASSWORD = 'sqliteadmin'


class TestCheckFixedCredentials:
    """Test the default credential check."""

    def test_accepts_configured_pair(self):
        assert check_fixed_credentials(USERNAME, PASSWORD)

    @pytest.mark.parametrize('username, password', [
        (USERNAME, 'wrong'),
        ('wrong', PASSWORD),
        (USERNAME.upper(), PASSWORD),
        (USERNAME, PASSWORD + ' '),
        ('', ''),
        (None, None),
        (USERNAME, None),
    ])
    def test_rejects_anything_else(self, username, password):
        assert not check_fixed_credentials(username, password)

    def test_reads_current_configuration(self, monkeypatch):
        monkeypatch.setattr(config, 'LOGIN_PASSWORD', 'rotated')
        assert check_fixed_credentials(USERNAME, 'rotated')
        assert not check_fixed_credentials(USERNAME, PASSWORD)


class TestAuth:
    """Test authentication blueprint."""

    def test_login_get(self, client):
        """Test login page renders without error flag."""
        response = client.get('/login')
        assert response.status_code == 200
        assert b'<form' in response.data
        assert b'Invalid username or password' not in response.data

    def test_login_get_with_error_flag(self, client):
        response = client.get('/login?error=1')
        assert response.status_code == 200
        assert b'Invalid username or password' in response.data

    def test_login_post_success(self, client, session_store):
        """Test login POST with correct credentials."""
        response = client.post('/login', data={'username': USERNAME, 'password': PASSWORD})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/')
        with client.session_transaction() as sess:
            assert session_store.is_authenticated(sess[SESSION_TOKEN_KEY])

    def test_login_post_json(self, client):
        response = client.post('/login', json={'username': USERNAME, 'password': PASSWORD})
        assert response.status_code == 302
        assert client.get('/api/env-vars').status_code == 200

    def test_login_post_failure(self, client, session_store):
        """Test login POST with wrong password."""
        response = client.post('/login', data={'username': USERNAME, 'password': 'wrong'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login?error=1')
        assert session_store.active_sessions == {}
        assert client.get('/').status_code == 302

    def test_login_post_missing_fields(self, client):
        response = client.post('/login', data={})
        assert response.headers['Location'].endswith('/login?error=1')

    def test_logout(self, logged_in_client, session_store):
        """Test logout destroys the session."""
        response = logged_in_client.get('/logout')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login')
        assert session_store.active_sessions == {}

        response = logged_in_client.get('/api/env-vars')
        assert response.status_code == 302

    def test_logout_without_session(self, client):
        response = client.get('/logout')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login')

    def test_session_expires_after_one_hour(self, logged_in_client, clock):
        clock.advance(3599)
        assert logged_in_client.get('/api/env-vars').status_code == 200
        clock.advance(1)
        response = logged_in_client.get('/api/env-vars')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login')

    def test_forged_token_is_rejected(self, client):
        with client.session_transaction() as sess:
            sess[SESSION_TOKEN_KEY] = 'made-up-token'
        assert client.get('/api/env-vars').status_code == 302

    def test_injected_credential_check(self, env_var_manager, session_store):
        calls = []

        def credential_check(username, password):
            calls.append((username, password))
            return username == 'admin' and password == 'hunter2'

        app = create_app(env_var_manager, session_store, credential_check)
        with app.test_client() as client:
            response = client.post('/login', data={'username': USERNAME, 'password': PASSWORD})
            assert response.headers['Location'].endswith('/login?error=1')
            response = client.post('/login', data={'username': 'admin', 'password': 'hunter2'})
            assert response.headers['Location'].endswith('/')
            assert client.get('/').status_code == 200
        assert calls == [(USERNAME, PASSWORD), ('admin', 'hunter2')]

    def test_login_required_redirects(self, app):
        """Test login_required redirects when not logged in."""
        @app.route('/protected-test')
        @login_required
        def protected_route():
            return 'success'

        with app.test_client() as client:
            response = client.get('/protected-test')
            assert response.status_code == 302
            assert response.headers['Location'].endswith('/login')

            client.post('/login', data={'username': USERNAME, 'password': PASSWORD})
            response = client.get('/protected-test')
            assert response.status_code == 200
            assert b'success' in response.data
