import pytest
from main import create_app
from env_manager import config
from env_manager.database import EnvVarManager
from env_manager.sessions import SessionStore

USERNAME = 'sqlite'
PASSWORD = 'sqliteadmin'


class FakeClock:
    """Controllable replacement for time.time."""
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def fixed_credentials(monkeypatch):
    """Pin the login pair regardless of the developer's environment."""
    monkeypatch.setattr(config, 'LOGIN_USERNAME', USERNAME)
    monkeypatch.setattr(config, 'LOGIN_PASSWORD', PASSWORD)


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def env_var_manager():
    """EnvVarManager with in-memory DB."""
    manager = EnvVarManager(':memory:')
    yield manager
    manager.close()

@pytest.fixture
def session_store(clock):
    return SessionStore(session_timeout=3600, clock=clock)

@pytest.fixture
def app(env_var_manager, session_store):
    """Flask app fixture."""
    app = create_app(env_var_manager, session_store)
    app.config['TESTING'] = True
    return app

@pytest.fixture
def client(app):
    """Test client fixture."""
    return app.test_client()

@pytest.fixture
def logged_in_client(client):
    """Test client holding an authenticated session."""
    response = client.post('/login', data={'username': USERNAME, 'password': PASSWORD})
    assert response.status_code == 302
    return client
