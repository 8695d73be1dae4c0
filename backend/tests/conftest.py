import os, sys, pytest
# Ensure the backend directory is on path so 'mint' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from mint import create_app, get_core

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-with-at-least-32-bytes',
    # bcrypt's minimum work factor keeps the suite fast; production default is 12
    'BCRYPT_ROUNDS': 4,
    'DEFAULT_ROLE_NAMES': '',
}


@pytest.fixture()
def app_instance():
    app = create_app(dict(TEST_CONFIG))
    with app.app_context():
        get_core().db.create_all()
        yield app
    app.extensions['mint'].db.dispose()


@pytest.fixture()
def core(app_instance):
    return app_instance.extensions['mint']


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
