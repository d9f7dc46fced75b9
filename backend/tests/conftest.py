import os, sys, pytest
# Ensure the backend directory is on path so 'salonops' can be imported without installing
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from salonops import create_app, get_db
from salonops.models.authz import Base


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'JWT_SECRET_KEY': 'test-secret-key-that-is-long-enough-for-hs256'})
    # create_app registers every model module; build the schema once for the suite
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
