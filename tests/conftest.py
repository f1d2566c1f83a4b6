# tests/conftest.py

import pytest


@pytest.fixture
def app_with_db():
    """
    Creates a new app instance from TestConfig with an in-memory database,
    and yields the app within an application context.
    """
    from app import create_app, db
    from app.calculator.engine import CalculationConfig
    from config import TestConfig

    app = create_app(TestConfig)
    CalculationConfig._instance = None

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()

    CalculationConfig._instance = None


@pytest.fixture
def seeded_app(app_with_db):
    """The test app with the default policy settings in place."""
    from app.seed import seed_data
    seed_data()
    return app_with_db


@pytest.fixture
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture
def logged_in_client(client):
    """A test client that has already entered the office password."""
    response = client.post('/login', data={'password': 'test-password'})
    assert response.status_code == 302
    return client


@pytest.fixture
def office_id(app_with_db):
    return app_with_db.config['OFFICE_ID']


@pytest.fixture
def sample_client(app_with_db, office_id):
    from app import store
    from datetime import date
    return store.create_client(
        office_id,
        company_name='株式会社サンプル',
        registration_number='1234-567890-1',
        is_small_business=True,
        has_employment_rules=True,
        career_up_plan_submitted_at=date(2024, 10, 1),
    )


@pytest.fixture
def make_application(sample_client, office_id):
    """Factory for applications of the sample client."""
    from app import store
    from datetime import date

    def _make(**overrides):
        values = {
            'client_id': sample_client.id,
            'worker_name': '田中花子',
            'conversion_date': date(2025, 4, 1),
            'application_deadline': date(2025, 12, 25),
            'status': 'preparing',
        }
        values.update(overrides)
        return store.create_application(office_id, **values)

    return _make
