import itertools
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app import create_app
from config import Config
from models import db
from models.business import Business
from models.service import Service
from models.slot import TimeSlot
from models.user import Role, User
from security.password import hash_password
from security.session import create_session
from utils.roles import ADMIN, BUSINESS, CUSTOMER


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CREATE_TABLES_ON_STARTUP = True
    CELERY = {
        "broker_url": "memory://",
        "task_ignore_result": True,
        "task_always_eager": True,
        "task_eager_propagates": False,
    }
    BCRYPT_ROUNDS = 4
    SMTP_HOST = None
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    LOG_LEVEL = "WARNING"


CSRF_TOKEN = "test-csrf-token"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(role=CUSTOMER, full_name=None, email=None):
        n = next(counter)
        user = User(
            email=email or f"{role.lower()}{n}@example.com",
            password_hash=hash_password("password123"),
            full_name=full_name or f"{role.title()} {n}",
        )
        user.roles.append(Role.query.filter_by(name=role).first())
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_business(app):
    def _make(owner, name="Glow Salon"):
        business = Business(owner_user_id=owner.id, name=name, category="beauty")
        db.session.add(business)
        db.session.commit()
        return business

    return _make


@pytest.fixture
def make_service(app):
    def _make(business, price="50000.00", name="Haircut", duration=30):
        service = Service(business_id=business.id, name=name, price=Decimal(price), duration=duration)
        db.session.add(service)
        db.session.commit()
        return service

    return _make


@pytest.fixture
def make_slot(app):
    def _make(service, start=None, minutes=30):
        start = start or datetime.utcnow().replace(microsecond=0) + timedelta(days=1)
        slot = TimeSlot(service_id=service.id, start_time=start, end_time=start + timedelta(minutes=minutes))
        db.session.add(slot)
        db.session.commit()
        return slot

    return _make


@pytest.fixture
def world(make_user, make_business, make_service, make_slot):
    """A customer, a business owner with one service and one free slot."""
    customer = make_user(CUSTOMER, full_name="Cara Customer")
    owner = make_user(BUSINESS, full_name="Owen Owner")
    admin = make_user(ADMIN, full_name="Ada Admin")
    business = make_business(owner)
    service = make_service(business)
    slot = make_slot(service, start=datetime(2024, 1, 10, 9, 0))
    return SimpleNamespace(
        customer=customer,
        owner=owner,
        admin=admin,
        business=business,
        service=service,
        slot=slot,
    )


@pytest.fixture
def login(app, client):
    """Attach a session cookie for ``user`` and return CSRF headers."""
    def _login(user):
        token = create_session(user.id)
        client.set_cookie(app.config["AUTH_COOKIE_NAME"], token)
        client.set_cookie(app.config["CSRF_COOKIE_NAME"], CSRF_TOKEN)
        return {app.config["CSRF_HEADER_NAME"]: CSRF_TOKEN}

    return _login


@pytest.fixture
def file_app(tmp_path):
    """App on a file-backed SQLite database, for tests that need several connections."""
    class FileBackedConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'slotmarket-test.db'}"
        # writers queue on the database lock instead of failing fast
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}

    app = create_app(FileBackedConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
