"""
Fixtures compartidas: base de datos SQLite en memoria, Redis falso,
catálogo de ejemplo y cliente HTTP con sesión de administrador.
"""
import os
import sys

# Configuración de pruebas antes de importar la app
os.environ["ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

# Agregar app al path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'app'))

import pytest
from datetime import date, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core import redis_service
from core.database import get_db
from core.user_service import create_admin_user
from models import Barber, Service, Offer, Product
from scripts.init_db import init_db, drop_db

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "Admin1234"


class FakeRedis:
    """Sustituto en memoria de los comandos de Redis que usa la blacklist"""

    def __init__(self):
        self.store = {}

    def setex(self, key, seconds, value):
        self.store[key] = value

    def exists(self, key):
        return 1 if key in self.store else 0


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_service, "redis_client", fake)
    return fake


@pytest.fixture
def db_session():
    """Base de datos limpia por test"""
    init_db(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_db(bind=engine)


@pytest.fixture
def client(db_session):
    """Cliente HTTP usando la base de datos de prueba"""
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session):
    return create_admin_user(db_session, "admin", ADMIN_PASSWORD)


@pytest.fixture
def admin_headers(client, admin_user):
    """Login de administrador y header Bearer (sin dejar cookies en el cliente)"""
    response = client.post(
        "/api/auth/login",
        json={"username": "admin", "password": ADMIN_PASSWORD}
    )
    token = response.json()["data"]["access_token"]
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(client, db_session):
    """Usuario sin rol de administrador"""
    create_admin_user(db_session, "cliente", "Cliente123", role="user")
    response = client.post(
        "/api/auth/login",
        json={"username": "cliente", "password": "Cliente123"}
    )
    token = response.json()["data"]["access_token"]
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def catalog(db_session):
    """Barberos, servicios, una oferta y productos de ejemplo"""
    db_session.add_all([
        Barber(id="b1", name="Carlos", specialty="Fade", experience=5),
        Barber(id="b2", name="Luis", specialty="Barba", experience=3),
        Service(id="s1", name="Corte clásico", price=Decimal("15.00"), duration=30),
        Service(id="s2", name="Arreglo de barba", price=Decimal("10.00"), duration=20),
        Offer(id="o1", name="Corte + Barba", original_price=Decimal("25.00"), final_price=Decimal("20.00")),
        Product(id="p1", name="Cera mate", price=Decimal("12.50"), stock=10, is_active_page=True),
        Product(id="p2", name="Aceite de barba", price=Decimal("10.00"), stock=None, is_active_page=True),
        Product(id="p3", name="Shampoo", price=Decimal("8.00"), stock=1, is_active_page=True),
    ])
    db_session.commit()
    return db_session


@pytest.fixture
def future_day():
    return (date.today() + timedelta(days=7)).isoformat()


def fresh(db, model, pk):
    """Leer una fila ignorando lo que la sesión tenga en memoria"""
    db.expire_all()
    return db.get(model, pk)
