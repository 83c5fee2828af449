from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from backend.app.api.deps import get_db
from backend.app.db.base import Base
from backend.app.db.session import build_engine
from backend.app.db.models.models_v1 import User, Supplier, Product
from backend.app.db.models.core_types import Role
from backend.app.main import app
from backend.services.inventory import open_product_stock


@pytest.fixture(scope="function")
def db_engine():
    """
    Base SQLite en mémoire, neuve pour chaque test.
    Même build_engine que l'appli (StaticPool + PRAGMA foreign_keys).
    """
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------- Master data ----------
@pytest.fixture
def admin_user(db_session: Session) -> User:
    # id=1 : utilisateur par défaut des requêtes sans X-User-Id
    user = User(
        id=1,
        username="admin",
        password="admin123",
        full_name="Administrator",
        role=Role.admin,
        department="IT",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def supplier(db_session: Session) -> Supplier:
    s = Supplier(name="Aceros Industriales", contact="Juan Pérez", email="juan@aceros.com")
    db_session.add(s)
    db_session.commit()
    db_session.refresh(s)
    return s


@pytest.fixture
def make_product(db_session: Session, supplier: Supplier):
    """Fabrique de produits ; le stock initial passe par un mouvement."""

    def _make(code: str, *, stock: float = 0, min_stock: int = 0, cost: float | None = 1.0,
              category: str = "Ferretería", unit: str = "unidad") -> Product:
        p = Product(
            code=code,
            name=f"Product {code}",
            category=category,
            unit=unit,
            min_stock=min_stock,
            current_stock=0,
            cost=cost,
            supplier_id=supplier.id,
        )
        db_session.add(p)
        db_session.flush()
        open_product_stock(db_session, p, stock)
        db_session.commit()
        db_session.refresh(p)
        return p

    return _make


@pytest.fixture
def product(make_product) -> Product:
    return make_product("TH-5-16", stock=8, min_stock=25, cost=0.5)
