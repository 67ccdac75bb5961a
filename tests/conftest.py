# tests/conftest.py

import os

# --- 1. Configurações de teste ANTES de importar a app ---
# A app lê as settings no import, por isso definimos o ambiente primeiro.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_catalog.db")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from catalog_service.main import app
from catalog_service.database import Base, get_db
from catalog_service.core.config import settings

# --- 2. Banco de Dados de Teste ---
engine = create_engine(
    settings.DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- 3. Fixtures ---

@pytest.fixture(scope="function")
def db() -> Generator:
    """Sessão de banco de dados limpa para cada teste."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture(scope="function")
def client(db: Session) -> Generator:
    """TestClient com a dependência do DB sobrescrita."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def service_token(monkeypatch) -> dict:
    """Liga a verificação do token interno e devolve os headers certos."""
    monkeypatch.setattr(settings, "SERVICE_TOKEN", "internal-test-token")
    return {"Authorization": "Bearer internal-test-token"}
