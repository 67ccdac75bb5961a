# catalog_service/core/config.py

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Carrega o .env (se existir) antes de instanciar as configurações
load_dotenv()

class Settings(BaseSettings):
    """
    Configurações da aplicação, carregadas a partir de variáveis de ambiente.
    """
    # --- Banco de Dados ---
    DATABASE_URL: str = "sqlite:///./catalog.db"

    # --- API ---
    API_V1_STR: str = "/api/v1"

    # --- Tokens ---
    # Os tokens de utilizador são emitidos pelo serviço de identidade externo;
    # aqui apenas os verificamos.
    SECRET_KEY: str = "super-secret-key-that-should-be-in-env"
    ALGORITHM: str = "HS256"
    TOKEN_URL: str = "/auth/login"
    # Token partilhado para chamadas entre serviços. Vazio = sem verificação (dev).
    SERVICE_TOKEN: str = ""

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_DIR: str | None = None

    # --- Regras do catálogo ---
    DEFAULT_CURRENCY: str = "CLP"
    MAX_BATCH_ITEMS: int = 500

    model_config = SettingsConfigDict(case_sensitive=True)

# Instância única usada em toda a aplicação.
settings = Settings()
