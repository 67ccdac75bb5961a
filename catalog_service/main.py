# catalog_service/main.py

from fastapi import FastAPI
from .core.config import settings
from .core.logging_config import setup_logging
from .routers import products, price_lists, campaigns, internal

setup_logging()

app = FastAPI(
    title="Catalog Pricing API",
    description="Catálogo multi-cliente: listas de preços, campanhas e resolução da melhor oferta."
)

app.include_router(products.router, prefix=settings.API_V1_STR)
app.include_router(price_lists.router, prefix=settings.API_V1_STR)
app.include_router(campaigns.router, prefix=settings.API_V1_STR)
app.include_router(internal.router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    """
    Endpoint raiz. Apenas confirma que a API está no ar.
    """
    return {"message": "Catalog Pricing API"}
