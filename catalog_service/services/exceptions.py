# catalog_service/services/exceptions.py

# Exceções de domínio. Os routers traduzem-nas em erros HTTP.

class CatalogError(Exception):
    """Base para todos os erros de negócio do catálogo."""
    pass

class ProductNotFound(CatalogError, LookupError):
    def __init__(self, product_ids):
        self.product_ids = sorted(set(product_ids))
        ids = ", ".join(str(pid) for pid in self.product_ids)
        super().__init__(f"Product(s) not found: {ids}")

class PriceListNotFound(CatalogError, LookupError):
    def __init__(self, price_list_id: int):
        self.price_list_id = price_list_id
        super().__init__(f"Price list with id {price_list_id} not found.")

class CampaignNotFound(CatalogError, LookupError):
    def __init__(self, campaign_id: int):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign with id {campaign_id} not found.")

class InvalidDiscountShape(CatalogError, ValueError):
    """Dados de desconto/alcance inválidos numa campanha. Rejeitado na fronteira."""
    pass

class PriceListUnresolved(CatalogError):
    """O cliente não tem lista de preços resolvida; nunca usamos uma lista por omissão."""
    pass

class PricingDataUnavailable(CatalogError):
    """Falha de infraestrutura ao ler preços ou campanhas. O lote inteiro é abortado."""
    pass
