from . import crud_price, crud_campaign, crud_product
from .crud_product import product
from .crud_price import price_list
from .crud_campaign import campaign
