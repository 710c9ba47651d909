from app.utils.catalog import CarCatalog, Brand, build_catalog
from app.utils.callbacks import CallbackAction, parse_callback

__all__ = ["CarCatalog", "Brand", "build_catalog", "CallbackAction", "parse_callback"]
