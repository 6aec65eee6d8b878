from .product_payloads import product_record_to_loggable

__all__ = ["product_record_to_loggable"]
