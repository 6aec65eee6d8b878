from .url import detect_product_url, is_short_link, platform_for_host

__all__ = ["detect_product_url", "is_short_link", "platform_for_host"]
