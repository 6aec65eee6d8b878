from .normalizer import TRACKING_PARAMS, normalize_url
from .resolver import RESOLVE_SERVICE, UrlResolver

__all__ = ["RESOLVE_SERVICE", "TRACKING_PARAMS", "UrlResolver", "normalize_url"]
