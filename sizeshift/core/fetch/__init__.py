from .http import DEFAULT_HEADERS, FetchResponse, HttpFetcher, http_session

__all__ = ["DEFAULT_HEADERS", "FetchResponse", "HttpFetcher", "http_session"]
