from redirectname.server.app import RedirectServer, http01_cache_key

__all__ = ["RedirectServer", "http01_cache_key"]
