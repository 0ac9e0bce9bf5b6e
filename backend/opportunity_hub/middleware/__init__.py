from opportunity_hub.middleware.request_log import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
