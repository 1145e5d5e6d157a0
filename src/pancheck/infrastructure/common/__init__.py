from .rate_limiter import TokenBucket

__all__ = ["TokenBucket"]
