from .link_checker import LinkCheckerPort

__all__ = ["LinkCheckerPort"]
