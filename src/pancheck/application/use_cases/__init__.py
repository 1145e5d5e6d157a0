from .check_links import CheckLinksUseCase, LinkReport

__all__ = ["CheckLinksUseCase", "LinkReport"]
