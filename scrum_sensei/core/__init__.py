from .schemas import CamelModel


__all__ = ["CamelModel"]
