from .base import Repository, apply_filters

__all__ = ["Repository", "apply_filters"]
