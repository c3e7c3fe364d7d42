from .normalize import normalize_series, normalize_xy

__all__ = ["normalize_series", "normalize_xy"]
