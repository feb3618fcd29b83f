"""Target registry — configured endpoints to keep alive."""

from .registry import Target, discover, target_name
