"""Built-in commands. Importing this package registers them."""

from . import depot, software

__all__ = ["depot", "software"]
