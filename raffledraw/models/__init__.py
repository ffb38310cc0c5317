from .base import Base

# import models so create_all and autoloaders can discover mappers
from .draw_run import DrawRun, DrawWinner  # noqa: F401

__all__ = [
    "Base",
    "DrawRun",
    "DrawWinner",
]
