from .capacity import DefaultPlanner, HintedPlanner, make_planner
from . import guards

__all__ = [
    "DefaultPlanner",
    "HintedPlanner",
    "make_planner",
    "guards",
]
