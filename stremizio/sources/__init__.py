from .apibay import ApiBaySource
from .base import BaseSource
from .corsaro import CorsaroNeroSource
from .knaben import KnabenSource
from .x1337 import X1337Source

__all__ = [
    "ApiBaySource",
    "BaseSource",
    "CorsaroNeroSource",
    "KnabenSource",
    "X1337Source",
]
