"""
A small line-oriented command interpreter for building interactive
consoles over any pair of streams.

.. include:: ../README.md
"""

from .containers import *
from .errors import *
from .interpreter import *
