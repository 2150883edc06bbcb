"""Runtime taper-solver internals for capslep."""

from ._tapers_impl import *  # noqa: F401,F403
