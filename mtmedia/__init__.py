"""mtmedia - content-addressed media builder for Minetest remote media servers."""

__version__ = "0.3.0"
