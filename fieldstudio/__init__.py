"""
fieldstudio

Dynamic field catalogs, a grid layout designer and a form compiler for
configurable business modules.
"""

__version__ = "0.1.0"
