"""Compile a snake walking a contribution grid into keyframe styles and markup."""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
