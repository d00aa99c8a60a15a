# -*- coding: utf-8 -*-
"""Episode screenplay -> video segments with cross-segment visual continuity."""

__version__ = "0.1.0"
