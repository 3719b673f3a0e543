#!/usr/bin/env python

""" Base modules for aliceanalysis.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

__all__ = [
    "config",
    "utilities",
]
