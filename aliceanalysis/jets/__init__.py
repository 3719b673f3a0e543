#!/usr/bin/env python

""" Jet tagging helpers used by the HFE task.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

__all__ = [
    "tagging",
]
