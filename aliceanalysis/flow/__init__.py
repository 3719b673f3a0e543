#!/usr/bin/env python

""" Flow vectors, multi-particle correlators and acceptance weights for the flow analysis.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

__all__ = [
    "corrTask",
    "flowVectors",
    "weights",
]
