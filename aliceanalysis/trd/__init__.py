#!/usr/bin/env python

""" TRD tracklet decoding, geometry and track propagation used by the TRD task.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

__all__ = [
    "geometry",
    "trackParam",
    "tracklets",
]
