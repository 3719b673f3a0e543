#!/usr/bin/env python

""" Fixtures for events and tracks.

All fixtures for generic events have the 'ef_' prefix.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import pytest
import numpy as np

from aliceanalysis.framework import eventObjects

def trackFromPtEtaPhi(pt, eta, phi, **kwargs):
    """ Create a track from its kinematics. Further arguments are passed to the track container. """
    return eventObjects.trackContainer(px = pt * np.cos(phi), py = pt * np.sin(phi), pz = pt * np.sinh(eta), **kwargs)

@pytest.fixture
def ef_trackFactory():
    """ Function to create tracks from (pt, eta, phi). """
    return trackFromPtEtaPhi

@pytest.fixture
def ef_flowTracks():
    """ Kinematics (pt, eta, phi) of tracks for the flow tests.

    Half of the tracks are at negative eta and half at positive eta, such that they are separated by
    an eta gap of 1.
    """
    phis = [0.1, 0.7, 1.6, 2.2, 3.0, 3.9, 4.4, 5.2, 5.9, 6.1]
    etas = [-0.7, 0.7] * 5
    pts = [1.5, 1.2, 1.7, 1.1, 1.9, 1.4, 1.6, 1.3, 1.8, 1.05]
    return list(zip(pts, etas, phis))

@pytest.fixture
def ef_flowEvent(ef_flowTracks):
    """ Event with charged tracks passing the flow selection (filter bit 5) at 15% centrality. """
    tracks = [trackFromPtEtaPhi(pt, eta, phi, filterBits = [5], tpcNcls = 100) for pt, eta, phi in ef_flowTracks]
    return eventObjects.eventContainer(vertex = [0.0, 0.0, 1.0], centrality = {"V0M": 15.0}, tracks = tracks)
