#!/usr/bin/env python

""" Tests for the parametric TRD geometry.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import pytest
import numpy as np
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.trd import geometry
from aliceanalysis.trd import tracklets

@pytest.fixture
def geo():
    return geometry.trdGeometry()

@pytest.mark.parametrize("layer, expected", [
    (0, 300.65),
    (1, 313.25),
    (5, 363.65),
], ids = ["Layer 0", "Layer 1", "Layer 5"])
def testTime0(loggingMixin, geo, layer, expected):
    assert geo.time0(layer) == pytest.approx(expected)

def testPadWidth(loggingMixin, geo):
    assert geo.padWidth(0) == pytest.approx(0.635)
    assert geo.padWidth(tracklets.detectorNumber(3, 1, 4)) == pytest.approx(0.755)

@pytest.mark.parametrize("stack, expectedRows, expectedSize", [
    (0, 16, 8.5),
    (2, 12, 9.0),
    (4, 16, 8.5),
], ids = ["Outer stack", "Central stack", "Last stack"])
def testRows(loggingMixin, geo, stack, expectedRows, expectedSize):
    detector = tracklets.detectorNumber(0, stack, 0)
    assert geo.nRows(detector) == expectedRows
    assert geo.rowSize(detector) == expectedSize

def testRowPositions(loggingMixin, geo, trf_trackletFactory):
    centralDetector = tracklets.detectorNumber(0, 2, 0)
    assert geo.rowPos(centralDetector, 0) == pytest.approx(54.0)
    assert geo.rowPos(centralDetector, 12) == pytest.approx(-54.0)
    assert geo.rowPos(0, 0) == pytest.approx(330.0)

    tracklet = trf_trackletFactory(centralDetector, y = 0, dy = 0, z = 0, pid = 0, label = 0)
    assert geo.getZ(tracklet) == pytest.approx(49.5)
    assert geo.getX(tracklet) == pytest.approx(300.65)

@pytest.mark.parametrize("sector, expected", [
    (0, 10.0),
    (1, 30.0),
    (17, 350.0),
], ids = ["Sector 0", "Sector 1", "Sector 17"])
def testSectorAlpha(loggingMixin, geo, sector, expected):
    assert geo.sectorAlpha(tracklets.detectorNumber(sector, 0, 0)) == pytest.approx(np.deg2rad(expected))

def testGeometryOverrides(loggingMixin, trf_trackletFactory):
    geo = geometry.trdGeometry(time0Base = 290.0, layerSpacing = 10.0, stackCenters = (0.0, 0.0, 10.0, 0.0, 0.0))
    tracklet = trf_trackletFactory(tracklets.detectorNumber(0, 2, 3), y = 0, dy = 0, z = 1, pid = 0, label = 0)
    assert geo.getX(tracklet) == pytest.approx(320.0)
    assert geo.getZ(tracklet) == pytest.approx(10.0 + 54.0 - 9.0 - 4.5)

def testTrackletFrame(loggingMixin, geo, trf_trdEvent, trf_sectorAlpha):
    """ The tracklet frame of detector 0 is the frame of sector 0. """
    _, trackletsInEvent = trf_trdEvent
    assert geo.sectorAlpha(trackletsInEvent["sim"].detector) == pytest.approx(trf_sectorAlpha)
    assert geo.getZ(trackletsInEvent["sim"]) == pytest.approx(325.75)
