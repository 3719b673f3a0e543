#!/usr/bin/env python

""" Parametric TRD geometry.

Only the quantities needed to place a tracklet in the sector frame are provided: the radial
position of the time zero per layer, the pad width per layer and the pad row positions per stack.
The values are the nominal (design) values rather than the ones from the alignment database.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from . import tracklets

logger = logging.getLogger(__name__)

class trdGeometry(object):
    """ Nominal TRD geometry.

    Args:
        time0Base (float): Radial position of the time zero of layer 0 (cm). Default: 300.65.
        layerSpacing (float): Radial distance between layers (cm). Default: 12.6.
        padWidthBase (float): Pad width in layer 0 (cm). Default: 0.635.
        padWidthIncrement (float): Increase of the pad width per layer (cm). Default: 0.03.
        stackCenters (list): z position of the center of each stack (cm). Default: (262, 124, 0, -124, -262).
    """
    # (number of rows, row size in cm) for the central stack and for the other stacks.
    centralStackRows = (12, 9.0)
    outerStackRows = (16, 8.5)
    centralStack = 2

    def __init__(self, time0Base = 300.65, layerSpacing = 12.6, padWidthBase = 0.635, padWidthIncrement = 0.03,
                 stackCenters = (262.0, 124.0, 0.0, -124.0, -262.0)):
        self.time0Base = time0Base
        self.layerSpacing = layerSpacing
        self.padWidthBase = padWidthBase
        self.padWidthIncrement = padWidthIncrement
        self.stackCenters = list(stackCenters)

    def __repr__(self):
        return "{}(time0Base = {}, layerSpacing = {})".format(self.__class__.__name__, self.time0Base, self.layerSpacing)

    def time0(self, layer):
        """ Radial position of the time zero (anode wire plane) of a layer. """
        return self.time0Base + self.layerSpacing * layer

    def padWidth(self, detector):
        return self.padWidthBase + self.padWidthIncrement * tracklets.detectorLayer(detector)

    def rowLayout(self, stack):
        """ (number of rows, row size) of a stack. """
        return self.centralStackRows if stack == self.centralStack else self.outerStackRows

    def nRows(self, detector):
        return self.rowLayout(tracklets.detectorStack(detector))[0]

    def rowSize(self, detector):
        return self.rowLayout(tracklets.detectorStack(detector))[1]

    def rowPos(self, detector, row):
        """ z position of the upper edge of a pad row. Row 0 is at the largest z. """
        stack = tracklets.detectorStack(detector)
        nRows, rowSize = self.rowLayout(stack)
        zTop = self.stackCenters[stack] + nRows * rowSize / 2.0
        return zTop - row * rowSize

    def sectorAlpha(self, detector):
        """ Rotation angle of the sector frame of the detector (rad). """
        return np.deg2rad(tracklets.detectorSector(detector) * 20.0 + 10.0)

    def getX(self, tracklet):
        """ Radial position of a tracklet in the sector frame. """
        return self.time0(tracklets.detectorLayer(tracklet.detector))

    def getZ(self, tracklet):
        """ z position of a tracklet, taken as the center of its pad row. """
        detector = tracklet.detector
        return self.rowPos(detector, tracklets.binZ(tracklet)) - self.rowSize(detector) / 2.0
