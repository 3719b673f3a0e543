#!/usr/bin/env python

""" Non-uniform acceptance (NUA) weights.

Weights are stored as a histogram in (phi, eta) or (phi, eta, vz). They are built from a measured
particle distribution by flattening the phi distribution of each eta (and vz) slice.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..framework import histograms
from .corrTask import FlowException

logger = logging.getLogger(__name__)

class FlowWeights(object):
    """ Per particle weights used to correct for a non-uniform acceptance.

    Args:
        hist (histograms.Histogram): Weights histogram in (phi, eta) or (phi, eta, vz). Default: None,
            which corresponds to unit weights.

    Attributes:
        hist (histograms.Histogram): Weights histogram.
    """
    def __init__(self, hist = None):
        if hist is not None and hist.dimension not in [2, 3]:
            raise FlowException(msg = "InvalidWeightsDimension", name = hist.name, dimension = hist.dimension)
        self.hist = hist

    def __repr__(self):
        return "{}(hist = {})".format(self.__class__.__name__, self.hist)

    @property
    def loaded(self):
        return self.hist is not None

    @property
    def uses3D(self):
        return self.hist is not None and self.hist.dimension == 3

    def getWeight(self, phi, eta, vz = 0.0):
        """ Retrieve the weight for a particle.

        Args:
            phi (float): Particle azimuth.
            eta (float): Particle pseudorapidity.
            vz (float): z vertex of the event. Only used for 3D weights. Default: 0.
        Returns:
            float: The weight. 1 if no weights are loaded, if the particle is outside of the weights
                histogram or if the stored weight is 0.
        """
        if self.hist is None:
            return 1.0
        values = (phi, eta, vz) if self.uses3D else (phi, eta)
        index = self.hist.findBin(*values)
        for axis, binNumber in zip(self.hist.axes, index):
            if binNumber < 1 or binNumber > axis.nBins:
                return 1.0
        weight = self.hist.contents[index]
        if weight == 0:
            return 1.0
        return float(weight)

    @classmethod
    def fromDistribution(cls, distribution, name = "weights"):
        """ Build the weights from a measured particle distribution.

        For each eta (and vz) slice, the weight of each phi bin is ``max / N``, where max is the
        maximum number of entries of the phi bins in that slice. Empty bins are assigned a weight of 1.

        Args:
            distribution (histograms.Histogram): Particle distribution in (phi, eta) or (phi, eta, vz).
            name (str): Name of the weights histogram. Default: "weights".
        Returns:
            FlowWeights: The weights.
        """
        if distribution.dimension not in [2, 3]:
            raise FlowException(msg = "InvalidDistributionDimension", name = distribution.name,
                                dimension = distribution.dimension)
        hist = histograms.Histogram(name, "NUA weights", distribution.axes)
        regular = tuple(slice(1, -1) for _ in distribution.axes)
        counts = distribution.contents[regular]
        # Maximum over phi (axis 0) for each eta (and vz) slice.
        maximum = counts.max(axis = 0, keepdims = True)
        weights = np.divide(np.broadcast_to(maximum, counts.shape), counts, out = np.ones_like(counts), where = counts > 0)
        hist.contents[regular] = weights
        logger.debug("Built weights {} from distribution {} with {} entries".format(name, distribution.name, distribution.entries))
        return cls(hist)

    @classmethod
    def fromDict(cls, values, isDistribution = False, name = "weights"):
        """ Build the weights from a stored histogram summary (as written by ``Histogram.toDict()``).

        Args:
            values (dict): Histogram summary with ``edges`` and ``contents``.
            isDistribution (bool): If True, the stored histogram is a particle distribution, which
                will be converted into weights. Default: False.
            name (str): Name of the weights histogram. Default: "weights".
        Returns:
            FlowWeights: The weights.
        """
        axes = [histograms.Axis(edges = edges) for edges in values["edges"]]
        hist = histograms.Histogram(name, values.get("title", ""), axes)
        contents = np.asarray(values["contents"], dtype = np.float64)
        regular = tuple(slice(1, -1) for _ in axes)
        if contents.shape != hist.contents[regular].shape:
            raise FlowException(msg = "ContentsShapeMismatch", name = name, expected = hist.contents[regular].shape,
                                got = contents.shape)
        hist.contents[regular] = contents
        if isDistribution:
            return cls.fromDistribution(hist, name = name)
        return cls(hist)
