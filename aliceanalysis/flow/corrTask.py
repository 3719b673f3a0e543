#!/usr/bin/env python

""" Definition of a single requested correlator.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

logger = logging.getLogger(__name__)

class FlowException(Exception):
    """ Raised for invalid flow correlator definitions or usage. """
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __str__(self):
        return ", ".join("{}:{}".format(k, v) for k, v in self.kwargs.items())

class CorrTask(object):
    """ A multi-particle correlator which should be calculated for each event.

    Args:
        harmonics (list): Harmonic of each particle in the correlator. Between 2 and 8 harmonics are supported.
        gaps (list): Eta gaps between sub-events. At most one gap is supported. Default: ().
        doRFPs (bool): Calculate the reference (integrated) correlator. Default: True.
        doPOIs (bool): Calculate the differential correlators. Default: True.

    Attributes:
        harmonics (tuple): Harmonic of each particle.
        gaps (tuple): Eta gaps.
        doRFPs (bool): Calculate the reference correlator.
        doPOIs (bool): Calculate the differential correlators.
        name (str): Name of the correlator, for example ``<<4>>(2,2,-2,-2)`` or ``<<2>>(2,-2)_2sub(0.8)``.
    """
    minHarmonics = 2
    maxHarmonics = 8
    maxGaps = 1

    def __init__(self, harmonics, gaps = (), doRFPs = True, doPOIs = True):
        harmonics = tuple(int(h) for h in harmonics)
        gaps = tuple(float(g) for g in gaps) if gaps else ()
        if not self.minHarmonics <= len(harmonics) <= self.maxHarmonics:
            raise FlowException(msg = "InvalidNumberOfHarmonics", harmonics = harmonics,
                                allowed = "{}-{}".format(self.minHarmonics, self.maxHarmonics))
        if len(gaps) > self.maxGaps:
            raise FlowException(msg = "TooManyGaps", gaps = gaps, maxGaps = self.maxGaps)
        if any(g < 0 for g in gaps):
            raise FlowException(msg = "NegativeGap", gaps = gaps)
        if gaps and len(harmonics) > 4:
            raise FlowException(msg = "GapNotSupported", harmonics = harmonics, gaps = gaps)
        if not doRFPs and not doPOIs:
            logger.warning("Correlator with harmonics {} requests neither RFPs nor POIs. It will never be filled.".format(harmonics))

        self.harmonics = harmonics
        self.gaps = gaps
        self.doRFPs = doRFPs
        self.doPOIs = doPOIs
        self.name = self._createName()

    def __repr__(self):
        return "{}(harmonics = {}, gaps = {}, doRFPs = {}, doPOIs = {})".format(self.__class__.__name__, self.harmonics,
                                                                                self.gaps, self.doRFPs, self.doPOIs)

    def __str__(self):
        return self.name

    def _createName(self):
        name = "<<{}>>({})".format(len(self.harmonics), ",".join(str(h) for h in self.harmonics))
        if self.gaps:
            name += "_2sub({})".format(",".join("{:.2g}".format(g) for g in self.gaps))
        return name

    @property
    def numHarmonics(self):
        return len(self.harmonics)

    @property
    def hasGap(self):
        return len(self.gaps) > 0

    @property
    def gap(self):
        """ The eta gap, or None if there isn't one. """
        return self.gaps[0] if self.gaps else None

    @classmethod
    def fromConfig(cls, values):
        """ Create a correlator from a configuration entry.

        Args:
            values (dict or list): Either a list of harmonics, or a dict with the keys ``harmonics``,
                and optionally ``gaps``, ``doRFPs`` and ``doPOIs``.
        Returns:
            CorrTask: The correlator.
        """
        if isinstance(values, dict):
            return cls(**values)
        return cls(harmonics = values)
