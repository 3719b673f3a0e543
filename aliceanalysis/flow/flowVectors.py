#!/usr/bin/env python

""" Flow vectors and the multi-particle correlators built from them.

Flow vectors are defined as ``Q(n, p) = sum_i w_i^p exp(i n phi_i)``, where the sum is over the particles
of a given selection. Multi-particle correlators are the sum over *distinct* particle tuples of
``prod_k w_k exp(i n_k phi_k)``. They are expressed in terms of the flow vectors, which subtracts the
autocorrelations (tuples where the same particle appears more than once).

The particle selections of an event are:

- ``Q``: reference flow particles (RFPs).
- ``p``: particles of interest (POIs) in the current pt bin.
- ``q``: POIs in the current pt bin which are also RFPs.
- ``pPtB``, ``qPtB``: As for ``p`` and ``q``, but for a second pt bin.

Each selection is also available in two sub-events separated by an eta gap, denoted by the
``Gap10M`` (negative eta) and ``Gap10P`` (positive eta) suffixes.

The correlator of a given set of harmonics evaluated with all harmonics set to 0 is the number of
(weighted) tuples, which is used as the denominator (event weight).

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import math
import logging

import numpy as np

from .corrTask import FlowException

logger = logging.getLogger(__name__)

class FlowVectors(object):
    """ Weighted flow vectors ``Q(n, p)`` for one particle selection.

    Args:
        maxHarmonic (int): Maximum harmonic which can be requested. Default: 12.
        maxPower (int): Maximum weight power which can be requested. Default: 8.

    Attributes:
        vectors (numpy.ndarray): Complex array of shape ``(maxHarmonic + 1, maxPower + 1)``.
        multiplicity (int): Number of particles which were filled.
    """
    def __init__(self, maxHarmonic = 12, maxPower = 8):
        self.maxHarmonic = maxHarmonic
        self.maxPower = maxPower
        self.vectors = np.zeros((maxHarmonic + 1, maxPower + 1), dtype = np.complex128)
        self.multiplicity = 0

    def __repr__(self):
        return "{}(maxHarmonic = {}, maxPower = {}, multiplicity = {})".format(self.__class__.__name__, self.maxHarmonic,
                                                                               self.maxPower, self.multiplicity)

    def reset(self):
        self.vectors[...] = 0
        self.multiplicity = 0

    def fill(self, phis, weights = None):
        """ Add particles to the flow vectors.

        Args:
            phis (float or numpy.ndarray): Azimuthal angles of the particles.
            weights (float or numpy.ndarray): Weights of the particles. Default: None, which corresponds to unit weights.
        Returns:
            None.
        """
        phis = np.atleast_1d(np.asarray(phis, dtype = np.float64))
        if weights is None:
            weights = np.ones_like(phis)
        weights = np.atleast_1d(np.asarray(weights, dtype = np.float64))
        if weights.shape != phis.shape:
            raise FlowException(msg = "WeightsShapeMismatch", phis = phis.shape, weights = weights.shape)
        if len(phis) == 0:
            return

        # Shape: (nHarmonics, nParticles)
        phases = np.exp(1j * np.outer(np.arange(self.maxHarmonic + 1), phis))
        # Shape: (nParticles, nPowers)
        weightPowers = np.power.outer(weights, np.arange(self.maxPower + 1))
        self.vectors += phases @ weightPowers
        self.multiplicity += len(phis)

    def get(self, n, p):
        """ Retrieve ``Q(n, p)``. Negative harmonics are given by the complex conjugate.

        Args:
            n (int): Harmonic.
            p (int): Power of the weights.
        Returns:
            complex: The flow vector.
        """
        if abs(n) > self.maxHarmonic or p < 0 or p > self.maxPower:
            raise FlowException(msg = "FlowVectorOutOfRange", n = n, p = p,
                                maxHarmonic = self.maxHarmonic, maxPower = self.maxPower)
        if n >= 0:
            return complex(self.vectors[n, p])
        return complex(np.conj(self.vectors[-n, p]))

    __call__ = get

def setPartitions(elements):
    """ Generate all partitions of a list into non-empty blocks.

    Args:
        elements (list): Elements to partition.
    Yields:
        list: Partition as a list of blocks, where each block is a list of elements.
    """
    if not elements:
        yield []
        return
    first, rest = elements[0], elements[1:]
    for partition in setPartitions(rest):
        yield [[first]] + partition
        for i in range(len(partition)):
            yield partition[:i] + [[first] + partition[i]] + partition[i + 1:]

class FlowVectorSet(object):
    """ All flow vectors of an event, along with the correlators which are calculated from them.

    Args:
        maxHarmonic (int): Maximum harmonic of the flow vectors. Default: 12.
        maxPower (int): Maximum weight power of the flow vectors. Default: 8.

    Attributes:
        sameBin (bool): True if the two pt bins (A and B) are the same bin. In that case, tuples which
            share a POI between the two bins are autocorrelations and are removed. Default: False.
    """
    rfpNames = ["Q", "QGap10M", "QGap10P"]
    poiNames = ["p", "pGap10M", "pGap10P", "q", "qGap10M", "qGap10P"]
    ptBNames = ["pPtB", "pPtBGap10M", "pPtBGap10P", "qPtB", "qPtBGap10M", "qPtBGap10P"]

    def __init__(self, maxHarmonic = 12, maxPower = 8):
        for name in self.rfpNames + self.poiNames + self.ptBNames:
            setattr(self, name, FlowVectors(maxHarmonic = maxHarmonic, maxPower = maxPower))
        self.sameBin = False

    def __repr__(self):
        return "{}(multiplicity = {}, sameBin = {})".format(self.__class__.__name__, self.Q.multiplicity, self.sameBin)

    def _resetVectors(self, names):
        for name in names:
            getattr(self, name).reset()

    def reset(self):
        self._resetVectors(self.rfpNames + self.poiNames + self.ptBNames)
        self.sameBin = False

    def resetPOIs(self):
        self._resetVectors(self.poiNames)

    def resetPtB(self):
        self._resetVectors(self.ptBNames)

    # Convenient aliases for the first pt bin.
    @property
    def pPtA(self):
        return self.p

    @property
    def qPtA(self):
        return self.q

    ###################################################
    # Reference flow
    ###################################################
    def two(self, n1, n2):
        Q = self.Q
        return Q(n1, 1) * Q(n2, 1) - Q(n1 + n2, 2)

    def twoGap10(self, n1, n2):
        return self.QGap10M(n1, 1) * self.QGap10P(n2, 1)

    def three(self, n1, n2, n3):
        Q = self.Q
        return (Q(n1, 1) * Q(n2, 1) * Q(n3, 1) - Q(n1 + n2, 2) * Q(n3, 1) - Q(n2, 1) * Q(n1 + n3, 2)
                - Q(n1, 1) * Q(n2 + n3, 2) + 2.0 * Q(n1 + n2 + n3, 3))

    def threeGapP(self, n1, n2, n3):
        """ Three particle correlator with the first two particles from the positive eta sub-event. """
        QM, QP = self.QGap10M, self.QGap10P
        return (QP(n1, 1) * QP(n2, 1) - QP(n1 + n2, 2)) * QM(n3, 1)

    def threeGapM(self, n1, n2, n3):
        """ Three particle correlator with the first two particles from the negative eta sub-event. """
        QM, QP = self.QGap10M, self.QGap10P
        return (QM(n1, 1) * QM(n2, 1) - QM(n1 + n2, 2)) * QP(n3, 1)

    def four(self, n1, n2, n3, n4):
        Q = self.Q
        return (Q(n1, 1) * Q(n2, 1) * Q(n3, 1) * Q(n4, 1)
                - Q(n1 + n2, 2) * Q(n3, 1) * Q(n4, 1)
                - Q(n2, 1) * Q(n1 + n3, 2) * Q(n4, 1)
                - Q(n1, 1) * Q(n2 + n3, 2) * Q(n4, 1)
                + 2.0 * Q(n1 + n2 + n3, 3) * Q(n4, 1)
                - Q(n2, 1) * Q(n3, 1) * Q(n1 + n4, 2)
                + Q(n2 + n3, 2) * Q(n1 + n4, 2)
                - Q(n1, 1) * Q(n3, 1) * Q(n2 + n4, 2)
                + Q(n1 + n3, 2) * Q(n2 + n4, 2)
                + 2.0 * Q(n3, 1) * Q(n1 + n2 + n4, 3)
                - Q(n1, 1) * Q(n2, 1) * Q(n3 + n4, 2)
                + Q(n1 + n2, 2) * Q(n3 + n4, 2)
                + 2.0 * Q(n2, 1) * Q(n1 + n3 + n4, 3)
                + 2.0 * Q(n1, 1) * Q(n2 + n3 + n4, 3)
                - 6.0 * Q(n1 + n2 + n3 + n4, 4))

    def fourGap10(self, n1, n2, n3, n4):
        """ Four particle correlator with the first two particles from the negative eta sub-event. """
        QM, QP = self.QGap10M, self.QGap10P
        return (QM(n1, 1) * QM(n2, 1) - QM(n1 + n2, 2)) * (QP(n3, 1) * QP(n4, 1) - QP(n3 + n4, 2))

    def five(self, n1, n2, n3, n4, n5):
        return self.recursion([n1, n2, n3, n4, n5])

    def six(self, n1, n2, n3, n4, n5, n6):
        return self.recursion([n1, n2, n3, n4, n5, n6])

    def seven(self, n1, n2, n3, n4, n5, n6, n7):
        return self.recursion([n1, n2, n3, n4, n5, n6, n7])

    def eight(self, n1, n2, n3, n4, n5, n6, n7, n8):
        return self.recursion([n1, n2, n3, n4, n5, n6, n7, n8])

    def recursion(self, harmonics, mult = 1, skip = 0):
        """ Generic recursive calculation of an n-particle reference correlator.

        See Bilandzic et al., Phys. Rev. C 89, 064904 (2014).

        Args:
            harmonics (list): Harmonic of each particle.
            mult (int): Multiplicity of the combined harmonic. Only used in the recursion. Default: 1.
            skip (int): Index below which the harmonics are not combined. Only used in the recursion. Default: 0.
        Returns:
            complex: The correlator.
        """
        return self._recursion(len(harmonics), list(harmonics), mult, skip)

    def _recursion(self, n, harmonics, mult = 1, skip = 0):
        # NOTE: ``harmonics`` is modified in place, but it is restored before returning.
        nm1 = n - 1
        c = self.Q(harmonics[nm1], mult)
        if nm1 == 0:
            return c
        c *= self._recursion(nm1, harmonics)
        if nm1 == skip:
            return c

        multp1 = mult + 1
        nm2 = n - 2
        counter1 = 0
        hhold = harmonics[counter1]
        harmonics[counter1] = harmonics[nm2]
        harmonics[nm2] = hhold + harmonics[nm1]
        c2 = self._recursion(nm1, harmonics, multp1, nm2)
        counter2 = n - 3
        while counter2 >= skip:
            harmonics[nm2] = harmonics[counter1]
            harmonics[counter1] = hhold
            counter1 += 1
            hhold = harmonics[counter1]
            harmonics[counter1] = harmonics[nm2]
            harmonics[nm2] = hhold + harmonics[nm1]
            c2 += self._recursion(nm1, harmonics, multp1, counter2)
            counter2 -= 1
        harmonics[nm2] = harmonics[counter1]
        harmonics[counter1] = hhold

        if mult == 1:
            return c - c2
        return c - mult * c2

    ###################################################
    # Differential flow
    ###################################################
    def twoDiff(self, n1, n2):
        return self.p(n1, 1) * self.Q(n2, 1) - self.q(n1 + n2, 2)

    def twoDiffGap10M(self, n1, n2):
        """ POI from the negative eta sub-event, RFP from the positive one. """
        return self.pGap10M(n1, 1) * self.QGap10P(n2, 1)

    def twoDiffGap10P(self, n1, n2):
        """ POI from the positive eta sub-event, RFP from the negative one. """
        return self.pGap10P(n1, 1) * self.QGap10M(n2, 1)

    def threeDiff(self, n1, n2, n3):
        p, q, Q = self.p, self.q, self.Q
        return (p(n1, 1) * (Q(n2, 1) * Q(n3, 1) - Q(n2 + n3, 2))
                - q(n1 + n2, 2) * Q(n3, 1) - q(n1 + n3, 2) * Q(n2, 1)
                + 2.0 * q(n1 + n2 + n3, 3))

    def threeDiffGapP(self, n1, n2, n3):
        """ POI and the first RFP from the positive eta sub-event, the last RFP from the negative one. """
        return (self.pGap10P(n1, 1) * self.QGap10P(n2, 1) - self.qGap10P(n1 + n2, 2)) * self.QGap10M(n3, 1)

    def threeDiffGapM(self, n1, n2, n3):
        """ POI and the first RFP from the negative eta sub-event, the last RFP from the positive one. """
        return (self.pGap10M(n1, 1) * self.QGap10M(n2, 1) - self.qGap10M(n1 + n2, 2)) * self.QGap10P(n3, 1)

    def fourDiff(self, n1, n2, n3, n4):
        p, q, Q = self.p, self.q, self.Q
        return (p(n1, 1) * Q(n2, 1) * Q(n3, 1) * Q(n4, 1)
                - q(n1 + n2, 2) * Q(n3, 1) * Q(n4, 1)
                - Q(n2, 1) * q(n1 + n3, 2) * Q(n4, 1)
                - p(n1, 1) * Q(n2 + n3, 2) * Q(n4, 1)
                + 2.0 * q(n1 + n2 + n3, 3) * Q(n4, 1)
                - Q(n2, 1) * Q(n3, 1) * q(n1 + n4, 2)
                + Q(n2 + n3, 2) * q(n1 + n4, 2)
                - p(n1, 1) * Q(n3, 1) * Q(n2 + n4, 2)
                + q(n1 + n3, 2) * Q(n2 + n4, 2)
                + 2.0 * Q(n3, 1) * q(n1 + n2 + n4, 3)
                - p(n1, 1) * Q(n2, 1) * Q(n3 + n4, 2)
                + q(n1 + n2, 2) * Q(n3 + n4, 2)
                + 2.0 * Q(n2, 1) * q(n1 + n3 + n4, 3)
                + 2.0 * p(n1, 1) * Q(n2 + n3 + n4, 3)
                - 6.0 * q(n1 + n2 + n3 + n4, 4))

    def fourDiffGap10P(self, n1, n2, n3, n4):
        """ POI and one RFP from the positive eta sub-event, the other two RFPs from the negative one. """
        QM = self.QGap10M
        return ((self.pGap10P(n1, 1) * self.QGap10P(n2, 1) - self.qGap10P(n1 + n2, 2))
                * (QM(n3, 1) * QM(n4, 1) - QM(n3 + n4, 2)))

    def fourDiffGap10M(self, n1, n2, n3, n4):
        """ POI and one RFP from the negative eta sub-event, the other two RFPs from the positive one. """
        QP = self.QGap10P
        return ((self.pGap10M(n1, 1) * self.QGap10M(n2, 1) - self.qGap10M(n1 + n2, 2))
                * (QP(n3, 1) * QP(n4, 1) - QP(n3 + n4, 2)))

    def sixDiff(self, n1, n2, n3, n4, n5, n6):
        return self.mixedCorrelator([n1, n2, n3, n4, n5, n6], roles = ["A", "R", "R", "R", "R", "R"])

    ###################################################
    # pt-pt correlations
    ###################################################
    def twoDiff_PtA_PtB(self, n1, n2):
        formula = self.p(n1, 1) * self.pPtB(n2, 1)
        if self.sameBin:
            formula -= self.p(n1 + n2, 2)
        return formula

    def twoDiffGap10_PtA_PtB(self, n1, n2):
        """ POI in pt bin A from the negative eta sub-event, POI in pt bin B from the positive one. """
        return self.pGap10M(n1, 1) * self.pPtBGap10P(n2, 1)

    def fourDiff_PtA_PtA(self, n1, n2, n3, n4):
        """ Two POIs from pt bin A, followed by two RFPs. """
        return self.mixedCorrelator([n1, n2, n3, n4], roles = ["A", "A", "R", "R"])

    def fourDiff_PtA_PtB(self, n1, n2, n3, n4):
        """ POI from pt bin A, POI from pt bin B, followed by two RFPs. """
        return self.mixedCorrelator([n1, n2, n3, n4], roles = ["A", "B", "R", "R"])

    def fourDiffGap10_PtA_PtB(self, n1, n2, n3, n4):
        """ POI from pt bin A with the first RFP in the negative eta sub-event. POI from pt bin B with
        the second RFP in the positive eta sub-event. """
        return ((self.pGap10M(n1, 1) * self.QGap10M(n3, 1) - self.qGap10M(n1 + n3, 2))
                * (self.pPtBGap10P(n2, 1) * self.QGap10P(n4, 1) - self.qPtBGap10P(n2 + n4, 2)))

    ###################################################
    # Generic correlators
    ###################################################
    def _blockVectors(self, roles, region):
        """ Select the flow vectors for a group of coinciding particles.

        Args:
            roles (set): Roles of the particles in the group. "R" for a RFP, "A" for a POI in pt bin A,
                and "B" for a POI in pt bin B.
            region (str): Sub-event suffix (ex. "Gap10M"), or "" for the full event.
        Returns:
            FlowVectors: The vectors, or None if a single particle can't fulfill all of the roles.
        """
        hasA = "A" in roles
        hasB = "B" in roles
        if hasA and hasB:
            if not self.sameBin:
                return None
            hasB = False
        if hasA:
            name = "q" if "R" in roles else "p"
        elif hasB:
            name = "qPtB" if "R" in roles else "pPtB"
        else:
            name = "Q"
        return getattr(self, name + region)

    def mixedCorrelator(self, harmonics, roles, region = ""):
        """ Correlator of particles with arbitrary roles, calculated by removing all autocorrelations.

        The sum over distinct tuples is given by the sum over all set partitions of the particles,
        where each block of coinciding particles contributes ``(-1)^(k-1) (k-1)! V(sum n, k)`` for a
        block of size k. V is the flow vector of the particles which can fulfill every role in the block.

        Args:
            harmonics (list): Harmonic of each particle.
            roles (list): Role of each particle ("R", "A" or "B").
            region (str): Sub-event suffix, or "" for the full event. Default: "".
        Returns:
            complex: The correlator.
        """
        if len(harmonics) != len(roles):
            raise FlowException(msg = "RolesMismatch", harmonics = harmonics, roles = roles)
        total = 0j
        for partition in setPartitions(list(range(len(harmonics)))):
            term = 1.0 + 0j
            for block in partition:
                vectors = self._blockVectors(set(roles[i] for i in block), region)
                if vectors is None:
                    term = 0j
                    break
                size = len(block)
                term *= (-1) ** (size - 1) * math.factorial(size - 1) * vectors(sum(harmonics[i] for i in block), size)
            total += term
        return total
