#!/usr/bin/env python

""" Tests for the heavy-flavour jet tagging helpers.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import pytest
import numpy as np
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.framework import eventObjects
from aliceanalysis.jets import tagging

from tests.unit.fixtures.hfeFixtures import emcalRadius

@pytest.mark.parametrize("phi, expectedEMCal, expectedDCal", [
    (2.0, True, False),
    (5.0, False, True),
    (0.5, False, False),
    (4.0, False, False),
], ids = ["EMCal", "DCal", "Neither", "Gap between calorimeters"])
def testCalorimeterAcceptance(loggingMixin, phi, expectedEMCal, expectedDCal):
    assert tagging.emcalPhiAcceptance(phi) == expectedEMCal
    assert tagging.dcalPhiAcceptance(phi) == expectedDCal

@pytest.fixture
def constituents(ef_trackFactory):
    """ Electron, followed by two hadrons. """
    return [ef_trackFactory(5.0, 0.1, 2.0), ef_trackFactory(3.0, 0.2, 2.1), ef_trackFactory(2.0, -0.1, 1.9)]

def testTagHFjet(loggingMixin, constituents, ef_trackFactory):
    electron = constituents[0]
    assert tagging.tagHFjet(constituents, electron.momentum)
    other = ef_trackFactory(5.0, 0.1, 2.2)
    assert not tagging.tagHFjet(constituents, other.momentum)
    assert not tagging.tagHFjet([], electron.momentum)

def testReduceJetEnergyScale(loggingMixin, mocker, constituents):
    """ The electron is always kept, while the other constituents are dropped when the draw is below the efficiency. """
    rng = mocker.MagicMock()
    rng.uniform.side_effect = [0.01, 0.5, 0.02]
    ptSum = tagging.reduceJetEnergyScale(constituents, constituents[0].momentum, efficiency = 0.04, rng = rng)
    assert ptSum == pytest.approx(5.0 + 3.0)
    assert rng.uniform.call_count == 3

def testRandomCone(loggingMixin, mocker, ef_trackFactory):
    """ The first cone overlaps with the leading jet, so the second cone is used. """
    rng = mocker.MagicMock()
    rng.uniform.side_effect = [1.1, 0.0, 2.5, 0.0]
    tracks = [
        ef_trackFactory(3.0, 0.1, 2.6, filterBits = [4]),
        ef_trackFactory(7.0, 0.1, 2.6, filterBits = [0]),
        ef_trackFactory(4.0, 0.0, 0.5, filterBits = [9]),
        ef_trackFactory(0.1, 0.0, 2.5, filterBits = [4]),
    ]
    ptSum = tagging.calRandomCone([1.0, 4.0], [0.0, 0.0], 0.4, tracks, rng)
    assert ptSum == pytest.approx(3.0)

def testRandomConeNearLeadingJet(loggingMixin, mocker, ef_trackFactory):
    """ A cone which passes the jet exclusion but is within 1.0 of the leading jet doesn't sum any tracks. """
    rng = mocker.MagicMock()
    rng.uniform.side_effect = [1.8, 0.0]
    tracks = [ef_trackFactory(5.0, 0.0, 1.8, filterBits = [4])]
    ptSum = tagging.calRandomCone([1.0, 4.0], [0.0, 0.0], 0.3, tracks, rng)
    assert ptSum == 0.0
    assert rng.uniform.call_count == 2
    assert "Could not place" not in loggingMixin.text

def testRandomConeWithTaggedJet(loggingMixin, mocker):
    """ A cone close to the tagged jet is rejected even when it is far from the leading jets. """
    rng = mocker.MagicMock()
    rng.uniform.side_effect = [2.5, 0.0, 5.5, 0.0]
    ptSum = tagging.calRandomCone([1.0, 4.0, 2.6], [0.0, 0.0, 0.0], 0.4, [], rng)
    assert ptSum == 0.0
    assert rng.uniform.call_count == 4
    assert "Could not place" not in loggingMixin.text

def testRandomConeCannotBePlaced(loggingMixin, mocker):
    rng = mocker.MagicMock()
    rng.uniform.return_value = 0.0
    ptSum = tagging.calRandomCone([0.0, 0.0], [0.0, 0.0], 0.4, [], rng, maxTries = 2)
    assert ptSum == 0.0
    assert "Could not place a random cone" in loggingMixin.text

@pytest.mark.parametrize("jetValues, expected", [
    ([(20, 0.5), (15, 0.5)], 0.0),
    ([(20, 0.5), (15, 0.5), (2, 0.4), (0.05, 0.2), (1, 0.4)], 0.8),
    ([(20, 0.5), (15, 0.5), (0.01, 0.4)], 0.0),
], ids = ["Only leading jets", "Mixed", "Only ghost jets"])
def testOccupancyCorrection(loggingMixin, jetValues, expected):
    jets = [eventObjects.jetContainer(pt = pt, eta = 0.0, phi = 1.0, area = area) for pt, area in jetValues]
    assert tagging.calOccCorrection(jets) == pytest.approx(expected)

def clusterAt(energy, eta, phi, isEMCal = True):
    return eventObjects.clusterContainer(energy = energy, x = emcalRadius * np.cos(phi), y = emcalRadius * np.sin(phi),
                                         z = emcalRadius * np.sinh(eta), isEMCal = isEMCal)

def testIsolationCut(loggingMixin):
    matched = clusterAt(10.0, 0.0, 2.0)
    clusters = [
        matched,
        clusterAt(2.0, 0.0, 2.1),
        clusterAt(4.0, 0.0, 3.0),
        clusterAt(8.0, 0.05, 2.05, isEMCal = False),
    ]
    matchEta, matchPhi = matched.etaPhi()
    assert tagging.isolationCut(clusters, matchPhi, matchEta, matched.energy) == pytest.approx(0.2)

@pytest.mark.parametrize("pdg, expectedHF, expectedPhotonic", [
    (421, True, False),
    (-411, True, False),
    (521, True, False),
    (111, False, True),
    (221, False, True),
    (22, False, True),
    (211, False, False),
], ids = ["D0", "D- meson", "B+", "pi0", "eta", "photon", "Charged pion"])
def testOriginClassification(loggingMixin, pdg, expectedHF, expectedPhotonic):
    assert tagging.isHeavyFlavour(pdg) == expectedHF
    assert tagging.isPhotonic(pdg) == expectedPhotonic

def testFindMother(loggingMixin):
    particles = [
        eventObjects.mcParticleContainer(pdg = 2212, px = 0.0, py = 0.0, pz = 100.0),
        eventObjects.mcParticleContainer(pdg = -421, px = 3.0, py = 4.0, pz = 0.0),
        eventObjects.mcParticleContainer(pdg = 11, px = 1.0, py = 0.0, pz = 0.0, mother = 1),
        eventObjects.mcParticleContainer(pdg = 11, px = 1.0, py = 0.0, pz = 0.0, mother = 10),
    ]
    label, pdg, pt = tagging.findMother(particles, particles[2])
    assert (label, pdg) == (1, 421)
    assert pt == pytest.approx(5.0)
    assert tagging.findMother(particles, particles[0]) == (-1, -99, 0.0)
    assert tagging.findMother(particles, particles[3]) == (-1, -99, 0.0)

@pytest.mark.parametrize("p1, m1, p2, m2, expected", [
    ([1.0, 0.0, 0.0], 0.0, [-1.0, 0.0, 0.0], 0.0, 2.0),
    ([1.0, 0.0, 0.0], 0.0, [1.0, 0.0, 0.0], 0.0, 0.0),
    ([0.0, 0.0, 0.0], 0.5, [0.0, 0.0, 0.0], 0.5, 1.0),
], ids = ["Back to back photons", "Collinear photons", "Pair at rest"])
def testInvariantMass(loggingMixin, p1, m1, p2, m2, expected):
    assert tagging.invariantMass(p1, m1, p2, m2) == pytest.approx(expected, abs = 1e-9)

def testEmbeddedSpectrumWeights(loggingMixin):
    assert tagging.pi0Weight(1.0) > tagging.pi0Weight(5.0) > tagging.pi0Weight(10.0) > 0
    # At the normalization point, the eta weight is 0.48 of the pi0 weight, up to the jacobian.
    jacobian = 5.0 / np.sqrt(25.0 + tagging.etaMass ** 2 - tagging.pionMass ** 2)
    assert tagging.etaWeight(5.0) / tagging.pi0Weight(5.0) == pytest.approx(0.48 * jacobian, rel = 1e-3)
