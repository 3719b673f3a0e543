#!/usr/bin/env python

""" Tests for the event containers.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest
import numpy as np
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.framework import eventObjects

def testTrackKinematics(loggingMixin, ef_trackFactory):
    track = ef_trackFactory(2.0, 0.4, 5.5)
    assert track.pt == pytest.approx(2.0)
    assert track.eta == pytest.approx(0.4)
    assert track.phi == pytest.approx(5.5)
    assert track.p == pytest.approx(2.0 * np.cosh(0.4))
    assert list(track.momentum) == pytest.approx([track.px, track.py, track.pz])

@pytest.mark.parametrize("filterBits, mask, expected", [
    ([5], 96, True),
    ([6], 96, True),
    ([4], 96, False),
    ([], 96, False),
    ([0, 4], 1, True),
], ids = ["Bit 5 in mask", "Bit 6 in mask", "Bit not in mask", "No bits", "TPC only"])
def testFilterMask(loggingMixin, filterBits, mask, expected):
    track = eventObjects.trackContainer(1.0, 0.0, 0.0, filterBits = filterBits)
    assert track.testFilterMask(mask) == expected

@pytest.mark.parametrize("filterBits, expected", [
    ([4], True),
    ([9], True),
    ([0, 5], False),
], ids = ["Global hybrid", "Complementary hybrid", "Not hybrid"])
def testHybridTracks(loggingMixin, filterBits, expected):
    track = eventObjects.trackContainer(1.0, 0.0, 0.0, filterBits = filterBits)
    assert track.isHybrid() == expected

def testTrackPID(loggingMixin):
    track = eventObjects.trackContainer(1.0, 0.0, 0.0, nSigmaTPC = {"electron": 0.5})
    assert track.nSigma("electron") == 0.5
    assert track.nSigma("kaon") == -999.0

def testJetCollection(loggingMixin, ef_trackFactory):
    """ Test the acceptance, ordering and constituents of a jet collection. """
    tracks = [ef_trackFactory(pt, 0.0, 1.0) for pt in [1.0, 5.0, 3.0]]
    jets = [
        eventObjects.jetContainer(pt = 5.0, eta = 0.0, phi = 1.0, constituents = [0, 2]),
        eventObjects.jetContainer(pt = 20.0, eta = 0.1, phi = 1.0, constituents = [1, 7]),
        eventObjects.jetContainer(pt = 50.0, eta = 1.5, phi = 1.0),
    ]
    collection = eventObjects.jetCollection("jets", jets, rho = 2.0, minPt = 1.0, maxEta = 0.5, particles = tracks)

    assert [j.pt for j in collection.jets] == [50.0, 20.0, 5.0]
    assert [j.pt for j in collection.acceptedJets()] == [20.0, 5.0]
    leading = collection.leadingJet()
    assert leading.pt == 20.0
    # Constituents outside of the particles are skipped.
    assert collection.constituents(leading) == [tracks[1]]
    assert collection.leadingHadronPt(collection.acceptedJets()[1]) == pytest.approx(3.0)
    assert leading.nConstituents == 2

def testNoLeadingJet(loggingMixin):
    collection = eventObjects.jetCollection("jets", [eventObjects.jetContainer(pt = 0.5, eta = 0.0, phi = 0.0)], minPt = 1.0)
    assert collection.leadingJet() is None

def testEventContainer(loggingMixin):
    event = eventObjects.eventContainer(vertex = [0.1, 0.2, 3.0], centrality = {"V0M": 12.0})
    assert event.vz == 3.0
    assert event.vertexSPD == [0.1, 0.2, 3.0]
    assert event.getCentrality("V0M") == 12.0
    assert event.getCentrality("CL1") == -1.0
    assert not event.isMC
    assert event.mcParticle(0) is None
    assert event.jetCollection("missing") is None

def testClusterPosition(loggingMixin):
    cluster = eventObjects.clusterContainer(energy = 10.0, x = 0.0, y = 440.0, z = 440.0 * np.sinh(0.3))
    eta, phi = cluster.etaPhi()
    assert eta == pytest.approx(0.3)
    assert phi == pytest.approx(np.pi / 2)
    assert cluster.pt == pytest.approx(10.0 / np.cosh(0.3))

def testEventFromDict(loggingMixin):
    """ Test building a full event from basic types, as read from the event files. """
    values = {
        "runNumber": 123,
        "vertex": [0.0, 0.0, 2.0],
        "centrality": {"V0M": 30.0},
        "tracks": [{"px": 1.0, "py": 0.0, "pz": 0.0, "filterBits": [4]}, {"px": 0.0, "py": 2.0, "pz": 0.0}],
        "clusters": [{"energy": 3.0, "x": 1.0, "y": 1.0, "z": 0.0}],
        "mcParticles": [
            {"pdg": 421, "px": 1.0, "py": 0.0, "pz": 0.0},
            {"pdg": 11, "px": 1.0, "py": 0.0, "pz": 0.0, "mother": 0,
             "trackReferences": [{"x": 300.0, "y": 0.0, "z": 0.0, "localX": 300.0, "localY": 0.0, "alpha": 0.17, "pt": 1.0}]},
        ],
        "jetCollections": {
            "detectorJets": {"rho": 1.5, "jets": [{"pt": 10.0, "eta": 0.0, "phi": 0.0, "constituents": [0, 1]}]},
            "particleJets": {"level": "particle", "jets": [{"pt": 9.0, "eta": 0.0, "phi": 0.0, "constituents": [1]}]},
        },
        "trdTracklets": [{"hcID": 3, "word": 0x12345, "label": -2}],
        "trdTracks": [{"pt": 2.0, "tracklets": [0, None, -1, None, None, None]}],
    }
    event = eventObjects.eventFromDict(values)

    assert event.runNumber == 123
    assert event.isMC
    assert len(event.tracks) == 2
    assert event.tracks[0].isHybrid()
    assert len(event.clusters) == 1

    electron = event.mcParticle(1)
    assert electron.pdg == 11
    assert len(electron.trackReferences) == 1
    ref = electron.trackReferences[0]
    assert ref.label == 1
    assert ref.detectorID == eventObjects.TRD_DETECTOR_ID

    detectorJets = event.jetCollection("detectorJets")
    assert detectorJets.rho == 1.5
    assert detectorJets.constituents(detectorJets.jets[0]) == event.tracks
    particleJets = event.jetCollection("particleJets")
    assert particleJets.constituents(particleJets.jets[0]) == [electron]

    assert event.trdTracklets[0].detector == 1
    assert event.trdTracks[0].tracklets[0] is event.trdTracklets[0]
    assert event.trdTracks[0].tracklets[1:] == [None] * 5
