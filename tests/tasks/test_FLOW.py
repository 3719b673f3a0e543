#!/usr/bin/env python

""" Tests for the flow and decorrelation task.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import pytest
import itertools
import numpy as np
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.framework import analysisTask
from aliceanalysis.framework import eventObjects
from aliceanalysis.tasks import FLOW

from tests.unit.fixtures.eventFixtures import trackFromPtEtaPhi

def createTask(**kwargs):
    """ Create and initialize a flow task. Selected centralities are [0, 50), while the tracks are in pt bin [1, 2). """
    parameters = {
        "name": "FLOW",
        "centralityBins": [0.0, 10.0, 20.0, 50.0],
        "ptBins": [0.2, 1.0, 2.0, 3.0],
        "hasGap": True,
        "etaGap": 1.0,
        "fillWeights": True,
        "doRef": True,
        "doDiff": True,
        "doPtB": False,
        "randomSeed": 1,
        "correlators": [[2, -2], {"harmonics": [2, -2], "gaps": [1.0]}],
    }
    parameters.update(kwargs)
    task = FLOW.createFLOWTask(parameters)
    task.createOutputObjects()
    return task

def sumOfPairs(phisA, phisB, exclude = True):
    """ Sum of cos(2 (phi_i - phi_j)) over pairs, along with the number of pairs. """
    total = 0.0
    nPairs = 0
    for (i, phiA), (j, phiB) in itertools.product(enumerate(phisA), enumerate(phisB)):
        if exclude and i == j:
            continue
        total += np.cos(2 * (phiA - phiB))
        nPairs += 1
    return (total, nPairs)

def testReferenceTwoParticle(loggingMixin, ef_flowEvent, ef_flowTracks):
    task = createTask()
    task.userExec(ef_flowEvent)

    phis = [phi for _, _, phi in ef_flowTracks]
    total, nPairs = sumOfPairs(phis, phis)
    profile = task.hist("Ref_<<2>>(2,-2)")
    index = profile.findBin(15.0)
    assert profile.getBinEntries(*index) == pytest.approx(nPairs)
    assert nPairs == 90
    assert profile.getBinContent(*index) == pytest.approx(total / nPairs)

def testReferenceWithGap(loggingMixin, ef_flowEvent, ef_flowTracks):
    task = createTask()
    task.userExec(ef_flowEvent)

    negative = [phi for _, eta, phi in ef_flowTracks if eta < 0]
    positive = [phi for _, eta, phi in ef_flowTracks if eta > 0]
    total, nPairs = sumOfPairs(negative, positive, exclude = False)
    assert nPairs == 25
    for name in ["Ref_<<2>>(2,-2)_2sub(1)", "Diff_Gap10M_<<2>>(2,-2)_2sub(1)"]:
        profile = task.hist(name)
        index = profile.findBin(15.0) if profile.dimension == 1 else profile.findBin(15.0, 1.5)
        assert profile.getBinEntries(*index) == pytest.approx(nPairs)
        assert profile.getBinContent(*index) == pytest.approx(total / nPairs)

def testDifferentialMatchesReference(loggingMixin, ef_flowEvent):
    """ All particles are both RFPs and POIs in the same pt bin, so the differential correlator equals the reference one. """
    task = createTask()
    task.userExec(ef_flowEvent)

    ref = task.hist("Ref_<<2>>(2,-2)")
    diff = task.hist("Diff_<<2>>(2,-2)")
    assert diff.getBinContent(*diff.findBin(15.0, 1.5)) == pytest.approx(ref.getBinContent(*ref.findBin(15.0)))
    assert diff.getBinEntries(*diff.findBin(15.0, 1.5)) == pytest.approx(90)
    # Pt bins without particles are skipped.
    assert diff.getBinEntries(*diff.findBin(15.0, 0.5)) == 0
    assert diff.entries == 1

def testPtAPtBSameBin(loggingMixin, ef_flowEvent):
    task = createTask(doPtB = True, correlators = [[2, -2]])
    task.userExec(ef_flowEvent)

    ref = task.hist("Ref_<<2>>(2,-2)")
    ptAptB = task.hist("PtAPtB_<<2>>(2,-2)")
    index = ptAptB.findBin(15.0, 1.5, 1.5)
    assert ptAptB.getBinEntries(*index) == pytest.approx(90)
    assert ptAptB.getBinContent(*index) == pytest.approx(ref.getBinContent(*ref.findBin(15.0)))
    # Only the (filled bin, filled bin) combination has particles in both bins.
    assert ptAptB.entries == 1
    assert task.vectors.sameBin is False

def testSampling(loggingMixin, ef_flowEvent):
    task = createTask(sampling = True, numSamples = 3, correlators = [[2, -2]], doDiff = False)
    names = ["Ref_<<2>>(2,-2)_sample{}".format(i) for i in range(3)]
    assert all(name in task.outputList for name in names)
    task.userExec(ef_flowEvent)
    assert sum(task.hist(name).entries for name in names) == 1
    assert 0 <= task.samplingIndex < 3

def testInvalidNumberOfSamples(loggingMixin):
    with pytest.raises(analysisTask.TaskException):
        createTask(sampling = True, numSamples = 0)

@pytest.mark.parametrize("trackKwargs, expected", [
    ({}, True),
    ({"charge": 0}, False),
    ({"filterBits": [0]}, False),
    ({"tpcNcls": 50}, False),
    ({"dcaZ": 3.0}, False),
    ({"dcaXY": -3.0}, False),
], ids = ["Selected", "Neutral", "Wrong filter bit", "Too few TPC clusters", "Large DCA z", "Large DCA xy"])
def testTrackSelection(loggingMixin, trackKwargs, expected):
    task = createTask(chargedNumTPCclsMin = 70, chargedDCAzMax = 2.0, chargedDCAxyMax = 2.0)
    values = {"filterBits": [5], "tpcNcls": 100}
    values.update(trackKwargs)
    track = trackFromPtEtaPhi(1.0, 0.0, 1.0, **values)
    assert task.isTrackSelected(track) == expected

@pytest.mark.parametrize("centrality, vz, expectedCounts", [
    (15.0, 1.0, [1, 1, 1, 1]),
    (60.0, 1.0, [1, 0, 0, 0]),
    (15.0, 15.0, [1, 1, 0, 0]),
], ids = ["Selected", "Outside of centrality range", "Outside of vertex range"])
def testEventCounter(loggingMixin, centrality, vz, expectedCounts):
    task = createTask()
    event = eventObjects.eventContainer(vertex = [0.0, 0.0, vz], centrality = {"V0M": centrality})
    assert task.isEventSelected(event) == (expectedCounts[-1] == 1)
    assert task.hist("EventCounter").contents[1:-1].tolist() == expectedCounts

def testAcceptanceDistributions(loggingMixin, ef_flowEvent):
    task = createTask()
    task.userExec(ef_flowEvent)
    assert task.hist("WeightsRFP").entries == 10
    assert task.hist("WeightsPOI").integral() == 10
    assert task.hist("QA_Multiplicity").entries == 1

@pytest.fixture
def weightsFile(tmp_path):
    """ Weights of 2 for all particles. """
    filename = tmp_path / "weights.yaml"
    filename.write_text("""
edges:
    - [0.0, 6.3]
    - [-1.0, 1.0]
contents:
    - [2.0]
""")
    return filename

def testLoadWeights(loggingMixin, ef_flowEvent, weightsFile):
    """ Uniform weights change the event weight, but not the correlator. """
    unweighted = createTask()
    unweighted.userExec(ef_flowEvent)
    task = createTask(weightsFile = str(weightsFile))
    assert task.nuaWeights.loaded
    task.userExec(ef_flowEvent)

    ref = task.hist("Ref_<<2>>(2,-2)")
    unweightedRef = unweighted.hist("Ref_<<2>>(2,-2)")
    index = ref.findBin(15.0)
    assert ref.getBinEntries(*index) == pytest.approx(4 * 90)
    assert ref.getBinContent(*index) == pytest.approx(unweightedRef.getBinContent(*index))

def testWeightsDimensionMismatch(loggingMixin, weightsFile):
    with pytest.raises(analysisTask.TaskException):
        createTask(weightsFile = str(weightsFile), useWeights3D = True)

def testReferenceOnlyCorrelator(loggingMixin):
    """ A correlator without POIs only books the reference profile. """
    task = createTask(correlators = [{"harmonics": [3, -3], "doPOIs": False}])
    assert "Ref_<<2>>(3,-3)" in task.outputList
    assert "Diff_<<2>>(3,-3)" not in task.outputList

def testGapCorrelatorWithoutGapVectors(loggingMixin):
    task = createTask(hasGap = False)
    assert "requests a gap" in loggingMixin.text
    assert "Ref_<<2>>(2,-2)_2sub(1)" not in task.outputList

def testUnavailableCorrelatorLoggedOnce(loggingMixin, ef_flowEvent):
    """ A correlator without any available observables is only reported when booking the outputs. """
    task = createTask(hasGap = False)
    task.userExec(ef_flowEvent)
    task.userExec(ef_flowEvent)

    messages = [record.getMessage() for record in loggingMixin.records]
    assert sum("No observables available for correlator <<2>>(2,-2)_2sub(1)" in m for m in messages) == 1
    assert task.hist("Ref_<<2>>(2,-2)").getBinEntries(*task.hist("Ref_<<2>>(2,-2)").findBin(15.0)) == pytest.approx(2 * 90)
