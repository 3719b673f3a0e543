#!/usr/bin/env python

""" Tests for the correlator definitions.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.flow import corrTask

@pytest.mark.parametrize("harmonics, gaps, expectedName", [
    ([2, -2], (), "<<2>>(2,-2)"),
    ([2, 2, -2, -2], (), "<<4>>(2,2,-2,-2)"),
    ([2, -2], [1.0], "<<2>>(2,-2)_2sub(1)"),
    ([3, -3], [0.8], "<<2>>(3,-3)_2sub(0.8)"),
], ids = ["Two particle", "Four particle", "Two particle gap", "Fractional gap"])
def testCorrelatorName(loggingMixin, harmonics, gaps, expectedName):
    corr = corrTask.CorrTask(harmonics, gaps = gaps)
    assert corr.name == expectedName
    assert str(corr) == expectedName
    assert corr.numHarmonics == len(harmonics)
    assert corr.hasGap == (len(gaps) > 0)

@pytest.mark.parametrize("kwargs", [
    {"harmonics": [2]},
    {"harmonics": [1] * 9},
    {"harmonics": [2, -2], "gaps": [0.5, 1.0]},
    {"harmonics": [2, -2], "gaps": [-1.0]},
    {"harmonics": [2, 2, 2, -2, -2, -2], "gaps": [1.0]},
], ids = ["Too few harmonics", "Too many harmonics", "Too many gaps", "Negative gap", "Gap for six particles"])
def testInvalidCorrelator(loggingMixin, kwargs):
    with pytest.raises(corrTask.FlowException):
        corrTask.CorrTask(**kwargs)

@pytest.mark.parametrize("values, expectedHarmonics, expectedGap, expectedPOIs", [
    ([2, -2], (2, -2), None, True),
    ({"harmonics": [3, -3], "gaps": [1.0], "doPOIs": False}, (3, -3), 1.0, False),
], ids = ["List of harmonics", "Full definition"])
def testFromConfig(loggingMixin, values, expectedHarmonics, expectedGap, expectedPOIs):
    corr = corrTask.CorrTask.fromConfig(values)
    assert corr.harmonics == expectedHarmonics
    assert corr.gap == expectedGap
    assert corr.doPOIs == expectedPOIs
    assert corr.doRFPs

def testCorrelatorWithoutObservables(loggingMixin):
    """ A correlator which requests nothing is allowed, but it is logged. """
    corr = corrTask.CorrTask([2, -2], doRFPs = False, doPOIs = False)
    assert "will never be filled" in loggingMixin.text
    assert not corr.doRFPs

def testFlowExceptionMessage(loggingMixin):
    with pytest.raises(corrTask.FlowException) as exceptionInfo:
        corrTask.CorrTask([2])
    assert "InvalidNumberOfHarmonics" in str(exceptionInfo.value)
