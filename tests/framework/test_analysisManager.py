#!/usr/bin/env python

""" Tests for the analysis task base class and the analysis manager.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest
import ruamel.yaml
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.framework import analysisManager
from aliceanalysis.framework import analysisTask
from aliceanalysis.framework import eventObjects
from aliceanalysis.framework import histograms

class countingTask(analysisTask.analysisTask):
    """ Minimal task which counts the tracks of each event. """
    def userCreateOutputObjects(self):
        self.bookHistograms([
            ("nTracks", "Number of tracks", [(10, -0.5, 9.5)]),
            ("variable", "Variable binning", [[0.0, 1.0, 5.0]]),
        ])
        self.terminated = False

    def userExec(self, event):
        self.hist("nTracks").fill(len(event.tracks))

    def terminate(self):
        self.terminated = True

def createEvents(nEvents):
    return [eventObjects.eventContainer(tracks = [eventObjects.trackContainer(1.0, 0.0, 0.0)] * i) for i in range(nEvents)]

def testBookHistograms(loggingMixin):
    """ Test booking both fixed and variable binning. """
    task = countingTask("test")
    task.createOutputObjects()

    assert task.postedOutputs is task.outputList
    assert task.hist("nTracks").axes[0].nBins == 10
    assert list(task.hist("variable").axes[0].edges) == [0.0, 1.0, 5.0]
    with pytest.raises(analysisTask.TaskException):
        task.hist("missing")

def testBaseTaskNotImplemented(loggingMixin):
    task = analysisTask.analysisTask("base")
    with pytest.raises(NotImplementedError):
        task.createOutputObjects()
    with pytest.raises(NotImplementedError):
        task.userExec(None)

def testAddTask(loggingMixin):
    manager = analysisManager.analysisManager()
    manager.addTask(countingTask("test"))
    with pytest.raises(analysisTask.TaskException):
        manager.addTask(countingTask("test"))

    manager.initialize()
    with pytest.raises(analysisTask.TaskException):
        manager.addTask(countingTask("other"))

@pytest.mark.parametrize("maxEvents, expectedProcessed", [
    (-1, 5),
    (2, 2),
    (0, 0),
], ids = ["All events", "Limited events", "No events"])
def testRunEvents(loggingMixin, maxEvents, expectedProcessed):
    """ Test the event loop, including the life-cycle calls of the tasks. """
    manager = analysisManager.analysisManager()
    task = manager.addTask(countingTask("test"))

    nProcessed = manager.runEvents(createEvents(5), maxEvents = maxEvents)

    assert nProcessed == expectedProcessed
    assert manager.nEventsProcessed == expectedProcessed
    assert task.hist("nTracks").entries == expectedProcessed
    assert task.terminated
    assert manager.terminated

def testRunEventsStopsOnSignal(loggingMixin, mocker):
    """ The event loop should stop if a signal was received. """
    handler = mocker.MagicMock()
    handler.exit.is_set.side_effect = [False, True]
    manager = analysisManager.analysisManager()
    manager.addTask(countingTask("test"))

    nProcessed = manager.runEvents(createEvents(5), handler = handler)

    assert nProcessed == 1
    assert "due to signal" in loggingMixin.text

def testProcessEventInitializes(loggingMixin):
    manager = analysisManager.analysisManager()
    task = manager.addTask(countingTask("test"))
    manager.processEvent(createEvents(3)[2])

    assert manager.initialized
    hist = task.hist("nTracks")
    assert hist.getBinContent(hist.findBin(2)[0]) == 1.0

def testWriteOutputs(loggingMixin, tmp_path):
    """ Test writing the output summary, including creating the output directory. """
    manager = analysisManager.analysisManager()
    manager.addTask(countingTask("test"))
    manager.runEvents(createEvents(3))
    filename = tmp_path / "output" / "results.yaml"

    manager.writeOutputs(str(filename))

    yaml = ruamel.yaml.YAML(typ = "safe", pure = True)
    with open(str(filename), "r") as f:
        summary = yaml.load(f)
    assert summary["nEventsProcessed"] == 3
    assert summary["test"]["nTracks"]["entries"] == 3
    assert summary["test"]["nTracks"]["contents"][:3] == [1.0, 1.0, 1.0]

def testOutputs(loggingMixin):
    manager = analysisManager.analysisManager()
    manager.addTask(countingTask("test"))
    manager.initialize()
    outputs = manager.outputs()
    assert list(outputs) == ["test"]
    assert isinstance(outputs["test"], histograms.outputList)
