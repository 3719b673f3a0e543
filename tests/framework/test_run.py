#!/usr/bin/env python

""" Tests for the analysis executable.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.framework import run
from aliceanalysis.tasks import TRD

@pytest.fixture
def eventFile(tmp_path):
    """ Event file with two events. """
    filename = tmp_path / "events.yaml"
    filename.write_text("""
events:
    - runNumber: 1
      vertex: [0.0, 0.0, 1.0]
      tracks:
        - {px: 1.0, py: 0.0, pz: 0.0}
    - runNumber: 2
      trdTracklets:
        - {hcID: 0, word: 100, label: -2}
""")
    return filename

def testReadEvents(loggingMixin, eventFile):
    """ Test reading events with a path relative to the directory prefix. """
    events = list(run.readEvents([eventFile.name], dirPrefix = str(eventFile.parent)))

    assert [e.runNumber for e in events] == [1, 2]
    assert len(events[0].tracks) == 1
    assert events[0].vz == 1.0
    assert len(events[1].trdTracklets) == 1

def testReadEmptyEventFile(loggingMixin, eventFile, tmp_path):
    """ An empty event file doesn't contain any events, but the following files are still read. """
    emptyFile = tmp_path / "empty.yaml"
    emptyFile.write_text("")
    events = list(run.readEvents([str(emptyFile), str(eventFile)]))

    assert [e.runNumber for e in events] == [1, 2]

def testCreateManagerAndRun(loggingMixin, eventFile, tmp_path):
    """ Run the TRD task over the event file through the manager. """
    parameters = {"taskList": ["TRD"], "TRD": {"name": "TRD", "minPt": 1.0}}
    manager = run.createManager(parameters)

    assert [t.name for t in manager.tasks] == ["TRD"]
    assert isinstance(manager.tasks[0], TRD.TrackletQATask)

    nProcessed = manager.runEvents(run.readEvents([str(eventFile)]))
    manager.writeOutputs(str(tmp_path / "results.yaml"))

    assert nProcessed == 2
    assert manager.tasks[0].hist("ypos_raw").entries == 1
    assert (tmp_path / "results.yaml").exists()
