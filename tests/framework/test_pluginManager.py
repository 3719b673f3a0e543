#!/usr/bin/env python

""" Tests for loading and routing the task plugins.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest
import logging
logger = logging.getLogger(__name__)

from aliceanalysis.base import config
from aliceanalysis.framework import analysisTask
from aliceanalysis.framework import pluginManager
from aliceanalysis.tasks import FLOW
from aliceanalysis.tasks import HFE
from aliceanalysis.tasks import TRD

def testTaskNamespace(loggingMixin):
    assert pluginManager.taskNamespace(functionName = "createHFETask", taskName = "HFE") == "HFE_createHFETask"

def testTasksLoaded(loggingMixin):
    """ Test that the configured task modules are loaded, with only their own functions. """
    assert list(pluginManager.loadedTasks) == ["FLOW", "HFE", "TRD"]
    for taskName in ["FLOW", "HFE", "TRD"]:
        assert hasattr(pluginManager, "{0}_create{0}Task".format(taskName))
        assert hasattr(pluginManager, "{0}_describe{0}Task".format(taskName))
    assert "HFE_embeddedParticleRanges" in pluginManager.loadedTasks["HFE"]
    # Imported helpers shouldn't be picked up.
    assert not any("deltaPhi" in name for name in pluginManager.loadedTasks["HFE"])

def testLoadMissingTaskModule(loggingMixin):
    loaded = pluginManager.loadTaskModules(["DOESNOTEXIST"])
    assert loaded == {}
    assert "Could not find module for task DOESNOTEXIST" in loggingMixin.text

@pytest.mark.parametrize("taskName, expectedType", [
    ("FLOW", FLOW.FlowTask),
    ("HFE", HFE.HFJetTagTask),
    ("TRD", TRD.TrackletQATask),
], ids = ["Flow", "HF jet tagging", "TRD tracklet QA"])
def testCreateTaskFromConfiguration(loggingMixin, taskName, expectedType):
    """ Test creating each task with the default configuration. """
    parameters, _ = config.readConfig(config.configurationType.tasks)

    task = pluginManager.createTask(taskName, parameters[taskName])
    task.createOutputObjects()

    assert isinstance(task, expectedType)
    assert task.name == taskName
    assert len(task.outputList) > 0
    assert pluginManager.describeTask(taskName) != ""

def testCreateUnknownTask(loggingMixin):
    with pytest.raises(analysisTask.TaskException):
        pluginManager.createTask("UNKNOWN", {})

def testDescribeUnknownTask(loggingMixin):
    assert pluginManager.describeTask("UNKNOWN") == ""
    assert "Could not find description function" in loggingMixin.text
