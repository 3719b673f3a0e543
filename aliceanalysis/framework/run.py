#!/usr/bin/env python

""" Minimal executable to launch the analysis.

``__main__`` is implemented to allow for this function to be executed directly,
while ``run()`` is defined to allow for execution via ``entry_points`` defined
in the python package setup.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging
import os
import pprint
import timeit

# Config
from aliceanalysis.base import config
from aliceanalysis.base import utilities
(analysisParameters, filesRead) = config.readConfig(config.configurationType.tasks)
print("Configuration files read: {filesRead}".format(filesRead = filesRead))
print("analysisParameters: {analysisParameters}".format(
    analysisParameters = pprint.pformat(analysisParameters)))

# By not setting a name, we get everything!
logger = logging.getLogger("")

# Setup logging
utilities.setupLogging(logger = logger,
                       logLevel = analysisParameters["loggingLevel"],
                       debug = analysisParameters["debug"])
# Log settings
logger.info(analysisParameters)

# Imports are below here so that they can be logged
from aliceanalysis.framework import analysisManager
from aliceanalysis.framework import eventObjects
from aliceanalysis.framework import pluginManager

def readEvents(filenames, dirPrefix = ""):
    """ Generator over the events stored in YAML event files.

    Each file must contain a list of events under the ``events`` key.

    Args:
        filenames (list): Paths to the event files. Relative paths are taken with respect to ``dirPrefix``.
        dirPrefix (str): Base directory for relative paths. Default: "".
    Yields:
        eventObjects.eventContainer: The next event.
    """
    yaml = config.yamlLoader()
    for filename in filenames:
        if not os.path.isabs(filename):
            filename = os.path.join(dirPrefix, filename)
        logger.info("Reading events from {filename}".format(filename = filename))
        with open(filename, "r") as f:
            contents = yaml.load(f)
        # An empty file loads as None.
        contents = contents or {}
        for values in contents.get("events", []):
            yield eventObjects.eventFromDict(values)

def createManager(parameters):
    """ Create the analysis manager and add the configured tasks through the plugin manager.

    Args:
        parameters (dict): Full analysis configuration. The parameters of each task are stored
            under the task name.
    Returns:
        analysisManager.analysisManager: Manager with the tasks added.
    """
    manager = analysisManager.analysisManager()
    for taskName in parameters["taskList"]:
        task = pluginManager.createTask(taskName, parameters.get(taskName, {}))
        manager.addTask(task)
    return manager

def run():
    """ Main entry point for running the analysis over the configured input files.

    Args:
        None.
    Returns:
        None.
    """
    handler = utilities.handleSignals()
    manager = createManager(analysisParameters)

    start = timeit.default_timer()
    events = readEvents(analysisParameters["inputFiles"], dirPrefix = analysisParameters["dirPrefix"])
    manager.runEvents(events, handler = handler, maxEvents = analysisParameters["maxEvents"])
    end = timeit.default_timer()
    logger.info("Analysis complete in {time} seconds".format(time = end - start))

    manager.writeOutputs(analysisParameters["outputFilename"])

if __name__ == "__main__":
    run()
