#!/usr/bin/env python

""" Manages the analysis tasks and drives the event loop.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import os
import logging

import ruamel.yaml

from .analysisTask import TaskException

logger = logging.getLogger(__name__)

class analysisManager(object):
    """ Holds the registered tasks and calls them through their life-cycle.

    Tasks are executed in the order that they were added.

    Args:
        name (str): Name of the manager. Default: "analysisManager".

    Attributes:
        tasks (list): Registered tasks.
        nEventsProcessed (int): Number of events passed to the tasks.
        initialized (bool): True if the outputs have been created.
        terminated (bool): True if the tasks have been terminated.
    """
    def __init__(self, name = "analysisManager"):
        self.name = name
        self.tasks = []
        self.nEventsProcessed = 0
        self.initialized = False
        self.terminated = False

    def __repr__(self):
        return "{}(name = {}, tasks = {})".format(self.__class__.__name__, self.name, [t.name for t in self.tasks])

    def addTask(self, task):
        """ Register a task.

        Args:
            task (analysisTask): Task to be added.
        Returns:
            analysisTask: The added task.
        """
        if task.name in [t.name for t in self.tasks]:
            raise TaskException(msg = "DuplicateTaskName", name = task.name)
        if self.initialized:
            raise TaskException(msg = "ManagerAlreadyInitialized", name = task.name)
        logger.info("Adding task {name}".format(name = task.name))
        self.tasks.append(task)
        return task

    def initialize(self):
        """ Create the output objects of every task. Only done once. """
        if self.initialized:
            return
        for task in self.tasks:
            logger.debug("Creating output objects for task {name}".format(name = task.name))
            task.createOutputObjects()
        self.initialized = True

    def processEvent(self, event):
        """ Pass a single event to every task. """
        if not self.initialized:
            self.initialize()
        for task in self.tasks:
            task.userExec(event)
        self.nEventsProcessed += 1

    def runEvents(self, events, handler = None, maxEvents = -1):
        """ Run the event loop.

        Args:
            events (iterable): Events to be processed.
            handler (utilities.handleSignals): Signal handler. If a signal was received, the loop is stopped
                after the current event. Default: None.
            maxEvents (int): Maximum number of events to process. Negative values process all events. Default: -1.
        Returns:
            int: Number of events processed in this call.
        """
        self.initialize()
        nProcessed = 0
        for event in events:
            if handler is not None and handler.exit.is_set():
                logger.info("Stopping event loop after {n} events due to signal".format(n = nProcessed))
                break
            if maxEvents >= 0 and nProcessed >= maxEvents:
                break
            self.processEvent(event)
            nProcessed += 1
        self.terminate()
        logger.info("Processed {n} events".format(n = nProcessed))
        return nProcessed

    def terminate(self):
        """ Terminate every task. Only done once. """
        if self.terminated:
            return
        for task in self.tasks:
            task.terminate()
            task.postData()
        self.terminated = True

    def outputs(self):
        """ Output lists of every task, keyed by task name. """
        return {task.name: task.outputList for task in self.tasks}

    def writeOutputs(self, filename):
        """ Write a summary of every output to a YAML file.

        Args:
            filename (str): Path to the output file. Missing directories are created.
        Returns:
            None.
        """
        dirName = os.path.dirname(filename)
        if dirName and not os.path.exists(dirName):
            os.makedirs(dirName)

        summary = {"nEventsProcessed": self.nEventsProcessed}
        for name, outputList in self.outputs().items():
            summary[name] = dict(outputList.toDict()) if outputList is not None else {}

        yaml = ruamel.yaml.YAML(typ = "safe", pure = True)
        yaml.default_flow_style = None
        logger.info("Writing outputs to {filename}".format(filename = filename))
        with open(filename, "w") as f:
            yaml.dump(summary, f)
