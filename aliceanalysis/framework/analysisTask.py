#!/usr/bin/env python

""" Base class for analysis tasks.

Tasks implement the three life-cycle stages which are called by the ``analysisManager``:

- ``createOutputObjects()``: Called once before the event loop to book the outputs.
- ``userExec(event)``: Called once per event.
- ``terminate()``: Called once after the event loop.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

from . import histograms

logger = logging.getLogger(__name__)

class TaskException(Exception):
    """ Raised when a task is misconfigured or misused. """
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __str__(self):
        return ", ".join("{}:{}".format(k, v) for k, v in self.kwargs.items())

class analysisTask(object):
    """ Base analysis task.

    Args:
        name (str): Name of the task. It must be unique within the manager.
        parameters (dict): Task configuration. Default: None.

    Attributes:
        name (str): Name of the task.
        parameters (dict): Task configuration.
        outputList (histograms.outputList): Container for the task outputs. Created by ``createOutputObjects()``.
        postedOutputs (histograms.outputList): Outputs which were last posted to the framework.
    """
    def __init__(self, name, parameters = None):
        self.name = name
        self.parameters = parameters if parameters else {}
        self.outputList = None
        self.postedOutputs = None

    def __repr__(self):
        return "{}(name = {})".format(self.__class__.__name__, self.name)

    def createOutputObjects(self):
        """ Create the output list, and then call ``userCreateOutputObjects()`` to fill it. """
        self.outputList = histograms.outputList(self.name)
        self.userCreateOutputObjects()
        self.postData()

    def userCreateOutputObjects(self):
        """ Book the task outputs. Must be implemented by the derived classes. """
        raise NotImplementedError("Need to implement userCreateOutputObjects().")

    def userExec(self, event):
        """ Process a single event. Must be implemented by the derived classes. """
        raise NotImplementedError("Need to implement userExec().")

    def terminate(self):
        """ Called at the end of the analysis. Nothing is done by default. """
        pass

    def postData(self):
        """ Post the output list to the framework. """
        self.postedOutputs = self.outputList

    def bookHistograms(self, definitions):
        """ Book histograms from a table of definitions.

        Each definition is ``(name, title, binning)``, where binning is a list of ``(nBins, low, high)``
        tuples (or a list of edges), one per axis.

        Args:
            definitions (list): Histogram definitions.
        Returns:
            dict: Booked histograms keyed by name.
        """
        booked = {}
        for name, title, binning in definitions:
            axes = []
            for axisBinning in binning:
                if len(axisBinning) == 3 and isinstance(axisBinning, tuple):
                    axes.append(histograms.Axis(*axisBinning))
                else:
                    axes.append(histograms.Axis(edges = axisBinning))
            booked[name] = self.outputList.add(histograms.Histogram(name, title, axes))
        return booked

    def hist(self, name):
        """ Retrieve an output by name. Raises ``TaskException`` if it doesn't exist. """
        obj = self.outputList.find(name)
        if obj is None:
            raise TaskException(msg = "OutputNotFound", task = self.name, name = name)
        return obj
