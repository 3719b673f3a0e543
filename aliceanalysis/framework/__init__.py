#!/usr/bin/env python

""" Framework services for the analysis tasks.

These modules provide the event containers, the output containers (histograms, profiles and tuples),
the task base class, the manager which runs the event loop and the plugin system which loads the tasks.
Everything is configured by the settings in config.yaml

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

__all__ = [
           "analysisManager",
           "analysisTask",
           "eventObjects",
           "histograms",
           "pluginManager",
          ]
