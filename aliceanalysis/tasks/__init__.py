#!/usr/bin/env python

""" Contains the analysis tasks, implemented through the plugin system.

Each task module provides a ``create(TASK)Task(parameters)`` function, which will then be called
through the plugin manager. The tasks to load are selected via ``taskList`` in the framework configuration.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

# NOTE: `__all__` is intentionally not specified here. The tasks are loaded dynamically
#       based on a configuration set elsewhere, so we don't want to set any misleading options here.
