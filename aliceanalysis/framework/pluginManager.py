#!/usr/bin/env python

""" Contains all of the machinery for the plugin system.

This modules manages the plugin functions defined by each analysis task module.
This is achieved by dynamically loading each task module on import of this module.
A pointer to each function is added to the plugin manager, allowing for any task
function to be called through this module.

Note that only the main routing plugin functions defined below (for example, ``createTask``)
are actually called through this module. All other functions will be called directly
through their own task modules. However, they are also loaded by the plugin manager
for convenience.

The tasks to actually load are specified in the configuration file via ``taskList``.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

# General includes
import os
import sys
import logging
# Setup logger
logger = logging.getLogger(__name__)

# Used to load functions from other modules
import importlib
import inspect

from .analysisTask import TaskException

# Configuration
from ..base import config
(frameworkParameters, filesRead) = config.readConfig(config.configurationType.framework)

# Get the current module
# Used to load functions from other modules and then look them up.
currentModule = sys.modules[__name__]

def taskNamespace(functionName, taskName):
    """ Prepend the task name to a function to act as a namespace.

    This avoids the possibility of different tasks with the same function names overwriting
    each other. Returned function names are of the form ``TASK_functionName``.

    Args:
        functionName (str): Name of the function.
        taskName (str): The task name in the form of an all capital name (ex. ``HFE``).
    Returns:
        str: Properly formatted function name with the task name prepended as a namespace.
    """
    return "{taskName}_{functionName}".format(taskName = taskName, functionName = functionName)

def createTask(taskName, parameters):
    """ Properly routes the task creation function for each task module.

    Function names should be of the form ``create(TASK)Task(parameters)``, where ``(TASK)`` is
    the all capital task name and parameters (dict) is the configuration of that task.

    Args:
        taskName (str): Name of the task module (ex. ``FLOW``).
        parameters (dict): Configuration of the task.
    Returns:
        analysisTask: The created task.
    Raises:
        TaskException: If the task module wasn't loaded or doesn't provide a creation function.
    """
    functionName = "create{}Task".format(taskName)
    functionName = taskNamespace(functionName = functionName, taskName = taskName)
    creationFunction = getattr(currentModule, functionName, None)
    if creationFunction is None:
        raise TaskException(msg = "UnknownTask", taskName = taskName, functionName = functionName)
    logger.info("Creating task {} via {}".format(taskName, functionName))
    return creationFunction(parameters)

def describeTask(taskName):
    """ Properly routes the task description function for each task module.

    Descriptions are optional. Function names should be of the form ``describe(TASK)Task()``.

    Args:
        taskName (str): Name of the task module (ex. ``FLOW``).
    Returns:
        str: Description of the task, or an empty string if none is available.
    """
    functionName = taskNamespace(functionName = "describe{}Task".format(taskName), taskName = taskName)
    describeFunction = getattr(currentModule, functionName, None)
    if describeFunction is not None:
        return describeFunction()

    logger.info("Could not find description function for task {0}".format(taskName))
    return ""

def loadTaskModules(taskList):
    """ Load the functions of the given task modules into this module.

    For more details on how this is possible, see: https://stackoverflow.com/a/3664396

    Args:
        taskList (list): Names of the task modules to load.
    Returns:
        dict: Names of the loaded functions, keyed by task name.
    """
    logger.info("Loading modules for tasks:")
    loaded = {}
    # Make sure that we have a unique list of tasks, while preserving the order.
    for taskName in list(dict.fromkeys(taskList)):
        # Ensure that the module exists before trying to load it
        if not os.path.exists(os.path.join(os.path.dirname(__file__), os.pardir, "tasks", "{}.py".format(taskName))):
            logger.warning("Could not find module for task {}. Skipping it!".format(taskName))
            continue

        # Relative import is preferred here because it's used elsewhere in the project.
        taskModule = importlib.import_module(".tasks.{0}".format(taskName), package = "aliceanalysis")

        # Loop over all functions from the dynamically loaded module
        # See: https://stackoverflow.com/a/4040709
        functionNames = []
        for funcName, func in inspect.getmembers(taskModule, inspect.isfunction):
            # Only functions defined in the module itself. Otherwise, we would also pick up imported helpers.
            if func.__module__ != taskModule.__name__:
                continue
            # Append the task name to the function name for safety.
            funcName = taskNamespace(functionName = funcName, taskName = taskName)
            setattr(currentModule, funcName, func)
            functionNames.append(funcName)

        logger.info("Task {} functions loaded: {}".format(taskName, ", ".join(functionNames)))
        loaded[taskName] = functionNames

    return loaded

###################################################
# Load task functions from the task modules
#
# These task plugin functions are dynamically loaded so this
# module doesn't need to be modified when adding a new task.
###################################################
loadedTasks = loadTaskModules(frameworkParameters["taskList"])
