#!/usr/bin/env python

""" Handles configuration of aliceanalysis via yaml.

Configurations are built in a hierarchy, with the base configuration providing
the first layer, and building up further until the specified module.

YAML parsing plugins are also specified here. This breaks the abstraction
a little bit, but it makes things much simpler, so it's worth the trade-off.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import aenum
import ruamel.yaml
import sys
import os
import pprint
import importlib.resources
import warnings
import logging
logger = logging.getLogger(__name__)

class configurationType(aenum.OrderedEnum):
    """ Specifies the module ordering for loading of configurations.

    It is also used to specify the maximum level for which a config should be loaded.
    For example, if ``tasks`` is specified, it should load all configurations, while
    for the framework, everything but the tasks should be loaded.

    The numerical values of this enum basically specify the dependencies of the package.

    Note:
        The names of these values must match the names of their corresponding modules!
    """
    base = 0
    framework = 1
    tasks = 2

def joinPaths(constructor, node):
    """ Join elements of a list into a path using ``os.path.join``.
    Specified by ``!joinPaths`` (defined on registration below).

    Inspired by `here <https://stackoverflow.com/a/23212524>`__.

    Args:
        constructor (ruamel.yaml.constructor.SafeConstructor): YAML constructor which is parsing the configuration.
        node (SequenceNode): Node containing the list of the paths to join together.
    Returns:
        str: The list elements joined together into a valid path.
    """
    seq = constructor.construct_sequence(node)
    return os.path.join(*seq)

def binEdges(constructor, node):
    """ Create equally spaced bin edges from ``[nBins, low, high]``.
    Specified by ``!binEdges`` (defined on registration below).

    This saves typing out long lists of edges for the centrality and pt axes, which
    are usually (but not always) equally spaced.

    Args:
        constructor (ruamel.yaml.constructor.SafeConstructor): YAML constructor which is parsing the configuration.
        node (SequenceNode): Node containing the number of bins, the lower edge and the upper edge.
    Returns:
        list: ``nBins + 1`` bin edges as floats.
    """
    nBins, low, high = constructor.construct_sequence(node)
    nBins = int(nBins)
    width = (float(high) - float(low)) / nBins
    return [float(low) + i * width for i in range(nBins + 1)]

def yamlLoader():
    """ Create the YAML object used to read configurations.

    The ``!joinPaths`` and ``!binEdges`` constructors are registered with the safe constructor,
    so we don't need to allow arbitrary code execution to build these values.

    Duplicate keys are allowed because the configurations are merged by concatenating the files,
    with later values overriding earlier ones.

    Args:
        None.
    Returns:
        ruamel.yaml.YAML: Configured YAML object.
    """
    yaml = ruamel.yaml.YAML(typ = "safe", pure = True)
    yaml.allow_duplicate_keys = True
    yaml.constructor.add_constructor("!joinPaths", joinPaths)
    yaml.constructor.add_constructor("!binEdges", binEdges)
    return yaml

def readConfigFiles(fileList):
    """ Read the configurations from the given list of files.

    Args:
        fileList (list): List of paths to configuration files.
    Returns:
        tuple: (list of configurations read from the files, list of configuration filenames which were read)
    """
    configs = []
    filesRead = []
    for filename in fileList:
        try:
            f = open(filename, "r")
        except IOError:
            # If we can't open the file, that's fine - we just skip it
            continue
        else:
            with f:
                # Store each configuration separately so we can decide how to combine them later.
                filesRead.append(filename)
                configs.append(f.read())

    return (configs, filesRead)

def readConfig(configType):
    """ Main function to read the aliceanalysis configuration.

    It looks for values in a set of configuration files according to the module that is specified.

    The configuration file must be named ``config.yaml``. The files are read in such an order that values
    specified in later packages will override earlier ones. For example, ``tasks`` depends on ``framework``,
    so if we specify different values for the same key in both module configurations, the value in the
    ``tasks`` config will be used.

    In additional to looking in the package modules, it also looks for a configuration in the current working
    directory, as well as in the user home directory.

    The current order of override priority from highest to lowest is:

    .. code-block:: none

        Current working directory
        User home directory
        aliceanalysis.tasks
        aliceanalysis.framework
        aliceanalysis.base

    (this basically follows the dependency tree).

    Args:
        configType (configurationType or str): Type of the module for which we are loading the configuration.
    Returns:
        tuple: (Fully merged configuration, list of configuration filenames which were read)
    """
    # Validate arguments
    if not isinstance(configType, configurationType):
        # Perhaps we got a string, so let's try to construct it based on that.
        # It's fine if this raises an exception, because it will tell us where we've gone wrong
        configType = configurationType[configType]

    # The earliest config files are given the _most_ precedence.
    # ie. A value in the config in the local directory will override the same variable
    #     defined in the config in the package base directory.
    fileList = [
        # Config file in the local directory where it is run
        "config.yaml",
        # Config in the home directory
        # Ensures that we have "Tasks" here.
        os.path.expanduser("~/.aliceanalysis{0}").format(configType.name[0].upper() + configType.name[1:]),
    ]
    # Reversed so the modules are added in the proper order (ie. following the dependencies)
    for val in reversed(configurationType):
        # Retrieve and store the configuration of the requested object depends on that configuration
        # (as determined by the order of the configurationType values)
        if val <= configType:
            fileList.append(str(importlib.resources.files("aliceanalysis.{}".format(val.name)).joinpath("config.yaml")))

    (configs, filesRead) = readConfigFiles(fileList)

    # Merge the configurations together
    # List is reversed so the earlier listed config will always override settings from lower listed files
    configs = "\n".join(reversed(configs))

    # Handle warnings related to redefined anchors.
    # This is perhaps overly broad, but for our purposes, it should be fine.
    # See: https://stackoverflow.com/a/40376576
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        globalConfig = yamlLoader().load(configs)

    return (globalConfig, filesRead)

if __name__ == "__main__":  # pragma: no cover
    """ Load basic configuration for testing (although unit tests would be preferred in the future). """
    # Setup logging
    # Provides a warning if there are no handlers
    logging.raiseExceptions = True
    formatter = logging.Formatter("[%(levelname)s] %(message)s")
    streamHandler = logging.StreamHandler(sys.stdout)
    streamHandler.setFormatter(formatter)
    logger.addHandler(streamHandler)
    logger.setLevel("DEBUG")

    # Load configuration
    config, _ = readConfig(configurationType.tasks)
    logger.info("Final config: {0}".format(pprint.pformat(config)))
