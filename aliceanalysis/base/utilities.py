#!/usr/bin/env python

""" Shared utility functions used for logging, signal handling and common kinematics.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

# General
import os
import sys
import signal
import threading
import numpy as np

# Logging
import logging
import logging.handlers
logger = logging.getLogger(__name__)

# Configuration
from . import config

###################################################
# Logging
###################################################
def setupLogging(logger, logLevel, debug):
    """ General function to setup the proper logging outputs for an executable.

    Creates loggers for logging to stdout and to a rotating file. They are enabled depending
    on the configuration.

    Args:
        logger (logging.Logger): Logger to be configured. This should be the logger of the executable.
        logLevel (int or str): Logging level. Select from any of the options defined in the logging module.
        debug (bool): Overall debug mode for the executable. True logs only to the console while False
            also logs to a rotating file handler.
    Returns:
        None. The logger is fully configured.
    """
    # We use some of the basic parameters for configuration, so we need to grab them now.
    parameters, _ = config.readConfig(config.configurationType.base)

    # Configure logger
    # Logging level for root logger
    logger.setLevel(logLevel)
    # Format
    logFormatStr = "%(asctime)s %(levelname)s: %(message)s [in %(module)s:%(lineno)d]"
    logFormat = logging.Formatter(logFormatStr)

    # Log stream to stdout
    streamHandler = logging.StreamHandler(sys.stdout)
    streamHandler.setLevel(logLevel)
    streamHandler.setFormatter(logFormat)
    logger.addHandler(streamHandler)
    logger.info("Added stdout streaming handler to logging!")

    if debug:
        return

    # Log to file
    # Will be a maximum of 5 MB, rotating with 10 files
    logDirPath = parameters["logDir"]
    if not os.path.exists(logDirPath):
        os.makedirs(logDirPath)
    fileHandler = logging.handlers.RotatingFileHandler(os.path.join(logDirPath, "aliceanalysis.log"),
                                                       maxBytes = 5000000,
                                                       backupCount = 10)
    fileHandler.setLevel(logLevel)
    fileHandler.setFormatter(logFormat)
    logger.addHandler(fileHandler)
    logger.info("Added rotating file handler to logging!")

###################################################
# Kinematics
###################################################
def deltaPhi(phi1, phi2):
    """ Azimuthal difference wrapped into ``[-pi, pi]``.

    Args:
        phi1 (float or numpy.ndarray): First angle.
        phi2 (float or numpy.ndarray): Second angle.
    Returns:
        float or numpy.ndarray: ``phi1 - phi2`` wrapped using ``atan2(sin, cos)``.
    """
    dPhi = phi1 - phi2
    return np.arctan2(np.sin(dPhi), np.cos(dPhi))

def phiInZeroToTwoPi(phi):
    """ Shift an angle in ``[-pi, pi)`` into ``[0, 2pi)``. """
    return phi + 2 * np.pi if phi < 0 else phi

def etaPhiFromPosition(x, y, z):
    """ Determine the pseudorapidity and azimuth of a position (such as a calorimeter cluster).

    Note:
        The azimuth is returned in ``[0, 2pi)`` because the EMCal and DCal acceptances are defined
        that way.

    Args:
        x (float): x position.
        y (float): y position.
        z (float): z position.
    Returns:
        tuple: (eta, phi)
    """
    phi = phiInZeroToTwoPi(np.arctan2(y, x))
    r = np.sqrt(x * x + y * y)
    theta = np.arctan2(r, z)
    eta = -np.log(np.tan(theta / 2.0))
    return (eta, phi)

def etaFromMomentum(px, py, pz):
    """ Pseudorapidity from a momentum vector. """
    p = np.sqrt(px * px + py * py + pz * pz)
    if p == abs(pz):
        # Along the beam axis. Return a large value with the proper sign rather than inf.
        return np.copysign(1e10, pz)
    return 0.5 * np.log((p + pz) / (p - pz))

#############
# Run helpers
#############
class handleSignals(object):
    """ Helper class to gracefully handle a kill signal.

    We handle ``SIGINT`` (for example, sent by ctrl-c) and ``SIGTERM`` (for example, sent by docker).

    This class is adapted from the solution described `here <https://stackoverflow.com/a/31464349>`__,
    and improved with the information `here <https://stackoverflow.com/a/46346184>`__.

    In the run module, it is expected to have some kind of code similar to below:

    .. code:: python

        handler = handleSignals()
        for event in events:
            if handler.exit.is_set():
                break
            # Process the event

    Args:
        None.

    Attributes:
        exit (threading.Event): Event to manage when we've received a signal. ``exit.set()`` is called
            when a signal is received, and can be checked via ``is_set()``.
    """
    exit = threading.Event()

    def __init__(self):
        signal.signal(signal.SIGINT, self.exitGracefully)
        signal.signal(signal.SIGTERM, self.exitGracefully)

    def exitGracefully(self, signum, frame):
        """ Handle the signal by storing that it was sent, allowing the run function to exit. """
        logger.info("Received signal {signum}. Passing on to executing function...".format(signum = signum))
        self.exit.set()
