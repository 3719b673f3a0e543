#/usr/bin/env python

""" Tests for the utilities module.

.. code-author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University
"""

import pytest

import logging
import logging.handlers
import signal
import numpy as np
logger = logging.getLogger(__name__)

from aliceanalysis.base import utilities

@pytest.mark.parametrize("phi1, phi2, expected", [
    (0.1, 0.2, -0.1),
    (6.2, 0.1, 6.1 - 2 * np.pi),
    (-3.0, 3.0, 2 * np.pi - 6.0),
    (np.pi / 2, -np.pi / 2, np.pi),
], ids = ["Small difference", "Wrap below", "Wrap above", "Opposite"])
def testDeltaPhi(loggingMixin, phi1, phi2, expected):
    """ Test wrapping the azimuthal difference into [-pi, pi]. """
    assert abs(utilities.deltaPhi(phi1, phi2)) == pytest.approx(abs(expected))
    if abs(expected) < np.pi - 1e-6:
        assert utilities.deltaPhi(phi1, phi2) == pytest.approx(expected)

@pytest.mark.parametrize("phi, expected", [
    (-0.5, 2 * np.pi - 0.5),
    (1.0, 1.0),
    (0.0, 0.0),
], ids = ["Negative", "Positive", "Zero"])
def testPhiInZeroToTwoPi(loggingMixin, phi, expected):
    assert utilities.phiInZeroToTwoPi(phi) == pytest.approx(expected)

@pytest.mark.parametrize("x, y, z, expectedEta, expectedPhi", [
    (1.0, 0.0, 0.0, 0.0, 0.0),
    (0.0, 2.0, 0.0, 0.0, np.pi / 2),
    (1.0, 0.0, np.sinh(0.5), 0.5, 0.0),
    (0.0, -1.0, -np.sinh(0.3), -0.3, 3 * np.pi / 2),
], ids = ["x axis", "y axis", "Forward", "Backward and negative phi"])
def testEtaPhiFromPosition(loggingMixin, x, y, z, expectedEta, expectedPhi):
    """ Test the position of a cluster. """
    eta, phi = utilities.etaPhiFromPosition(x, y, z)
    assert eta == pytest.approx(expectedEta, abs = 1e-12)
    assert phi == pytest.approx(expectedPhi)

@pytest.mark.parametrize("px, py, pz, expected", [
    (1.0, 0.0, np.sinh(0.7), 0.7),
    (0.0, 2.0, -2.0 * np.sinh(1.2), -1.2),
    (0.0, 0.0, 1.0, 1e10),
    (0.0, 0.0, -1.0, -1e10),
], ids = ["Forward", "Backward", "Along the beam", "Along the beam, backward"])
def testEtaFromMomentum(loggingMixin, px, py, pz, expected):
    assert utilities.etaFromMomentum(px, py, pz) == pytest.approx(expected)

@pytest.mark.parametrize("debug", [
    True,
    False,
], ids = ["Debug mode", "Log to file"])
def testSetupLogging(loggingMixin, mocker, tmp_path, debug):
    """ Test that the handlers are added according to the debug mode. """
    logDir = tmp_path / "logs"
    mocker.patch("aliceanalysis.base.utilities.config.readConfig", return_value = ({"logDir": str(logDir)}, []))
    testLogger = logging.getLogger("testSetupLogging{}".format(debug))

    utilities.setupLogging(logger = testLogger, logLevel = "INFO", debug = debug)

    try:
        assert testLogger.level == logging.INFO
        fileHandlers = [h for h in testLogger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        if debug:
            assert len(testLogger.handlers) == 1
            assert fileHandlers == []
            assert not logDir.exists()
        else:
            assert len(testLogger.handlers) == 2
            assert len(fileHandlers) == 1
            assert (logDir / "aliceanalysis.log").exists()
    finally:
        for handler in list(testLogger.handlers):
            handler.close()
            testLogger.removeHandler(handler)

def testHandleSignals(loggingMixin):
    """ Test that a received signal is stored so the event loop can exit. """
    previousHandlers = {s: signal.getsignal(s) for s in [signal.SIGINT, signal.SIGTERM]}
    try:
        handler = utilities.handleSignals()
        handler.exit.clear()
        assert not handler.exit.is_set()

        handler.exitGracefully(signal.SIGTERM, None)

        assert handler.exit.is_set()
        assert "Received signal" in loggingMixin.text
    finally:
        utilities.handleSignals.exit.clear()
        for s, h in previousHandlers.items():
            signal.signal(s, h)
