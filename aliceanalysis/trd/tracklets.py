#!/usr/bin/env python

""" TRD online tracklet words and tracklet matching.

The tracklet word is a 32 bit word calculated by the front-end electronics, with the layout:

.. code-block:: none

    pid [31:24] | z row [23:20] | dy [19:13] (signed, 7 bit) | y [12:0] (signed, 13 bit)

The y position is stored in units of 160 um, while the deflection is stored in units of 140 um
over the 3 cm drift length.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import collections
import logging

logger = logging.getLogger(__name__)

# Units of the tracklet word
yUnit = 160e-4
dyUnit = 140e-4
driftLength = 3.0

# Detector numbering
nLayers = 6
nStacks = 5
nSectors = 18
nDetectors = nSectors * nStacks * nLayers

trackletWordFields = collections.namedtuple("trackletWordFields", ["y", "dy", "z", "pid"])

class TrackletException(Exception):
    """ Raised for values which cannot be represented in a tracklet word. """
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __str__(self):
        return ", ".join("{}:{}".format(k, v) for k, v in self.kwargs.items())

def _signed(value, nBits):
    """ Interpret the lowest nBits of value as a two's complement number. """
    value &= (1 << nBits) - 1
    if value & (1 << (nBits - 1)):
        value -= 1 << nBits
    return value

def decodeTrackletWord(word):
    """ Decode a tracklet word into its fields.

    Args:
        word (int): 32 bit tracklet word.
    Returns:
        trackletWordFields: (y, dy, z, pid) in bins.
    """
    return trackletWordFields(y = _signed(word, 13),
                              dy = _signed(word >> 13, 7),
                              z = (word >> 20) & 0xf,
                              pid = (word >> 24) & 0xff)

def encodeTrackletWord(y, dy, z, pid):
    """ Encode the tracklet fields into a tracklet word.

    Args:
        y (int): y position in bins of 160 um. Must be in [-4096, 4095].
        dy (int): Deflection in bins of 140 um. Must be in [-64, 63].
        z (int): Pad row. Must be in [0, 15].
        pid (int): PID value. Must be in [0, 255].
    Returns:
        int: 32 bit tracklet word.
    """
    for name, value, low, high in [("y", y, -4096, 4095), ("dy", dy, -64, 63), ("z", z, 0, 15), ("pid", pid, 0, 255)]:
        if not low <= value <= high:
            raise TrackletException(msg = "ValueOutOfRange", field = name, value = value, low = low, high = high)
    return (pid << 24) | (z << 20) | ((dy & 0x7f) << 13) | (y & 0x1fff)

def binY(tracklet):
    return decodeTrackletWord(tracklet.word).y

def binDy(tracklet):
    return decodeTrackletWord(tracklet.word).dy

def binZ(tracklet):
    return decodeTrackletWord(tracklet.word).z

def pid(tracklet):
    return decodeTrackletWord(tracklet.word).pid

def localY(tracklet):
    """ Local y position of the tracklet (cm). """
    return binY(tracklet) * yUnit

def dyDx(tracklet):
    """ Tracklet slope, as the deflection over the drift length. """
    return binDy(tracklet) * dyUnit / driftLength

def detectorNumber(sector, stack, layer):
    """ Detector number from the sector, stack and layer. """
    return sector * nStacks * nLayers + stack * nLayers + layer

def detectorLayer(detector):
    return detector % nLayers

def detectorStack(detector):
    return (detector % (nStacks * nLayers)) // nLayers

def detectorSector(detector):
    return detector // (nStacks * nLayers)

def halfChamberID(detector, side):
    """ Half chamber ID of a detector, where side is 0 (A) or 1 (B). """
    return 2 * detector + side

def isSimulated(tracklet):
    """ Simulated tracklets have a label of at least -1, while raw tracklets are labeled below. """
    return tracklet.label >= -1

def splitTracklets(tracklets):
    """ Split tracklets into simulated and raw tracklets.

    Args:
        tracklets (list): Tracklets of the event.
    Returns:
        tuple: (simulated tracklets, raw tracklets)
    """
    sim = []
    raw = []
    for tracklet in tracklets:
        (sim if isSimulated(tracklet) else raw).append(tracklet)
    return (sim, raw)

def trackletsByDetector(tracklets):
    """ Group tracklets by detector, skipping invalid detectors. """
    grouped = collections.defaultdict(list)
    for tracklet in tracklets:
        if 0 <= tracklet.detector < nDetectors:
            grouped[tracklet.detector].append(tracklet)
        else:
            logger.warning("Tracklet {} has invalid detector {}. Skipping it.".format(tracklet, tracklet.detector))
    return grouped

def matchTracklets(raw, sim, yMax = 100):
    """ Match raw tracklets to simulated tracklets in the same detector.

    For each raw tracklet, the simulated tracklet with the same pad row and the closest y position
    (within yMax bins) is selected. Each simulated tracklet can only be matched once.

    Args:
        raw (list): Raw tracklets.
        sim (list): Simulated tracklets.
        yMax (int): Maximum difference in y (in bins). Default: 100.
    Returns:
        tuple: (list of (raw, sim) matched pairs, unmatched raw tracklets, unmatched simulated tracklets)
    """
    rawByDetector = trackletsByDetector(raw)
    simByDetector = trackletsByDetector(sim)

    matches = []
    unmatchedRaw = []
    unmatchedSim = []
    for detector in range(nDetectors):
        available = list(simByDetector.get(detector, []))
        for trackletRaw in rawByDetector.get(detector, []):
            fieldsRaw = decodeTrackletWord(trackletRaw.word)
            bestMatch = None
            bestDistance = yMax
            for trackletSim in available:
                fieldsSim = decodeTrackletWord(trackletSim.word)
                if fieldsRaw.z != fieldsSim.z:
                    continue
                distance = abs(fieldsRaw.y - fieldsSim.y)
                if distance > bestDistance:
                    continue
                bestMatch = trackletSim
                bestDistance = distance
            if bestMatch is None:
                unmatchedRaw.append(trackletRaw)
            else:
                matches.append((trackletRaw, bestMatch))
                available.remove(bestMatch)
        unmatchedSim.extend(available)

    logger.debug("Matched {} tracklets, with {} raw and {} simulated tracklets unmatched".format(len(matches), len(unmatchedRaw), len(unmatchedSim)))
    return (matches, unmatchedRaw, unmatchedSim)
