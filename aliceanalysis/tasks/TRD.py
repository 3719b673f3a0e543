#!/usr/bin/env python

""" TRD task: QA of the TRD online tracklets.

The tracklets calculated in the front-end electronics (raw tracklets) are compared to the tracklets
from the simulation of the electronics (simulated tracklets). The simulated tracklets are further
compared to the MC track references and to the reconstructed tracks. The tracklet efficiency is
determined from pairs of track references of primary MC particles.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..framework import analysisTask
from ..framework import eventObjects
from ..framework import histograms
from ..trd import geometry
from ..trd import trackParam
from ..trd import tracklets

logger = logging.getLogger(__name__)

# Binning of the y position, covering the full range of the 13 bit y field.
yPositionBinning = (8192 // 32, -4096 * tracklets.yUnit, 4095 * tracklets.yUnit)
yResidualBinning = (8192 // 32, -4096 / 32 * tracklets.yUnit, 4095 / 32 * tracklets.yUnit)
deflectionBinning = (128, -64.5, 63.5)

class TrackletQATask(analysisTask.analysisTask):
    """ TRD online tracklet QA.

    Args:
        name (str): Name of the task.
        parameters (dict): Task configuration. See ``aliceanalysis/tasks/config.yaml`` for the available options.

    Attributes:
        geo (geometry.trdGeometry): TRD geometry.
        minPt (float): Minimum pt of MC particles and track references.
    """
    def __init__(self, name, parameters):
        super(TrackletQATask, self).__init__(name = name, parameters = parameters)
        p = self.parameters
        self.minPt = p.get("minPt", 1.0)
        self.geo = geometry.trdGeometry(**p.get("geometry", {}))

    def userCreateOutputObjects(self):
        self.bookHistograms([
            ("ypos", "Tracklet (sim) y-position;y (cm);count", [yPositionBinning]),
            ("ypos_raw", "Tracklet (raw) y-position;y (cm);count", [yPositionBinning]),
            ("yres", "Tracklet (sim) #Deltay;y_{tracklet}-y_{MC} (cm);count", [yResidualBinning]),
            ("yresdy", "Tracklet (sim) #Deltay;y_{tracklet}-y_{MC} (cm);deflection (bin)", [yResidualBinning, deflectionBinning]),
            ("yresesd", "Tracklet #Deltay;y (cm);count", [(100, -10.0, 10.0)]),
            ("ydiff", "Tracklet #Deltay (sim - raw);y_{sim}-y_{raw} (160 #mum);count", [(200, -100.0, 100.0)]),
        ])
        self.bookHistograms([
            ("ylocal_{}".format(layer), "Tracklet local y, layer {};y_{{MC}} (pad width);y_{{trkl}} (pad width)".format(layer),
             [(100, -1.0, 1.0), (100, -1.0, 1.0)]) for layer in range(tracklets.nLayers)
        ])
        self.bookHistograms([
            ("dy", "deflection (sim);dy (140 #mum)", [deflectionBinning]),
            ("dy_raw", "deflection (raw);dy (140 #mum)", [deflectionBinning]),
            ("fHistAlphaRaw", "angle w.r.t. to straight line", [(256, -128.5, 127.5)]),
            ("dyres", "deflection residual;dy (cm)", [(128, -1.0, 1.0)]),
            ("dycand", "deflection;dy (140 #mum)", [deflectionBinning]),
            ("dyfound", "deflection;dy (140 #mum)", [deflectionBinning]),
            ("dydiff", "deflection #Deltady;dy_{sim}-dy_{raw} (140 #mum)", [(100, -2.0, 2.0)]),
            ("dydyraw", "deflection from sim. vs raw;dy_{sim} (140 #mum);dy_{raw} (140 #mum)", [deflectionBinning, deflectionBinning]),
            ("trklperref", "No. of tracklets per track reference;no. of tracklets", [(10, -0.5, 9.5)]),
            ("dydyref", "deflection vs. deflection from track reference;dy_{ref} (140 #mum);dy (140 #mum)", [deflectionBinning, deflectionBinning]),
            ("zrow", "z-position;pad row", [(16, -0.5, 15.5)]),
            ("zrow-raw", "z-position;pad row", [(16, -0.5, 15.5)]),
            ("pid", "pid", [(256, -0.5, 255.5)]),
            ("pid-raw", "pid", [(256, -0.5, 255.5)]),
            ("piddiff", "piddiff", [(256, -127.5, 128.5)]),
            ("ydyraw", "y vs dy (raw tracklets);y (cm);dy (140 #mum)", [yPositionBinning, deflectionBinning]),
            ("nomatchsim", "Unmatched tracklets from Simulation", [yPositionBinning, (tracklets.nDetectors, -0.5, tracklets.nDetectors - 0.5)]),
            ("nomatchraw", "Unmatched tracklets from raw data", [yPositionBinning, (tracklets.nDetectors, -0.5, tracklets.nDetectors - 0.5)]),
        ])
        self.outputList.add(histograms.NTuple("trkl", ["y", "dy", "ydiff", "dydiff", "q0", "q1", "nhits"]))

    def userExec(self, event):
        sim, raw = tracklets.splitTracklets(event.trdTracklets)
        logger.debug("Number of simulated tracklets: {}, raw tracklets: {}".format(len(sim), len(raw)))

        for tracklet in sim:
            self.fillSimulatedTracklet(tracklet)
            if event.isMC:
                self.plotMC(tracklet, event)
            self.plotESD(tracklet, event)
        for tracklet in raw:
            self.fillRawTracklet(tracklet)

        self.compareRawToSimulation(raw, sim)
        if event.isMC:
            self.trackletEfficiency(sim, event)

        for track in event.tracks:
            logger.debug("ESD track pt: {:7.2f}".format(track.pt))
        logger.debug("Number of TRD tracks: {}".format(len(event.trdTracks)))
        for trdTrack in event.trdTracks:
            words = ["{:#010x}".format(t.word) if t is not None else "-" for t in trdTrack.tracklets]
            logger.info("TRD track pt: {:7.2f}, tracklets: {}".format(trdTrack.pt, ", ".join(words)))

    def fillSimulatedTracklet(self, tracklet):
        fields = tracklets.decodeTrackletWord(tracklet.word)
        self.hist("ypos").fill(tracklets.localY(tracklet))
        self.hist("dy").fill(fields.dy)
        self.hist("zrow").fill(fields.z)
        self.hist("pid").fill(fields.pid)
        logger.debug("Simulated tracklet {:#010x} in {:4d}".format(tracklet.word, tracklet.hcID))

    def fillRawTracklet(self, tracklet):
        fields = tracklets.decodeTrackletWord(tracklet.word)
        y = tracklets.localY(tracklet)
        self.hist("ypos_raw").fill(y)
        self.hist("dy_raw").fill(fields.dy)
        # Deflection with respect to a straight line from the vertex
        alpha = fields.dy - tracklets.driftLength / tracklets.dyUnit * y / self.geo.getX(tracklet)
        self.hist("fHistAlphaRaw").fill(alpha)
        self.hist("zrow-raw").fill(fields.z)
        self.hist("pid-raw").fill(fields.pid)
        self.hist("ydyraw").fill(y, fields.dy)

    def compareRawToSimulation(self, raw, sim):
        """ Match the raw and simulated tracklets and fill their differences. """
        matches, unmatchedRaw, unmatchedSim = tracklets.matchTracklets(raw, sim)
        for trackletRaw, trackletSim in matches:
            fieldsRaw = tracklets.decodeTrackletWord(trackletRaw.word)
            fieldsSim = tracklets.decodeTrackletWord(trackletSim.word)
            self.hist("ydiff").fill(fieldsRaw.y - fieldsSim.y)
            self.hist("dydiff").fill(3.0 * tracklets.dyDx(trackletRaw) - 3.0 * tracklets.dyDx(trackletSim))
            self.hist("dydyraw").fill(fieldsSim.dy, fieldsRaw.dy)
            self.hist("piddiff").fill(fieldsRaw.pid - fieldsSim.pid)
        for tracklet in unmatchedRaw:
            self.hist("nomatchraw").fill(tracklets.localY(tracklet), tracklet.detector)
        for tracklet in unmatchedSim:
            self.hist("nomatchsim").fill(tracklets.localY(tracklet), tracklet.detector)

    def trdTrackReferences(self, particle):
        """ TRD track references of a MC particle with sufficient pt. """
        return [ref for ref in particle.trackReferences
                if ref.detectorID == eventObjects.TRD_DETECTOR_ID and ref.pt >= self.minPt]

    def plotMC(self, tracklet, event):
        """ Compare a simulated tracklet to the track references of its MC particle.

        Only clean cases are considered, where exactly two track references are found close to the
        tracklet radial position.

        Args:
            tracklet (eventObjects.trdTrackletContainer): Simulated tracklet.
            event (eventObjects.eventContainer): Current event.
        Returns:
            bool: True if the tracklet was compared to the track references.
        """
        label = tracklet.label
        if label < 0:
            logger.debug("MC tracklet has no label")
            return False
        if label >= len(event.mcParticles):
            logger.error("MC tracklet has invalid label {}".format(label))
            return False
        particle = event.mcParticles[label]
        if particle.pt < self.minPt:
            return False

        x = self.geo.getX(tracklet)
        refs = [ref for ref in self.trdTrackReferences(particle) if abs(x - ref.localX) <= 5.0][:2]
        if len(refs) != 2:
            return False

        detector = tracklet.detector
        alphaDeg = np.rad2deg(refs[0].alpha) % 360.0
        if abs((alphaDeg - 10.0) / 20.0 - tracklets.detectorSector(detector)) > 0.1:
            logger.error("Track reference in different sector (alpha = {:.3f}, detector {})".format(refs[0].alpha, detector))
            return False
        dx = refs[1].localX - refs[0].localX
        dy = refs[1].localY - refs[0].localY
        if not (dx > 0.1 and abs(dy) < 1.0):
            return False
        slope = tracklets.driftLength * dy / dx
        if abs(slope) >= 64 * tracklets.dyUnit:
            return False

        # Extrapolate the track references to the tracklet position, accounting for the pad tilt.
        z = self.geo.getZ(tracklet)
        layer = tracklets.detectorLayer(detector)
        yMC = refs[1].localY + (-0.5 + x - refs[1].localX) * dy / dx
        yMCtilt = yMC + np.tan((-1) ** layer * np.deg2rad(2.0)) * (refs[1].z - z)
        y = tracklets.localY(tracklet)
        trackletDyDx = tracklets.dyDx(tracklet)
        yDiff = y - yMCtilt
        dyDiff = tracklets.driftLength * trackletDyDx - slope
        if abs(yDiff) > 10.0:
            logger.error("Deviation too large for tracklet {:#010x} in det. {} at x = {}, y = {}, z = {}, alpha = {}".format(
                tracklet.word, detector, x, y, z, refs[0].alpha))

        self.hist("yres").fill(yDiff)
        self.hist("yresdy").fill(yDiff, trackletDyDx)
        self.hist("dyres").fill(dyDiff)

        # Position within the pad, to study the position look up table
        padWidth = self.geo.padWidth(detector)
        yMCLocal = yMCtilt / padWidth - np.floor(yMCtilt / padWidth) - padWidth / 2.0
        yLocal = y / padWidth - np.floor(y / padWidth) - padWidth / 2.0
        self.hist("ylocal_{}".format(layer)).fill(yMCLocal, yLocal - yMCLocal)

        self.hist("trkl").fill(y = y, dy = trackletDyDx, ydiff = yDiff, dydiff = dyDiff,
                               q0 = tracklet.q0, q1 = tracklet.q1, nhits = tracklet.nHits)
        if abs(yDiff) > 0.5:
            logger.warning("tracklet: y={:4.2f}, dy={:4.2f}, ydiff={:4.2f}, dydiff={:4.2f}, q0={:5d}, q1={:5d}, nhits={:2d}, label={}".format(
                y, trackletDyDx, yDiff, dyDiff, tracklet.q0, tracklet.q1, tracklet.nHits, label))
        return True

    def plotESD(self, tracklet, event):
        """ Compare a simulated tracklet to the reconstructed tracks propagated to the tracklet.

        Returns:
            int: Number of tracks matched to the tracklet.
        """
        x = self.geo.getX(tracklet)
        y = tracklets.localY(tracklet)
        z = self.geo.getZ(tracklet)
        alpha = self.geo.sectorAlpha(tracklet.detector)
        # Field in kG
        bz = event.magneticField * 10.0

        nMatched = 0
        for track in event.tracks:
            if not track.outerParam:
                continue
            param = trackParam.ExternalTrackParam.fromDict(track.outerParam)
            if not param.propagate(alpha, x, bz):
                logger.debug("Could not propagate track {} to the tracklet at x = {}".format(track, x))
                continue
            if abs(x - param.x) < 10.0 and abs(y - param.y) < 5.0 and abs(z - param.z) < 10.0:
                logger.debug("Match of tracklet-track: {} <-> {}".format(tracklet.label, track.label))
                self.hist("yresesd").fill(y - param.y)
                nMatched += 1
        return nMatched

    def trackletEfficiency(self, sim, event):
        """ Search for simulated tracklets belonging to pairs of track references of primary MC particles.

        Two track references in the same chamber (0.5 to 5 cm apart in the radial direction) define
        the expected tracklet.

        Args:
            sim (list): Simulated tracklets.
            event (eventObjects.eventContainer): Current event.
        """
        for particle in event.mcParticles:
            if not particle.isPhysicalPrimary or particle.pt < self.minPt:
                continue

            first = None
            for ref in self.trdTrackReferences(particle):
                if ref.label < 0:
                    continue
                if first is None:
                    first = ref
                    continue
                distance = abs(ref.localX - first.localX)
                if distance > 5.0:
                    # Different chamber. Start again from this reference.
                    first = ref
                    continue
                if distance < 0.5:
                    continue

                deflection = tracklets.driftLength * (ref.localY - first.localY) / (ref.localX - first.localX)
                first = None
                if abs(deflection) >= 1.0:
                    continue
                self.hist("dycand").fill(deflection / tracklets.dyUnit)

                found = [t for t in sim if t.label == ref.label
                         and abs(ref.localX - self.geo.getX(t)) <= 5.0
                         and abs(ref.localY - tracklets.localY(t)) < 5.0
                         and abs(ref.z - self.geo.getZ(t)) < 5.0]
                self.hist("trklperref").fill(len(found))
                if not found:
                    logger.info("Track ref without assigned tracklet: x={:4.2f}, y={:4.2f}, z={:4.2f}, pt={:4.2f} ({})".format(
                        ref.x, ref.y, ref.z, ref.pt, ref.label))
                elif len(found) == 1:
                    self.hist("dydyref").fill(deflection / tracklets.dyUnit, tracklets.binDy(found[0]))
                    self.hist("dyfound").fill(deflection / tracklets.dyUnit)

def describeTRDTask():
    return "QA of the TRD online tracklets against simulation, MC track references and reconstructed tracks."

def createTRDTask(parameters):
    """ Create the TRD task from its configuration.

    Args:
        parameters (dict): Task configuration.
    Returns:
        TrackletQATask: The configured task.
    """
    return TrackletQATask(name = parameters.get("name", "TRD"), parameters = parameters)
