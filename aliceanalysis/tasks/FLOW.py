#!/usr/bin/env python

""" FLOW task: multi-particle azimuthal correlations and pt decorrelations.

For each event, flow vectors are built from the reference flow particles (RFPs) and from the
particles of interest (POIs) in each pt bin. The requested correlators are then calculated and
stored in profiles as a function of centrality (reference), (centrality, pt) (differential) and
(centrality, pt_A, pt_B) (pt-pt decorrelation).

Each profile entry is the event average ``Re(numerator) / Re(denominator)``, filled with the
event weight ``Re(denominator)``, where the denominator is the correlator with all harmonics set to 0.
Events without enough particles to build the correlator (denominator of 0) are skipped.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..base import config
from ..framework import analysisTask
from ..framework import histograms
from ..flow import corrTask
from ..flow import flowVectors
from ..flow import weights

logger = logging.getLogger(__name__)

# Event counter labels, in the order of the bins.
eventCounterLabels = ["Input", "Centrality", "Vertex z", "Selected"]

class FlowTask(analysisTask.analysisTask):
    """ Flow and decorrelation task.

    Args:
        name (str): Name of the task.
        parameters (dict): Task configuration. See ``aliceanalysis/tasks/config.yaml`` for the available options.

    Attributes:
        correlators (list): Requested correlators (``CorrTask``).
        centAxis (histograms.Axis): Centrality binning.
        ptAxis (histograms.Axis): Pt binning for the differential correlators.
        vectors (flowVectors.FlowVectorSet): Flow vectors of the current event.
        nuaWeights (weights.FlowWeights): Acceptance weights.
        rng (numpy.random.Generator): Random number generator for the sampling index.
    """
    def __init__(self, name, parameters):
        super(FlowTask, self).__init__(name = name, parameters = parameters)
        p = self.parameters
        self.sampling = p.get("sampling", False)
        self.numSamples = p.get("numSamples", 1) if self.sampling else 1
        if self.numSamples < 1:
            raise analysisTask.TaskException(msg = "InvalidNumberOfSamples", numSamples = self.numSamples)
        self.fillQA = p.get("fillQA", True)
        self.centEstimator = p.get("centralityEstimator", "V0M")
        self.centAxis = histograms.Axis(edges = p.get("centralityBins", [0.0, 5.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0]))
        self.ptAxis = histograms.Axis(edges = p.get("ptBins", [0.2, 0.5, 1.0, 2.0, 3.0, 5.0]))
        self.pvtxZMax = p.get("pvtxZMax", 10.0)
        self.trackFilterBit = p.get("trackFilterBit", 96)
        self.dcaZMax = p.get("chargedDCAzMax", 0.0)
        self.dcaXYMax = p.get("chargedDCAxyMax", 0.0)
        self.tpcClsMin = p.get("chargedNumTPCclsMin", 0)
        self.rfpPtMin, self.rfpPtMax = p.get("rfpPtRange", [0.2, 5.0])
        self.poiPtMin, self.poiPtMax = p.get("poiPtRange", [0.2, 5.0])
        self.absEtaMax = p.get("absEtaMax", 0.8)
        self.etaBinNum = p.get("etaBins", 32)
        self.phiBinNum = p.get("phiBins", 60)
        self.etaGap = p.get("etaGap", 0.0)
        self.hasGap = p.get("hasGap", False)
        self.useWeights3D = p.get("useWeights3D", False)
        self.fillWeights = p.get("fillWeights", False)
        self.doRef = p.get("doRef", True)
        self.doDiff = p.get("doDiff", False)
        self.doPtB = p.get("doPtB", False)

        self.correlators = [corrTask.CorrTask.fromConfig(c) for c in p.get("correlators", [])]
        for corr in self.correlators:
            if corr.hasGap and not self.hasGap:
                logger.warning("Correlator {} requests a gap, but the task doesn't fill the gap vectors."
                               " Enable hasGap to calculate it.".format(corr.name))
            elif corr.hasGap and abs(corr.gap - self.etaGap) > 1e-6:
                logger.warning("Correlator {} requests gap {}, but the sub-events are separated by {}.".format(corr.name, corr.gap, self.etaGap))

        self.nuaWeights = self._loadWeights(p.get("weightsFile", None), p.get("weightsAreDistribution", False))
        self.rng = np.random.default_rng(p.get("randomSeed", None))
        self.vectors = flowVectors.FlowVectorSet()
        self.samplingIndex = 0
        # Correlator functions to evaluate, keyed by correlator name. Determined when booking the outputs.
        self.evaluators = {}

    def _loadWeights(self, filename, isDistribution):
        """ Load the NUA weights from a YAML histogram summary. Without a file, unit weights are used. """
        if not filename:
            logger.info("No weights file specified. Using unit weights.")
            return weights.FlowWeights()
        with open(filename, "r") as f:
            values = config.yamlLoader().load(f)
        nuaWeights = weights.FlowWeights.fromDict(values, isDistribution = isDistribution)
        if nuaWeights.uses3D != self.useWeights3D:
            raise analysisTask.TaskException(msg = "WeightsDimensionMismatch", filename = filename,
                                             useWeights3D = self.useWeights3D)
        logger.info("Loaded weights from {}".format(filename))
        return nuaWeights

    ###################################################
    # Outputs
    ###################################################
    def userCreateOutputObjects(self):
        hists = [
            ("EventCounter", "Event counter", [(len(eventCounterLabels), -0.5, len(eventCounterLabels) - 0.5)]),
        ]
        if self.fillQA:
            hists.extend([
                ("QA_Vz", "PV #it{z};#it{z} (cm)", [(100, -20.0, 20.0)]),
                ("QA_Centrality", "Centrality ({});centrality (%)".format(self.centEstimator), [(100, 0.0, 100.0)]),
                ("QA_Multiplicity", "RFP multiplicity;centrality (%);multiplicity", [(100, 0.0, 100.0), (500, 0.0, 5000.0)]),
                ("QA_Pt", "Selected tracks;#it{p}_{T} (GeV/#it{c})", [(150, 0.0, 15.0)]),
                ("QA_Phi", "Selected tracks;#varphi", [(100, 0.0, 2 * np.pi)]),
                ("QA_Eta", "Selected tracks;#eta", [(80, -2.0, 2.0)]),
                ("QA_DCAxy", "Selected tracks;DCA_{xy} (cm)", [(200, 0.0, 10.0)]),
                ("QA_DCAz", "Selected tracks;DCA_{z} (cm)", [(200, -10.0, 10.0)]),
            ])
        self.bookHistograms(hists)

        if self.fillWeights:
            for label in ["RFP", "POI"]:
                axes = [histograms.Axis(self.phiBinNum, 0.0, 2 * np.pi, title = "#varphi"),
                        histograms.Axis(self.etaBinNum, -self.absEtaMax, self.absEtaMax, title = "#eta")]
                if self.useWeights3D:
                    axes.append(histograms.Axis(20, -self.pvtxZMax, self.pvtxZMax, title = "PV #it{z} (cm)"))
                self.outputList.add(histograms.Histogram("Weights{}".format(label), "{} distribution".format(label), axes))

        for corr in self.correlators:
            self.evaluators[corr.name] = self._evaluators(corr)
            if not self.evaluators[corr.name]:
                logger.info("No observables available for correlator {} with the current settings.".format(corr.name))
            for family, label, _ in self.evaluators[corr.name]:
                for sample in range(self.numSamples):
                    name = self.profileName(family, label, corr, sample)
                    self.outputList.add(histograms.Profile(name, corr.name, self._profileAxes(family)))

    def _profileAxes(self, family):
        if family == "Ref":
            return [self.centAxis]
        if family in ["Diff", "PtAPtA"]:
            return [self.centAxis, self.ptAxis]
        return [self.centAxis, self.ptAxis, self.ptAxis]

    def profileName(self, family, label, corr, sample = 0):
        """ Name of the profile storing a correlator.

        Args:
            family (str): "Ref", "Diff", "PtAPtA" or "PtAPtB".
            label (str): Sub-event label of the correlator (ex. "GapP"), or "".
            corr (corrTask.CorrTask): The correlator.
            sample (int): Sampling index. Default: 0.
        Returns:
            str: Name of the profile.
        """
        name = family
        if label:
            name += "_" + label
        name += "_" + corr.name
        if self.sampling:
            name += "_sample{}".format(sample)
        return name

    def _evaluators(self, corr):
        """ Determine which correlator functions should be calculated for a requested correlator.

        Args:
            corr (corrTask.CorrTask): The requested correlator.
        Returns:
            list: ``(family, label, function)`` tuples, where the function is a ``FlowVectorSet`` method name.
        """
        n = corr.numHarmonics
        evaluators = []
        if corr.hasGap:
            ref = {2: [("", "twoGap10")], 3: [("GapP", "threeGapP"), ("GapM", "threeGapM")], 4: [("", "fourGap10")]}
            diff = {2: [("Gap10M", "twoDiffGap10M"), ("Gap10P", "twoDiffGap10P")],
                    3: [("GapP", "threeDiffGapP"), ("GapM", "threeDiffGapM")],
                    4: [("Gap10M", "fourDiffGap10M"), ("Gap10P", "fourDiffGap10P")]}
            ptB = {2: [("", "twoDiffGap10_PtA_PtB")], 4: [("", "fourDiffGap10_PtA_PtB")]}
            ptA = {}
        else:
            ref = {2: [("", "two")], 3: [("", "three")], 4: [("", "four")], 5: [("", "five")],
                   6: [("", "six")], 7: [("", "seven")], 8: [("", "eight")]}
            diff = {2: [("", "twoDiff")], 3: [("", "threeDiff")], 4: [("", "fourDiff")], 6: [("", "sixDiff")]}
            ptB = {2: [("", "twoDiff_PtA_PtB")], 4: [("", "fourDiff_PtA_PtB")]}
            ptA = {4: [("", "fourDiff_PtA_PtA")]}

        if corr.hasGap and not self.hasGap:
            return evaluators
        if corr.doRFPs and self.doRef:
            evaluators.extend(("Ref", label, func) for label, func in ref.get(n, []))
        if corr.doPOIs and self.doDiff:
            evaluators.extend(("Diff", label, func) for label, func in diff.get(n, []))
        if corr.doPOIs and self.doPtB:
            evaluators.extend(("PtAPtA", label, func) for label, func in ptA.get(n, []))
            evaluators.extend(("PtAPtB", label, func) for label, func in ptB.get(n, []))
        return evaluators

    ###################################################
    # Selections
    ###################################################
    def isEventSelected(self, event):
        """ Apply the event selection, filling the event counter.

        Args:
            event (eventObjects.eventContainer): Current event.
        Returns:
            bool: True if the event is selected.
        """
        counter = self.hist("EventCounter")
        counter.fill(0)
        centrality = event.getCentrality(self.centEstimator)
        if centrality < self.centAxis.low or centrality >= self.centAxis.high:
            return False
        counter.fill(1)
        if abs(event.vz) > self.pvtxZMax:
            return False
        counter.fill(2)
        counter.fill(3)
        return True

    def isTrackSelected(self, track):
        if track.charge == 0:
            return False
        if self.trackFilterBit and not track.testFilterMask(self.trackFilterBit):
            return False
        if self.tpcClsMin > 0 and track.tpcNcls < self.tpcClsMin:
            return False
        if self.dcaZMax > 0 and abs(track.dcaZ) > self.dcaZMax:
            return False
        if self.dcaXYMax > 0 and abs(track.dcaXY) > self.dcaXYMax:
            return False
        return True

    def isWithinRP(self, pt, eta):
        return self.rfpPtMin <= pt <= self.rfpPtMax and abs(eta) <= self.absEtaMax

    def isWithinPOI(self, pt, eta):
        return self.poiPtMin <= pt <= self.poiPtMax and abs(eta) <= self.absEtaMax

    def getSamplingIndex(self):
        """ Randomly assign the event to a sample. Always 0 if sampling is disabled. """
        if not self.sampling:
            return 0
        return int(self.rng.integers(0, self.numSamples))

    ###################################################
    # Event processing
    ###################################################
    def userExec(self, event):
        if not self.isEventSelected(event):
            return
        centrality = event.getCentrality(self.centEstimator)
        vz = event.vz
        self.samplingIndex = self.getSamplingIndex()

        # Collect the selected particles
        phis, etas, pts, w, isRFP, isPOI = [], [], [], [], [], []
        for track in event.tracks:
            if not self.isTrackSelected(track):
                continue
            pt, eta, phi = track.pt, track.eta, track.phi
            rfp = self.isWithinRP(pt, eta)
            poi = self.isWithinPOI(pt, eta)
            if not rfp and not poi:
                continue
            if self.fillQA:
                self.hist("QA_Pt").fill(pt)
                self.hist("QA_Phi").fill(phi)
                self.hist("QA_Eta").fill(eta)
                self.hist("QA_DCAxy").fill(abs(track.dcaXY))
                self.hist("QA_DCAz").fill(track.dcaZ)
            if self.fillWeights:
                values = (phi, eta, vz) if self.useWeights3D else (phi, eta)
                if rfp:
                    self.hist("WeightsRFP").fill(*values)
                if poi:
                    self.hist("WeightsPOI").fill(*values)
            phis.append(phi)
            etas.append(eta)
            pts.append(pt)
            w.append(self.nuaWeights.getWeight(phi, eta, vz))
            isRFP.append(rfp)
            isPOI.append(poi)

        particles = {
            "phi": np.array(phis, dtype = np.float64),
            "eta": np.array(etas, dtype = np.float64),
            "pt": np.array(pts, dtype = np.float64),
            "weight": np.array(w, dtype = np.float64),
            "rfp": np.array(isRFP, dtype = bool),
            "poi": np.array(isPOI, dtype = bool),
        }

        if self.fillQA:
            self.hist("QA_Vz").fill(vz)
            self.hist("QA_Centrality").fill(centrality)
            self.hist("QA_Multiplicity").fill(centrality, np.count_nonzero(particles["rfp"]))

        self.vectors.reset()
        self.fillRPVectors(particles)
        for corr in self.correlators:
            self.calculateCorrelations(corr, centrality, "Ref")

        if not (self.doDiff or self.doPtB):
            return
        for binA in range(1, self.ptAxis.nBins + 1):
            self.vectors.resetPOIs()
            self.fillPOIVectors(particles, self.ptAxis.binLowEdge(binA), self.ptAxis.binUpEdge(binA))
            ptA = self.ptAxis.binCenter(binA)
            for corr in self.correlators:
                self.calculateCorrelations(corr, centrality, "Diff", ptA = ptA)
                self.calculateCorrelations(corr, centrality, "PtAPtA", ptA = ptA)
            if not self.doPtB:
                continue
            for binB in range(1, self.ptAxis.nBins + 1):
                self.vectors.resetPtB()
                self.vectors.sameBin = (binA == binB)
                self.fillPtBVectors(particles, self.ptAxis.binLowEdge(binB), self.ptAxis.binUpEdge(binB))
                ptB = self.ptAxis.binCenter(binB)
                for corr in self.correlators:
                    self.calculateCorrelations(corr, centrality, "PtAPtB", ptA = ptA, ptB = ptB)
            self.vectors.sameBin = False

    def _fillWithGap(self, name, selection, particles):
        """ Fill a flow vector and (if enabled) its sub-event vectors for the selected particles. """
        getattr(self.vectors, name).fill(particles["phi"][selection], particles["weight"][selection])
        if not self.hasGap:
            return
        eta = particles["eta"]
        negative = selection & (eta < -self.etaGap / 2.0)
        positive = selection & (eta > self.etaGap / 2.0)
        getattr(self.vectors, name + "Gap10M").fill(particles["phi"][negative], particles["weight"][negative])
        getattr(self.vectors, name + "Gap10P").fill(particles["phi"][positive], particles["weight"][positive])

    def fillRPVectors(self, particles):
        self._fillWithGap("Q", particles["rfp"], particles)

    def fillPOIVectors(self, particles, ptLow, ptHigh):
        inBin = particles["poi"] & (particles["pt"] >= ptLow) & (particles["pt"] < ptHigh)
        self._fillWithGap("p", inBin, particles)
        self._fillWithGap("q", inBin & particles["rfp"], particles)

    def fillPtBVectors(self, particles, ptLow, ptHigh):
        inBin = particles["poi"] & (particles["pt"] >= ptLow) & (particles["pt"] < ptHigh)
        self._fillWithGap("pPtB", inBin, particles)
        self._fillWithGap("qPtB", inBin & particles["rfp"], particles)

    def calculateCorrelations(self, corr, centrality, family, ptA = None, ptB = None):
        """ Calculate the correlators of one family for a requested correlator and fill the profiles.

        Args:
            corr (corrTask.CorrTask): Requested correlator.
            centrality (float): Event centrality.
            family (str): "Ref", "Diff", "PtAPtA" or "PtAPtB".
            ptA (float): Pt of the first POI bin. Default: None.
            ptB (float): Pt of the second POI bin. Default: None.
        Returns:
            int: Number of profiles which were filled.
        """
        nFilled = 0
        zeros = [0] * corr.numHarmonics
        for evaluatorFamily, label, funcName in self.evaluators.get(corr.name, []):
            if evaluatorFamily != family:
                continue
            func = getattr(self.vectors, funcName)
            denominator = func(*zeros).real
            if denominator == 0:
                continue
            value = func(*corr.harmonics).real / denominator
            coordinates = [centrality]
            if ptA is not None:
                coordinates.append(ptA)
            if ptB is not None:
                coordinates.append(ptB)
            profile = self.hist(self.profileName(family, label, corr, self.samplingIndex))
            profile.fill(*coordinates, value, weight = denominator)
            nFilled += 1
        return nFilled

def describeFLOWTask():
    return "Multi-particle azimuthal correlations and pt decorrelation observables."

def createFLOWTask(parameters):
    """ Create the flow task from its configuration.

    Args:
        parameters (dict): Task configuration.
    Returns:
        FlowTask: The configured task.
    """
    return FlowTask(name = parameters.get("name", "FLOW"), parameters = parameters)
