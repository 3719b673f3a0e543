#!/usr/bin/env python

""" HFE task: tag heavy-flavour jets with electrons.

Electrons are identified with the TPC (nSigma), the EMCal (E/p and shower shape) and the track
to cluster matching. Photonic electrons are tagged via the invariant mass with partner electrons.
Jets containing an electron (identified by matching the electron momentum to a jet constituent)
are heavy-flavour jet candidates. For MC, the electrons are classified by their origin and the
detector level jets are compared to the particle level jets.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..base import utilities
from ..framework import analysisTask
from ..framework import histograms
from ..jets import tagging

logger = logging.getLogger(__name__)

electronMass = 0.000511
kaonMass = 0.493677

# Bit of the AOD filter mask for global tracks without a DCA cut (kTrkGlobalNoDCA).
globalNoDCAMask = 1 << 4
# Bit of the AOD filter mask for TPC only tracks (kTrkTPCOnly).
tpcOnlyMask = 1 << 0

# Bins of the heavy-flavour jet correlation sparse histograms:
# electron pt (reco), electron pt (MC), jet pt (reco, subtracted), jet pt (reco), jet pt (particle), R match, pt hard.
jetPtMax = 300
hfJetSparseBinning = {
    "nBins": [50, 50, jetPtMax, jetPtMax, jetPtMax, 100, jetPtMax],
    "mins": [0, 0, 0, 0, 0, 0, 0],
    "maxs": [50, 50, jetPtMax, jetPtMax, jetPtMax, 1, jetPtMax],
}

def embeddedParticleRanges(headers):
    """ Determine the labels ranges of the embedded pi0 and eta particles from the MC cocktail headers.

    Particles from the pi0 (eta) generator have labels above the returned pi0 (eta) offset.
    Generators are identified by the presence of "pi" and "eta" in their names.

    Args:
        headers (list): MC cocktail headers, in the order of generation.
    Returns:
        tuple: (pi0 offset, eta offset, total number of produced particles)
    """
    nEmbPi0 = 0
    nEmbEta = 0
    nProduced = 0
    for header in headers:
        if "pi" in header.name:
            nEmbPi0 = nProduced - 1
        if "eta" in header.name:
            nEmbEta = nProduced - 1
        nProduced += header.nProduced
    return (nEmbPi0, nEmbEta, nProduced)

class HFJetTagTask(analysisTask.analysisTask):
    """ Heavy-flavour jet tagging with electrons.

    Args:
        name (str): Name of the task.
        parameters (dict): Task configuration. See ``aliceanalysis/tasks/config.yaml`` for the available options.
    """
    def __init__(self, name, parameters):
        super(HFJetTagTask, self).__init__(name = name, parameters = parameters)
        p = self.parameters
        self.centMin = p.get("centralityMin", -20.0)
        self.centMax = p.get("centralityMax", 100.0)
        self.centEstimator = p.get("centralityEstimator", "V0M")
        self.centBins = p.get("centralityBins", [0.0, 10.0, 30.0, 50.0, 100.0])
        self.useHybridTracks = p.get("hybridTracks", True)
        self.useOccCorrection = p.get("occupancyCorrection", False)
        self.nSigmaMin = p.get("nSigmaMin", -1.0)
        self.eopMin = p.get("eopMin", 0.9)
        self.m20Min = p.get("m20Min", 0.01)
        self.m20Max = p.get("m20Max", 0.35)
        self.invMassCut = p.get("invMassCut", 0.1)
        self.ptAssoCut = p.get("associatedPtMin", 0.15)
        self.isMCData = p.get("mcData", False)
        self.mcEopCorrection = p.get("mcEopCorrection", False)
        self.jetCollectionName = p.get("jetCollection", "Jet_AKTChargedR030_tracks")
        self.particleJetCollectionName = p.get("particleJetCollection", "Jet_AKTChargedR030_mcparticles")
        self.randomConeRadius = p.get("randomConeRadius", 0.3)
        self.jetHistBins = p.get("jetHistBinning", [250, 0.0, 250.0])
        self.rng = np.random.default_rng(p.get("randomSeed", None))

        self.nEmbPi0 = 0
        self.nEmbEta = 0
        self.nPureMCProc = 0

    ###################################################
    # Outputs
    ###################################################
    def userCreateOutputObjects(self):
        nBins, minPt, maxPt = self.jetHistBins
        nBins = int(nBins)
        # General histograms per centrality bin
        general = []
        for i in range(len(self.centBins) - 1):
            general.extend([
                ("fHistTracksPt_{}".format(i), "fHistTracksPt_{};p_{{T,track}} (GeV/c);counts".format(i), [(nBins // 2, minPt, maxPt / 2)]),
                ("fHistClustersPt_{}".format(i), "fHistClustersPt_{};p_{{T,clus}} (GeV/c);counts".format(i), [(nBins // 2, minPt, maxPt / 2)]),
                ("fHistLeadingJetPt_{}".format(i), "fHistLeadingJetPt_{};p_{{T}}^{{raw}} (GeV/c);counts".format(i), [(nBins, minPt, maxPt)]),
                ("fHistJetsPhiEta_{}".format(i), "fHistJetsPhiEta_{};#eta;#phi".format(i), [(50, -1.0, 1.0), (101, 0.0, 2 * np.pi + np.pi / 200)]),
                ("fHistJetsPtArea_{}".format(i), "fHistJetsPtArea_{};p_{{T}}^{{raw}} (GeV/c);area".format(i), [(nBins, minPt, maxPt), (30, 0.0, 3.0)]),
                ("fHistJetsPtLeadHad_{}".format(i), "fHistJetsPtLeadHad_{};p_{{T}}^{{raw}} (GeV/c);p_{{T,lead}} (GeV/c)".format(i), [(nBins, minPt, maxPt), (nBins // 2, minPt, maxPt / 2)]),
                ("fHistJetsCorrPtArea_{}".format(i), "fHistJetsCorrPtArea_{};p_{{T}}^{{corr}} (GeV/c);area".format(i), [(nBins * 2, -maxPt, maxPt), (30, 0.0, 3.0)]),
            ])
        self.bookHistograms(general)

        ptBins = (100, 0.0, 20.0)
        jetPtBins = (300, -100.0, 200.0)
        electronJetBins = [(20, 0.0, 20.0), jetPtBins]
        self.bookHistograms([
            ("fHistClustDx", "fHistClustDx;Dx", [(1000, 0.0, 1.0)]),
            ("fHistClustDz", "fHistClustDz;Dz", [(1000, 0.0, 1.0)]),
            ("fHistMultCent", "centrality distribution", [(100, 0.0, 100.0)]),
            ("fHistZcorr", "Z vertex corr V0 and SPD", [(100, -50.0, 50.0), (100, -50.0, 50.0)]),
            ("fHistCent", "centrality distribution", [(100, 0.0, 100.0)]),
            ("fHistTPCnSigma", "TPC nSigma;p_{T}(GeV/c);n#sigma", [ptBins, (250, -5.0, 5.0)]),
            ("fHistTPCnSigma_ele", "TPC nSigma electron;p_{T}(GeV/c);n#sigma", [(20, 0.0, 20.0), (250, -5.0, 5.0)]),
            ("fHistTPCnSigma_had", "TPC nSigma hadron;p_{T}(GeV/c);n#sigma", [(20, 0.0, 20.0), (250, -5.0, 5.0)]),
            ("fHistTPCnSigma_eMC", "TPC nSigma electron in MC;p_{T}(GeV/c);n#sigma", [(20, 0.0, 20.0), (250, -5.0, 5.0)]),
            ("fHistEopNsig", "E/p vs. Nsig;Nsig;E/p", [(200, -5.0, 5.0), (200, 0.0, 4.0)]),
            ("fHistEop", "E/p;p_{T}(GeV/c);E/p", [ptBins, (200, 0.0, 4.0)]),
            ("fHistEopHFE", "HFE E/p;p_{T}(GeV/c);E/p", [ptBins, (200, 0.0, 4.0)]),
            ("fHistEopHad", "E/p hadron;p_{T}(GeV/c);E/p", [ptBins, (200, 0.0, 4.0)]),
            ("fHistEopHFjet", "E/p HFjet;p_{T}(GeV/c);E/p", [(10, 0.0, 100.0), (200, 0.0, 4.0)]),
            ("fHistNsigHFjet", "Nsigma HFjet;p_{T}(GeV/c);Nsigma", [(10, 0.0, 100.0), (250, -5.0, 5.0)]),
            ("fHistJetOrg", "Inclusive jet org;p_{T}", [jetPtBins]),
            ("fHistJetOrgArea", "Inclusive jet org vs. Area;p_{T};Area", [jetPtBins, (100, 0.0, 1.0)]),
            ("fHistJetBG", "BG jet;p_{T}", [jetPtBins]),
            ("fHistJetSub", "Sub jet;p_{T}", [jetPtBins]),
            ("fHisteJetOrg", "Inclusive jet org e;p_{T}", [jetPtBins]),
            ("fHisteJetBG", "BG jet e;p_{T}", [jetPtBins]),
            ("fHisteJetSub", "Sub jet e;p_{T}", [jetPtBins]),
            ("fHistIncEle", "Inclusive electron;p_{T}", [ptBins]),
            ("fHistHfEleMC", "HF electron;p_{T}", [ptBins]),
            ("fHistHfEleMCreco", "HF reco electron;p_{T}", [ptBins]),
            ("fHistIncEleInJet0", "Inclusive electron in Jet;p_{T}", [ptBins]),
            ("fHistIncEleInJet1", "Inclusive electron in Jet;p_{T}", [ptBins]),
            ("fHistPhoEleMC", "Photonic e MC;p_{T}", [ptBins]),
            ("fHistPhoEleMCpi0", "Photonic e from pi0 MC;p_{T}", [ptBins]),
            ("fHistPhoEleMCeta", "Photonic e from eta MC;p_{T}", [ptBins]),
            ("fHistPhoEleMCreco", "Photonic e MC reco;p_{T}", [ptBins]),
            ("fHistPhoEleMCrecopi0", "Photonic e from pi0 MC reco;p_{T}", [ptBins]),
            ("fHistPhoEleMCrecoeta", "Photonic e from eta MC reco;p_{T}", [ptBins]),
            ("fHistMCorgPi0", "MC org Pi0", [(100, 0.0, 50.0)]),
            ("fHistMCorgEta", "MC org Eta", [(100, 0.0, 50.0)]),
            ("fHistIncjet", "Inc jet;p_{T}", electronJetBins),
            ("fHistIncjetFrac", "Inc jet e frac;p_{T}", [(20, 0.0, 20.0), (150, 0.0, 1.5)]),
            ("fHistIncjetOrg", "Inc jet org;p_{T}", electronJetBins),
            ("fHistIncjetBG", "Inc BG jet;p_{T}", electronJetBins),
            ("fHistHFjet", "HF jet;p_{T}", electronJetBins),
            ("fHistHFdijet", "HF Dijet;p_{T}", [jetPtBins]),
            ("fHistULSjet", "ULS jet;p_{T}", electronJetBins),
            ("fHistHadjet", "Hadron jet;p_{T}", electronJetBins),
            ("fHistLSjet", "LS jet;p_{T}", electronJetBins),
            ("fHistHFjetOrder", "HF jet;p_{T}", [jetPtBins, (30, 0.0, 30.0)]),
            ("fHistDiJetPhi", "HF dijet;p_{T}(GeV/c);#delta #phi", [(100, 0.0, 100.0), (320, -3.2, 3.2)]),
            ("fHistDiJetMomBalance", "HF dijet;p_{T}(GeV/c);#delta p_{T}", [(100, 0.0, 100.0), (100, 0.0, 1.0)]),
            ("fHistDiJetMomBalance_All", "HF dijet;p_{T}(GeV/c);#delta p_{T}", [(100, 0.0, 100.0), (100, 0.0, 1.0)]),
            ("fHistDiJetPhi_MC", "HF dijet (part level);p_{T}(GeV/c);#delta #phi", [(100, 0.0, 100.0), (320, -3.2, 3.2)]),
            ("fHistDiJetMomBalance_MC", "HF dijet (part level);p_{T}(GeV/c);#delta p_{T}", [(100, 0.0, 100.0), (100, 0.0, 1.0)]),
            ("fInvmassULS", "ULS mass;p_{T};mass", [(20, 0.0, 20.0), (150, 0.0, 0.3)]),
            ("fInvmassLS", "LS mass;p_{T};mass", [(20, 0.0, 20.0), (150, 0.0, 0.3)]),
            ("fInvmassHFuls", "HF mass;p_{T};mass", [(100, 0.0, 100.0), (500, 0.0, 5.0)]),
            ("fInvmassHFls", "HF mass;p_{T};mass", [(100, 0.0, 100.0), (500, 0.0, 5.0)]),
            ("feJetCorr", "e-jet dphi;iso;dphi", [(50, 0.0, 0.05), (700, -3.5, 3.5)]),
            ("fQAHistJetPhi", "jet phi", [(650, 0.0, 6.5)]),
            ("fQAHistTrPhiJet", "track phi in Jet", [(650, 0.0, 6.5)]),
            ("fQAHistTrPhi", "track phi", [(650, 0.0, 6.5)]),
            ("fQAHistNits", "ITS hits", [(7, -0.5, 6.5)]),
            ("fHistClustE", "EMCAL cluster energy distribution;Cluster E;counts", [(500, 0.0, 50.0)]),
            ("fHistClustEtime", "EMCAL cluster energy distribution with time;Cluster E;counts", [(500, 0.0, 50.0)]),
            ("fEMCClsEtaPhi", "EMCAL cluster #eta and #phi distribution;#eta;#phi", [(1800, -0.9, 0.9), (630, 0.0, 6.3)]),
            ("fHistBGfrac", "BG frac;#Delta p_{T}(GeV/c)", [(200, -100.0, 100.0)]),
            ("fHistBGfracHFEev", "BG frac;#Delta p_{T}(GeV/c)", [(200, -100.0, 100.0)]),
            ("fHistJetEnergyReso", ";p_{T,ch jet}^{part};(p_{T,ch,jet}^{det}-p_{T,ch,jet}^{part})/p_{T,ch,jet}^{part}", [(100, 0.0, 100.0), (200, -1.0, 1.0)]),
        ])

        sparseTitle = "p_{T}^{reco};p_{T}^{MC};jet_{reco};jet_{MC};jet_{particle};R match;pThard"
        for name, title in [("HFjetCorr1", "HF MC Corr"), ("HFjetCorr2", "HF MC Corr (trk eff reduced 4%)"),
                            ("HFjetCorr3", "HF MC Corr (trk eff reduced 5%)"), ("HFjetParticle", "HF particle")]:
            self.outputList.add(histograms.SparseHistogram(name, "{};{}".format(title, sparseTitle), **hfJetSparseBinning))

    ###################################################
    # Helpers
    ###################################################
    def centralityBin(self, centrality):
        """ Determine the centrality bin of the general histograms. Events outside of the bins use bin 0. """
        for i, (low, high) in enumerate(zip(self.centBins[:-1], self.centBins[1:])):
            if low <= centrality < high:
                return i
        return 0

    def isCentralitySelected(self, centrality):
        """ Centrality selection. A minimum below -10 denotes pp, where all events are selected. """
        if self.centMin < -10:
            return True
        return self.centMin < centrality < self.centMax

    def isTrackSelected(self, track, kinkMotherIDs):
        """ Track quality selection for electron candidates.

        Note:
            The pseudorapidity and track type selections are applied separately because QA
            histograms are filled in between.
        """
        if abs(track.dcaXY) > 3.0 or abs(track.dcaZ) > 3.0:
            return False
        if track.tpcNcls < 80:
            return False
        if track.itsNcls < 1:
            return False
        if not (track.hasPointOnITSLayer(0) or track.hasPointOnITSLayer(1)):
            return False
        if not (track.itsRefit and track.tpcRefit):
            return False
        if track.trackID in kinkMotherIDs:
            return False
        return True

    def isTrackTypeSelected(self, track):
        if self.useHybridTracks:
            return track.isHybrid()
        return track.testFilterMask(globalNoDCAMask)

    def selectPhotonicElectron(self, index, track, tracks):
        """ Tag photonic electrons via the invariant mass with partner electrons.

        Args:
            index (int): Index of the electron candidate in the track list.
            track (eventObjects.trackContainer): Electron candidate.
            tracks (list): All tracks of the event.
        Returns:
            tuple: (unlike sign pair found, like sign pair found), where a pair is found if the
                invariant mass is below the invariant mass cut.
        """
        flagULS = False
        flagLS = False
        for partnerIndex, partner in enumerate(tracks):
            if partnerIndex == index:
                continue
            if not partner.testFilterMask(tpcOnlyMask):
                continue
            if partner.tpcNcls < 70:
                continue
            if not (partner.itsRefit and partner.tpcRefit):
                continue
            if partner.pt < self.ptAssoCut:
                continue
            if abs(partner.eta) > 0.9:
                continue
            nSigma = partner.nSigma("electron")
            if nSigma < -3 or nSigma > 3:
                continue

            mass = tagging.invariantMass(track.momentum, electronMass, partner.momentum, electronMass)
            likeSign = (track.charge == partner.charge)
            if track.pt > 1:
                self.hist("fInvmassLS" if likeSign else "fInvmassULS").fill(track.pt, mass)
            if mass < self.invMassCut:
                if likeSign:
                    flagLS = True
                else:
                    flagULS = True
        return (flagULS, flagLS)

    def getFakeHadronJet(self, pt, momentum, rho, jets):
        """ Fill the jet pt for jets tagged by a hadron passing the E/p selection. """
        for jet in jets.acceptedJets():
            if not tagging.tagHFjet(jets.constituents(jet), momentum):
                continue
            if abs(jet.eta) < 0.6:
                self.hist("fHistHadjet").fill(pt, jet.pt - rho * jet.area)

    ###################################################
    # Event processing
    ###################################################
    def userExec(self, event):
        """ Run the main analysis, and only fill the general histograms if the event was selected. """
        centrality = event.getCentrality(self.centEstimator)
        jets = event.jetCollection(self.jetCollectionName)
        if self.run(event, centrality, jets):
            self.fillHistograms(event, self.centralityBin(centrality), jets)

    def fillHistograms(self, event, centBin, jets):
        """ Fill the general track, cluster and jet histograms for the centrality bin. """
        for track in event.tracks:
            self.hist("fHistTracksPt_{}".format(centBin)).fill(track.pt)
        for cluster in event.clusters:
            self.hist("fHistClustersPt_{}".format(centBin)).fill(cluster.pt)
            self.hist("fHistClustDx").fill(cluster.trackDx)
            self.hist("fHistClustDz").fill(cluster.trackDz)
        if jets is None:
            return
        for jet in jets.acceptedJets():
            self.hist("fHistJetsPtArea_{}".format(centBin)).fill(jet.pt, jet.area)
            self.hist("fHistJetsPhiEta_{}".format(centBin)).fill(jet.eta, jet.phi)
            self.hist("fHistJetsPtLeadHad_{}".format(centBin)).fill(jet.pt, jets.leadingHadronPt(jet))
            self.hist("fHistJetsCorrPtArea_{}".format(centBin)).fill(jet.pt - jets.rho * jet.area, jet.area)
        leadingJet = jets.leadingJet()
        if leadingJet is not None:
            self.hist("fHistLeadingJetPt_{}".format(centBin)).fill(leadingJet.pt)

    def fillClusterQA(self, event):
        for cluster in event.clusters:
            if not cluster.isEMCal:
                continue
            eta, phi = cluster.etaPhi()
            if tagging.dcalPhiAcceptance(phi):
                continue
            tof = cluster.tof * 1e9
            self.hist("fEMCClsEtaPhi").fill(eta, phi)
            self.hist("fHistClustE").fill(cluster.energy)
            if -30 < tof < 30:
                self.hist("fHistClustEtime").fill(cluster.energy)

    def fillInclusiveJets(self, jets):
        """ Inclusive jet QA, storing the leading and subleading jets for the dijet and background studies.

        Args:
            jets (eventObjects.jetCollection): Detector level jets.
        Returns:
            tuple: (pt, eta, phi) lists of length 3 for the leading, subleading and tagged jets. The
                pt is background subtracted. The tagged jet entries are left at 0.
        """
        exJetPt = [0.0, 0.0, 0.0]
        exJetEta = [0.0, 0.0, 0.0]
        exJetPhi = [0.0, 0.0, 0.0]
        for i, jet in enumerate(jets.acceptedJets()):
            rhoArea = jets.rho * jet.area
            ptSub = jet.pt - rhoArea
            if i < 2:
                exJetPt[i] = ptSub
                exJetEta[i] = jet.eta
                exJetPhi[i] = jet.phi
            self.hist("fQAHistJetPhi").fill(jet.phi)
            self.hist("fHistJetOrgArea").fill(jet.pt, jet.area)
            if abs(jet.eta) < 0.6 and jet.nConstituents > 2:
                self.hist("fHistJetOrg").fill(jet.pt)
                self.hist("fHistJetBG").fill(rhoArea)
                self.hist("fHistJetSub").fill(ptSub)
            for constituent in jets.constituents(jet):
                self.hist("fQAHistTrPhiJet").fill(constituent.phi)

        if exJetPt[0] > 10.0 and exJetPt[1] > 10.0:
            balance = (exJetPt[0] - exJetPt[1]) / (exJetPt[0] + exJetPt[1])
            self.hist("fHistDiJetMomBalance_All").fill(exJetPt[0], balance)
        return (exJetPt, exJetEta, exJetPhi)

    def randomConeFluctuation(self, event, jets, exJetPhi, exJetEta):
        """ Random cone pt minus the expected background in the cone. """
        pt = tagging.calRandomCone(exJetPhi, exJetEta, self.randomConeRadius, event.tracks, self.rng)
        return pt - jets.rho * np.pi * self.randomConeRadius ** 2

    def makeParticleLevelJet(self, event):
        """ Particle level heavy-flavour jets, as well as the embedded pi0 and eta spectra. """
        self.nEmbPi0, self.nEmbEta, self.nPureMCProc = embeddedParticleRanges(event.mcHeaders)
        particleJets = event.jetCollection(self.particleJetCollectionName)

        for label, particle in enumerate(event.mcParticles):
            mother = event.mcParticle(particle.mother) if particle.mother > 0 else None
            motherPdg = mother.pdg if mother is not None else 0
            eta = particle.eta
            if abs(eta) >= 0.6:
                continue
            if particle.pdg == 111 and self.nEmbPi0 < label < self.nEmbEta:
                self.hist("fHistMCorgPi0").fill(particle.pt)
            if particle.pdg == 221 and label > self.nEmbEta:
                self.hist("fHistMCorgEta").fill(particle.pt)

            if abs(particle.pdg) != 11 or motherPdg == 0 or not tagging.isHeavyFlavour(motherPdg):
                continue
            self.hist("fHistHfEleMC").fill(particle.pt)
            if particleJets is None:
                continue

            leadingPt = -1.0
            leadingPhi = -1.0
            for i, jet in enumerate(particleJets.acceptedJets()):
                if abs(jet.eta) < 0.6 and tagging.tagHFjet(particleJets.constituents(jet), particle.momentum):
                    logger.debug("Particle level HF jet with pt {} for electron with pt {}".format(jet.pt, particle.pt))
                    self.hist("HFjetParticle").fill([0.0, particle.pt, 0.0, 0.0, jet.pt, 0.0, 0.0])
                    if i == 0:
                        leadingPt = jet.pt
                        leadingPhi = jet.phi
                if i == 1 and leadingPt > 0.0 and jet.pt > 10:
                    dPhi = utilities.deltaPhi(leadingPhi, jet.phi)
                    balance = (leadingPt - jet.pt) / (leadingPt + jet.pt)
                    self.hist("fHistDiJetPhi_MC").fill(leadingPt, dPhi)
                    self.hist("fHistDiJetMomBalance_MC").fill(leadingPt, balance)

    def run(self, event, centrality, jets):
        """ Main analysis of a single event.

        Args:
            event (eventObjects.eventContainer): Current event.
            centrality (float): Event centrality.
            jets (eventObjects.jetCollection): Detector level jets. May be None.
        Returns:
            bool: True if the event passed the event selection.
        """
        self.hist("fHistMultCent").fill(centrality)
        self.hist("fHistZcorr").fill(event.vz, event.vertexSPD[2])

        if not (abs(event.vz) < 10.0 and self.isCentralitySelected(centrality)):
            return False
        self.hist("fHistCent").fill(centrality)

        isMC = self.isMCData and event.isMC
        if self.isMCData and not event.isMC:
            logger.warning("MC analysis requested, but the event doesn't contain MC particles. Treating it as data.")
        if isMC:
            self.makeParticleLevelJet(event)

        self.fillClusterQA(event)

        rho = 0.0
        exJetPt, exJetEta, exJetPhi = [0.0] * 3, [0.0] * 3, [0.0] * 3
        if jets is not None:
            rho = jets.rho
            if self.useOccCorrection:
                rho *= tagging.calOccCorrection(jets.acceptedJets())
            exJetPt, exJetEta, exJetPhi = self.fillInclusiveJets(jets)
            self.hist("fHistBGfrac").fill(self.randomConeFluctuation(event, jets, exJetPhi, exJetEta))

        nElectrons = 0
        for index, track in enumerate(event.tracks):
            electron = self.identifyElectron(index, track, event, jets, rho, isMC)
            if electron is None:
                continue
            nElectrons += 1
            electron["nElectronsInEvent"] = nElectrons
            self.processElectron(electron, event, jets, rho, isMC, exJetPt, exJetEta, exJetPhi)
        return True

    def identifyElectron(self, index, track, event, jets, rho, isMC):
        """ Select the track and identify it as an electron.

        Returns:
            dict: Properties of the electron, or None if the track isn't selected as an electron.
        """
        mcParticle = None
        if isMC and track.label != 0:
            mcParticle = event.mcParticle(abs(track.label))
        mcPdg = mcParticle.pdg if mcParticle is not None else 0

        pt = track.pt
        if abs(track.eta) > 0.6:
            return None
        self.hist("fQAHistNits").fill(track.itsNcls)
        if not self.isTrackTypeSelected(track):
            return None
        self.hist("fQAHistTrPhi").fill(track.phi)
        if not self.isTrackSelected(track, event.kinkMotherIDs):
            return None

        nSigma = track.nSigma("electron")
        self.hist("fHistTPCnSigma").fill(pt, nSigma)

        if track.emcalCluster < 0 or track.emcalCluster >= len(event.clusters):
            return None
        cluster = event.clusters[track.emcalCluster]
        if not cluster.isEMCal:
            return None
        clusterEta, clusterPhi = cluster.etaPhi()
        if not tagging.emcalPhiAcceptance(clusterPhi):
            return None
        if abs(cluster.trackDx) > 0.05 or abs(cluster.trackDz) > 0.05:
            return None
        m20 = cluster.m20
        if m20 < self.m20Min or m20 > self.m20Max:
            return None

        eop = cluster.energy / track.p if track.p > 0 else -1.0
        if isMC and self.mcEopCorrection:
            # Mean shift between data and MC
            eop += 0.04
        if pt > 2.0:
            self.hist("fHistEopNsig").fill(nSigma, eop)
        if nSigma < -4:
            self.hist("fHistEopHad").fill(pt, eop)
        m20InRange = self.m20Min < m20 < self.m20Max
        if 0.9 < eop < 1.3 and m20InRange:
            self.hist("fHistTPCnSigma_ele").fill(pt, nSigma)
        if 0.2 < eop < 0.7 and m20InRange:
            self.hist("fHistTPCnSigma_had").fill(pt, nSigma)
        if abs(mcPdg) == 11:
            self.hist("fHistTPCnSigma_eMC").fill(pt, nSigma)

        if nSigma < -2.5 and self.eopMin < eop < 1.3 and jets is not None:
            self.getFakeHadronJet(pt, track.momentum, rho, jets)

        if nSigma < self.nSigmaMin or nSigma > 3:
            return None
        flagULS, flagLS = self.selectPhotonicElectron(index, track, event.tracks)
        self.hist("fHistEop").fill(pt, eop)
        if not flagULS:
            self.hist("fHistEopHFE").fill(pt, eop)

        if not (self.eopMin < eop < 1.3 and m20InRange):
            return None

        electron = {
            "track": track,
            "pt": pt,
            "phi": track.phi,
            "momentum": track.momentum,
            "nSigma": nSigma,
            "eop": eop,
            "flagULS": flagULS,
            "flagLS": flagLS,
            "isHF": False,
            "isPhotonic": False,
            "motherLabel": 0,
            "motherPdg": 0,
            "motherPt": 0.0,
            "momentumMC": np.zeros(3),
            "iso": 999.0,
        }
        motherLabel, _, motherPt = tagging.findMother(event.mcParticles, mcParticle) if abs(mcPdg) == 11 else (-1, -99, 0.0)
        if motherLabel > 0:
            motherPdg = event.mcParticles[motherLabel].pdg
            electron.update({
                "motherLabel": motherLabel,
                "motherPdg": motherPdg,
                "motherPt": motherPt,
                "isHF": tagging.isHeavyFlavour(motherPdg),
                "isPhotonic": tagging.isPhotonic(motherPdg),
                "momentumMC": mcParticle.momentum,
            })
        if pt > 30.0:
            electron["iso"] = tagging.isolationCut(event.clusters, clusterPhi, clusterEta, cluster.energy)
        return electron

    def isEmbeddedPi0(self, label):
        return self.nEmbPi0 < label < self.nEmbEta

    def isEmbeddedEta(self, label):
        return self.nEmbEta < label < self.nPureMCProc

    def fillPhotonicMC(self, electron, event):
        """ Fill the photonic electron MC histograms, weighted by the embedded pi0 and eta spectra. """
        label = electron["motherLabel"]
        pdg = electron["motherPdg"]
        motherPt = electron["motherPt"]
        if pdg == 22:
            # Conversion. Look at the source of the photon.
            label, pdg, motherPt = tagging.findMother(event.mcParticles, event.mcParticles[label])
        embeddedPi0 = pdg == 111 and self.isEmbeddedPi0(label)
        embeddedEta = pdg == 221 and self.isEmbeddedEta(label)

        weight = 0.0
        if embeddedPi0:
            weight = tagging.pi0Weight(motherPt)
        if embeddedEta:
            weight = tagging.etaWeight(motherPt)

        pt = electron["pt"]
        self.hist("fHistPhoEleMC").fill(pt)
        if embeddedPi0:
            self.hist("fHistPhoEleMCpi0").fill(pt, weight = weight)
        if embeddedEta:
            self.hist("fHistPhoEleMCeta").fill(pt, weight = weight)
        if electron["flagULS"] and not electron["flagLS"]:
            self.hist("fHistPhoEleMCreco").fill(pt)
            if embeddedPi0:
                self.hist("fHistPhoEleMCrecopi0").fill(pt, weight = weight)
            if embeddedEta:
                self.hist("fHistPhoEleMCrecoeta").fill(pt, weight = weight)

    def particleLevelJetPt(self, electron, event):
        """ Pt of the particle level jet containing the electron. -1 if there isn't one. """
        particleJets = event.jetCollection(self.particleJetCollectionName)
        jetPt = -1.0
        if particleJets is None:
            return jetPt
        for jet in particleJets.acceptedJets():
            if tagging.tagHFjet(particleJets.constituents(jet), electron["momentumMC"]):
                jetPt = jet.pt
        return jetPt

    def processElectron(self, electron, event, jets, rho, isMC, exJetPt, exJetEta, exJetPhi):
        """ Fill the electron histograms and tag the jets containing the electron. """
        pt = electron["pt"]
        self.hist("fHistIncEle").fill(pt)
        if electron["isHF"]:
            self.hist("fHistHfEleMCreco").fill(pt)
        if electron["isPhotonic"]:
            self.fillPhotonicMC(electron, event)

        trueJetPt = -1.0
        if isMC:
            trueJetPt = self.particleLevelJetPt(electron, event)
            # Reject electrons from the underlying event generator.
            if trueJetPt < 0.0:
                return
        if jets is None:
            return

        for i, jet in enumerate(jets.acceptedJets()):
            constituents = jets.constituents(jet)
            tagged = tagging.tagHFjet(constituents, electron["momentum"])
            if tagged:
                self.hist("fHisteJetOrg").fill(jet.pt)
                self.hist("fHistIncEleInJet0").fill(pt)
            if not (abs(jet.eta) < 0.6 and jet.pt > 1.0):
                continue

            jetBG = rho * jet.area
            corrPt = jet.pt - jetBG
            if electron["nElectronsInEvent"] == 1:
                self.hist("fHisteJetOrg").fill(jet.pt)
                self.hist("fHisteJetBG").fill(jetBG)
                self.hist("fHisteJetSub").fill(corrPt)

            if tagged:
                self.fillTaggedJet(electron, event, jets, jet, i, corrPt, jetBG, trueJetPt, exJetPt, exJetEta, exJetPhi)

            if pt > 30.0 and electron["iso"] < 0.05 and not tagged and jet.pt > 10.0:
                self.hist("feJetCorr").fill(electron["iso"], utilities.deltaPhi(electron["phi"], jet.phi))

    def fillTaggedJet(self, electron, event, jets, jet, jetIndex, corrPt, jetBG, trueJetPt, exJetPt, exJetEta, exJetPhi):
        """ Fill the histograms for a jet containing the electron. """
        pt = electron["pt"]
        self.hist("fHistIncEleInJet1").fill(pt)
        self.hist("fHistIncjetOrg").fill(pt, jet.pt)
        self.hist("fHistIncjetBG").fill(pt, jetBG)
        self.hist("fHistIncjet").fill(pt, corrPt)
        if corrPt != 0:
            self.hist("fHistIncjetFrac").fill(pt, pt / corrPt)

        if not electron["flagULS"]:
            self.hist("fHistHFjet").fill(pt, corrPt)
            self.hist("fHistHFjetOrder").fill(corrPt, jetIndex)
            self.hist("fHistEopHFjet").fill(corrPt, electron["eop"])
            self.hist("fHistNsigHFjet").fill(corrPt, electron["nSigma"])
            if jetIndex in [0, 1]:
                if jetIndex == 0:
                    dPhi = utilities.deltaPhi(jet.phi, exJetPhi[1])
                    self.hist("fHistHFdijet").fill(exJetPt[1])
                else:
                    dPhi = utilities.deltaPhi(jet.phi, exJetPhi[0])
                if exJetPt[0] > 10.0 and exJetPt[1] > 10.0:
                    self.hist("fHistDiJetPhi").fill(corrPt, dPhi)
                    if jetIndex == 0:
                        balance = (corrPt - exJetPt[1]) / (corrPt + exJetPt[1])
                    else:
                        balance = (exJetPt[0] - corrPt) / (exJetPt[0] + corrPt)
                    self.hist("fHistDiJetMomBalance").fill(corrPt, balance)

            phis = exJetPhi[:2] + [jet.phi]
            etas = exJetEta[:2] + [jet.eta]
            self.hist("fHistBGfracHFEev").fill(self.randomConeFluctuation(event, jets, phis, etas))

        if electron["flagULS"]:
            self.hist("fHistULSjet").fill(pt, corrPt)
        if electron["flagLS"]:
            self.hist("fHistLSjet").fill(pt, corrPt)

        if electron["isHF"]:
            self.fillHFJetCorrelations(electron, jets, jet, corrPt, jetBG, trueJetPt)

    def fillHFJetCorrelations(self, electron, jets, jet, corrPt, jetBG, trueJetPt):
        """ Detector to particle level correlations and e-K pair masses for MC heavy-flavour jets. """
        pt = electron["pt"]
        constituents = jets.constituents(jet)
        self.hist("HFjetCorr1").fill([pt, 0.0, corrPt, jet.pt, trueJetPt, 0.0, 0.0])
        self.hist("fHistJetEnergyReso").fill(trueJetPt, (jet.pt - trueJetPt) / trueJetPt)
        for name, efficiency in [("HFjetCorr2", 0.04), ("HFjetCorr3", 0.05)]:
            reducedPt = tagging.reduceJetEnergyScale(constituents, electron["momentum"], efficiency, self.rng) - jetBG
            self.hist(name).fill([pt, 0.0, reducedPt, jet.pt, trueJetPt, 0.0, 0.0])

        track = electron["track"]
        for constituent in constituents:
            if abs(constituent.nSigma("kaon")) > 2.5:
                continue
            if constituent.pt == track.pt:
                continue
            if constituent.pt < 1.0:
                continue
            if pt <= 3.0:
                continue
            mass = tagging.invariantMass(track.momentum, electronMass, constituent.momentum, kaonMass)
            chargeProduct = track.charge * constituent.charge
            if chargeProduct > 0:
                self.hist("fInvmassHFls").fill(corrPt, mass)
            elif chargeProduct < 0:
                self.hist("fInvmassHFuls").fill(corrPt, mass)

def describeHFETask():
    return "Heavy-flavour jet tagging with electrons identified in the TPC and EMCal."

def createHFETask(parameters):
    """ Create the HFE task from its configuration.

    Args:
        parameters (dict): Task configuration.
    Returns:
        HFJetTagTask: The configured task.
    """
    return HFJetTagTask(name = parameters.get("name", "HFE"), parameters = parameters)
