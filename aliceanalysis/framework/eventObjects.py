#!/usr/bin/env python

""" Containers for the event level objects which are provided to the analysis tasks.

The framework hands each task an ``eventContainer``, which stores the tracks, calorimeter clusters,
jet collections, MC information and TRD tracklets of one event. These objects are plain containers:
they don't perform any selection themselves. Instead, each task applies its own selections.

Events can be constructed from basic python types via ``eventFromDict(...)``, which is used for
reading the YAML event files.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..base import utilities

logger = logging.getLogger(__name__)

# Detector id used for TRD track references.
TRD_DETECTOR_ID = 3

class trackContainer(object):
    """ Reconstructed charged particle track.

    Args:
        px (float): Momentum x component.
        py (float): Momentum y component.
        pz (float): Momentum z component.
        charge (int): Charge of the track. Default: 1.
        label (int): MC label. Default: 0.
        trackID (int): Unique track ID, used for the kink mother veto. Default: -1.
        filterBits (list): Filter bits which are set for the track. Bit 0 denotes a TPC only track,
            while bits 4 and 9 are the hybrid track bits. Default: None.
        dcaXY (float): Distance of closest approach to the primary vertex in the transverse plane. Default: 0.
        dcaZ (float): Distance of closest approach to the primary vertex along the beam axis. Default: 0.
        tpcNcls (int): Number of TPC clusters. Default: 0.
        itsNcls (int): Number of ITS clusters. Default: 0.
        itsClusterMap (list): Whether there is a hit on each of the six ITS layers. Default: None.
        itsRefit (bool): ITS refit succeeded. Default: False.
        tpcRefit (bool): TPC refit succeeded. Default: False.
        tpcSignal (float): TPC dE/dx. Default: 0.
        nSigmaTPC (dict): TPC nSigma values keyed by particle species. Default: None.
        emcalCluster (int): Index of the matched calorimeter cluster. -1 if none. Default: -1.
        outerParam (dict): Track parameters at the outer TPC wall, used for TRD comparisons. Default: None.
    """
    def __init__(self, px, py, pz, charge = 1, label = 0, trackID = -1, filterBits = None,
                 dcaXY = 0.0, dcaZ = 0.0, tpcNcls = 0, itsNcls = 0, itsClusterMap = None,
                 itsRefit = False, tpcRefit = False, tpcSignal = 0.0, nSigmaTPC = None,
                 emcalCluster = -1, outerParam = None):
        self.px = px
        self.py = py
        self.pz = pz
        self.charge = charge
        self.label = label
        self.trackID = trackID
        self.filterBits = set(filterBits) if filterBits else set()
        self.dcaXY = dcaXY
        self.dcaZ = dcaZ
        self.tpcNcls = tpcNcls
        self.itsNcls = itsNcls
        self.itsClusterMap = list(itsClusterMap) if itsClusterMap else [False] * 6
        self.itsRefit = itsRefit
        self.tpcRefit = tpcRefit
        self.tpcSignal = tpcSignal
        self.nSigmaTPC = nSigmaTPC if nSigmaTPC else {}
        self.emcalCluster = emcalCluster
        self.outerParam = outerParam

    def __repr__(self):
        return "{}(px = {px}, py = {py}, pz = {pz}, charge = {charge}, label = {label})".format(self.__class__.__name__, **self.__dict__)

    @property
    def momentum(self):
        return np.array([self.px, self.py, self.pz])

    @property
    def pt(self):
        return np.sqrt(self.px * self.px + self.py * self.py)

    @property
    def p(self):
        return np.sqrt(self.px * self.px + self.py * self.py + self.pz * self.pz)

    @property
    def eta(self):
        return utilities.etaFromMomentum(self.px, self.py, self.pz)

    @property
    def phi(self):
        """ Azimuth in ``[0, 2pi)``. """
        return utilities.phiInZeroToTwoPi(np.arctan2(self.py, self.px))

    def testFilterBit(self, bit):
        return bit in self.filterBits

    def testFilterMask(self, mask):
        """ True if any of the bits in the mask are set for the track (as ``AliAODTrack::TestFilterBit()``). """
        return any((1 << bit) & mask for bit in self.filterBits)

    def isHybrid(self):
        return self.testFilterBit(4) or self.testFilterBit(9)

    def isTPCOnly(self):
        return self.testFilterBit(0)

    def hasPointOnITSLayer(self, layer):
        return bool(self.itsClusterMap[layer])

    def nSigma(self, species):
        """ TPC nSigma for a given species. Missing values are treated as a failed PID (-999). """
        return self.nSigmaTPC.get(species, -999.0)

class clusterContainer(object):
    """ Calorimeter cluster.

    Args:
        energy (float): Cluster energy.
        x (float): x position.
        y (float): y position.
        z (float): z position.
        tof (float): Time of flight in seconds. Default: 0.
        m02 (float): Shower shape long axis. Default: 0.
        m20 (float): Shower shape short axis. Default: 0.
        trackDx (float): Residual to the matched track in x. Default: 999.
        trackDz (float): Residual to the matched track in z. Default: 999.
        isEMCal (bool): True if the cluster is from the EMCal (or DCal) rather than PHOS. Default: True.
    """
    def __init__(self, energy, x, y, z, tof = 0.0, m02 = 0.0, m20 = 0.0, trackDx = 999.0, trackDz = 999.0, isEMCal = True):
        self.energy = energy
        self.x = x
        self.y = y
        self.z = z
        self.tof = tof
        self.m02 = m02
        self.m20 = m20
        self.trackDx = trackDx
        self.trackDz = trackDz
        self.isEMCal = isEMCal

    def __repr__(self):
        return "{}(energy = {energy}, x = {x}, y = {y}, z = {z})".format(self.__class__.__name__, **self.__dict__)

    def etaPhi(self):
        """ Position of the cluster as (eta, phi), with phi in ``[0, 2pi)``. """
        return utilities.etaPhiFromPosition(self.x, self.y, self.z)

    @property
    def pt(self):
        """ Transverse momentum of the cluster assuming a massless particle from the origin. """
        eta, _ = self.etaPhi()
        return self.energy / np.cosh(eta)

class jetContainer(object):
    """ Reconstructed (or particle level) jet.

    Args:
        pt (float): Jet transverse momentum.
        eta (float): Jet pseudorapidity.
        phi (float): Jet azimuth in ``[0, 2pi)``.
        area (float): Jet area. Default: 0.
        constituents (list): Indices of the constituents in the associated particle collection. Default: None.
    """
    def __init__(self, pt, eta, phi, area = 0.0, constituents = None):
        self.pt = pt
        self.eta = eta
        self.phi = phi
        self.area = area
        self.constituents = list(constituents) if constituents else []

    def __repr__(self):
        return "{}(pt = {pt}, eta = {eta}, phi = {phi}, area = {area})".format(self.__class__.__name__, **self.__dict__)

    @property
    def nConstituents(self):
        return len(self.constituents)

class jetCollection(object):
    """ Collection of jets from one jet finder, along with its background density.

    Accepted jets are those passing the collection level acceptance (pt and eta). They are
    always returned sorted by pt, such that the leading jet is the first accepted jet.

    Args:
        name (str): Name of the collection.
        jets (list): Jets in the collection.
        rho (float): Background density. Default: 0.
        minPt (float): Minimum jet pt for acceptance. Default: 0.
        maxEta (float): Maximum jet abs(eta) for acceptance. Default: 0.9.
        particles (list): Particles (tracks or MC particles) referenced by the jet constituents. Default: None.
    """
    def __init__(self, name, jets, rho = 0.0, minPt = 0.0, maxEta = 0.9, particles = None):
        self.name = name
        self.jets = sorted(jets, key = lambda j: j.pt, reverse = True)
        self.rho = rho
        self.minPt = minPt
        self.maxEta = maxEta
        self.particles = particles if particles is not None else []

    def __repr__(self):
        return "{}(name = {}, nJets = {}, rho = {})".format(self.__class__.__name__, self.name, len(self.jets), self.rho)

    def isAccepted(self, jet):
        return jet.pt >= self.minPt and abs(jet.eta) <= self.maxEta

    def acceptedJets(self):
        return [jet for jet in self.jets if self.isAccepted(jet)]

    def leadingJet(self):
        """ Highest pt accepted jet, or None if there are no accepted jets. """
        accepted = self.acceptedJets()
        return accepted[0] if accepted else None

    def constituents(self, jet):
        """ Retrieve the constituent particles of a jet. Indices outside of the collection are skipped. """
        return [self.particles[i] for i in jet.constituents if 0 <= i < len(self.particles)]

    def leadingHadronPt(self, jet):
        pts = [particle.pt for particle in self.constituents(jet)]
        return max(pts) if pts else 0.0

class trackReferenceContainer(object):
    """ MC track reference: the position of a MC particle when crossing a detector.

    Args:
        detectorID (int): Detector which created the reference.
        x (float): Global x position.
        y (float): Global y position.
        z (float): Global z position.
        localX (float): Local (sector frame) x position.
        localY (float): Local (sector frame) y position.
        alpha (float): Rotation angle of the local frame.
        pt (float): Particle pt at the reference.
        label (int): MC label of the particle.
    """
    def __init__(self, detectorID, x, y, z, localX, localY, alpha, pt, label):
        self.detectorID = detectorID
        self.x = x
        self.y = y
        self.z = z
        self.localX = localX
        self.localY = localY
        self.alpha = alpha
        self.pt = pt
        self.label = label

    def __repr__(self):
        return "{}(detectorID = {detectorID}, localX = {localX}, localY = {localY}, z = {z}, label = {label})".format(self.__class__.__name__, **self.__dict__)

class mcParticleContainer(object):
    """ Generator level particle.

    Args:
        pdg (int): PDG code.
        px (float): Momentum x component.
        py (float): Momentum y component.
        pz (float): Momentum z component.
        mother (int): Index of the mother. -1 if there is none. Default: -1.
        isPhysicalPrimary (bool): True if the particle is a physical primary. Default: False.
        trackReferences (list): Track references of this particle. Default: None.
    """
    def __init__(self, pdg, px, py, pz, mother = -1, isPhysicalPrimary = False, trackReferences = None):
        self.pdg = pdg
        self.px = px
        self.py = py
        self.pz = pz
        self.mother = mother
        self.isPhysicalPrimary = isPhysicalPrimary
        self.trackReferences = trackReferences if trackReferences else []

    def __repr__(self):
        return "{}(pdg = {pdg}, px = {px}, py = {py}, pz = {pz}, mother = {mother})".format(self.__class__.__name__, **self.__dict__)

    @property
    def momentum(self):
        return np.array([self.px, self.py, self.pz])

    @property
    def pt(self):
        return np.sqrt(self.px * self.px + self.py * self.py)

    @property
    def eta(self):
        return utilities.etaFromMomentum(self.px, self.py, self.pz)

    @property
    def phi(self):
        return utilities.phiInZeroToTwoPi(np.arctan2(self.py, self.px))

class mcHeaderContainer(object):
    """ Cocktail generator header, storing the generator name and the number of produced particles. """
    def __init__(self, name, nProduced):
        self.name = name
        self.nProduced = nProduced

    def __repr__(self):
        return "{}(name = {name}, nProduced = {nProduced})".format(self.__class__.__name__, **self.__dict__)

class trdTrackletContainer(object):
    """ TRD online tracklet.

    The tracklet word stores the position, deflection, pad row and PID. It is decoded through
    ``aliceanalysis.trd.tracklets``.

    Args:
        hcID (int): Half chamber ID (``2 * detector + side``).
        word (int): 32 bit tracklet word.
        label (int): MC label. Simulated tracklets have labels ``>= -1``, while raw tracklets are below.
        rob (int): Readout board. Default: 0.
        mcm (int): Multi chip module. Default: 0.
        q0 (int): Charge in the first time window. Default: 0.
        q1 (int): Charge in the second time window. Default: 0.
        nHits (int): Number of hits used in the fit. Default: 0.
    """
    def __init__(self, hcID, word, label, rob = 0, mcm = 0, q0 = 0, q1 = 0, nHits = 0):
        self.hcID = hcID
        self.word = word
        self.label = label
        self.rob = rob
        self.mcm = mcm
        self.q0 = q0
        self.q1 = q1
        self.nHits = nHits

    def __repr__(self):
        return "{}(hcID = {hcID}, word = {word:#010x}, label = {label})".format(self.__class__.__name__, **self.__dict__)

    @property
    def detector(self):
        return self.hcID // 2

class trdTrackContainer(object):
    """ TRD (GTU) track, built from up to six tracklets.

    Args:
        pt (float): Track pt.
        tracklets (list): Tracklet (or None) for each of the six layers.
    """
    def __init__(self, pt, tracklets = None):
        self.pt = pt
        self.tracklets = list(tracklets) if tracklets else [None] * 6

    def __repr__(self):
        return "{}(pt = {}, nTracklets = {})".format(self.__class__.__name__, self.pt, len([t for t in self.tracklets if t is not None]))

class eventContainer(object):
    """ All information for a single event.

    Args:
        runNumber (int): Run number. Default: 0.
        vertex (list): Primary vertex (x, y, z). Default: (0, 0, 0).
        vertexSPD (list): SPD vertex (x, y, z). Default: equal to the primary vertex.
        centrality (dict): Centrality percentile keyed by estimator. Default: None.
        magneticField (float): Solenoid field in T. Default: 0.5.
        tracks (list): Tracks. Default: None.
        clusters (list): Calorimeter clusters. Default: None.
        jetCollections (dict): Jet collections keyed by name. Default: None.
        mcParticles (list): MC particles. None for data. Default: None.
        mcHeaders (list): MC cocktail headers. Default: None.
        kinkMotherIDs (list): Track IDs of kink mothers. Default: None.
        trdTracklets (list): TRD tracklets. Default: None.
        trdTracks (list): TRD tracks. Default: None.
    """
    def __init__(self, runNumber = 0, vertex = None, vertexSPD = None, centrality = None, magneticField = 0.5,
                 tracks = None, clusters = None, jetCollections = None, mcParticles = None, mcHeaders = None,
                 kinkMotherIDs = None, trdTracklets = None, trdTracks = None):
        self.runNumber = runNumber
        self.vertex = list(vertex) if vertex is not None else [0.0, 0.0, 0.0]
        self.vertexSPD = list(vertexSPD) if vertexSPD is not None else list(self.vertex)
        self.centrality = centrality if centrality else {}
        self.magneticField = magneticField
        self.tracks = tracks if tracks else []
        self.clusters = clusters if clusters else []
        self.jetCollections = jetCollections if jetCollections else {}
        self.mcParticles = mcParticles
        self.mcHeaders = mcHeaders if mcHeaders else []
        self.kinkMotherIDs = set(kinkMotherIDs) if kinkMotherIDs else set()
        self.trdTracklets = trdTracklets if trdTracklets else []
        self.trdTracks = trdTracks if trdTracks else []

    def __repr__(self):
        return "{}(runNumber = {}, nTracks = {}, nClusters = {}, jetCollections = {}, isMC = {})".format(
            self.__class__.__name__, self.runNumber, len(self.tracks), len(self.clusters),
            list(self.jetCollections), self.isMC)

    @property
    def isMC(self):
        return self.mcParticles is not None

    @property
    def vz(self):
        return self.vertex[2]

    def getCentrality(self, estimator):
        """ Centrality percentile for an estimator. -1 if it is not available. """
        return self.centrality.get(estimator, -1.0)

    def jetCollection(self, name):
        """ Retrieve a jet collection by name, returning None if it isn't available. """
        return self.jetCollections.get(name, None)

    def mcParticle(self, label):
        """ Retrieve a MC particle by label, returning None if the label is invalid. """
        if self.mcParticles is None or label < 0 or label >= len(self.mcParticles):
            return None
        return self.mcParticles[label]

def _trackReferenceFromDict(label, values):
    values = dict(values)
    values.setdefault("label", label)
    values.setdefault("detectorID", TRD_DETECTOR_ID)
    return trackReferenceContainer(**values)

def eventFromDict(values):
    """ Construct an event from basic python types (for example, as read from YAML).

    The jet collections reference either the tracks (``"level": "detector"``, the default) or the MC
    particles (``"level": "particle"``) of the same event.

    Args:
        values (dict): Event information. The keys follow the ``eventContainer`` arguments, with each object
            stored as a dict of the arguments of its container.
    Returns:
        eventContainer: The constructed event.
    """
    values = dict(values)
    tracks = [trackContainer(**t) for t in values.pop("tracks", [])]
    clusters = [clusterContainer(**c) for c in values.pop("clusters", [])]

    mcParticles = values.pop("mcParticles", None)
    if mcParticles is not None:
        particles = []
        for label, particle in enumerate(mcParticles):
            particle = dict(particle)
            refs = [_trackReferenceFromDict(label, ref) for ref in particle.pop("trackReferences", [])]
            particles.append(mcParticleContainer(trackReferences = refs, **particle))
        mcParticles = particles
    mcHeaders = [mcHeaderContainer(**h) for h in values.pop("mcHeaders", [])]

    jetCollections = {}
    for name, collection in values.pop("jetCollections", {}).items():
        collection = dict(collection)
        level = collection.pop("level", "detector")
        jets = [jetContainer(**j) for j in collection.pop("jets", [])]
        particles = mcParticles if level == "particle" else tracks
        jetCollections[name] = jetCollection(name = name, jets = jets, particles = particles, **collection)

    trdTracklets = [trdTrackletContainer(**t) for t in values.pop("trdTracklets", [])]
    trdTracks = []
    for track in values.pop("trdTracks", []):
        track = dict(track)
        layerTracklets = [trdTracklets[i] if i is not None and i >= 0 else None for i in track.pop("tracklets", [None] * 6)]
        trdTracks.append(trdTrackContainer(tracklets = layerTracklets, **track))

    return eventContainer(tracks = tracks, clusters = clusters, jetCollections = jetCollections,
                          mcParticles = mcParticles, mcHeaders = mcHeaders,
                          trdTracklets = trdTracklets, trdTracks = trdTracks, **values)
