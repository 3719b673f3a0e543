#!/usr/bin/env python

""" Helpers for tagging heavy-flavour jets with electrons.

These functions contain the per jet and per track calculations of the HFE task, such as matching
an electron to a jet constituent, estimating the background with random cones and classifying the
origin of MC electrons.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import logging

import numpy as np

from ..base import utilities
# Exposed here as well, since it is used throughout the jet code.
from ..base.utilities import deltaPhi  # noqa: F401

logger = logging.getLogger(__name__)

# Constituents are matched to an electron when their momenta agree to better than this value (GeV/c).
momentumMatchPrecision = 1e-8

# Calorimeter acceptances in phi (rad), following the definition of the [0, 2pi) azimuth.
emcalPhiRange = (1.39, 3.265)
dcalPhiRange = (4.53, 5.708)

charmMesons = [411, 413, 421, 423, 431]
beautyMesons = [511, 513, 521, 523, 531]
photonicSources = [22, 111, 221]

pionMass = 0.13498
etaMass = 0.54751

def emcalPhiAcceptance(phi):
    """ True if the azimuth is within the EMCal acceptance (80 < phi < 187 degrees). """
    return emcalPhiRange[0] < phi < emcalPhiRange[1]

def dcalPhiAcceptance(phi):
    """ True if the azimuth is within the DCal acceptance (260 < phi < 327 degrees). """
    return dcalPhiRange[0] < phi < dcalPhiRange[1]

def _matchesElectron(constituent, electronMomentum):
    return np.linalg.norm(np.asarray(electronMomentum) - constituent.momentum) < momentumMatchPrecision

def tagHFjet(constituents, electronMomentum):
    """ Determine whether a jet contains the electron.

    The electron is identified among the jet constituents by its momentum.

    Args:
        constituents (list): Jet constituents, each with a ``momentum`` array.
        electronMomentum (numpy.ndarray): Electron momentum (px, py, pz).
    Returns:
        bool: True if one of the constituents is the electron.
    """
    return any(_matchesElectron(constituent, electronMomentum) for constituent in constituents)

def reduceJetEnergyScale(constituents, electronMomentum, efficiency, rng):
    """ Recalculate the jet pt after randomly removing constituents, to emulate a reduced tracking efficiency.

    The electron is always kept. Each other constituent is dropped with a probability given by ``efficiency``.

    Args:
        constituents (list): Jet constituents, each with ``momentum`` and ``pt``.
        electronMomentum (numpy.ndarray): Electron momentum (px, py, pz).
        efficiency (float): Probability to drop each constituent.
        rng (numpy.random.Generator): Random number generator.
    Returns:
        float: Sum of the pt of the kept constituents.
    """
    ptSum = 0.0
    for constituent in constituents:
        # Draw for every constituent to keep the random sequence independent of the electron position.
        drop = rng.uniform(0.0, 1.0)
        if _matchesElectron(constituent, electronMomentum) or drop > efficiency:
            ptSum += constituent.pt
    return ptSum

def _conePassesExclusion(phi, eta, jetPhis, jetEtas):
    distances = [np.sqrt(utilities.deltaPhi(jetPhi, phi) ** 2 + (jetEta - eta) ** 2) for jetPhi, jetEta in zip(jetPhis, jetEtas)]
    if len(jetPhis) < 3 or (jetPhis[2] == 0.0 and jetEtas[2] == 0.0):
        # No tagged jet. Only exclude the two leading jets.
        return distances[0] > 0.45 and distances[1] > 0.45
    return all(d > 0.35 for d in distances[:3])

def calRandomCone(jetPhis, jetEtas, radius, tracks, rng, maxEta = 0.6, minTrackPt = 0.15, maxTries = 1000):
    """ Calculate the track pt sum in a cone placed randomly in the event.

    The cone is placed away from the two leading jets (distance > 0.45). If a tagged jet is given,
    the cone must be away from all three jets (distance > 0.35). A tagged jet position of (0, 0)
    denotes that there is no tagged jet. Tracks are only summed if the cone is further than 1.0
    from the leading jet. Otherwise, the cone is considered to be correlated with the leading jet
    and 0 is returned.

    Args:
        jetPhis (list): Phi of the leading, subleading and (optionally) tagged jet.
        jetEtas (list): Eta of the leading, subleading and (optionally) tagged jet.
        radius (float): Cone radius.
        tracks (list): Tracks of the event. Only hybrid tracks are used.
        rng (numpy.random.Generator): Random number generator.
        maxEta (float): Acceptance of the cone axis and tracks. Default: 0.6.
        minTrackPt (float): Minimum track pt. Default: 0.15.
        maxTries (int): Maximum number of attempts to place the cone. Default: 1000.
    Returns:
        float: Track pt sum within the cone. 0 if no cone could be placed or if it is within
            1.0 of the leading jet.
    """
    for _ in range(maxTries):
        phi = rng.uniform(0.0, 2 * np.pi)
        eta = rng.uniform(-maxEta, maxEta)
        if _conePassesExclusion(phi, eta, jetPhis, jetEtas):
            break
    else:
        logger.warning("Could not place a random cone away from the jets after {} tries.".format(maxTries))
        return 0.0

    if np.sqrt(utilities.deltaPhi(jetPhis[0], phi) ** 2 + (jetEtas[0] - eta) ** 2) <= 1.0:
        return 0.0

    ptSum = 0.0
    for track in tracks:
        if not track.isHybrid():
            continue
        if abs(track.eta) > maxEta or track.pt < minTrackPt:
            continue
        distance = np.sqrt(utilities.deltaPhi(phi, track.phi) ** 2 + (eta - track.eta) ** 2)
        if distance < radius:
            ptSum += track.pt
    return ptSum

def calOccCorrection(jets, minPhysicalPt = 0.1):
    """ Calculate the occupancy correction for the background density in sparse events.

    The correction is the area of the physical jets (pt above a small threshold) divided by the total
    area of all jets. The two leading jets are excluded.

    Args:
        jets (list): Accepted jets, sorted by pt.
        minPhysicalPt (float): Minimum pt of a physical jet. Default: 0.1.
    Returns:
        float: Occupancy correction. 0 if there are no jets beyond the two leading jets.
    """
    totalArea = 0.0
    physicalArea = 0.0
    for jet in jets[2:]:
        totalArea += jet.area
        if jet.pt > minPhysicalPt:
            physicalArea += jet.area
    if totalArea > 0:
        return physicalArea / totalArea
    return 0.0

def isolationCut(clusters, matchPhi, matchEta, matchE, coneRadius = 0.4):
    """ Calculate the isolation of an electron from the EMCal energy around its cluster.

    Args:
        clusters (list): Calorimeter clusters of the event.
        matchPhi (float): Phi of the matched cluster.
        matchEta (float): Eta of the matched cluster.
        matchE (float): Energy of the matched cluster.
        coneRadius (float): Isolation cone radius. Default: 0.4.
    Returns:
        float: Summed energy of the other EMCal clusters in the cone, divided by the matched cluster energy.
    """
    energySum = 0.0
    for cluster in clusters:
        if not cluster.isEMCal:
            continue
        eta, phi = cluster.etaPhi()
        # Skip the matched cluster itself
        if cluster.energy == matchE and phi == matchPhi and eta == matchEta:
            continue
        if not emcalPhiAcceptance(phi):
            continue
        distance = np.sqrt((phi - matchPhi) ** 2 + (eta - matchEta) ** 2)
        if distance > coneRadius:
            continue
        energySum += cluster.energy
    return energySum / matchE

def isHeavyFlavour(pdg):
    """ True if the pdg code corresponds to an open charm or beauty meson. """
    return abs(pdg) in charmMesons or abs(pdg) in beautyMesons

def isPhotonic(pdg):
    """ True if the pdg code corresponds to a photon, pi0 or eta. """
    return abs(pdg) in photonicSources

def findMother(particles, particle):
    """ Find the mother of a MC particle.

    Args:
        particles (list): MC particles of the event.
        particle (eventObjects.mcParticleContainer): Particle whose mother should be found.
    Returns:
        tuple: (mother label, abs(mother pdg), mother pt). If there is no mother, the label is -1 and
            the pdg is -99.
    """
    label = particle.mother
    if label < 0 or label >= len(particles):
        return (-1, -99, 0.0)
    mother = particles[label]
    return (label, abs(mother.pdg), mother.pt)

def _tsallis(mt, mass, n = 7.331, T = 0.1718):
    """ Tsallis parametrization of the invariant yield as a function of the transverse mass. """
    normalization = ((n - 1.0) * (n - 2.0)) / (n * T * (n * T + mass * (n - 2.0)))
    return normalization * np.power(1.0 + (mt - mass) / (n * T), -n)

def pi0Weight(pt):
    """ Weight for embedded pi0s, from a fit to the measured p-Pb spectrum.

    Args:
        pt (float): pi0 pt.
    Returns:
        float: Weight.
    """
    return 1.245 * _tsallis(np.sqrt(0.135 * 0.135 + pt * pt), 0.135)

def etaWeight(pt):
    """ Weight for embedded etas, derived from the pi0 spectrum via mt scaling (normalized at 5 GeV/c).

    Args:
        pt (float): eta pt.
    Returns:
        float: Weight.
    """
    normalization = 0.48 * _tsallis(np.sqrt(pionMass ** 2 + 25.0), pionMass) / _tsallis(np.sqrt(etaMass ** 2 + 25.0), pionMass)
    jacobian = pt / np.sqrt(pt * pt + etaMass ** 2 - pionMass ** 2)
    return normalization * jacobian * 1.245 * _tsallis(np.sqrt(etaMass ** 2 + pt * pt), pionMass)

def invariantMass(p1, m1, p2, m2):
    """ Invariant mass of a pair of particles.

    Args:
        p1 (numpy.ndarray): Momentum of the first particle.
        m1 (float): Mass of the first particle.
        p2 (numpy.ndarray): Momentum of the second particle.
        m2 (float): Mass of the second particle.
    Returns:
        float: Invariant mass of the pair.
    """
    p1 = np.asarray(p1, dtype = np.float64)
    p2 = np.asarray(p2, dtype = np.float64)
    e1 = np.sqrt(np.dot(p1, p1) + m1 * m1)
    e2 = np.sqrt(np.dot(p2, p2) + m2 * m2)
    total = p1 + p2
    massSquared = (e1 + e2) ** 2 - np.dot(total, total)
    return np.sqrt(max(massSquared, 0.0))
