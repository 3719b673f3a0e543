#!/usr/bin/env python

""" Helix track parameters in a local (sector) frame.

The parametrization follows the usual ALICE convention: the track is described at a radial position
``x`` in a frame rotated by ``alpha`` by the local ``y`` and ``z`` positions, the sine of the local
azimuthal angle ``snp``, the tangent of the dip angle ``tgl`` and the signed inverse transverse momentum.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import copy
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Conversion from the magnetic field (kG) and inverse pt (1/(GeV/c)) to the curvature (1/cm).
B2C = -0.299792458e-3
almost0 = np.finfo(np.float32).tiny
almost1 = 1.0 - np.finfo(np.float32).eps
almost0Field = 1e-13

class TrackParamException(Exception):
    """ Raised for invalid track parameters. """
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __str__(self):
        return ", ".join("{}:{}".format(k, v) for k, v in self.kwargs.items())

def normalizeAlpha(alpha):
    """ Move an angle into ``[-pi, pi)``. """
    return (alpha + np.pi) % (2 * np.pi) - np.pi

class ExternalTrackParam(object):
    """ Track parameters at a given radial position.

    Args:
        x (float): Radial position in the local frame (cm).
        alpha (float): Rotation angle of the local frame (rad).
        y (float): Local y position (cm).
        z (float): z position (cm).
        snp (float): Sine of the local azimuthal angle. Must be within (-1, 1).
        tgl (float): Tangent of the dip angle.
        signed1Pt (float): Charge over pt (1/(GeV/c)).
    """
    def __init__(self, x, alpha, y, z, snp, tgl, signed1Pt):
        if abs(snp) >= almost1:
            raise TrackParamException(msg = "InvalidSnp", snp = snp)
        self.x = float(x)
        self.alpha = normalizeAlpha(float(alpha))
        self.y = float(y)
        self.z = float(z)
        self.snp = float(snp)
        self.tgl = float(tgl)
        self.signed1Pt = float(signed1Pt)

    def __repr__(self):
        return "{}(x = {x}, alpha = {alpha}, y = {y}, z = {z}, snp = {snp}, tgl = {tgl}, signed1Pt = {signed1Pt})".format(self.__class__.__name__, **self.__dict__)

    @classmethod
    def fromDict(cls, values):
        return cls(**values)

    def curvature(self, bz):
        """ Track curvature (1/cm) for a magnetic field bz (kG). """
        if abs(bz) < almost0Field:
            return 0.0
        return self.signed1Pt * bz * B2C

    def rotate(self, alpha):
        """ Rotate the local frame to the angle alpha.

        Args:
            alpha (float): New rotation angle (rad).
        Returns:
            bool: True if the rotation succeeded. The parameters are unchanged otherwise.
        """
        alpha = normalizeAlpha(alpha)
        ca = np.cos(alpha - self.alpha)
        sa = np.sin(alpha - self.alpha)
        sf = self.snp
        cf = np.sqrt((1.0 - sf) * (1.0 + sf))
        # The track must still be moving outwards in the new frame.
        if cf * ca + sf * sa < almost0:
            return False
        snp = sf * ca - cf * sa
        if abs(snp) >= almost1:
            return False
        x = self.x * ca + self.y * sa
        self.y = -self.x * sa + self.y * ca
        self.x = x
        self.snp = snp
        self.alpha = alpha
        return True

    def propagateTo(self, x, bz):
        """ Propagate the track to the radial position x in the current frame.

        Args:
            x (float): Target radial position (cm).
            bz (float): Magnetic field (kG).
        Returns:
            bool: True if the propagation succeeded. The parameters are unchanged otherwise.
        """
        dx = x - self.x
        if abs(dx) <= almost0:
            return True
        crv = self.curvature(bz)
        x2r = crv * dx
        f1 = self.snp
        f2 = f1 + x2r
        if abs(f1) >= almost1 or abs(f2) >= almost1:
            return False
        if abs(self.signed1Pt) < almost0:
            return False
        r1 = np.sqrt((1.0 - f1) * (1.0 + f1))
        r2 = np.sqrt((1.0 - f2) * (1.0 + f2))
        if r1 < almost0 or r2 < almost0:
            return False

        dy2dx = (f1 + f2) / (r1 + r2)
        self.x = x
        self.y += dx * dy2dx
        self.snp = f2
        if abs(x2r) < 0.05:
            self.z += dx * (r2 + f2 * dy2dx) * self.tgl
        else:
            # Use the arc length for large steps.
            rot = np.arcsin(r1 * f2 - r2 * f1)
            if f1 * f1 + f2 * f2 > 1 and f1 * f2 < 0:
                rot = np.pi - rot if f2 > 0 else -np.pi - rot
            self.z += self.tgl / crv * rot
        return True

    def propagate(self, alpha, x, bz):
        """ Rotate to the frame alpha and then propagate to the radial position x.

        Args:
            alpha (float): Target rotation angle (rad).
            x (float): Target radial position (cm).
            bz (float): Magnetic field (kG).
        Returns:
            bool: True if the propagation succeeded. The parameters are unchanged otherwise.
        """
        saved = copy.copy(self.__dict__)
        if self.rotate(alpha) and self.propagateTo(x, bz):
            return True
        self.__dict__.update(saved)
        return False
