#!/usr/bin/env python

""" Histogram, profile and tuple containers used as task outputs.

These containers mirror the behavior of the ROOT objects that the analysis tasks were written
against, but they are backed by ``numpy`` arrays so that they can be used without a ROOT installation.
Bin numbering follows the ROOT convention: bin 0 is the underflow bin, bins ``1..nBins`` are the
regular bins and bin ``nBins + 1`` is the overflow bin.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

import collections
import logging

import numpy as np

logger = logging.getLogger(__name__)

class HistogramException(Exception):
    """ Raised for invalid histogram definitions or usage. """
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __str__(self):
        return ", ".join("{}:{}".format(k, v) for k, v in self.kwargs.items())

class Axis(object):
    """ Binning along one dimension.

    Either the number of bins and range or the bin edges must be specified.

    Args:
        nBins (int): Number of bins. Default: None.
        low (float): Lower edge of the axis. Default: None.
        high (float): Upper edge of the axis. Default: None.
        edges (list): Bin edges for variable binning. Takes precedence over the other binning arguments.
            Default: None.
        title (str): Axis title. Default: "".

    Attributes:
        edges (numpy.ndarray): Bin edges.
        title (str): Axis title.
    """
    def __init__(self, nBins = None, low = None, high = None, edges = None, title = ""):
        if edges is not None:
            edges = np.asarray(edges, dtype = np.float64)
            if edges.ndim != 1 or len(edges) < 2 or np.any(np.diff(edges) <= 0):
                raise HistogramException(msg = "InvalidEdges", edges = edges)
        else:
            if nBins is None or low is None or high is None or int(nBins) < 1 or not high > low:
                raise HistogramException(msg = "InvalidBinning", nBins = nBins, low = low, high = high)
            edges = np.linspace(low, high, int(nBins) + 1)
        self.edges = edges
        self.title = title

    def __repr__(self):
        return "{}(nBins = {}, low = {}, high = {})".format(self.__class__.__name__, self.nBins, self.low, self.high)

    @property
    def nBins(self):
        return len(self.edges) - 1

    @property
    def low(self):
        return self.edges[0]

    @property
    def high(self):
        return self.edges[-1]

    def findBin(self, value):
        """ Find the bin containing the value, following the ROOT bin numbering.

        Args:
            value (float): Value to locate.
        Returns:
            int: 0 for underflow, ``1..nBins`` for regular bins and ``nBins + 1`` for overflow.
        """
        return int(np.searchsorted(self.edges, value, side = "right"))

    def binLowEdge(self, binNumber):
        return self.edges[binNumber - 1]

    def binUpEdge(self, binNumber):
        return self.edges[binNumber]

    def binCenter(self, binNumber):
        return (self.edges[binNumber - 1] + self.edges[binNumber]) / 2.0

    def binWidth(self, binNumber):
        return self.edges[binNumber] - self.edges[binNumber - 1]

    def centers(self):
        """ Centers of all regular bins. """
        return (self.edges[1:] + self.edges[:-1]) / 2.0

class _binnedObject(object):
    """ Shared functionality for containers binned in one or more axes.

    Args:
        name (str): Name of the object. It must be unique within an output list.
        title (str): Title of the object.
        axes (list): Axes which define the binning.
    """
    def __init__(self, name, title, axes):
        if len(axes) < 1:
            raise HistogramException(msg = "NoAxes", name = name)
        self.name = name
        self.title = title
        self.axes = list(axes)
        self.entries = 0

    def __repr__(self):
        return "{}(name = {}, title = {}, axes = {})".format(self.__class__.__name__, self.name, self.title, self.axes)

    @property
    def dimension(self):
        return len(self.axes)

    @property
    def shape(self):
        """ Shape of the storage arrays, including the underflow and overflow bins. """
        return tuple(axis.nBins + 2 for axis in self.axes)

    def findBin(self, *values):
        """ Find the global bin index (one bin number per axis) for a set of coordinates. """
        if len(values) != self.dimension:
            raise HistogramException(msg = "WrongNumberOfCoordinates", name = self.name,
                                     expected = self.dimension, got = len(values))
        return tuple(axis.findBin(value) for axis, value in zip(self.axes, values))

    def _regularBins(self):
        """ Index selecting only the regular (non-flow) bins. """
        return tuple(slice(1, -1) for _ in self.axes)

class Histogram(_binnedObject):
    """ Weighted histogram with an arbitrary number of dimensions.

    Args:
        name (str): Name of the histogram.
        title (str): Title of the histogram.
        axes (list): Axes which define the binning.

    Attributes:
        contents (numpy.ndarray): Sum of weights in each bin, including flow bins.
        sumw2 (numpy.ndarray): Sum of squared weights in each bin, including flow bins.
        entries (int): Number of fill calls.
    """
    def __init__(self, name, title, axes):
        super(Histogram, self).__init__(name = name, title = title, axes = axes)
        self.contents = np.zeros(self.shape)
        self.sumw2 = np.zeros(self.shape)

    def fill(self, *values, weight = 1.0):
        """ Fill the histogram at the given coordinates.

        Args:
            values (float): One coordinate per axis.
            weight (float): Weight of the entry. Default: 1.
        Returns:
            tuple: Bin index which was filled.
        """
        index = self.findBin(*values)
        self.contents[index] += weight
        self.sumw2[index] += weight * weight
        self.entries += 1
        return index

    def getBinContent(self, *bins):
        return self.contents[tuple(bins)]

    def getBinError(self, *bins):
        return np.sqrt(self.sumw2[tuple(bins)])

    def integral(self, includeFlow = False):
        """ Sum of the bin contents.

        Args:
            includeFlow (bool): If True, include the underflow and overflow bins. Default: False.
        Returns:
            float: Sum of weights.
        """
        if includeFlow:
            return self.contents.sum()
        return self.contents[self._regularBins()].sum()

    def projection(self, axis = 0):
        """ Project the regular bins onto a single axis.

        Args:
            axis (int): Axis onto which we project. Default: 0.
        Returns:
            numpy.ndarray: Contents of the regular bins of that axis, summed over the regular bins of the others.
        """
        regular = self.contents[self._regularBins()]
        otherAxes = tuple(i for i in range(self.dimension) if i != axis)
        return regular.sum(axis = otherAxes) if otherAxes else regular

    def mean(self, axis = 0):
        """ Weighted mean along an axis using the bin centers of the regular bins (as ``TH1::GetMean()``). """
        projected = self.projection(axis = axis)
        total = projected.sum()
        if total == 0:
            return 0.0
        return float(np.dot(projected, self.axes[axis].centers()) / total)

    def add(self, other, scale = 1.0):
        """ Add the contents of another histogram with the same binning. """
        if other.shape != self.shape:
            raise HistogramException(msg = "IncompatibleBinning", name = self.name, other = other.name)
        self.contents += scale * other.contents
        self.sumw2 += scale * scale * other.sumw2
        self.entries += other.entries

    def reset(self):
        self.contents[...] = 0
        self.sumw2[...] = 0
        self.entries = 0

    def toDict(self):
        """ Represent the histogram as basic python types, suitable for writing to YAML. """
        return {
            "type": self.__class__.__name__,
            "title": self.title,
            "edges": [axis.edges.tolist() for axis in self.axes],
            "contents": self.contents[self._regularBins()].tolist(),
            "errors": np.sqrt(self.sumw2[self._regularBins()]).tolist(),
            "entries": self.entries,
        }

class Profile(_binnedObject):
    """ Profile of a value in one or more dimensions.

    Each bin stores the sum of weights, the weighted sum of the value, the weighted sum of the squared
    value and the sum of squared weights. The bin content is the weighted mean of the value, while the
    bin error is the error on that mean (equivalent to the default ROOT ``TProfile`` error option).

    Args:
        name (str): Name of the profile.
        title (str): Title of the profile.
        axes (list): Axes which define the binning.
    """
    def __init__(self, name, title, axes):
        super(Profile, self).__init__(name = name, title = title, axes = axes)
        self.sumW = np.zeros(self.shape)
        self.sumWY = np.zeros(self.shape)
        self.sumWY2 = np.zeros(self.shape)
        self.sumW2 = np.zeros(self.shape)

    def fill(self, *values, weight = 1.0):
        """ Fill the profile.

        Args:
            values (float): One coordinate per axis, followed by the value to be profiled.
            weight (float): Weight of the entry. Default: 1.
        Returns:
            tuple: Bin index which was filled.
        """
        if len(values) != self.dimension + 1:
            raise HistogramException(msg = "WrongNumberOfCoordinates", name = self.name,
                                     expected = self.dimension + 1, got = len(values))
        index = self.findBin(*values[:-1])
        y = values[-1]
        self.sumW[index] += weight
        self.sumWY[index] += weight * y
        self.sumWY2[index] += weight * y * y
        self.sumW2[index] += weight * weight
        self.entries += 1
        return index

    def getBinEntries(self, *bins):
        """ Sum of weights in the bin. """
        return self.sumW[tuple(bins)]

    def getBinEffectiveEntries(self, *bins):
        index = tuple(bins)
        if self.sumW2[index] == 0:
            return 0.0
        return self.sumW[index] ** 2 / self.sumW2[index]

    def getBinContent(self, *bins):
        index = tuple(bins)
        if self.sumW[index] == 0:
            return 0.0
        return self.sumWY[index] / self.sumW[index]

    def getBinError(self, *bins):
        index = tuple(bins)
        if self.sumW[index] == 0:
            return 0.0
        mean = self.sumWY[index] / self.sumW[index]
        spread = np.sqrt(abs(self.sumWY2[index] / self.sumW[index] - mean * mean))
        return spread / np.sqrt(self.getBinEffectiveEntries(*bins))

    def add(self, other):
        """ Merge another profile with the same binning into this one. """
        if other.shape != self.shape:
            raise HistogramException(msg = "IncompatibleBinning", name = self.name, other = other.name)
        self.sumW += other.sumW
        self.sumWY += other.sumWY
        self.sumWY2 += other.sumWY2
        self.sumW2 += other.sumW2
        self.entries += other.entries

    def reset(self):
        for arr in [self.sumW, self.sumWY, self.sumWY2, self.sumW2]:
            arr[...] = 0
        self.entries = 0

    def toDict(self):
        regular = self._regularBins()
        means = np.divide(self.sumWY, self.sumW, out = np.zeros(self.shape), where = self.sumW != 0)
        return {
            "type": self.__class__.__name__,
            "title": self.title,
            "edges": [axis.edges.tolist() for axis in self.axes],
            "contents": means[regular].tolist(),
            "binEntries": self.sumW[regular].tolist(),
            "entries": self.entries,
        }

class SparseHistogram(object):
    """ N dimensional histogram which only stores filled bins (as ``THnSparse``).

    Args:
        name (str): Name of the histogram.
        title (str): Title of the histogram.
        nBins (list): Number of bins per axis.
        mins (list): Lower edge per axis.
        maxs (list): Upper edge per axis.
    """
    def __init__(self, name, title, nBins, mins, maxs):
        if not (len(nBins) == len(mins) == len(maxs)):
            raise HistogramException(msg = "InconsistentDimensions", name = name)
        self.name = name
        self.title = title
        self.axes = [Axis(n, low, high) for n, low, high in zip(nBins, mins, maxs)]
        self.bins = {}
        self.entries = 0

    @property
    def dimension(self):
        return len(self.axes)

    def findBin(self, *values):
        if len(values) != self.dimension:
            raise HistogramException(msg = "WrongNumberOfCoordinates", name = self.name,
                                     expected = self.dimension, got = len(values))
        return tuple(axis.findBin(value) for axis, value in zip(self.axes, values))

    def fill(self, values, weight = 1.0):
        """ Fill the histogram with a sequence of coordinates (one per axis). """
        index = self.findBin(*values)
        content, sumw2 = self.bins.get(index, (0.0, 0.0))
        self.bins[index] = (content + weight, sumw2 + weight * weight)
        self.entries += 1
        return index

    def getBinContent(self, *bins):
        return self.bins.get(tuple(bins), (0.0, 0.0))[0]

    def getNbins(self):
        """ Number of filled bins. """
        return len(self.bins)

    def reset(self):
        self.bins = {}
        self.entries = 0

    def toDict(self):
        return {
            "type": self.__class__.__name__,
            "title": self.title,
            "edges": [axis.edges.tolist() for axis in self.axes],
            "bins": [[list(k), float(v[0])] for k, v in sorted(self.bins.items())],
            "entries": self.entries,
        }

class NTuple(object):
    """ Simple table of named values, filled one row at a time (as a flat ``TTree``).

    Args:
        name (str): Name of the tuple.
        branches (list): Names of the columns.
    """
    def __init__(self, name, branches):
        self.name = name
        self.branches = list(branches)
        self.rows = []

    @property
    def entries(self):
        return len(self.rows)

    def fill(self, **values):
        """ Add a row. All branches must be given. """
        if set(values) != set(self.branches):
            raise HistogramException(msg = "WrongBranches", name = self.name,
                                     expected = self.branches, got = sorted(values))
        self.rows.append(tuple(values[b] for b in self.branches))

    def column(self, branch):
        """ Retrieve all values of a branch as an array. """
        index = self.branches.index(branch)
        return np.array([row[index] for row in self.rows])

    def reset(self):
        self.rows = []

    def toDict(self):
        return {
            "type": self.__class__.__name__,
            "branches": self.branches,
            "rows": [[float(v) for v in row] for row in self.rows],
        }

class outputList(object):
    """ Ordered collection of output objects, identified by their names (as a ``TList``).

    Args:
        name (str): Name of the list, usually the name of the owning task.
    """
    def __init__(self, name):
        self.name = name
        self._objects = collections.OrderedDict()

    def __repr__(self):
        return "{}(name = {}, objects = {})".format(self.__class__.__name__, self.name, list(self._objects))

    def __len__(self):
        return len(self._objects)

    def __iter__(self):
        return iter(self._objects.values())

    def __contains__(self, name):
        return name in self._objects

    def __getitem__(self, name):
        return self._objects[name]

    def add(self, obj):
        """ Add an object to the list.

        Args:
            obj (object): Object with a ``name`` attribute.
        Returns:
            object: The object which was added, for convenience.
        """
        if obj.name in self._objects:
            raise HistogramException(msg = "DuplicateName", name = obj.name, listName = self.name)
        self._objects[obj.name] = obj
        return obj

    def find(self, name):
        """ Find an object by name, returning None if it doesn't exist (as ``TList::FindObject()``). """
        return self._objects.get(name, None)

    def names(self):
        return list(self._objects)

    def toDict(self):
        return {name: obj.toDict() for name, obj in self._objects.items()}

def hist1D(name, title, nBins, low, high):
    """ Convenience function to create a one dimensional histogram with fixed binning. """
    return Histogram(name, title, [Axis(nBins, low, high)])

def hist2D(name, title, nBinsX, lowX, highX, nBinsY, lowY, highY):
    """ Convenience function to create a two dimensional histogram with fixed binning. """
    return Histogram(name, title, [Axis(nBinsX, lowX, highX), Axis(nBinsY, lowY, highY)])

def hist3D(name, title, nBinsX, lowX, highX, nBinsY, lowY, highY, nBinsZ, lowZ, highZ):
    """ Convenience function to create a three dimensional histogram with fixed binning. """
    return Histogram(name, title, [Axis(nBinsX, lowX, highX), Axis(nBinsY, lowY, highY), Axis(nBinsZ, lowZ, highZ)])
