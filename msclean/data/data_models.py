"""The data models used by the multi-scale minor cycle.

Images are plain numpy arrays, either flat (length width * width, row-major) or two dimensional (width, width).
The minor cycle works on flat buffers so that a sample index is y * width + x, as described by Position.

"""

import collections
import logging

__all__ = ['Position', 'CleanControl', 'BACKENDS']

log = logging.getLogger(__name__)

Position = collections.namedtuple('Position', ['x', 'y'])
Position.__doc__ = """ Integer position (x, y) of a sample in a square image

x is the column (fastest varying) and y the row, so for a flat row-major buffer the index is y * width + x.
"""

BACKENDS = ('golden', 'vectorised')


class CleanControl:
    """ Controls for the multi-scale minor cycle

    The defaults are those of the benchmark: 1000 iterations, loop gain 0.1 and an absolute
    stopping threshold of 1e-5.

    scale_bias is a hook for weighting the peak found on each scale before the global peak is selected. It may be
    None (no weighting), a sequence of one weight per scale, or a callable taking the scale index and returning the
    weight. Weights must be positive. They only affect which scale wins; the raw peak value is what gets subtracted.
    """

    def __init__(self, niter=1000, gain=0.1, threshold=1e-5, scale_bias=None, backend='golden'):
        self.niter = niter
        self.gain = gain
        self.threshold = threshold
        self.scale_bias = scale_bias
        self.backend = backend

    def scale_weights(self, nscales):
        """ Resolve the scale bias hook into a list of weights, one per scale

        :param nscales: Number of scales
        :return: list of floats
        """
        if self.scale_bias is None:
            return [1.0] * nscales
        if callable(self.scale_bias):
            return [float(self.scale_bias(scale)) for scale in range(nscales)]
        return [float(weight) for weight in self.scale_bias]

    def __str__(self):
        """Default printer for CleanControl

        """
        s = "CleanControl:\n"
        s += "\tNumber of iterations: %d\n" % self.niter
        s += "\tLoop gain: %s\n" % self.gain
        s += "\tThreshold: %s\n" % self.threshold
        s += "\tScale bias: %s\n" % self.scale_bias
        s += "\tBackend: %s\n" % self.backend
        return s
