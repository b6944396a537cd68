"""Functions that aid testing in various ways. A typical use would be::

        psf = create_test_psf(npixel=32, width=2.0)
        dirty = create_test_dirty(psf, npixel=64, sources=[(10, 20, 3.0), (40, 40, -1.5)])
        psfs = [create_test_psf(npixel=32, width=w) for w in [0.0, 1.0, 2.0]]
        cross = create_test_cross(psfs)

"""

import logging

import numpy

from msclean.image.cleaners import subtract_psf

log = logging.getLogger(__name__)


def create_test_psf(npixel=32, width=2.0, peak=None):
    """ Create a Gaussian PSF with unit peak

    :param npixel: Width of the PSF in pixels
    :param width: Gaussian sigma in pixels, 0 gives a unit impulse
    :param peak: (x, y) of the peak, default the centre npixel // 2
    :return: 2D numpy array
    """
    if peak is None:
        peak = (npixel // 2, npixel // 2)
    if width <= 0.0:
        psf = numpy.zeros([npixel, npixel])
        psf[peak[1], peak[0]] = 1.0
        return psf
    y, x = numpy.mgrid[0:npixel, 0:npixel]
    r2 = (x - peak[0]) ** 2 + (y - peak[1]) ** 2
    return numpy.exp(-0.5 * r2 / width ** 2)


def create_test_dirty(psf, npixel=64, sources=None):
    """ Create a dirty image by placing shifted copies of the PSF at the sources

    The PSF is anchored at its peak and clipped at the image edges.

    :param psf: 2D PSF
    :param npixel: Width of the dirty image
    :param sources: list of (x, y, flux), default a single unit source at the centre
    :return: 2D numpy array
    """
    if sources is None:
        sources = [(npixel // 2, npixel // 2, 1.0)]
    psf_width = psf.shape[0]
    lpsf = numpy.ascontiguousarray(psf, dtype='float64').ravel()
    psf_peak_pos = int(numpy.argmax(numpy.abs(lpsf)))
    dirty = numpy.zeros(npixel * npixel)
    for x, y, flux in sources:
        # Subtracting with a negated flux adds the PSF
        subtract_psf(lpsf, psf_width, dirty, npixel, y * npixel + x, psf_peak_pos, -flux, 1.0)
    log.debug("create_test_dirty: %d sources, max abs %.6f" % (len(sources), numpy.max(numpy.abs(dirty))))
    return dirty.reshape([npixel, npixel])


def create_test_cross(psfs, coupling=None):
    """ Create cross terms by scaling each scale's PSF

    cross[a * nscales + b] is psfs[b] * coupling[a, b]. This is not a convolution of component shapes, just
    distinct images for exercising the attribution of components to scales.

    :param psfs: list of PSFs, one per scale
    :param coupling: nscales x nscales array of factors, default all ones
    :return: list of nscales * nscales cross terms
    """
    nscales = len(psfs)
    if coupling is None:
        coupling = numpy.ones([nscales, nscales])
    return [coupling[a, b] * numpy.array(psfs[b]) for a in range(nscales) for b in range(nscales)]
