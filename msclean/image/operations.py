"""
Functions that read, write, check and compare images. Images are square numpy arrays, either flat or 2D.

The raw format is that of the benchmark data files: native float32 samples with no header, so the width is only known
from the sample count.
"""
import logging
import os
import warnings

import numpy
from astropy.io import fits

from msclean.data.parameters import msclean_path
from msclean.msclean_exceptions import ConfigurationError

log = logging.getLogger(__name__)


def _resolve(filename):
    if os.path.exists(filename):
        return filename
    return msclean_path(filename)


def check_square(im, name='image'):
    """ Check that an image holds a square number of samples

    :param im: Image (flat or 2D numpy array)
    :param name: Name used in the error message
    :return: width of the image
    """
    size = numpy.size(im)
    width = int(numpy.sqrt(size))
    # Guard against rounding in the square root for large images
    while width * width > size:
        width -= 1
    while (width + 1) * (width + 1) <= size:
        width += 1
    if width == 0 or width * width != size:
        raise ConfigurationError("%s is not square: %d samples" % (name, size))
    if numpy.ndim(im) == 2 and im.shape[0] != im.shape[1]:
        raise ConfigurationError("%s is not square: shape %s" % (name, str(im.shape)))
    return width


def import_image_from_raw(filename, dtype='float32'):
    """ Read an image from a raw binary file

    :param filename: Name of file
    :param dtype: Sample type in the file
    :return: flat numpy array
    """
    filename = _resolve(filename)
    if not os.path.exists(filename):
        log.error("import_image_from_raw: Could not stat %s" % filename)
        raise FileNotFoundError("Could not stat %s" % filename)
    im = numpy.fromfile(filename, dtype=dtype)
    log.debug("import_image_from_raw: read %d samples of %s from %s" % (im.size, im.dtype, filename))
    return im


def export_image_to_raw(im, filename, dtype='float32'):
    """ Write an image to a raw binary file, overwriting any existing file

    :param im: Image
    :param filename: Name of file
    :param dtype: Sample type in the file
    """
    numpy.ascontiguousarray(im, dtype=dtype).tofile(filename)
    log.debug("export_image_to_raw: wrote %d samples to %s" % (numpy.size(im), filename))


def export_image_to_fits(im, fitsfile='imaging.fits'):
    """ Write an image to fits

    Flat images are written as 2D.

    :param im: Image
    :param fitsfile: Name of output fits file
    """
    width = check_square(im)
    data = numpy.asarray(im).reshape([width, width])
    return fits.writeto(filename=fitsfile, data=data, overwrite=True)


def import_image_from_fits(fitsfile):
    """ Read an image from fits

    Degenerate leading axes (e.g. frequency and polarisation of size 1) are removed.

    :param fitsfile:
    :return: 2D numpy array
    """
    with warnings.catch_warnings():
        warnings.simplefilter('ignore')
        with fits.open(_resolve(fitsfile)) as hdulist:
            data = numpy.array(hdulist[0].data)
    while data.ndim > 2 and data.shape[0] == 1:
        data = data[0]
    if data.ndim != 2:
        raise ConfigurationError("%s does not hold a single 2D image: shape %s" % (fitsfile, str(data.shape)))
    log.debug("import_image_from_fits: created %s image of shape %s" % (data.dtype, str(data.shape)))
    log.debug("import_image_from_fits: Max, min in %s = %.6f, %.6f" % (fitsfile, data.max(), data.min()))
    return data


def import_image(filename):
    """ Read an image from fits or raw, depending on the file suffix

    :param filename:
    :return: numpy array
    """
    if filename.lower().endswith(('.fits', '.fit', '.fts')):
        return import_image_from_fits(filename)
    return import_image_from_raw(filename)


def compare_images(expected, actual, tolerance=1e-5):
    """ Compare two images sample by sample

    :param expected: Reference image
    :param actual: Image to check
    :param tolerance: Largest absolute difference allowed
    :return: True if the images have the same size and agree everywhere
    """
    expected = numpy.ravel(expected)
    actual = numpy.ravel(actual)
    if expected.size != actual.size:
        log.info("compare_images: Fail (Vector sizes differ: %d, %d)" % (expected.size, actual.size))
        return False

    # NaN differences count as failures
    bad = numpy.nonzero(~(numpy.abs(expected - actual) <= tolerance))[0]
    if len(bad) > 0:
        i = bad[0]
        log.info("compare_images: Fail (Expected %s got %s at index %d)" % (expected[i], actual[i], i))
        return False
    return True
