""" Minor cycle kernels: peak finding and PSF subtraction

Two implementations of each kernel are provided. The golden kernels are scalar loops compiled with numba and define
the reference behaviour, including the clipping of the PSF at the image edges. The vectorised kernels do the same work
with numpy array slicing and must agree with the golden kernels to within 1e-5.

All images are flat, C-contiguous numpy arrays of a square image, indexed as y * width + x.
"""

import logging

import numba
import numpy

from msclean.util.coordinate_support import idx_to_pos

log = logging.getLogger(__name__)


@numba.jit(nopython=True)
def _find_peak_kernel(image):
    maxval = 0.0
    maxpos = 0
    for i in range(image.shape[0]):
        if abs(image[i]) > abs(maxval):
            maxval = image[i]
            maxpos = i
    return maxval, maxpos


@numba.jit(nopython=True)
def _subtract_psf_kernel(psf, psf_width, target, target_width, rx, ry, px, py, peak_val, gain):
    # Offset that lines the PSF peak up with the peak in the target
    diffx = rx - px
    diffy = ry - py

    # Corners of the overlay in the target, clipped to the target
    startx = max(0, rx - px)
    starty = max(0, ry - py)
    stopx = min(target_width - 1, rx + (psf_width - px - 1))
    stopy = min(target_width - 1, ry + (psf_width - py - 1))

    for y in range(starty, stopy + 1):
        for x in range(startx, stopx + 1):
            target[y * target_width + x] -= gain * peak_val * psf[(y - diffy) * psf_width + (x - diffx)]


def find_peak(image):
    """ Find the sample with the largest absolute value

    Ties go to the first occurrence. An all-zero image gives (0.0, 0).

    :param image: Flat image
    :return: peak value (signed), flat index of the peak
    """
    maxval, maxpos = _find_peak_kernel(image)
    return float(maxval), int(maxpos)


def subtract_psf(psf, psf_width, target, target_width, peak_pos, psf_peak_pos, peak_val, gain):
    """ Subtract a scaled, shifted copy of the PSF from the target in place

    The PSF sample at psf_peak_pos is lined up with the target sample at peak_pos and gain * peak_val * psf is
    subtracted over the overlap. Any part of the PSF that falls outside the target is dropped.

    :param psf: Flat PSF (or cross term) image
    :param psf_width: Width of the PSF
    :param target: Flat image to subtract from, modified in place
    :param target_width: Width of the target
    :param peak_pos: Flat index of the peak in the target
    :param psf_peak_pos: Flat index of the anchor sample in the PSF
    :param peak_val: Peak value to subtract (negate to add to a model)
    :param gain: Loop gain
    """
    assert target.flags.c_contiguous and target.ndim == 1
    rx, ry = idx_to_pos(peak_pos, target_width)
    px, py = idx_to_pos(psf_peak_pos, psf_width)
    _subtract_psf_kernel(psf, psf_width, target, target_width, rx, ry, px, py, peak_val, gain)


def find_peak_vectorised(image):
    """ Find the sample with the largest absolute value using numpy

    numpy.argmax returns the first occurrence of the maximum so ties are broken as in find_peak.

    :param image: Flat image
    :return: peak value (signed), flat index of the peak
    """
    maxpos = int(numpy.argmax(numpy.abs(image)))
    return float(image[maxpos]), maxpos


def overlap_indices(target_width, psf_width, peak, psf_peak):
    """ Find the indices where the target and the shifted PSF overlap

    The limits are half-open and in numpy (y, x) order, ready for slicing 2D views.

    :param target_width: Width of the target
    :param psf_width: Width of the PSF
    :param peak: Position of the peak in the target
    :param psf_peak: Position of the anchor in the PSF
    :return: (limits in target, limits in psf), each as (y0, y1, x0, x1)
    """
    diffx = peak.x - psf_peak.x
    diffy = peak.y - psf_peak.y
    x0 = max(0, diffx)
    y0 = max(0, diffy)
    x1 = min(target_width - 1, peak.x + (psf_width - psf_peak.x - 1)) + 1
    y1 = min(target_width - 1, peak.y + (psf_width - psf_peak.y - 1)) + 1
    return (y0, y1, x0, x1), (y0 - diffy, y1 - diffy, x0 - diffx, x1 - diffx)


def subtract_psf_vectorised(psf, psf_width, target, target_width, peak_pos, psf_peak_pos, peak_val, gain):
    """ Subtract a scaled, shifted copy of the PSF from the target in place using numpy slicing

    Same arguments and clipping as subtract_psf.
    """
    assert target.flags.c_contiguous and target.ndim == 1
    lhs, rhs = overlap_indices(target_width, psf_width, idx_to_pos(peak_pos, target_width),
                               idx_to_pos(psf_peak_pos, psf_width))
    target2d = target.reshape([target_width, target_width])
    psf2d = psf.reshape([psf_width, psf_width])
    target2d[lhs[0]:lhs[1], lhs[2]:lhs[3]] -= gain * peak_val * psf2d[rhs[0]:rhs[1], rhs[2]:rhs[3]]


kernels = {
    'golden': (find_peak, subtract_psf),
    'vectorised': (find_peak_vectorised, subtract_psf_vectorised)
}
