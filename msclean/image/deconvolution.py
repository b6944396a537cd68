""" Multi-scale image deconvolution

The minor cycle of multi-scale CLEAN (Cornwell, T.J., Multiscale CLEAN, IEEE Journal of Selected Topics in Sig Proc,
2008 vol. 2 pp. 793-801) operating on a set of precomputed per-scale PSFs and cross-scale correlation images.

For example to deconvolve with five scales::

    model, residuals = deconvolve_multiscale(dirty, psfs, cross, niter=1000, gain=0.1, threshold=1e-5)

where psfs holds one PSF per scale and cross holds nscales * nscales cross terms, cross[a * nscales + b] being
the response of scale b to a component found at scale a. The single scale case is Hogbom CLEAN::

    model, residual = hogbom(dirty, psf, niter=1000, gain=0.1, threshold=1e-5)

"""

import logging
import numbers

import numpy

from msclean.data.data_models import CleanControl, BACKENDS
from msclean.data.parameters import get_parameter
from msclean.image.cleaners import kernels
from msclean.image.operations import check_square
from msclean.msclean_exceptions import ConfigurationError, DegenerateInputError, InvalidValueError
from msclean.util.coordinate_support import idx_to_pos, pos_to_idx

log = logging.getLogger(__name__)


def create_clean_control(**kwargs) -> CleanControl:
    """ Create the controls for the minor cycle from kwargs

    :param niter: Maximum number of iterations (1000)
    :param gain: Loop gain (0.1)
    :param threshold: Absolute stopping threshold (1e-5)
    :param scale_bias: Per-scale peak weights, sequence or callable (None)
    :param backend: 'golden'|'vectorised' ('golden')
    :return: CleanControl
    """
    return CleanControl(niter=get_parameter(kwargs, 'niter', 1000),
                        gain=get_parameter(kwargs, 'gain', 0.1),
                        threshold=get_parameter(kwargs, 'threshold', 1e-5),
                        scale_bias=get_parameter(kwargs, 'scale_bias', None),
                        backend=get_parameter(kwargs, 'backend', 'golden'))


def create_scale_bias(widths, fraction=0.6):
    """ Per-scale peak weights that fall linearly with the scale width

    The weight of scale s is 1 - fraction * widths[s] / widths[-1], so the point scale keeps full weight and the
    largest scale is reduced by fraction. Nothing applies this unless it is passed as scale_bias.

    :param widths: Scale widths in pixels, largest last
    :param fraction: Reduction at the largest scale
    :return: list of weights
    """
    if len(widths) == 0 or widths[-1] <= 0:
        raise ConfigurationError("Scale widths must end with a positive width: %s" % str(widths))
    return [1.0 - fraction * width / widths[-1] for width in widths]


def select_global_peak(peaks, weights=None):
    """ Select the scale holding the global peak

    The scale with the strictly largest (weighted) magnitude wins, so ties go to the lowest scale.

    :param peaks: list of (value, index), one per scale
    :param weights: Optional list of per-scale weights
    :return: index of the selected scale
    """
    mscale = 0
    pabsmax = None
    for scale, (value, _) in enumerate(peaks):
        thisabsmax = abs(value)
        if weights is not None:
            thisabsmax *= weights[scale]
        if pabsmax is None or thisabsmax > pabsmax:
            pabsmax = thisabsmax
            mscale = scale
    return mscale


def _check_control(control, nscales):
    if isinstance(control.niter, bool) or not isinstance(control.niter, (int, numpy.integer)) or control.niter <= 0:
        raise ConfigurationError("Number of iterations must be a positive integer, got %s" % control.niter)
    if not isinstance(control.gain, numbers.Real) or not 0.0 < control.gain <= 1.0:
        raise ConfigurationError("Loop gain must be a number in (0, 1], got %r" % (control.gain,))
    if not isinstance(control.threshold, numbers.Real) or not 0.0 <= control.threshold < numpy.inf:
        raise ConfigurationError("Threshold must be a non-negative number, got %r" % (control.threshold,))
    if control.backend not in BACKENDS:
        raise ConfigurationError("Unknown backend %s, expected one of %s" % (control.backend, str(BACKENDS)))
    try:
        weights = control.scale_weights(nscales)
    except (TypeError, ValueError) as err:
        raise ConfigurationError("Scale bias weights must be numbers: %s" % err)
    if len(weights) != nscales:
        raise ConfigurationError("Need %d scale bias weights, got %d" % (nscales, len(weights)))
    # Every scale must stay selectable
    if not all(0.0 < weight < numpy.inf for weight in weights):
        raise ConfigurationError("Scale bias weights must be finite and positive: %s" % str(weights))
    return weights


def _check_output(out, size, name):
    if not isinstance(out, numpy.ndarray):
        raise ConfigurationError("%s must be a numpy array, got %s" % (name, type(out).__name__))
    if out.size != size:
        raise ConfigurationError("%s has %d samples, dirty image has %d" % (name, out.size, size))
    if not out.flags.writeable:
        raise ConfigurationError("%s is read-only" % name)
    if not numpy.can_cast(numpy.float64, out.dtype, 'same_kind'):
        raise ConfigurationError("%s of type %s cannot hold float64 samples" % (name, out.dtype))


def _check_finite(im, name):
    nbad = im.size - numpy.count_nonzero(numpy.isfinite(im))
    if nbad > 0:
        raise InvalidValueError(name, nbad)


def _check_widths(images, name):
    widths = [check_square(im, '%s[%d]' % (name, i)) for i, im in enumerate(images)]
    if len(set(widths)) != 1:
        raise ConfigurationError("All %s images must have the same width, got %s" % (name, str(widths)))
    return widths[0]


def _flat(im):
    return numpy.array(im, dtype='float64').ravel()


class MultiScaleDeconvolver:
    """ Multi-scale CLEAN minor cycle

    The deconvolver owns one residual per scale and the model for the duration of a run. Each iteration first
    observes the peak of every residual and selects the global peak, then mutates: the PSF of the selected scale is
    added to the model and the matching cross term is subtracted from every residual, all at the same peak.

    The stopping threshold is checked only once the global peak over all scales is known, and scales are compared
    by the magnitude of their peaks. Testing each scale against the threshold during the scan, or comparing signed
    values, can stop before the true peak is seen. With a scale bias the threshold is tested against the largest raw
    peak over all scales, so a weighted selection cannot end the run while flux above the threshold remains.

    After a run, state is 'CONVERGED' or 'EXHAUSTED', iterations holds the number of components found and peaks
    holds (scale, value, index) for each of them.
    """

    def __init__(self, nscales, control=None, **kwargs):
        """ Create a deconvolver

        :param nscales: Number of scales
        :param control: CleanControl, if None one is made from kwargs by create_clean_control
        """
        if isinstance(nscales, bool) or not isinstance(nscales, (int, numpy.integer)) or nscales < 1:
            raise ConfigurationError("Number of scales must be a positive integer, got %s" % nscales)
        self.nscales = int(nscales)
        self.control = control if control is not None else create_clean_control(**kwargs)
        self.weights = _check_control(self.control, self.nscales)
        self.find_peak, self.subtract_psf = kernels[self.control.backend]
        self.state = 'INIT'
        self.iterations = 0
        self.peaks = []

    def deconvolve(self, dirty, psfs, cross, model=None, residuals=None):
        """ Deconvolve the dirty image

        Nothing is written to model or residuals unless the run succeeds.

        :param dirty: Dirty image
        :param psfs: List of nscales PSFs, all of the same width
        :param cross: List of nscales * nscales cross terms, all of the same width
        :param model: Optional array to receive the model
        :param residuals: Optional list of nscales arrays to receive the residuals
        :return: model, list of residuals, in the shape of the dirty image (or of the supplied arrays)
        """
        nscales = self.nscales
        self.state = 'INIT'
        self.iterations = 0
        self.peaks = []

        dirty_width = check_square(dirty, 'dirty')
        if len(psfs) != nscales:
            raise ConfigurationError("Need %d PSFs, got %d" % (nscales, len(psfs)))
        if len(cross) != nscales * nscales:
            raise ConfigurationError("Need %d cross terms, got %d" % (nscales * nscales, len(cross)))
        psf_width = _check_widths(psfs, 'psf')
        cross_width = _check_widths(cross, 'cross')
        if model is not None:
            _check_output(model, numpy.size(dirty), 'model')
        if residuals is not None:
            if len(residuals) != nscales:
                raise ConfigurationError("Need %d residuals, got %d" % (nscales, len(residuals)))
            for scale, residual in enumerate(residuals):
                _check_output(residual, numpy.size(dirty), 'residual[%d]' % scale)

        ldirty = _flat(dirty)
        lpsfs = [_flat(psf) for psf in psfs]
        lcross = [_flat(c) for c in cross]
        _check_finite(ldirty, 'dirty')
        for scale, psf in enumerate(lpsfs):
            _check_finite(psf, 'psf[%d]' % scale)
        for term, c in enumerate(lcross):
            _check_finite(c, 'cross[%d]' % term)

        # The peak of each PSF is the anchor used to line it up with the peak in the residual. The cross terms
        # subtracted from a residual are anchored at the same position as that scale's PSF.
        psf_peaks = []
        cross_peaks = []
        for scale, psf in enumerate(lpsfs):
            psf_peak_val, psf_peak_pos = self.find_peak(psf)
            if psf_peak_val == 0.0:
                raise DegenerateInputError('psf[%d]' % scale)
            pos = idx_to_pos(psf_peak_pos, psf_width)
            log.info("deconvolve: Found peak of PSF: Maximum = %s at location %d,%d for scale %d" %
                     (psf_peak_val, pos.x, pos.y, scale))
            if pos.x >= cross_width or pos.y >= cross_width:
                raise ConfigurationError("Peak of psf[%d] at %d,%d lies outside the cross terms of width %d" %
                                         (scale, pos.x, pos.y, cross_width))
            psf_peaks.append(psf_peak_pos)
            cross_peaks.append(pos_to_idx(cross_width, pos))

        lresiduals = [ldirty.copy() for scale in range(nscales)]
        lmodel = numpy.zeros_like(ldirty)

        niter = self.control.niter
        gain = self.control.gain
        threshold = self.control.threshold
        log.info("deconvolve: This minor cycle will stop at %d iterations or peak < %s" % (niter, threshold))

        self.state = 'ITERATING'
        for i in range(niter):
            # Observe: peaks on all scales, then the global peak
            peaks = [self.find_peak(residual) for residual in lresiduals]
            mscale = select_global_peak(peaks, self.weights)
            mval, mpos = peaks[mscale]
            if niter < 10 or i % (niter // 10) == 0:
                pos = idx_to_pos(mpos, dirty_width)
                log.info("deconvolve: Minor cycle %d, peak %s at [%d, %d] on scale %d" %
                         (i, mval, pos.x, pos.y, mscale))
            # The threshold applies to the largest raw peak over all scales, not to the weighted winner
            pabsmax = max(abs(value) for value, _ in peaks)
            if pabsmax < threshold or pabsmax == 0.0:
                log.info("deconvolve: At iteration %d, absolute value of peak %.6f is below stopping threshold %.6f"
                         % (i, pabsmax, threshold))
                self.state = 'CONVERGED'
                break

            # Mutate: add the component to the model and remove it from every scale
            self.subtract_psf(lpsfs[mscale], psf_width, lmodel, dirty_width, mpos, psf_peaks[mscale], -mval, gain)
            for scale in range(nscales):
                self.subtract_psf(lcross[mscale * nscales + scale], cross_width, lresiduals[scale], dirty_width,
                                  mpos, cross_peaks[scale], mval, gain)
            self.peaks.append((mscale, mval, mpos))
            self.iterations += 1

        if self.state == 'ITERATING':
            self.state = 'EXHAUSTED'
        log.info("deconvolve: End of minor cycle: %s after %d iterations" % (self.state, self.iterations))

        _check_finite(lmodel, 'model')
        for scale, residual in enumerate(lresiduals):
            _check_finite(residual, 'residual[%d]' % scale)

        if model is None:
            model = lmodel.reshape(numpy.shape(dirty))
        else:
            numpy.copyto(model, lmodel.reshape(numpy.shape(model)))
        if residuals is None:
            residuals = [residual.reshape(numpy.shape(dirty)) for residual in lresiduals]
        else:
            for residual, lresidual in zip(residuals, lresiduals):
                numpy.copyto(residual, lresidual.reshape(numpy.shape(residual)))
        return model, residuals


def deconvolve_multiscale(dirty, psfs, cross, **kwargs):
    """ Multi-scale CLEAN of a dirty image

    The number of scales is taken from the number of PSFs.

    :param dirty: Dirty image
    :param psfs: List of PSFs, one per scale
    :param cross: List of cross terms, nscales * nscales
    :param niter: Maximum number of iterations (1000)
    :param gain: Loop gain (0.1)
    :param threshold: Absolute stopping threshold (1e-5)
    :param scale_bias: Per-scale peak weights (None)
    :param backend: 'golden'|'vectorised' ('golden')
    :return: model, list of residuals
    """
    deconvolver = MultiScaleDeconvolver(len(psfs), create_clean_control(**kwargs))
    return deconvolver.deconvolve(dirty, psfs, cross)


def hogbom(dirty, psf, **kwargs):
    """ Clean the point spread function from a dirty image

    See Hogbom CLEAN (1974A&AS...15..417H). This is the multi-scale minor cycle with a single scale whose cross
    term is the PSF itself.

    :param dirty: Dirty image
    :param psf: Point spread function
    :return: model, residual
    """
    model, residuals = deconvolve_multiscale(dirty, [psf], [psf], **kwargs)
    return model, residuals[0]
