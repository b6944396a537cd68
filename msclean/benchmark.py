""" Benchmark of the golden and vectorised multi-scale minor cycles

Reads a dirty image and a PSF, replicates the PSF as the PSF of every scale and as every cross term, deconvolves with
the golden kernels, writes the golden model and residual, then deconvolves with the vectorised kernels and verifies
that both agree.

For example::

    msclean-benchmark --dirty dirty.img --psf psf.img --niter 1000 --nscales 5

"""

import argparse
import logging
import os
import sys

import numpy

from msclean.data.parameters import get_parameter
from msclean.image.deconvolution import MultiScaleDeconvolver, create_clean_control, create_scale_bias
from msclean.image.operations import check_square, compare_images, export_image_to_raw, import_image
from msclean.msclean_exceptions import MSCleanError
from msclean.util.timing import Stopwatch, timing

log = logging.getLogger(__name__)


def replicate_psf(psf, nscales):
    """ Use the PSF as the PSF of every scale and as every cross term

    :param psf: PSF
    :param nscales: Number of scales
    :return: list of nscales PSFs, list of nscales * nscales cross terms
    """
    psfs = [numpy.array(psf) for scale in range(nscales)]
    cross = [numpy.array(psf) for term in range(nscales * nscales)]
    return psfs, cross


def _timed_run(name, deconvolver, dirty, psfs, cross, results):
    log.info("+++++ Forward processing (%s) +++++" % name)
    sw = Stopwatch()
    sw.start()
    model, residuals = deconvolver.deconvolve(dirty, psfs, cross)
    elapsed = sw.stop()
    niter = deconvolver.control.niter
    log.info("    Time %.6f (s)" % elapsed)
    log.info("    Time per cycle %.6f (ms)" % (elapsed / niter * 1000.0))
    log.info("    Cleaning rate %.2f (iterations per second)" % (niter / elapsed if elapsed > 0.0 else numpy.inf))
    log.info("Done")
    results['time %s' % name] = elapsed
    results['iterations %s' % name] = deconvolver.iterations
    results['state %s' % name] = deconvolver.state
    return model, residuals


@timing
def run_benchmark(dirty, psf, **kwargs):
    """ Run the golden and vectorised minor cycles on the same inputs and compare them

    The results are in a dictionary:

    'npixel': width of the dirty image
    'psf_npixel': width of the PSF
    'nscales': number of scales
    'niter': iteration limit
    'time golden', 'time vectorised': run times (s)
    'iterations golden', 'iterations vectorised': components found
    'state golden', 'state vectorised': 'CONVERGED' or 'EXHAUSTED'
    'golden_model', 'golden_residuals', 'vectorised_model', 'vectorised_residuals': outputs
    'model_ok', 'residual_ok': verification results (None if golden was skipped)

    :param dirty: Dirty image
    :param psf: PSF
    :param nscales: Number of scales (5)
    :param compute_golden: Run the golden kernels (True)
    :param tolerance: Largest absolute difference allowed (1e-5)
    :return: results dictionary
    """
    nscales = get_parameter(kwargs, 'nscales', 5)
    compute_golden = get_parameter(kwargs, 'compute_golden', True)
    tolerance = get_parameter(kwargs, 'tolerance', 1e-5)

    results = dict()
    results['npixel'] = check_square(dirty, 'dirty')
    results['psf_npixel'] = check_square(psf, 'psf')
    results['nscales'] = nscales
    psfs, cross = replicate_psf(psf, nscales)

    control = create_clean_control(**kwargs)
    results['niter'] = control.niter
    log.info("Iterations = %d" % control.niter)
    log.info("Image dimensions = %dx%d" % (results['npixel'], results['npixel']))

    results['model_ok'] = None
    results['residual_ok'] = None
    if compute_golden:
        control.backend = 'golden'
        golden = MultiScaleDeconvolver(nscales, control)
        results['golden_model'], results['golden_residuals'] = \
            _timed_run('golden', golden, dirty, psfs, cross, results)

    control = create_clean_control(**kwargs)
    control.backend = 'vectorised'
    vectorised = MultiScaleDeconvolver(nscales, control)
    results['vectorised_model'], results['vectorised_residuals'] = \
        _timed_run('vectorised', vectorised, dirty, psfs, cross, results)

    if compute_golden:
        results['model_ok'] = compare_images(results['golden_model'], results['vectorised_model'], tolerance)
        log.info("Verifying model... %s" % ("Pass" if results['model_ok'] else "Fail"))
        results['residual_ok'] = compare_images(results['golden_residuals'][0], results['vectorised_residuals'][0],
                                                tolerance)
        log.info("Verifying residual... %s" % ("Pass" if results['residual_ok'] else "Fail"))
    return results


def init_logging(log_file=None):
    if log_file is None:
        logging.basicConfig(stream=sys.stdout,
                            format='%(asctime)s,%(msecs)d %(name)s %(levelname)s %(message)s',
                            datefmt='%H:%M:%S',
                            level=logging.INFO)
    else:
        logging.basicConfig(filename=log_file,
                            filemode='a',
                            format='%(asctime)s,%(msecs)d %(name)s %(levelname)s %(message)s',
                            datefmt='%H:%M:%S',
                            level=logging.INFO)


def cli_parser():
    parser = argparse.ArgumentParser(description='Benchmark the golden and vectorised multi-scale CLEAN')
    parser.add_argument('--dirty', type=str, default='dirty.img', help='Dirty image (raw float32 or FITS)')
    parser.add_argument('--psf', type=str, default='psf.img', help='PSF image (raw float32 or FITS)')
    parser.add_argument('--niter', type=int, default=1000, help='Maximum number of iterations')
    parser.add_argument('--gain', type=float, default=0.1, help='Loop gain')
    parser.add_argument('--threshold', type=float, default=1e-5, help='Absolute stopping threshold')
    parser.add_argument('--nscales', type=int, default=5, help='Number of scales')
    parser.add_argument('--widths', type=float, nargs='+', default=[0, 2, 4, 8, 16],
                        help='Scale widths (pixels) used by --scale_bias')
    parser.add_argument('--scale_bias', action='store_true', default=False,
                        help='Weight the peak on each scale by 1 - 0.6 * width / largest width')
    parser.add_argument('--skip_golden', action='store_true', default=False,
                        help='Do not run the golden kernels (no verification)')
    parser.add_argument('--tolerance', type=float, default=1e-5, help='Tolerance for verification')
    parser.add_argument('--results_dir', type=str, default='.', help='Directory for model.img and residual.img')
    parser.add_argument('--log_file', type=str, default=None, help='Log to this file instead of stdout')
    return parser


def main(argv=None):
    """ Command line entry point

    :param argv: Arguments (default sys.argv[1:])
    :return: 0 on success, 1 if verification failed, 2 on an error
    """
    args = cli_parser().parse_args(argv)
    init_logging(args.log_file)

    try:
        kwargs = {'niter': args.niter, 'gain': args.gain, 'threshold': args.threshold, 'nscales': args.nscales,
                  'compute_golden': not args.skip_golden, 'tolerance': args.tolerance}
        if args.scale_bias:
            if len(args.widths) != args.nscales:
                log.error("Need %d widths for the scale bias, got %d" % (args.nscales, len(args.widths)))
                return 2
            kwargs['scale_bias'] = create_scale_bias(args.widths)

        log.info("Reading dirty image and psf image")
        dirty = import_image(args.dirty)
        psf = import_image(args.psf)
        results = run_benchmark(dirty, psf, **kwargs)
    except (MSCleanError, OSError) as err:
        log.error("Benchmark failed: %s" % err)
        return 2

    # Write the golden images, or the vectorised ones if golden was skipped
    name = 'vectorised' if args.skip_golden else 'golden'
    os.makedirs(args.results_dir, exist_ok=True)
    export_image_to_raw(results['%s_residuals' % name][0], os.path.join(args.results_dir, 'residual.img'))
    export_image_to_raw(results['%s_model' % name], os.path.join(args.results_dir, 'model.img'))
    if not args.skip_golden and not (results['model_ok'] and results['residual_ok']):
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
