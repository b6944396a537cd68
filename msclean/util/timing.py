"""
Timing support for the benchmark harness.

The timing decorator follows the comment by Matt Alcock at
http://stackoverflow.com/questions/1622943/timeit-versus-timing-decorator
"""

import logging
from functools import wraps
from time import time

log = logging.getLogger(__name__)


class Stopwatch:
    """ Wall clock stopwatch

    For example::

        sw = Stopwatch()
        sw.start()
        model, residuals = deconvolver.deconvolve(dirty, psfs, cross)
        elapsed = sw.stop()

    """

    def __init__(self):
        self._start = None

    def start(self):
        self._start = time()

    def stop(self):
        """ Stop the stopwatch

        :return: Seconds elapsed since start
        """
        assert self._start is not None, "Stopwatch was never started"
        elapsed = time() - self._start
        self._start = None
        return elapsed


def timing(f):
    """ Log the wall clock time taken by each call of f

    """
    @wraps(f)
    def wrap(*args, **kw):
        sw = Stopwatch()
        sw.start()
        result = f(*args, **kw)
        log.info("%s: took %.4f (s)" % (f.__name__, sw.stop()))
        return result
    return wrap
