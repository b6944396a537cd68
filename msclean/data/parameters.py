"""We use the standard kwargs mechanism for arguments. For example::

    niter = get_parameter(kwargs, "niter", 1000)
    gain = get_parameter(kwargs, "gain", 0.1)
    threshold = get_parameter(kwargs, "threshold", 1e-5)

The kwargs may need to be passed down to called functions.

Keyword=value pairs should have descriptive names. The names should be lower case with underscores to separate words:

====================    ==================================  ========================================================
Name                    Meaning                             Example
====================    ==================================  ========================================================
gain                    Clean loop gain                     0.1
niter                   Maximum number of iterations        1000
threshold               Absolute stopping threshold         0.00001
scale_bias              Per-scale peak weighting            [1.0, 0.925, 0.85, 0.7, 0.4]
backend                 Minor cycle kernels                 'golden' or 'vectorised'
====================    ==================================  ========================================================

"""

import logging
import os

__all__ = ['msclean_path', 'get_parameter']

log = logging.getLogger(__name__)


def msclean_path(path):
    """Converts a path that might be relative to the msclean root into an
    absolute path::

        msclean_path('data/dirty.img')
        '/home/user/Code/msclean/data/dirty.img'

    The root can be overridden with the environment variable MSCLEAN. Absolute paths are returned unchanged.

    :param path:
    :return: absolute path
    """
    if os.path.isabs(path):
        return path
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    mscleanhome = os.getenv('MSCLEAN', project_root)
    return os.path.join(mscleanhome, path)


def get_parameter(kwargs, key, default=None):
    """ Get a specified named value for this (calling) function

    The parameter is searched for in kwargs

    :param kwargs: Parameter dictionary
    :param key: Key e.g. 'gain'
    :param default: Default value
    :return: result
    """

    if kwargs is None:
        return default

    value = default
    if key in kwargs.keys():
        value = kwargs[key]
    return value
