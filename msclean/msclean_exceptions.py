"""Exceptions for multi-scale clean

"""


class MSCleanError(Exception):
    """ Base class for errors raised by msclean
    """
    pass


class ConfigurationError(MSCleanError):
    """ Inconsistent controls or image dimensions

    Raised before any buffer is touched.
    """
    pass


class DegenerateInputError(MSCleanError):

    def __init__(self, name):
        MSCleanError.__init__(self, "%s has no non-zero samples so no peak can be used as an anchor" % name)
        self.name = name


class InvalidValueError(MSCleanError):

    def __init__(self, name, count):
        MSCleanError.__init__(self, "%s contains %d non-finite (NaN or Inf) samples" % (name, count))
        self.name = name
        self.count = count
