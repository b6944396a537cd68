"""Coordinate support

Images are square and stored row-major, so the sample at column x and row y of an image of the given width is
found at flat index y * width + x.

"""

from msclean.data.data_models import Position
from msclean.msclean_exceptions import ConfigurationError


def idx_to_pos(idx, width):
    """ Convert a flat index into a Position

    :param idx: Flat row-major index
    :param width: Width of the (square) image
    :return: Position(x, y)
    """
    if width <= 0:
        raise ConfigurationError("Image width must be positive, got %d" % width)
    return Position(idx % width, idx // width)


def pos_to_idx(width, pos):
    """ Convert a Position into a flat index

    :param width: Width of the (square) image
    :param pos: Position(x, y)
    :return: Flat row-major index
    """
    if width <= 0:
        raise ConfigurationError("Image width must be positive, got %d" % width)
    return pos.y * width + pos.x
