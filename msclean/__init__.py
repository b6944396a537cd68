""" Multi-scale CLEAN reference library

The deconvolution core lives in msclean.image, the image file operations in msclean.image.operations and
the golden/vectorised comparison harness in msclean.benchmark.
"""
__all__ = ['data', 'image', 'util', 'msclean_exceptions']

__version__ = '0.1.0'
