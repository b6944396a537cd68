""" Image deconvolution: peak finding, PSF subtraction and the multi-scale minor cycle

For example::

    model, residuals = deconvolve_multiscale(dirty, psfs, cross, niter=1000, gain=0.1, threshold=1e-5)

"""
