#!/usr/bin/env python

import sys

from setuptools import setup

# Bail on Python < 3
assert sys.version_info[0] >= 3

packages = ['msclean', 'msclean.data', 'msclean.image', 'msclean.util']
setup(name='msclean',
      version='0.1.0',
      python_requires='>=3.8',
      description='Multi-scale CLEAN reference library for radio interferometric deconvolution',
      long_description=open('README.md').read(),
      long_description_content_type='text/markdown',
      license='Apache License Version 2.0',
      packages=packages,
      install_requires=['numpy', 'numba', 'astropy'],
      extras_require={'test': ['pytest']},
      entry_points={'console_scripts': ['msclean-benchmark = msclean.benchmark:main']},
      test_suite="tests",
      tests_require=['pytest']
      )
