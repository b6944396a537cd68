"""Unit tests for the golden/vectorised benchmark harness


"""
import logging
import os
import shutil
import tempfile
import unittest

import numpy
from numpy.testing import assert_array_equal

from msclean.benchmark import main, replicate_psf, run_benchmark
from msclean.image.operations import export_image_to_raw, import_image_from_raw
from msclean.util.testing_support import create_test_dirty, create_test_psf

log = logging.getLogger(__name__)


class TestBenchmark(unittest.TestCase):

    def setUp(self):
        self.dir = tempfile.mkdtemp()
        self.psf = create_test_psf(npixel=16, width=1.5)
        self.dirty = create_test_dirty(self.psf, npixel=32, sources=[(9, 11, 2.0), (20, 24, 0.5)])

    def tearDown(self):
        shutil.rmtree(self.dir, ignore_errors=True)

    def test_replicate_psf(self):
        psfs, cross = replicate_psf(self.psf, 3)
        assert len(psfs) == 3
        assert len(cross) == 9
        for im in psfs + cross:
            assert_array_equal(im, self.psf)
        # Copies, not references
        cross[4][0, 0] = 99.0
        assert self.psf[0, 0] != 99.0

    def test_run_benchmark(self):
        with self.assertLogs('msclean.util.timing', level='INFO') as cm:
            results = run_benchmark(self.dirty, self.psf, nscales=3, niter=50, gain=0.1, threshold=1e-4)
        assert 'run_benchmark: took' in cm.output[0]
        assert results['npixel'] == 32
        assert results['psf_npixel'] == 16
        assert results['model_ok'] is True
        assert results['residual_ok'] is True
        assert results['iterations golden'] == results['iterations vectorised']
        assert results['state golden'] == 'EXHAUSTED'
        assert results['time golden'] >= 0.0
        assert len(results['golden_residuals']) == 3

    def test_run_benchmark_skip_golden(self):
        results = run_benchmark(self.dirty, self.psf, nscales=2, niter=10, compute_golden=False)
        assert results['model_ok'] is None
        assert 'golden_model' not in results
        assert results['vectorised_model'].shape == (32, 32)

    def test_main(self):
        dirtyfile = os.path.join(self.dir, 'dirty.img')
        psffile = os.path.join(self.dir, 'psf.img')
        export_image_to_raw(self.dirty, dirtyfile)
        export_image_to_raw(self.psf, psffile)
        status = main(['--dirty', dirtyfile, '--psf', psffile, '--niter', '40', '--nscales', '2',
                       '--results_dir', self.dir])
        assert status == 0
        model = import_image_from_raw(os.path.join(self.dir, 'model.img'))
        residual = import_image_from_raw(os.path.join(self.dir, 'residual.img'))
        assert model.shape == (32 * 32,)
        assert residual.shape == (32 * 32,)
        assert numpy.max(numpy.abs(residual)) < numpy.max(numpy.abs(self.dirty))

    def test_main_scale_bias(self):
        dirtyfile = os.path.join(self.dir, 'dirty.img')
        psffile = os.path.join(self.dir, 'psf.img')
        export_image_to_raw(self.dirty, dirtyfile)
        export_image_to_raw(self.psf, psffile)
        status = main(['--dirty', dirtyfile, '--psf', psffile, '--niter', '20', '--scale_bias',
                       '--results_dir', self.dir])
        assert status == 0
        status = main(['--dirty', dirtyfile, '--psf', psffile, '--nscales', '2', '--scale_bias',
                       '--results_dir', self.dir])
        assert status == 2

    def test_main_errors(self):
        status = main(['--dirty', os.path.join(self.dir, 'missing.img'), '--results_dir', self.dir])
        assert status == 2
        dirtyfile = os.path.join(self.dir, 'dirty.img')
        export_image_to_raw(numpy.zeros(15), dirtyfile)
        export_image_to_raw(self.psf, os.path.join(self.dir, 'psf.img'))
        status = main(['--dirty', dirtyfile, '--psf', os.path.join(self.dir, 'psf.img'),
                       '--results_dir', self.dir])
        assert status == 2


if __name__ == '__main__':
    unittest.main()
