import contextlib
import io
import os
import tempfile
import unittest

import matplotlib
matplotlib.use("Agg")
import numpy as np
import pandas as pd
from scipy.io import savemat

from lcse.scripts.evaluate import main, parse_args

from ssvep_synthetic import make_ssvep_data


class TestEvaluateScript(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

        data, _ = make_ssvep_data(n_channels=4, n_samples=300, n_targets=3, n_blocks=3)
        self.mat_file = os.path.join(self.tmp.name, "S3.mat")
        savemat(self.mat_file, {"data": data})
        self.output = os.path.join(self.tmp.name, "results")

    def _run(self, *extra):
        argv = [
            "--mat-file", self.mat_file,
            "--channels", "0", "1", "2",
            "--buffer-length", "0.4",
            "--recon-channels", "1",
            *extra,
        ]
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = main(argv)
        return code, stdout.getvalue()

    def test_defaults(self):
        _, args = parse_args(["-m", "S1.mat"])
        self.assertEqual(args.subbands, 5)
        self.assertEqual(args.recon_channels, 3)
        self.assertEqual(len(args.channels), 9)
        self.assertFalse(args.no_filter_bank)

    def test_writes_results(self):
        code, out = self._run("--subbands", "2", "--output", self.output, "--plot")

        self.assertEqual(code, 0)
        self.assertIn("Mean accuracy", out)
        for name in (
            "S3_lcse_0.4s.csv",
            "S3_lcse_0.4s_confusion.csv",
            "S3_lcse_0.4s_results.npy",
            "S3_lcse_0.4s_folds.png",
            "S3_lcse_0.4s_scores.png",
        ):
            self.assertTrue(os.path.exists(os.path.join(self.output, name)), name)

        confusion = pd.read_csv(
            os.path.join(self.output, "S3_lcse_0.4s_confusion.csv"), index_col=0
        )
        self.assertEqual(confusion.shape, (3, 3))
        self.assertEqual(int(confusion.to_numpy().sum()), 9)

        results = np.load(
            os.path.join(self.output, "S3_lcse_0.4s_results.npy"), allow_pickle=True
        ).item()
        self.assertEqual(results['n_folds'], 3)

    def test_without_filter_bank(self):
        code, out = self._run("--no-filter-bank")
        self.assertEqual(code, 0)
        self.assertIn("Sub-bands: 1", out)

    def test_missing_file_exits(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["--mat-file", os.path.join(self.tmp.name, "missing.mat")])
        self.assertEqual(ctx.exception.code, 1)

    def test_invalid_configuration_exits(self):
        with contextlib.redirect_stderr(io.StringIO()), \
                contextlib.redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                self._run("--recon-channels", "2")
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
