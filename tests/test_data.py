import os
import tempfile
import unittest
import numpy as np
import h5py
from scipy.io import savemat

from lcse.config import ExperimentConfig, OCCIPITAL_CHANNELS, STIMULUS_FREQUENCIES
from lcse.data import (
    SSVEPDataContainer,
    Preprocessor,
    load_benchmark_mat,
    load_mat_array,
)
from lcse.exceptions import InsufficientDataError, ShapeMismatchError


def _container(shape=(5, 300, 3, 4), **kwargs):
    rng = np.random.default_rng(0)
    X = rng.standard_normal(shape)
    ch_names = [f"E{i}" for i in range(shape[0])]
    return SSVEPDataContainer(X=X, sfreq=250, ch_names=ch_names, participant_id="S0", **kwargs)


def _write_mat_v73(path, data):
    """HDF5 file behind a MATLAB 7.3 header, as written by MATLAB's -v7.3."""
    with h5py.File(path, "w", userblock_size=512) as f:
        f.create_dataset("data", data=np.asarray(data).T)
    header = b"MATLAB 7.3 MAT-file, written for the test suite".ljust(116, b" ")
    header += b"\x00" * 8 + b"\x00\x02IM"
    with open(path, "r+b") as f:
        f.write(header)


class TestContainer(unittest.TestCase):
    def test_properties(self):
        c = _container()
        self.assertEqual(
            (c.n_channels, c.n_samples, c.n_targets, c.n_blocks), (5, 300, 3, 4)
        )
        self.assertAlmostEqual(c.duration, 1.2)
        np.testing.assert_array_equal(c.labels, [1, 2, 3])

    def test_rejects_wrong_rank(self):
        with self.assertRaises(ShapeMismatchError):
            SSVEPDataContainer(X=np.zeros((2, 10, 3)), sfreq=250, ch_names=["a", "b"])

    def test_rejects_channel_name_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            SSVEPDataContainer(X=np.zeros((2, 10, 3, 2)), sfreq=250, ch_names=["a"])

    def test_rejects_frequency_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            _container(freqs=[8.0, 9.0])

    def test_select_channels_keeps_order(self):
        c = _container()
        selected = c.select_channels([3, 1])

        self.assertEqual(selected.ch_names, ["E3", "E1"])
        np.testing.assert_array_equal(selected.X[0], c.X[3])
        np.testing.assert_array_equal(selected.X[1], c.X[1])
        self.assertEqual(selected.metadata["selected_from_n_channels"], 5)
        self.assertEqual(c.n_channels, 5)

    def test_select_channels_shrinks_channel_names(self):
        c = SSVEPDataContainer(X=np.zeros((4, 10, 2, 3)), sfreq=250, ch_names=list("abcd"))
        selected = c.select_channels([0, 2])

        self.assertEqual(selected.shape, (2, 10, 2, 3))
        self.assertEqual(selected.ch_names, ["a", "c"])
        self.assertEqual(c.ch_names, ["a", "b", "c", "d"])

    def test_select_channels_out_of_range(self):
        with self.assertRaises(ShapeMismatchError):
            _container().select_channels([0, 5])

    def test_segment(self):
        c = _container()
        window = c.segment(160, 50)

        self.assertEqual(window.shape, (5, 50, 3, 4))
        np.testing.assert_array_equal(window.X, c.X[:, 160:210])
        self.assertEqual(window.metadata["window_start"], 160)

    def test_segment_out_of_range(self):
        c = _container()
        for start, length in ((-1, 10), (260, 50), (0, 0)):
            with self.assertRaises(InsufficientDataError):
                c.segment(start, length)

    def test_copy_is_independent(self):
        c = _container()
        clone = c.copy()
        clone.X[0, 0, 0, 0] = 1e6
        self.assertNotEqual(c.X[0, 0, 0, 0], 1e6)


class TestPreprocessor(unittest.TestCase):
    def test_window_at_benchmark_defaults(self):
        pre = Preprocessor()
        self.assertEqual(pre.window_start, 160)
        self.assertEqual(pre.window_length, 50)

    def test_from_config(self):
        config = ExperimentConfig(buffer_length=0.5, channels=[2, 0])
        pre = Preprocessor.from_config(config)
        self.assertEqual(pre.window_length, 125)
        self.assertEqual(pre.channels, (2, 0))

    def test_process(self):
        c = _container()
        pre = Preprocessor(buffer_length=0.4, channels=[4, 0])
        out = pre.process(c)

        self.assertEqual(out.shape, (2, 100, 3, 4))
        np.testing.assert_array_equal(out.X, c.X[[4, 0], 160:260])
        self.assertEqual(out.ch_names, ["E4", "E0"])

    def test_default_occipital_channels(self):
        c = _container(shape=(64, 300, 2, 2))
        out = Preprocessor().process(c)

        self.assertEqual(out.shape, (9, 50, 2, 2))
        self.assertEqual(out.ch_names, [f"E{i}" for i in OCCIPITAL_CHANNELS])
        np.testing.assert_array_equal(out.X, c.X[list(OCCIPITAL_CHANNELS), 160:210])

    def test_all_channels(self):
        c = _container()
        out = Preprocessor(channels=None).process(c)
        self.assertEqual(out.n_channels, 5)

    def test_window_beyond_epoch(self):
        c = _container()
        with self.assertRaises(InsufficientDataError):
            Preprocessor(buffer_length=1.0, channels=None).process(c)


class TestLoader(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.data = np.random.default_rng(0).standard_normal((3, 20, 4, 2))

    def _path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_load_benchmark_mat(self):
        path = self._path("S7.mat")
        savemat(path, {"data": self.data})

        c = load_benchmark_mat(path)

        np.testing.assert_allclose(c.X, self.data)
        self.assertEqual(c.ch_names, ["ch0", "ch1", "ch2"])
        self.assertEqual(c.participant_id, "S7")
        self.assertEqual(c.sfreq, 250)
        self.assertIsNone(c.freqs)

    def test_benchmark_frequencies_for_forty_targets(self):
        path = self._path("S1.mat")
        savemat(path, {"data": np.zeros((2, 10, 40, 2))})

        c = load_benchmark_mat(path)

        np.testing.assert_allclose(c.freqs, STIMULUS_FREQUENCIES)
        self.assertEqual(c.freqs[0], 8.0)
        self.assertEqual(c.freqs[8], 8.2)

    def test_custom_variable(self):
        path = self._path("subject.mat")
        savemat(path, {"eeg": self.data})
        np.testing.assert_allclose(load_mat_array(path, variable="eeg"), self.data)

    def test_missing_variable(self):
        path = self._path("S1.mat")
        savemat(path, {"eeg": self.data})
        with self.assertRaises(ShapeMismatchError):
            load_benchmark_mat(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_benchmark_mat(self._path("missing.mat"))

    def test_wrong_rank(self):
        path = self._path("S1.mat")
        savemat(path, {"data": self.data[..., 0]})
        with self.assertRaises(ShapeMismatchError):
            load_benchmark_mat(path)

    def test_mat_v73(self):
        path = self._path("S2.mat")
        _write_mat_v73(path, self.data)

        c = load_benchmark_mat(path)

        self.assertEqual(c.shape, self.data.shape)
        np.testing.assert_allclose(c.X, self.data)


if __name__ == "__main__":
    unittest.main()
