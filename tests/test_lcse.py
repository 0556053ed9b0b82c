import unittest
from unittest.mock import patch
import numpy as np

from lcse import classify, LCSEClassifier, LCSEConfig
from lcse.exceptions import (
    ConfigurationError,
    ShapeMismatchError,
    InsufficientDataError,
)
from lcse.models.lcse import correlation

from ssvep_synthetic import make_ssvep_data, make_sine_cosine_data


class TestSineCosineScenario(unittest.TestCase):
    """Two targets, three blocks, two channels, 50 samples."""

    def test_both_targets_classified(self):
        data = make_sine_cosine_data(noise=0.1)
        train, test = data[:, :, :, :2], data[:, :, :, 2]

        result = classify(250, train, test, n_subbands=1, n_recon_channels=1)

        np.testing.assert_array_equal(result.prediction, [1, 2])
        self.assertEqual(result.scores.shape, (2, 2))
        self.assertGreater(result.scores[0, 0], result.scores[0, 1])
        self.assertGreater(result.scores[1, 1], result.scores[1, 0])


class TestClassify(unittest.TestCase):
    def setUp(self):
        self.sfreq = 250
        self.data, self.freqs = make_ssvep_data(
            n_channels=4, n_samples=250, n_targets=4, n_blocks=4, noise=0.3
        )
        self.train = self.data[:, :, :, :3]
        self.test = self.data[:, :, :, 3]

    def test_held_out_block_with_filter_bank(self):
        result = classify(self.sfreq, self.train, self.test, n_subbands=5, n_recon_channels=2)
        np.testing.assert_array_equal(result.prediction, [1, 2, 3, 4])

    def test_template_plus_noise_round_trip(self):
        rng = np.random.default_rng(7)
        test = self.train.mean(axis=3) + 0.05 * rng.standard_normal(self.test.shape)

        result = classify(self.sfreq, self.train, test, n_subbands=3, n_recon_channels=2)
        np.testing.assert_array_equal(result.prediction, [1, 2, 3, 4])

    def test_predictions_within_target_range(self):
        rng = np.random.default_rng(3)
        train = rng.standard_normal((3, 60, 5, 3))
        test = rng.standard_normal((3, 60, 5))

        result = classify(self.sfreq, train, test, n_subbands=2, n_recon_channels=1)

        self.assertEqual(result.prediction.shape, (5,))
        self.assertTrue(np.all(result.prediction >= 1))
        self.assertTrue(np.all(result.prediction <= 5))
        self.assertEqual(result.scores.shape, (5, 5))

    def test_inputs_not_mutated(self):
        train, test = self.train.copy(), self.test.copy()
        classify(self.sfreq, self.train, self.test, n_subbands=2, n_recon_channels=1)
        np.testing.assert_array_equal(self.train, train)
        np.testing.assert_array_equal(self.test, test)

    def test_scores_are_weighted_squared_correlations(self):
        result = classify(self.sfreq, self.train, self.test, n_subbands=2, n_recon_channels=1)
        # each corr^2 <= 1, so scores are bounded by the summed weights
        self.assertTrue(np.all(result.scores >= 0))
        self.assertTrue(np.all(result.scores <= 1.25 + 2 ** -1.25 + 0.25 + 1e-9))


class TestValidation(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(0)
        self.train = rng.standard_normal((8, 50, 2, 3))
        self.test = rng.standard_normal((8, 50, 2))

    def test_channel_mismatch_raises_before_computation(self):
        test = np.zeros((9, 50, 2))
        with patch("lcse.models.lcse.learn_spatial_filters") as learn, \
                patch("lcse.models.lcse.FilterBank") as bank:
            with self.assertRaises(ShapeMismatchError):
                classify(250, self.train, test, n_subbands=1, n_recon_channels=1)
            learn.assert_not_called()
            bank.assert_not_called()

    def test_sample_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            classify(250, self.train, self.test[:, :40], n_subbands=1, n_recon_channels=1)

    def test_target_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            classify(250, self.train, np.zeros((8, 50, 3)), n_subbands=1, n_recon_channels=1)

    def test_wrong_rank(self):
        with self.assertRaises(ShapeMismatchError):
            classify(250, self.train[..., 0], self.test, n_subbands=1, n_recon_channels=1)

    def test_recon_channels_equal_to_blocks(self):
        with self.assertRaises(ConfigurationError):
            classify(250, self.train, self.test, n_subbands=1, n_recon_channels=3)

    def test_recon_channels_not_positive_integer(self):
        for r in (0, -1, 1.5, True):
            with self.assertRaises(ConfigurationError):
                classify(250, self.train, self.test, n_subbands=1, n_recon_channels=r)

    def test_invalid_subbands(self):
        for k in (0, 8, 2.0, True, "5"):
            with self.assertRaises(ConfigurationError):
                classify(250, self.train, self.test, n_subbands=k, n_recon_channels=1)

    def test_single_channel(self):
        with self.assertRaises(InsufficientDataError):
            classify(250, self.train[:1], self.test[:1], n_subbands=1, n_recon_channels=1)

    def test_single_target(self):
        with self.assertRaises(InsufficientDataError):
            classify(250, self.train[:, :, :1], self.test[:, :, :1],
                     n_subbands=1, n_recon_channels=1)

    def test_single_block(self):
        with self.assertRaises(InsufficientDataError):
            classify(250, self.train[..., :1], self.test, n_subbands=1, n_recon_channels=1)

    def test_window_shorter_than_minimum(self):
        with self.assertRaises(InsufficientDataError):
            classify(250, self.train[:, :40], self.test[:, :40],
                     n_subbands=1, n_recon_channels=1)


class TestLCSEClassifier(unittest.TestCase):
    def setUp(self):
        self.data, _ = make_ssvep_data(n_channels=4, n_samples=250, n_targets=3, n_blocks=4)
        self.train = self.data[:, :, :, :3]
        self.test = self.data[:, :, :, 3]

    def test_predict_before_fit(self):
        clf = LCSEClassifier(n_subbands=1, n_recon_channels=1)
        with self.assertRaises(ValueError):
            clf.predict(self.test)

    def test_fit_predict_score(self):
        clf = LCSEClassifier(sampling_rate=250, n_subbands=3, n_recon_channels=2)
        clf.fit(self.train)

        np.testing.assert_array_equal(clf.predict(self.test), [1, 2, 3])
        self.assertEqual(clf.score(self.test), 1.0)
        self.assertEqual(clf.history['eigenvalues'].shape, (3, 3, 2))
        self.assertEqual(clf.history['n_blocks'], 3)

    def test_filters_have_expected_shape(self):
        clf = LCSEClassifier(n_subbands=2, n_recon_channels=2).fit(self.train)
        for (t, n), sf in clf.model_.filters.items():
            self.assertEqual(sf.weights.shape, (2, 4))
            self.assertEqual(clf.model_.templates[(t, n)].shape, (2, 250))

    def test_single_subband_ranking_invariant_to_offset(self):
        low = LCSEClassifier(n_subbands=1, n_recon_channels=1, weight_b=0.25).fit(self.train)
        high = LCSEClassifier(n_subbands=1, n_recon_channels=1, weight_b=10.0).fit(self.train)

        noisy = self.test + np.random.default_rng(1).standard_normal(self.test.shape)
        np.testing.assert_array_equal(low.predict(noisy), high.predict(noisy))
        np.testing.assert_array_equal(
            np.argsort(low.decision_function(noisy), axis=1),
            np.argsort(high.decision_function(noisy), axis=1)
        )

    def test_ties_resolve_to_smallest_target(self):
        clf = LCSEClassifier(n_subbands=1, n_recon_channels=1)
        tied = np.array([[0.5, 0.5, 0.1], [0.2, 0.7, 0.7], [0.3, 0.3, 0.3]])
        with patch.object(LCSEClassifier, "decision_function", return_value=tied):
            result = clf.classify(self.test)
        np.testing.assert_array_equal(result.prediction, [1, 2, 1])

    def test_refit_replaces_model(self):
        clf = LCSEClassifier(n_subbands=1, n_recon_channels=1).fit(self.train)
        first = clf.model_
        clf.fit(self.train[:, :, :, :2])
        self.assertIsNot(clf.model_, first)
        self.assertEqual(clf.history['n_blocks'], 2)

    def test_clone_from_params(self):
        clf = LCSEClassifier(sampling_rate=250, n_subbands=4, n_recon_channels=2)
        clone = LCSEClassifier(**clf.get_params())
        self.assertEqual(clone.config, clf.config)

    def test_set_params_requires_refit(self):
        clf = LCSEClassifier(n_subbands=1, n_recon_channels=1).fit(self.train)
        clf.set_params(n_subbands=2)
        self.assertFalse(clf.is_fitted)
        self.assertEqual(clf.config.n_subbands, 2)

    def test_config_and_kwargs_are_exclusive(self):
        with self.assertRaises(ConfigurationError):
            LCSEClassifier(LCSEConfig(), n_subbands=2)

    def test_test_data_checked_against_training(self):
        clf = LCSEClassifier(n_subbands=1, n_recon_channels=1).fit(self.train)
        with self.assertRaises(ShapeMismatchError):
            clf.predict(self.test[:3])


class TestCorrelation(unittest.TestCase):
    def test_perfect_and_anti_correlation(self):
        x = np.array([[1.0, 2.0, 3.0], [0.0, 1.0, 0.0]])
        self.assertAlmostEqual(correlation(x, 2 * x + 1), 1.0)
        self.assertAlmostEqual(correlation(x, -x), -1.0)

    def test_zero_variance(self):
        self.assertEqual(correlation(np.ones(5), np.arange(5.0)), 0.0)


if __name__ == "__main__":
    unittest.main()
