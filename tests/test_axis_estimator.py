import math
import unittest

import numpy as np

from inertial_nav.filters import AxisEstimator, EstimatorConfig, correct_covariance, kalman_gain
from inertial_nav.util.linalg import is_positive_semidefinite, predict_covariance

DT = 0.1


def reference_step(x, P, mem, raw, dt, alpha=0.8, tau=0.05, R=0.3, q=(0.01, 0.01, 1.0)):
    """
    One filter cycle in scalar arithmetic on plain lists, default tuning.

    x = [position, velocity, acceleration], P = 3x3 nested list,
    mem = [previous_raw, filtered]. All three are updated in place.
    """
    mem[1] = alpha * (mem[1] + raw - mem[0])
    mem[0] = raw
    stationary = abs(mem[1]) < tau
    if stationary:
        x[1] = 0.0
        P[1][1] = 0.001
    else:
        x[0] = x[0] + x[1] * dt + 0.5 * x[2] * dt * dt
        x[1] = x[1] + x[2] * dt

    F = [[1.0, dt, 0.5 * dt * dt], [0.0, 1.0, dt], [0.0, 0.0, 1.0]]
    FP = [[sum(F[i][k] * P[k][j] for k in range(3)) for j in range(3)] for i in range(3)]
    FPFt = [[sum(FP[i][k] * F[j][k] for k in range(3)) for j in range(3)] for i in range(3)]
    for i in range(3):
        for j in range(3):
            P[i][j] = FPFt[i][j] + (q[i] if i == j else 0.0)

    S = P[2][2] + R
    K = [P[0][2] / S, P[1][2] / S, P[2][2] / S]
    innovation = mem[1] - x[2]
    x[2] += K[2] * innovation
    if not stationary:
        x[0] += K[0] * innovation
        x[1] += K[1] * innovation

    row2 = list(P[2])
    for i in range(3):
        for j in range(3):
            P[i][j] -= K[i] * row2[j]
    return stationary


def stationary_reference(P, cfg, dt, decorrelate):
    """One stationary cycle of the covariance, written out step by step."""
    P = P.copy()
    if decorrelate:
        P[1, :] = 0.0
        P[:, 1] = 0.0
    P[1, 1] = cfg.zero_velocity_variance
    P = predict_covariance(P, dt, cfg.process_noise)
    return correct_covariance(P, kalman_gain(P, cfg.measurement_noise))


class CovarianceAssertions:
    def assertValidCovariance(self, P):
        scale = max(1.0, float(np.abs(P).max()))
        self.assertTrue(np.all(np.diag(P) >= 0.0), f"negative variance on diagonal: {np.diag(P)}")
        self.assertTrue(np.allclose(P, P.T, rtol=1e-6, atol=1e-9 * scale), "covariance is not symmetric")
        self.assertTrue(is_positive_semidefinite(P, tol=1e-9 * scale), "covariance is not PSD")


# ==================================================================
# FIRST UPDATE: 1.0 m/s^2 from rest, dt = 0.1, default tuning
# ==================================================================

class TestFirstUpdate(CovarianceAssertions, unittest.TestCase):

    def setUp(self):
        self.est = AxisEstimator()
        self.state = self.est.update(1.0, DT)

    def test_state(self):
        """Bias filter output 0.8 drives acceleration to 16/23 through K2 = 2/2.3."""
        self.assertAlmostEqual(self.est.filtered_acceleration, 0.8)
        self.assertFalse(self.est.is_stationary)
        self.assertAlmostEqual(self.state.acceleration, 16 / 23)
        self.assertAlmostEqual(self.state.velocity, 0.8 / 23)
        self.assertAlmostEqual(self.state.position, 0.04 / 23)

    def test_gain(self):
        np.testing.assert_allclose(self.est.last_gain, [0.005 / 2.3, 0.1 / 2.3, 2.0 / 2.3])

    def test_covariance(self):
        P = self.est.covariance
        self.assertAlmostEqual(P[2, 2], 6 / 23)
        self.assertAlmostEqual(P[1, 1], 5.02 - 0.01 / 2.3)
        self.assertAlmostEqual(P[0, 0], 10.060025 - 0.005 ** 2 / 2.3)
        self.assertValidCovariance(P)

    def test_predicted_covariance(self):
        cfg = EstimatorConfig()
        P = predict_covariance(np.array(cfg.initial_covariance), DT, cfg.process_noise)
        expected = np.array([
            [10.060025, 0.5005, 0.005],
            [0.5005, 5.02, 0.1],
            [0.005, 0.1, 2.0],
        ])
        np.testing.assert_allclose(P, expected)

    def test_returns_copy(self):
        self.state.position = 100.0
        self.assertAlmostEqual(self.est.state.position, 0.04 / 23)


# ==================================================================
# STATIONARY DETECTION
# ==================================================================

class TestStationary(unittest.TestCase):

    def test_small_acceleration_holds_position(self):
        """Ten 0.01 m/s^2 samples never leave the stationary band."""
        est = AxisEstimator()
        for _ in range(10):
            state = est.update(0.01, DT)
            self.assertTrue(est.is_stationary)
            self.assertEqual(state.position, 0.0)
            self.assertEqual(state.velocity, 0.0)
        self.assertAlmostEqual(est.filtered_acceleration, 0.01 * 0.8 ** 10)

    def test_constant_input_settles_into_stationary_hold(self):
        """A constant 1.0 input filters to 0.8^n, which drops below 0.05 at n = 14."""
        est = AxisEstimator()
        for n in range(1, 14):
            est.update(1.0, DT)
            self.assertAlmostEqual(est.filtered_acceleration, 0.8 ** n)
            self.assertFalse(est.is_stationary)

        held = est.state.position
        for _ in range(20):
            state = est.update(1.0, DT)
            self.assertTrue(est.is_stationary)
            self.assertEqual(state.velocity, 0.0)
            self.assertEqual(state.position, held)

    def test_zero_input_stays_at_zero(self):
        est = AxisEstimator()
        for _ in range(50):
            state = est.update(0.0, DT)
        self.assertEqual((state.position, state.velocity, state.acceleration), (0.0, 0.0, 0.0))
        self.assertEqual(est.filtered_acceleration, 0.0)
        self.assertTrue(est.is_stationary)

    def test_velocity_variance_clamped(self):
        """Clamp to 0.001, predict adds dt^2 * P22 + Q11, correction removes (dt * P22)^2 / S."""
        cfg = EstimatorConfig()
        est = AxisEstimator(cfg)
        est.update(0.0, DT)
        predicted = cfg.zero_velocity_variance + DT ** 2 * 1.0 + cfg.process_noise[1, 1]
        S = 2.0 + cfg.measurement_noise
        self.assertAlmostEqual(est.covariance[1, 1], predicted - (DT * 1.0) ** 2 / S)

    def test_hold_for_any_dt(self):
        """Once stationary, irregular dt between 1 ms and 1 s never moves the estimate."""
        rng = np.random.default_rng(7)
        est = AxisEstimator()
        for _ in range(20):
            est.update(1.0, DT)
        self.assertTrue(est.is_stationary)

        held = est.state.position
        self.assertNotEqual(held, 0.0)
        for dt in rng.uniform(0.001, 1.0, 200):
            state = est.update(1.0, dt)
            self.assertTrue(est.is_stationary)
            self.assertEqual(state.velocity, 0.0)
            self.assertEqual(state.position, held)

    def test_hold_from_rest_for_any_dt(self):
        rng = np.random.default_rng(8)
        est = AxisEstimator()
        for dt in rng.uniform(0.001, 1.0, 100):
            state = est.update(0.02, dt)
            self.assertEqual((state.position, state.velocity), (0.0, 0.0))

    def test_first_stationary_step_covariance(self):
        for decorrelate in (True, False):
            with self.subTest(decorrelate=decorrelate):
                cfg = EstimatorConfig(decorrelate_on_zupt=decorrelate)
                est = AxisEstimator(cfg)
                P_before = None
                for _ in range(30):
                    P_before = est.covariance
                    est.update(1.0, DT)
                    if est.is_stationary:
                        break
                self.assertTrue(est.is_stationary)
                np.testing.assert_allclose(est.covariance, stationary_reference(P_before, cfg, DT, decorrelate))


# ==================================================================
# MULTI-STEP TRAJECTORY: moving -> stationary -> moving
# ==================================================================

class TestReferenceTrajectory(unittest.TestCase):

    INPUTS = [1.0] * 20 + [3.0, 3.0, 0.0, -2.0, 1.0]

    def _reference(self, inputs, dts):
        x, mem = [0.0, 0.0, 0.0], [0.0, 0.0]
        P = [[10.0, 0.0, 0.0], [0.0, 5.0, 0.0], [0.0, 0.0, 1.0]]
        trace = []
        for raw, dt in zip(inputs, dts):
            stationary = reference_step(x, P, mem, raw, dt)
            trace.append((list(x), [row[:] for row in P], stationary))
        return trace

    def _compare(self, dts):
        est = AxisEstimator()
        expected = self._reference(self.INPUTS, dts)
        modes = []
        for k, (raw, dt) in enumerate(zip(self.INPUTS, dts)):
            state = est.update(raw, dt)
            x, P, stationary = expected[k]
            with self.subTest(step=k):
                self.assertEqual(est.is_stationary, stationary)
                np.testing.assert_allclose(state.as_array(), x, rtol=1e-9, atol=1e-12)
                np.testing.assert_allclose(est.covariance, P, rtol=1e-9, atol=1e-12)
            modes.append(stationary)
        return modes

    def test_default_tuning_matches_reference(self):
        """Moving, settling into a hold, then moving again from the held state."""
        modes = self._compare([DT] * len(self.INPUTS))
        self.assertFalse(modes[0])
        self.assertTrue(modes[19])
        self.assertFalse(modes[20])

    def test_irregular_dt_matches_reference(self):
        dts = list(np.random.default_rng(3).uniform(0.02, 0.4, len(self.INPUTS)))
        self._compare(dts)

    def test_decorrelating_clamp_is_opt_in(self):
        """The default clamp keeps the velocity cross terms, so the two modes part ways at the first hold."""
        plain = AxisEstimator()
        decorrelated = AxisEstimator(EstimatorConfig(decorrelate_on_zupt=True))
        for _ in range(13):
            plain.update(1.0, DT)
            decorrelated.update(1.0, DT)
        np.testing.assert_array_equal(plain.covariance, decorrelated.covariance)

        plain.update(1.0, DT)
        decorrelated.update(1.0, DT)
        self.assertTrue(plain.is_stationary)
        self.assertFalse(np.allclose(plain.covariance, decorrelated.covariance))


# ==================================================================
# COVARIANCE HEALTH
# ==================================================================

class TestCovariance(CovarianceAssertions, unittest.TestCase):
    """The decorrelating clamp keeps P positive semidefinite through rest periods."""

    CONFIG = EstimatorConfig(decorrelate_on_zupt=True)

    def setUp(self):
        self.rng = np.random.default_rng(1234)

    def test_psd_under_noise(self):
        est = AxisEstimator(self.CONFIG)
        for raw in self.rng.normal(0.0, 1.0, 500):
            est.update(raw, DT)
            self.assertValidCovariance(est.covariance)

    def test_psd_with_rest_periods(self):
        est = AxisEstimator(self.CONFIG)
        for _ in range(20):
            for raw in self.rng.normal(0.0, 2.0, 15):
                est.update(raw, DT)
                self.assertValidCovariance(est.covariance)
            for _ in range(15):
                est.update(0.0, DT)
                self.assertValidCovariance(est.covariance)

    def test_variable_dt(self):
        est = AxisEstimator(self.CONFIG)
        for raw, dt in zip(self.rng.normal(0.0, 1.0, 200), self.rng.uniform(0.01, 0.3, 200)):
            est.update(raw, dt)
            self.assertValidCovariance(est.covariance)


class TestGain(unittest.TestCase):

    def setUp(self):
        self.rng = np.random.default_rng(99)

    def test_bounds_for_random_covariances(self):
        """K2 lies in [0, 1); the cross gains obey |K_i| <= sqrt(P_ii P_22) / (P_22 + R)."""
        for _ in range(200):
            A = self.rng.normal(size=(3, 3))
            P = A @ A.T + 1e-6 * np.eye(3)
            R = self.rng.uniform(0.01, 5.0)
            K = kalman_gain(P, R)

            self.assertGreaterEqual(K[2], 0.0)
            self.assertLess(K[2], 1.0)
            for i in range(3):
                self.assertLessEqual(abs(K[i]), math.sqrt(P[i, i] * P[2, 2]) / (P[2, 2] + R) + 1e-12)

    def test_acceleration_gain_in_unit_interval_during_run(self):
        est = AxisEstimator()
        for raw in self.rng.normal(0.0, 1.0, 100):
            est.update(raw, DT)
            self.assertTrue(0.0 <= est.last_gain[2] < 1.0)

    def test_corrupted_covariance_raises(self):
        with self.assertRaises(RuntimeError):
            kalman_gain(np.diag([1.0, 1.0, -1.0]), 0.3)


# ==================================================================
# RESET
# ==================================================================

class TestReset(unittest.TestCase):

    def _run(self, est):
        for raw in [1.0, 0.5, -0.2, 0.8, 0.0]:
            est.update(raw, DT)

    def test_restores_initial_state(self):
        cfg = EstimatorConfig()
        est = AxisEstimator(cfg)
        self._run(est)
        est.reset()

        state = est.state
        self.assertEqual((state.position, state.velocity, state.acceleration), (0.0, 0.0, 0.0))
        self.assertEqual(est.filtered_acceleration, 0.0)
        self.assertFalse(est.is_stationary)
        self.assertEqual(est.update_count, 0)
        np.testing.assert_array_equal(est.last_gain, np.zeros(3))
        np.testing.assert_array_equal(est.covariance, cfg.initial_covariance)

    def test_reset_is_idempotent(self):
        est = AxisEstimator()
        self._run(est)
        est.reset()
        state, P = est.state, est.covariance
        est.reset()
        self.assertEqual(est.state, state)
        np.testing.assert_array_equal(est.covariance, P)

    def test_behaves_like_new_after_reset(self):
        est = AxisEstimator()
        self._run(est)
        est.reset()
        state = est.update(1.0, DT)
        self.assertAlmostEqual(state.acceleration, 16 / 23)
        self.assertAlmostEqual(est.covariance[2, 2], 6 / 23)

    def test_keep_covariance(self):
        est = AxisEstimator(EstimatorConfig(reset_covariance=False))
        self._run(est)
        before = est.covariance
        est.reset()

        np.testing.assert_array_equal(est.covariance, before)
        self.assertEqual(est.state.position, 0.0)
        self.assertEqual(est.filtered_acceleration, 0.0)

    def test_config_matrix_untouched(self):
        cfg = EstimatorConfig()
        est = AxisEstimator(cfg)
        self._run(est)
        est.reset()
        np.testing.assert_array_equal(cfg.initial_covariance, np.diag([10.0, 5.0, 1.0]))


class TestInputValidation(unittest.TestCase):

    def test_rejected_without_mutation(self):
        bad_inputs = [
            (float("nan"), DT),
            (float("inf"), DT),
            (1.0, float("nan")),
            (1.0, 0.0),
            (1.0, -0.1),
            ("abc", DT),
            (None, DT),
        ]
        for raw, dt in bad_inputs:
            with self.subTest(raw=raw, dt=dt):
                est = AxisEstimator()
                est.update(1.0, DT)
                state, P, filtered = est.state, est.covariance, est.filtered_acceleration

                with self.assertRaises(ValueError):
                    est.update(raw, dt)

                self.assertEqual(est.state, state)
                np.testing.assert_array_equal(est.covariance, P)
                self.assertEqual(est.filtered_acceleration, filtered)
                self.assertEqual(est.update_count, 1)

    def test_corrupted_covariance_leaves_estimator_untouched(self):
        est = AxisEstimator()
        est.update(1.0, DT)
        est._P = np.diag([1.0, 1.0, -10.0])
        state, filtered = est.state, est.filtered_acceleration

        with self.assertRaises(RuntimeError):
            est.update(2.0, DT)

        self.assertEqual(est.state, state)
        self.assertEqual(est.filtered_acceleration, filtered)
        np.testing.assert_array_equal(est.covariance, np.diag([1.0, 1.0, -10.0]))
        self.assertEqual(est.update_count, 1)
        self.assertFalse(est.is_stationary)

    def test_estimators_do_not_share_state(self):
        cfg = EstimatorConfig()
        a = AxisEstimator(cfg, name="a")
        b = AxisEstimator(cfg, name="b")
        a.update(1.0, DT)
        self.assertEqual(b.state.acceleration, 0.0)
        np.testing.assert_array_equal(b.covariance, cfg.initial_covariance)


if __name__ == "__main__":
    unittest.main(verbosity=2)
