import unittest

import numpy as np

from inertial_nav.sensors import (
    Accelerometer3Axis,
    ErrorModel,
    HardwareAccelerometer,
)
from inertial_nav.util import STANDARD_GRAVITY, unit_scale


# ==================================================================
# SIMULATED ACCELEROMETER
# ==================================================================

class TestAccelerometer3Axis(unittest.TestCase):

    def test_noiseless_passes_truth(self):
        accel = Accelerometer3Axis()
        out = accel.step(np.array([1.0, -2.0, 0.5]), 0.1, 0.1)
        np.testing.assert_array_equal(out, [1.0, -2.0, 0.5])
        np.testing.assert_array_equal(accel.get_latest(), out)

    def test_bias_and_scale(self):
        accel = Accelerometer3Axis(initial_bias=[0.1, 0.0, -0.1], scale_factors=2.0)
        out = accel.step(np.ones(3), 0.1, 0.1)
        np.testing.assert_allclose(out, [2.1, 2.0, 1.9])

    def test_seeded_noise_is_reproducible(self):
        """Same seed, same readings; clear() replays the sequence."""
        a = Accelerometer3Axis(white_noise_std=0.05, bias_instability_std=0.01, seed=3)
        b = Accelerometer3Axis(white_noise_std=0.05, bias_instability_std=0.01, seed=3)
        first = [a.step(np.zeros(3), 0.1, 0.1 * k) for k in range(5)]
        second = [b.step(np.zeros(3), 0.1, 0.1 * k) for k in range(5)]
        np.testing.assert_array_equal(first, second)
        self.assertGreater(np.std(first), 0.0)

        a.clear()
        again = [a.step(np.zeros(3), 0.1, 0.1 * k) for k in range(5)]
        np.testing.assert_array_equal(first, again)

    def test_saturation(self):
        accel = Accelerometer3Axis(saturation_limit=2.0)
        out = accel.step(np.array([5.0, -5.0, 1.0]), 0.1, 0.1)
        np.testing.assert_array_equal(out, [2.0, -2.0, 1.0])

    def test_quantization(self):
        # 4 bits over +/-8 -> 1.0 per LSB
        accel = Accelerometer3Axis(quantization_bits=4, quantization_range=8.0)
        out = accel.step(np.array([0.4, 0.6, 20.0]), 0.1, 0.1)
        np.testing.assert_array_equal(out, [0.0, 1.0, 8.0])

    def test_history(self):
        accel = Accelerometer3Axis(buffer_size=3)
        for k in range(5):
            accel.step(np.full(3, float(k)), 0.1, 0.1 * k)
        t, data = accel.get_history_with_timestamps()
        np.testing.assert_allclose(t, [0.2, 0.3, 0.4])
        self.assertEqual(data.shape, (3, 3))
        self.assertEqual(data[-1, 0], 4.0)

    def test_rate_limit(self):
        accel = Accelerometer3Axis(update_rate_hz=5.0)
        due = [accel.should_update(t) for t in (0.1, 0.2, 0.3, 0.4, 0.5)]
        self.assertEqual(due, [True, False, True, False, True])

    def test_error_model_object(self):
        model = ErrorModel(initial_bias=0.5, quantization_bits=8, quantization_range=4.0)
        self.assertAlmostEqual(model.lsb, 8.0 / 256)
        accel = Accelerometer3Axis(error_model=model)
        np.testing.assert_allclose(accel.step(np.zeros(3), 0.1, 0.1), 0.5)
        with self.assertRaises(TypeError):
            Accelerometer3Axis(error_model=model, white_noise_std=0.1)

    def test_bad_parameters(self):
        with self.assertRaises(ValueError):
            Accelerometer3Axis(white_noise_std=-1.0)
        with self.assertRaises(ValueError):
            Accelerometer3Axis(initial_bias=[0.0, 0.0])
        with self.assertRaises(ValueError):
            Accelerometer3Axis(update_rate_hz=0.0)


# ==================================================================
# HARDWARE ACCELEROMETER
# ==================================================================

class TestHardwareAccelerometer(unittest.TestCase):

    def test_g_units(self):
        accel = HardwareAccelerometer(units="g")
        out = accel.ingest([1.0, 0.0, -0.5], 0.1)
        np.testing.assert_allclose(out, [9.81, 0.0, -4.905])

    def test_calibration(self):
        accel = HardwareAccelerometer(calibration_bias=[0.1, 0.0, 0.0], calibration_scale=[2.0, 1.0, 1.0])
        np.testing.assert_allclose(accel.ingest([2.1, 1.0, 1.0], 0.1), [1.0, 1.0, 1.0])

        accel.recalibrate(np.zeros(3), np.ones(3))
        np.testing.assert_allclose(accel.ingest([2.1, 1.0, 1.0], 0.2), [2.1, 1.0, 1.0])

    def test_wrong_dimension(self):
        accel = HardwareAccelerometer()
        with self.assertRaises(ValueError):
            accel.ingest([1.0, 2.0], 0.1)

    def test_unknown_units(self):
        with self.assertRaises(ValueError):
            HardwareAccelerometer(units="furlongs")


class TestUnits(unittest.TestCase):

    def test_unit_scale(self):
        self.assertEqual(STANDARD_GRAVITY, 9.81)
        self.assertEqual(unit_scale(" G "), STANDARD_GRAVITY)
        self.assertEqual(unit_scale("mps2"), 1.0)
        with self.assertRaises(ValueError):
            unit_scale("knots")


if __name__ == "__main__":
    unittest.main(verbosity=2)
