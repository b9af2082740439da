import unittest
import numpy as np
import pandas as pd
import logging
from unittest.mock import patch, MagicMock
from device_selector import NoPlatformFound, NoDeviceFound, select_default_device
from kernel_dispatcher import BuildError, load_kernel_source, open_session
from vector_add import (
    ARRAYS_DIM,
    EXECUTIONS,
    DEFAULT_KERNEL_FILE,
    seq_sum_arrays,
    par_sum_arrays,
    check_equality,
    time_executions,
    performance_gain,
    run_benchmark,
    format_summary,
    plot_timings,
    BenchmarkResult,
    main
)

def opencl_device():
    try:
        return select_default_device()
    except (NoPlatformFound, NoDeviceFound):
        return None

DEVICE = opencl_device()

def host_session():
    # Stands in for a device session: computes the kernel result on the host
    session = MagicMock()

    def fake_run(entry_point, inputs, outputs, global_size=None):
        np.add(inputs[0], inputs[1], out=outputs[0])
        return outputs

    session.run.side_effect = fake_run
    return session

class TestSums(unittest.TestCase):
    def test_seq_sum_arrays(self):
        for n in (1, 2, 17, 1024):
            a = np.full(n, 3, dtype=np.int32)
            b = np.full(n, 5, dtype=np.int32)
            c = np.zeros(n, dtype=np.int32)
            seq_sum_arrays(a, b, c)
            self.assertTrue(np.all(c == 8))

    def test_par_sum_arrays_dispatches_ndrange(self):
        session = host_session()
        a = np.full(10, 3, dtype=np.int32)
        b = np.full(10, 5, dtype=np.int32)
        c = np.zeros(10, dtype=np.int32)

        par_sum_arrays(session, a, b, c)
        session.run.assert_called_once_with("sum_arrays", [a, b], [c], global_size=(10,))
        self.assertTrue(np.all(c == 8))

    def test_seq_and_par_agree(self):
        session = host_session()
        a = np.full(100, 3, dtype=np.int32)
        b = np.full(100, 5, dtype=np.int32)
        cs = np.zeros(100, dtype=np.int32)
        cp = np.zeros(100, dtype=np.int32)

        seq_sum_arrays(a, b, cs)
        par_sum_arrays(session, a, b, cp)
        self.assertTrue(check_equality(cs, cp, 100))

class TestCheckEquality(unittest.TestCase):
    def test_equal(self):
        self.assertTrue(check_equality([1, 2, 3], [1, 2, 3], 3))

    def test_single_mismatch(self):
        self.assertFalse(check_equality([1, 2, 3], [1, 2, 4], 3))

    def test_mismatch_outside_prefix_ignored(self):
        self.assertTrue(check_equality([1, 2, 3], [1, 2, 4], 2))

    def test_default_length(self):
        self.assertTrue(check_equality(np.arange(5), np.arange(5)))
        self.assertFalse(check_equality(np.arange(5), np.arange(6)))

class TestTiming(unittest.TestCase):
    def test_time_executions(self):
        calls = []
        durations = time_executions(lambda: calls.append(1), 4)
        self.assertEqual(len(calls), 4)
        self.assertIsInstance(durations, pd.Series)
        self.assertEqual(list(durations.index), [1, 2, 3, 4])
        self.assertTrue((durations >= 0).all())

    def test_performance_gain(self):
        self.assertAlmostEqual(performance_gain(30.0, 10.0), 200.0)
        self.assertAlmostEqual(performance_gain(10.0, 20.0), -50.0)

    def test_performance_gain_requires_positive_parallel_time(self):
        with self.assertRaises(ValueError):
            performance_gain(10.0, 0.0)

class TestBenchmark(unittest.TestCase):
    def test_run_benchmark_defaults(self):
        session = host_session()

        result = run_benchmark(session, ARRAYS_DIM, EXECUTIONS)
        self.assertTrue(result.equal)
        self.assertEqual((result.a0, result.b0, result.c0), (3, 5, 8))
        self.assertEqual(session.run.call_count, EXECUTIONS)
        self.assertEqual(len(result.timings), EXECUTIONS)
        self.assertGreaterEqual(result.seq_time, 0)
        self.assertGreaterEqual(result.par_time, 0)
        self.assertTrue(np.isfinite(result.gain))

    def test_run_benchmark_reports_mismatch(self):
        session = MagicMock()

        def wrong_run(entry_point, inputs, outputs, global_size=None):
            np.subtract(inputs[0], inputs[1], out=outputs[0])
            return outputs

        session.run.side_effect = wrong_run
        result = run_benchmark(session, 64, 2)
        self.assertFalse(result.equal)
        self.assertIn("status: FAILED!", format_summary(result))

    def test_run_benchmark_rejects_empty_arrays(self):
        with self.assertRaises(ValueError):
            run_benchmark(host_session(), 0, 1)
        with self.assertRaises(ValueError):
            run_benchmark(host_session(), 8, 0)

    def test_format_summary(self):
        timings = pd.DataFrame({"sequential": [4.0, 6.0], "parallel": [1.0, 1.5]})
        result = BenchmarkResult(True, 3, 5, 8, timings)

        summary = format_summary(result)
        lines = summary.splitlines()
        self.assertEqual(lines[0], "status: SUCCESS!")
        self.assertIn("\tc[0] = a[0] + b[0] = 8", lines)
        self.assertIn("\tsequential: 5.0000 ms;", lines)
        self.assertIn("\tparallel: 1.2500 ms.", lines)
        self.assertEqual(lines[-1], "performance gain: 300.00%")

    def test_plot_timings(self):
        timings = pd.DataFrame({"sequential": [4.0, 6.0], "parallel": [1.0, 1.5]}, index=[1, 2])
        with patch('vector_add.plt.show') as mock_show:
            plot_timings(timings)
            mock_show.assert_called_once()

class TestMain(unittest.TestCase):
    @patch('builtins.print')
    @patch('vector_add.open_session')
    def test_main_small_benchmark(self, mock_open_session, mock_print):
        mock_open_session.return_value = host_session()

        self.assertEqual(main(['--arrays-dim', '256', '--executions', '3']), 0)
        summary = mock_print.call_args[0][0]
        self.assertTrue(summary.startswith("status: SUCCESS!"))

    @patch('logging.error')
    @patch('vector_add.open_session')
    def test_main_build_failure(self, mock_open_session, mock_logging_error):
        mock_open_session.side_effect = BuildError(-11, "error: unknown type name 'itn'")

        with patch('vector_add.run_benchmark') as mock_run_benchmark:
            self.assertEqual(main([]), 1)
            mock_run_benchmark.assert_not_called()
        self.assertEqual(mock_logging_error.call_count, 2)

    @patch('logging.error')
    @patch('vector_add.open_session')
    def test_main_no_device(self, mock_open_session, mock_logging_error):
        mock_open_session.side_effect = NoDeviceFound("no devices found!")

        self.assertEqual(main([]), 1)
        mock_logging_error.assert_called_once_with("no devices found!")

    def test_main_rejects_bad_sizes(self):
        with patch('sys.stderr'):
            with self.assertRaises(SystemExit):
                main(['--arrays-dim', '0'])
            with self.assertRaises(SystemExit):
                main(['--executions', '-1'])

@unittest.skipIf(DEVICE is None, "no OpenCL device available")
class TestBenchmarkOnDevice(unittest.TestCase):
    def test_full_benchmark(self):
        session = open_session(load_kernel_source(DEFAULT_KERNEL_FILE), device=DEVICE)

        result = run_benchmark(session, ARRAYS_DIM, EXECUTIONS)
        self.assertTrue(result.equal)
        self.assertEqual(result.c0, 8)
        self.assertGreater(result.par_time, 0)
        self.assertTrue(np.isfinite(result.gain))

if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    unittest.main()
