import unittest

from scopeguard.core.exit_policy import ExitType, error_in_flight, should_run, supported_exit_types


class TestExitPolicy(unittest.TestCase):
    def test_always_ignores_error_signal(self) -> None:
        self.assertTrue(should_run(ExitType.ALWAYS, False))
        self.assertTrue(should_run(ExitType.ALWAYS, True))

    def test_on_success_runs_only_without_error(self) -> None:
        self.assertTrue(should_run(ExitType.ON_SUCCESS, False))
        self.assertFalse(should_run(ExitType.ON_SUCCESS, True))

    def test_on_failure_runs_only_with_error(self) -> None:
        self.assertFalse(should_run(ExitType.ON_FAILURE, False))
        self.assertTrue(should_run(ExitType.ON_FAILURE, True))

    def test_unknown_exit_type_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            should_run("sometimes", False)  # type: ignore[arg-type]

    def test_capability_gate(self) -> None:
        self.assertEqual(supported_exit_types(None), (ExitType.ALWAYS,))
        self.assertEqual(
            supported_exit_types(),
            (ExitType.ALWAYS, ExitType.ON_SUCCESS, ExitType.ON_FAILURE),
        )
        self.assertEqual(len(supported_exit_types(lambda: False)), 3)

    def test_error_in_flight_tracks_exception_handling(self) -> None:
        self.assertFalse(error_in_flight())
        try:
            raise KeyError("k")
        except KeyError:
            self.assertTrue(error_in_flight())
        self.assertFalse(error_in_flight())

    def test_exit_type_values(self) -> None:
        self.assertEqual(ExitType("on_failure"), ExitType.ON_FAILURE)
        self.assertEqual([e.value for e in ExitType], ["always", "on_success", "on_failure"])


if __name__ == "__main__":
    unittest.main()
