import json
import tempfile
import unittest
import warnings
from pathlib import Path

from scopeguard.contract_store import shipped_contracts
from scopeguard.core.exit_policy import ExitType
from scopeguard.core.factory import make_scope_guard
from scopeguard.core.runtime_context import GuardContext
from scopeguard.trace.replay import Replay


def _event_types(trace_path: Path) -> list:
    return [e["event_type"] for e in Replay(trace_path).iter_events()]


class TestGuardTrace(unittest.TestCase):
    def test_fired_guard_emits_created_and_fired(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            ctx = GuardContext(trace_path=trace_path, run_id="run_trace_1")

            with make_scope_guard(lambda: None, context=ctx) as guard:
                pass

            self.assertEqual(_event_types(trace_path), ["guard_created", "guard_fired"])
            events = Replay(trace_path).for_guard(guard.guard_id)
            self.assertEqual(len(events), 2)
            self.assertTrue(all(e["run_id"] == "run_trace_1" for e in events))
            self.assertEqual(events[-1]["exit_type"], "always")
            self.assertEqual(shipped_contracts().validate_jsonl_file("trace_event.schema.json", trace_path), [])

    def test_dismissed_guard_never_fires(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            ctx = GuardContext(trace_path=trace_path)

            with make_scope_guard(lambda: None, context=ctx) as guard:
                guard.dismiss()
                guard.dismiss()

            self.assertEqual(_event_types(trace_path), ["guard_created", "guard_dismissed"])

    def test_policy_skip_is_recorded(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            ctx = GuardContext(trace_path=trace_path)

            with self.assertRaises(ValueError):
                with make_scope_guard(lambda: None, ExitType.ON_SUCCESS, context=ctx):
                    raise ValueError("boom")

            skipped = list(Replay(trace_path).iter_events(event_type="guard_skipped"))
            self.assertEqual(len(skipped), 1)
            self.assertTrue(skipped[0]["data"]["error_propagating"])
            self.assertEqual(skipped[0]["exit_type"], "on_success")

    def test_relocation_links_source_and_destination(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            ctx = GuardContext(trace_path=trace_path)

            g1 = make_scope_guard(lambda: None, context=ctx)
            g2 = g1.relocate()
            g1.close()
            g2.close()

            relocated = Replay(trace_path).for_guard(g1.guard_id)
            self.assertEqual([e["event_type"] for e in relocated], ["guard_created", "guard_relocated"])
            self.assertEqual(relocated[-1]["data"]["to_guard_id"], g2.guard_id)
            self.assertEqual([e["event_type"] for e in Replay(trace_path).for_guard(g2.guard_id)], ["guard_fired"])
            self.assertEqual(shipped_contracts().validate_jsonl_file("trace_event.schema.json", trace_path), [])

    def test_broken_trace_sink_does_not_stop_the_action(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            # A directory cannot be opened for appending.
            ctx = GuardContext(trace_path=Path(td))
            fired = []
            with self.assertWarns(RuntimeWarning):
                with make_scope_guard(lambda: fired.append(1), context=ctx):
                    pass
            self.assertEqual(fired, [1])

    def test_broken_trace_sink_under_error_filter_never_raises(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            ctx = GuardContext(trace_path=Path(td))
            fired = []
            with warnings.catch_warnings():
                warnings.simplefilter("error")
                with make_scope_guard(lambda: fired.append(1), context=ctx):
                    pass
                with self.assertRaises(ValueError):
                    with make_scope_guard(lambda: fired.append(2), ExitType.ON_SUCCESS, context=ctx):
                        raise ValueError("boom")
                with make_scope_guard(lambda: fired.append(3), context=ctx) as guard:
                    guard.relocate().dismiss()
            self.assertEqual(fired, [1])

    def test_no_trace_file_without_trace_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with make_scope_guard(lambda: None, context=GuardContext()):
                pass
            self.assertEqual(list(Path(td).iterdir()), [])


class TestReplay(unittest.TestCase):
    def test_missing_file_yields_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(list(Replay(Path(td) / "missing.jsonl").iter_events()), [])

    def test_skips_blank_lines(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "t.jsonl"
            p.write_text(
                json.dumps({"ts": "2026-01-01T00:00:00Z", "run_id": "r", "event_type": "guard_created"})
                + "\n\n"
                + json.dumps({"ts": "2026-01-01T00:00:01Z", "run_id": "r", "event_type": "guard_fired"})
                + "\n",
                encoding="utf-8",
            )
            self.assertEqual(_event_types(p), ["guard_created", "guard_fired"])


if __name__ == "__main__":
    unittest.main()
