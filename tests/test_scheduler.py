import random
import threading
import time
import unittest

from pipeline.scheduler import TaskScheduler, collect_results, record_on_completion
from repo_cppcheck.domain import Component, ComponentResult, GlobalResultSet


def _component(i: int) -> Component:
    return Component(root_path=f"/src/p{i}", display_name=f"p{i}", relative_path=f"p{i}")


class TestTaskScheduler(unittest.TestCase):
    def test_run_all_returns_one_outcome_per_job(self) -> None:
        n = 25
        started = []
        lock = threading.Lock()

        def make(i: int):
            def job():
                with lock:
                    started.append(i)
                time.sleep(random.uniform(0, 0.02))
                if i % 5 == 0:
                    raise RuntimeError(f"boom {i}")
                return i

            return job

        with TaskScheduler(max_workers=4) as sched:
            for i in range(n):
                sched.submit(make(i), key=f"job{i}")
            outcomes = sched.run_all()

        self.assertEqual(n, len(outcomes))
        self.assertEqual([f"job{i}" for i in range(n)], [o.key for o in outcomes])
        self.assertEqual(sorted(started), list(range(n)))

        failed = [o for o in outcomes if not o.ok]
        self.assertEqual({f"job{i}" for i in range(0, n, 5)}, {o.key for o in failed})
        for o in failed:
            self.assertIn("RuntimeError", o.error)
        self.assertEqual(
            [i for i in range(n) if i % 5], [o.result for o in outcomes if o.ok]
        )

    def test_failure_does_not_stop_single_worker(self) -> None:
        with TaskScheduler(max_workers=1) as sched:
            sched.submit(lambda: 1 / 0, key="bad")
            sched.submit(lambda: "ok", key="good")
            outcomes = sched.run_all()
        self.assertEqual([False, True], [o.ok for o in outcomes])
        self.assertEqual("ok", outcomes[1].result)

    def test_run_all_clears_queue(self) -> None:
        sched = TaskScheduler(max_workers=2)
        try:
            sched.submit(lambda: 1, key="a")
            self.assertEqual(1, len(sched.run_all()))
            self.assertEqual([], sched.run_all())
        finally:
            sched.shutdown()

    def test_default_worker_count_is_positive(self) -> None:
        self.assertGreaterEqual(TaskScheduler().max_workers, 1)


class TestCollectResults(unittest.TestCase):
    def test_results_recorded_once_and_failures_become_error_entries(self) -> None:
        components = [_component(i) for i in range(6)]
        result_set = GlobalResultSet()

        def make(c: Component):
            def job():
                if c.display_name == "p3":
                    raise ValueError("bad component")
                return ComponentResult(component=c, path_descriptor=c.relative_path)

            return job

        with TaskScheduler(max_workers=3) as sched:
            for c in components:
                sched.submit(record_on_completion(make(c), result_set), key=c.root_path)
            outcomes = sched.run_all()

        collect_results(outcomes, {c.root_path: c for c in components}, result_set)

        self.assertEqual(6, len(result_set))
        self.assertEqual("error", result_set.get("/src/p3").status)
        self.assertEqual("ok", result_set.get("/src/p0").status)

    def test_result_set_rejects_second_write(self) -> None:
        rs = GlobalResultSet()
        c = _component(1)
        rs.record(ComponentResult(component=c))
        with self.assertRaises(KeyError):
            rs.record(ComponentResult(component=c))


if __name__ == "__main__":
    unittest.main()
