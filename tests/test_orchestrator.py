import tempfile
import unittest
from pathlib import Path

from pipeline.config import RunConfig, parse_section_spec
from pipeline.orchestrator import run, unique_components
from repo_cppcheck.domain import Component, ComponentResult, Finding, Provenance


def _f(path, line, severity="error", rule="nullPointer", author=None):
    prov = Provenance("c1", author, f"{author}@example.com") if author else None
    return Finding(path, line, severity, rule, "m", prov)


class FakeJobs:
    """Job factory returning canned findings per relative path."""

    def __init__(self, findings, failing=()):
        self.findings = findings
        self.failing = set(failing)
        self.built = []

    def __call__(self, component, config):
        self.built.append(component.relative_path)

        def job():
            if component.relative_path in self.failing:
                raise RuntimeError("analyzer crashed")
            return ComponentResult(
                component=component,
                findings=tuple(self.findings.get(component.relative_path, ())),
                path_descriptor=component.relative_path,
            )

        return job


class TestOrchestrator(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.components = []
        for rel in ("system/core", "frameworks/base", "vendor/x/core", "external/zlib"):
            (self.root / rel).mkdir(parents=True)
            self.components.append(Component(str(self.root / rel), Path(rel).name, rel))
        self.out = self.root / "reports"

    def tearDown(self) -> None:
        self._td.cleanup()

    def _config(self, **kw) -> RunConfig:
        kw.setdefault("num_workers", 3)
        kw.setdefault("report_out_path", self.out)
        return RunConfig(**kw)

    def test_end_to_end_reports(self) -> None:
        jobs = FakeJobs(
            {
                "system/core": [_f("b.c", "10"), _f("a.c", "2", "warning"), _f("b.c", "9")],
                "frameworks/base": [_f("x.c", "1"), _f("x.c", "2"), _f("x.c", "3")],
            },
            failing={"external/zlib"},
        )
        summary = run(self._config(), self.components, job_factory=jobs)

        self.assertEqual(4, len(summary.result_set))
        self.assertEqual(["zlib"], [Path(o.key).name for o in summary.failed_jobs])
        self.assertEqual("error", summary.result_set.get(str(self.root / "external/zlib")).status)

        # Components without findings produce no detail report.
        names = sorted(p.name for p in self.out.iterdir())
        self.assertEqual(["base.md", "core.md", "summary.md"], names)
        self.assertTrue(all(r.ok for r in summary.reports))

        # More errors sorts first.
        text = (self.out / "summary.md").read_text(encoding="utf-8")
        self.assertLess(text.index("| base |"), text.index("| core |"))

        # Findings grouped by file, numeric line order.
        core = (self.out / "core.md").read_text(encoding="utf-8")
        self.assertLess(core.index("| b.c | 9 |"), core.index("| b.c | 10 |"))
        self.assertLess(core.index("| b.c | 10 |"), core.index("| a.c | 2 |"))

    def test_colliding_names_get_distinct_reports(self) -> None:
        jobs = FakeJobs({"system/core": [_f("a.c", "1")], "vendor/x/core": [_f("a.c", "1")]})
        run(self._config(mode="detail", report_format="csv"), self.components, job_factory=jobs)
        names = sorted(p.name for p in self.out.iterdir())
        self.assertEqual(["core.csv", "vendor_x_core.csv"], names)

    def test_author_filter_and_noise(self) -> None:
        jobs = FakeJobs(
            {
                "system/core": [
                    _f("a.c", "1", author="alice"),
                    _f("a.c", "2", author="bob"),
                    _f("a.c", "0", author="alice"),
                    _f("a.c", "3", rule="syntaxError", author="alice"),
                ]
            }
        )
        cfg = self._config(mode="detail", author_match="alice", suppress_noise=True)
        summary = run(cfg, self.components[:1], job_factory=jobs)
        self.assertEqual(1, len(summary.results))
        self.assertEqual(["1"], [f.line for f in summary.results[0].findings])

    def test_one_report_failure_does_not_stop_others(self) -> None:
        (self.out / "core.md").mkdir(parents=True)
        jobs = FakeJobs({"system/core": [_f("a.c", "1")], "frameworks/base": [_f("b.c", "1")]})
        summary = run(self._config(), self.components, job_factory=jobs)

        failed = [r.name for r in summary.reports if not r.ok]
        self.assertEqual(["core"], failed)
        self.assertTrue((self.out / "summary.md").is_file())
        self.assertTrue((self.out / "base.md").is_file())

    def test_section_subset(self) -> None:
        jobs = FakeJobs({"frameworks/base": [_f("b.c", "4")]})
        cfg = self._config(mode="detail", detail_section=parse_section_spec("filename|line"))
        run(cfg, self.components, job_factory=jobs)
        text = (self.out / "base.md").read_text(encoding="utf-8")
        self.assertIn("| filename | line |", text)
        self.assertNotIn("severity", text)

    def test_missing_and_duplicate_components_are_not_scheduled(self) -> None:
        ghost = Component(str(self.root / "gone"), "gone", "gone")
        jobs = FakeJobs({})
        summary = run(
            self._config(mode="summary"),
            [self.components[0], ghost, self.components[0]],
            job_factory=jobs,
        )
        self.assertEqual(["system/core"], jobs.built)
        self.assertEqual(1, len(summary.result_set))

    def test_component_named_summary_keeps_summary_report(self) -> None:
        (self.root / "tools/summary").mkdir(parents=True)
        summary_comp = Component(str(self.root / "tools/summary"), "summary", "tools/summary")
        jobs = FakeJobs({"tools/summary": [_f("s.c", "5")]})
        run(self._config(), [summary_comp], job_factory=jobs)

        self.assertEqual(["summary.md", "tools_summary.md"], sorted(p.name for p in self.out.iterdir()))
        self.assertIn("| moduleName |", (self.out / "summary.md").read_text(encoding="utf-8"))
        self.assertIn("| s.c | 5 |", (self.out / "tools_summary.md").read_text(encoding="utf-8"))

    def test_unique_components_keeps_first(self) -> None:
        a = Component("/x", "a", "x")
        b = Component("/x", "b", "x")
        self.assertEqual([a], unique_components([a, b]))


if __name__ == "__main__":
    unittest.main()
