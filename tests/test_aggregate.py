import unittest

from pipeline.aggregate import (
    aggregate,
    aggregate_findings,
    compare_severity_counts,
    count_severities,
    deduplicate,
    filter_by_author,
    group_and_sort,
    suppress_noise,
    summarize,
)
from repo_cppcheck.domain import Component, ComponentResult, Finding, GlobalResultSet, Provenance


def F(file_path="a.cpp", line="1", severity="error", rule_id="id", message="m", author=None, mail=None) -> Finding:
    prov = None
    if author is not None or mail is not None:
        prov = Provenance(commit_id="c0ffee", author=author, author_mail=mail)
    return Finding(file_path, line, severity, rule_id, message, prov)


def R(name: str, findings) -> ComponentResult:
    return ComponentResult(
        component=Component(root_path=f"/src/{name}", display_name=name, relative_path=name),
        findings=tuple(findings),
        path_descriptor=name,
    )


class TestFilters(unittest.TestCase):
    def test_author_filter_keeps_unattributed_findings(self) -> None:
        findings = [
            F(line="1"),
            F(line="2", author="Alice", mail="alice@example.com"),
            F(line="3", author="Bob", mail="bob@example.org"),
        ]
        out = filter_by_author(findings, r"example\.com")
        self.assertEqual(["1", "2"], [f.line for f in out])

    def test_author_filter_matches_name_or_mail(self) -> None:
        out = filter_by_author([F(author="Bob", mail="b@x")], "Bob")
        self.assertEqual(1, len(out))

    def test_noise_severity_information(self) -> None:
        self.assertEqual([], suppress_noise([F(severity="information")]))

    def test_noise_syntax_error(self) -> None:
        self.assertEqual([], suppress_noise([F(rule_id="syntaxError", severity="error")]))

    def test_noise_unknown_macro(self) -> None:
        self.assertEqual([], suppress_noise([F(rule_id="unknownMacro", severity="error")]))

    def test_noise_line_zero(self) -> None:
        self.assertEqual([], suppress_noise([F(line="0", severity="error")]))

    def test_noise_keeps_regular_findings(self) -> None:
        keep = F(line="12", severity="warning", rule_id="uninitvar")
        self.assertEqual([keep], suppress_noise([keep]))


class TestOrdering(unittest.TestCase):
    def test_deduplicate_collapses_identical_records(self) -> None:
        a = F(line="4")
        self.assertEqual([a], deduplicate([a, F(line="4")]))

    def test_deduplicate_first_occurrence_wins(self) -> None:
        first = F(line="4", author="first")
        second = F(line="4", author="second")
        self.assertEqual("first", deduplicate([first, second])[0].author)

    def test_group_by_first_seen_file_and_sort_numerically(self) -> None:
        findings = [
            F("b.cpp", "10"),
            F("a.cpp", "9"),
            F("b.cpp", "2"),
            F("a.cpp", "100"),
            F("b.cpp", "1"),
        ]
        out = group_and_sort(findings)
        self.assertEqual(
            [("b.cpp", "1"), ("b.cpp", "2"), ("b.cpp", "10"), ("a.cpp", "9"), ("a.cpp", "100")],
            [(f.file_path, f.line) for f in out],
        )

    def test_filters_run_before_dedup(self) -> None:
        findings = [F(line="0"), F(line="0"), F(line="5"), F(line="5")]
        out = aggregate_findings(findings, suppress=True)
        self.assertEqual(["5"], [f.line for f in out])


class TestAggregate(unittest.TestCase):
    def test_empty_components_are_elided(self) -> None:
        rs = GlobalResultSet()
        rs.record(R("noisy", [F(severity="information")]))
        rs.record(R("real", [F(severity="error")]))
        rs.record(R("empty", []))

        out = aggregate(rs, suppress=True)
        self.assertEqual(["real"], [r.component.display_name for r in out])

    def test_output_is_independent_of_arrival_order(self) -> None:
        results = [R("b", [F("x.c", "3"), F("x.c", "1")]), R("a", [F("y.c", "2")])]
        first = aggregate(results)
        second = aggregate(list(reversed(results)))
        self.assertEqual(
            [(r.component.display_name, [f.line for f in r.findings]) for r in first],
            [(r.component.display_name, [f.line for f in r.findings]) for r in second],
        )
        self.assertEqual(["1", "3"], [f.line for f in first[1].findings])


class TestSummary(unittest.TestCase):
    def test_count_severities(self) -> None:
        counts = count_severities([F(severity="error"), F(severity="error"), F(severity="style")])
        self.assertEqual({"error": 2, "style": 1}, counts)

    def test_more_warnings_wins_after_equal_errors(self) -> None:
        a = R("A", [F(severity="error", line=str(i)) for i in range(5)] + [F(severity="warning")])
        b = R("B", [F(severity="error", line=str(i)) for i in range(5)] + [F(severity="warning", line=str(i)) for i in range(2)])
        ordered = summarize([a, b])
        self.assertEqual(["B", "A"], [r.component.display_name for r, _ in ordered])

    def test_missing_keys_are_skipped_not_zero(self) -> None:
        # "error" only on one side: skipped; warning decides.
        self.assertEqual(1, compare_severity_counts({"error": 9, "warning": 1}, {"warning": 2}))
        self.assertEqual(0, compare_severity_counts({"error": 1}, {"style": 4}))

    def test_ties_keep_encounter_order(self) -> None:
        rows = summarize([R("first", [F(severity="style")]), R("second", [F(severity="style")])])
        self.assertEqual(["first", "second"], [r.component.display_name for r, _ in rows])


if __name__ == "__main__":
    unittest.main()
