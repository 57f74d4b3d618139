#!/usr/bin/env python3
"""
Validate that test_scenarios_business_summary.md stays in sync with test_integration_scenarios.py.

This script checks:
1. All scenario classes in the test file are documented
2. All scenario methods are referenced in the doc
3. Documented scenarios that no longer exist

Run: python scripts/validate_test_docs_sync.py
"""

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_FILE = PROJECT_ROOT / 'tests' / 'test_integration_scenarios.py'
DOC_FILE = PROJECT_ROOT / 'docs' / 'test_scenarios_business_summary.md'

CLASS_RE = re.compile(r'^class (Test\w+)')
METHOD_RE = re.compile(r'^\s+def (test_\w+)')
DOC_CLASS_RE = re.compile(r'\*\*Test Class\*\*:\s*`(Test\w+)`')
DOC_METHOD_RE = re.compile(r'\*\*Test Method\*\*:\s*`(test_\w+)`')


def scenario_tests(test_file: Path) -> dict[str, list[str]]:
    """Map each scenario class in the test file to its test methods, in file order."""
    scenarios = {}
    current = None
    for line in test_file.read_text().splitlines():
        class_match = CLASS_RE.match(line)
        if class_match:
            current = class_match.group(1)
            scenarios[current] = []
        elif current:
            method_match = METHOD_RE.match(line)
            if method_match:
                scenarios[current].append(method_match.group(1))
    return scenarios


def documented_tests(doc_file: Path) -> tuple[set[str], set[str]]:
    """Class and method names referenced by the business summary."""
    content = doc_file.read_text()
    return set(DOC_CLASS_RE.findall(content)), set(DOC_METHOD_RE.findall(content))


@dataclass
class SyncReport:
    scenarios: dict[str, list[str]]
    missing_classes: set[str] = field(default_factory=set)
    missing_methods: set[str] = field(default_factory=set)
    stale_classes: set[str] = field(default_factory=set)
    stale_methods: set[str] = field(default_factory=set)

    @property
    def in_sync(self) -> bool:
        return not (self.missing_classes or self.missing_methods or self.stale_classes or self.stale_methods)


def check_sync(test_file: Path = TEST_FILE, doc_file: Path = DOC_FILE) -> SyncReport:
    scenarios = scenario_tests(test_file)
    doc_classes, doc_methods = documented_tests(doc_file)
    methods = {m for names in scenarios.values() for m in names}

    return SyncReport(
        scenarios=scenarios,
        missing_classes=set(scenarios) - doc_classes,
        missing_methods=methods - doc_methods,
        stale_classes=doc_classes - set(scenarios),
        stale_methods=doc_methods - methods,
    )


def main():
    for path in (TEST_FILE, DOC_FILE):
        if not path.exists():
            print(f"❌ File not found: {path}")
            sys.exit(1)

    report = check_sync()
    doc_classes, doc_methods = documented_tests(DOC_FILE)

    print("=" * 60)
    print("Scenario Documentation Sync")
    print("=" * 60)
    print(f"\nScenario classes: {len(report.scenarios)}  (documented: {len(doc_classes)})")
    print(f"Scenario methods: {sum(len(m) for m in report.scenarios.values())}  (documented: {len(doc_methods)})")

    problems = [
        ("❌ Undocumented class", report.missing_classes),
        ("❌ Undocumented method", report.missing_methods),
        ("⚠️  Stale class in doc", report.stale_classes),
        ("⚠️  Stale method in doc", report.stale_methods),
    ]
    for label, names in problems:
        for name in sorted(names):
            print(f"   {label}: {name}")

    if report.in_sync:
        print("\n✅ All scenarios are documented and in sync!")

    print("\nCoverage by Class:")
    for cls, methods in report.scenarios.items():
        print(f"\n  {'❌' if cls in report.missing_classes else '✅'} {cls}")
        for method in methods:
            print(f"      {'❌' if method in report.missing_methods else '✅'} {method}")

    # Stale entries are warnings; undocumented tests fail the run
    sys.exit(1 if report.missing_classes or report.missing_methods else 0)


if __name__ == '__main__':
    main()
