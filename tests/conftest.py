"""Shared fixtures: a small on-disk ES module graph and lint helpers."""

from pathlib import Path
from typing import Dict

import pytest

from src.analyzer.export_map import ExportMapRegistry
from src.analyzer.linter import Linter, RuleOptions
from src.analyzer.resolver import ModuleResolver


MODULES = {
    'named-exports.js': """
export const a = 1, b = 2;
export function c() {}
export class D {}
const hidden = 3;
export { hidden as e };
export default function () {}
""",
    'empty.js': """
// no exports at all
const x = 1;
""",
    'broken.js': """
export const = ;
""",
    # a -> b -> c -> d, each hop a nested namespace
    'deep/a.js': """
import * as b from './b';
export { b };
""",
    'deep/b.js': """
export * as c from './c';
""",
    'deep/c.js': """
import * as d from './d';
export { d };
""",
    'deep/d.js': """
export const e = 'e';
""",
    'deep/default.js': """
import * as b from './b';
export default b;
""",
    're-export.js': """
export * from './named-exports';
export { default as def } from './named-exports';
""",
    # names present in the export list but unresolvable behind it
    'ambiguous.js': """
export { missing } from './nowhere';
export { ghost } from './named-exports';
export const real = 1;
""",
    'external-star.js': """
export * from 'some-package';
""",
    'cycle-a.js': """
export * from './cycle-b';
export const fromA = 1;
""",
    'cycle-b.js': """
export * from './cycle-a';
export const fromB = 2;
""",
    'self-namespace.js': """
import * as self from './self-namespace';
export { self };
export const value = 1;
""",
    'components.jsx': """
export const Button = () => null;
export const Icon = () => null;
""",
    'node_modules/pkg/index.js': """
export const fromPackage = 1;
""",
}


def write_modules(root: Path, modules: Dict[str, str]) -> Path:
    for relative, source in modules.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source.lstrip('\n'), encoding='utf-8')
    return root


@pytest.fixture
def project(tmp_path):
    """Project root populated with the shared module graph."""
    return write_modules(tmp_path, MODULES)


@pytest.fixture
def registry(project):
    return ExportMapRegistry(ModuleResolver(project))


@pytest.fixture
def lint(project, registry):
    """Lint a snippet as if it were `<project>/<filename>`; returns its diagnostics."""
    def _lint(source: str, filename: str = 'index.js', allow_computed: bool = False):
        linter = Linter(RuleOptions(allow_computed=allow_computed), registry)
        return linter.lint_source(source, project / filename).diagnostics
    return _lint


def messages(diagnostics):
    return [d.message for d in diagnostics]
