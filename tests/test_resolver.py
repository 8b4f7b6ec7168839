"""Tests for module specifier resolution."""

import json

from conftest import write_modules
from src.analyzer.resolver import ModuleResolver, load_tsconfig_paths


def test_relative_with_extension_probing(project):
    resolver = ModuleResolver(project)
    importer = project / 'index.js'
    assert resolver.resolve(importer, './named-exports') == (project / 'named-exports.js').resolve()
    assert resolver.resolve(importer, './named-exports.js') == (project / 'named-exports.js').resolve()
    assert resolver.resolve(importer, './components') == (project / 'components.jsx').resolve()


def test_parent_directory(project):
    resolver = ModuleResolver(project)
    assert resolver.resolve(project / 'deep' / 'a.js', '../empty') == (project / 'empty.js').resolve()


def test_directory_index(tmp_path):
    write_modules(tmp_path, {'lib/index.ts': 'export const x = 1;'})
    resolver = ModuleResolver(tmp_path)
    assert resolver.resolve(tmp_path / 'main.ts', './lib') == (tmp_path / 'lib' / 'index.ts').resolve()


def test_typescript_preferred_over_javascript(tmp_path):
    write_modules(tmp_path, {'util.ts': '', 'util.js': ''})
    resolver = ModuleResolver(tmp_path)
    assert resolver.resolve(tmp_path / 'main.ts', './util').name == 'util.ts'


def test_bare_specifier_from_project_root(tmp_path):
    write_modules(tmp_path, {'src/api.js': ''})
    resolver = ModuleResolver(tmp_path)
    assert resolver.resolve(tmp_path / 'deep' / 'x.js', 'src/api') == (tmp_path / 'src' / 'api.js').resolve()


def test_unresolved_package(project):
    assert ModuleResolver(project).resolve(project / 'index.js', 'react') is None
    assert ModuleResolver(project).resolve(project / 'index.js', '') is None


def test_tsconfig_aliases(tmp_path):
    write_modules(tmp_path, {'src/app/api.ts': ''})
    (tmp_path / 'tsconfig.json').write_text(json.dumps({
        'compilerOptions': {'paths': {'@app/*': ['src/app/*']}},
    }))
    resolver = ModuleResolver(tmp_path, load_tsconfig_paths(tmp_path))
    assert resolver.resolve(tmp_path / 'main.ts', '@app/api') == (tmp_path / 'src' / 'app' / 'api.ts').resolve()
    assert resolver.resolve(tmp_path / 'main.ts', '@application/api') is None


def test_tsconfig_missing_or_invalid(tmp_path):
    assert load_tsconfig_paths(tmp_path) == {}
    (tmp_path / 'jsconfig.json').write_text('{ // comments are not JSON\n}')
    assert load_tsconfig_paths(tmp_path) == {}
