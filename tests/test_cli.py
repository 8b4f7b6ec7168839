"""CLI integration tests."""

import json

import pytest
from typer.testing import CliRunner

from src.config import __version__, reset_config
from src.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ('NSGUARD_ALLOW_COMPUTED', 'NSGUARD_NO_CACHE', 'NSGUARD_CACHE_DIR', 'NSGUARD_IGNORE'):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def write(project, name, source):
    path = project / name
    path.write_text(source, encoding='utf-8')
    return path


def check(project, *args):
    return runner.invoke(app, ['check', '--project-root', str(project), *args])


def test_clean_file(project):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames.a;\n")
    result = check(project, str(target))
    assert result.exit_code == 0, result.output
    assert 'No problems found in 1 files' in result.output


def test_problems_exit_with_error(project):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames.zzz;\n")
    result = check(project, str(target))
    assert result.exit_code == 1
    assert '1 problems (1 errors, 0 warnings)' in result.output


def test_json_output(project):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames.zzz;\nnames[k];\n")
    result = check(project, str(target), '--format', 'json')
    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert [d['message'] for d in payload] == [
        "'zzz' not found in imported namespace 'names'.",
        "Unable to validate computed reference to imported namespace 'names'.",
    ]
    assert payload[0]['line'] == 2
    assert payload[0]['rule'] == 'namespace'
    assert payload[0]['file_path'] == str(target.resolve())


def test_allow_computed_flag(project):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames[k];\n")
    assert check(project, str(target)).exit_code == 1
    assert check(project, str(target), '--allow-computed').exit_code == 0


def test_allow_computed_from_environment(project, monkeypatch):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames[k];\n")
    monkeypatch.setenv('NSGUARD_ALLOW_COMPUTED', 'true')
    assert check(project, str(target)).exit_code == 0
    assert check(project, str(target), '--no-allow-computed').exit_code == 1


def test_warnings_do_not_fail(project):
    target = write(project, 'main.js', "import * as empty from './empty';\n")
    result = check(project, str(target), '--format', 'json')
    assert result.exit_code == 0
    assert json.loads(result.output)[0]['severity'] == 'warning'


def test_directory_skips_node_modules_and_cache(project):
    result = check(project, str(project), '--format', 'json')
    files = {d['file_path'] for d in json.loads(result.output)}
    assert not any('node_modules' in f for f in files)
    assert (project / '.nsguard_cache' / 'exports.db').exists()


def test_directory_reports_broken_file(project):
    result = check(project, str(project), '--format', 'json')
    messages = [d['message'] for d in json.loads(result.output)]
    assert any(m.startswith('Parsing error:') for m in messages)
    assert result.exit_code == 1


def test_no_cache(project):
    target = write(project, 'main.js', "import * as names from './named-exports';\nnames.a;\n")
    assert check(project, str(target), '--no-cache').exit_code == 0
    assert not (project / '.nsguard_cache').exists()


def test_missing_path(project):
    result = check(project, str(project / 'nope.js'))
    assert result.exit_code == 2
    assert 'Path does not exist' in result.output


def test_unknown_format(project):
    assert check(project, '--format', 'xml').exit_code == 2


def test_unsupported_file_is_reported(project):
    target = write(project, 'notes.txt', 'hello')
    result = check(project, str(target))
    assert result.exit_code == 1
    assert 'No grammar' in result.output


def test_cache_stats_and_clear(project):
    check(project, str(project))
    stats = runner.invoke(app, ['cache', 'stats', str(project)])
    assert stats.exit_code == 0
    assert 'Modules Cached' in stats.output

    cleared = runner.invoke(app, ['cache', 'clear', str(project)])
    assert cleared.exit_code == 0
    assert 'Cache cleared' in cleared.output


def test_version():
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert __version__ in result.output
