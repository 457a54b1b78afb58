"""Tests for the command-line interface."""

import logging
import os
from unittest.mock import patch

import pytest

from folio_pkg import cli
from folio_pkg.disk import LocalDisk
from folio_pkg.logging_setup import SummaryFilter, setup_logging
from folio_pkg.records import JsonBuildStore


def write(base, rel_path, content):
    path = os.path.join(base, *rel_path.split('/'))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


@pytest.fixture
def site_dir(temp_dir, monkeypatch):
    """Run CLI tests from inside a temporary site directory."""
    monkeypatch.chdir(temp_dir)
    yield temp_dir
    logger = logging.getLogger('Folio')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestResolveDisks:
    """Test cases for mapping directories onto disks."""

    def test_output_inside_source(self, temp_dir):
        """Test that a nested output shares the source disk."""
        source, output, root = cli.resolve_disks(temp_dir, '.build')
        assert output is source
        assert root == '/.build'

    def test_output_outside_source(self, temp_dir):
        """Test that a sibling output gets its own disk."""
        source_dir = os.path.join(temp_dir, 'site')
        output_dir = os.path.join(temp_dir, 'public')
        source, output, root = cli.resolve_disks(source_dir, output_dir)

        assert output is not source
        assert isinstance(output, LocalDisk)
        assert output.base_dir == os.path.abspath(output_dir)
        assert root == '/'


class TestMain:
    """Test cases for the folio entry point."""

    def test_freeform_build(self, site_dir):
        """Test a successful build and its stored record."""
        write(site_dir, 'index.mustache', '<h1>{{site.title}}</h1>')
        write(site_dir, 'img/a.txt', 'asset')

        cli.main(['--site-title', 'CLI Site'])

        with open(os.path.join(site_dir, '.build', 'index.html'), encoding='utf-8') as f:
            assert f.read() == '<h1>CLI Site</h1>'
        assert os.path.exists(os.path.join(site_dir, '.build', 'img', 'a.txt'))
        records = JsonBuildStore(os.path.join(site_dir, '.storage', 'builds')).list()
        assert len(records) == 1
        assert records[0]['label'].startswith('Freeform Build - ')

    def test_failed_build_exits_1(self, site_dir):
        """Test that a failed build exits with status 1."""
        write(site_dir, 'book.mustache', '{{{content}}}')
        with pytest.raises(SystemExit) as exc_info:
            cli.main(['--strategy', 'book'])
        assert exc_info.value.code == cli.EXIT_FAILED

    def test_cancelled_build_exits_130(self, site_dir):
        """Test that a cancelled build exits with status 130."""
        write(site_dir, 'index.mustache', 'x')

        original_run = cli.StrategyPipeline.run

        async def cancel_then_run(pipeline):
            pipeline.cancel()
            return await original_run(pipeline)

        with patch.object(cli.StrategyPipeline, 'run', cancel_then_run):
            with pytest.raises(SystemExit) as exc_info:
                cli.main([])
        assert exc_info.value.code == cli.EXIT_CANCELLED

    def test_bad_config_strategy(self, site_dir, capsys):
        """Test that an unknown strategy in the config file exits with status 1."""
        write(site_dir, 'folio.yml', 'strategy: wiki\n')
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == cli.EXIT_FAILED
        assert 'Unknown build strategy: wiki' in capsys.readouterr().err

    def test_separate_output_directory(self, site_dir):
        """Test building into a directory outside the source tree."""
        source_dir = os.path.join(site_dir, 'src')
        output_dir = os.path.join(site_dir, 'public')
        write(source_dir, 'about.md', '# About\n')

        cli.main(['--source', source_dir, '--output', output_dir])

        assert os.path.exists(os.path.join(output_dir, 'about.html'))

    @pytest.mark.parametrize('starter, expected', [
        ('freeform', os.path.join('.build', 'about.html')),
        ('book', os.path.join('.build', 'index.html')),
        ('blog', os.path.join('.build', 'posts', 'hello-world.html')),
    ])
    def test_init_then_build(self, site_dir, starter, expected):
        """Test that every starter structure builds cleanly."""
        cli.main(['--init', 'yml', '--starter', starter])
        assert os.path.exists(os.path.join(site_dir, 'folio.yml'))

        cli.main([])

        assert os.path.exists(os.path.join(site_dir, expected))
        assert not os.path.exists(os.path.join(site_dir, '.build', '_drafts'))

    def test_init_keeps_existing_files(self, site_dir, capsys):
        """Test that --init never overwrites existing files."""
        write(site_dir, 'global.css', 'mine')
        cli.create_starter_structure('book')

        with open(os.path.join(site_dir, 'global.css'), encoding='utf-8') as f:
            assert f.read() == 'mine'
        assert 'File already exists: global.css' in capsys.readouterr().out

    def test_list_builds(self, site_dir, capsys):
        """Test listing stored build records."""
        write(site_dir, 'a.md', '# A\n')
        cli.main([])
        capsys.readouterr()

        cli.main(['--list-builds'])

        assert 'Freeform Build - ' in capsys.readouterr().out


class TestLogging:
    """Test cases for console logging setup."""

    def make_record(self, message, level=logging.INFO):
        return logging.LogRecord('Folio', level, __file__, 1, message, None, None)

    def test_summary_filter(self):
        """Test that only summary lines and warnings reach the console."""
        summary = SummaryFilter()
        assert summary.filter(self.make_record('Build completed successfully!'))
        assert summary.filter(self.make_record('Loaded 3 pages from _pages'))
        assert not summary.filter(self.make_record('Copied asset: a.png'))
        assert summary.filter(self.make_record('Style file not found: x.css', logging.WARNING))

    def test_log_file_written(self, temp_dir):
        """Test that --log-file writes a debug log."""
        logs_dir = os.path.join(temp_dir, 'logs')
        logger = setup_logging(log_file=True, logs_dir=logs_dir)
        try:
            logger.debug('debug line')
            for handler in logger.handlers:
                handler.flush()
            log_files = os.listdir(logs_dir)
            assert len(log_files) == 1
            with open(os.path.join(logs_dir, log_files[0]), encoding='utf-8') as f:
                assert 'debug line' in f.read()
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
