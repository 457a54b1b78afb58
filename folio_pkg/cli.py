#!/usr/bin/env python3
"""
Command-line interface for Folio - static site builder.
"""

import os
import sys
import signal
import asyncio
import argparse
import time
from typing import Dict, Optional, Tuple

from . import __version__
from .disk import Disk, LocalDisk
from .errors import BuildError
from .logging_setup import setup_logging
from .models import BuildStatus, Strategy
from .pipeline import StrategyPipeline
from .records import JsonBuildStore
from .settings import FolioSettings, build_config_from_settings

EXIT_FAILED = 1
EXIT_CANCELLED = 130

GLOBAL_CSS_SAMPLE = """body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  line-height: 1.6;
  max-width: 46rem;
  margin: 2rem auto;
  padding: 0 1rem;
  color: #222;
}

pre {
  background: #f5f5f5;
  padding: 1rem;
  overflow-x: auto;
}
"""

DEFAULT_LAYOUT_SAMPLE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{title}}{{#site.title}} | {{site.title}}{{/site.title}}</title>
  <style>
{{{globalCss}}}
{{{additionalStyles}}}
  </style>
</head>
<body>
  <main>
{{{content}}}
  </main>
{{#additionalScripts}}
  <script>
{{{additionalScripts}}}
  </script>
{{/additionalScripts}}
</body>
</html>
"""

STARTER_FILES: Dict[str, Dict[str, str]] = {
    'freeform': {
        'global.css': GLOBAL_CSS_SAMPLE,
        '_layouts/default.mustache': DEFAULT_LAYOUT_SAMPLE,
        'index.mustache': """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{site.title}}</title>
  <style>
{{{globalCss}}}
  </style>
</head>
<body>
  <h1>{{site.title}}</h1>
  <p>Welcome to your new Folio site. Read the <a href="/about.html">about page</a>.</p>
</body>
</html>
""",
        'about.md': """---
title: About
layout: default
---

# About This Site

This page is written in **Markdown** and wrapped in `_layouts/default.mustache`.

Files and directories starting with an underscore are never published.
""",
        '_drafts/ideas.md': """# Ideas

Drafts live here and are skipped by every build.
""",
    },
    'book': {
        'global.css': GLOBAL_CSS_SAMPLE,
        'book.mustache': """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{site.title}}</title>
  <style>
{{{globalCss}}}
.page-break { page-break-after: always; }
  </style>
</head>
<body>
  <nav>
{{{tableOfContents}}}
  </nav>
{{{content}}}
</body>
</html>
""",
        '_pages/1_introduction.md': """---
title: Introduction
---

# Introduction

Every markdown file in `_pages` becomes one chapter of this book.
""",
        '_pages/2_getting-started.md': """---
title: Getting Started
---

# Getting Started

Chapters are ordered by their numeric prefix: `1_`, `2_`, `10_`.
""",
    },
    'blog': {
        'global.css': GLOBAL_CSS_SAMPLE,
        '_layouts/post.mustache': DEFAULT_LAYOUT_SAMPLE,
        'blog-index.mustache': """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{site.title}}</title>
  <style>
{{{globalCss}}}
  </style>
</head>
<body>
  <h1>{{site.title}}</h1>
  <ul class="posts">
  {{#posts}}
    <li>
      <a href="{{url}}">{{title}}</a>{{#date}} <time>{{date}}</time>{{/date}}
      {{#summary}}<p>{{summary}}</p>{{/summary}}
    </li>
  {{/posts}}
  </ul>
</body>
</html>
""",
        'posts/hello-world.md': """---
title: Hello World
date: 2025-01-01
summary: The first post on this blog.
layout: post
---

# Hello World

Posts are listed newest first on the index page.
""",
    },
}


def create_starter_structure(strategy: str = 'freeform', base_dir: Optional[str] = None) -> None:
    """Create a starter source tree for the given strategy."""
    strategy = Strategy.parse(strategy).value
    base_dir = base_dir or os.getcwd()

    for rel_path, content in STARTER_FILES[strategy].items():
        file_path = os.path.join(base_dir, *rel_path.split('/'))
        if os.path.exists(file_path):
            print(f"File already exists: {rel_path}")
            continue
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {rel_path}")

    print("\n✅ Starter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (folio.yml)")
    print("2. Add your content and templates")
    print("3. Run 'folio' to build your site")


def resolve_disks(source_dir: str, output_dir: str) -> Tuple[Disk, Disk, str]:
    """
    Map the source and output directories onto disks.

    When the output directory lives inside the source directory both share
    one LocalDisk and the output root is the relative location below it.

    Returns:
        (source_disk, output_disk, output_root)
    """
    source_dir = os.path.abspath(os.path.expanduser(source_dir))
    output_dir = os.path.expanduser(output_dir)
    if not os.path.isabs(output_dir):
        output_dir = os.path.join(source_dir, output_dir)
    output_dir = os.path.abspath(output_dir)

    source_disk = LocalDisk(source_dir)
    if os.path.commonpath([source_dir, output_dir]) == source_dir:
        rel = os.path.relpath(output_dir, source_dir).replace(os.sep, '/')
        return source_disk, source_disk, '/' + ('' if rel == '.' else rel)
    return source_disk, LocalDisk(output_dir), '/'


def list_builds(records_dir: str) -> None:
    """Print the stored build records."""
    records = JsonBuildStore(records_dir).list()
    if not records:
        print("No builds recorded yet.")
        return
    for record in records:
        print(f"{record['guid']}  {record['label']}")


async def run_pipeline(pipeline: StrategyPipeline):
    """Run a pipeline with SIGINT mapped to cooperative cancellation."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, pipeline.cancel)
        handler_installed = True
    except (NotImplementedError, ValueError):
        # No signal support on this loop or thread; Ctrl+C interrupts the run instead
        handler_installed = False

    try:
        return await pipeline.run()
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Folio - Static Site Builder')
    parser.add_argument('--source', type=str,
                        help='Source directory to build from')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--strategy', type=str, choices=[s.value for s in Strategy],
                        help='Build strategy')
    parser.add_argument('--records', type=str,
                        help='Directory where build records are stored')
    parser.add_argument('--site-title', type=str, help='Site title available to templates')
    parser.add_argument('--site-url', type=str, help='Site URL available to templates')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Minify CSS and JS assets')
    parser.add_argument('--require-layout', action='store_true', default=None,
                        help='Fail when a markdown page declares no layout')
    parser.add_argument('--verbose', action='store_true',
                        help='Show every build log line')
    parser.add_argument('--log-file', action='store_true',
                        help='Also write a debug log to the logs/ directory')
    parser.add_argument('--list-builds', action='store_true',
                        help='List recorded builds and exit')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter structure')
    parser.add_argument('--starter', type=str, choices=[s.value for s in Strategy], default='freeform',
                        help='Strategy for the starter structure created by --init')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


SETTINGS_ARGS = ('source', 'output', 'strategy', 'records', 'site_title', 'site_url', 'minify', 'require_layout')


def main(argv=None) -> None:
    """Main CLI entry point."""
    args = create_parser().parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = FolioSettings()
        config_path = settings_loader.create_sample_config(args.init, strategy=args.starter)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure(args.starter)

        print("\nYour new Folio site is ready!")
        return

    logger = setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        settings_loader = FolioSettings()
        settings_loader.load_settings()

        args_dict = {k: getattr(args, k) for k in SETTINGS_ARGS}
        final_settings = settings_loader.merge_with_args(args_dict)

        source_dir = os.path.abspath(os.path.expanduser(final_settings['source']))
        records_dir = os.path.join(source_dir, os.path.expanduser(final_settings['records']))

        if args.list_builds:
            list_builds(records_dir)
            return

        source_disk, output_disk, output_root = resolve_disks(source_dir, final_settings['output'])
        config = build_config_from_settings(final_settings, source_root='/', output_root=output_root)
    except (BuildError, ValueError, IOError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    pipeline = StrategyPipeline(
        config,
        source_disk,
        output_disk=output_disk,
        record_store=JsonBuildStore(records_dir),
    )

    start_time = time.time()
    result = asyncio.run(run_pipeline(pipeline))

    if result.status is BuildStatus.CANCELLED:
        sys.exit(EXIT_CANCELLED)
    if not result.success:
        sys.exit(EXIT_FAILED)

    logger.info(f"Build completed in {time.time() - start_time:.6f} seconds.")


if __name__ == '__main__':
    main()
