#!/usr/bin/env python3
"""
Module: pipeline.py
Purpose: Build orchestration CLI for the static-site asset pipeline.

Profiles run Clean first, then their stages strictly in order. A stage
starts only after the previous one has written all of its outputs; a
fatal stage error stops the run (already written files are kept).

Commands
--------
# Profiles
default : clean, build everything, then watch src/ and serve dist/
dev : like default but skips image optimization
build : clean and build everything, then exit

# Single stages
styles : build dist/css/style.css
html_minify : minify HTML pages into dist/
run_stage : run any stage by id
    Options: <stage_id>, --only (images)

# Introspection
list_stages : list stage modules
list_profiles : list profiles and their stage order

Common options: --root, --host, --port, --quiet, --no-notify

Usage
-----
    sitebuild build
    sitebuild dev --port 3001
    python src/pipeline.py styles --root path/to/site
"""
from __future__ import annotations

import argparse
import importlib
import re
import sys
from pathlib import Path
from typing import Callable, Optional

from config import BuildPaths, server_settings
from stages._models import Profile, StageResult
from utils.errors import StageError, UnknownProfileError, UnknownStageError
from utils.notify import Notifier, get_notifier, set_notifier


# ============================================================
# STAGE AND PROFILE TABLES
# ============================================================

# stage id -> module implementing it
STAGES = {
    'clean': 'stages.s00_clean',
    'scripts': 'stages.s01_scripts',
    'styles': 'stages.s02_styles',
    'resources': 'stages.s03_resources',
    'images': 'stages.s04_images',
    'sprites': 'stages.s05_sprites',
    'markup': 'stages.s06_markup',
}

BUILD_ORDER = ('clean', 'scripts', 'styles', 'resources', 'images', 'sprites', 'markup')

PROFILES = {
    'default': Profile(
        'default', BUILD_ORDER, watch=True,
        description='Full build, then watch and serve',
    ),
    'dev': Profile(
        'dev', tuple(s for s in BUILD_ORDER if s != 'images'), watch=True,
        description='Build without image optimization, then watch and serve',
    ),
    'build': Profile(
        'build', BUILD_ORDER, watch=False,
        description='Full production build, no watch',
    ),
}


def validate_profiles(profiles: dict[str, Profile] = PROFILES) -> bool:
    """
    Check that every profile starts with clean and only names known stages.

    Raises
    ------
    ValueError
        If a profile is invalid
    """
    errors = []
    for name, profile in profiles.items():
        if not profile.stages or profile.stages[0] != 'clean':
            errors.append(f"Profile '{name}' must start with 'clean'")
        if profile.stages.count('clean') > 1:
            errors.append(f"Profile '{name}' runs 'clean' more than once")
        for stage in profile.stages:
            if stage not in STAGES:
                errors.append(f"Profile '{name}' references unknown stage '{stage}'")
    if errors:
        raise ValueError("Profile errors:\n" + "\n".join(f"  - {e}" for e in errors))
    return True


validate_profiles()


# ============================================================
# ORCHESTRATION
# ============================================================

def get_profile(name: str) -> Profile:
    if name not in PROFILES:
        available = ', '.join(PROFILES)
        raise UnknownProfileError(f"Unknown profile '{name}'. Available: {available}")
    return PROFILES[name]


def run_stage(
    stage: str,
    paths: Optional[BuildPaths] = None,
    verbose: bool = True,
    **options,
) -> StageResult:
    """
    Run a single stage by id.

    Parameters
    ----------
    stage : str
        Stage id (e.g., 'styles')
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    **options
        Stage option overrides

    Raises
    ------
    UnknownStageError
        If the stage id is not registered
    StageError
        If the stage fails
    """
    if stage not in STAGES:
        available = ', '.join(STAGES)
        raise UnknownStageError(f"Unknown stage '{stage}'. Available: {available}")
    module = importlib.import_module(STAGES[stage])
    return module.main(paths=paths, verbose=verbose, **options)


def run_profile(
    name: str,
    paths: Optional[BuildPaths] = None,
    verbose: bool = True,
    serve: bool = True,
    host: Optional[str] = None,
    port: Optional[int] = None,
    runner: Callable[..., StageResult] = run_stage,
) -> list[StageResult]:
    """
    Run a profile: each stage in order, then watch mode if the profile has it.

    Parameters
    ----------
    name : str
        Profile name ('default', 'dev' or 'build')
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    serve : bool
        Enter watch mode for profiles that have it (False is used by tests)
    host, port : optional
        Preview server address (defaults from config / sitebuild.yml)
    runner : callable
        Stage runner, ``runner(stage, paths=..., verbose=...)``

    Returns
    -------
    list[StageResult]
        Results of the stages that ran

    Raises
    ------
    StageError
        The first fatal stage error; the remaining stages are skipped
    """
    profile = get_profile(name)
    paths = paths or BuildPaths.from_root()
    notifier = get_notifier()
    results: list[StageResult] = []

    if verbose:
        print(f"Profile '{profile.name}': {' -> '.join(profile.stages)}")
        print()

    for stage in profile.stages:
        try:
            result = runner(stage, paths=paths, verbose=verbose)
        except StageError as e:
            notifier.error(e)
            if verbose:
                skipped = profile.stages[len(results) + 1:]
                if skipped:
                    print(f"Skipped: {', '.join(skipped)}", file=sys.stderr)
            raise
        results.append(result)

    if verbose:
        print("-" * 60)
        print(f"Profile '{profile.name}' complete")
        print("-" * 60)
        for result in results:
            print(f"  {result.summary()}")
        print()

    if profile.watch and serve:
        start_watch(paths, host=host, port=port, verbose=verbose, runner=runner)

    return results


def start_watch(
    paths: BuildPaths,
    host: Optional[str] = None,
    port: Optional[int] = None,
    verbose: bool = True,
    runner: Callable[..., StageResult] = run_stage,
) -> None:
    """Hand off to the watch supervisor; returns only when interrupted."""
    from server.watch import WatchSupervisor

    settings = server_settings(paths.root)
    supervisor = WatchSupervisor(
        paths,
        runner=runner,
        host=host or settings['host'],
        port=port or settings['port'],
        debounce_ms=settings['debounce_ms'],
        verbose=verbose,
    )
    supervisor.start()


# ============================================================
# CLI
# ============================================================

def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--root', '-r',
        default=None,
        help='Project root containing src/ (default: current directory)'
    )
    common.add_argument(
        '--host',
        default=None,
        help='Preview server host (default: 127.0.0.1)'
    )
    common.add_argument(
        '--port', '-p',
        type=int,
        default=None,
        help='Preview server port (default: 3000)'
    )
    common.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress progress output'
    )
    common.add_argument(
        '--no-notify',
        action='store_true',
        help='Do not print error/warning notifications'
    )

    p = argparse.ArgumentParser(
        description='Static-site asset pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    sub = p.add_subparsers(dest='cmd', required=True)

    # Profiles
    for profile in PROFILES.values():
        sub.add_parser(profile.name, parents=[common], help=profile.description)

    # Single stages
    sub.add_parser('styles', parents=[common], help='Build the stylesheet bundle')
    sub.add_parser('html_minify', parents=[common], help='Minify HTML pages')

    p_run = sub.add_parser('run_stage', parents=[common], help='Run a single stage by id')
    p_run.add_argument(
        'stage_name',
        help=f"Stage id ({', '.join(STAGES)})"
    )
    p_run.add_argument(
        '--only',
        nargs='+',
        default=None,
        help='Restrict the images stage to these source files'
    )

    # Introspection
    sub.add_parser('list_stages', parents=[common], help='List stage modules')
    sub.add_parser('list_profiles', parents=[common], help='List profiles')

    return p.parse_args(argv)


def discover_stages() -> list[tuple[str, str, str]]:
    """
    Discover stage modules.

    Returns
    -------
    list[tuple[str, str, str]]
        (stage id, module name, Purpose line) per registered stage
    """
    stages_dir = Path(__file__).parent / 'stages'
    stages = []
    for stage, module_path in STAGES.items():
        module_name = module_path.rsplit('.', 1)[-1]
        path = stages_dir / f'{module_name}.py'
        desc = ''
        if path.exists():
            match = re.search(r'Purpose:\s*(.+?)(?:\n|$)', path.read_text(encoding='utf-8'))
            desc = match.group(1).strip() if match else ''
        stages.append((stage, module_name, desc))
    return stages


def list_available_stages() -> None:
    """List registered stages."""
    print("Available Pipeline Stages")
    print("=" * 60)
    for stage, module_name, desc in discover_stages():
        print(f"  {stage:<10} {module_name:<14} {desc}")
    print()
    print("Run a stage with: sitebuild run_stage <stage_id>")


def list_profiles() -> None:
    """List profiles and their stage order."""
    print("Available Profiles")
    print("=" * 60)
    for profile in PROFILES.values():
        suffix = ' -> watch' if profile.watch else ''
        print(f"  {profile.name:<8} {' -> '.join(profile.stages)}{suffix}")
    print()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point; returns the process exit code."""
    args = parse_args(argv)
    paths = BuildPaths.from_root(args.root)
    verbose = not args.quiet
    if args.no_notify:
        set_notifier(Notifier(enabled=False))

    try:
        if args.cmd in PROFILES:
            run_profile(args.cmd, paths, verbose=verbose, host=args.host, port=args.port)

        elif args.cmd == 'styles':
            run_stage('styles', paths, verbose=verbose)

        elif args.cmd == 'html_minify':
            run_stage('markup', paths, verbose=verbose)

        elif args.cmd == 'run_stage':
            options = {}
            if args.only:
                options['only'] = [Path(p).resolve() for p in args.only]
            run_stage(args.stage_name, paths, verbose=verbose, **options)

        elif args.cmd == 'list_stages':
            list_available_stages()

        elif args.cmd == 'list_profiles':
            list_profiles()

    except UnknownStageError as e:
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        return 1
    except StageError as e:
        if args.cmd not in PROFILES:
            get_notifier().error(e)
        return 1
    except KeyboardInterrupt:
        print("\nStopped.")
        return 0

    return 0


if __name__ == '__main__':
    sys.exit(main())
