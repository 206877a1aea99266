"""
Preview server and watch mode.

Serves dist/ with live reload and re-runs the stage bound to each changed
source file.
"""
from .app import create_app
from .reload import ReloadHub
from .watch import SupervisorState, WatchBinding, WatchSupervisor, build_bindings, match_bindings

__all__ = [
    'create_app',
    'ReloadHub',
    'SupervisorState',
    'WatchBinding',
    'WatchSupervisor',
    'build_bindings',
    'match_bindings',
]
