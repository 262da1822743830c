# ruff: noqa: F401
from .display import Reporter
from .runner import RunnerResults, TestRunner
from .watch import Watcher
