"""Assertions: path checks and state checks against observed resources."""

from drecipe.job.assertion import Assertable
from drecipe.job.path_check import PathChecker
from drecipe.job.state_check import StateChecker

__all__ = ["Assertable", "PathChecker", "StateChecker"]
