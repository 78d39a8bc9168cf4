"""Repository access, domain commands and command execution"""

from stackview.vcs.commands import CommandDispatchError, DomainAction, JujutsuDispatcher
from stackview.vcs.executor import CommandExecutor
from stackview.vcs.repository import StackRepository
from stackview.vcs.stats import StatsCollector

__all__ = [
    "CommandDispatchError",
    "CommandExecutor",
    "DomainAction",
    "JujutsuDispatcher",
    "StackRepository",
    "StatsCollector",
]
