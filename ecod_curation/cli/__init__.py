"""
Command-line interface for the ECOD curation toolkit.

Commands are organized into groups, one module per group. Each group module
defines a COMMANDS dictionary, a setup_parser(parser) function and a
run_command(args) function.
"""

import logging
from importlib import import_module
from types import ModuleType
from typing import Dict

__all__ = ['COMMAND_GROUPS', 'get_command_groups', 'get_commands', 'load_group']

# Command groups and their descriptions
COMMAND_GROUPS = {
    'assess': 'Score cluster metrics without a database',
    'clustersets': 'Browse cluster sets',
    'clusters': 'Browse, validate and export clusters',
    'reclass': 'Review clusters flagged for reclassification',
    'dashboard': 'Curation overview and priorities',
    'search': 'Search domains',
    'proteins': 'Look up proteins and their domains',
    'db': 'Database management commands',
}

logger = logging.getLogger("ecod_curation.cli")


def get_command_groups() -> Dict[str, str]:
    """Return all available command groups and their descriptions"""
    return COMMAND_GROUPS


def load_group(group: str) -> ModuleType:
    """Import the module implementing a command group"""
    if group not in COMMAND_GROUPS:
        raise ValueError(f"Unknown command group: {group}")
    return import_module(f"ecod_curation.cli.{group}")


def get_commands(group: str) -> Dict[str, str]:
    """Return all commands available in a specific group"""
    module = load_group(group)
    if not hasattr(module, 'COMMANDS'):
        logger.warning(f"Command group '{group}' does not define a COMMANDS dictionary")
        return {}
    return module.COMMANDS
