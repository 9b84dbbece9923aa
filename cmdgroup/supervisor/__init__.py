"""
The Supervisor package.
Manages the lifecycle of the group's child processes.

This package contains the Group and Instance classes and their helper modules,
which together handle starting, waiting for, restarting and stopping every
instance of the supervised command.
"""
from .classify import ExitStatus, check_err, decode_exit_status
from .group import Group, GroupConfig, new_group
from .instance import Instance, InstanceState

__all__ = [
    'Group', 'GroupConfig', 'new_group', 'Instance', 'InstanceState',
    'ExitStatus', 'check_err', 'decode_exit_status',
]
