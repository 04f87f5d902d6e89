"""
CLI commands for Mayor West Mode.
"""

from mayor_west.cli.policy import (
    policy_dry_run_command,
    policy_init_command,
    policy_test_command,
    policy_validate_command,
)
from mayor_west.cli.setup import setup_command
from mayor_west.cli.status import status_command
from mayor_west.cli.toggle import pause_command, resume_command
from mayor_west.cli.verify import verify_command

__all__ = [
    "setup_command",
    "verify_command",
    "status_command",
    "policy_validate_command",
    "policy_test_command",
    "policy_dry_run_command",
    "policy_init_command",
    "pause_command",
    "resume_command",
]
