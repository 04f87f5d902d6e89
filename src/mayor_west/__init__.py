"""
Mayor West Mode - scaffolding and policy gates for autonomous agent workflows.

Writes the configuration, workflow, and template files a repository needs so
that a coding agent and a CI runner can coordinate autonomous task execution,
and evaluates proposed changes against a declarative policy document.
"""

__version__ = "1.0.0"
