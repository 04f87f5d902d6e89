"""
File content generators.

Each generator is a pure function of SetupOptions and returns the complete
file text. Workflow templates contain GitHub expressions (``${{ ... }}``),
so values are substituted with ``<<name>>`` markers instead of str.format.
"""

from __future__ import annotations

import json

from mayor_west.policies.defaults import COMMIT_FORMAT_PATTERN, generate_default_policy
from mayor_west.scaffold.models import SetupOptions


def _render(template: str, **values: object) -> str:
    for name, value in values.items():
        template = template.replace(f"<<{name}>>", str(value))
    return template


# =============================================================================
# .vscode/settings.json
# =============================================================================


def render_vscode_settings(options: SetupOptions) -> str:
    """Agent auto-approval settings with destructive commands denied."""
    settings = {
        "chat.tools.autoApprove": True,
        "chat.tools.terminal.autoApprove": {
            "/^git\\s+(commit|push)\\b/": True,
            "/^(npm|pnpm|yarn)\\s+(test|lint|build)\\b/": True,
            "/^(npm|pnpm|yarn)\\s+run\\s+(test|lint|format)\\b/": True,
            "/^(pytest|ruff|mypy)\\b/": True,
            "rm": False,
            "kill": False,
            "rm -rf": False,
            "git reset --hard": False,
        },
        "chat.agent.iterationLimit": options.iteration_limit,
        "chat.agent.maxTokensPerIteration": 4000,
        "chat.agent.slowMode": False,
    }
    return json.dumps(settings, indent=2) + "\n"


# =============================================================================
# .github/agents/mayor-west-mode.md
# =============================================================================

AGENT_INSTRUCTIONS = """\
# Mayor West Mode - Agent Protocol

You are operating in **Mayor West Mode**: confident, autonomous, and accountable.

## Mission

When assigned an issue labelled `mayor-task`:
1. Read the issue and extract every acceptance criterion
2. Implement the change following the repository's existing conventions
3. Run the project's test suite and fix failures before committing
4. Commit with a message in the required format
5. Open or update a pull request that closes the issue

## Commit Messages

- Subject must match `<<commit_pattern>>`
- Example: `[MAYOR] Add authentication flow: implement JWT verification`
- Reference the issue in the body: `Closes #123`

## Policy

The file `.github/mayor-west.yml` defines what you may change. Pull requests
that touch blocked paths, exceed size limits or fail required checks are not
merged automatically and wait for human review. Never edit the policy file
or workflow definitions yourself.

## Failure Recovery

1. **Test failure**: read the error, fix the code, re-run tests, commit again
2. **Lint failure**: run the project's formatter, re-run lint, commit
3. **Merge conflict**: rebase onto the default branch and resolve conflicts

**You have <<iteration_limit>> iterations maximum.** Stop and report on the
issue if the task cannot be completed within that budget.

## Safety Constraints

- **Never** run `rm -rf`, `kill` or `git reset --hard`
- **Never** force-push to the default branch
- **Always** run tests before committing
- **Always** deliver work through a pull request
"""


def render_agent_instructions(options: SetupOptions) -> str:
    return _render(
        AGENT_INSTRUCTIONS,
        commit_pattern=COMMIT_FORMAT_PATTERN,
        iteration_limit=options.iteration_limit,
    )


# =============================================================================
# .github/workflows/mayor-west-auto-merge.yml
# =============================================================================

AUTO_MERGE_WORKFLOW = """\
name: Mayor West Auto-Merge

on:
<<triggers>>

permissions:
  contents: read
  pull-requests: write

jobs:
  auto-merge:
    runs-on: ubuntu-latest
    if: github.event_name == 'workflow_dispatch' || contains(github.actor, 'copilot')

    steps:
      - name: Enable auto-merge
        uses: actions/github-script@v7
        with:
          github-token: ${{ secrets.GITHUB_TOKEN }}
          script: |
            const pr = context.payload.pull_request;
            if (!pr) {
              console.log('No pull request in event payload; nothing to do');
              return;
            }
            try {
              await github.graphql(`
                mutation($id: ID!) {
                  enablePullRequestAutoMerge(input: {
                    pullRequestId: $id
                    mergeMethod: <<merge_strategy>>
                  }) {
                    pullRequest { id }
                  }
                }
              `, { id: pr.node_id });
              console.log(`Auto-merge enabled for PR #${pr.number}`);
            } catch (error) {
              console.log(`Auto-merge could not be enabled: ${error.message}`);
              console.log('Check that "Allow auto-merge" and branch protection are configured.');
            }
"""

_AUTO_MERGE_TRIGGERS = """\
  pull_request:
    types: [opened, synchronize, reopened]
  workflow_dispatch:"""

_MANUAL_TRIGGER = """\
  workflow_dispatch:"""


def render_auto_merge_workflow(options: SetupOptions) -> str:
    """Auto-merge workflow. With auto-merge disabled it only runs on manual dispatch."""
    return _render(
        AUTO_MERGE_WORKFLOW,
        triggers=_AUTO_MERGE_TRIGGERS if options.enable_auto_merge else _MANUAL_TRIGGER,
        merge_strategy=options.merge_strategy,
    )


# =============================================================================
# .github/workflows/mayor-west-orchestrator.yml
# =============================================================================

ORCHESTRATOR_WORKFLOW = """\
name: Mayor West Orchestrator

on:
  workflow_dispatch:
  pull_request:
    types: [closed]
  schedule:
    - cron: '*/15 * * * *'

permissions:
  contents: write
  issues: write
  pull-requests: write

jobs:
  assign-next-task:
    runs-on: ubuntu-latest
    steps:
      - name: Assign the oldest unassigned mayor-task
        env:
          GH_TOKEN: ${{ secrets.GH_AW_AGENT_TOKEN || secrets.GITHUB_TOKEN }}
          GH_REPO: ${{ github.repository }}
        run: |
          issue=$(gh issue list --label mayor-task --state open --search "no:assignee sort:created-asc" \\
            --limit 1 --json number --jq '.[0].number')
          if [ -z "$issue" ]; then
            echo "No unassigned mayor-task issues"
            exit 0
          fi
          gh issue edit "$issue" --add-assignee "@copilot"
          echo "Assigned issue #$issue"

  gate-agent-prs:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4

      - name: Check autonomous mode
        id: mode
        run: |
          if grep -Eq '^enabled:[[:space:]]*true' .github/mayor-west.yml; then
            echo "enabled=true" >> "$GITHUB_OUTPUT"
          else
            echo "Mayor West Mode is paused"
            echo "enabled=false" >> "$GITHUB_OUTPUT"
          fi

      - uses: actions/setup-python@v5
        if: steps.mode.outputs.enabled == 'true'
        with:
          python-version: '3.12'

      - name: Evaluate policy and merge
        if: steps.mode.outputs.enabled == 'true'
        env:
          GH_TOKEN: ${{ secrets.GH_AW_AGENT_TOKEN || secrets.GITHUB_TOKEN }}
          GH_REPO: ${{ github.repository }}
        run: |
          pip install --quiet mayor-west-mode
          for pr in $(gh pr list --state open --json number,author,isDraft \\
              --jq '.[] | select(.isDraft | not) | select(.author.login | test("copilot")) | .number'); do
            gh pr view "$pr" --json files,title,body,labels,commits > "pr-$pr.json"
            if mayor-west policy test --github-pr --changes "pr-$pr.json" --format markdown > "verdict-$pr.md"; then
              gh pr merge "$pr" --<<merge_method>> --delete-branch
              gh pr comment "$pr" --body "Merged autonomously by Mayor West Orchestrator (<<merge_method>>)."
            else
              gh pr comment "$pr" --body-file "verdict-$pr.md"
            fi
          done
"""


def render_orchestrator_workflow(options: SetupOptions) -> str:
    return _render(
        ORCHESTRATOR_WORKFLOW,
        merge_method=options.merge_method,
    )


# =============================================================================
# .github/ISSUE_TEMPLATE/mayor-task.md
# =============================================================================

TASK_TEMPLATE = """\
---
name: Mayor Task
about: Create a task for autonomous execution
title: "[MAYOR] "
labels: mayor-task
---

## Summary

One sentence describing what needs to be done.

## Context

Why is this task needed? What problem does it solve?

## Acceptance Criteria

- [ ] First specific, testable requirement
- [ ] Tests cover the new behaviour
- [ ] Documentation updated where relevant

## Technical Constraints

Existing modules, patterns or libraries the change must use. Note that new
dependencies require human approval.

## Files Likely to Change

- `path/to/file` - reason

## Definition of Done

- [ ] All acceptance criteria implemented
- [ ] Test suite passes
- [ ] Lint passes
- [ ] Pull request opened and linked to this issue
"""


def render_task_template(options: SetupOptions) -> str:
    return TASK_TEMPLATE


# =============================================================================
# .github/mayor-west.yml
# =============================================================================


def render_policy_file(options: SetupOptions) -> str:
    """Default policy with the chosen protected paths blocked."""
    return generate_default_policy(
        strict=options.strict_policy,
        categories=options.policy_categories,
        protected_paths=options.protected_paths,
        iteration_limit=options.iteration_limit,
        merge_method=options.merge_method,
    )
