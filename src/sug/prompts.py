#!/usr/bin/env python

"""Prompt templates for completion and prediction requests"""

from itertools import islice
from typing import Dict, List, Sequence

from .constants import (
    COMPLETION_ALIAS_LIMIT, PREDICTION_ALIAS_LIMIT,
    OUTPUT_TRUNCATE_LENGTH, OUTPUT_TRUNCATE_LINES, ERROR_TRUNCATE_LENGTH,
    TRUNCATED_MARKER, OUTPUT_UNAVAILABLE,
)
from .models import Context, HistoryEntry

# The +/= rules below are what interpreter.interpret_response parses.
# Keep both in step.
SYSTEM_PROMPT = """You are a shell command completion assistant for backend developers and Site Reliability Engineers (SRE).
Your task is to either complete the command or provide a new command that you think the user is trying to type.

1. COMMAND COMPLETION: When given a partial command, complete it or suggest a replacement.
2. COMMAND PREDICTION: When given command history and context, predict the next most likely command.

RESPONSE FORMAT RULES:
- For completions: prefix with '+' (e.g., "+mp" to complete "cd /t" -> "cd /tmp")
- For replacements: prefix with '=' (e.g., "=ls -la" to replace "list files")
- For predictions: prefix with '+' (e.g., "+kubectl -n <namespace> logs -f <failed pod>" to debug a failed pod)

CRITICAL REQUIREMENTS:
- Your response MUST be a single line without newlines
- Do not write any leading or trailing characters except if required for the completion to work
- Make sure there are NO explanations, comments, or additional text
- Make sure commands are properly escaped and executable
- Make sure to only include the rest of the completion when completing a command
- Consider the user's shell, OS, and current context
- For predictions, suggest commonly used commands based on patterns
- If the resulting command matches one of the user's aliases, use the alias instead of the full command

When predicting the next command, prioritize the user's previous commands and their output.
"""

PREDICTION_GUIDANCE = [
    "\nBased on the command history patterns, current context, available aliases, and Kubernetes environment, what command is the user most likely to run next?",
    "Consider:",
    "- Command execution patterns and failures",
    "- Directory context and git repository state",
    "- Kubernetes context and common operations",
    "- Available aliases that might be useful",
    "- Time of day and typical workflow patterns",
]


def _alias_lines(aliases: Dict[str, str], limit: int) -> List[str]:
    return [f"  {name}='{command}'" for name, command in islice(aliases.items(), limit)]


def _k8s_summary(context: Context) -> str:
    k8s = context.k8s
    summary = f"context: {k8s.current_context}"
    if k8s.current_namespace:
        summary += f", namespace: {k8s.current_namespace}"
    return summary


def _has_k8s(context: Context) -> bool:
    return context.k8s is not None and context.k8s.is_available


def truncate_output(output: str) -> str:
    """Shorten command output to a few lines or a fixed number of characters"""
    if len(output) <= OUTPUT_TRUNCATE_LENGTH:
        return output.strip()

    lines = output.split("\n")
    if len(lines) > OUTPUT_TRUNCATE_LINES:
        lines = lines[:OUTPUT_TRUNCATE_LINES] + [TRUNCATED_MARKER]
        return "\n".join(lines).strip()

    return output[:OUTPUT_TRUNCATE_LENGTH].strip() + TRUNCATED_MARKER


def truncate_error(error_output: str) -> str:
    if len(error_output) > ERROR_TRUNCATE_LENGTH:
        return error_output[:ERROR_TRUNCATE_LENGTH].strip() + TRUNCATED_MARKER
    return error_output.strip()


def format_history_entry(index: int, entry: HistoryEntry) -> List[str]:
    """Render one history entry as the numbered line plus optional output lines"""
    line = f"{index}. [{entry.timestamp.strftime('%H:%M:%S')}] {entry.command}"
    if entry.exit_code != 0:
        line += f" (exit: {entry.exit_code})"
    if entry.duration:
        line += f" ({entry.duration})"

    lines = [line]
    if entry.output and entry.output != OUTPUT_UNAVAILABLE:
        lines.append(f"   Output: {truncate_output(entry.output)}")
    if entry.error_output:
        lines.append(f"   Error: {truncate_error(entry.error_output)}")
    return lines


def build_completion_prompt(context: Context, user_input: str) -> str:
    """Build the user prompt for completing a partial command"""
    parts = [f"INPUT: {user_input}"]

    if context.directory:
        parts.append(f"DIRECTORY: {context.directory}")

    if context.platform:
        parts.append(f"PLATFORM: {context.platform}")

    if context.is_git_repo:
        git_info = "Git repository"
        if context.git_branch:
            git_info += f" (branch: {context.git_branch})"
        parts.append(f"GIT: {git_info}")

    if context.aliases:
        parts.append("ALIASES:")
        parts.extend(_alias_lines(context.aliases, COMPLETION_ALIAS_LIMIT))

    if _has_k8s(context):
        parts.append(f"K8S: Kubernetes cluster connected ({_k8s_summary(context)})")

    parts.append(f"USER: {context.user}")
    parts.append(f"SHELL: {context.shell}")

    return "\n".join(parts)


def build_prediction_prompt(context: Context, history: Sequence[HistoryEntry]) -> str:
    """Build the user prompt for predicting the next command from history"""
    parts = ["TASK: Predict the next most likely command based on history and context."]

    if history:
        parts.append("\nRECENT HISTORY:")
        for index, entry in enumerate(history, start=1):
            parts.extend(format_history_entry(index, entry))

    parts.append("\nCURRENT CONTEXT:")
    parts.append(f"Directory: {context.directory}")
    parts.append(f"User: {context.user}")
    parts.append(f"Platform: {context.platform}")
    parts.append(f"Shell: {context.shell}")
    parts.append(f"Time: {context.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")

    if context.is_git_repo:
        git_info = "Yes"
        if context.git_branch:
            git_info += f" (branch: {context.git_branch})"
        parts.append(f"Git Repository: {git_info}")
    else:
        parts.append("Git Repository: No")

    if _has_k8s(context):
        parts.append(f"Kubernetes: Yes ({_k8s_summary(context)})")
        if context.k8s.cluster_info:
            parts.append(f"Cluster: {context.k8s.cluster_info}")
    else:
        parts.append("Kubernetes: Not available")

    if context.aliases:
        parts.append("\nAVAILABLE ALIASES:")
        parts.extend(_alias_lines(context.aliases, PREDICTION_ALIAS_LIMIT))

    parts.extend(PREDICTION_GUIDANCE)

    return "\n".join(parts)
