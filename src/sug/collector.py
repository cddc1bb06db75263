#!/usr/bin/env python

"""Best-effort collection of the environment snapshot sent with each request.

Every probe here may fail (no git, no kubectl, no interactive shell); a
failed probe leaves its field empty and never aborts the request.
"""

import os
import platform
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from .commands import run_command, command_exists, get_current_directory
from .constants import ALIAS_FILES, SHELL_RC_FILES
from .logger import logger
from .models import AliasProbe, Context, K8sContext

OS_RELEASE_PATH = Path("/etc/os-release")
ALIAS_SAMPLE_LINES = 5


def parse_aliases(output: str, aliases: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Parse `alias` output into a name -> command mapping.

    Understands both bash (`alias ll='ls -l'`) and zsh (`ll='ls -l'`) forms.
    """
    if aliases is None:
        aliases = {}

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.startswith("alias "):
            name, sep, value = line[len("alias "):].partition("=")
            if sep:
                aliases[name.strip()] = value.strip().strip("'\"")
        elif "=" in line and not line.startswith("-e"):
            name, _, value = line.partition("=")
            name = name.strip()
            value = value.strip().strip("'\"")
            if name and value and " " not in name:
                aliases[name] = value

    return aliases


def _shell_family(shell: str) -> str:
    if "zsh" in shell:
        return "zsh"
    if "bash" in shell:
        return "bash"
    return ""


class ContextCollector:
    """Gathers user, directory, shell, git, OS, alias and Kubernetes facts"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 runner: Callable[..., Optional[str]] = run_command,
                 which: Callable[[str], bool] = command_exists,
                 directory: Optional[str] = None,
                 platform_name: Optional[str] = None,
                 os_release_path: Path = OS_RELEASE_PATH):
        self.environ = os.environ if environ is None else environ
        self.runner = runner
        self.which = which
        self.directory = directory
        self.platform_name = platform_name or platform.system().lower()
        self.os_release_path = os_release_path
        self.alias_probes: List[AliasProbe] = []

    def collect(self) -> Context:
        """Build a fresh Context snapshot"""
        directory = self.directory or get_current_directory()
        shell = self.environ.get("SHELL", "")
        is_git_repo, git_branch = self.collect_git_info(directory)

        return Context(
            user=self.environ.get("USER") or self.environ.get("USERNAME", ""),
            directory=directory,
            shell=shell,
            terminal=self.environ.get("TERM", ""),
            system=self.collect_system_info(),
            platform=self.platform_name,
            is_git_repo=is_git_repo,
            git_branch=git_branch,
            timestamp=datetime.now(),
            aliases=self.collect_aliases(shell),
            k8s=self.collect_k8s_context(),
        )

    def collect_git_info(self, directory: str):
        """Return (is_git_repo, branch) for the working directory"""
        if not directory or not (Path(directory) / ".git").exists():
            return False, ""

        output = self.runner(["git", "branch", "--show-current"], cwd=directory)
        return True, (output or "").strip()

    def collect_system_info(self) -> str:
        """Human readable OS name"""
        if self.platform_name == "darwin":
            output = self.runner(["sw_vers"])
            if output:
                values = [line.split(":", 1)[1].strip() for line in output.splitlines() if ":" in line]
                return f"macOS {' '.join(values)}"
            return "macOS"

        if self.platform_name == "linux":
            try:
                with open(self.os_release_path, 'r', encoding='utf-8') as f:
                    for line in f:
                        if line.startswith("PRETTY_NAME="):
                            return line[len("PRETTY_NAME="):].strip().strip('"')
            except OSError as e:
                logger.debug(f"Could not read {self.os_release_path}: {e}")
            return "Linux"

        if self.platform_name == "windows":
            return "Windows"

        return self.platform_name

    def collect_aliases(self, shell: str) -> Dict[str, str]:
        """Collect aliases from the interactive shell, rc files and alias files"""
        aliases: Dict[str, str] = {}
        self.alias_probes = []
        family = _shell_family(shell)

        if family:
            self._run_alias_probe("interactive shell", [shell, "-i", "-c", "alias"], aliases)

        if not aliases and family:
            rc_command = f"source {SHELL_RC_FILES[family]} 2>/dev/null; alias 2>/dev/null"
            self._run_alias_probe("rc file", ["sh", "-c", rc_command], aliases)

        home = self.environ.get("HOME", "")
        if home:
            for name in ALIAS_FILES:
                self._read_alias_file(Path(home) / name, aliases)

        if not aliases:
            logger.log_partial_data("aliases", "no aliases found")
        return aliases

    def _run_alias_probe(self, source: str, args: List[str], aliases: Dict[str, str]):
        output = self.runner(args, env=self.environ)
        self._record_alias_probe(source, " ".join(args), output, aliases)

    def _read_alias_file(self, path: Path, aliases: Dict[str, str]):
        try:
            with open(path, 'r', encoding='utf-8', errors='replace') as f:
                lines = [line for line in f if line.strip().startswith("alias ")]
        except OSError:
            self._record_alias_probe("alias file", str(path), None, aliases)
            return
        self._record_alias_probe("alias file", str(path), "".join(lines), aliases)

    def _record_alias_probe(self, source: str, command: str, output: Optional[str],
                            aliases: Dict[str, str]):
        found = parse_aliases(output) if output else {}
        aliases.update(found)
        self.alias_probes.append(AliasProbe(
            source=source,
            command=command,
            succeeded=output is not None,
            output_length=len(output or ""),
            alias_count=len(found),
            sample=tuple(output.splitlines()[:ALIAS_SAMPLE_LINES]) if output else (),
        ))

    def collect_k8s_context(self) -> K8sContext:
        """Current kubectl context, namespace and cluster summary"""
        if not self.which("kubectl"):
            return K8sContext()

        current = self.runner(["kubectl", "config", "current-context"])
        if current is None:
            return K8sContext()

        namespace = self.runner([
            "kubectl", "config", "view", "--minify",
            "--output", "jsonpath={..namespace}",
        ])
        if namespace is not None:
            namespace = namespace.strip() or "default"

        cluster_info = (self.runner(["kubectl", "cluster-info", "--request-timeout=2s"]) or "").strip()

        return K8sContext(
            is_available=True,
            current_context=current.strip(),
            current_namespace=namespace or "",
            cluster_info=cluster_info.splitlines()[0].strip() if cluster_info else "",
        )
