#!/usr/bin/env python

"""Data model shared by the collectors, prompt builders and the interpreter"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    GROQ = "groq"

    @classmethod
    def names(cls):
        return [p.value for p in cls]


@dataclass(frozen=True)
class K8sContext:
    """Kubernetes environment as seen by kubectl"""
    is_available: bool = False
    current_context: str = ""
    current_namespace: str = ""
    cluster_info: str = ""


@dataclass(frozen=True)
class Context:
    """Environment snapshot attached to every request"""
    user: str = ""
    directory: str = ""
    shell: str = ""
    terminal: str = ""
    system: str = ""
    platform: str = ""
    is_git_repo: bool = False
    git_branch: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    aliases: Dict[str, str] = field(default_factory=dict)
    k8s: Optional[K8sContext] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class HistoryEntry:
    """One past shell invocation"""
    command: str
    output: str = ""
    error_output: str = ""
    exit_code: int = 0
    timestamp: datetime = field(default_factory=datetime.now)
    duration: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class AliasProbe:
    """One step of alias collection, kept for `sug debug --debug-aliases`"""
    source: str
    command: str
    succeeded: bool
    output_length: int = 0
    alias_count: int = 0
    sample: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sample"] = list(self.sample)
        return data


class SuggestionKind(str, Enum):
    COMPLETION = "completion"
    REPLACEMENT = "replacement"
    PREDICTION = "prediction"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES = {
    SuggestionKind.COMPLETION: "+",
    SuggestionKind.REPLACEMENT: "=",
    SuggestionKind.PREDICTION: "",
}


@dataclass(frozen=True)
class Suggestion:
    """A typed suggestion the caller can splice into a command line.

    COMPLETION text is appended to the current input, REPLACEMENT text
    replaces the whole buffer, PREDICTION text is a standalone command.
    """
    kind: SuggestionKind
    text: str

    @property
    def is_empty(self) -> bool:
        """True when there is nothing usable to apply"""
        return not self.text

    def render(self) -> str:
        """Wire form understood by the shell front-end"""
        return f"{self.kind.prefix}{self.text}"
