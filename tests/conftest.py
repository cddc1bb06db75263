from datetime import datetime

import pytest

from sug.models import Context, HistoryEntry, K8sContext


@pytest.fixture()
def bare_context() -> Context:
    return Context(
        user="dev",
        directory="/home/dev/project",
        shell="/bin/zsh",
        terminal="xterm-256color",
        system="Ubuntu 24.04 LTS",
        platform="linux",
        timestamp=datetime(2024, 5, 1, 9, 30, 0),
    )


@pytest.fixture()
def rich_context() -> Context:
    return Context(
        user="dev",
        directory="/home/dev/project",
        shell="/bin/zsh",
        terminal="xterm-256color",
        system="Ubuntu 24.04 LTS",
        platform="linux",
        is_git_repo=True,
        git_branch="main",
        timestamp=datetime(2024, 5, 1, 9, 30, 0),
        aliases={f"a{i}": f"command {i}" for i in range(20)},
        k8s=K8sContext(
            is_available=True,
            current_context="staging",
            current_namespace="payments",
            cluster_info="Kubernetes control plane is running at https://10.0.0.1",
        ),
    )


@pytest.fixture()
def history():
    return [
        HistoryEntry(command="git status", timestamp=datetime(2024, 5, 1, 9, 0, 0)),
        HistoryEntry(
            command="make test",
            exit_code=2,
            duration="12s",
            error_output="E" * 150,
            timestamp=datetime(2024, 5, 1, 9, 5, 7),
        ),
    ]


class FakeCollector:
    def __init__(self, context: Context):
        self.context = context

    def collect(self) -> Context:
        return self.context


class FakeHistoryParser:
    def __init__(self, entries=None, error=None):
        self.entries = entries or []
        self.error = error
        self.limits = []

    def get_recent_history(self, limit):
        self.limits.append(limit)
        if self.error:
            raise self.error
        if limit <= 0:
            return []
        return self.entries[-limit:]


class FakeClient:
    def __init__(self, reply: str):
        self.reply = reply
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def complete(self, context, user_input):
        self.calls.append(("complete", user_input))
        return self.reply

    def predict(self, context, history):
        self.calls.append(("predict", list(history)))
        return self.reply


class FakeClientFactory:
    def __init__(self, reply: str):
        self.client = FakeClient(reply)
        self.requests = []

    def __call__(self, provider, api_key, timeout, model=None, base_url=None):
        self.requests.append({
            "provider": provider,
            "api_key": api_key,
            "timeout": timeout,
            "model": model,
            "base_url": base_url,
        })
        return self.client
