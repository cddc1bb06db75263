#!/usr/bin/env python

import os
from typing import Callable, List, Mapping, Optional, Tuple

from .collector import ContextCollector
from .config import Settings, parse_duration, resolve_provider
from .constants import COMPLETE_TIMEOUT, PREDICT_TIMEOUT
from .exceptions import EmptyResponseError, PartialDataWarning, SugError
from .history import HistoryParser
from .interpreter import interpret_response
from .logger import logger
from .models import AliasProbe, Context, HistoryEntry, Suggestion
from .providers import ProviderClient, create_client


class SugApp:
    """Runs one completion, prediction or debug request"""

    def __init__(self, settings: Settings,
                 environ: Optional[Mapping[str, str]] = None,
                 collector: Optional[ContextCollector] = None,
                 history_parser: Optional[HistoryParser] = None,
                 client_factory: Optional[Callable[..., ProviderClient]] = None):
        self.settings = settings
        self.environ = os.environ if environ is None else environ
        self.collector = collector or ContextCollector(environ=self.environ)
        self.history_parser = history_parser or HistoryParser(environ=self.environ)
        self.client_factory = client_factory or create_client

    def resolve_timeout(self, override: Optional[float], default: str) -> float:
        """Command-line flag, then configured timeout, then the per-command default"""
        if override is not None:
            return override
        if self.settings.timeout is not None:
            return self.settings.timeout
        return parse_duration(default)

    def create_client(self, timeout: float) -> ProviderClient:
        provider, api_key = resolve_provider(self.settings, self.environ)
        logger.debug(f"Using provider {provider.value} (timeout {timeout:g}s)")
        return self.client_factory(
            provider,
            api_key,
            timeout=timeout,
            model=self.settings.models.get(provider.value),
            base_url=self.settings.base_urls.get(provider.value),
        )

    def recent_history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """Recent history, or an empty list when it cannot be read"""
        if limit is None:
            limit = self.settings.history_limit
        try:
            return self.history_parser.get_recent_history(limit)
        except PartialDataWarning as e:
            logger.log_partial_data("history", str(e))
            return []

    def complete(self, user_input: str, timeout: Optional[float] = None) -> Suggestion:
        """Complete, replace or predict from a partially typed command"""
        if not user_input:
            raise SugError("input is required")

        client = self.create_client(self.resolve_timeout(timeout, COMPLETE_TIMEOUT))
        context = self.collector.collect()
        with client:
            raw = client.complete(context, user_input)

        return self._usable(interpret_response(raw))

    def predict(self, history_limit: Optional[int] = None,
                timeout: Optional[float] = None) -> Suggestion:
        """Predict the next command; the reply must carry a + or = prefix"""
        client = self.create_client(self.resolve_timeout(timeout, PREDICT_TIMEOUT))
        context = self.collector.collect()
        history = self.recent_history(history_limit)
        with client:
            raw = client.predict(context, history)

        return self._usable(interpret_response(raw, strict=True))

    def debug_info(self, history_limit: Optional[int] = None) -> Tuple[Context, List[HistoryEntry]]:
        """Everything a request would send, without contacting a provider"""
        return self.collector.collect(), self.recent_history(history_limit)

    def debug_aliases(self) -> Tuple[str, List[AliasProbe]]:
        """Run alias collection and return each step it took"""
        shell = self.environ.get("SHELL", "")
        self.collector.collect_aliases(shell)
        return shell, list(self.collector.alias_probes)

    def _usable(self, suggestion: Suggestion) -> Suggestion:
        # A bare "+" or "=" parses, but there is nothing to splice in
        if suggestion.is_empty:
            raise EmptyResponseError("no usable suggestion in response")
        return suggestion
