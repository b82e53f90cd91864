"""Naming variant policies.

Artifacts cross-built for several runtime major versions are published once per
variant under a suffixed name (``my-service_2.13``, ``my-service_3``). A policy
describes how to recognise such a name and which suffixes to try, newest first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class NamingVariantPolicy:
    name: str
    pattern: Pattern[str]
    candidates: Tuple[str, ...]
    prefix: str = "_"

    def matches(self, artifact: str) -> bool:
        return bool(self.pattern.search(artifact))

    def suffix_for(self, variant: str) -> str:
        variant = variant.strip()
        if variant.startswith(self.prefix):
            return variant
        return f"{self.prefix}{variant}"

    def substitute(self, artifact: str, suffix: str) -> str:
        # a plain string replacement avoids backslash expansion in ``re.sub``
        return self.pattern.sub(lambda _match: suffix, artifact, count=1)

    def candidate_names(self, artifact: str, variant: Optional[str] = None) -> List[str]:
        """Names to query for ``artifact``, in the order they should be tried."""
        if not self.matches(artifact):
            return [artifact]
        suffixes = [self.suffix_for(variant)] if variant else list(self.candidates)
        return [self.substitute(artifact, suffix) for suffix in suffixes]


# Scala cross-builds; assumes a newer major always supersedes an older one.
SCALA_VARIANTS = NamingVariantPolicy(
    name="scala",
    pattern=re.compile(r"_(2\.\d{2}|3)$"),
    candidates=("_3", "_2.13", "_2.12", "_2.11"),
)

# Resolves names exactly as given.
NO_VARIANTS = NamingVariantPolicy(
    name="none",
    pattern=re.compile(r"(?!)"),
    candidates=(),
)
