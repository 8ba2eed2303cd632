"""Target predicates: which callables are worth reaching.

Targets are given as JVM-style method signatures such as
``<android.telephony.SmsManager: void sendTextMessage(java.lang.String)>``.
A node matches a definition when it has the same sub-signature
(``void sendTextMessage(java.lang.String)``) and is declared in the
definition's class or one of its subclasses. Names that are not in
signature form match on plain equality.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from typing import NamedTuple

from callpath.core.exceptions import ConfigError
from callpath.core.models import Node

_SIGNATURE = re.compile(r"^<(?P<cls>[^:<>]+):\s+(?P<sub>[^<>]+)>$")


class Signature(NamedTuple):
    declaring_class: str
    sub_signature: str


def parse_signature(text: str) -> Signature | None:
    """Split ``<cls: sub>`` into its parts, or None if not a signature."""
    match = _SIGNATURE.match(text.strip())
    if match is None:
        return None
    return Signature(match["cls"].strip(), match["sub"].strip())


def is_or_subclass(klass: str, superclass: str, superclasses: Mapping[str, str]) -> bool:
    """Whether ``klass`` is ``superclass`` or inherits from it."""
    seen: set[str] = set()
    current: str | None = klass
    while current is not None and current not in seen:
        if current == superclass:
            return True
        seen.add(current)
        current = superclasses.get(current)
    return False


class TargetMatcher:
    """Callable predicate over nodes built from target definitions."""

    def __init__(
        self,
        definitions: Iterable[str],
        superclasses: Mapping[str, str] | None = None,
    ) -> None:
        self._superclasses = dict(superclasses or {})
        self._by_sub_signature: dict[str, list[str]] = {}
        self._plain: set[str] = set()
        for definition in definitions:
            if not isinstance(definition, str) or not definition.strip():
                raise ConfigError(f"Invalid target definition: {definition!r}")
            signature = parse_signature(definition)
            if signature is None:
                if definition.lstrip().startswith("<"):
                    raise ConfigError(f"Malformed target signature: {definition!r}")
                self._plain.add(definition.strip())
            else:
                self._by_sub_signature.setdefault(signature.sub_signature, []).append(
                    signature.declaring_class
                )

    def __call__(self, node: Node) -> bool:
        text = str(node)
        if text in self._plain:
            return True
        signature = parse_signature(text)
        if signature is None:
            return False
        classes = self._by_sub_signature.get(signature.sub_signature, [])
        return any(
            is_or_subclass(signature.declaring_class, cls, self._superclasses) for cls in classes
        )

    def __bool__(self) -> bool:
        return bool(self._plain or self._by_sub_signature)

    def __repr__(self) -> str:
        count = len(self._plain) + sum(len(v) for v in self._by_sub_signature.values())
        return f"TargetMatcher(definitions={count})"


def signature_predicate(
    signatures: Iterable[str],
    superclasses: Mapping[str, str] | None = None,
) -> Callable[[Node], bool]:
    """Predicate matching any of ``signatures``."""
    return TargetMatcher(signatures, superclasses)
