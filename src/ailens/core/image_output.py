"""Normalisation of image-provider output to a single URL.

Replicate models return their output in several shapes depending on the SDK
version and the model's output schema:

- a bare URL string,
- a list of results (the first one is used),
- a ``FileOutput``-style object exposing ``url`` as a method or attribute,
- a plain mapping ``{"url": "..."}``.

:func:`classify_output` tags the raw value with an :class:`OutputKind` and
each kind is decoded by its own handler, so the set of supported shapes is
closed and explicit.  Anything else decodes to ``None``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class OutputKind(Enum):
    STRING = "string"
    SEQUENCE = "sequence"
    ACCESSOR = "accessor"
    MAPPING = "mapping"
    EMPTY = "empty"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class DecodedOutput:
    """A tagged provider output and the URL extracted from it, if any."""

    kind: OutputKind
    url: str | None


def _kind_of(raw: Any) -> OutputKind:
    if raw is None:
        return OutputKind.EMPTY
    if isinstance(raw, str):
        return OutputKind.STRING if raw.strip() else OutputKind.EMPTY
    if isinstance(raw, Mapping):
        return OutputKind.MAPPING
    if isinstance(raw, (list, tuple)):
        return OutputKind.SEQUENCE if raw else OutputKind.EMPTY
    if getattr(raw, "url", None) is not None:
        return OutputKind.ACCESSOR
    return OutputKind.UNRECOGNIZED


def _url_text(value: Any) -> str | None:
    # url values may be str, httpx.URL, or anything else with a useful str().
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _decode_string(raw: str) -> str | None:
    return raw.strip()


def _decode_sequence(raw: list | tuple) -> str | None:
    return classify_output(raw[0]).url


def _decode_accessor(raw: Any) -> str | None:
    url = raw.url
    if callable(url):
        url = url()
    return _url_text(url)


def _decode_mapping(raw: Mapping) -> str | None:
    return _url_text(raw.get("url"))


def _decode_nothing(raw: Any) -> str | None:
    return None


_DECODERS: dict[OutputKind, Callable[[Any], str | None]] = {
    OutputKind.STRING: _decode_string,
    OutputKind.SEQUENCE: _decode_sequence,
    OutputKind.ACCESSOR: _decode_accessor,
    OutputKind.MAPPING: _decode_mapping,
    OutputKind.EMPTY: _decode_nothing,
    OutputKind.UNRECOGNIZED: _decode_nothing,
}


def classify_output(raw: Any) -> DecodedOutput:
    """Tag *raw* provider output and decode its URL.

    Args:
        raw: Whatever the image provider returned.

    Returns:
        :class:`DecodedOutput` with the detected kind and the URL (or
        ``None`` when the shape carries no usable URL).
    """
    kind = _kind_of(raw)
    return DecodedOutput(kind=kind, url=_DECODERS[kind](raw))


def extract_image_url(raw: Any) -> str | None:
    """Return the image URL carried by *raw*, or ``None``."""
    return classify_output(raw).url
