"""Helpers deriving resource type and name from Terraform addresses."""

from __future__ import annotations

import re

_ACTION_SUFFIX = re.compile(r"\s+will be\s+(created|updated|deleted).*$", re.IGNORECASE)
_MODULE_RESOURCE = re.compile(r"^(?:module\.[^.]+\.)+([^.]+)\.([^.]+)")
_INDEX_SUFFIX = re.compile(r"^(.+)\[.+\]$")


def strip_action_suffix(address: str) -> str:
    """Remove a trailing ``will be created``-style narrative from an address."""

    return _ACTION_SUFFIX.sub("", address)


def extract_resource_type(address: str) -> str:
    """Return the resource type portion of ``address``.

    >>> extract_resource_type("module.network.aws_subnet.private")
    'aws_subnet'
    >>> extract_resource_type("aws_instance.web[0]")
    'aws_instance'
    """

    if address.startswith("module."):
        match = _MODULE_RESOURCE.match(address)
        if match:
            return match.group(1)

    parts = address.split(".")
    if len(parts) < 2:
        return address
    return parts[0]


def extract_resource_name(address: str) -> str:
    """Return the local resource name, without module path or index."""

    if address.startswith("module."):
        match = _MODULE_RESOURCE.match(address)
        if match:
            return _strip_index(match.group(2))

    parts = address.split(".")
    if len(parts) < 2:
        return address
    return _strip_index(".".join(parts[1:]))


def _strip_index(name: str) -> str:
    match = _INDEX_SUFFIX.match(name)
    if match:
        return match.group(1)
    return name


__all__ = ["extract_resource_name", "extract_resource_type", "strip_action_suffix"]
