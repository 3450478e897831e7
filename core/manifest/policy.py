"""
Module 01 - Core Model & Codec
File: policy.py

Purpose: Publish policy enumeration shared by the manifest model,
the import resolver and the exporter.
"""

from __future__ import annotations

from enum import Enum


__all__ = ["PublishPolicy"]


class PublishPolicy(str, Enum):
    """
    Governs whether an entry's resource is created on import.

    ALWAYS      create a new resource even if an equivalent one exists
    IF_MISSING  reference an existing equivalent resource, else create one
    NEVER       never create or reference a resource
    """

    ALWAYS = "always"
    IF_MISSING = "ifMissing"
    NEVER = "never"

    @classmethod
    def default(cls) -> "PublishPolicy":
        return cls.IF_MISSING

    def to_xml(self) -> str:
        """XML attribute literal for this policy."""
        return self.value

    @classmethod
    def from_xml(cls, text: str | None) -> "PublishPolicy":
        """
        Parse a policy permissively.

        Accepts the XML literal or the member name, ignoring case.
        Anything unrecognized yields the default policy.
        """
        if not text or not text.strip():
            return cls.default()

        candidate = text.strip().lower()
        for policy in cls:
            if candidate in (policy.value.lower(), policy.name.lower()):
                return policy
        return cls.default()
