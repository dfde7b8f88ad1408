"""
Members Module

This module handles the member records the ledger computes balances for.

Data Model:
    Members stored on the group document: groups/{group_id}
    Field `members`: list of dicts with:
        - id: string (unique, stable)
        - name: string (display only)
        - email: string (display only)

Functions:
    decode_members: Decode the raw `members` field of a group document.
    member_names: Build a member_id -> display name lookup.
"""

import logging
from typing import Optional


logger = logging.getLogger(__name__)


class Member:
    """
    Represents a member of a group.

    Attributes:
        member_id (str): Unique, stable identifier.
        name (str): Display name.
        email (str): Contact email.
    """

    def __init__(self, member_id: str, name: str = "", email: str = ""):
        self.member_id = member_id
        self.name = name
        self.email = email

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.member_id

    def to_dict(self) -> dict:
        """Convert member to dictionary for Firestore storage."""
        return {
            "id": self.member_id,
            "name": self.name,
            "email": self.email
        }

    @classmethod
    def from_dict(cls, data: dict) -> Optional["Member"]:
        """Create a Member from a dictionary, or None if it has no usable id."""
        member_id = data.get("id")
        if not isinstance(member_id, str) or not member_id.strip():
            return None
        return cls(
            member_id=member_id,
            name=data.get("name") or "",
            email=data.get("email") or ""
        )

    def __repr__(self) -> str:
        return f"Member(id='{self.member_id}', name='{self.name}')"


def decode_members(raw) -> list[Member]:
    """
    Decode the `members` field of a group document.

    Args:
        raw: Value of the field; anything but a list decodes to no members.

    Returns:
        list[Member]: Members in stored order. Entries that are not dicts or
        carry no id are skipped, and a repeated id keeps its first entry.
    """
    if not isinstance(raw, list):
        return []

    members = []
    seen = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        member = Member.from_dict(item)
        if member is None:
            logger.debug("Skipping member entry without id: %r", item)
            continue
        if member.member_id in seen:
            continue
        seen.add(member.member_id)
        members.append(member)

    return members


def member_names(members: list[Member]) -> dict:
    """Return a member_id -> display name lookup."""
    return {member.member_id: member.display_name for member in members}
