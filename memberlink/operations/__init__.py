"""Operations package for memberlink.

This package contains the apply step that commits confirmed matches to the
CRM and the member store collaborators it writes through.
"""

from memberlink.operations.apply_service import (
    ApplyService,
    build_update_fields,
    select_auto_apply,
    select_for_review,
)
from memberlink.operations.member_store import JsonMemberStore, MemberUpdater

__all__ = [
    "ApplyService",
    "build_update_fields",
    "select_auto_apply",
    "select_for_review",
    "JsonMemberStore",
    "MemberUpdater",
]
