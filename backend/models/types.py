"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where MovieID expected).

Uses TypeAlias for simple structural types.
"""

from typing import Literal, NewType, TypeAlias

# ID types using NewType for type safety
UserID = NewType("UserID", str)
MovieID = NewType("MovieID", int)  # TMDB movie id

# Structural aliases using TypeAlias
FollowType: TypeAlias = Literal["theatrical", "streaming"]
DateString: TypeAlias = str  # YYYY-MM-DD format
EmailAddress: TypeAlias = str
