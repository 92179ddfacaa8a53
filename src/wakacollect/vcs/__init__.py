"""Version-control helpers.

Exports:
    make_resolver - Build the branch resolver for a GitOptions value
    GitCliResolver / HeadFileResolver / DisabledResolver - Strategies
    parse_head - Parse the text of a .git/HEAD file
"""

from wakacollect.vcs.branch import (
    BranchLookup,
    BranchResolver,
    CachingResolver,
    DisabledResolver,
    GitCliResolver,
    GitOptions,
    HeadFileResolver,
    find_head_file,
    make_resolver,
    parse_head,
)

__all__ = [
    "BranchLookup",
    "BranchResolver",
    "CachingResolver",
    "DisabledResolver",
    "GitCliResolver",
    "GitOptions",
    "HeadFileResolver",
    "find_head_file",
    "make_resolver",
    "parse_head",
]
