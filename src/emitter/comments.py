"""Comment and token side-tables consumed while generating code."""

from __future__ import annotations

from bisect import bisect_left
from typing import Any, Dict, Iterable, List, Optional

Comment = Dict[str, Any]

_NO_OFFSET = float("inf")


def comment_start(comment: Comment) -> float:
    return (comment.get("range") or [_NO_OFFSET])[0]


def comment_end(comment: Comment) -> Optional[int]:
    rng = comment.get("range")
    return rng[1] if rng else None


def comment_text(comment: Comment) -> str:
    """Source form of an esprima comment (`//...` or `/*...*/`)."""
    value = comment.get("value", "")
    if comment.get("type") == "Line":
        return f"//{value}"
    return f"/*{value}*/"


class CommentQueue:
    """
    The comments of the original text, handed out in source order.

    Each comment is returned by exactly one `take_*` call; whatever is left
    when generation finishes comes out of `take_rest()`.
    """

    def __init__(
        self,
        comments: Iterable[Comment] = (),
        tokens: Iterable[Dict[str, Any]] = (),
        source: str = "",
    ):
        self._comments: List[Comment] = sorted(comments, key=comment_start)
        self._cursor = 0
        self._token_starts = sorted(
            token["range"][0] for token in tokens if token.get("range")
        )
        self._source = source or ""

    def __len__(self) -> int:
        return len(self._comments) - self._cursor

    def peek(self) -> Optional[Comment]:
        if self._cursor < len(self._comments):
            return self._comments[self._cursor]
        return None

    def take_before(self, offset: int) -> List[Comment]:
        """Every pending comment starting before `offset`."""
        taken: List[Comment] = []
        while self._cursor < len(self._comments):
            comment = self._comments[self._cursor]
            if comment_start(comment) >= offset:
                break
            taken.append(comment)
            self._cursor += 1
        return taken

    def take_trailing(self, end: int) -> Optional[Comment]:
        """
        The next comment if it trails code ending at `end` on the same line.

        A comment only trails when nothing but whitespace separates it from
        `end`: no line break in the text and no token in the token table.
        """
        comment = self.peek()
        if comment is None:
            return None
        start = comment_start(comment)
        if start == _NO_OFFSET or start < end:
            return None
        if "\n" in self._source[end:int(start)]:
            return None
        index = bisect_left(self._token_starts, end)
        if index < len(self._token_starts) and self._token_starts[index] < start:
            return None
        self._cursor += 1
        return comment

    def take_rest(self) -> List[Comment]:
        taken = self._comments[self._cursor:]
        self._cursor = len(self._comments)
        return taken


__all__ = ["Comment", "CommentQueue", "comment_end", "comment_start", "comment_text"]
