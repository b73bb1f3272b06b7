"""
Diff Generator Service - Line-level hunks for reviewing code modifications
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import unified_diff

from models.diff import DiffHunk, DiffSummary, HunkStatus, LineDiff

DEFAULT_LOOKAHEAD = 5
DEFAULT_CONTEXT_LINES = 3


class DiffGenerator:
    """Detect change hunks between two snapshots and apply the accepted ones"""

    def __init__(self, lookahead: int = DEFAULT_LOOKAHEAD, context_lines: int = DEFAULT_CONTEXT_LINES):
        if lookahead < 0:
            raise ValueError("lookahead must be non-negative")
        if context_lines < 0:
            raise ValueError("context_lines must be non-negative")
        self.lookahead = lookahead
        self.context_lines = context_lines

    def calculate_line_diff(self, original_content: str, new_content: str) -> list[DiffHunk]:
        """Walk both texts line by line and group mismatches into hunks.

        Matching lines are skipped as context. A mismatched line ends the
        current run when it reappears within ``lookahead`` lines on the other
        side, so nearby reorderings resync instead of being reported as one
        large replacement. Lines moved further than the window come out as an
        unrelated delete and add.
        """
        original = original_content.split("\n")
        modified = new_content.split("\n")

        hunks: list[DiffHunk] = []
        i = 0
        j = 0

        while i < len(original) or j < len(modified):
            while i < len(original) and j < len(modified) and original[i] == modified[j]:
                i += 1
                j += 1

            if i >= len(original) and j >= len(modified):
                break

            deleted_start = i
            added_start = j

            i += self._run_length(original, i, modified, j)
            j += self._run_length(modified, j, original, i)

            if i == deleted_start and j == added_start:
                # Both lines reappear ahead of each other (a swap inside the
                # window); consume the original line so the walk advances.
                i += 1
                j += self._run_length(modified, j, original, i)

            hunks.append(
                self._build_hunk(len(hunks), original, modified, deleted_start, i, added_start, j)
            )

        return hunks

    def apply_diff_hunks(self, original_content: str, hunks: Iterable[DiffHunk]) -> str:
        """Splice accepted hunks into the original text.

        Hunks are applied bottom-up so earlier offsets stay valid. Hunks must
        come from ``calculate_line_diff`` on the same original text.
        """
        lines = original_content.split("\n")
        accepted = [(index, hunk) for index, hunk in enumerate(hunks) if hunk.status == "accepted"]

        # Equal starts: the later hunk in detection order goes first
        for _, hunk in sorted(accepted, key=lambda item: (item[1].old_start, item[0]), reverse=True):
            start = hunk.old_start - 1
            end = start + len(hunk.deleted_lines)
            lines[start:end] = [line.content for line in hunk.added_lines]

        return "\n".join(lines)

    def render_unified_diff(self, original_content: str, new_content: str, file_path: str) -> str:
        """Generate a standard unified diff for display"""
        original_lines = original_content.splitlines(keepends=True)
        new_lines = new_content.splitlines(keepends=True)

        # Ensure last lines have newlines for proper diff
        if original_lines and not original_lines[-1].endswith("\n"):
            original_lines[-1] += "\n"
        if new_lines and not new_lines[-1].endswith("\n"):
            new_lines[-1] += "\n"

        return "".join(
            unified_diff(
                original_lines,
                new_lines,
                fromfile=f"a/{file_path}",
                tofile=f"b/{file_path}",
                n=self.context_lines,
            )
        )

    def render_inline_preview(self, hunks: Iterable[DiffHunk]) -> str:
        """Render hunks as plain text with +/- markers and their context"""
        result_lines = []

        for hunk in hunks:
            if result_lines:
                result_lines.append("...")
            result_lines.append(
                f"@@ {hunk.id} -{hunk.old_start},{len(hunk.deleted_lines)} "
                f"+{hunk.new_start},{len(hunk.added_lines)} [{hunk.status}]"
            )
            result_lines.extend(f"  {line.content}" for line in hunk.context_before)
            result_lines.extend(f"- {line.content}" for line in hunk.deleted_lines)
            result_lines.extend(f"+ {line.content}" for line in hunk.added_lines)
            result_lines.extend(f"  {line.content}" for line in hunk.context_after)

        return "\n".join(result_lines)

    def _appears_within_window(self, line: str, other: list[str], cursor: int) -> bool:
        return line in other[cursor : cursor + self.lookahead + 1]

    def _run_length(self, source: list[str], start: int, other: list[str], cursor: int) -> int:
        """Count consecutive lines of ``source`` from ``start`` that are genuine changes"""
        pos = start
        while pos < len(source) and (cursor >= len(other) or source[pos] != other[cursor]):
            if self._appears_within_window(source[pos], other, cursor):
                break
            pos += 1
        return pos - start

    def _build_hunk(
        self,
        index: int,
        original: list[str],
        modified: list[str],
        deleted_start: int,
        deleted_end: int,
        added_start: int,
        added_end: int,
    ) -> DiffHunk:
        deleted_lines = [
            LineDiff(line_number=k + 1, type="deleted", content=original[k], old_line_number=k + 1)
            for k in range(deleted_start, deleted_end)
        ]
        added_lines = [
            LineDiff(line_number=k + 1, type="added", content=modified[k], new_line_number=k + 1)
            for k in range(added_start, added_end)
        ]

        before_start = max(0, deleted_start - self.context_lines)
        after_end = min(deleted_end + self.context_lines, len(original))

        return DiffHunk(
            id=f"hunk-{index}",
            old_start=deleted_start + 1,
            old_end=deleted_end,
            new_start=added_start + 1,
            new_end=added_end,
            deleted_lines=deleted_lines,
            added_lines=added_lines,
            context_before=[self._context_line(original, k) for k in range(before_start, deleted_start)],
            context_after=[self._context_line(original, k) for k in range(deleted_end, after_end)],
            status="pending",
        )

    @staticmethod
    def _context_line(lines: list[str], index: int) -> LineDiff:
        return LineDiff(line_number=index + 1, type="unchanged", content=lines[index], old_line_number=index + 1)


# ═══════════════════════════════════════════════════════════════════════════
# Module-level helper functions
# ═══════════════════════════════════════════════════════════════════════════


def calculate_line_diff(
    original_content: str,
    new_content: str,
    lookahead: int = DEFAULT_LOOKAHEAD,
) -> list[DiffHunk]:
    """Convenience function to detect hunks with default context size."""
    return DiffGenerator(lookahead=lookahead).calculate_line_diff(original_content, new_content)


def apply_diff_hunks(original_content: str, hunks: Iterable[DiffHunk]) -> str:
    """Convenience function to apply the accepted hunks to the original text."""
    return DiffGenerator().apply_diff_hunks(original_content, hunks)


def get_diff_summary(hunks: Iterable[DiffHunk]) -> DiffSummary:
    """Count hunks by status and total the changed lines"""
    hunks = list(hunks)
    return DiffSummary(
        total_hunks=len(hunks),
        lines_added=sum(len(h.added_lines) for h in hunks),
        lines_deleted=sum(len(h.deleted_lines) for h in hunks),
        pending=sum(1 for h in hunks if h.status == "pending"),
        accepted=sum(1 for h in hunks if h.status == "accepted"),
        rejected=sum(1 for h in hunks if h.status == "rejected"),
    )


def set_hunk_status(hunks: Iterable[DiffHunk], hunk_id: str, status: HunkStatus) -> list[DiffHunk]:
    """Return a copy of ``hunks`` with one hunk moved to ``status``. Raises KeyError for unknown ids."""
    hunks = list(hunks)
    if not any(h.id == hunk_id for h in hunks):
        raise KeyError(hunk_id)
    return [h.model_copy(update={"status": status}) if h.id == hunk_id else h for h in hunks]


def set_all_status(hunks: Iterable[DiffHunk], status: HunkStatus, only_pending: bool = True) -> list[DiffHunk]:
    """Bulk accept/reject; already reviewed hunks are kept unless only_pending is False"""
    return [
        h.model_copy(update={"status": status}) if (h.status == "pending" or not only_pending) else h
        for h in hunks
    ]
