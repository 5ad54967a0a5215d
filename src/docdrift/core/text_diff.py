"""Line-level classification of raw text diffs."""

import re
from collections import Counter
from difflib import SequenceMatcher

from docdrift.core.models import ChangeCounts, TextDiffResult

_WHITESPACE_RUN = re.compile(r"\s+")

_DECLARATION_KEYWORDS = re.compile(
    r"\b(class|interface|trait|enum|function|def|extends|implements|"
    r"public|protected|private|static|abstract|final)\b",
    re.IGNORECASE,
)
_IMPORT_STATEMENT = re.compile(r"^(namespace|use|import|from\s+\S+\s+import)\b", re.IGNORECASE)

_LINE_COMMENT_PREFIXES = ("//", "#")
_DOCSTRING_DELIMITERS = ('"""', "'''")


def _normalize(line: str) -> str:
    return _WHITESPACE_RUN.sub(" ", line).strip()


def _comment_mask(lines: list[str]) -> list[bool]:
    """Mark which lines are comments, tracking block comment and docstring state."""
    mask = []
    block_end: str | None = None
    for line in lines:
        stripped = line.strip()
        if block_end is not None:
            mask.append(True)
            if block_end in stripped:
                block_end = None
            continue

        if stripped.startswith("/*"):
            mask.append(True)
            if "*/" not in stripped[2:]:
                block_end = "*/"
        elif stripped.startswith("#["):
            mask.append(False)
        elif stripped.startswith(_LINE_COMMENT_PREFIXES) or stripped.startswith("*"):
            mask.append(True)
        elif stripped.startswith(_DOCSTRING_DELIMITERS):
            delimiter = stripped[:3]
            mask.append(True)
            if stripped.count(delimiter) == 1:
                block_end = delimiter
        else:
            mask.append(False)
    return mask


def is_declaration_line(line: str) -> bool:
    """True when a code line touches a declaration boundary."""
    stripped = line.strip()
    return bool(_DECLARATION_KEYWORDS.search(stripped) or _IMPORT_STATEMENT.match(stripped))


class TextDiffClassifier:
    """Classifies a change as whitespace-only, comment-only, structural or semantic."""

    def classify(self, old_text: str, new_text: str) -> TextDiffResult:
        old_lines = old_text.splitlines()
        new_lines = new_text.splitlines()

        matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)
        hunks = [opcode for opcode in matcher.get_opcodes() if opcode[0] != "equal"]
        counts = self._count(hunks)
        if not hunks:
            return TextDiffResult(change_counts=counts)

        if _normalize(old_text) == _normalize(new_text):
            return TextDiffResult(whitespace_only=True, change_counts=counts)

        old_normalized = [_normalize(line) for line in old_lines]
        new_normalized = [_normalize(line) for line in new_lines]

        changed = self._changed_lines(hunks, old_normalized, new_normalized, old_lines, new_lines)
        if changed and all(is_comment for _, is_comment in changed):
            return TextDiffResult(comments_only=True, change_counts=counts)

        structural = False
        semantic = False
        for line, is_comment in changed:
            if is_comment:
                continue
            if is_declaration_line(line):
                structural = True
            else:
                semantic = True

        return TextDiffResult(structural_changes=structural, semantic_changes=semantic, change_counts=counts)

    @staticmethod
    def _count(hunks: list[tuple[str, int, int, int, int]]) -> ChangeCounts:
        additions = deletions = modifications = 0
        for tag, i1, i2, j1, j2 in hunks:
            removed = i2 - i1
            added = j2 - j1
            if tag == "replace":
                paired = min(removed, added)
                modifications += paired
                additions += added - paired
                deletions += removed - paired
            elif tag == "insert":
                additions += added
            elif tag == "delete":
                deletions += removed
        return ChangeCounts(
            total=len(hunks), additions=additions, deletions=deletions, modifications=modifications
        )

    @staticmethod
    def _changed_lines(
        hunks: list[tuple[str, int, int, int, int]],
        old_normalized: list[str],
        new_normalized: list[str],
        old_lines: list[str],
        new_lines: list[str],
    ) -> list[tuple[str, bool]]:
        """Lines whose normalized text appears on only one side, with their comment status.

        Lines that merely moved or were reindented cancel out. When everything
        cancels (pure reordering), every non-blank line inside a hunk counts.
        """
        old_mask = _comment_mask(old_lines)
        new_mask = _comment_mask(new_lines)

        old_in_hunks = [i for _, i1, i2, _, _ in hunks for i in range(i1, i2) if old_normalized[i]]
        new_in_hunks = [j for _, _, _, j1, j2 in hunks for j in range(j1, j2) if new_normalized[j]]

        old_counter = Counter(old_normalized[i] for i in old_in_hunks)
        new_counter = Counter(new_normalized[j] for j in new_in_hunks)
        only_old = old_counter - new_counter
        only_new = new_counter - old_counter

        changed: list[tuple[str, bool]] = []
        for indexes, normalized, mask, remaining in (
            (old_in_hunks, old_normalized, old_mask, only_old),
            (new_in_hunks, new_normalized, new_mask, only_new),
        ):
            for index in indexes:
                if remaining[normalized[index]] > 0:
                    remaining[normalized[index]] -= 1
                    changed.append((normalized[index], mask[index]))

        if not changed:
            changed = [(old_normalized[i], old_mask[i]) for i in old_in_hunks]
            changed += [(new_normalized[j], new_mask[j]) for j in new_in_hunks]
        return changed
