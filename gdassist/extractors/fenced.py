"""The three fenced-block extractor variants."""

from __future__ import annotations

import re
from typing import List, Optional, Set

from ..models import CodeBlock
from ..paths import extension, normalize_path
from .base import FencedSegment, TextBlockExtractor, block_for_path, split_fenced, unique_path

# Phrases that announce where the following block should be saved.
_HINT_PATTERN = re.compile(
    r"(?:"
    r"\bfile\s*:|\bpath\s*:"
    r"|\bsave[sd]?(?:\s+(?:it|this|that))?(?:\s+(?:to|as|in))?"
    r"|\bcreat(?:e|es|ed|ing)\b|\bgenerat(?:e|es|ed|ing)\b"
    r"|\bwrit(?:e|es|ing)(?:\s+to)?|\bmake\b|\bupdat(?:e|es|ed|ing)\b"
    r"|\bfor\b|\bin\b|\bto\b"
    r")"
    r"\s*(?:(?:the|file|a|an|new|script|scene|resource)\s+)*"
    r"[`'\"]?((?:res://)?[\w.\-/]+\.[A-Za-z][A-Za-z0-9]+)\b[`'\"]?",
    re.IGNORECASE,
)
_FILE_LINE_MARKER = "File:"

# Hints with any other suffix are prose such as "self.velocity".
HINT_EXTENSIONS = frozenset({
    "gd", "tscn", "tres", "res", "gdshader", "shader", "gdshaderinc", "cs", "cfg", "godot",
    "import", "json", "txt", "md", "csv", "xml", "ini", "yml", "yaml",
})


def find_path_hints(text: str) -> List[str]:
    """Return every explicit path hint in *text* with a known file extension, in reading order."""
    hints = (normalize_path(match.group(1)) for match in _HINT_PATTERN.finditer(text))
    return [hint for hint in hints if extension(hint) in HINT_EXTENSIONS]


class MultipleBlockExtractor(TextBlockExtractor):
    """Extracts every block; the closest hint in the preceding prose names each one.

    Blocks without a hint and without a recognisable shape fall back to a
    generic resource path.
    """

    name = "multiple"

    def extract(self, response: str) -> List[CodeBlock]:
        blocks: List[CodeBlock] = []
        generated: Set[str] = set()
        for segment in split_fenced(response):
            hints = find_path_hints(segment.prose_before)
            if hints:
                block = block_for_path(segment, hints[-1])
            else:
                block = self._generated_block(segment, generated, blocks)
            if block is None:
                continue
            self.logger.debug("Block %d -> %s (%s)", segment.index, block.inferred_path, block.inferred_type.value)
            blocks.append(block)
        return blocks

    def _generated_block(
        self, segment: FencedSegment, generated: Set[str], blocks: List[CodeBlock]
    ) -> Optional[CodeBlock]:
        inferred = self._infer_from_content(segment)
        if inferred is None:
            return None
        path, kind = inferred
        taken = generated | {block.inferred_path for block in blocks}
        path = unique_path(path, taken)
        generated.add(path)
        return block_for_path(segment, path, kind)


class SingleBlockExtractor(TextBlockExtractor):
    """Legacy variant: only the first block, named by the first hint anywhere in the text."""

    name = "single"

    def extract(self, response: str) -> List[CodeBlock]:
        segments = split_fenced(response)
        if not segments:
            return []
        first = segments[0]
        hints = find_path_hints(response)
        if hints:
            return [block_for_path(first, hints[0])]
        inferred = self._infer_from_content(first)
        if inferred is None:
            return []
        path, kind = inferred
        return [block_for_path(first, path, kind)]


class FastBlockExtractor(TextBlockExtractor):
    """Fast path: trusts only ``File:`` lines and skips blocks it cannot classify."""

    name = "fast"

    def extract(self, response: str) -> List[CodeBlock]:
        blocks: List[CodeBlock] = []
        taken: Set[str] = set()
        for segment in split_fenced(response):
            path = self._file_line(segment.prose_before)
            if path:
                blocks.append(block_for_path(segment, path))
                taken.add(path)
                continue
            inferred = self._infer_from_content(
                segment,
                scene_prefix="Scene",
                script_prefix="Script",
                allow_resource=False,
                script_markers=("extends ",),
            )
            if inferred is None:
                self.logger.debug(
                    "Skipping block %d with unknown language %r", segment.index, segment.language
                )
                continue
            generated, kind = inferred
            generated = unique_path(generated, taken)
            taken.add(generated)
            blocks.append(block_for_path(segment, generated, kind))
        return blocks

    @staticmethod
    def _file_line(prose: str) -> Optional[str]:
        position = prose.rfind(_FILE_LINE_MARKER)
        if position == -1:
            return None
        line = prose[position + len(_FILE_LINE_MARKER):].split("\n", 1)[0]
        value = line.strip().strip("`'\"*").strip()
        if not value:
            return None
        return normalize_path(value)


__all__ = [
    "FastBlockExtractor",
    "MultipleBlockExtractor",
    "SingleBlockExtractor",
    "find_path_hints",
]
