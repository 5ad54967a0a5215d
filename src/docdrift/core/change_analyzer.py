"""Runs the text diff, structural diff and scorer over one old/new file pair."""

import logging
from collections.abc import Iterable

from docdrift.core.errors import InputError, ParseError
from docdrift.core.models import ChangeAnalysis, SignificanceResult, SourceLanguage, StructuralDelta
from docdrift.core.settings import ScoringPolicy
from docdrift.core.significance import SignificanceScorer
from docdrift.core.structural_diff import StructuralDiffComparator
from docdrift.core.structural_parser import language_for_path, parse
from docdrift.core.text_diff import TextDiffClassifier

logger = logging.getLogger(__name__)


class ChangeAnalyzer:
    """Decides whether one file's change warrants regenerating its documentation."""

    def __init__(self, policy: ScoringPolicy | None = None):
        self.text_classifier = TextDiffClassifier()
        self.comparator = StructuralDiffComparator()
        self.scorer = SignificanceScorer(policy)

    def analyze(
        self,
        path: str,
        old_text: str | None,
        new_text: str,
        documented_symbols: Iterable[str] | None = None,
    ) -> ChangeAnalysis:
        """Analyze a change.

        A missing or empty old version means a new file and always regenerates;
        identical content always skips. A parse failure on either side drops the
        structural comparison but still scores the text diff.
        """
        if not old_text:
            return ChangeAnalysis(result=SignificanceResult.certain(True, "New file, documentation must be generated"))
        if old_text == new_text:
            return ChangeAnalysis(result=SignificanceResult.certain(False, "Content unchanged"))

        text_diff = self.text_classifier.classify(old_text, new_text)

        language = language_for_path(path) or SourceLanguage.PHP
        parse_error = None
        try:
            delta = self.comparator.compare(parse(old_text, language), parse(new_text, language))
        except ParseError as e:
            logger.warning(f"Structural comparison skipped for {path}: {e}")
            parse_error = str(e)
            delta = StructuralDelta()

        try:
            result = self.scorer.score(text_diff, delta, documented_symbols)
        except InputError as e:
            logger.warning(f"Cannot score change to {path}: {e}")
            result = SignificanceResult.unscorable(f"Cannot score change: {e}")

        return ChangeAnalysis(result=result, text_diff=text_diff, delta=delta, parse_error=parse_error)
